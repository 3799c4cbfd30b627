"""Tests for the shift transform."""

import copy

import pytest

from src.jolt import Shiftr, SpecError, TransformError
from src.jolt.paths import MAX_ARRAY_INDEX


def test_literal_path():
    spec = {"rating": {"primary": {"value": "Rating"}}}
    data = {"rating": {"primary": {"value": 3, "max": 5}}}

    assert Shiftr(spec).transform(data) == {"Rating": 3}


def test_wildcard_with_parent_reference():
    spec = {"rating": {"*": {"value": "Secondary.&1.Value"}}}
    data = {"rating": {"quality": {"value": 4}, "price": {"value": 2}}}

    assert Shiftr(spec).transform(data) == {
        "Secondary": {"quality": {"Value": 4}, "price": {"Value": 2}}
    }


def test_literal_key_wins_over_wildcard():
    spec = {"*": "other.&", "id": "identifier"}

    result = Shiftr(spec).transform({"id": 1, "name": "x"})

    assert result == {"identifier": 1, "other": {"name": "x"}}


def test_star_pattern_captures():
    spec = {"tag-*": "tags.&(0,1)"}

    result = Shiftr(spec).transform({"tag-red": 1, "tag-blue": 2, "other": 3})

    assert result == {"tags": {"red": 1, "blue": 2}}


def test_specific_pattern_tried_before_bare_star():
    spec = {"*": "rest.&", "x-*": "xs.&(0,1)"}

    result = Shiftr(spec).transform({"x-a": 1, "b": 2})

    assert result == {"xs": {"a": 1}, "rest": {"b": 2}}


def test_alternation_with_array_append():
    spec = {"a|b": "ab[]"}

    assert Shiftr(spec).transform({"a": 1, "b": 2, "c": 3}) == {"ab": [1, 2]}


def test_dollar_writes_matched_key():
    spec = {"*": {"$": "keys[]"}}

    assert Shiftr(spec).transform({"x": {"v": 1}, "y": 2}) == {"keys": ["x", "y"]}


def test_hash_writes_literal():
    spec = {"name": "out.name", "#fixed": "out.kind"}

    assert Shiftr(spec).transform({"name": "n"}) == {
        "out": {"kind": "fixed", "name": "n"}
    }


def test_at_copies_current_value():
    spec = {"data": {"@": "copy", "id": "id"}}

    assert Shiftr(spec).transform({"data": {"id": 7}}) == {
        "copy": {"id": 7},
        "id": 7,
    }


def test_at_reads_ancestor_value():
    spec = {"id": "id", "details": {"@(1,id)": "details_id"}}

    result = Shiftr(spec).transform({"id": 5, "details": {"x": 1}})

    assert result == {"id": 5, "details_id": 5}


def test_array_input_and_index_reference():
    spec = {"items": {"*": {"name": "names[&1]"}}}
    data = {"items": [{"name": "a"}, {"name": "b"}]}

    assert Shiftr(spec).transform(data) == {"names": ["a", "b"]}


def test_multiple_output_paths():
    assert Shiftr({"id": ["a", "b.c"]}).transform({"id": 1}) == {
        "a": 1,
        "b": {"c": 1},
    }


def test_null_output_path_drops_value():
    assert Shiftr({"a": None, "b": "b"}).transform({"a": 1, "b": 2}) == {"b": 2}


def test_colliding_writes_become_list():
    assert Shiftr({"*": "all"}).transform({"x": 1, "y": 2}) == {"all": [1, 2]}


def test_no_match_returns_none():
    assert Shiftr({"missing": "x"}).transform({"present": 1}) is None


def test_input_is_not_mutated():
    data = {"a": [1, 2], "b": [3]}
    original = copy.deepcopy(data)

    Shiftr({"*": "merged"}).transform(data)

    assert data == original


@pytest.mark.parametrize(
    "spec",
    [
        [],
        "shift",
        {"a": 5},
        {"a": "b.&(1"},
        {"a": "b..c"},
        {"a": ["ok", 3]},
        {"a": "b[x]"},
        {"$": {"nested": "x"}},
    ],
)
def test_invalid_specs_rejected(spec):
    with pytest.raises(SpecError):
        Shiftr(spec)


def test_huge_literal_index_rejected():
    with pytest.raises(SpecError):
        Shiftr({"a": "out[999999999]"})


def test_largest_allowed_index_is_padded():
    result = Shiftr({"a": f"out[{MAX_ARRAY_INDEX}]"}).transform({"a": 1})

    assert len(result["out"]) == MAX_ARRAY_INDEX + 1
    assert result["out"][-1] == 1


def test_huge_index_from_input_key_fails():
    spec = {"*": "out[&0]"}

    with pytest.raises(TransformError):
        Shiftr(spec).transform({"999999999": 1})
