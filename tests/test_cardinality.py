"""Tests for the cardinality transform."""

import pytest

from src.jolt import CardinalityTransform, SpecError


def test_one_and_many():
    spec = {"email": "ONE", "phone": "MANY"}
    data = {"email": ["a@x", "b@x"], "phone": "123"}

    assert CardinalityTransform(spec).transform(data) == {
        "email": "a@x",
        "phone": ["123"],
    }


def test_one_of_empty_list_is_none():
    assert CardinalityTransform({"a": "ONE"}).transform({"a": []}) == {"a": None}


def test_values_already_in_shape_unchanged():
    spec = {"a": "ONE", "b": "MANY"}

    assert CardinalityTransform(spec).transform({"a": 1, "b": [1, 2]}) == {
        "a": 1,
        "b": [1, 2],
    }


def test_nested_wildcard_over_array():
    spec = {"people": {"*": {"name": "ONE"}}}
    data = {"people": [{"name": ["a", "b"]}, {"name": "c"}]}

    assert CardinalityTransform(spec).transform(data) == {
        "people": [{"name": "a"}, {"name": "c"}]
    }


def test_at_applies_to_container_itself():
    spec = {"tags": {"@": "MANY"}}

    assert CardinalityTransform(spec).transform({"tags": "x"}) == {"tags": ["x"]}


def test_mode_is_case_insensitive():
    assert CardinalityTransform({"a": "one"}).transform({"a": [1]}) == {"a": 1}


@pytest.mark.parametrize("spec", [[], {"a": "SOME"}, {"a": 1}, {"$": "ONE"}])
def test_invalid_specs_rejected(spec):
    with pytest.raises(SpecError):
        CardinalityTransform(spec)
