"""Tests for the sort transform."""

from src.jolt import Sortr


def test_keys_sorted_recursively_with_tilde_first():
    result = Sortr().transform({"b": 1, "a": {"d": 1, "c": 2}, "~z": 0})

    assert list(result) == ["~z", "a", "b"]
    assert list(result["a"]) == ["c", "d"]


def test_array_order_kept():
    result = Sortr().transform([{"b": 1, "a": 2}, 3])

    assert result == [{"a": 2, "b": 1}, 3]
    assert list(result[0]) == ["a", "b"]


def test_spec_is_ignored():
    assert Sortr({"anything": 1}).transform({"b": 1, "a": 2}) == {"a": 2, "b": 1}
