"""Sort: order object keys recursively."""

from typing import Any

from src.jolt.base import Transform


def _sort_key(key: str) -> tuple[bool, str]:
    # keys starting with "~" sort ahead of everything else
    return (not key.startswith("~"), key)


def sort_json(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: sort_json(value[k]) for k in sorted(value, key=_sort_key)}
    if isinstance(value, list):
        return [sort_json(item) for item in value]
    return value


class Sortr(Transform):
    """Alphabetically orders keys; array element order is kept."""

    def __init__(self, spec: Any = None):
        # sort takes no spec; anything passed is ignored
        pass

    def transform(self, input: Any) -> Any:
        return sort_json(input)
