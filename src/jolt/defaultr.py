"""Default: fill in missing or null values.

Keys ending in ``[]`` declare array containers whose children are keyed by
index. ``*`` applies a child spec to every existing key; ``a|b`` applies
it to each named key.
"""

import copy
from typing import Any, Optional

from src.jolt.base import SpecDriven, Transform
from src.jolt.errors import SpecError, TransformError
from src.jolt.paths import (
    MAX_ARRAY_INDEX,
    LiteralKey,
    OrKey,
    StarKey,
    parse_key,
)


class _DefaultChild:
    __slots__ = ("raw", "matcher", "is_array", "node", "default")

    def __init__(self, raw: str, spec_value: Any):
        self.raw = raw
        self.is_array = raw.endswith("[]")
        key = raw[:-2] if self.is_array else raw
        self.matcher = parse_key(key, allow_computed=False)
        self.node: Optional[_DefaultNode] = None
        self.default: Any = None

        if isinstance(spec_value, dict):
            self.node = _DefaultNode(spec_value)
            if self.is_array:
                _check_indices(raw, spec_value)
        elif self.is_array:
            raise SpecError(
                f"Array key '{raw}' must map to an object of index keys"
            )
        else:
            self.default = spec_value

    def new_container(self) -> Any:
        return [] if self.is_array else {}

    def accepts(self, existing: Any) -> bool:
        return isinstance(existing, list if self.is_array else dict)


def _check_indices(raw: str, spec: dict) -> None:
    for key in spec:
        for option in key.split("|"):
            if option.isdigit() and int(option) > MAX_ARRAY_INDEX:
                raise SpecError(
                    f"Index '{option}' under '{raw}' exceeds {MAX_ARRAY_INDEX}"
                )


class _DefaultNode:
    def __init__(self, spec: dict):
        self.literals: list[_DefaultChild] = []
        self.alternations: list[_DefaultChild] = []
        self.wildcards: list[_DefaultChild] = []
        for raw, spec_value in spec.items():
            child = _DefaultChild(raw, spec_value)
            if isinstance(child.matcher, LiteralKey):
                self.literals.append(child)
            elif isinstance(child.matcher, OrKey):
                self.alternations.append(child)
            else:
                self.wildcards.append(child)

    def apply(self, container: Any) -> None:
        for child in self.literals:
            _default_key(container, child.matcher.raw, child)

        for child in self.alternations:
            for option in child.matcher.options:
                if isinstance(option, StarKey):
                    for key in _existing_keys(container):
                        if option.match(key) is not None:
                            _default_existing(container, key, child)
                else:
                    _default_key(container, option.raw, child)

        for child in self.wildcards:
            for key in _existing_keys(container):
                if child.matcher.match(key) is not None:
                    _default_existing(container, key, child)


def _existing_keys(container: Any) -> list[str]:
    if isinstance(container, dict):
        return list(container.keys())
    return [str(i) for i in range(len(container))]


def _get(container: Any, key: str) -> Any:
    if isinstance(container, dict):
        return container.get(key)
    index = int(key)
    return container[index] if index < len(container) else None


def _set(container: Any, key: str, value: Any) -> None:
    if isinstance(container, dict):
        container[key] = value
        return
    index = int(key)
    if index > MAX_ARRAY_INDEX:
        raise TransformError(f"Array index {index} exceeds {MAX_ARRAY_INDEX}")
    while len(container) <= index:
        container.append(None)
    container[index] = value


def _default_key(container: Any, key: str, child: _DefaultChild) -> None:
    """Apply a child to a named key, creating it when absent."""
    if isinstance(container, list) and not key.isdigit():
        return
    existing = _get(container, key)
    if child.node is None:
        if existing is None:
            _set(container, key, copy.deepcopy(child.default))
        return
    if existing is None:
        existing = child.new_container()
        _set(container, key, existing)
    if child.accepts(existing):
        child.node.apply(existing)


def _default_existing(container: Any, key: str, child: _DefaultChild) -> None:
    """Apply a wildcard child to a key already present in the container."""
    existing = _get(container, key)
    if child.node is None:
        if existing is None:
            _set(container, key, copy.deepcopy(child.default))
        return
    if child.accepts(existing):
        child.node.apply(existing)


class Defaultr(SpecDriven, Transform):
    """Adds default values to the input where they are missing or null."""

    def __init__(self, spec: Any):
        if not isinstance(spec, dict):
            raise SpecError(
                f"Default spec must be a JSON object, got {type(spec).__name__}"
            )
        self._root = _DefaultNode(spec)

    def transform(self, input: Any) -> Any:
        output = copy.deepcopy(input)
        if output is None:
            output = {}
        if isinstance(output, (dict, list)):
            self._root.apply(output)
        return output
