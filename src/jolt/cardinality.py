"""Cardinality: force values to be single items or lists."""

import copy
from typing import Any, Optional

from src.jolt.base import SpecDriven, Transform
from src.jolt.errors import SpecError
from src.jolt.paths import AtKey, KeyMatcher, parse_key, wildcard_order

ONE = "ONE"
MANY = "MANY"


def _parse_mode(spec_value: Any, location: str) -> str:
    if isinstance(spec_value, str) and spec_value.upper() in (ONE, MANY):
        return spec_value.upper()
    raise SpecError(
        f"Cardinality at {location} must be ONE or MANY, got {spec_value!r}"
    )


def _apply_mode(mode: str, value: Any) -> Any:
    if mode == ONE:
        if isinstance(value, list):
            return value[0] if value else None
        return value
    if value is None or isinstance(value, list):
        return value
    return [value]


class _CardinalityChild:
    __slots__ = ("matcher", "mode", "node")

    def __init__(self, matcher: KeyMatcher, mode: Optional[str], node):
        self.matcher = matcher
        self.mode = mode
        self.node = node


class _CardinalityNode:
    def __init__(self, spec: dict, location: str = "root"):
        self.self_mode: Optional[str] = None
        self.literals: dict[str, _CardinalityChild] = {}
        self.wildcards: list[_CardinalityChild] = []

        for raw, spec_value in spec.items():
            where = f"{location}.{raw}"
            matcher = parse_key(raw)
            if isinstance(matcher, AtKey):
                if matcher.up != 0 or matcher.sub_path:
                    raise SpecError(f"Only a plain '@' is supported at {where}")
                self.self_mode = _parse_mode(spec_value, where)
                continue
            if matcher.computed:
                raise SpecError(f"Key '{raw}' is not supported by cardinality")

            if isinstance(spec_value, dict):
                child = _CardinalityChild(
                    matcher, None, _CardinalityNode(spec_value, where)
                )
            else:
                child = _CardinalityChild(
                    matcher, _parse_mode(spec_value, where), None
                )
            if matcher.wildcard:
                self.wildcards.append(child)
            else:
                self.literals[raw] = child

        self.wildcards.sort(key=lambda c: wildcard_order(c.matcher))

    def _child_for(self, key: str) -> Optional[_CardinalityChild]:
        child = self.literals.get(key)
        if child is not None:
            return child
        for candidate in self.wildcards:
            if candidate.matcher.match(key) is not None:
                return candidate
        return None

    def apply(self, value: Any) -> Any:
        if self.self_mode is not None:
            value = _apply_mode(self.self_mode, value)

        if isinstance(value, dict):
            slots = list(value.keys())
        elif isinstance(value, list):
            slots = list(range(len(value)))
        else:
            return value

        for slot in slots:
            child = self._child_for(str(slot))
            if child is None:
                continue
            if child.node is not None:
                value[slot] = child.node.apply(value[slot])
            else:
                value[slot] = _apply_mode(child.mode, value[slot])
        return value


class CardinalityTransform(SpecDriven, Transform):
    """Converts matched values to a single item (ONE) or a list (MANY)."""

    def __init__(self, spec: Any):
        if not isinstance(spec, dict):
            raise SpecError(
                f"Cardinality spec must be a JSON object, got {type(spec).__name__}"
            )
        self._root = _CardinalityNode(spec)

    def transform(self, input: Any) -> Any:
        return self._root.apply(copy.deepcopy(input))
