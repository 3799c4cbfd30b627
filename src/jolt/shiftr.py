"""Shift: copy values from the input tree to new locations in an output tree.

The spec mirrors the shape of the input. Each leaf names the output
path(s) the matched input value is written to:

    {"rating": {"primary": {"value": "Rating"},
                "*": {"value": "SecondaryRatings.&1.Value"}}}

Literal keys win over wildcards; among wildcards the first match wins,
with patterns such as ``a*`` tried before the bare ``*``. Computed keys
(``@``, ``$``, ``#``) fire once each time their enclosing level matches.
"""

import logging
from typing import Any, Optional

from src.jolt.base import SpecDriven, Transform
from src.jolt.errors import SpecError
from src.jolt.paths import (
    AtKey,
    KeyMatcher,
    OutputPath,
    PathElement,
    WalkedPath,
    parse_key,
    parse_output_paths,
    wildcard_order,
)

logger = logging.getLogger(__name__)

ROOT_KEY = "root"


class _ShiftChild:
    __slots__ = ("matcher", "node", "paths")

    def __init__(self, matcher: KeyMatcher, spec_value: Any, location: str):
        self.matcher = matcher
        self.node: Optional[_ShiftNode] = None
        self.paths: list[OutputPath] = []
        if isinstance(spec_value, dict):
            if matcher.computed and not isinstance(matcher, AtKey):
                raise SpecError(
                    f"'{matcher.raw}' at {location} must map to an output path"
                )
            self.node = _ShiftNode(spec_value, location)
        else:
            self.paths = parse_output_paths(spec_value)


class _ShiftNode:
    def __init__(self, spec: dict, location: str = ROOT_KEY):
        self.literals: dict[str, _ShiftChild] = {}
        self.wildcards: list[_ShiftChild] = []
        self.computed: list[_ShiftChild] = []

        for raw_key, spec_value in spec.items():
            matcher = parse_key(raw_key)
            child = _ShiftChild(matcher, spec_value, f"{location}.{raw_key}")
            if matcher.computed:
                self.computed.append(child)
            elif matcher.wildcard:
                self.wildcards.append(child)
            else:
                self.literals[raw_key] = child

        # stable sort keeps spec order within each rank
        self.wildcards.sort(key=lambda c: wildcard_order(c.matcher))

    def apply(self, walked: WalkedPath, value: Any, output: dict) -> None:
        for child in self.computed:
            element = child.matcher.evaluate(walked)
            _apply_child(child, walked.pushed(element), element.value, output)

        if isinstance(value, dict):
            items = list(value.items())
        elif isinstance(value, list):
            items = [(str(i), item) for i, item in enumerate(value)]
        else:
            return

        for key, item in items:
            child = self.literals.get(key)
            captures: Optional[list[str]] = [key] if child else None
            if child is None:
                for candidate in self.wildcards:
                    captures = candidate.matcher.match(key)
                    if captures is not None:
                        child = candidate
                        break
            if child is None:
                continue
            element = PathElement(key=key, captures=captures, value=item)
            _apply_child(child, walked.pushed(element), item, output)


def _apply_child(
    child: _ShiftChild, walked: WalkedPath, value: Any, output: dict
) -> None:
    if child.node is not None:
        child.node.apply(walked, value, output)
        return
    for path in child.paths:
        path.write(output, walked, value)


class Shiftr(SpecDriven, Transform):
    """Relocates input values according to a shift spec."""

    def __init__(self, spec: Any):
        if not isinstance(spec, dict):
            raise SpecError(
                f"Shift spec must be a JSON object, got {type(spec).__name__}"
            )
        self._root = _ShiftNode(spec)

    def transform(self, input: Any) -> Any:
        output: dict[str, Any] = {}
        walked = WalkedPath([PathElement(key=ROOT_KEY, value=input)])
        self._root.apply(walked, input, output)
        if not output:
            logger.debug("Shift spec matched nothing in the input")
            return None
        return output
