"""Remove: drop keys from the input tree.

A leaf value of ``""`` removes the matched key; an object recurses.
"""

import copy
from typing import Any, Optional

from src.jolt.base import SpecDriven, Transform
from src.jolt.errors import SpecError
from src.jolt.paths import KeyMatcher, parse_key


class _RemoveNode:
    def __init__(self, spec: dict, location: str = "root"):
        self.children: list[tuple[KeyMatcher, Optional[_RemoveNode]]] = []
        for raw, spec_value in spec.items():
            matcher = parse_key(raw, allow_computed=False)
            if isinstance(spec_value, dict):
                self.children.append(
                    (matcher, _RemoveNode(spec_value, f"{location}.{raw}"))
                )
            elif spec_value == "":
                self.children.append((matcher, None))
            else:
                raise SpecError(
                    f"Remove spec leaf at {location}.{raw} must be \"\", "
                    f"got {spec_value!r}"
                )

    def apply(self, container: Any) -> None:
        if isinstance(container, dict):
            keys = list(container.keys())
        elif isinstance(container, list):
            keys = [str(i) for i in range(len(container))]
        else:
            return

        doomed: set[str] = set()
        for key in keys:
            for matcher, node in self.children:
                if matcher.match(key) is None:
                    continue
                if node is None:
                    doomed.add(key)
                else:
                    node.apply(_get(container, key))

        if isinstance(container, dict):
            for key in doomed:
                del container[key]
        else:
            for index in sorted((int(k) for k in doomed), reverse=True):
                del container[index]


def _get(container: Any, key: str) -> Any:
    if isinstance(container, dict):
        return container[key]
    return container[int(key)]


class Removr(SpecDriven, Transform):
    """Removes the keys named by a remove spec."""

    def __init__(self, spec: Any):
        if not isinstance(spec, dict):
            raise SpecError(
                f"Remove spec must be a JSON object, got {type(spec).__name__}"
            )
        self._root = _RemoveNode(spec)

    def transform(self, input: Any) -> Any:
        output = copy.deepcopy(input)
        self._root.apply(output)
        return output
