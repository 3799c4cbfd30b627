"""Spec key matchers and output paths.

LHS keys select input keys (or compute a value); RHS paths say where in
the output a value lands. Both can refer back up the walked input path:

- ``&`` / ``&n`` / ``&(n,m)``: capture ``m`` of the key matched ``n``
  levels up. Capture 0 is the whole key; 1.. are the ``*`` groups.
- ``@`` / ``@n`` / ``@(n,a.b)``: the input value ``n`` levels up, optionally
  navigated by a dotted sub-path.
"""

import copy
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from src.jolt.errors import SpecError, TransformError

_REF_ARGS = re.compile(r"^(?:\((\d+),(\d+)\)|\((\d+)\)|(\d+))?$")
_AT_ARGS = re.compile(r"^(?:\((\d+),(.*)\)|\((\d+)\)|(\d+))?$", re.DOTALL)
_AMP_TOKEN = re.compile(r"&(?:\((\d+),(\d+)\)|\((\d+)\)|(\d+))?")

APPEND = object()

# Highest list index a spec may write to; lists are padded with nulls up to it
MAX_ARRAY_INDEX = 10_000


# ── Walked input path ─────────────────────────────────


@dataclass
class PathElement:
    """One matched level of the input walk."""

    key: str
    captures: list[str] = field(default_factory=list)
    value: Any = None

    def __post_init__(self):
        if not self.captures:
            self.captures = [self.key]


class WalkedPath(list):
    """Stack of PathElements, innermost last."""

    def element(self, up: int) -> PathElement:
        index = len(self) - 1 - up
        if index < 0:
            raise TransformError(
                f"Reference {up} levels up walks past the input root"
            )
        return self[index]

    def capture(self, up: int, group: int) -> str:
        captures = self.element(up).captures
        if group >= len(captures):
            raise TransformError(
                f"Reference &({up},{group}) has no such capture group"
            )
        return captures[group]

    def pushed(self, element: PathElement) -> "WalkedPath":
        walked = WalkedPath(self)
        walked.append(element)
        return walked


def split_dotted(text: str) -> list[str]:
    """Split on dots that are not inside parentheses."""
    parts: list[str] = []
    depth = 0
    current = []
    for ch in text:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise SpecError(f"Unbalanced ')' in '{text}'")
        if ch == "." and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    if depth != 0:
        raise SpecError(f"Unbalanced '(' in '{text}'")
    parts.append("".join(current))
    return parts


def navigate(value: Any, sub_path: list[str]) -> Any:
    """Follow a dotted sub-path into a value; missing steps yield None."""
    for step in sub_path:
        if isinstance(value, dict):
            value = value.get(step)
        elif isinstance(value, list) and step.isdigit():
            index = int(step)
            value = value[index] if index < len(value) else None
        else:
            return None
    return value


def _parse_ref_args(text: str, original: str) -> tuple[int, int]:
    m = _REF_ARGS.match(text)
    if not m:
        raise SpecError(f"Invalid reference '{original}'")
    if m.group(1) is not None:
        return int(m.group(1)), int(m.group(2))
    if m.group(3) is not None:
        return int(m.group(3)), 0
    if m.group(4) is not None:
        return int(m.group(4)), 0
    return 0, 0


def _parse_at_args(text: str, original: str) -> tuple[int, list[str]]:
    m = _AT_ARGS.match(text)
    if not m:
        raise SpecError(f"Invalid value reference '{original}'")
    if m.group(1) is not None:
        sub = m.group(2).strip()
        return int(m.group(1)), split_dotted(sub) if sub else []
    if m.group(3) is not None:
        return int(m.group(3)), []
    if m.group(4) is not None:
        return int(m.group(4)), []
    return 0, []


# ── LHS key matchers ──────────────────────────────────


class LiteralKey:
    computed = False
    wildcard = False

    def __init__(self, raw: str):
        self.raw = raw

    def match(self, key: str) -> Optional[list[str]]:
        return [key] if key == self.raw else None


class StarKey:
    """A key with one or more ``*`` wildcards; each star is a capture."""

    computed = False
    wildcard = True

    def __init__(self, raw: str):
        self.raw = raw
        pattern = "".join(
            "(.*?)" if part == "*" else re.escape(part)
            for part in re.split(r"(\*)", raw)
            if part
        )
        self._regex = re.compile(pattern, re.DOTALL)

    @property
    def is_bare(self) -> bool:
        return self.raw == "*"

    def match(self, key: str) -> Optional[list[str]]:
        m = self._regex.fullmatch(key)
        if m is None:
            return None
        return [key, *m.groups()]


class OrKey:
    """``a|b*|c``: the first alternative that matches wins."""

    computed = False
    wildcard = True
    is_bare = False

    def __init__(self, raw: str):
        self.raw = raw
        options = raw.split("|")
        if any(not option for option in options):
            raise SpecError(f"Empty alternative in key '{raw}'")
        self.options = [
            StarKey(option) if "*" in option else LiteralKey(option)
            for option in options
        ]

    def match(self, key: str) -> Optional[list[str]]:
        for option in self.options:
            captures = option.match(key)
            if captures is not None:
                return captures
        return None


class AtKey:
    """``@``: selects an input value rather than matching a key."""

    computed = True
    wildcard = False

    def __init__(self, raw: str):
        self.raw = raw
        self.up, self.sub_path = _parse_at_args(raw[1:], raw)

    def evaluate(self, walked: WalkedPath) -> PathElement:
        base = walked.element(self.up)
        value = navigate(base.value, self.sub_path)
        return PathElement(key=walked.element(0).key, value=value)


class DollarKey:
    """``$``: emits the key matched ``n`` levels up as the value."""

    computed = True
    wildcard = False

    def __init__(self, raw: str):
        self.raw = raw
        self.up, self.group = _parse_ref_args(raw[1:], raw)

    def evaluate(self, walked: WalkedPath) -> PathElement:
        key = walked.capture(self.up, self.group)
        return PathElement(key=key, value=key)


class HashKey:
    """``#literal``: emits the literal text as the value."""

    computed = True
    wildcard = False

    def __init__(self, raw: str):
        self.raw = raw
        self.literal = raw[1:]

    def evaluate(self, walked: WalkedPath) -> PathElement:
        return PathElement(key=self.literal, value=self.literal)


KeyMatcher = Union[LiteralKey, StarKey, OrKey, AtKey, DollarKey, HashKey]


def parse_key(raw: str, allow_computed: bool = True) -> KeyMatcher:
    """Compile one LHS spec key."""
    if not isinstance(raw, str) or raw == "":
        raise SpecError("Spec keys must be non-empty strings")
    if raw[0] in "@$#":
        if not allow_computed:
            raise SpecError(f"Key '{raw}' is not supported by this transform")
        if raw[0] == "@":
            return AtKey(raw)
        if raw[0] == "$":
            return DollarKey(raw)
        return HashKey(raw)
    if "|" in raw:
        return OrKey(raw)
    if "*" in raw:
        return StarKey(raw)
    return LiteralKey(raw)


def wildcard_order(matcher: KeyMatcher) -> int:
    """Sort rank for wildcards: specific patterns before the bare ``*``."""
    return 1 if getattr(matcher, "is_bare", False) else 0


# ── RHS output paths ──────────────────────────────────


class _Template:
    """Segment key text with embedded ``&`` references."""

    def __init__(self, text: str, original: str):
        self.parts: list[Union[str, tuple[int, int]]] = []
        pos = 0
        for m in _AMP_TOKEN.finditer(text):
            if m.start() > pos:
                self.parts.append(text[pos:m.start()])
            self.parts.append(_parse_ref_args(m.group(0)[1:], original))
            pos = m.end()
        if pos < len(text):
            self.parts.append(text[pos:])

    def render(self, walked: WalkedPath) -> str:
        out = []
        for part in self.parts:
            if isinstance(part, tuple):
                out.append(walked.capture(*part))
            else:
                out.append(part)
        return "".join(out)


class _Segment:
    def __init__(self, text: str, original: str):
        self.at: Optional[tuple[int, list[str]]] = None
        self.key: Optional[_Template] = None
        self.index: Any = None

        key_text = text
        if text.endswith("]") and "[" in text:
            bracket = text.rindex("[")
            key_text, index_text = text[:bracket], text[bracket + 1:-1]
            if index_text == "":
                self.index = APPEND
            elif index_text.isdigit():
                self.index = int(index_text)
                if self.index > MAX_ARRAY_INDEX:
                    raise SpecError(
                        f"Array index [{index_text}] in '{original}' exceeds "
                        f"{MAX_ARRAY_INDEX}"
                    )
            elif index_text.startswith("&"):
                self.index = _Template(index_text, original)
            else:
                raise SpecError(
                    f"Invalid array index '[{index_text}]' in '{original}'"
                )

        if key_text == "":
            raise SpecError(f"Empty path segment in '{original}'")
        if key_text.startswith("@"):
            self.at = _parse_at_args(key_text[1:], original)
        else:
            self.key = _Template(key_text, original)

    def evaluate(self, walked: WalkedPath) -> tuple[str, Any]:
        if self.at is not None:
            up, sub_path = self.at
            value = navigate(walked.element(up).value, sub_path)
            if value is None or isinstance(value, (dict, list)):
                raise TransformError(
                    "Output key reference must resolve to a scalar value"
                )
            key = str(value).lower() if isinstance(value, bool) else str(value)
        else:
            key = self.key.render(walked)

        index = self.index
        if isinstance(index, _Template):
            rendered = index.render(walked)
            if not rendered.isdigit():
                raise TransformError(
                    f"Array index reference resolved to non-integer '{rendered}'"
                )
            index = int(rendered)
        return key, index


class OutputPath:
    """A compiled dotted RHS path such as ``rating.&1.value[]``."""

    def __init__(self, raw: str):
        if not isinstance(raw, str) or raw.strip() == "":
            raise SpecError("Output paths must be non-empty strings")
        self.raw = raw
        self.segments = [_Segment(part, raw) for part in split_dotted(raw)]

    def write(self, output: dict, walked: WalkedPath, value: Any) -> None:
        keys = [segment.evaluate(walked) for segment in self.segments]
        write_value(output, keys, copy.deepcopy(value))


def parse_output_paths(raw: Any) -> list[OutputPath]:
    """Compile a RHS: a path string, a list of them, or null (drop)."""
    if raw is None:
        return []
    if isinstance(raw, str):
        return [OutputPath(raw)]
    if isinstance(raw, list):
        if not all(isinstance(item, str) for item in raw):
            raise SpecError(f"Output path lists must contain strings: {raw!r}")
        return [OutputPath(item) for item in raw]
    raise SpecError(f"Invalid output path: {raw!r}")


# ── Output writing ────────────────────────────────────


def _put(container: dict, key: str, value: Any) -> None:
    if key not in container:
        container[key] = value
        return
    existing = container[key]
    if isinstance(existing, list):
        existing.append(value)
    else:
        container[key] = [existing, value]


def _child_list(container: dict, key: str) -> list:
    existing = container.get(key)
    if existing is None:
        existing = []
        container[key] = existing
    elif not isinstance(existing, list):
        existing = [existing]
        container[key] = existing
    return existing


def _pad(items: list, index: int) -> None:
    if index > MAX_ARRAY_INDEX:
        raise TransformError(
            f"Array index {index} exceeds {MAX_ARRAY_INDEX}"
        )
    while len(items) <= index:
        items.append(None)


def write_value(output: dict, keys: list[tuple[str, Any]], value: Any) -> None:
    """Write ``value`` at ``keys``, creating containers along the way.

    Writing to an occupied slot turns it into a list and appends.
    """
    current = output
    for key, index in keys[:-1]:
        if index is None:
            child = current.get(key)
            if child is None:
                child = {}
                current[key] = child
            elif not isinstance(child, dict):
                raise TransformError(
                    f"Cannot write through non-object value at '{key}'"
                )
        else:
            items = _child_list(current, key)
            if index is APPEND:
                child = {}
                items.append(child)
            else:
                _pad(items, index)
                if items[index] is None:
                    items[index] = {}
                child = items[index]
                if not isinstance(child, dict):
                    raise TransformError(
                        f"Cannot write through non-object value at '{key}[{index}]'"
                    )
        current = child

    key, index = keys[-1]
    if index is None:
        _put(current, key, value)
        return
    items = _child_list(current, key)
    if index is APPEND:
        items.append(value)
        return
    _pad(items, index)
    if items[index] is None:
        items[index] = value
    elif isinstance(items[index], list):
        items[index].append(value)
    else:
        items[index] = [items[index], value]
