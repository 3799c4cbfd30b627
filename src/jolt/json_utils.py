"""JSON text helpers used by the transform facade."""

import json
from typing import Any, Optional


def json_to_object(text: Optional[str]) -> Any:
    """Parse JSON text. Empty or blank text yields None."""
    if text is None or not text.strip():
        return None
    return json.loads(text)


def to_json_string(obj: Any, pretty: bool = False) -> str:
    if pretty:
        return json.dumps(obj, indent=2, ensure_ascii=False)
    return json.dumps(obj, ensure_ascii=False)
