"""Chain: run a list of transforms in order.

Spec format::

    [
      {"operation": "shift", "spec": {...}},
      {"operation": "default", "spec": {...}},
      {"operation": "mypackage.transforms.Upcase", "spec": {...}}
    ]

Operation names that are not built in are resolved as class names through
the module loader passed to ``from_spec``.
"""

import logging
from typing import Any, Optional

from src.jolt.base import Transform, instantiate_transform
from src.jolt.cardinality import CardinalityTransform
from src.jolt.defaultr import Defaultr
from src.jolt.errors import SpecError, TransformError
from src.jolt.removr import Removr
from src.jolt.shiftr import Shiftr
from src.jolt.sortr import Sortr

logger = logging.getLogger(__name__)

BUILTIN_OPERATIONS: dict[str, type] = {
    "shift": Shiftr,
    "default": Defaultr,
    "remove": Removr,
    "cardinality": CardinalityTransform,
    "sort": Sortr,
    "Shiftr": Shiftr,
    "Defaultr": Defaultr,
    "Removr": Removr,
    "CardinalityTransform": CardinalityTransform,
    "Sortr": Sortr,
}


class Chainr(Transform):
    """Applies transforms in sequence, feeding each output to the next."""

    def __init__(self, transforms: list[Any]):
        self.transforms = list(transforms)

    @classmethod
    def from_spec(cls, spec: Any, loader: Optional[Any] = None) -> "Chainr":
        """Build a chain from its JSON spec.

        Args:
            spec: List of ``{"operation": ..., "spec": ...}`` entries
            loader: Optional module loader with ``load_class(name)`` used
                for operations that are not built in
        """
        if not isinstance(spec, list):
            raise SpecError(
                f"Chain spec must be a JSON array, got {type(spec).__name__}"
            )

        transforms = []
        for i, entry in enumerate(spec):
            if not isinstance(entry, dict):
                raise SpecError(f"Chain entry {i} must be a JSON object")
            operation = entry.get("operation")
            if not isinstance(operation, str) or not operation:
                raise SpecError(f"Chain entry {i} has no operation")
            transforms.append(
                _build_operation(operation, entry.get("spec"), loader, i)
            )
        return cls(transforms)

    def transform(self, input: Any) -> Any:
        result = input
        for i, step in enumerate(self.transforms):
            try:
                result = step.transform(result)
            except TransformError:
                raise
            except Exception as e:
                raise TransformError(
                    f"Chain entry {i} ({type(step).__name__}) failed: {e}"
                ) from e
        return result


def _build_operation(
    operation: str, spec: Any, loader: Optional[Any], index: int
) -> Any:
    builtin = BUILTIN_OPERATIONS.get(operation)
    if builtin is not None:
        try:
            return builtin(spec)
        except SpecError as e:
            raise SpecError(f"Chain entry {index} ({operation}): {e}") from e

    if loader is None:
        raise SpecError(f"Chain entry {index}: unknown operation '{operation}'")

    try:
        custom_cls = loader.load_class(operation)
    except Exception as e:
        raise SpecError(
            f"Chain entry {index}: cannot load operation '{operation}': {e}"
        ) from e
    logger.debug(f"Chain entry {index} resolved custom operation {operation}")
    return instantiate_transform(custom_cls, spec)
