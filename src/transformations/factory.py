"""Maps transform names to compiled transforms."""

from typing import Any, Optional

from src.jolt import (
    CardinalityTransform,
    Chainr,
    Defaultr,
    Removr,
    Shiftr,
    SpecError,
    Sortr,
    Transform,
)
from src.jolt.base import instantiate_transform
from src.modules.loader import ModuleLoader
from src.transformations.schemas import (
    TRANSFORM_CARDINALITY,
    TRANSFORM_CUSTOM,
    TRANSFORM_DEFAULT,
    TRANSFORM_REMOVE,
    TRANSFORM_SHIFT,
    TRANSFORM_SORT,
)


def get_transform(
    transform: str,
    spec: Any,
    custom_class: Optional[str] = None,
    loader: Optional[ModuleLoader] = None,
) -> Transform:
    """Compile ``spec`` into the transform named by ``transform``.

    Any name that is not recognized builds a chain, so a chain spec works
    regardless of the name it is submitted under.

    Raises:
        SpecError: if the spec does not compile
        ClassNotFoundError: if a custom class cannot be resolved
    """
    if transform == TRANSFORM_DEFAULT:
        return Defaultr(spec)
    elif transform == TRANSFORM_SHIFT:
        return Shiftr(spec)
    elif transform == TRANSFORM_REMOVE:
        return Removr(spec)
    elif transform == TRANSFORM_CARDINALITY:
        return CardinalityTransform(spec)
    elif transform == TRANSFORM_SORT:
        return Sortr()
    elif transform == TRANSFORM_CUSTOM:
        if not custom_class:
            raise SpecError("jolt-transform-custom requires custom_class")
        if loader is None:
            raise SpecError("jolt-transform-custom requires a module loader")
        return instantiate_transform(loader.load_class(custom_class), spec)
    else:
        return Chainr.from_spec(spec, loader=loader)
