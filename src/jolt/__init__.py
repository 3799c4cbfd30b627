"""Declarative JSON-to-JSON transforms.

Each transform is built from a spec object at construction time (invalid
specs raise SpecError there) and applied with ``transform(input)``.
"""

from src.jolt.base import SpecDriven, Transform
from src.jolt.cardinality import CardinalityTransform
from src.jolt.chainr import Chainr
from src.jolt.defaultr import Defaultr
from src.jolt.errors import SpecError, TransformError
from src.jolt.removr import Removr
from src.jolt.shiftr import Shiftr
from src.jolt.sortr import Sortr

__all__ = [
    "CardinalityTransform",
    "Chainr",
    "Defaultr",
    "Removr",
    "Shiftr",
    "Sortr",
    "SpecDriven",
    "SpecError",
    "Transform",
    "TransformError",
]
