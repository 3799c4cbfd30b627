"""Base classes for transforms."""

from abc import ABC, abstractmethod
from typing import Any

from src.jolt.errors import SpecError


class Transform(ABC):
    """A compiled transform that maps one JSON document to another."""

    @abstractmethod
    def transform(self, input: Any) -> Any:
        """Apply the transform. Must not mutate ``input``."""


class SpecDriven:
    """Marker for transforms whose constructor takes the spec object.

    Custom transform classes that subclass this are constructed as
    ``cls(spec)``; all others are constructed with no arguments.
    """


def instantiate_transform(cls: Any, spec: Any) -> Transform:
    """Construct a custom transform class the way built-in ones are.

    SpecDriven classes receive the spec; other classes take no arguments.
    The result must expose a callable ``transform``.
    """
    if not isinstance(cls, type):
        raise SpecError(f"{cls!r} is not a class")
    try:
        if issubclass(cls, SpecDriven):
            instance = cls(spec)
        else:
            instance = cls()
    except SpecError:
        raise
    except Exception as e:
        raise SpecError(f"Failed to construct {cls.__name__}: {e}") from e

    if not callable(getattr(instance, "transform", None)):
        raise SpecError(f"{cls.__name__} does not implement transform()")
    return instance
