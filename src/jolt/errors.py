"""Transform engine exceptions."""


class SpecError(ValueError):
    """Raised when a transform spec cannot be compiled."""


class TransformError(RuntimeError):
    """Raised when a compiled transform fails on its input."""
