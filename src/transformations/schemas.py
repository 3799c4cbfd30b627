"""Transformation request, response and template schemas.

Requests carry the specification and input as JSON text, exactly as an
editor sends them. Templates are named, saved specifications stored as
parsed JSON.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

# Transform names accepted by the facade
TRANSFORM_DEFAULT = "jolt-transform-default"
TRANSFORM_SHIFT = "jolt-transform-shift"
TRANSFORM_REMOVE = "jolt-transform-remove"
TRANSFORM_CARDINALITY = "jolt-transform-card"
TRANSFORM_SORT = "jolt-transform-sort"
TRANSFORM_CHAIN = "jolt-transform-chain"
TRANSFORM_CUSTOM = "jolt-transform-custom"

KNOWN_TRANSFORMS = [
    TRANSFORM_CHAIN,
    TRANSFORM_SHIFT,
    TRANSFORM_DEFAULT,
    TRANSFORM_REMOVE,
    TRANSFORM_CARDINALITY,
    TRANSFORM_SORT,
    TRANSFORM_CUSTOM,
]


class TransformSpecificationRequest(BaseModel):
    """A transform to validate or execute."""

    transform: str = Field(
        default=TRANSFORM_CHAIN,
        description="Transform name, e.g. 'jolt-transform-shift'. "
        "Unrecognized names are treated as a chain.",
    )
    specification: Optional[str] = Field(
        default=None,
        description="Specification as JSON text (empty for sort)",
    )
    input: Optional[str] = Field(
        default=None,
        description="Input document as JSON text (execute only)",
    )
    custom_class: Optional[str] = Field(
        default=None,
        description="Class name for jolt-transform-custom, "
        "as 'module.Class' or 'module:Class'",
    )
    modules: Optional[str] = Field(
        default=None,
        description="Comma-separated module path searched for custom "
        "classes. Overrides the server default; every entry must lie "
        "inside the server's configured module path.",
    )


class ValidationResult(BaseModel):
    """Outcome of validating a specification."""

    valid: bool
    message: Optional[str] = None


class TransformTemplate(BaseModel):
    """A named, saved specification."""

    # Identity
    template_key: str = Field(
        ..., description="Unique snake_case identifier"
    )
    template_name: str = Field(
        ..., description="Human-readable display name"
    )
    description: str = Field(
        default="", description="What this transformation does"
    )
    version: int = Field(default=1)

    # Transform definition
    transform: str = Field(
        default=TRANSFORM_CHAIN, description="Transform name"
    )
    specification: Any = Field(
        default=None, description="Specification as parsed JSON"
    )
    custom_class: Optional[str] = Field(
        default=None, description="Class name for custom transforms"
    )
    modules: Optional[str] = Field(
        default=None, description="Module path for custom transforms"
    )

    tags: list[str] = Field(
        default_factory=list, description="Categorization tags"
    )
    status: str = Field(
        default="active", description="active, draft, deprecated"
    )


class TransformTemplateSummary(BaseModel):
    """Lightweight summary for listing endpoints."""

    template_key: str
    template_name: str
    description: str = ""
    transform: str
    tags: list[str] = []
    status: str = "active"


class TemplateExecuteRequest(BaseModel):
    """Input for running a saved template."""

    input: Any = Field(..., description="Input document as parsed JSON")
