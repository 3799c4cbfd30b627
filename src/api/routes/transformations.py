"""API routes for transform validation, execution and saved templates.

The validate endpoint always answers 200 with ``{valid, message}`` so an
editor can show the outcome inline. The execute endpoint answers with the
transformed JSON itself, or 500 when the transform cannot be applied.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse

from src.api.routes.meta import mark_definitions_modified
from src.transformations.executor import (
    InvalidInputError,
    TransformExecutionError,
    get_transformation_executor,
)
from src.transformations.registry import get_transformation_registry
from src.transformations.schemas import (
    KNOWN_TRANSFORMS,
    TemplateExecuteRequest,
    TransformSpecificationRequest,
    TransformTemplate,
    TransformTemplateSummary,
    ValidationResult,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transformations", tags=["transformations"])


# ── Helper ───────────────────────────────────────────────


def _get_or_404(template_key: str) -> TransformTemplate:
    """Get a template by key or raise 404."""
    registry = get_transformation_registry()
    template = registry.get(template_key)
    if template is None:
        available = registry.list_keys()
        raise HTTPException(
            status_code=404,
            detail=f"Transform template '{template_key}' not found. "
            f"Available: {available}",
        )
    return template


# ── Validate / execute ───────────────────────────────────


@router.get("/types", response_model=list[str])
async def list_transform_types():
    """List the transform names the service understands."""
    return KNOWN_TRANSFORMS


@router.post("/validate", response_model=ValidationResult)
async def validate_specification(request: TransformSpecificationRequest):
    """Check whether a specification compiles for the requested transform."""
    executor = get_transformation_executor()
    return executor.validate(request)


@router.post("/execute")
async def execute_specification(request: TransformSpecificationRequest):
    """Apply a specification to the request's input and return the result."""
    executor = get_transformation_executor()
    try:
        result = executor.execute(request)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TransformExecutionError:
        raise HTTPException(
            status_code=500, detail="Execute Specification Failed"
        )
    return JSONResponse(content=result)


# ── Templates ────────────────────────────────────────────


@router.get("/templates", response_model=list[TransformTemplateSummary])
async def list_templates(
    transform: Optional[str] = Query(
        None, description="Filter by transform name"
    ),
    tag: Optional[str] = Query(
        None, description="Filter by tag"
    ),
):
    """List all saved templates with optional filters."""
    registry = get_transformation_registry()
    return registry.list_summaries(transform=transform, tag=tag)


@router.post("/templates/reload")
async def reload_templates():
    """Force reload templates from disk."""
    registry = get_transformation_registry()
    registry.reload()
    mark_definitions_modified()
    return {"reloaded": True, "count": registry.count()}


@router.get("/templates/{template_key}", response_model=TransformTemplate)
async def get_template(template_key: str):
    """Get a single template by key."""
    return _get_or_404(template_key)


@router.post("/templates", response_model=TransformTemplate, status_code=201)
async def create_template(template: TransformTemplate):
    """Save a new template. The specification must compile."""
    registry = get_transformation_registry()

    if registry.get(template.template_key) is not None:
        raise HTTPException(
            status_code=409,
            detail=f"Template '{template.template_key}' already exists",
        )

    _check_compiles(template)

    success = registry.save(template.template_key, template)
    if not success:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to save template '{template.template_key}'",
        )

    mark_definitions_modified()
    logger.info(f"Created transform template: {template.template_key}")
    return template


@router.put("/templates/{template_key}", response_model=TransformTemplate)
async def update_template(template_key: str, template: TransformTemplate):
    """Replace an existing template."""
    registry = get_transformation_registry()

    if registry.get(template_key) is None:
        raise HTTPException(
            status_code=404,
            detail=f"Template '{template_key}' not found",
        )

    if template.template_key != template_key:
        raise HTTPException(
            status_code=400,
            detail=f"template_key in body ('{template.template_key}') "
            f"must match URL ('{template_key}')",
        )

    _check_compiles(template)

    success = registry.save(template_key, template)
    if not success:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to save template '{template_key}'",
        )

    mark_definitions_modified()
    logger.info(f"Updated transform template: {template_key}")
    return template


@router.delete("/templates/{template_key}")
async def delete_template(template_key: str):
    """Delete a template."""
    registry = get_transformation_registry()

    success = registry.delete(template_key)
    if not success:
        raise HTTPException(
            status_code=404,
            detail=f"Template '{template_key}' not found",
        )

    mark_definitions_modified()
    logger.info(f"Deleted transform template: {template_key}")
    return {"deleted": template_key}


@router.post("/templates/{template_key}/execute")
async def execute_template(template_key: str, request: TemplateExecuteRequest):
    """Apply a saved template to the given input."""
    template = _get_or_404(template_key)
    executor = get_transformation_executor()
    try:
        result = executor.execute_template(template, request.input)
    except TransformExecutionError:
        raise HTTPException(
            status_code=500,
            detail=f"Template '{template_key}' failed to execute",
        )
    return JSONResponse(content=result)


def _check_compiles(template: TransformTemplate) -> None:
    """Raise 422 when a template's specification does not compile."""
    executor = get_transformation_executor()
    try:
        executor.get_transform(
            template.transform,
            template.specification,
            template.custom_class,
            template.modules,
        )
    except Exception as e:
        logger.warning(
            f"Rejected template {template.template_key}: {type(e).__name__}: {e}"
        )
        raise HTTPException(
            status_code=422,
            detail=f"Specification does not compile: {e}",
        )
