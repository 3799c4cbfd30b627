"""Meta/system API routes.

Provides a template version fingerprint so editors can tell when saved
templates changed under them.
"""

import hashlib
import logging
import time

from fastapi import APIRouter

from src import __version__
from src.transformations.registry import get_transformation_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/meta", tags=["meta"])

# Track when templates were last modified in-memory
_last_modified_at: float = time.time()


def mark_definitions_modified():
    """Call this whenever templates are modified to update the version."""
    global _last_modified_at
    _last_modified_at = time.time()


def _compute_definitions_hash() -> str:
    """Fingerprint the template keys, versions and modification time."""
    registry = get_transformation_registry()

    fingerprint_parts = [
        f"templates:{registry.count()}",
        f"modified:{_last_modified_at}",
    ]
    for template in sorted(registry.list_all(), key=lambda t: t.template_key):
        fingerprint_parts.append(
            f"template:{template.template_key}:{template.version}:{template.transform}"
        )

    fingerprint = "|".join(fingerprint_parts)
    return hashlib.sha256(fingerprint.encode()).hexdigest()[:16]


@router.get("/version")
async def get_version() -> dict:
    """Get service and template version info.

    The version_hash changes whenever templates are created, updated,
    deleted or reloaded through the API.
    """
    registry = get_transformation_registry()

    return {
        "service_version": __version__,
        "version_hash": _compute_definitions_hash(),
        "last_modified": _last_modified_at,
        "template_count": registry.count(),
    }
