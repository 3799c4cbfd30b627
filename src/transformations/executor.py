"""Transformation executor: validates and applies transform specifications.

Validation compiles the specification and reports whether that worked.
Execution compiles it, parses the input and runs the transform.

Compiled transforms are kept in an in-memory TTL cache keyed on the
transform name, specification, custom class and module path, so an
editor re-running the same spec against new input skips compilation.
Both the transform cache and the per-module-path loaders are bounded and
drop their least recently used entry when full.

A request may name its own module path only when every entry lies inside
the server's configured module path.
"""

import hashlib
import json
import logging
import time
from pathlib import Path
from typing import Any, Optional

from src import config
from src.jolt import SpecError, Transform
from src.jolt.json_utils import json_to_object
from src.modules.loader import ModuleLoader, get_custom_module_loader
from src.transformations.factory import get_transform
from src.transformations.schemas import (
    TRANSFORM_CARDINALITY,
    TRANSFORM_DEFAULT,
    TRANSFORM_REMOVE,
    TRANSFORM_SHIFT,
    TRANSFORM_SORT,
    TransformSpecificationRequest,
    TransformTemplate,
    ValidationResult,
)

logger = logging.getLogger(__name__)

VALIDATION_FAILED_MESSAGE = (
    "Validation Failed - Please verify the provided specification."
)

# Built-in transforms that never need a module loader
SINGLE_TRANSFORMS = {
    TRANSFORM_DEFAULT,
    TRANSFORM_SHIFT,
    TRANSFORM_REMOVE,
    TRANSFORM_CARDINALITY,
    TRANSFORM_SORT,
}

MAX_LOADERS = 16


class TransformExecutionError(Exception):
    """Raised when a specification cannot be executed against its input."""


class InvalidInputError(TransformExecutionError):
    """Raised when the input document is not valid JSON."""


class _CacheEntry:
    """In-memory cache entry with TTL."""

    __slots__ = ("transform", "created_at", "ttl")

    def __init__(self, transform: Transform, ttl: int):
        self.transform = transform
        self.created_at = time.time()
        self.ttl = ttl

    @property
    def expired(self) -> bool:
        return time.time() - self.created_at > self.ttl


class TransformationExecutor:
    """Validates and executes transform specifications.

    Stateless apart from the compiled-transform cache and module loaders.
    """

    def __init__(
        self,
        module_path: Optional[str] = None,
        cache_ttl: Optional[int] = None,
        cache_max_entries: Optional[int] = None,
    ):
        self.module_path = config.MODULE_PATH if module_path is None else module_path
        self.cache_ttl = config.CACHE_TTL if cache_ttl is None else cache_ttl
        self.cache_max_entries = (
            config.CACHE_MAX_ENTRIES
            if cache_max_entries is None
            else cache_max_entries
        )
        self._cache: dict[str, _CacheEntry] = {}
        self._loaders: dict[str, ModuleLoader] = {}

    # ── Public API ─────────────────────────────────────────

    def validate(self, request: TransformSpecificationRequest) -> ValidationResult:
        """Check that a specification compiles for the requested transform."""
        try:
            spec = json_to_object(request.specification)
            self.get_transform(
                request.transform, spec, request.custom_class, request.modules
            )
        except Exception as e:
            logger.error(f"Validation Failed - {type(e).__name__}: {e}")
            return ValidationResult(valid=False, message=VALIDATION_FAILED_MESSAGE)

        return ValidationResult(valid=True, message=None)

    def execute(self, request: TransformSpecificationRequest) -> Any:
        """Run a specification against the request's input.

        Raises:
            InvalidInputError: if the input is not valid JSON
            TransformExecutionError: if compiling or running the transform fails
        """
        try:
            input_data = json_to_object(request.input)
        except json.JSONDecodeError as e:
            raise InvalidInputError(f"Input is not valid JSON: {e}") from e

        try:
            spec = json_to_object(request.specification)
            transform = self.get_transform(
                request.transform, spec, request.custom_class, request.modules
            )
            return transform.transform(input_data)
        except Exception as e:
            logger.error(
                f"Execute Specification Failed - {type(e).__name__}: {e}"
            )
            raise TransformExecutionError(str(e)) from e

    def execute_template(self, template: TransformTemplate, input_data: Any) -> Any:
        """Run a saved template against already-parsed input."""
        try:
            transform = self.get_transform(
                template.transform,
                template.specification,
                template.custom_class,
                template.modules,
            )
            return transform.transform(input_data)
        except Exception as e:
            logger.error(
                f"Template '{template.template_key}' failed - "
                f"{type(e).__name__}: {e}"
            )
            raise TransformExecutionError(str(e)) from e

    def get_transform(
        self,
        transform: str,
        spec: Any,
        custom_class: Optional[str] = None,
        modules: Optional[str] = None,
    ) -> Transform:
        """Compile (or fetch from cache) a transform.

        Raises:
            SpecError: if the spec does not compile or the module path is
                outside the configured one
            ModulePathError: if the module path names a missing location
            ClassNotFoundError: if a custom class cannot be resolved
        """
        cache_key = self._compute_cache_key(transform, spec, custom_class, modules)
        cached = self._get_cached(cache_key)
        if cached is not None:
            return cached

        loader = None
        if transform not in SINGLE_TRANSFORMS:
            loader = self.get_loader(modules)
        compiled = get_transform(transform, spec, custom_class, loader)
        self._set_cached(cache_key, compiled)
        return compiled

    def get_loader(self, modules: Optional[str] = None) -> ModuleLoader:
        """Get the module loader for a module path (server default if None)."""
        if modules is None:
            module_path = self.module_path
        else:
            self._check_module_path(modules)
            module_path = modules

        loader = self._loaders.pop(module_path, None)
        if loader is None:
            loader = get_custom_module_loader(module_path or None)
            while len(self._loaders) >= MAX_LOADERS:
                del self._loaders[next(iter(self._loaders))]
        self._loaders[module_path] = loader
        return loader

    def clear_cache(self) -> None:
        """Drop compiled transforms and module loaders."""
        self._cache.clear()
        self._loaders.clear()

    # ── Helpers ────────────────────────────────────────────

    def _compute_cache_key(
        self,
        transform: str,
        spec: Any,
        custom_class: Optional[str],
        modules: Optional[str],
    ) -> str:
        """Compute a cache key from input parameters."""
        # key order matters to wildcard precedence, so it is kept
        spec_str = json.dumps(spec, default=str)
        key_parts = f"{transform}:{spec_str}:{custom_class}:{modules}"
        return hashlib.md5(key_parts.encode()).hexdigest()

    def _check_module_path(self, modules: str) -> None:
        """Reject module paths that leave the configured module path."""
        roots = [
            Path(p.strip()).resolve()
            for p in self.module_path.split(",")
            if p.strip()
        ]
        for entry in modules.split(","):
            candidate = Path(entry.strip()).resolve()
            if not any(
                candidate == root or root in candidate.parents for root in roots
            ):
                raise SpecError(
                    f"Module path '{entry.strip()}' is outside the configured "
                    f"module path"
                )

    def _get_cached(self, cache_key: str) -> Optional[Transform]:
        """Get cached transform if not expired."""
        entry = self._cache.pop(cache_key, None)
        if entry and not entry.expired:
            # re-insert to mark as most recently used
            self._cache[cache_key] = entry
            return entry.transform
        return None

    def _set_cached(self, cache_key: str, transform: Transform) -> None:
        """Cache a compiled transform."""
        # Evict expired entries once the cache grows past 100
        if len(self._cache) > 100:
            expired_keys = [
                k for k, v in self._cache.items() if v.expired
            ]
            for k in expired_keys:
                del self._cache[k]

        # Then the least recently used ones until there is room
        while self._cache and len(self._cache) >= self.cache_max_entries:
            del self._cache[next(iter(self._cache))]

        self._cache[cache_key] = _CacheEntry(transform, self.cache_ttl)


# Global executor instance
_executor: Optional[TransformationExecutor] = None


def get_transformation_executor() -> TransformationExecutor:
    """Get the global transformation executor instance."""
    global _executor
    if _executor is None:
        _executor = TransformationExecutor()
    return _executor
