"""Transform template registry: loads saved specifications from disk.

- One file per template in the templates directory (JSON or YAML)
- Lazy loading with _loaded guard
- In-memory dict keyed by template_key
- Global singleton via get_transformation_registry()
- CRUD with file persistence
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from src import config
from .schemas import TransformTemplate, TransformTemplateSummary

logger = logging.getLogger(__name__)

TEMPLATE_SUFFIXES = (".json", ".yaml", ".yml")


def _read_template_file(path: Path) -> Any:
    with open(path, "r") as f:
        if path.suffix == ".json":
            return json.load(f)
        return yaml.safe_load(f)


def _write_template_file(path: Path, data: dict) -> None:
    with open(path, "w") as f:
        if path.suffix == ".json":
            json.dump(data, f, indent=2)
            f.write("\n")
        else:
            yaml.safe_dump(data, f, sort_keys=False)


class TransformationRegistry:
    """Registry of transform templates loaded from JSON or YAML files."""

    def __init__(self, definitions_dir: Optional[Path] = None):
        if definitions_dir is None:
            definitions_dir = config.TEMPLATES_DIR
        self.definitions_dir = definitions_dir
        self._templates: dict[str, TransformTemplate] = {}
        self._file_map: dict[str, Path] = {}
        self._loaded = False

    def load(self) -> None:
        """Load all transform templates from JSON and YAML files."""
        if self._loaded:
            return

        if not self.definitions_dir.exists():
            logger.warning(
                f"Transform templates directory not found: "
                f"{self.definitions_dir}"
            )
            self._loaded = True
            return

        template_files = sorted(
            p for p in self.definitions_dir.iterdir()
            if p.suffix in TEMPLATE_SUFFIXES
        )
        for template_file in template_files:
            try:
                data = _read_template_file(template_file)
                template = TransformTemplate.model_validate(data)
                self._templates[template.template_key] = template
                self._file_map[template.template_key] = template_file
                logger.debug(f"Loaded transform template: {template.template_key}")
            except Exception as e:
                logger.error(
                    f"Failed to load transform template from {template_file}: {e}"
                )

        self._loaded = True
        logger.info(f"Loaded {len(self._templates)} transform templates")

    def get(self, template_key: str) -> Optional[TransformTemplate]:
        """Get a template by key."""
        self.load()
        return self._templates.get(template_key)

    def list_all(self) -> list[TransformTemplate]:
        self.load()
        return list(self._templates.values())

    def list_summaries(
        self,
        transform: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> list[TransformTemplateSummary]:
        """List template summaries with optional filters."""
        self.load()
        templates = self._templates.values()

        if transform:
            templates = [t for t in templates if t.transform == transform]
        if tag:
            templates = [t for t in templates if tag in t.tags]

        return [
            TransformTemplateSummary(
                template_key=t.template_key,
                template_name=t.template_name,
                description=t.description,
                transform=t.transform,
                tags=t.tags,
                status=t.status,
            )
            for t in sorted(templates, key=lambda t: t.template_key)
        ]

    def list_keys(self) -> list[str]:
        self.load()
        return sorted(self._templates.keys())

    def count(self) -> int:
        self.load()
        return len(self._templates)

    def save(self, template_key: str, template: TransformTemplate) -> bool:
        """Save a template, keeping the format of an existing file."""
        self.load()

        template_file = self._file_map.get(
            template_key, self.definitions_dir / f"{template_key}.json"
        )

        try:
            self.definitions_dir.mkdir(parents=True, exist_ok=True)

            _write_template_file(template_file, template.model_dump())

            self._templates[template_key] = template
            self._file_map[template_key] = template_file

            logger.info(f"Saved transform template: {template_key} -> {template_file}")
            return True

        except Exception as e:
            logger.error(f"Failed to save transform template {template_key}: {e}")
            return False

    def delete(self, template_key: str) -> bool:
        """Delete a template."""
        self.load()

        if template_key not in self._templates:
            return False

        template_file = self._file_map.get(
            template_key, self.definitions_dir / f"{template_key}.json"
        )

        try:
            if template_file.exists():
                template_file.unlink()

            del self._templates[template_key]
            self._file_map.pop(template_key, None)

            logger.info(f"Deleted transform template: {template_key}")
            return True

        except Exception as e:
            logger.error(f"Failed to delete transform template {template_key}: {e}")
            return False

    def reload(self) -> None:
        """Force reload all definitions."""
        self._loaded = False
        self._templates.clear()
        self._file_map.clear()
        self.load()


# Global registry instance
_registry: Optional[TransformationRegistry] = None


def get_transformation_registry() -> TransformationRegistry:
    """Get the global transformation registry instance."""
    global _registry
    if _registry is None:
        _registry = TransformationRegistry()
        _registry.load()
    return _registry
