"""Custom module loader for user-supplied transform classes.

A module path is a comma-separated list of files or directories. Each
existing entry becomes a search location; directories also contribute
every importable archive they contain (``.zip``, ``.whl``, ``.egg``,
``.pyz``). Classes are resolved against those locations without touching
``sys.path``, so plugin code never leaks into the rest of the process.

Usage:
    loader = get_custom_module_loader("/opt/transforms,/opt/more")
    cls = loader.load_class("upcase.UpcaseTransform")
"""

import importlib
import importlib.abc
import importlib.machinery
import importlib.util
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from types import ModuleType
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIXES = (".zip", ".whl", ".egg", ".pyz")


class ModulePathError(OSError):
    """Raised when a configured module path does not exist."""


class ClassNotFoundError(ImportError):
    """Raised when a class name cannot be resolved. The message is the name."""


def get_search_paths(module_paths: Optional[list[str]]) -> list[Path]:
    """Expand module paths into search locations.

    Raises:
        ModulePathError: if any path does not exist
    """
    search_paths: list[Path] = []
    if not module_paths:
        return search_paths

    for raw in module_paths:
        path = Path(raw.strip())
        if not path.exists():
            raise ModulePathError("Path specified does not exist")

        search_paths.append(path.resolve())
        if path.is_dir():
            archives = sorted(
                p for p in path.iterdir()
                if p.is_file() and p.suffix in ARCHIVE_SUFFIXES
            )
            search_paths.extend(p.resolve() for p in archives)

    return search_paths


def get_custom_module_loader(
    module_path: Optional[str], parent: bool = True
) -> "ModuleLoader":
    """Build a loader from a comma-separated module path (None for none)."""
    modules = module_path.split(",") if module_path else None
    search_paths = get_search_paths(modules)
    logger.debug(f"Custom module search paths: {[str(p) for p in search_paths]}")
    return ModuleLoader(search_paths, parent=parent)


class _SearchPathFinder(importlib.abc.MetaPathFinder):
    """Resolves top-level imports made by plugin code against a loader's
    search paths. Submodules of loader packages are found through the
    package ``__path__`` by the regular path finder.
    """

    def __init__(self, loader: "ModuleLoader"):
        self.loader = loader

    def find_spec(self, fullname, path=None, target=None):
        if path is not None:
            return None
        spec = importlib.machinery.PathFinder.find_spec(
            fullname, [str(p) for p in self.loader.search_paths]
        )
        if spec is not None:
            self.loader._owned.add(fullname)
        return spec


class ModuleLoader:
    """Resolves modules and classes against a private set of search paths.

    With ``parent=True`` the regular import system is consulted first and
    the private search paths second; with ``parent=False`` the search paths
    win. Modules found on the search paths are cached on the loader and
    only appear in ``sys.modules`` while plugin code executes.
    """

    def __init__(self, search_paths: list[Path], parent: bool = True):
        self.search_paths = list(search_paths)
        self.parent = parent
        self._modules: dict[str, ModuleType] = {}
        # top-level names resolved from the search paths
        self._owned: set[str] = set()

    def load_class(self, name: str) -> type:
        """Load a class by ``module.Class`` or ``module:Class``."""
        module_name, _, class_name = (
            name.partition(":") if ":" in name else name.rpartition(".")
        )
        if not module_name or not class_name:
            raise ClassNotFoundError(name)

        try:
            module = self.load_module(module_name)
        except ImportError as e:
            raise ClassNotFoundError(name) from e

        obj = module
        for attr in class_name.split("."):
            obj = getattr(obj, attr, None)
            if obj is None:
                raise ClassNotFoundError(name)
        if not isinstance(obj, type):
            raise ClassNotFoundError(name)
        return obj

    def load_module(self, name: str) -> ModuleType:
        """Load a module, parent first, then from the private search paths."""
        cached = self._modules.get(name)
        if cached is not None:
            return cached

        if self.parent:
            try:
                return importlib.import_module(name)
            except ModuleNotFoundError as e:
                # only fall through when the missing module is the one asked
                # for (or one of its parents), not a dependency of it
                if e.name is None or not (
                    name == e.name or name.startswith(e.name + ".")
                ):
                    raise

        parent_name, _, _ = name.rpartition(".")
        if parent_name:
            package = self.load_module(parent_name)
            locations = getattr(package, "__path__", None)
            if locations is None:
                raise ModuleNotFoundError(
                    f"'{parent_name}' is not a package", name=name
                )
        else:
            locations = [str(p) for p in self.search_paths]

        spec = importlib.machinery.PathFinder.find_spec(name, list(locations))
        if spec is None or spec.loader is None:
            raise ModuleNotFoundError(f"No module named '{name}'", name=name)

        self._owned.add(name.partition(".")[0])
        module = importlib.util.module_from_spec(spec)
        with self._installed(name, module) as imported:
            spec.loader.exec_module(module)
        self._modules.update(imported)
        logger.info(f"Loaded custom module {name} from {spec.origin}")
        return module

    @contextmanager
    def _installed(
        self, name: str, module: ModuleType
    ) -> Iterator[dict[str, ModuleType]]:
        """Expose loader modules to the import system while ``module`` executes.

        The loader's modules are placed in ``sys.modules`` and a finder for
        the search paths is added to ``sys.meta_path``. On exit every module
        that belongs to the loader is taken back out of ``sys.modules`` and
        collected into the yielded dict, including ones the plugin code
        imported itself.
        """
        visible = dict(self._modules)
        visible[name] = module
        previous = {key: sys.modules.get(key) for key in visible}
        before = set(sys.modules)

        finder = _SearchPathFinder(self)
        if self.parent:
            sys.meta_path.append(finder)
        else:
            sys.meta_path.insert(0, finder)
        sys.modules.update(visible)

        imported: dict[str, ModuleType] = {name: module}
        try:
            yield imported
        finally:
            sys.meta_path.remove(finder)
            for key in set(sys.modules) - before:
                if key.partition(".")[0] in self._owned:
                    imported.setdefault(key, sys.modules.pop(key))
            for key, old in previous.items():
                if old is None:
                    sys.modules.pop(key, None)
                else:
                    sys.modules[key] = old
