"""Shared fixtures: plugin directories and an isolated API client."""

import textwrap
import zipfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

import src.transformations.executor as executor_module
import src.transformations.registry as registry_module
from src.transformations.executor import TransformationExecutor
from src.transformations.registry import TransformationRegistry

PLUGIN_SOURCE = textwrap.dedent(
    '''
    """Custom transforms used by the test suite."""

    from src.jolt import Chainr, SpecDriven, Transform


    class CustomChainTransform(SpecDriven, Transform):
        def __init__(self, spec):
            self.custom_transform = Chainr.from_spec(spec)

        def transform(self, input):
            return self.custom_transform.transform(input)


    class Upcase:
        def transform(self, input):
            return {key.upper(): value for key, value in input.items()}


    NOT_A_CLASS = 42
    '''
)

ZIPPED_SOURCE = textwrap.dedent(
    '''
    class Reverse:
        def transform(self, input):
            return list(reversed(input))
    '''
)


@pytest.fixture
def plugin_dir(tmp_path: Path) -> Path:
    """A module directory holding one plain plugin module."""
    directory = tmp_path / "plugins"
    directory.mkdir()
    (directory / "custom_transform_plugin.py").write_text(PLUGIN_SOURCE)
    return directory


@pytest.fixture
def archive_plugin_dir(tmp_path: Path) -> Path:
    """A module directory whose only plugin lives inside a zip archive."""
    directory = tmp_path / "archives"
    directory.mkdir()
    with zipfile.ZipFile(directory / "extra.zip", "w") as archive:
        archive.writestr("zipped_plugin.py", ZIPPED_SOURCE)
    (directory / "notes.txt").write_text("not a module")
    return directory


@pytest.fixture
def templates_dir(tmp_path: Path) -> Path:
    return tmp_path / "templates"


@pytest.fixture
def client(monkeypatch, tmp_path: Path, templates_dir: Path):
    """API client backed by a fresh registry and an executor whose
    configured module path is the test's tmp directory.
    """
    from src.api.main import app

    monkeypatch.setattr(
        registry_module, "_registry", TransformationRegistry(templates_dir)
    )
    monkeypatch.setattr(
        executor_module,
        "_executor",
        TransformationExecutor(module_path=str(tmp_path)),
    )
    with TestClient(app) as test_client:
        yield test_client
