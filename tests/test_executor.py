"""Tests for the transformation executor."""

import json

import pytest

import src.transformations.executor as executor_module
from src.jolt import SpecError
from src.transformations.executor import (
    VALIDATION_FAILED_MESSAGE,
    InvalidInputError,
    TransformationExecutor,
    TransformExecutionError,
)
from src.transformations.schemas import (
    TRANSFORM_CHAIN,
    TRANSFORM_CUSTOM,
    TRANSFORM_DEFAULT,
    TRANSFORM_SHIFT,
    TRANSFORM_SORT,
    TransformSpecificationRequest,
)


@pytest.fixture
def executor(tmp_path) -> TransformationExecutor:
    return TransformationExecutor(module_path=str(tmp_path))


def _request(transform, spec=None, input=None, **kwargs):
    return TransformSpecificationRequest(
        transform=transform,
        specification=json.dumps(spec) if spec is not None else None,
        input=json.dumps(input) if input is not None else None,
        **kwargs,
    )


def test_validate_valid_spec(executor):
    result = executor.validate(_request(TRANSFORM_SHIFT, {"a": "b"}))

    assert result.valid is True
    assert result.message is None


def test_validate_invalid_spec(executor):
    result = executor.validate(_request(TRANSFORM_SHIFT, ["not", "an", "object"]))

    assert result.valid is False
    assert result.message == VALIDATION_FAILED_MESSAGE


def test_validate_malformed_json(executor):
    request = TransformSpecificationRequest(
        transform=TRANSFORM_SHIFT, specification="{not json"
    )

    assert executor.validate(request).valid is False


def test_sort_needs_no_spec(executor):
    assert executor.validate(_request(TRANSFORM_SORT)).valid is True
    assert executor.execute(_request(TRANSFORM_SORT, input={"b": 1, "a": 2})) == {
        "a": 2,
        "b": 1,
    }


def test_execute_shift(executor):
    result = executor.execute(_request(TRANSFORM_SHIFT, {"a": "b"}, {"a": 1}))

    assert result == {"b": 1}


def test_unknown_transform_name_runs_as_chain(executor):
    spec = [{"operation": "default", "spec": {"x": 1}}]

    result = executor.execute(_request("something-else", spec, {}))

    assert result == {"x": 1}


def test_execute_invalid_input(executor):
    request = TransformSpecificationRequest(
        transform=TRANSFORM_SHIFT, specification='{"a": "b"}', input="{oops"
    )

    with pytest.raises(InvalidInputError):
        executor.execute(request)


def test_execute_invalid_spec(executor):
    with pytest.raises(TransformExecutionError):
        executor.execute(_request(TRANSFORM_DEFAULT, [1, 2], {}))


def test_custom_transform(executor, plugin_dir):
    request = _request(
        TRANSFORM_CUSTOM,
        [{"operation": "shift", "spec": {"a": "b"}}],
        {"a": 1},
        custom_class="custom_transform_plugin.CustomChainTransform",
        modules=str(plugin_dir),
    )

    assert executor.validate(request).valid is True
    assert executor.execute(request) == {"b": 1}


def test_custom_transform_without_class(executor):
    assert executor.validate(_request(TRANSFORM_CUSTOM, [])).valid is False


def test_server_module_path_used_by_default(plugin_dir):
    executor = TransformationExecutor(module_path=str(plugin_dir))
    spec = [{"operation": "custom_transform_plugin.Upcase"}]

    assert executor.execute(_request(TRANSFORM_CHAIN, spec, {"a": 1})) == {"A": 1}


def test_missing_module_path_propagates(executor, tmp_path):
    request = _request(
        TRANSFORM_CUSTOM,
        [],
        {},
        custom_class="custom_transform_plugin.Upcase",
        modules=str(tmp_path / "missing"),
    )

    assert executor.validate(request).valid is False
    with pytest.raises(TransformExecutionError, match="Path specified does not exist"):
        executor.execute(request)


def test_single_transforms_ignore_broken_server_module_path(tmp_path):
    executor = TransformationExecutor(module_path=str(tmp_path / "missing"))

    assert executor.validate(_request(TRANSFORM_SHIFT, {"a": "b"})).valid is True


def test_compiled_transforms_are_cached(executor):
    first = executor.get_transform(TRANSFORM_SHIFT, {"a": "b"})
    second = executor.get_transform(TRANSFORM_SHIFT, {"a": "b"})

    assert first is second


def test_expired_cache_entries_recompiled():
    executor = TransformationExecutor(module_path="", cache_ttl=-1)

    first = executor.get_transform(TRANSFORM_SHIFT, {"a": "b"})
    second = executor.get_transform(TRANSFORM_SHIFT, {"a": "b"})

    assert first is not second


def _marker_plugin(directory):
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "marker_plugin.py").write_text(
        "from pathlib import Path\n"
        "\n"
        f"Path({str(directory / 'ran')!r}).write_text('yes')\n"
        "\n"
        "\n"
        "class Marker:\n"
        "    def transform(self, input):\n"
        "        return input\n"
    )
    return directory


def test_module_path_outside_configured_one_is_rejected(
    executor, tmp_path_factory
):
    elsewhere = _marker_plugin(tmp_path_factory.mktemp("elsewhere"))
    request = _request(
        TRANSFORM_CUSTOM,
        [],
        {},
        custom_class="marker_plugin.Marker",
        modules=str(elsewhere),
    )

    assert executor.validate(request).valid is False
    with pytest.raises(TransformExecutionError, match="outside the configured"):
        executor.execute(request)
    assert not (elsewhere / "ran").exists()


def test_module_path_inside_configured_one_is_accepted(executor, tmp_path):
    inside = _marker_plugin(tmp_path / "nested" / "plugins")
    request = _request(
        TRANSFORM_CUSTOM,
        [],
        {"a": 1},
        custom_class="marker_plugin.Marker",
        modules=str(inside),
    )

    assert executor.execute(request) == {"a": 1}
    assert (inside / "ran").exists()


def test_module_path_escaping_with_dotdot_is_rejected(executor, tmp_path):
    escaped = f"{tmp_path}/../{tmp_path.name}-other"

    with pytest.raises(SpecError):
        executor.get_loader(escaped)


def test_request_module_path_rejected_without_configured_one(plugin_dir):
    executor = TransformationExecutor(module_path="")
    request = _request(
        TRANSFORM_CUSTOM,
        [],
        {},
        custom_class="custom_transform_plugin.Upcase",
        modules=str(plugin_dir),
    )

    assert executor.validate(request).valid is False


def test_cache_keeps_at_most_max_entries():
    executor = TransformationExecutor(module_path="", cache_max_entries=2)

    first = executor.get_transform(TRANSFORM_SHIFT, {"a": "b"})
    executor.get_transform(TRANSFORM_SHIFT, {"c": "d"})
    executor.get_transform(TRANSFORM_SHIFT, {"e": "f"})

    assert len(executor._cache) == 2
    assert executor.get_transform(TRANSFORM_SHIFT, {"a": "b"}) is not first


def test_cache_evicts_least_recently_used():
    executor = TransformationExecutor(module_path="", cache_max_entries=2)

    first = executor.get_transform(TRANSFORM_SHIFT, {"a": "b"})
    second = executor.get_transform(TRANSFORM_SHIFT, {"c": "d"})
    executor.get_transform(TRANSFORM_SHIFT, {"a": "b"})
    executor.get_transform(TRANSFORM_SHIFT, {"e": "f"})

    assert executor.get_transform(TRANSFORM_SHIFT, {"a": "b"}) is first
    assert executor.get_transform(TRANSFORM_SHIFT, {"c": "d"}) is not second


def test_module_loaders_are_bounded(monkeypatch, tmp_path):
    monkeypatch.setattr(executor_module, "MAX_LOADERS", 2)
    executor = TransformationExecutor(module_path=str(tmp_path))
    for name in ("one", "two", "three"):
        (tmp_path / name).mkdir()

    first = executor.get_loader(str(tmp_path / "one"))
    executor.get_loader(str(tmp_path / "two"))
    executor.get_loader(str(tmp_path / "three"))

    assert len(executor._loaders) == 2
    assert executor.get_loader(str(tmp_path / "one")) is not first
