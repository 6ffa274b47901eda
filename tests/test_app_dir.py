from __future__ import annotations

import json
from pathlib import Path

import pytest

from _testutil import ensure_repo_on_path

ensure_repo_on_path()

from fusion_publish.infra.errors import NotFoundError, ValidationFailure  # noqa: E402
from fusion_publish.validation.app_dir import (  # noqa: E402
    find_fusion_app,
    is_fusion_app,
    validate_config_and_manifest,
)


def test_is_fusion_app_requires_fusion_dependency() -> None:
    assert not is_fusion_app({"dependencies": {"react": "^18"}, "fusion": {"x": 1}})
    assert not is_fusion_app({})


def test_is_fusion_app_strong_indicators() -> None:
    assert is_fusion_app({"devDependencies": {"@equinor/fusion-framework-cli": "^10"}})
    assert is_fusion_app({"dependencies": {"@equinor/fusion-framework-react-app": "^5"}})


def test_is_fusion_app_weak_indicators() -> None:
    base = {"dependencies": {"@equinor/fusion-react-components": "^1"}}
    assert not is_fusion_app(base)
    assert is_fusion_app({**base, "scripts": {"build": "ffc app build"}})
    assert is_fusion_app({**base, "scripts": {"dev": "fusion-framework-cli app dev"}})
    assert is_fusion_app({**base, "fusionApp": {"key": "x"}})


def test_find_fusion_app(tmp_path: Path) -> None:
    assert find_fusion_app(tmp_path) == (None, [])

    (tmp_path / "package.json").write_text(
        json.dumps({"name": "demo", "version": "2.0.0", "devDependencies": {"@equinor/fusion-framework-cli": "^10"}}),
        encoding="utf-8",
    )
    app, warnings = find_fusion_app(tmp_path)
    assert warnings == []
    assert app is not None
    assert (app.name, app.version, app.path) == ("demo", "2.0.0", str(tmp_path))


def test_find_fusion_app_unparsable(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text("{", encoding="utf-8")
    app, warnings = find_fusion_app(tmp_path)
    assert app is None
    assert len(warnings) == 1 and "Could not parse" in warnings[0]


def test_validate_config_and_manifest(tmp_path: Path) -> None:
    with pytest.raises(NotFoundError):
        validate_config_and_manifest(tmp_path)

    (tmp_path / "app.manifest.json").write_text("{oops", encoding="utf-8")
    with pytest.raises(ValidationFailure) as exc:
        validate_config_and_manifest(tmp_path)
    assert "Manifest file is not valid JSON" in exc.value.reason

    (tmp_path / "app.manifest.json").write_text('{"appKey": "demo"}', encoding="utf-8")
    lines = validate_config_and_manifest(tmp_path)
    assert lines[-1] == "No config file provided (optional)"

    with pytest.raises(NotFoundError):
        validate_config_and_manifest(tmp_path, "app.config.json")

    (tmp_path / "app.config.json").write_text('{"environment": {}}', encoding="utf-8")
    lines = validate_config_and_manifest(tmp_path, "app.config.json")
    assert lines[-1].startswith("Config file is valid JSON")
