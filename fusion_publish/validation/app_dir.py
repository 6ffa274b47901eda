from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..infra.errors import NotFoundError, ValidationFailure
from ..infra.models import FusionApp


FUSION_DEP_PREFIX = "@equinor/fusion"
FUSION_CLI_DEP = "@equinor/fusion-framework-cli"
FUSION_REACT_APP_DEP = "@equinor/fusion-framework-react-app"
APP_SCRIPT_MARKERS = ("fusion-framework-cli app", "ffc app")
APP_CONFIG_KEYS = ("fusion", "fusionApp")

MANIFEST_FILENAME = "app.manifest.json"


def is_fusion_app(package_json: Dict[str, Any]) -> bool:
    """Decide whether a package.json describes a Fusion application.

    Requires at least one @equinor/fusion* dependency, plus one of: the Fusion
    CLI or React app package, an `app` script using the CLI, or a fusion config key.
    """
    deps: Dict[str, Any] = {}
    deps.update(package_json.get("dependencies") or {})
    deps.update(package_json.get("devDependencies") or {})

    if not any(str(name).startswith(FUSION_DEP_PREFIX) for name in deps):
        return False

    if deps.get(FUSION_CLI_DEP) or deps.get(FUSION_REACT_APP_DEP):
        return True

    scripts = package_json.get("scripts") or {}
    if isinstance(scripts, dict):
        for cmd in scripts.values():
            if any(marker in str(cmd or "") for marker in APP_SCRIPT_MARKERS):
                return True

    return any(package_json.get(k) for k in APP_CONFIG_KEYS)


def find_fusion_app(working_dir: Path) -> Tuple[Optional[FusionApp], List[str]]:
    """Look for a Fusion app in working_dir.

    Returns:
        (app, warnings). app is None when no package.json is present, it does
        not parse, or it does not describe a Fusion app.
    """
    warnings: List[str] = []
    pkg_path = Path(working_dir) / "package.json"
    if not pkg_path.is_file():
        return None, warnings

    try:
        pkg = json.loads(pkg_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        warnings.append(f"Could not parse {pkg_path}: {e}")
        return None, warnings

    if not isinstance(pkg, dict) or not is_fusion_app(pkg):
        return None, warnings

    app = FusionApp(
        name=str(pkg.get("name") or "unknown"),
        path=str(working_dir),
        version=str(pkg.get("version") or ""),
    )
    return app, warnings


def _require_json_file(path: Path, label: str) -> None:
    if not path.is_file():
        raise NotFoundError(f"{label} file not found: {path}")
    try:
        json.loads(path.read_text(encoding="utf-8"))
    except ValueError as e:
        raise ValidationFailure(f"{label} file is not valid JSON: {e}") from e


def validate_config_and_manifest(working_dir: Path, config_path: str = "") -> List[str]:
    """Check that app.manifest.json and the optional config file are valid JSON.

    Returns:
        Human-readable lines describing what was checked.
    """
    base = Path(working_dir)
    checked: List[str] = []

    manifest = base / MANIFEST_FILENAME
    _require_json_file(manifest, "Manifest")
    checked.append(f"Manifest file is valid JSON: {manifest}")

    if str(config_path or "").strip():
        cfg = base / str(config_path).strip()
        _require_json_file(cfg, "Config")
        checked.append(f"Config file is valid JSON: {cfg}")
    else:
        checked.append("No config file provided (optional)")

    return checked
