from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from ..infra.errors import ValidationFailure
from ..utils.yamlio import read_yaml
from .validate_publish_config import validate_publish_config


DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "publish_config.yml"
CONFIG_ENV_VAR = "FUSION_PUBLISH_CONFIG"


@dataclass(frozen=True)
class EnvironmentTarget:
    base_url: str
    tier: str


@dataclass(frozen=True)
class PublishConfig:
    fallback_environment: str
    environments: Dict[str, EnvironmentTarget]
    azure_resource_ids: Dict[str, str]
    comment_marker: str

    def target_for(self, env: str) -> EnvironmentTarget:
        """Return the target for env, or the fallback environment's target."""
        target = self.environments.get(env)
        if target is None:
            return self.environments[self.fallback_environment]
        return target

    def base_url_for(self, env: str) -> str:
        return self.target_for(env).base_url

    def resource_id_for(self, env: str) -> Optional[str]:
        """Azure resource id for a known environment, None for unknown ones."""
        target = self.environments.get(env)
        if target is None:
            return None
        return self.azure_resource_ids[target.tier]


def resolve_publish_config_path(cli_path: Optional[str] = None) -> Path:
    """Resolve the publish config YAML path.

    Precedence:
      1) CLI flag --config
      2) FUSION_PUBLISH_CONFIG
      3) publish_config.yml shipped with the package
    """
    if cli_path and str(cli_path).strip():
        return Path(str(cli_path).strip()).expanduser().resolve()

    env_path = str(os.environ.get(CONFIG_ENV_VAR, "") or "").strip()
    if env_path:
        return Path(env_path).expanduser().resolve()

    return DEFAULT_CONFIG_PATH


def _from_dict(data: Dict[str, Any]) -> PublishConfig:
    envs = {
        name: EnvironmentTarget(base_url=str(spec["base_url"]).rstrip("/"), tier=str(spec["tier"]))
        for name, spec in data["environments"].items()
    }
    return PublishConfig(
        fallback_environment=str(data["fallback_environment"]),
        environments=envs,
        azure_resource_ids={k: str(v) for k, v in data["azure_resource_ids"].items()},
        comment_marker=str(data["comment_marker"]),
    )


def load_publish_config(cli_path: Optional[str] = None) -> PublishConfig:
    """Load and validate the publish config.

    Raises:
        ValidationFailure: if the file is missing, unparsable or invalid.
    """
    path = resolve_publish_config_path(cli_path)
    if not path.exists():
        raise ValidationFailure(f"publish config not found: {path}")

    try:
        data = read_yaml(path)
    except ValueError as e:
        raise ValidationFailure(str(e)) from e

    validate_publish_config(data)
    return _from_dict(data)
