from __future__ import annotations

from .load_publish_config import PublishConfig, load_publish_config, resolve_publish_config_path

__all__ = ["PublishConfig", "load_publish_config", "resolve_publish_config_path"]
