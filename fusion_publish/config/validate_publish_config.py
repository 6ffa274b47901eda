from __future__ import annotations

from typing import Any, Dict

import jsonschema

from ..infra.errors import ValidationFailure
from ..infra.models import ALLOWED_ENVIRONMENTS


TIERS = ("prod", "nonprod")


def _environment_schema() -> Dict[str, Any]:
    return {
        "type": "object",
        "required": ["base_url", "tier"],
        "properties": {
            "base_url": {"type": "string", "pattern": "^https?://[^/?#]+/?$"},
            "tier": {"type": "string", "enum": list(TIERS)},
        },
        "additionalProperties": False,
    }


def publish_config_schema() -> Dict[str, Any]:
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "type": "object",
        "required": ["fallback_environment", "environments", "azure_resource_ids", "comment_marker"],
        "properties": {
            "fallback_environment": {"type": "string", "enum": list(ALLOWED_ENVIRONMENTS)},
            "environments": {
                "type": "object",
                "required": list(ALLOWED_ENVIRONMENTS),
                "properties": {k: _environment_schema() for k in ALLOWED_ENVIRONMENTS},
                "additionalProperties": False,
            },
            "azure_resource_ids": {
                "type": "object",
                "required": list(TIERS),
                "properties": {k: {"type": "string", "minLength": 1} for k in TIERS},
                "additionalProperties": False,
            },
            "comment_marker": {"type": "string", "minLength": 1},
        },
        "additionalProperties": False,
    }


def validate_publish_config(data: Dict[str, Any]) -> None:
    """Validate publish_config.yml.

    Raises:
        ValidationFailure: if the document does not match the schema. The message
        names the failing location so a broken override file is easy to fix.
    """
    try:
        jsonschema.validate(instance=data, schema=publish_config_schema())
    except jsonschema.ValidationError as e:
        where = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise ValidationFailure(f"publish config schema validation failed at {where}: {e.message}") from e
