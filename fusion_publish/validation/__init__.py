from __future__ import annotations

from .credentials import detect_azure_resource_id, resolve_auth, validate_token_format
from .environment import resolve_environment

__all__ = [
    "detect_azure_resource_id",
    "resolve_auth",
    "resolve_environment",
    "validate_token_format",
]
