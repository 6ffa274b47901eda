from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional, Tuple

# Canonical deployment environments. Membership is exact and case-sensitive.
ALLOWED_ENVIRONMENTS: Tuple[str, ...] = ("ci", "tr", "fprd", "fqa", "next")

AuthMethod = Literal["token", "service-principal"]

PR_TAG_PREFIX = "pr-"


def is_allowed_environment(value: Any) -> bool:
    return isinstance(value, str) and value in ALLOWED_ENVIRONMENTS


def require_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{field_name} must be a str, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class CredentialInput:
    """Raw credential inputs as supplied to the action.

    Values are untrimmed. A value that is empty after trimming counts as absent.
    """

    fusion_token: str = ""
    azure_client_id: str = ""
    azure_tenant_id: str = ""
    azure_resource_id: str = ""


@dataclass(frozen=True)
class AuthDecision:
    method: Optional[AuthMethod]
    valid: bool
    error_reason: Optional[str] = None

    # Informational message for the caller, e.g. when a token was ignored.
    note: str = ""

    @property
    def is_token(self) -> bool:
        return self.method == "token"

    @property
    def is_service_principal(self) -> bool:
        return self.method == "service-principal"


@dataclass(frozen=True)
class EnvironmentInput:
    env_selector: str = ""
    pull_request_number: str = ""
    explicit_tag: str = ""


@dataclass(frozen=True)
class EnvironmentDecision:
    resolved_env: str
    resolved_tag: str
    valid: bool
    error_reason: Optional[str] = None


@dataclass(frozen=True)
class AppMetadata:
    """Application metadata read from a bundle's metadata.json."""

    name: str
    key: str
    version: str = ""
    description: str = ""
    entry_path: str = ""

    # Full parsed document, including fields not mapped above.
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FusionApp:
    name: str
    path: str
    version: str = ""
