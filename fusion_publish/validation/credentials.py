"""Authentication method detection for the publish action.

Two ways to authenticate against the Fusion app service are supported:

1. **Token**: a pre-acquired Fusion bearer token (``fusion-token``).
2. **Service Principal**: Azure AD identifiers (``azure-client-id``,
   ``azure-tenant-id``, ``azure-resource-id``) exchanged for a token later in
   the workflow.

:func:`resolve_auth` picks the method from an ordered rule table. The first
matching rule wins, so the table order is the precedence order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from ..config import PublishConfig
from ..infra.models import AuthDecision, CredentialInput, require_str


TOKEN_PATTERN = re.compile(r"BEARER [A-Za-z0-9._-]+")

REASON_INCOMPLETE_AZURE = (
    "incomplete Azure credential set: all three of client id, tenant id, resource id required together "
    "('azure-client-id', 'azure-tenant-id', 'azure-resource-id')."
)
REASON_NO_CREDENTIALS = (
    "no credentials supplied: provide either a token ('fusion-token') or a complete Azure credential set "
    "('azure-client-id', 'azure-tenant-id', 'azure-resource-id')."
)
REASON_EMPTY_TOKEN = "Input 'fusion-token' must be a non-empty string."
REASON_TOKEN_FORMAT = (
    "Input 'fusion-token' is not in the correct format. "
    "It should start with 'BEARER ' followed by valid token characters (A-Z, a-z, 0-9, '.', '_', '-')."
)
NOTE_TOKEN_IGNORED = "Both token and Azure credentials provided. Using Service Principal authentication."

DEFAULT_SCOPE_SUFFIX = "/.default"


@dataclass(frozen=True)
class CredentialPresence:
    """Which credential fields are present after trimming."""

    token: bool
    client_id: bool
    tenant_id: bool
    resource_id: bool

    @property
    def azure_count(self) -> int:
        return sum((self.client_id, self.tenant_id, self.resource_id))


@dataclass(frozen=True)
class AuthRule:
    name: str
    applies: Callable[[CredentialPresence], bool]
    decision: AuthDecision


AUTH_RULES: Tuple[AuthRule, ...] = (
    AuthRule(
        name="service_principal_over_token",
        applies=lambda p: p.token and p.azure_count == 3,
        decision=AuthDecision(method="service-principal", valid=True, note=NOTE_TOKEN_IGNORED),
    ),
    AuthRule(
        name="token_only",
        applies=lambda p: p.token and p.azure_count == 0,
        decision=AuthDecision(method="token", valid=True),
    ),
    AuthRule(
        name="service_principal",
        applies=lambda p: p.azure_count == 3,
        decision=AuthDecision(method="service-principal", valid=True),
    ),
    AuthRule(
        name="incomplete_azure",
        applies=lambda p: 0 < p.azure_count < 3,
        decision=AuthDecision(method=None, valid=False, error_reason=REASON_INCOMPLETE_AZURE),
    ),
    AuthRule(
        name="no_credentials",
        applies=lambda p: True,
        decision=AuthDecision(method=None, valid=False, error_reason=REASON_NO_CREDENTIALS),
    ),
)


def _trimmed(credentials: CredentialInput) -> CredentialInput:
    return CredentialInput(
        fusion_token=require_str(credentials.fusion_token, "fusion_token").strip(),
        azure_client_id=require_str(credentials.azure_client_id, "azure_client_id").strip(),
        azure_tenant_id=require_str(credentials.azure_tenant_id, "azure_tenant_id").strip(),
        azure_resource_id=require_str(credentials.azure_resource_id, "azure_resource_id").strip(),
    )


def credential_presence(credentials: CredentialInput) -> CredentialPresence:
    c = _trimmed(credentials)
    return CredentialPresence(
        token=bool(c.fusion_token),
        client_id=bool(c.azure_client_id),
        tenant_id=bool(c.azure_tenant_id),
        resource_id=bool(c.azure_resource_id),
    )


def match_auth_rule(presence: CredentialPresence) -> AuthRule:
    for rule in AUTH_RULES:
        if rule.applies(presence):
            return rule
    # The last rule always applies.
    raise AssertionError("auth rule table is not exhaustive")


def validate_token_format(token: str) -> Tuple[bool, Optional[str]]:
    """Check a Fusion token's format.

    The token must be ``BEARER `` (upper case, one space) followed by one or more
    of ``A-Z a-z 0-9 . _ -``. Returns ``(True, None)`` or ``(False, reason)``.
    """
    token = require_str(token, "token")
    if not token.strip():
        return False, REASON_EMPTY_TOKEN
    if not TOKEN_PATTERN.fullmatch(token):
        return False, REASON_TOKEN_FORMAT
    return True, None


def resolve_auth(credentials: CredentialInput) -> AuthDecision:
    """Detect the authentication method and validate the supplied credentials.

    Precedence (first match wins):
      1) token and complete Azure set: Service Principal, token ignored
      2) token and no Azure field: token
      3) complete Azure set: Service Principal
      4) one or two Azure fields: invalid
      5) nothing: invalid

    A selected token is then format checked. A token that lost to a complete
    Azure set is never format checked.

    Raises:
        TypeError: if a field is not a str (None included).
    """
    trimmed = _trimmed(credentials)
    rule = match_auth_rule(credential_presence(trimmed))
    decision = rule.decision

    if decision.method == "token":
        ok, reason = validate_token_format(trimmed.fusion_token)
        if not ok:
            return AuthDecision(method="token", valid=False, error_reason=reason)

    return decision


def detect_azure_resource_id(
    environment: str,
    resource_id: str,
    client_id: str,
    config: PublishConfig,
) -> Tuple[str, Optional[str]]:
    """Resolve the Azure resource id to use for Service Principal authentication.

    - No client id: the supplied value is returned unchanged.
    - A supplied resource id wins, trimmed and without a trailing "/.default" scope.
    - Otherwise, when an environment is given, default by its tier (prod/nonprod).
      Unknown environments fall back to the nonprod id with a warning.

    Returns:
        (resource_id, warning). warning is None unless an unknown environment
        forced the fallback.
    """
    if not client_id.strip():
        return resource_id, None

    supplied = resource_id.strip()
    if supplied:
        if supplied.endswith(DEFAULT_SCOPE_SUFFIX):
            supplied = supplied[: -len(DEFAULT_SCOPE_SUFFIX)]
        return supplied.strip(), None

    env = environment.strip()
    if not env:
        return "", None

    detected = config.resource_id_for(env.lower())
    if detected is not None:
        return detected, None

    warning = f"Unrecognized environment '{env}'. Defaulting to non-production Azure resource ID."
    return config.azure_resource_ids["nonprod"], warning
