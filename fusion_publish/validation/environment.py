from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from ..infra.models import (
    ALLOWED_ENVIRONMENTS,
    PR_TAG_PREFIX,
    EnvironmentDecision,
    EnvironmentInput,
    is_allowed_environment,
    require_str,
)


REASON_ENV_REQUIRED = "environment is required: set input 'env'."
REASON_ENV_NOT_ALLOWED = f"Input 'env' must be one of the following values: {', '.join(ALLOWED_ENVIRONMENTS)}."
REASON_TAG_REQUIRED = "tag is required: set input 'tag'."

PREVIEW_ENVIRONMENT = "ci"


@dataclass(frozen=True)
class EnvironmentRule:
    name: str
    # Returns a decision when the rule settles the outcome, None to fall through.
    decide: Callable[[EnvironmentInput], Optional[EnvironmentDecision]]


def _invalid(reason: str) -> EnvironmentDecision:
    return EnvironmentDecision(resolved_env="", resolved_tag="", valid=False, error_reason=reason)


def _pull_request_preview(data: EnvironmentInput) -> Optional[EnvironmentDecision]:
    pr = data.pull_request_number.strip()
    if not pr:
        return None
    return EnvironmentDecision(resolved_env=PREVIEW_ENVIRONMENT, resolved_tag=f"{PR_TAG_PREFIX}{pr}", valid=True)


def _env_required(data: EnvironmentInput) -> Optional[EnvironmentDecision]:
    if data.env_selector.strip():
        return None
    return _invalid(REASON_ENV_REQUIRED)


def _env_allowed(data: EnvironmentInput) -> Optional[EnvironmentDecision]:
    if is_allowed_environment(data.env_selector):
        return None
    return _invalid(REASON_ENV_NOT_ALLOWED)


def _tag_required(data: EnvironmentInput) -> Optional[EnvironmentDecision]:
    if data.explicit_tag.strip():
        return None
    return _invalid(REASON_TAG_REQUIRED)


def _explicit(data: EnvironmentInput) -> Optional[EnvironmentDecision]:
    return EnvironmentDecision(resolved_env=data.env_selector, resolved_tag=data.explicit_tag, valid=True)


# Order is precedence. A PR number overrides env and tag without validating them.
ENVIRONMENT_RULES: Tuple[EnvironmentRule, ...] = (
    EnvironmentRule("pull_request_preview", _pull_request_preview),
    EnvironmentRule("env_required", _env_required),
    EnvironmentRule("env_allowed", _env_allowed),
    EnvironmentRule("tag_required", _tag_required),
    EnvironmentRule("explicit", _explicit),
)


def resolve_environment(data: EnvironmentInput) -> EnvironmentDecision:
    """Resolve the deployment environment and tag.

    A pull request number selects the preview deployment (env ``ci``, tag
    ``pr-<number>``). Otherwise ``env`` must be an exact member of
    ALLOWED_ENVIRONMENTS and ``tag`` must be set; both pass through unchanged.

    Raises:
        TypeError: if a field is not a str (None included).
    """
    checked = EnvironmentInput(
        env_selector=require_str(data.env_selector, "env_selector"),
        pull_request_number=require_str(data.pull_request_number, "pull_request_number"),
        explicit_tag=require_str(data.explicit_tag, "explicit_tag"),
    )
    for rule in ENVIRONMENT_RULES:
        decision = rule.decide(checked)
        if decision is not None:
            return decision
    raise AssertionError("environment rule table is not exhaustive")
