"""Pipeline steps of the publish action.

Each step reads its inputs once, calls into the decision and I/O helpers, and
either sets all of its outputs or fails without setting any. Steps raise
ValidationFailure for user-correctable problems; :func:`run_step` turns that
into a failed step.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict

import requests

from .artifacts.bundle import extract_app_metadata, extract_manifest, extract_metadata
from .config import PublishConfig
from .github import actions
from .github.comments import (
    Deployment,
    RequestsCommentIO,
    find_meta_comment,
    post_pr_comment,
    publish_info,
    resolve_pr_number,
)
from .infra.errors import NotConfiguredError, NotFoundError, PublishError, ValidationFailure
from .infra.models import CredentialInput, EnvironmentInput
from .publish.urls import app_admin_url, generate_app_url
from .validation.app_dir import find_fusion_app, validate_config_and_manifest
from .validation.artifact import validate_artifact_path
from .validation.credentials import detect_azure_resource_id, resolve_auth
from .validation.environment import resolve_environment


StepFn = Callable[[PublishConfig], None]


def _working_dir() -> Path:
    return Path(actions.get_input("working-directory") or ".").resolve()


def validate_artifact(config: PublishConfig) -> None:
    path = validate_artifact_path(actions.get_input("artifact"))
    actions.info("Artifact validation passed.")
    actions.set_output("artifact-path", str(path))


def validate_env(config: PublishConfig) -> None:
    data = EnvironmentInput(
        env_selector=actions.get_input("env"),
        pull_request_number=actions.get_input("prNR"),
        explicit_tag=actions.get_input("tag"),
    )
    if data.pull_request_number:
        actions.info(f"prNR provided: {data.pull_request_number}")

    decision = resolve_environment(data)
    if not decision.valid:
        raise ValidationFailure(decision.error_reason or "Environment validation failed.")

    actions.info("Environment validation passed.")
    actions.set_output("env", decision.resolved_env)
    actions.set_output("tag", decision.resolved_tag)


def validate_is_token_or_azure(config: PublishConfig) -> None:
    fusion_token = actions.get_input("fusion-token")
    client_id = actions.get_input("azure-client-id")
    tenant_id = actions.get_input("azure-tenant-id")
    raw_resource_id = actions.get_input("azure-resource-id")
    environment = actions.get_input("environment")

    resource_id, resource_warning = detect_azure_resource_id(environment, raw_resource_id, client_id, config)
    if resource_warning:
        actions.warning(resource_warning)

    actions.debug(f"Azure Client ID provided: {bool(client_id)}")
    actions.debug(f"Azure Tenant ID provided: {bool(tenant_id)}")
    actions.debug(f"Azure Resource ID provided: {bool(raw_resource_id)}")
    actions.debug(f"Fusion Token provided: {bool(fusion_token)}")

    credentials = CredentialInput(
        fusion_token=fusion_token,
        azure_client_id=client_id,
        azure_tenant_id=tenant_id,
        azure_resource_id=resource_id,
    )
    decision = resolve_auth(credentials)
    if decision.note:
        actions.info(decision.note)
    if not decision.valid:
        raise ValidationFailure(decision.error_reason or "Authentication validation failed.")

    if decision.is_token:
        actions.info("Fusion token validation passed.")
    else:
        actions.info("Azure Service Principal credentials validated.")

    actions.set_output("auth-type", decision.method)
    actions.set_output("is-token", decision.is_token)
    actions.set_output("is-service-principal", decision.is_service_principal)
    actions.set_output("azure-client-id", credentials.azure_client_id.strip())
    actions.set_output("azure-tenant-id", credentials.azure_tenant_id.strip())
    actions.set_output("azure-resource-id", credentials.azure_resource_id.strip())


def check_meta_comment(config: PublishConfig) -> None:
    token = str(os.environ.get("GITHUB_TOKEN", "") or "").strip()
    repo = actions.repository_slug()
    number = resolve_pr_number(actions.read_event_payload(), actions.get_input("tag"))

    if not token:
        actions.info("GITHUB_TOKEN not available")
        actions.set_output("exists", False)
        return
    if number is None or not repo:
        actions.info("Not a PR deployment, no meta comment check needed")
        actions.set_output("exists", False)
        return

    try:
        exists = find_meta_comment(RequestsCommentIO(token), repo=repo, issue_number=number, marker=config.comment_marker)
    except (requests.RequestException, RuntimeError) as e:
        actions.warning(f"Failed to check for existing meta comment: {e}")
        exists = False
    else:
        if exists:
            actions.info(f"Meta comment already exists on PR #{number}, will skip posting")
        else:
            actions.info(f"No existing meta comment found on PR #{number}")

    actions.set_output("exists", exists)


def post_publish_metadata(config: PublishConfig) -> None:
    artifact = actions.get_input("artifact", required=True)
    env = actions.get_input("env")
    tag = actions.get_input("tag")

    actions.info(f"Processing artifact: {artifact}")
    actions.info(f"Environment: {env}")
    actions.info(f"Tag: {tag}")

    artifact_path = (_working_dir() / artifact).resolve()
    if not artifact_path.exists():
        raise NotFoundError(f"Artifact not found: {artifact_path}")

    meta = extract_app_metadata(artifact_path)
    actions.info(f"App Name: {meta.name}")
    actions.info(f"App Version: {meta.version or 'unknown'}")
    actions.info(f"App Key: {meta.key}")

    app_url = generate_app_url(meta, env, tag, config)
    admin_url = app_admin_url(app_url, meta.key)
    actions.info(f"App URL: {app_url}")

    outputs: Dict[str, str] = {
        "app-name": meta.name,
        "app-version": meta.version or "unknown",
        "app-key": meta.key,
        "app-url": app_url,
        "app-admin-url": admin_url,
        "publish-info": publish_info(meta, env, app_url),
    }
    for name, value in outputs.items():
        actions.set_output(name, value)

    post_pr_comment(
        Deployment(meta=meta, env=env, tag=tag, app_url=app_url, app_admin_url=admin_url),
        token=str(os.environ.get("GITHUB_TOKEN", "") or ""),
        repo=actions.repository_slug(),
        event=actions.read_event_payload(),
        marker=config.comment_marker,
    )
    actions.info("Post-publish metadata processing completed successfully")


def validate_working_dir(config: PublishConfig) -> None:
    working_dir = _working_dir()
    app, warnings = find_fusion_app(working_dir)
    for w in warnings:
        actions.warning(w)
    if app is None:
        raise ValidationFailure(f"No valid Fusion app found in directory: {working_dir}")

    actions.info(f"Found Fusion app: {app.name} at {app.path} (version: {app.version or 'N/A'})")
    actions.set_output("app-name", app.name)
    actions.set_output("app-version", app.version)


def validate_config_and_manifest_step(config: PublishConfig) -> None:
    for line in validate_config_and_manifest(_working_dir(), actions.get_input("config")):
        actions.info(line)
    actions.info("All file validations passed")


def _emit_bundle_json(label: str, extract: Callable[[Path], Dict[str, Any]]) -> None:
    path = validate_artifact_path(actions.get_input("artifact"), _working_dir())
    try:
        data = extract(path)
    except ValidationFailure as e:
        raise type(e)(f"Failed to load {label}: {e.reason}") from e

    text = json.dumps(data)
    actions.info(text)
    actions.set_output(label, text)


def extract_manifest_step(config: PublishConfig) -> None:
    _emit_bundle_json("manifest", extract_manifest)


def extract_metadata_step(config: PublishConfig) -> None:
    _emit_bundle_json("metadata", extract_metadata)


STEPS: Dict[str, StepFn] = {
    "validate-artifact": validate_artifact,
    "validate-env": validate_env,
    "validate-is-token-or-azure": validate_is_token_or_azure,
    "check-meta-comment": check_meta_comment,
    "post-publish-metadata": post_publish_metadata,
    "validate-working-dir": validate_working_dir,
    "validate-config-and-manifest": validate_config_and_manifest_step,
    "extract-manifest": extract_manifest_step,
    "extract-metadata": extract_metadata_step,
}


def run_step(name: str, config: PublishConfig) -> int:
    """Run a named step and map its outcome to an exit code.

    ValidationFailure and NotConfiguredError fail the step with their message.
    Any other exception is reported and re-raised.
    """
    step = STEPS[name]
    try:
        actions.ensure_runner_context()
        step(config)
    except ValidationFailure as e:
        return actions.set_failed(e.reason)
    except NotConfiguredError as e:
        return actions.set_failed(str(e))
    except PublishError as e:
        return actions.set_failed(f"{name} failed: {e}")
    except Exception as e:
        actions.error(f"{name} failed unexpectedly: {type(e).__name__}: {e}")
        raise
    return 0
