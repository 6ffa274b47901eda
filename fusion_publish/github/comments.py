from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Protocol

import requests

from ..infra.models import PR_TAG_PREFIX, AppMetadata
from . import actions


API_BASE = "https://api.github.com"
ACTION_REPO_URL = "https://github.com/equinor/fusion-action-app-publish"
PER_PAGE = 100


class CommentIO(Protocol):
    def list_comments(self, *, repo: str, issue_number: int) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def create_comment(self, *, repo: str, issue_number: int, body: str) -> None:
        raise NotImplementedError


def _github_api_headers(token: str) -> Dict[str, str]:
    return {
        "Authorization": f"Bearer {token}",
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
        "User-Agent": "fusion-app-publish",
    }


class RequestsCommentIO:
    """CommentIO backed by the GitHub REST API."""

    def __init__(self, token: str, api_base: str = API_BASE, timeout: int = 30):
        self.token = token
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout

    def list_comments(self, *, repo: str, issue_number: int) -> List[Dict[str, Any]]:
        url = f"{self.api_base}/repos/{repo}/issues/{issue_number}/comments"
        out: List[Dict[str, Any]] = []
        page = 1
        while True:
            r = requests.get(
                url,
                headers=_github_api_headers(self.token),
                params={"per_page": PER_PAGE, "page": page},
                timeout=self.timeout,
            )
            if r.status_code != 200:
                raise RuntimeError(f"GitHub API error listing comments: {r.status_code}: {r.text[:2000]}")
            batch = r.json()
            if not isinstance(batch, list):
                raise RuntimeError("GitHub API returned a non-list payload for issue comments")
            out.extend(c for c in batch if isinstance(c, dict))
            if len(batch) < PER_PAGE:
                return out
            page += 1

    def create_comment(self, *, repo: str, issue_number: int, body: str) -> None:
        r = requests.post(
            f"{self.api_base}/repos/{repo}/issues/{issue_number}/comments",
            headers=_github_api_headers(self.token),
            json={"body": body},
            timeout=self.timeout,
        )
        if r.status_code != 201:
            raise RuntimeError(f"GitHub API error creating comment: {r.status_code}: {r.text[:2000]}")


def resolve_pr_number(event: Mapping[str, Any], tag: str) -> Optional[int]:
    """PR number from the event payload, else from a ``pr-<n>`` tag."""
    pr = event.get("pull_request") if isinstance(event, Mapping) else None
    if isinstance(pr, Mapping):
        number = pr.get("number")
        if isinstance(number, int) and number > 0:
            return number

    tag = str(tag or "")
    if tag.startswith(PR_TAG_PREFIX):
        digits = tag[len(PR_TAG_PREFIX):]
        if digits.isascii() and digits.isdigit() and int(digits) > 0:
            return int(digits)
    return None


@dataclass(frozen=True)
class Deployment:
    meta: AppMetadata
    env: str
    tag: str
    app_url: str
    app_admin_url: str


def render_comment(deployment: Deployment, marker: str, now: Optional[datetime] = None) -> str:
    meta = deployment.meta
    built = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H:%M:%SZ")
    lines = [
        marker,
        "## 🚀 Application Deployed Successfully",
        "",
        f"**Application:** {meta.name}  ",
        f"**Version:** {meta.version or 'unknown'}  ",
        f"**Environment:** {deployment.env.upper()}  ",
        f"**Tag:** {deployment.tag}  ",
        "",
    ]
    if meta.description:
        lines += [f"**Description:** {meta.description}", ""]
    lines += [
        "### 🔗 Access Links",
        f"- **Application:** [Open {meta.name}]({deployment.app_url})",
        f"- **Fusion App Admin:** [Manage in Fusion App Admin]({deployment.app_admin_url})",
        f"- **App Config:** [View app config]({deployment.app_admin_url}/config)",
        "",
        "### 📋 Deployment Details",
        f"- **App Key:** `{meta.key}`",
        f"- **Bundle:** {meta.entry_path or 'Not specified'}",
        f"- **Build Time:** {built}",
        "",
        "---",
        f"*Deployed via [fusion-action-app-publish]({ACTION_REPO_URL})*",
    ]
    return "\n".join(lines)


def publish_info(meta: AppMetadata, env: str, app_url: str) -> str:
    return f"🚀 **{meta.name}** v{meta.version or 'unknown'} deployed to **{env.upper()}**\n[Open Application]({app_url})"


def find_meta_comment(io: CommentIO, *, repo: str, issue_number: int, marker: str) -> bool:
    for c in io.list_comments(repo=repo, issue_number=issue_number):
        if marker in str(c.get("body") or ""):
            return True
    return False


def post_pr_comment(
    deployment: Deployment,
    *,
    token: str,
    repo: Optional[str],
    event: Mapping[str, Any],
    marker: str,
    io: Optional[CommentIO] = None,
) -> bool:
    """Post the deployment comment on the pull request, best-effort.

    No-op (with an info line) without a token, repository or PR number. API
    failures are downgraded to a warning; the publish itself already succeeded.

    Returns:
        True if a comment was posted.
    """
    if not str(token or "").strip():
        actions.info("GITHUB_TOKEN not available, skipping PR comment")
        return False

    number = resolve_pr_number(event, deployment.tag)
    if number is None:
        actions.info("Not a PR deployment, skipping PR comment")
        return False

    if not repo:
        actions.info("GITHUB_REPOSITORY not set, skipping PR comment")
        return False

    client = io if io is not None else RequestsCommentIO(token)
    try:
        client.create_comment(repo=repo, issue_number=number, body=render_comment(deployment, marker))
    except (requests.RequestException, RuntimeError) as e:
        actions.warning(f"Failed to post PR comment: {e}")
        return False

    actions.info(f"Posted deployment comment to PR #{number}")
    return True
