from __future__ import annotations

from urllib.parse import quote

from ..config import PublishConfig
from ..infra.errors import MetadataError
from ..infra.models import AppMetadata


LATEST_TAG_PREFIX = "latest"


def generate_app_url(meta: AppMetadata, env: str, tag: str, config: PublishConfig) -> str:
    """Build the portal URL of the published app.

    Unknown environments use the fallback environment's origin. Tags starting
    with "latest" are omitted from the URL; any other tag is pinned with $tag.

    Raises:
        MetadataError: if the metadata has no app key.
    """
    app_key = str(meta.key or "").strip()
    if not app_key:
        raise MetadataError("App key not found in metadata")

    base = config.base_url_for(env)
    url = f"{base}/apps/{quote(app_key, safe='')}"
    if not tag.startswith(LATEST_TAG_PREFIX):
        url = f"{url}?$tag={quote(tag, safe='.-_')}"
    return url


def app_admin_url(app_url: str, app_key: str) -> str:
    origin = app_url.split("/apps/", 1)[0]
    return f"{origin}/apps/app-admin/apps/{quote(app_key, safe='')}"
