from __future__ import annotations

from .errors import (
    MetadataError,
    NotConfiguredError,
    NotFoundError,
    PublishError,
    ValidationFailure,
)

__all__ = [
    "MetadataError",
    "NotConfiguredError",
    "NotFoundError",
    "PublishError",
    "ValidationFailure",
]
