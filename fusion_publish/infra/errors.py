from __future__ import annotations


class PublishError(Exception):
    """Base class for publish helper errors."""


class ValidationFailure(PublishError):
    """Raised when an input is missing or malformed and the user can correct it."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class NotFoundError(ValidationFailure):
    """Raised when a requested file or archive entry cannot be found."""


class MetadataError(ValidationFailure):
    """Raised when bundle metadata is unreadable or lacks a required field."""


class NotConfiguredError(PublishError):
    """Raised when a step runs somewhere it has not been enabled for."""
