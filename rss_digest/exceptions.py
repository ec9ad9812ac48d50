from __future__ import annotations

from .models import ErrorReason


class DigestError(Exception):
    """Base class for every error raised by rss_digest."""


class ConfigError(DigestError):
    """Raised at startup when required settings are missing or invalid."""


class SourceFetchError(DigestError):
    """Raised when an RSS/Atom feed cannot be fetched or parsed."""


class TransformError(DigestError):
    """Raised by a text generator; carries the classified failure reason."""

    def __init__(self, reason: ErrorReason, message: str = "") -> None:
        super().__init__(message or reason.value)
        self.reason = reason


class CoverGenerationError(DigestError):
    """Raised when the image service fails to produce a cover."""


class DeliveryError(DigestError):
    """Raised when the delivery channel rejects a message."""
