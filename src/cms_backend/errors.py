"""Domain errors shared by the store, the services, and the routers."""

from __future__ import annotations


class ContentError(RuntimeError):
    """Base error raised for content management failures."""


class ValidationError(ContentError):
    """Raised when a required field is missing or malformed."""


class UnsupportedUploadType(ValidationError):
    """Raised when an upload is not one of the accepted image types."""


class UploadTooLarge(ValidationError):
    """Raised when an upload exceeds the configured size ceiling."""


class NotFoundError(ContentError):
    """Raised when a referenced record cannot be located."""


class ConstraintViolation(ContentError):
    """Raised when the store rejects a write because of a constraint."""


class UniqueConstraintError(ConstraintViolation):
    """Raised when a unique column (slug, email, ...) already holds the value."""

    def __init__(self, message: str, *, fields: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.fields = fields


class ReferenceConstraintError(ConstraintViolation):
    """Raised when a write would break a foreign key reference."""


class SlugAllocationExhausted(ContentError):
    """Raised when no free slug was found within the attempt limit."""


class ImageProcessingError(ContentError):
    """Raised when variant generation and the fallback both failed."""


class CleanupError(ContentError):
    """Raised internally when a stored file could not be removed."""


class AuthenticationError(ContentError):
    """Raised when credentials or a bearer token are invalid."""


class RegistrationClosed(ContentError):
    """Raised when an admin already exists and another one is requested."""


__all__ = [
    "AuthenticationError",
    "CleanupError",
    "ConstraintViolation",
    "ContentError",
    "ImageProcessingError",
    "NotFoundError",
    "ReferenceConstraintError",
    "RegistrationClosed",
    "SlugAllocationExhausted",
    "UniqueConstraintError",
    "UnsupportedUploadType",
    "UploadTooLarge",
    "ValidationError",
]
