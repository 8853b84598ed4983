"""
Error taxonomy surfaced by the image store service.

Every error carries a machine-distinguishable `kind`, the HTTP status the
web layer answers with, and a human-readable message that never includes
internal detail.
"""

from enum import Enum


class ErrorKind(Enum):
    VALIDATION = "VALIDATION"
    CONFLICT = "CONFLICT"
    NOT_FOUND = "NOT_FOUND"
    RENDER_FAILED = "RENDER_FAILED"
    STORAGE = "STORAGE"


class WebshotError(Exception):
    """Base service exception."""
    kind = ErrorKind.STORAGE
    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(WebshotError):
    """Missing or malformed input."""
    kind = ErrorKind.VALIDATION
    http_status = 400


class ConflictError(WebshotError):
    """The requested name is already in use."""
    kind = ErrorKind.CONFLICT
    http_status = 400


class NotFoundError(WebshotError):
    kind = ErrorKind.NOT_FOUND
    http_status = 404


class RenderFailed(WebshotError):
    kind = ErrorKind.RENDER_FAILED
    http_status = 500


class StorageError(WebshotError):
    """Any storage failure other than 'not found'."""
    kind = ErrorKind.STORAGE
    http_status = 500
