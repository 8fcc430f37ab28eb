"""Error taxonomy shared by the document store and the social services."""
from __future__ import annotations

from fastapi import status


class SocialError(Exception):
    """Base class for failures reported by the social services."""

    code = "error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "An error occurred. Please try again"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(SocialError):
    """Raised when an operation needs a signed-in principal and there is none."""

    code = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "User not authenticated"


class Unauthorized(SocialError):
    """Raised when the principal does not own the record being mutated."""

    code = "unauthorized"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not allowed to modify this record"


class NotFound(SocialError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Document not found"


class InvalidOperation(SocialError):
    code = "invalid_operation"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Operation not allowed"


class Conflict(SocialError):
    """Base for errors caused by state that is already present."""

    code = "conflict"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Record already exists"


class DocumentExists(Conflict):
    code = "document_exists"
    default_message = "Document already exists"


class DuplicateRequest(Conflict):
    code = "duplicate_request"
    default_message = "Friend request already sent"


class AlreadyLiked(Conflict):
    code = "already_liked"
    default_message = "Already liked"


class AlreadySaved(Conflict):
    code = "already_saved"
    default_message = "Post already saved"


class ValidationError(SocialError):
    code = "validation_error"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Invalid content"


class RemoteUnavailable(SocialError):
    """Raised when the backing store call fails or times out."""

    code = "remote_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Storage backend unavailable"


__all__ = [
    "SocialError",
    "Unauthenticated",
    "Unauthorized",
    "NotFound",
    "InvalidOperation",
    "Conflict",
    "DocumentExists",
    "DuplicateRequest",
    "AlreadyLiked",
    "AlreadySaved",
    "ValidationError",
    "RemoteUnavailable",
]
