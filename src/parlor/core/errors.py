"""Error taxonomy shared by the REST and real-time surfaces."""

from __future__ import annotations

from fastapi import status


class ChatError(Exception):
    """Base class for failures reported synchronously to the caller.

    Attributes:
        status_code: HTTP status used when the error crosses the REST surface.
        code: Stable machine-readable name used on the real-time surface.
        message: User-facing description.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class Unauthenticated(ChatError):
    """Missing or invalid credential, or the referenced user no longer exists."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"


class InvalidArgument(ChatError):
    """Empty or oversized content, or a missing required field."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_argument"


class NotFound(ChatError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class Forbidden(ChatError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class Internal(ChatError):
    """Persistence failure; nothing was applied."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "internal"


__all__ = [
    "ChatError",
    "Forbidden",
    "Internal",
    "InvalidArgument",
    "NotFound",
    "Unauthenticated",
]
