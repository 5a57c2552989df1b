"""Error taxonomy for backend calls and local validation."""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

THUMBNAIL_FAILURE_CODE = "UPLOAD_005"
THUMBNAIL_FAILURE_TYPE = "thumbnail_upload_failure"


class ErrorKind(str, Enum):
    """Category of a failure, used to pick user-facing text and recovery policy."""

    VALIDATION = "validation"
    BAD_REQUEST = "bad_request"
    AUTH = "auth"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    SERVER = "server"
    TIMEOUT = "timeout"
    NETWORK = "network"
    INVALID_RESPONSE = "invalid_response"
    PARTIAL = "partial"
    THUMBNAIL_ONLY = "thumbnail_only"
    BUSY = "busy"
    UNKNOWN = "unknown"


_USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.BAD_REQUEST: "The request was rejected. Please check your input and try again.",
    ErrorKind.AUTH: "Your session has expired. Please log in again.",
    ErrorKind.FORBIDDEN: "You do not have permission to perform this action.",
    ErrorKind.NOT_FOUND: "The video could not be found. It may have been removed.",
    ErrorKind.SERVER: "The server encountered an error. Please try again later.",
    ErrorKind.TIMEOUT: "The request timed out. Please try again.",
    ErrorKind.NETWORK: "Network error. Check your connection and try again.",
    ErrorKind.INVALID_RESPONSE: "The server returned an unexpected response.",
}


class PostsivaError(Exception):
    """Base class for client errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, *, kind: ErrorKind | None = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind


class LocalValidationError(PostsivaError):
    """Input rejected before any network call was made."""

    kind = ErrorKind.VALIDATION


class ProviderDisabledError(PostsivaError):
    """The backend provider is switched off by configuration."""


class ApiError(PostsivaError):
    """A backend call failed (transport, HTTP status, or response shape)."""

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind,
        operation: str,
        status_code: int | None = None,
        detail: str = "",
        payload: Mapping[str, Any] | None = None,
    ):
        super().__init__(message, kind=kind)
        self.operation = operation
        self.status_code = status_code
        self.detail = detail
        self.payload: dict[str, Any] = dict(payload or {})

    def __repr__(self) -> str:
        return (
            f"ApiError(kind={self.kind.value!r}, operation={self.operation!r}, "
            f"status_code={self.status_code!r}, message={self.message!r})"
        )


def map_status_to_kind(status_code: int) -> ErrorKind:
    if status_code == 400 or status_code == 422:
        return ErrorKind.BAD_REQUEST
    if status_code == 401:
        return ErrorKind.AUTH
    if status_code == 403:
        return ErrorKind.FORBIDDEN
    if status_code == 404:
        return ErrorKind.NOT_FOUND
    if status_code == 408:
        return ErrorKind.TIMEOUT
    if 500 <= status_code <= 599:
        return ErrorKind.SERVER
    return ErrorKind.UNKNOWN


def user_message_for(kind: ErrorKind, fallback: str) -> str:
    """Return the user-facing message for `kind`, or `fallback` when none is defined."""
    return _USER_MESSAGES.get(kind, fallback)


def is_thumbnail_only_failure(error: BaseException) -> bool:
    """True when a publish failed only because the custom thumbnail was not applied.

    The backend signals this with code UPLOAD_005 or a thumbnail error type, and
    includes the YouTube id of the video that did get published.
    """
    if not isinstance(error, ApiError):
        return False
    payload = error.payload
    details = payload.get("details")
    if not isinstance(details, Mapping) or not details.get("youtube_video_id"):
        return False
    message = str(payload.get("message") or "")
    return (
        payload.get("code") == THUMBNAIL_FAILURE_CODE
        or details.get("error_type") == THUMBNAIL_FAILURE_TYPE
        or "thumbnail" in message.lower()
    )
