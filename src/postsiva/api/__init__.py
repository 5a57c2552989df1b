"""Backend API client, schemas and error taxonomy."""

from postsiva.api.client import BackendClient, ProgressCallback, create_backend_client
from postsiva.api.errors import (
    ApiError,
    ErrorKind,
    LocalValidationError,
    PostsivaError,
    ProviderDisabledError,
    is_thumbnail_only_failure,
)

__all__ = [
    "ApiError",
    "BackendClient",
    "ErrorKind",
    "LocalValidationError",
    "PostsivaError",
    "ProgressCallback",
    "ProviderDisabledError",
    "create_backend_client",
    "is_thumbnail_only_failure",
]
