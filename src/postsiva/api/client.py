"""Async HTTP client for the Postsiva backend.

Every call opens a short-lived `httpx.AsyncClient`, attaches the bearer token
from the local store, and parses the JSON body into a pydantic model. Failures
are raised as `ApiError` with a kind, a user-facing message and the
diagnostic detail.
"""

from __future__ import annotations

import json
import mimetypes
import os
from pathlib import Path
from typing import Any, BinaryIO, Callable, Dict, List, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from postsiva.api.errors import (
    ApiError,
    ErrorKind,
    ProviderDisabledError,
    map_status_to_kind,
    user_message_for,
)
from postsiva.api.schemas import (
    AllInOneProcessResponse,
    AllInOneSaveRequest,
    DescriptionGenerateResponse,
    PlaylistSelectResponse,
    PrivacyStatus,
    PrivacyStatusResponse,
    SaveResponse,
    ThumbnailGenerateResponse,
    ThumbnailSaveResponse,
    ThumbnailUploadResponse,
    Timestamp,
    TimestampsGenerateResponse,
    TitleGenerateResponse,
    VideoUploadResponse,
    YouTubeUploadResponse,
)
from postsiva.config import effective_backend_provider, get_settings, settings
from postsiva.observability.logging import get_logger
from postsiva.storage.keys import AUTH_TOKEN
from postsiva.storage.local import KeyValueStore

logger = get_logger(__name__)

__all__ = ["BackendClient", "ProgressCallback", "create_backend_client"]

ProgressCallback = Callable[[int], None]
ModelT = TypeVar("ModelT", bound=BaseModel)

_MAX_LOGGED_BODY = 1200


class _ProgressReader:
    """File wrapper that reports read progress as a 0-100 percentage.

    httpx's multipart encoder pulls the file in chunks through `read()`, so the
    percentage tracks how much of the body has been handed to the transport.
    """

    def __init__(self, fh: BinaryIO, total: int, on_progress: ProgressCallback | None) -> None:
        self._fh = fh
        self._total = max(int(total), 0)
        self._on_progress = on_progress
        self._sent = 0
        self._last_reported = -1

    def read(self, size: int = -1) -> bytes:
        chunk = self._fh.read(size)
        if chunk:
            self._sent += len(chunk)
            self._report()
        return chunk

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        position = self._fh.seek(offset, whence)
        self._sent = position
        return position

    def tell(self) -> int:
        return self._fh.tell()

    def _report(self) -> None:
        if self._on_progress is None or self._total == 0:
            return
        percent = min(100, int(self._sent * 100 / self._total))
        if percent > self._last_reported:
            self._last_reported = percent
            self._on_progress(percent)


def _truncate(body: str) -> str:
    if len(body) > _MAX_LOGGED_BODY:
        return body[:_MAX_LOGGED_BODY] + "…(truncated)…"
    return body


def _error_payload(response: httpx.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    if not isinstance(data, dict):
        return {"raw": data}
    # FastAPI wraps structured errors in {"detail": {...}}.
    detail = data.get("detail")
    if isinstance(detail, dict) and "code" not in data:
        return detail
    return data


class BackendClient:
    """Thin typed wrapper over the backend's JSON endpoints."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        store: KeyValueStore | None = None,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        generate_timeout: float | None = None,
        save_timeout: float | None = None,
        long_timeout: float | None = None,
    ) -> None:
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self._store = store
        self._token = token
        self._transport = transport
        self.generate_timeout = float(generate_timeout or settings.generate_timeout_s)
        self.save_timeout = float(save_timeout or settings.save_timeout_s)
        self.long_timeout = float(long_timeout or settings.long_timeout_s)

    def thumbnail_url_for(self, thumbnail_path: str) -> str:
        return f"{self.base_url}/{thumbnail_path.lstrip('/')}"

    def _auth_headers(self) -> Dict[str, str]:
        headers = {"accept": "application/json"}
        token = self._token or (self._store.get(AUTH_TOKEN) if self._store else None)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _request(
        self,
        operation: str,
        path: str,
        *,
        timeout: float,
        video_id: str | None = None,
        json_body: Any = None,
        content: str | bytes | None = None,
        files: Any = None,
        extra_headers: Dict[str, str] | None = None,
    ) -> Dict[str, Any]:
        headers = self._auth_headers()
        if extra_headers:
            headers.update(extra_headers)

        logger.debug(
            "backend_request",
            operation=operation,
            path=path,
            video_id=video_id,
            has_auth_header="Authorization" in headers,
        )

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(timeout),
                transport=self._transport,
            ) as client:
                response = await client.post(
                    path,
                    headers=headers,
                    json=json_body,
                    content=content,
                    files=files,
                )
        except httpx.TimeoutException as exc:
            logger.error(
                "backend_timeout",
                operation=operation,
                video_id=video_id,
                timeout_s=timeout,
                error=str(exc),
            )
            raise ApiError(
                user_message_for(ErrorKind.TIMEOUT, "Request timed out"),
                kind=ErrorKind.TIMEOUT,
                operation=operation,
                detail=str(exc),
            ) from exc
        except httpx.HTTPError as exc:
            logger.error(
                "backend_network_error",
                operation=operation,
                video_id=video_id,
                error=str(exc),
            )
            raise ApiError(
                user_message_for(ErrorKind.NETWORK, "Network error"),
                kind=ErrorKind.NETWORK,
                operation=operation,
                detail=str(exc),
            ) from exc

        if response.status_code >= 400:
            body = _truncate(response.text or "")
            payload = _error_payload(response)
            kind = map_status_to_kind(response.status_code)
            server_message = str(payload.get("message") or "")
            logger.error(
                "backend_http_error",
                operation=operation,
                video_id=video_id,
                status_code=response.status_code,
                detail=body,
            )
            raise ApiError(
                user_message_for(kind, server_message or f"Request failed ({response.status_code})"),
                kind=kind,
                operation=operation,
                status_code=response.status_code,
                detail=body,
                payload=payload,
            )

        try:
            data = response.json()
        except ValueError as exc:
            logger.error("backend_non_json_response", operation=operation, video_id=video_id)
            raise ApiError(
                user_message_for(ErrorKind.INVALID_RESPONSE, "Invalid response"),
                kind=ErrorKind.INVALID_RESPONSE,
                operation=operation,
                status_code=response.status_code,
                detail=_truncate(response.text or ""),
            ) from exc

        if not isinstance(data, dict):
            raise ApiError(
                user_message_for(ErrorKind.INVALID_RESPONSE, "Invalid response"),
                kind=ErrorKind.INVALID_RESPONSE,
                operation=operation,
                status_code=response.status_code,
                detail=f"expected object, got {type(data).__name__}",
            )
        return data

    @staticmethod
    def _parse(model: Type[ModelT], data: Dict[str, Any], operation: str) -> ModelT:
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            logger.error("backend_response_shape_invalid", operation=operation, error=str(exc))
            raise ApiError(
                user_message_for(ErrorKind.INVALID_RESPONSE, "Invalid response"),
                kind=ErrorKind.INVALID_RESPONSE,
                operation=operation,
                detail=str(exc),
                payload=data,
            ) from exc

    @staticmethod
    def _vid(video_id: str) -> str:
        return quote(video_id, safe="")

    # Videos

    async def upload_video(
        self,
        path: Path,
        *,
        content_type: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> VideoUploadResponse:
        path = Path(path)
        mime = content_type or mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        total = path.stat().st_size
        with path.open("rb") as fh:
            reader = _ProgressReader(fh, total, on_progress)
            data = await self._request(
                "videos.upload",
                "/videos/upload",
                timeout=self.long_timeout,
                files={"file": (path.name, reader, mime)},
            )
        return self._parse(VideoUploadResponse, data, "videos.upload")

    # Titles / description / timestamps

    async def generate_titles(self, video_id: str) -> TitleGenerateResponse:
        data = await self._request(
            "titles.generate",
            f"/titles/{self._vid(video_id)}/generate",
            timeout=self.generate_timeout,
            video_id=video_id,
        )
        return self._parse(TitleGenerateResponse, data, "titles.generate")

    async def save_title(self, video_id: str, title: str) -> SaveResponse:
        data = await self._request(
            "titles.save",
            f"/titles/{self._vid(video_id)}/save",
            timeout=self.save_timeout,
            video_id=video_id,
            json_body={"selected_title": title},
        )
        return self._parse(SaveResponse, data, "titles.save")

    async def generate_description(self, video_id: str) -> DescriptionGenerateResponse:
        data = await self._request(
            "description.generate",
            f"/description/{self._vid(video_id)}/generate",
            timeout=self.generate_timeout,
            video_id=video_id,
        )
        return self._parse(DescriptionGenerateResponse, data, "description.generate")

    async def save_description(self, video_id: str, description: str) -> SaveResponse:
        data = await self._request(
            "description.save",
            f"/description/{self._vid(video_id)}/save",
            timeout=self.save_timeout,
            video_id=video_id,
            json_body={"description": description},
        )
        return self._parse(SaveResponse, data, "description.save")

    async def generate_timestamps(self, video_id: str) -> TimestampsGenerateResponse:
        data = await self._request(
            "timestamps.generate",
            f"/timestamps/{self._vid(video_id)}/generate",
            timeout=self.generate_timeout,
            video_id=video_id,
        )
        return self._parse(TimestampsGenerateResponse, data, "timestamps.generate")

    async def save_timestamps(self, video_id: str, timestamps: List[Timestamp]) -> SaveResponse:
        data = await self._request(
            "timestamps.save",
            f"/timestamps/{self._vid(video_id)}/save",
            timeout=self.save_timeout,
            video_id=video_id,
            json_body={"timestamps": [ts.model_dump() for ts in timestamps]},
        )
        return self._parse(SaveResponse, data, "timestamps.save")

    # Thumbnails

    async def generate_thumbnail(self, video_id: str) -> ThumbnailGenerateResponse:
        data = await self._request(
            "thumbnail.generate",
            f"/thumbnail-generator/{self._vid(video_id)}/generate",
            timeout=self.generate_timeout,
            video_id=video_id,
        )
        return self._parse(ThumbnailGenerateResponse, data, "thumbnail.generate")

    async def save_thumbnail(self, video_id: str, thumbnail_url: str) -> ThumbnailSaveResponse:
        data = await self._request(
            "thumbnail.save",
            f"/thumbnail-generator/{self._vid(video_id)}/save",
            timeout=self.save_timeout,
            video_id=video_id,
            json_body={"thumbnail_url": thumbnail_url},
        )
        return self._parse(ThumbnailSaveResponse, data, "thumbnail.save")

    async def upload_thumbnail(
        self, video_id: str, path: Path, *, content_type: str | None = None
    ) -> ThumbnailUploadResponse:
        path = Path(path)
        mime = content_type or mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        with path.open("rb") as fh:
            data = await self._request(
                "thumbnail.upload",
                f"/thumbnail-generator/{self._vid(video_id)}/upload",
                timeout=self.long_timeout,
                video_id=video_id,
                files={"file": (path.name, fh, mime)},
            )
        return self._parse(ThumbnailUploadResponse, data, "thumbnail.upload")

    # Publishing

    async def set_privacy_status(
        self, video_id: str, privacy_status: PrivacyStatus
    ) -> PrivacyStatusResponse:
        data = await self._request(
            "privacy.set",
            f"/privacy-status/{self._vid(video_id)}/privacy-status",
            timeout=self.save_timeout,
            video_id=video_id,
            json_body={"privacy_status": PrivacyStatus(privacy_status).value},
        )
        return self._parse(PrivacyStatusResponse, data, "privacy.set")

    async def select_playlist(self, video_id: str, playlist_id: str) -> PlaylistSelectResponse:
        data = await self._request(
            "playlist.select",
            f"/playlists/{self._vid(video_id)}/select",
            timeout=self.save_timeout,
            video_id=video_id,
            content=json.dumps(playlist_id),
            extra_headers={"Content-Type": "application/json"},
        )
        return self._parse(PlaylistSelectResponse, data, "playlist.select")

    async def publish_to_youtube(self, video_id: str) -> YouTubeUploadResponse:
        data = await self._request(
            "youtube.upload",
            f"/youtube-upload/{self._vid(video_id)}/upload",
            timeout=self.long_timeout,
            video_id=video_id,
        )
        return self._parse(YouTubeUploadResponse, data, "youtube.upload")

    # All-in-one

    async def process_all_in_one(self, video_id: str) -> AllInOneProcessResponse:
        data = await self._request(
            "all_in_one.process",
            f"/all-in-one/{self._vid(video_id)}/process",
            timeout=self.long_timeout,
            video_id=video_id,
        )
        if "results" not in data:
            data = {"results": data}
        return self._parse(AllInOneProcessResponse, data, "all_in_one.process")

    async def save_all_in_one(self, video_id: str, request: AllInOneSaveRequest) -> SaveResponse:
        data = await self._request(
            "all_in_one.save",
            f"/all-in-one/{self._vid(video_id)}/save-content",
            timeout=self.save_timeout,
            video_id=video_id,
            json_body=request.to_payload(),
        )
        return self._parse(SaveResponse, data, "all_in_one.save")


def create_backend_client(
    store: KeyValueStore | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> BackendClient:
    """Build a client for the configured provider mode (real, fake or off)."""
    mode = effective_backend_provider(get_settings())
    if mode == "off":
        raise ProviderDisabledError("Backend provider is disabled (BACKEND_PROVIDER=off)")
    if transport is None and mode == "fake":
        from postsiva.api.fakes import FakeBackend

        transport = FakeBackend().transport()
    logger.info("backend_client_created", mode=mode, base_url=settings.api_base_url)
    return BackendClient(store=store, transport=transport)
