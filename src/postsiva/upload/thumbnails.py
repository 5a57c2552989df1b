"""Thumbnail generation, selection save and custom upload.

Generation dispatches a fixed batch of concurrent requests (5 by default, or 1
when configured for single-thumbnail generation). Request `i` starts after
`i * thumbnail_stagger_s` seconds and owns slot `i` of the batch. Its loading
flag clears as soon as it settles, so finished thumbnails can be shown while
the others are still running. Settlement order does not matter.

The batch succeeds if at least one request produced a URL.
"""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import anyio

from postsiva.api.client import BackendClient
from postsiva.api.errors import ApiError, ErrorKind
from postsiva.api.schemas import ThumbnailSaveResponse
from postsiva.config import settings
from postsiva.notifications.toasts import Notifier, ToastVariant
from postsiva.observability.logging import get_logger
from postsiva.upload.results import StepResult

logger = get_logger(__name__)

__all__ = ["ThumbnailBatchState", "ThumbnailGenerator"]


@dataclass
class ThumbnailBatchState:
    batch_size: int = 5
    is_loading: bool = False
    error: Optional[str] = None
    generated_thumbnails: List[Optional[str]] = field(default_factory=list)
    thumbnail_loading_states: List[bool] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.generated_thumbnails:
            self.generated_thumbnails = [None] * self.batch_size
        if not self.thumbnail_loading_states:
            self.thumbnail_loading_states = [False] * self.batch_size

    @property
    def thumbnails(self) -> List[str]:
        """Generated URLs in slot order, skipping empty slots."""
        return [url for url in self.generated_thumbnails if url]

    def init_batch(self) -> None:
        self.is_loading = True
        self.error = None
        self.generated_thumbnails = [None] * self.batch_size
        self.thumbnail_loading_states = [True] * self.batch_size

    def init_single(self) -> None:
        self.is_loading = True
        self.error = None

    def set_item_done(self, index: int) -> None:
        if 0 <= index < len(self.thumbnail_loading_states):
            self.thumbnail_loading_states[index] = False

    def set_thumbnail(self, index: int, url: str) -> None:
        if index >= len(self.generated_thumbnails):
            self.generated_thumbnails.extend([None] * (index + 1 - len(self.generated_thumbnails)))
        self.generated_thumbnails[index] = url

    def succeed_batch(self, thumbnails: List[str]) -> None:
        self.is_loading = False
        self.generated_thumbnails = list(thumbnails)
        self.thumbnail_loading_states = [False] * self.batch_size

    def succeed_single(self) -> None:
        self.is_loading = False

    def fail(self, message: str) -> None:
        self.is_loading = False
        self.error = message
        self.thumbnail_loading_states = [False] * self.batch_size

    def clear(self) -> None:
        self.is_loading = False
        self.error = None
        self.generated_thumbnails = [None] * self.batch_size
        self.thumbnail_loading_states = [False] * self.batch_size


class ThumbnailGenerator:
    def __init__(
        self,
        client: BackendClient,
        notifier: Notifier,
        *,
        batch_size: int | None = None,
        stagger_s: float | None = None,
    ) -> None:
        self._client = client
        self._notifier = notifier
        self.batch_size = int(batch_size or settings.thumbnail_batch_size)
        if self.batch_size not in (1, 5):
            raise ValueError(f"Thumbnail batch size must be 1 or 5, got {self.batch_size}")
        self.stagger_s = float(settings.thumbnail_stagger_s if stagger_s is None else stagger_s)
        self.state = ThumbnailBatchState(batch_size=self.batch_size)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    def reopen(self) -> None:
        self._closed = False

    def clear(self) -> None:
        self.state.clear()

    async def generate(self, video_id: str) -> StepResult[List[str]]:
        operation = "thumbnail.generate"
        if not video_id:
            message = "Video ID is required"
            self.state.fail(message)
            self._notifier.toast("Missing Video ID", message, variant=ToastVariant.DESTRUCTIVE)
            return StepResult.failure(operation, message, ErrorKind.VALIDATION)

        size = self.batch_size
        self.state.init_batch()
        slots: List[Optional[str]] = [None] * size
        errors: List[ApiError] = []
        logger.info("thumbnail_batch_started", video_id=video_id, batch_size=size)

        async def _generate_one(index: int) -> None:
            await anyio.sleep(index * self.stagger_s)
            try:
                response = await self._client.generate_thumbnail(video_id)
            except ApiError as exc:
                errors.append(exc)
                logger.warning(
                    "thumbnail_generate_failed",
                    video_id=video_id,
                    index=index,
                    error_kind=exc.kind.value,
                    status_code=exc.status_code,
                )
                if not self._closed:
                    self.state.set_item_done(index)
                return
            if self._closed:
                return
            self.state.set_item_done(index)
            if response.image_url:
                slots[index] = response.image_url
                self.state.set_thumbnail(index, response.image_url)
            else:
                logger.warning("thumbnail_generate_empty", video_id=video_id, index=index)

        async with anyio.create_task_group() as tg:
            for index in range(size):
                tg.start_soon(_generate_one, index)

        if self._closed:
            logger.info("thumbnail_batch_dropped_after_close", video_id=video_id)
            return StepResult.cancelled(operation, "Result arrived after the view was closed")

        thumbnails = [url for url in slots if url]
        logger.info(
            "thumbnail_batch_settled",
            video_id=video_id,
            requested=size,
            successful=len(thumbnails),
            failed=size - len(thumbnails),
        )

        if not thumbnails:
            kind = errors[0].kind if errors else ErrorKind.INVALID_RESPONSE
            detail = errors[0].message if errors else "No thumbnail URLs were returned"
            message = f"Failed to generate any thumbnails. {detail}"
            self.state.fail(message)
            self._notifier.toast(
                "Failed to generate thumbnails", message, variant=ToastVariant.DESTRUCTIVE
            )
            return StepResult.failure(operation, message, kind)

        self.state.succeed_batch(thumbnails)
        if len(thumbnails) == size:
            message = (
                "Thumbnail generated successfully."
                if size == 1
                else f"All {size} thumbnails generated successfully!"
            )
            self._notifier.toast("Thumbnails Generated", message)
            return StepResult.success(operation, thumbnails, message)

        message = f"{len(thumbnails)} out of {size} thumbnails generated successfully."
        self._notifier.toast("Thumbnails Generated", message, variant=ToastVariant.WARNING)
        return StepResult.warning(operation, message, value=thumbnails, error_kind=ErrorKind.PARTIAL)

    async def save(self, video_id: str, thumbnail_url: str) -> StepResult[ThumbnailSaveResponse]:
        operation = "thumbnail.save"
        if not video_id or not thumbnail_url:
            return self._reject(operation, "Missing Data", "Video ID and thumbnail URL are required")
        if not thumbnail_url.startswith("http"):
            return self._reject(operation, "Invalid URL", "Invalid thumbnail URL format")

        self.state.init_single()
        logger.info("thumbnail_save_started", video_id=video_id, thumbnail_url=thumbnail_url)
        try:
            response = await self._client.save_thumbnail(video_id, thumbnail_url)
        except ApiError as exc:
            return self._api_failure(operation, "Failed to save thumbnail", video_id, exc)

        if not response.success:
            message = response.message or "Save operation failed"
            self.state.fail(message)
            self._notifier.toast("Failed to save thumbnail", message, variant=ToastVariant.DESTRUCTIVE)
            return StepResult.failure(operation, message, ErrorKind.SERVER)

        self.state.succeed_single()
        logger.info("thumbnail_saved", video_id=video_id, saved_at=response.saved_at)
        self._notifier.toast("Thumbnail Saved", "Thumbnail saved successfully.")
        return StepResult.success(operation, response)

    async def upload_custom(self, video_id: str, path: str | Path) -> StepResult[str]:
        """Upload an image file and append its public URL to the thumbnail list."""
        operation = "thumbnail.upload"
        path = Path(path)
        if not video_id or not path.is_file():
            return self._reject(operation, "Missing Data", "Video ID and file are required")
        mime = mimetypes.guess_type(path.name)[0] or ""
        if not mime.startswith("image/"):
            return self._reject(operation, "Invalid File", "Please select a valid image file")

        self.state.init_single()
        logger.info(
            "thumbnail_upload_started",
            video_id=video_id,
            filename=path.name,
            size_bytes=path.stat().st_size,
            content_type=mime,
        )
        try:
            response = await self._client.upload_thumbnail(video_id, path, content_type=mime)
        except ApiError as exc:
            return self._api_failure(operation, "Failed to upload thumbnail", video_id, exc)

        if not response.success or not response.thumbnail_path:
            message = response.message or "Upload response did not include a thumbnail path"
            self.state.fail(message)
            self._notifier.toast("Failed to upload thumbnail", message, variant=ToastVariant.DESTRUCTIVE)
            return StepResult.failure(operation, message, ErrorKind.INVALID_RESPONSE)

        url = self._client.thumbnail_url_for(response.thumbnail_path)
        self.state.succeed_batch([*self.state.thumbnails, url])
        self._notifier.toast("Custom Thumbnail Uploaded", f'Thumbnail "{path.name}" uploaded successfully.')
        return StepResult.success(operation, url)

    def _reject(self, operation: str, title: str, message: str) -> StepResult:
        self.state.fail(message)
        self._notifier.toast(title, message, variant=ToastVariant.DESTRUCTIVE)
        return StepResult.failure(operation, message, ErrorKind.VALIDATION)

    def _api_failure(self, operation: str, title: str, video_id: str, exc: ApiError) -> StepResult:
        logger.warning(
            f"{operation.replace('.', '_')}_failed",
            video_id=video_id,
            error_kind=exc.kind.value,
            status_code=exc.status_code,
        )
        self.state.fail(exc.message)
        self._notifier.toast(title, exc.message, variant=ToastVariant.DESTRUCTIVE)
        return StepResult.from_error(operation, exc)
