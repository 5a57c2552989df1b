"""Raw video upload with progress tracking."""

from __future__ import annotations

import mimetypes
from pathlib import Path

from postsiva.api.client import BackendClient, ProgressCallback
from postsiva.api.errors import ApiError, ErrorKind
from postsiva.notifications.toasts import Notifier, ToastVariant
from postsiva.observability.logging import get_logger
from postsiva.storage.keys import has_ai_credential
from postsiva.storage.local import KeyValueStore
from postsiva.upload.results import StepResult

logger = get_logger(__name__)

__all__ = ["VideoUploader", "guess_video_type", "require_ai_credential"]


def guess_video_type(path: Path) -> str | None:
    mime = mimetypes.guess_type(path.name)[0]
    if mime and mime.startswith("video/"):
        return mime
    return None


def require_ai_credential(store: KeyValueStore, notifier: Notifier) -> bool:
    """Check for a configured AI-provider key before a video upload starts."""
    if has_ai_credential(store):
        return True
    logger.warning("ai_credential_missing")
    notifier.toast(
        "Gemini API Key Required",
        "Please go to Settings and enter your Gemini API key before uploading videos.",
        variant=ToastVariant.DESTRUCTIVE,
    )
    return False


class VideoUploader:
    """Upload one video file and remember the server-assigned id."""

    def __init__(self, client: BackendClient, notifier: Notifier) -> None:
        self._client = client
        self._notifier = notifier
        self.is_uploading = False
        self.progress = 0
        self.video_id: str | None = None
        self.error: str | None = None

    def reset(self) -> None:
        self.is_uploading = False
        self.progress = 0
        self.video_id = None
        self.error = None

    async def upload(
        self, path: str | Path, *, on_progress: ProgressCallback | None = None
    ) -> StepResult[str]:
        operation = "videos.upload"
        path = Path(path)

        if self.is_uploading:
            return StepResult.failure(operation, "An upload is already in progress", ErrorKind.BUSY)
        if not path.is_file():
            return self._reject(operation, f"File not found: {path}")
        mime = guess_video_type(path)
        if mime is None:
            return self._reject(operation, "Please select a valid video file")

        self.is_uploading = True
        self.progress = 0
        self.video_id = None
        self.error = None

        def _progress(percent: int) -> None:
            self.progress = percent
            if on_progress is not None:
                on_progress(percent)

        logger.info(
            "video_upload_started",
            filename=path.name,
            size_bytes=path.stat().st_size,
            content_type=mime,
        )
        try:
            response = await self._client.upload_video(path, content_type=mime, on_progress=_progress)
        except ApiError as exc:
            logger.error(
                "video_upload_failed",
                filename=path.name,
                error_kind=exc.kind.value,
                status_code=exc.status_code,
            )
            self.progress = 0
            self.error = exc.message
            self._notifier.toast("Upload Failed", exc.message, variant=ToastVariant.DESTRUCTIVE)
            return StepResult.from_error(operation, exc)
        finally:
            self.is_uploading = False

        self.video_id = response.id
        self.progress = 100
        _progress(100)
        logger.info("video_upload_completed", video_id=response.id, filename=path.name)
        self._notifier.toast("Video Uploaded", f'"{path.name}" uploaded successfully.')
        return StepResult.success(operation, response.id)

    def _reject(self, operation: str, message: str) -> StepResult[str]:
        self.error = message
        self._notifier.toast("Invalid File", message, variant=ToastVariant.DESTRUCTIVE)
        return StepResult.failure(operation, message, ErrorKind.VALIDATION)
