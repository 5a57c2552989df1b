"""All-in-one flow: one upload, one server-side generation pass, one save.

The backend generates titles, description, timestamps and thumbnails in a
single long call. The result prefills a review form; saving sends the final
selections and then publishes to YouTube.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Union

import anyio

from postsiva.api.client import BackendClient, ProgressCallback
from postsiva.api.errors import ApiError, ErrorKind, LocalValidationError
from postsiva.api.schemas import AllInOneResult, AllInOneSaveRequest, PrivacyStatus, Timestamp
from postsiva.config import settings
from postsiva.notifications.toasts import Notifier, ToastVariant
from postsiva.observability.logging import bind_video_id, get_logger
from postsiva.storage.local import KeyValueStore
from postsiva.upload.publishing import publish_video
from postsiva.upload.results import Outcome, PublishReport, StepResult
from postsiva.upload.videos import VideoUploader, require_ai_credential

logger = get_logger(__name__)

__all__ = ["AllInOneFlow", "AllInOneState", "AllInOneStep"]


class AllInOneStep(str, Enum):
    UPLOAD = "upload"
    PROCESSING = "processing"
    REVIEW = "review"


@dataclass
class AllInOneState:
    step: AllInOneStep = AllInOneStep.UPLOAD
    video_id: Optional[str] = None
    processed: Optional[AllInOneResult] = None
    selected_title: str = ""
    description: str = ""
    timestamps: List[Timestamp] = field(default_factory=list)
    selected_thumbnail: str = ""
    privacy_status: PrivacyStatus = PrivacyStatus.PUBLIC
    playlist_name: str = ""
    is_saving: bool = False
    content_saved: bool = False
    error: Optional[str] = None

    @property
    def titles(self) -> List[str]:
        if self.processed is None:
            return []
        return list(self.processed.titles.generated_titles)

    @property
    def thumbnails(self) -> List[str]:
        if self.processed is None:
            return []
        return [t.image_url for t in self.processed.thumbnails.generated_thumbnails if t.image_url]

    @property
    def has_thumbnails(self) -> bool:
        return bool(self.thumbnails)

    def reset(self) -> None:
        fresh = AllInOneState()
        for name in self.__dataclass_fields__:
            setattr(self, name, getattr(fresh, name))


class AllInOneFlow:
    def __init__(
        self,
        client: BackendClient,
        store: KeyValueStore,
        notifier: Notifier,
        *,
        reset_delay_s: float | None = None,
    ) -> None:
        self._client = client
        self._store = store
        self._notifier = notifier
        self.uploader = VideoUploader(client, notifier)
        self.state = AllInOneState()
        self.reset_delay_s = (
            settings.all_in_one_reset_delay_s if reset_delay_s is None else reset_delay_s
        )

    async def start(
        self, path: Union[str, Path], *, on_progress: ProgressCallback | None = None
    ) -> StepResult[AllInOneResult]:
        """Upload `path`, run generation and move to review."""
        operation = "all_in_one.start"
        if not require_ai_credential(self._store, self._notifier):
            return StepResult.failure(operation, "Gemini API key required", ErrorKind.VALIDATION)

        self.state.reset()
        uploaded = await self.uploader.upload(path, on_progress=on_progress)
        if not uploaded.is_success:
            self.state.error = uploaded.message
            return StepResult.failure(operation, uploaded.message, uploaded.error_kind or ErrorKind.UNKNOWN)

        self.state.video_id = uploaded.value
        self.state.step = AllInOneStep.PROCESSING
        processed = await self.process(uploaded.value)
        if not processed.is_success:
            self.state.step = AllInOneStep.UPLOAD
            self.state.video_id = None
            return processed

        self.state.step = AllInOneStep.REVIEW
        return processed

    async def process(self, video_id: str) -> StepResult[AllInOneResult]:
        operation = "all_in_one.process"
        logger.info("all_in_one_process_started", video_id=video_id)
        try:
            response = await self._client.process_all_in_one(video_id)
        except ApiError as exc:
            logger.error(
                "all_in_one_process_failed",
                video_id=video_id,
                error_kind=exc.kind.value,
                status_code=exc.status_code,
            )
            self.state.error = exc.message
            self._notifier.toast("Processing Failed", exc.message, variant=ToastVariant.DESTRUCTIVE)
            return StepResult.from_error(operation, exc)

        if not response.success:
            message = response.message or "Content generation failed"
            self.state.error = message
            self._notifier.toast("Processing Failed", message, variant=ToastVariant.DESTRUCTIVE)
            return StepResult.failure(operation, message, ErrorKind.SERVER)

        self.prefill(response.results)
        logger.info(
            "all_in_one_process_completed",
            video_id=video_id,
            titles=len(self.state.titles),
            thumbnails=len(self.state.thumbnails),
        )
        self._notifier.toast("Content Generated", "Review the generated content before saving.")
        return StepResult.success(operation, response.results)

    def prefill(self, result: AllInOneResult) -> None:
        """Fill the review form from the generated content."""
        self.state.processed = result
        if result.titles.success and result.titles.generated_titles:
            self.state.selected_title = result.titles.generated_titles[0]
        if result.description.success and result.description.generated_description:
            self.state.description = result.description.generated_description
        if result.timestamps.success and result.timestamps.generated_timestamps:
            self.state.timestamps = list(result.timestamps.generated_timestamps)
        thumbnails = self.state.thumbnails
        if result.thumbnails.success and thumbnails:
            self.state.selected_thumbnail = thumbnails[0]
        else:
            self.state.selected_thumbnail = ""

    # Review form

    def select_title(self, choice: Union[int, str]) -> str:
        if isinstance(choice, int):
            titles = self.state.titles
            if not 0 <= choice < len(titles):
                raise LocalValidationError(f"No generated title at index {choice}")
            choice = titles[choice]
        self.state.selected_title = choice
        return choice

    def select_thumbnail(self, choice: Union[int, str]) -> str:
        thumbnails = self.state.thumbnails
        if isinstance(choice, int):
            if not 0 <= choice < len(thumbnails):
                raise LocalValidationError(f"No thumbnail at index {choice}")
            choice = thumbnails[choice]
        elif choice and choice not in thumbnails:
            raise LocalValidationError("Selected thumbnail is not one of the generated thumbnails")
        self.state.selected_thumbnail = choice
        return choice

    def set_description(self, text: str) -> None:
        self.state.description = text

    def set_timestamps(self, timestamps: Sequence[Timestamp]) -> None:
        self.state.timestamps = list(timestamps)

    def select_privacy(self, privacy: Union[PrivacyStatus, str]) -> None:
        self.state.privacy_status = PrivacyStatus(privacy)

    def set_playlist_name(self, name: str) -> None:
        self.state.playlist_name = name

    def build_save_request(self) -> AllInOneSaveRequest:
        return AllInOneSaveRequest(
            selected_title=self.state.selected_title.strip(),
            description=self.state.description,
            timestamps=self.state.timestamps,
            selected_thumbnail_url=self.state.selected_thumbnail,
            privacy_status=self.state.privacy_status,
            playlist_name=self.state.playlist_name,
        )

    # Save and publish

    async def save(self) -> PublishReport:
        """Save the reviewed content, then publish.

        If the save itself fails, `report.publish` carries the save failure and
        nothing was published.
        """
        operation = "all_in_one.save"
        video_id = self.state.video_id
        if not video_id:
            message = "No video ID found. Please try uploading again."
            self._notifier.toast("Error", message, variant=ToastVariant.DESTRUCTIVE)
            return PublishReport(publish=StepResult.failure(operation, message, ErrorKind.VALIDATION))
        if not self.state.selected_title.strip() or not self.state.description.strip():
            message = "Please select a title and ensure description is filled."
            self._notifier.toast("Missing Fields", message, variant=ToastVariant.DESTRUCTIVE)
            return PublishReport(publish=StepResult.failure(operation, message, ErrorKind.VALIDATION))
        if self.state.is_saving:
            return PublishReport(
                publish=StepResult.failure(operation, "Save already in progress", ErrorKind.BUSY)
            )

        request = self.build_save_request()
        self.state.is_saving = True
        try:
            with bind_video_id(video_id):
                logger.info(
                    "all_in_one_save_started",
                    fields=sorted(request.to_payload()),
                    has_thumbnail=request.selected_thumbnail_url is not None,
                )
                try:
                    response = await self._client.save_all_in_one(video_id, request)
                except ApiError as exc:
                    logger.error(
                        "all_in_one_save_failed", error_kind=exc.kind.value, status_code=exc.status_code
                    )
                    self.state.error = exc.message
                    self._notifier.toast(
                        "Save Failed",
                        "Failed to save video content. Please try again.",
                        variant=ToastVariant.DESTRUCTIVE,
                    )
                    return PublishReport(publish=StepResult.from_error(operation, exc))

                if not response.success:
                    message = response.message or "Save operation failed"
                    self.state.error = message
                    self._notifier.toast("Save Failed", message, variant=ToastVariant.DESTRUCTIVE)
                    return PublishReport(publish=StepResult.failure(operation, message, ErrorKind.SERVER))

                self.state.content_saved = True
                self._notifier.toast("Success!", "Your video content has been saved successfully.")
                return await self._publish(video_id)
        finally:
            self.state.is_saving = False

    async def retry_publish(self) -> PublishReport:
        """Publish again after a failed publish. The content is already saved."""
        operation = "youtube.upload"
        if not self.state.video_id or not self.state.content_saved:
            message = "Save the video content before publishing"
            return PublishReport(publish=StepResult.failure(operation, message, ErrorKind.VALIDATION))
        if self.state.is_saving:
            return PublishReport(
                publish=StepResult.failure(operation, "Publishing is already in progress", ErrorKind.BUSY)
            )
        self.state.is_saving = True
        try:
            with bind_video_id(self.state.video_id):
                return await self._publish(self.state.video_id)
        finally:
            self.state.is_saving = False

    async def _publish(self, video_id: str) -> PublishReport:
        self._notifier.toast(
            "Uploading to YouTube...", "Please wait while we upload your video to YouTube."
        )
        result = await publish_video(self._client, video_id)
        report = PublishReport(
            publish=result, warnings=[result.message] if result.is_warning else []
        )

        if result.outcome is Outcome.FAILED:
            self.state.error = result.message
            self._notifier.toast(
                "YouTube Upload Failed",
                "Video content was saved, but failed to upload to YouTube. Please try again.",
                variant=ToastVariant.DESTRUCTIVE,
            )
            return report

        if result.is_warning:
            self._notifier.toast("Video Uploaded (Thumbnail Warning)", result.message)
        else:
            self._notifier.toast(
                "YouTube Upload Successful!",
                "Your video has been uploaded to YouTube successfully.",
                variant=ToastVariant.SUCCESS,
            )
        await anyio.sleep(self.reset_delay_s)
        self.state.reset()
        return report
