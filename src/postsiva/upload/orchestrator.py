"""Stepwise upload flow: upload, generate and save each field, then publish.

The orchestrator owns `UploadState` and keeps it consistent with the
outstanding network calls. Every successful save writes the draft for the
video (the saved value plus the step to resume at) and advances the step.
Publishing runs privacy, then playlist, then the YouTube publish. Only the
last of those can block the flow.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import anyio

from postsiva.api.client import BackendClient, ProgressCallback
from postsiva.api.errors import ErrorKind, LocalValidationError
from postsiva.api.schemas import Playlist, PrivacyStatus, Timestamp
from postsiva.config import settings
from postsiva.notifications.navigation import Confirm, Navigator, always_confirm
from postsiva.notifications.toasts import Notifier, ToastVariant
from postsiva.observability.logging import bind_video_id, get_logger
from postsiva.storage.drafts import DraftStore, UploadDraft
from postsiva.storage.local import KeyValueStore
from postsiva.upload.generators import DescriptionGenerator, TimestampsGenerator, TitleGenerator
from postsiva.upload.publishing import apply_playlist, apply_privacy, publish_video
from postsiva.upload.results import PublishReport, StepResult
from postsiva.upload.state import LOCAL_PREVIEW_SCHEME, UploadState, UploadStep, next_step
from postsiva.upload.thumbnails import ThumbnailGenerator
from postsiva.upload.videos import VideoUploader

logger = get_logger(__name__)

__all__ = ["UploadOrchestrator"]


class UploadOrchestrator:
    def __init__(
        self,
        client: BackendClient,
        store: KeyValueStore,
        notifier: Notifier,
        navigator: Navigator,
        *,
        video_id: str | None = None,
        confirm: Confirm = always_confirm,
        thumbnail_batch_size: int | None = None,
        redirect_delay_s: float | None = None,
        dashboard_path: str | None = None,
    ) -> None:
        self._client = client
        self._notifier = notifier
        self._navigator = navigator
        self._confirm = confirm
        self.drafts = DraftStore(store)
        self.state = UploadState(video_id=video_id)
        if video_id:
            self.state.current_step = UploadStep.TITLE

        self.uploader = VideoUploader(client, notifier)
        self.title_generator = TitleGenerator(client, notifier)
        self.description_generator = DescriptionGenerator(client, notifier)
        self.timestamps_generator = TimestampsGenerator(client, notifier)
        self.thumbnail_generator = ThumbnailGenerator(
            client, notifier, batch_size=thumbnail_batch_size
        )

        self.redirect_delay_s = (
            settings.publish_redirect_delay_s if redirect_delay_s is None else redirect_delay_s
        )
        self.dashboard_path = dashboard_path or settings.dashboard_path
        self._hydrated = False

    @property
    def video_id(self) -> str | None:
        return self.state.video_id

    @property
    def _generators(self) -> List[Any]:
        return [
            self.title_generator,
            self.description_generator,
            self.timestamps_generator,
            self.thumbnail_generator,
        ]

    # Lifecycle

    def mount(self) -> UploadDraft | None:
        """Attach to the view. The draft is read on the first mount only."""
        for generator in self._generators:
            generator.reopen()
        if self._hydrated or not self.state.video_id:
            return None
        self._hydrated = True
        draft = self.drafts.load(self.state.video_id)
        if draft is not None:
            self._hydrate(draft)
        return draft

    def unmount(self) -> None:
        for generator in self._generators:
            generator.close()

    def _hydrate(self, draft: UploadDraft) -> None:
        content = self.state.content
        if draft.selected_title:
            content.selected_title = draft.selected_title
        if draft.description:
            content.description = draft.description
        if draft.timestamps:
            content.timestamps = list(draft.timestamps)
        if draft.thumbnail_url:
            if draft.thumbnail_url not in content.thumbnails:
                content.thumbnails.append(draft.thumbnail_url)
            content.selected_thumbnail = draft.thumbnail_url
        if draft.privacy_status:
            content.selected_privacy = draft.privacy_status
        if draft.playlist:
            content.selected_playlist = draft.playlist
        if draft.step:
            try:
                self.state.current_step = UploadStep(draft.step)
            except ValueError:
                logger.warning("upload_draft_unknown_step", video_id=self.video_id, step=draft.step)
        logger.info("upload_draft_hydrated", video_id=self.video_id, step=self.state.current_step.value)

    # Upload

    async def upload_video(
        self, path: Union[str, Path], *, on_progress: ProgressCallback | None = None
    ) -> StepResult[str]:
        if self.state.is_uploading:
            return StepResult.failure("videos.upload", "An upload is already in progress", ErrorKind.BUSY)

        def _progress(percent: int) -> None:
            self.state.progress = percent
            if on_progress is not None:
                on_progress(percent)

        self.state.is_uploading = True
        self.state.progress = 0
        try:
            result = await self.uploader.upload(path, on_progress=_progress)
        finally:
            self.state.is_uploading = False

        if not result.is_success:
            self.state.reset()
            self.state.error = result.message
            return result

        self.state.video_id = result.value
        self.state.progress = 100
        self.state.published = False
        self.state.current_step = UploadStep.TITLE
        self._hydrated = True
        self.drafts.save(result.value, UploadDraft(step=UploadStep.TITLE.value))
        return result

    # Titles

    async def generate_titles(self) -> StepResult[List[str]]:
        video_id = self.video_id
        if not video_id:
            return self._missing_video("titles.generate")
        return await self.title_generator.generate(video_id)

    def select_title(self, choice: Union[int, str]) -> str:
        """Pick a generated title by index, or set a custom title."""
        if isinstance(choice, int):
            titles = self.title_generator.generated or []
            if not 0 <= choice < len(titles):
                raise LocalValidationError(f"No generated title at index {choice}")
            choice = titles[choice]
        self.state.content.selected_title = choice
        return choice

    async def save_title(self) -> StepResult[str]:
        video_id = self.video_id
        if not video_id:
            return self._missing_video("titles.save")
        result = await self.title_generator.save(video_id, self.state.content.selected_title)
        if result.is_success:
            self.state.content.selected_title = result.value.strip()
            self._advance(UploadStep.TITLE, selected_title=self.state.content.selected_title)
        return result

    # Description

    async def generate_description(self) -> StepResult[str]:
        video_id = self.video_id
        if not video_id:
            return self._missing_video("description.generate")
        result = await self.description_generator.generate(video_id)
        if result.is_success:
            self.state.content.description = result.value
        return result

    def set_description(self, text: str) -> None:
        self.state.content.description = text

    async def save_description(self) -> StepResult[str]:
        video_id = self.video_id
        if not video_id:
            return self._missing_video("description.save")
        result = await self.description_generator.save(video_id, self.state.content.description)
        if result.is_success:
            self._advance(UploadStep.DESCRIPTION, description=self.state.content.description)
        return result

    # Timestamps

    async def generate_timestamps(self) -> StepResult[List[Timestamp]]:
        video_id = self.video_id
        if not video_id:
            return self._missing_video("timestamps.generate")
        result = await self.timestamps_generator.generate(video_id)
        if result.is_success:
            self.state.content.timestamps = list(result.value)
        return result

    def set_timestamps(self, timestamps: Sequence[Union[Timestamp, Dict[str, str]]]) -> None:
        self.state.content.timestamps = [
            ts if isinstance(ts, Timestamp) else Timestamp.model_validate(ts) for ts in timestamps
        ]

    async def save_timestamps(self) -> StepResult[List[Timestamp]]:
        video_id = self.video_id
        if not video_id:
            return self._missing_video("timestamps.save")
        result = await self.timestamps_generator.save(video_id, self.state.content.timestamps)
        if result.is_success:
            self._advance(UploadStep.TIMESTAMPS, timestamps=self.state.content.timestamps)
        return result

    # Thumbnails

    async def generate_thumbnails(self) -> StepResult[List[str]]:
        video_id = self.video_id
        if not video_id:
            return self._missing_video("thumbnail.generate")
        result = await self.thumbnail_generator.generate(video_id)
        if result.is_success:
            content = self.state.content
            content.thumbnails = list(result.value)
            selected = content.selected_thumbnail
            if selected and selected not in content.thumbnails and not selected.startswith(
                LOCAL_PREVIEW_SCHEME
            ):
                content.selected_thumbnail = None
        return result

    async def upload_custom_thumbnail(self, path: Union[str, Path]) -> StepResult[str]:
        video_id = self.video_id
        if not video_id:
            return self._missing_video("thumbnail.upload")
        result = await self.thumbnail_generator.upload_custom(video_id, path)
        if result.is_success:
            content = self.state.content
            if result.value not in content.thumbnails:
                content.thumbnails.append(result.value)
            content.selected_thumbnail = result.value
        return result

    def select_thumbnail(self, choice: Union[int, str]) -> str:
        """Pick a thumbnail by index or URL. The URL must be one of `thumbnails`."""
        content = self.state.content
        if isinstance(choice, int):
            if not 0 <= choice < len(content.thumbnails):
                raise LocalValidationError(f"No thumbnail at index {choice}")
            choice = content.thumbnails[choice]
        content.select_thumbnail(choice)
        return choice

    async def save_thumbnail(self) -> StepResult[Any]:
        video_id = self.video_id
        if not video_id:
            return self._missing_video("thumbnail.save")
        url = self.state.content.selected_thumbnail or ""
        result = await self.thumbnail_generator.save(video_id, url)
        if result.is_success:
            self._advance(UploadStep.THUMBNAIL, thumbnail_url=url)
        return result

    # Publish settings

    def select_privacy(self, privacy: Union[PrivacyStatus, str]) -> PrivacyStatus:
        privacy = PrivacyStatus(privacy)
        self.state.content.selected_privacy = privacy
        if self.video_id:
            self.drafts.save(self.video_id, UploadDraft(privacy_status=privacy))
        return privacy

    def select_playlist(self, playlist: Optional[Playlist]) -> None:
        self.state.content.selected_playlist = playlist
        if not self.video_id:
            return
        if playlist is None:
            self.drafts.unset(self.video_id, "playlist")
        else:
            self.drafts.save(self.video_id, UploadDraft(playlist=playlist))

    # Publish

    async def handle_publish(
        self, intended_privacy: Union[PrivacyStatus, str, None] = None
    ) -> PublishReport:
        """Confirm, then publish with the privacy the user last selected.

        `intended_privacy` is the label of the button that was pressed. It is
        logged but never applied.
        """
        applied = self.state.content.selected_privacy
        prompt = f"Publish this video to YouTube as {applied.value}?"
        if not self._confirm(prompt):
            logger.info("publish_declined", video_id=self.video_id)
            return PublishReport(publish=StepResult.cancelled("youtube.upload", "Publish cancelled"))

        logger.info(
            "publish_requested",
            video_id=self.video_id,
            intended_privacy=PrivacyStatus(intended_privacy).value if intended_privacy else None,
            applied_privacy=applied.value,
        )
        return await self.handle_direct_upload()

    async def handle_direct_upload(self) -> PublishReport:
        operation = "youtube.upload"
        video_id = self.video_id
        if not video_id:
            return PublishReport(publish=self._missing_video(operation))
        if self.state.is_processing:
            logger.warning("publish_rejected_busy", video_id=video_id)
            return PublishReport(
                publish=StepResult.failure(operation, "Publishing is already in progress", ErrorKind.BUSY)
            )
        if self.state.published:
            logger.warning("publish_rejected_published", video_id=video_id)
            return PublishReport(
                publish=StepResult.failure(operation, "This video has already been published", ErrorKind.BUSY)
            )

        content = self.state.content
        self.state.is_processing = True
        self.state.error = None
        warnings: List[str] = []
        playlist_result: StepResult[str] | None = None
        try:
            with bind_video_id(video_id):
                privacy_result = await apply_privacy(self._client, video_id, content.selected_privacy)
                if privacy_result.is_warning:
                    warnings.append(privacy_result.message)
                    self._notifier.toast(
                        "Privacy Not Updated", privacy_result.message, variant=ToastVariant.WARNING
                    )

                if content.selected_playlist is not None:
                    playlist_result = await apply_playlist(
                        self._client, video_id, content.selected_playlist
                    )
                    if playlist_result.is_warning:
                        warnings.append(playlist_result.message)
                        self._notifier.toast(
                            "Playlist Not Updated", playlist_result.message, variant=ToastVariant.WARNING
                        )

                publish_result = await publish_video(self._client, video_id)
        finally:
            self.state.is_processing = False

        if publish_result.is_warning:
            warnings.append(publish_result.message)
        report = PublishReport(
            publish=publish_result,
            privacy=privacy_result,
            playlist=playlist_result,
            warnings=warnings,
        )

        if publish_result.is_failure:
            self.state.current_step = UploadStep.PREVIEW
            self.state.error = publish_result.message
            self._notifier.toast(
                "YouTube Upload Failed", publish_result.message, variant=ToastVariant.DESTRUCTIVE
            )
            return report

        self.state.published = True
        if publish_result.is_warning:
            self._notifier.toast("Video Uploaded (Thumbnail Warning)", publish_result.message)
        else:
            self._notifier.toast(
                "YouTube Upload Successful!",
                "Your video has been uploaded to YouTube successfully.",
                variant=ToastVariant.SUCCESS,
            )
        self.drafts.clear(video_id)
        logger.info(
            "publish_completed",
            video_id=video_id,
            outcome=report.outcome.value,
            youtube_video_id=publish_result.value,
        )

        await anyio.sleep(self.redirect_delay_s)
        self._navigator.navigate(self.dashboard_path)
        return report

    def cancel(self, confirm: Confirm | None = None) -> bool:
        """Discard the upload after confirmation. Returns whether it was discarded."""
        confirm = confirm or self._confirm
        if not confirm("Discard this upload? Your saved progress will be lost."):
            return False
        if self.video_id:
            self.drafts.clear(self.video_id)
        logger.info("upload_cancelled", video_id=self.video_id)
        self.state.reset()
        self.uploader.reset()
        for generator in self._generators:
            generator.clear()
        self._hydrated = False
        return True

    # Helpers

    def _missing_video(self, operation: str) -> StepResult[Any]:
        message = "Upload a video first"
        self._notifier.toast("Missing Video ID", message, variant=ToastVariant.DESTRUCTIVE)
        return StepResult.failure(operation, message, ErrorKind.VALIDATION)

    def _advance(self, step: UploadStep, **fields: Any) -> None:
        target = next_step(step)
        self.state.current_step = target
        self.drafts.save(self.video_id, UploadDraft(step=target.value, **fields))
        logger.info("upload_step_advanced", video_id=self.video_id, saved=step.value, step=target.value)
