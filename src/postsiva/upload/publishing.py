"""Publish sequence calls shared by the stepwise and all-in-one flows.

Privacy and playlist updates are metadata: failures come back as `warned`
results and never stop the publish. Publishing itself is fatal, except when
the backend reports that only the custom thumbnail was not applied.
"""

from __future__ import annotations

from typing import Any, Mapping

from postsiva.api.client import BackendClient
from postsiva.api.errors import ApiError, ErrorKind, is_thumbnail_only_failure
from postsiva.api.schemas import Playlist, PrivacyStatus
from postsiva.observability.logging import get_logger
from postsiva.upload.results import StepResult

logger = get_logger(__name__)

__all__ = [
    "THUMBNAIL_WARNING_MESSAGE",
    "apply_playlist",
    "apply_privacy",
    "publish_video",
]

THUMBNAIL_WARNING_MESSAGE = (
    "Video uploaded to YouTube, but custom thumbnail couldn't be set. "
    "You may need to verify your YouTube account or set it manually."
)


async def apply_privacy(
    client: BackendClient, video_id: str, privacy: PrivacyStatus
) -> StepResult[str]:
    operation = "privacy.set"
    privacy = PrivacyStatus(privacy)
    try:
        response = await client.set_privacy_status(video_id, privacy)
    except ApiError as exc:
        logger.warning(
            "privacy_update_failed",
            video_id=video_id,
            privacy_status=privacy.value,
            error_kind=exc.kind.value,
            status_code=exc.status_code,
        )
        return StepResult.warning(
            operation, f"Privacy status was not updated: {exc.message}", error_kind=exc.kind
        )
    if not response.success:
        message = response.message or "Privacy status was not updated"
        logger.warning("privacy_update_rejected", video_id=video_id, privacy_status=privacy.value)
        return StepResult.warning(operation, message, error_kind=ErrorKind.SERVER)

    applied = response.privacy_status.value if response.privacy_status else privacy.value
    logger.info("privacy_updated", video_id=video_id, privacy_status=applied)
    return StepResult.success(operation, applied)


async def apply_playlist(
    client: BackendClient, video_id: str, playlist: Playlist
) -> StepResult[str]:
    operation = "playlist.select"
    try:
        response = await client.select_playlist(video_id, playlist.id)
    except ApiError as exc:
        logger.warning(
            "playlist_select_failed",
            video_id=video_id,
            playlist_id=playlist.id,
            error_kind=exc.kind.value,
            status_code=exc.status_code,
        )
        return StepResult.warning(
            operation, f"Video was not added to playlist: {exc.message}", error_kind=exc.kind
        )
    name = response.playlist_name or playlist.name
    logger.info(
        "playlist_selected",
        video_id=video_id,
        playlist_id=playlist.id,
        playlist_name=name,
        playlist_exists=response.playlist_exists,
    )
    return StepResult.success(operation, name)


def _thumbnail_warning(exc: ApiError) -> StepResult[str]:
    details: Mapping[str, Any] = exc.payload.get("details") or {}
    youtube_video_id = str(details.get("youtube_video_id") or "")
    return StepResult.warning(
        "youtube.upload",
        THUMBNAIL_WARNING_MESSAGE,
        value=youtube_video_id,
        error_kind=ErrorKind.THUMBNAIL_ONLY,
    )


async def publish_video(client: BackendClient, video_id: str) -> StepResult[str]:
    """Publish to YouTube. The result value is the YouTube video id."""
    operation = "youtube.upload"
    logger.info("youtube_publish_started", video_id=video_id)
    try:
        response = await client.publish_to_youtube(video_id)
    except ApiError as exc:
        if is_thumbnail_only_failure(exc):
            result = _thumbnail_warning(exc)
            logger.warning(
                "youtube_publish_thumbnail_failed",
                video_id=video_id,
                youtube_video_id=result.value,
            )
            return result
        logger.error(
            "youtube_publish_failed",
            video_id=video_id,
            error_kind=exc.kind.value,
            status_code=exc.status_code,
        )
        return StepResult.from_error(operation, exc)

    if not response.success:
        message = response.message or "YouTube upload failed"
        logger.error("youtube_publish_rejected", video_id=video_id, message=message)
        return StepResult.failure(operation, message, ErrorKind.SERVER)

    logger.info(
        "youtube_publish_completed",
        video_id=video_id,
        youtube_video_id=response.youtube_video_id,
    )
    return StepResult.success(
        operation,
        response.youtube_video_id or "",
        response.message or "Video uploaded to YouTube",
    )
