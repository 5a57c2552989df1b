"""Upload flow state."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from postsiva.api.errors import LocalValidationError
from postsiva.api.schemas import Playlist, PrivacyStatus, Timestamp

LOCAL_PREVIEW_SCHEME = "file://"


class UploadStep(str, Enum):
    UPLOAD = "upload"
    TITLE = "title"
    DESCRIPTION = "description"
    TIMESTAMPS = "timestamps"
    THUMBNAIL = "thumbnail"
    PREVIEW = "preview"


STEP_ORDER: List[UploadStep] = list(UploadStep)


def next_step(step: UploadStep) -> UploadStep:
    """Step after `step`; `preview` is terminal."""
    index = STEP_ORDER.index(step)
    return STEP_ORDER[min(index + 1, len(STEP_ORDER) - 1)]


@dataclass
class UploadContent:
    thumbnails: List[str] = field(default_factory=list)
    selected_thumbnail: Optional[str] = None
    selected_title: str = ""
    description: str = ""
    timestamps: List[Timestamp] = field(default_factory=list)
    selected_privacy: PrivacyStatus = PrivacyStatus.PUBLIC
    selected_playlist: Optional[Playlist] = None

    def select_thumbnail(self, url: str) -> None:
        """Select a generated/uploaded thumbnail or a local preview file."""
        if url not in self.thumbnails and not url.startswith(LOCAL_PREVIEW_SCHEME):
            raise LocalValidationError("Selected thumbnail is not one of the available thumbnails")
        self.selected_thumbnail = url


@dataclass
class UploadState:
    current_step: UploadStep = UploadStep.UPLOAD
    is_processing: bool = False
    is_uploading: bool = False
    published: bool = False
    progress: int = 0
    video_id: Optional[str] = None
    error: Optional[str] = None
    content: UploadContent = field(default_factory=UploadContent)

    def reset(self) -> None:
        fresh = UploadState()
        self.current_step = fresh.current_step
        self.is_processing = fresh.is_processing
        self.is_uploading = fresh.is_uploading
        self.published = fresh.published
        self.progress = fresh.progress
        self.video_id = fresh.video_id
        self.error = fresh.error
        self.content = fresh.content
