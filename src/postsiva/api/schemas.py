"""Pydantic models for backend request and response bodies."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PrivacyStatus(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"
    UNLISTED = "unlisted"


class Timestamp(BaseModel):
    model_config = ConfigDict(frozen=True)

    time: str
    title: str


class Playlist(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str


class VideoUploadResponse(BaseModel):
    id: str = Field(..., min_length=1)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any) -> Any:
        if isinstance(v, int):
            return str(v)
        return v


class TitleGenerateResponse(BaseModel):
    success: bool = True
    generated_titles: List[str] = Field(default_factory=list)
    message: Optional[str] = None


class DescriptionGenerateResponse(BaseModel):
    success: bool = True
    generated_description: str = ""
    message: Optional[str] = None


class TimestampsGenerateResponse(BaseModel):
    success: bool = True
    generated_timestamps: List[Timestamp] = Field(default_factory=list)
    message: Optional[str] = None


class ThumbnailGenerateResponse(BaseModel):
    success: bool = True
    image_url: Optional[str] = None
    video_id: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    message: Optional[str] = None


class SaveResponse(BaseModel):
    """Generic save acknowledgement (titles/description/timestamps/all-in-one)."""

    success: bool = True
    message: Optional[str] = None
    video_id: Optional[str] = None


class ThumbnailSaveResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    video_id: Optional[str] = None
    thumbnail_url: Optional[str] = None
    saved_at: Optional[str] = None


class ThumbnailUploadResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    video_id: Optional[str] = None
    thumbnail_path: Optional[str] = None
    original_filename: Optional[str] = None
    file_size: Optional[int] = None
    content_type: Optional[str] = None
    saved_at: Optional[str] = None


class PrivacyStatusResponse(BaseModel):
    success: bool = True
    privacy_status: Optional[PrivacyStatus] = None
    message: Optional[str] = None


class PlaylistSelectResponse(BaseModel):
    playlist_name: Optional[str] = None
    playlist_id: Optional[str] = None
    playlist_exists: bool = False
    video_id: Optional[str] = None


class YouTubeUploadResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    youtube_video_id: Optional[str] = None


class AllInOneTitles(BaseModel):
    success: bool = False
    generated_titles: List[str] = Field(default_factory=list)


class AllInOneDescription(BaseModel):
    success: bool = False
    generated_description: str = ""


class AllInOneTimestamps(BaseModel):
    success: bool = False
    generated_timestamps: List[Timestamp] = Field(default_factory=list)


class GeneratedThumbnail(BaseModel):
    image_url: str


class AllInOneThumbnails(BaseModel):
    success: bool = False
    generated_thumbnails: List[GeneratedThumbnail] = Field(default_factory=list)


class AllInOneResult(BaseModel):
    """Everything the backend generated in one pass. Read-only."""

    model_config = ConfigDict(frozen=True)

    titles: AllInOneTitles = Field(default_factory=AllInOneTitles)
    description: AllInOneDescription = Field(default_factory=AllInOneDescription)
    timestamps: AllInOneTimestamps = Field(default_factory=AllInOneTimestamps)
    thumbnails: AllInOneThumbnails = Field(default_factory=AllInOneThumbnails)


class AllInOneProcessResponse(BaseModel):
    success: bool = True
    video_id: Optional[str] = None
    message: Optional[str] = None
    results: AllInOneResult = Field(default_factory=AllInOneResult)


class AllInOneSaveRequest(BaseModel):
    selected_title: str
    description: str
    timestamps: List[Timestamp] = Field(default_factory=list)
    selected_thumbnail_url: Optional[str] = None
    privacy_status: Optional[PrivacyStatus] = None
    playlist_name: Optional[str] = None

    @field_validator("selected_thumbnail_url", "playlist_name", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def to_payload(self) -> Dict[str, Any]:
        """Serialize, omitting optional fields that were not set."""
        return self.model_dump(mode="json", exclude_none=True)
