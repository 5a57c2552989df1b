"""Upload pipeline: stepwise orchestrator, field generators and all-in-one flow."""

from postsiva.upload.all_in_one import AllInOneFlow, AllInOneState, AllInOneStep
from postsiva.upload.generators import (
    DescriptionGenerator,
    FieldGenerator,
    TimestampsGenerator,
    TitleGenerator,
)
from postsiva.upload.orchestrator import UploadOrchestrator
from postsiva.upload.results import Outcome, PublishReport, StepResult
from postsiva.upload.state import UploadContent, UploadState, UploadStep
from postsiva.upload.thumbnails import ThumbnailBatchState, ThumbnailGenerator
from postsiva.upload.videos import VideoUploader

__all__ = [
    "AllInOneFlow",
    "AllInOneState",
    "AllInOneStep",
    "DescriptionGenerator",
    "FieldGenerator",
    "Outcome",
    "PublishReport",
    "StepResult",
    "ThumbnailBatchState",
    "ThumbnailGenerator",
    "TimestampsGenerator",
    "TitleGenerator",
    "UploadContent",
    "UploadOrchestrator",
    "UploadState",
    "UploadStep",
    "VideoUploader",
]
