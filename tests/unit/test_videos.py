"""Unit tests for the raw video uploader and the AI credential check."""

from __future__ import annotations

import pytest

from postsiva.api.errors import ErrorKind
from postsiva.upload.videos import VideoUploader, guess_video_type, require_ai_credential


@pytest.mark.asyncio
async def test_upload_tracks_progress_and_id(client, notifier, video_file) -> None:
    uploader = VideoUploader(client, notifier)
    seen: list[int] = []

    result = await uploader.upload(video_file, on_progress=seen.append)

    assert result.is_success
    assert result.value == "vid-1"
    assert uploader.video_id == "vid-1"
    assert uploader.progress == 100
    assert uploader.is_uploading is False
    assert seen[-1] == 100
    assert notifier.titles == ["Video Uploaded"]


@pytest.mark.asyncio
async def test_missing_or_non_video_file_is_rejected(client, notifier, fake_backend, tmp_path, image_file) -> None:
    uploader = VideoUploader(client, notifier)

    missing = await uploader.upload(tmp_path / "nope.mp4")
    wrong_type = await uploader.upload(image_file)

    assert missing.error_kind is ErrorKind.VALIDATION
    assert wrong_type.message == "Please select a valid video file"
    assert fake_backend.calls == []


@pytest.mark.asyncio
async def test_api_failure_resets_progress(client, notifier, fake_backend, video_file) -> None:
    fake_backend.fail("videos.upload", 413, {"message": "File too large"})
    uploader = VideoUploader(client, notifier)

    result = await uploader.upload(video_file)

    assert result.is_failure
    assert uploader.progress == 0
    assert uploader.video_id is None
    assert uploader.error == result.message
    assert notifier.titles == ["Upload Failed"]


@pytest.mark.asyncio
async def test_second_upload_while_busy_is_refused(client, notifier, fake_backend, video_file) -> None:
    uploader = VideoUploader(client, notifier)
    uploader.is_uploading = True

    result = await uploader.upload(video_file)

    assert result.error_kind is ErrorKind.BUSY
    assert fake_backend.calls == []


def test_guess_video_type(tmp_path) -> None:
    assert guess_video_type(tmp_path / "a.mp4") == "video/mp4"
    assert guess_video_type(tmp_path / "a.txt") is None


def test_require_ai_credential(store, ai_store, notifier) -> None:
    assert require_ai_credential(ai_store, notifier) is True
    assert notifier.toasts == []


def test_missing_ai_credential_shows_toast(store, notifier) -> None:
    assert require_ai_credential(store, notifier) is False
    assert notifier.titles == ["Gemini API Key Required"]
