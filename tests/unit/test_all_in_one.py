"""Unit tests for the all-in-one upload flow."""

from __future__ import annotations

import pytest

from postsiva.api.errors import ErrorKind, LocalValidationError
from postsiva.upload.all_in_one import AllInOneFlow, AllInOneStep
from postsiva.upload.results import Outcome


@pytest.fixture
def flow(client, ai_store, notifier) -> AllInOneFlow:
    return AllInOneFlow(client, ai_store, notifier, reset_delay_s=0)


@pytest.mark.asyncio
async def test_start_prefills_review_form(flow, fake_backend, video_file) -> None:
    result = await flow.start(video_file)

    state = flow.state
    assert result.is_success
    assert state.step is AllInOneStep.REVIEW
    assert state.video_id == "vid-1"
    assert state.selected_title == fake_backend.titles[0]
    assert state.description == fake_backend.description
    assert len(state.timestamps) == 3
    assert state.selected_thumbnail == state.thumbnails[0]
    assert fake_backend.operations() == ["videos.upload", "all_in_one.process"]


@pytest.mark.asyncio
async def test_start_requires_ai_credential(client, store, notifier, fake_backend, video_file) -> None:
    flow = AllInOneFlow(client, store, notifier)

    result = await flow.start(video_file)

    assert result.error_kind is ErrorKind.VALIDATION
    assert fake_backend.calls == []
    assert notifier.titles == ["Gemini API Key Required"]


@pytest.mark.asyncio
async def test_processing_failure_returns_to_upload(flow, fake_backend, notifier, video_file) -> None:
    fake_backend.fail("all_in_one.process", 504)

    result = await flow.start(video_file)

    assert result.is_failure
    assert flow.state.step is AllInOneStep.UPLOAD
    assert flow.state.video_id is None
    assert "Processing Failed" in notifier.titles


@pytest.mark.asyncio
async def test_no_thumbnails_saves_without_thumbnail(flow, fake_backend, video_file, notifier) -> None:
    fake_backend.all_in_one_thumbnail_count = 0
    await flow.start(video_file)
    assert flow.state.has_thumbnails is False
    assert flow.state.selected_thumbnail == ""

    report = await flow.save()

    body = fake_backend.calls_for("all_in_one.save")[0].body
    assert "selected_thumbnail_url" not in body
    assert "playlist_name" not in body
    assert body["privacy_status"] == "public"
    assert report.outcome is Outcome.OK
    assert fake_backend.operations()[-2:] == ["all_in_one.save", "youtube.upload"]
    assert notifier.titles[-3:] == ["Success!", "Uploading to YouTube...", "YouTube Upload Successful!"]
    # The form resets for the next video.
    assert flow.state.step is AllInOneStep.UPLOAD
    assert flow.state.video_id is None


@pytest.mark.asyncio
async def test_review_edits_are_sent(flow, fake_backend, video_file) -> None:
    await flow.start(video_file)
    flow.select_title(2)
    flow.select_thumbnail(1)
    flow.select_privacy("unlisted")
    flow.set_playlist_name("Tutorials")

    await flow.save()

    body = fake_backend.calls_for("all_in_one.save")[0].body
    assert body["selected_title"] == fake_backend.titles[2]
    assert body["selected_thumbnail_url"].endswith("/1.png")
    assert body["privacy_status"] == "unlisted"
    assert body["playlist_name"] == "Tutorials"


@pytest.mark.asyncio
async def test_thumbnail_must_come_from_generated_set(flow, video_file) -> None:
    await flow.start(video_file)
    with pytest.raises(LocalValidationError):
        flow.select_thumbnail("https://elsewhere/x.png")


@pytest.mark.asyncio
async def test_missing_fields_block_save(flow, fake_backend, notifier, video_file) -> None:
    await flow.start(video_file)
    flow.set_description("   ")

    report = await flow.save()

    assert report.publish.error_kind is ErrorKind.VALIDATION
    assert notifier.titles[-1] == "Missing Fields"
    assert fake_backend.calls_for("all_in_one.save") == []


@pytest.mark.asyncio
async def test_save_without_video(flow, notifier) -> None:
    report = await flow.save()
    assert report.publish.is_failure
    assert notifier.titles == ["Error"]


@pytest.mark.asyncio
async def test_save_failure_does_not_publish(flow, fake_backend, notifier, video_file) -> None:
    await flow.start(video_file)
    fake_backend.fail("all_in_one.save", 500)

    report = await flow.save()

    assert report.publish.operation == "all_in_one.save"
    assert report.outcome is Outcome.FAILED
    assert flow.state.content_saved is False
    assert fake_backend.calls_for("youtube.upload") == []
    assert notifier.titles[-1] == "Save Failed"


@pytest.mark.asyncio
async def test_publish_failure_keeps_form_for_retry(flow, fake_backend, notifier, video_file) -> None:
    await flow.start(video_file)
    fake_backend.fail("youtube.upload", 500, times=1)

    failed = await flow.save()

    assert failed.outcome is Outcome.FAILED
    assert flow.state.content_saved is True
    assert flow.state.step is AllInOneStep.REVIEW
    assert notifier.titles[-1] == "YouTube Upload Failed"

    retried = await flow.retry_publish()

    assert retried.outcome is Outcome.OK
    assert len(fake_backend.calls_for("all_in_one.save")) == 1
    assert len(fake_backend.calls_for("youtube.upload")) == 2
    assert flow.state.video_id is None


@pytest.mark.asyncio
async def test_retry_requires_saved_content(flow) -> None:
    report = await flow.retry_publish()
    assert report.publish.error_kind is ErrorKind.VALIDATION


@pytest.mark.asyncio
async def test_thumbnail_only_publish_failure(flow, fake_backend, notifier, video_file) -> None:
    await flow.start(video_file)
    fake_backend.fail_thumbnail_on_publish("yt-7")

    report = await flow.save()

    assert report.outcome is Outcome.WARNED
    assert report.publish.value == "yt-7"
    assert notifier.titles[-1] == "Video Uploaded (Thumbnail Warning)"
    assert flow.state.step is AllInOneStep.UPLOAD
