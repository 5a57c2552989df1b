"""Unit tests for the thumbnail batch generator."""

from __future__ import annotations

import anyio
import pytest

from postsiva.api.client import BackendClient
from postsiva.api.errors import ErrorKind
from postsiva.notifications.toasts import ToastVariant
from postsiva.upload.results import Outcome
from postsiva.upload.thumbnails import ThumbnailBatchState, ThumbnailGenerator


def _generator(client, notifier, **kwargs) -> ThumbnailGenerator:
    kwargs.setdefault("stagger_s", 0)
    return ThumbnailGenerator(client, notifier, **kwargs)


@pytest.mark.asyncio
async def test_full_batch_succeeds(client, notifier, fake_backend) -> None:
    generator = _generator(client, notifier)

    result = await generator.generate("vid-1")

    assert result.outcome is Outcome.OK
    assert len(result.value) == 5
    assert len(fake_backend.calls_for("thumbnail.generate")) == 5
    assert generator.state.generated_thumbnails == result.value
    assert generator.state.thumbnail_loading_states == [False] * 5
    assert generator.state.is_loading is False
    assert notifier.toasts[-1].description == "All 5 thumbnails generated successfully!"


@pytest.mark.asyncio
async def test_partial_batch_is_a_warning_and_compacted(client, notifier, fake_backend) -> None:
    fake_backend.thumbnail_failures = {1, 3}
    generator = _generator(client, notifier)

    result = await generator.generate("vid-1")

    assert result.outcome is Outcome.WARNED
    assert result.error_kind is ErrorKind.PARTIAL
    assert len(result.value) == 3
    assert None not in generator.state.generated_thumbnails
    assert result.message == "3 out of 5 thumbnails generated successfully."
    assert notifier.toasts[-1].variant is ToastVariant.WARNING


@pytest.mark.asyncio
async def test_zero_successes_fail_the_batch(client, notifier, fake_backend) -> None:
    fake_backend.thumbnail_failures = {0, 1, 2, 3, 4}
    generator = _generator(client, notifier)

    result = await generator.generate("vid-1")

    assert result.is_failure
    assert result.message.startswith("Failed to generate any thumbnails")
    assert generator.state.error == result.message
    assert generator.state.thumbnail_loading_states == [False] * 5


@pytest.mark.asyncio
async def test_out_of_order_settlement_keeps_slots(client, notifier, fake_backend) -> None:
    # Later requests finish first.
    fake_backend.thumbnail_delays = [0.08, 0.06, 0.04, 0.02, 0.0]
    generator = _generator(client, notifier, stagger_s=0.005)
    snapshots: list[list[bool]] = []

    async def _watch() -> None:
        while generator.state.is_loading or not snapshots:
            snapshots.append(list(generator.state.thumbnail_loading_states))
            await anyio.sleep(0.005)

    async with anyio.create_task_group() as tg:
        tg.start_soon(_watch)
        result = await generator.generate("vid-1")

    assert result.outcome is Outcome.OK
    # Each URL lands in the slot of the request that produced it.
    assert [url.rsplit("/", 1)[-1] for url in result.value] == [f"{n}.png" for n in range(1, 6)]
    # Some flags cleared while others were still loading.
    assert any(True in s and False in s for s in snapshots)


@pytest.mark.asyncio
async def test_single_thumbnail_mode(client, notifier, fake_backend) -> None:
    generator = _generator(client, notifier, batch_size=1)
    result = await generator.generate("vid-1")
    assert result.outcome is Outcome.OK
    assert len(fake_backend.calls_for("thumbnail.generate")) == 1
    assert notifier.toasts[-1].description == "Thumbnail generated successfully."


def test_batch_size_must_be_one_or_five(client, notifier) -> None:
    with pytest.raises(ValueError):
        ThumbnailGenerator(client, notifier, batch_size=3)


@pytest.mark.asyncio
async def test_stagger_delays_dispatch(notifier, fake_backend) -> None:
    started: list[float] = []
    transport = fake_backend.transport()
    client = BackendClient(base_url="http://testserver", transport=transport)
    original = client.generate_thumbnail

    async def _timed(video_id: str):
        started.append(anyio.current_time())
        return await original(video_id)

    client.generate_thumbnail = _timed  # type: ignore[method-assign]
    await _generator(client, notifier, stagger_s=0.02).generate("vid-1")

    offsets = sorted(t - min(started) for t in started)
    assert offsets[-1] >= 0.07


@pytest.mark.asyncio
async def test_closed_generator_drops_batch(client, notifier) -> None:
    generator = _generator(client, notifier)
    generator.close()
    result = await generator.generate("vid-1")
    assert result.is_cancelled
    assert notifier.toasts == []


@pytest.mark.asyncio
async def test_save_validates_url_without_calling(client, notifier, fake_backend) -> None:
    generator = _generator(client, notifier)

    assert (await generator.save("vid-1", "")).error_kind is ErrorKind.VALIDATION
    result = await generator.save("vid-1", "ftp://cdn/x.png")
    assert result.message == "Invalid thumbnail URL format"
    assert fake_backend.calls == []

    ok = await generator.save("vid-1", "https://cdn/x.png")
    assert ok.is_success
    assert ok.value.thumbnail_url == "https://cdn/x.png"


@pytest.mark.asyncio
async def test_save_with_success_false_is_a_failure(client, notifier, fake_backend) -> None:
    fake_backend.respond("thumbnail.save", {"success": False, "message": "Not allowed"})
    result = await _generator(client, notifier).save("vid-1", "https://cdn/x.png")
    assert result.is_failure
    assert result.message == "Not allowed"


@pytest.mark.asyncio
async def test_upload_custom_appends_to_existing(client, notifier, image_file) -> None:
    generator = _generator(client, notifier)
    await generator.generate("vid-1")

    result = await generator.upload_custom("vid-1", image_file)

    assert result.value == "http://testserver/uploads/thumbnails/vid-1/custom.png"
    assert len(generator.state.generated_thumbnails) == 6
    assert generator.state.generated_thumbnails[-1] == result.value


@pytest.mark.asyncio
async def test_upload_custom_rejects_non_images(client, notifier, fake_backend, video_file) -> None:
    result = await _generator(client, notifier).upload_custom("vid-1", video_file)
    assert result.error_kind is ErrorKind.VALIDATION
    assert notifier.titles == ["Invalid File"]
    assert fake_backend.calls == []


def test_clear_resets_batch_state() -> None:
    state = ThumbnailBatchState(batch_size=5)
    assert state.generated_thumbnails == [None] * 5
    assert state.thumbnails == []

    state.init_batch()
    state.set_thumbnail(2, "https://cdn/2.png")
    assert state.generated_thumbnails == [None, None, "https://cdn/2.png", None, None]
    assert state.thumbnails == ["https://cdn/2.png"]

    state.clear()

    assert state.generated_thumbnails == [None] * 5
    assert state.thumbnails == []
    assert state.thumbnail_loading_states == [False] * 5
    assert state.is_loading is False


def test_single_slot_batch_starts_with_one_empty_slot() -> None:
    state = ThumbnailBatchState(batch_size=1)
    assert state.generated_thumbnails == [None]
    assert state.thumbnail_loading_states == [False]
