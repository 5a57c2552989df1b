"""Unit tests for the title/description/timestamps generators."""

from __future__ import annotations

import pytest

from postsiva.api.errors import ErrorKind
from postsiva.api.schemas import Timestamp
from postsiva.notifications.toasts import ToastVariant
from postsiva.upload.generators import DescriptionGenerator, TimestampsGenerator, TitleGenerator
from postsiva.upload.results import Outcome


@pytest.mark.asyncio
async def test_generate_titles_stores_variants(client, notifier, fake_backend) -> None:
    generator = TitleGenerator(client, notifier)

    result = await generator.generate("vid-1")

    assert result.outcome is Outcome.OK
    assert result.value == fake_backend.titles
    assert generator.generated == fake_backend.titles
    assert generator.is_loading is False
    assert notifier.titles == ["Titles Generated"]


@pytest.mark.asyncio
async def test_generate_failure_is_a_non_fatal_toast(client, notifier, fake_backend) -> None:
    fake_backend.fail("description.generate", 500)
    generator = DescriptionGenerator(client, notifier)

    result = await generator.generate("vid-1")

    assert result.is_failure
    assert result.error_kind is ErrorKind.SERVER
    assert generator.error
    assert generator.is_loading is False
    assert notifier.toasts[-1].title == "Failed to generate description"
    assert notifier.toasts[-1].variant is ToastVariant.DESTRUCTIVE

    # The user can retry.
    assert (await generator.generate("vid-1")).is_failure
    fake_backend._failures.clear()
    assert (await generator.generate("vid-1")).is_success


@pytest.mark.asyncio
async def test_empty_generation_is_a_failure(client, notifier, fake_backend) -> None:
    fake_backend.respond("titles.generate", {"success": True, "generated_titles": ["  "]})
    result = await TitleGenerator(client, notifier).generate("vid-1")
    assert result.is_failure
    assert result.error_kind is ErrorKind.INVALID_RESPONSE


@pytest.mark.asyncio
async def test_unsuccessful_flag_uses_server_message(client, notifier, fake_backend) -> None:
    fake_backend.respond(
        "timestamps.generate",
        {"success": False, "generated_timestamps": [], "message": "Video too short"},
    )
    result = await TimestampsGenerator(client, notifier).generate("vid-1")
    assert result.is_failure
    assert result.message == "Video too short"


@pytest.mark.asyncio
async def test_missing_video_id_makes_no_call(client, notifier, fake_backend) -> None:
    result = await TitleGenerator(client, notifier).generate("")
    assert result.error_kind is ErrorKind.VALIDATION
    assert fake_backend.calls == []
    assert notifier.titles == ["Missing Data"]


@pytest.mark.asyncio
async def test_results_after_close_are_dropped(client, notifier) -> None:
    generator = TitleGenerator(client, notifier)
    generator.close()

    result = await generator.generate("vid-1")

    assert result.is_cancelled
    assert generator.generated is None
    assert notifier.toasts == []


@pytest.mark.asyncio
async def test_save_title_validates_locally(client, notifier, fake_backend) -> None:
    generator = TitleGenerator(client, notifier)

    assert (await generator.save("vid-1", "   ")).error_kind is ErrorKind.VALIDATION
    assert (await generator.save("vid-1", "x" * 101)).error_kind is ErrorKind.VALIDATION
    assert fake_backend.calls == []

    result = await generator.save("vid-1", "  Good title  ")
    assert result.is_success
    assert fake_backend.calls_for("titles.save")[0].body == {"selected_title": "Good title"}
    assert notifier.titles[-1] == "Title Saved"


@pytest.mark.asyncio
async def test_save_rejected_by_server(client, notifier, fake_backend) -> None:
    fake_backend.respond("description.save", {"success": False, "message": "Too long"})
    result = await DescriptionGenerator(client, notifier).save("vid-1", "Body")
    assert result.is_failure
    assert result.message == "Too long"
    assert notifier.titles[-1] == "Failed to save description"


@pytest.mark.asyncio
async def test_save_timestamps_requires_complete_entries(client, notifier, fake_backend) -> None:
    generator = TimestampsGenerator(client, notifier)
    bad = [Timestamp(time="00:00", title="Intro"), Timestamp(time="", title="Broken")]

    assert (await generator.save("vid-1", bad)).error_kind is ErrorKind.VALIDATION
    assert fake_backend.calls == []

    good = [Timestamp(time="00:00", title="Intro")]
    assert (await generator.save("vid-1", good)).is_success
    assert notifier.titles[-1] == "Timestamps Saved"
