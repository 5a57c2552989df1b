"""Unit tests for toast and navigation adapters."""

from __future__ import annotations

import io

from rich.console import Console

from postsiva.notifications.navigation import ConsoleNavigator, always_confirm, never_confirm
from postsiva.notifications.toasts import ConsoleNotifier, RecordingNotifier, ToastVariant


def _console() -> tuple[Console, io.StringIO]:
    buffer = io.StringIO()
    return Console(file=buffer, width=120, color_system=None), buffer


def test_console_notifier_prints_title_and_description() -> None:
    console, buffer = _console()
    ConsoleNotifier(console).toast("Title Saved", "Title saved successfully.", variant=ToastVariant.SUCCESS)
    assert buffer.getvalue().strip() == "Title Saved Title saved successfully."


def test_console_navigator_tracks_current_path() -> None:
    console, buffer = _console()
    navigator = ConsoleNavigator(console)
    navigator.navigate("/dashboard")
    assert navigator.current == "/dashboard"
    assert "/dashboard" in buffer.getvalue()


def test_recording_notifier_filters_by_variant() -> None:
    notifier = RecordingNotifier()
    notifier.toast("A")
    notifier.toast("B", variant=ToastVariant.WARNING)
    assert [t.title for t in notifier.by_variant(ToastVariant.WARNING)] == ["B"]
    assert notifier.titles == ["A", "B"]


def test_confirm_helpers() -> None:
    assert always_confirm("Publish?") is True
    assert never_confirm("Publish?") is False
