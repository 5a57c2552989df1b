"""Shared CLI UI helpers (Rich formatting)."""

from __future__ import annotations

from typing import Iterable

from rich.console import Console
from rich.table import Table

from postsiva.storage.drafts import UploadDraft
from postsiva.upload.results import Outcome

console = Console()


def format_outcome(outcome: Outcome | str) -> str:
    """Return colorized outcome string for terminal output."""
    value = outcome.value if isinstance(outcome, Outcome) else str(outcome)
    colors = {
        Outcome.OK.value: "green",
        Outcome.WARNED.value: "yellow",
        Outcome.FAILED.value: "red",
        Outcome.CANCELLED.value: "grey62",
    }
    color = colors.get(value, "white")
    return f"[{color}]{value}[/{color}]"


def render_drafts_table(drafts: Iterable[tuple[str, UploadDraft | None]]) -> None:
    """Render a table of stored upload drafts using Rich."""
    table = Table(title="Upload Drafts", show_lines=False)
    table.add_column("Video ID", style="white")
    table.add_column("Step", style="magenta")
    table.add_column("Title", style="cyan")
    table.add_column("Privacy", style="white")
    table.add_column("Updated", style="white")

    for video_id, draft in drafts:
        if draft is None:
            table.add_row(video_id, "[red]corrupt[/red]", "-", "-", "-")
            continue
        table.add_row(
            video_id,
            draft.step or "-",
            draft.selected_title or "-",
            draft.privacy_status.value if draft.privacy_status else "-",
            draft.updated_at or "-",
        )

    console.print(table)


def render_draft(video_id: str, draft: UploadDraft) -> None:
    table = Table(title=f"Draft {video_id}", show_lines=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Step", draft.step or "-")
    table.add_row("Title", draft.selected_title or "-")
    table.add_row("Description", draft.description or "-")
    table.add_row(
        "Timestamps",
        "\n".join(f"{ts.time} {ts.title}" for ts in draft.timestamps or []) or "-",
    )
    table.add_row("Thumbnail", draft.thumbnail_url or "-")
    table.add_row("Privacy", draft.privacy_status.value if draft.privacy_status else "-")
    table.add_row("Playlist", draft.playlist.name if draft.playlist else "-")
    table.add_row("Updated", draft.updated_at or "-")

    console.print(table)
