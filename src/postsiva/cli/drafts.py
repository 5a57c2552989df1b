"""Upload draft CLI commands."""

from __future__ import annotations

import click

from postsiva.cli.runtime import open_store
from postsiva.cli.ui import console, render_draft, render_drafts_table
from postsiva.storage.drafts import DraftStore


@click.group()
def drafts() -> None:
    """Inspect and discard saved upload drafts."""


@drafts.command("list")
def drafts_list() -> None:
    """List stored drafts."""
    store = DraftStore(open_store())
    video_ids = sorted(store.list_video_ids())
    if not video_ids:
        console.print("No drafts")
        return
    render_drafts_table((video_id, store.load(video_id)) for video_id in video_ids)


@drafts.command("show")
@click.argument("video_id")
def drafts_show(video_id: str) -> None:
    """Show one draft."""
    draft = DraftStore(open_store()).load(video_id)
    if draft is None:
        raise click.ClickException(f"No draft for video {video_id}")
    render_draft(video_id, draft)


@drafts.command("clear")
@click.argument("video_id")
@click.option("--yes", is_flag=True, help="Skip confirmation prompt")
def drafts_clear(video_id: str, yes: bool) -> None:
    """Delete one draft."""
    if not yes:
        click.confirm(f"Delete the draft for video {video_id}?", abort=True)
    DraftStore(open_store()).clear(video_id)
    console.print(f"Draft for {video_id} deleted")


def register(cli: click.Group) -> None:
    cli.add_command(drafts)
