"""Upload CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import anyio
import click
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn

from postsiva.api.errors import LocalValidationError
from postsiva.api.schemas import Playlist, PrivacyStatus
from postsiva.cli.runtime import build_client, confirm_prompt, navigator, notifier, open_store
from postsiva.cli.ui import console, format_outcome
from postsiva.upload.all_in_one import AllInOneFlow
from postsiva.upload.orchestrator import UploadOrchestrator
from postsiva.upload.results import PublishReport, StepResult
from postsiva.upload.state import UploadStep
from postsiva.upload.videos import require_ai_credential

_PRIVACY_CHOICES = [p.value for p in PrivacyStatus]


def _check(result: StepResult[Any]) -> None:
    if not result.is_success:
        raise click.ClickException(result.message or f"{result.operation} failed")


def _print_report(report: PublishReport) -> None:
    console.print(f"[bold]Publish[/bold] {format_outcome(report.outcome)}")
    for warning in report.warnings:
        console.print(f"  [yellow]![/yellow] {warning}")
    if report.publish.is_failure or report.publish.is_cancelled:
        raise click.ClickException(report.publish.message or "Publish did not complete")


async def _upload_with_progress(orchestrator: UploadOrchestrator, path: Path) -> StepResult[str]:
    with Progress(
        TextColumn("[cyan]Uploading[/cyan] {task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task(path.name, total=100)
        return await orchestrator.upload_video(
            path, on_progress=lambda percent: progress.update(task, completed=percent)
        )


async def _drive(
    orchestrator: UploadOrchestrator,
    *,
    title_index: int,
    thumbnail_index: int,
    privacy: str | None,
    playlist: Playlist | None,
) -> PublishReport:
    """Run every remaining step from the current one, then publish."""
    state = orchestrator.state
    try:
        if state.current_step is UploadStep.TITLE:
            _check(await orchestrator.generate_titles())
            orchestrator.select_title(title_index)
            _check(await orchestrator.save_title())
        if state.current_step is UploadStep.DESCRIPTION:
            _check(await orchestrator.generate_description())
            _check(await orchestrator.save_description())
        if state.current_step is UploadStep.TIMESTAMPS:
            _check(await orchestrator.generate_timestamps())
            _check(await orchestrator.save_timestamps())
        if state.current_step is UploadStep.THUMBNAIL:
            _check(await orchestrator.generate_thumbnails())
            orchestrator.select_thumbnail(thumbnail_index)
            _check(await orchestrator.save_thumbnail())
    except LocalValidationError as exc:
        raise click.ClickException(exc.message) from exc

    if privacy is not None:
        orchestrator.select_privacy(privacy)
    if playlist is not None:
        orchestrator.select_playlist(playlist)
    return await orchestrator.handle_publish(privacy)


def _playlist(playlist_id: str | None, playlist_name: str | None) -> Playlist | None:
    if not playlist_id:
        return None
    return Playlist(id=playlist_id, name=playlist_name or playlist_id)


@click.group()
def upload() -> None:
    """Upload videos and publish them to YouTube."""


def _publish_options(func: Any) -> Any:
    func = click.option("--yes", is_flag=True, help="Skip confirmation prompts")(func)
    func = click.option("--playlist-name", default=None, help="Playlist display name")(func)
    func = click.option("--playlist-id", default=None, help="Add the video to this playlist")(func)
    func = click.option(
        "--privacy",
        type=click.Choice(_PRIVACY_CHOICES, case_sensitive=False),
        default=None,
        help="Privacy status [default: the saved draft choice, else public]",
    )(func)
    func = click.option(
        "--thumbnail-index", default=0, show_default=True, type=int, help="0-based thumbnail choice"
    )(func)
    func = click.option(
        "--title-index", default=0, show_default=True, type=int, help="0-based title choice"
    )(func)
    return func


@upload.command("run")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@_publish_options
def upload_run(
    file: Path,
    title_index: int,
    thumbnail_index: int,
    privacy: str | None,
    playlist_id: str | None,
    playlist_name: str | None,
    yes: bool,
) -> None:
    """Upload FILE, generate and save every field, then publish."""
    store = open_store()
    ui_notifier = notifier()
    if not require_ai_credential(store, ui_notifier):
        raise click.ClickException("Configure an AI key first: postsiva config ai-key KEY")
    orchestrator = UploadOrchestrator(
        build_client(store), store, ui_notifier, navigator(), confirm=confirm_prompt(yes)
    )

    async def _run() -> PublishReport:
        orchestrator.mount()
        try:
            _check(await _upload_with_progress(orchestrator, file))
            console.print(f"Video ID: [bold]{orchestrator.video_id}[/bold]")
            return await _drive(
                orchestrator,
                title_index=title_index,
                thumbnail_index=thumbnail_index,
                privacy=privacy,
                playlist=_playlist(playlist_id, playlist_name),
            )
        finally:
            orchestrator.unmount()

    _print_report(anyio.run(_run))


@upload.command("resume")
@click.argument("video_id")
@_publish_options
def upload_resume(
    video_id: str,
    title_index: int,
    thumbnail_index: int,
    privacy: str | None,
    playlist_id: str | None,
    playlist_name: str | None,
    yes: bool,
) -> None:
    """Continue an upload from its saved draft."""
    store = open_store()
    orchestrator = UploadOrchestrator(
        build_client(store),
        store,
        notifier(),
        navigator(),
        video_id=video_id,
        confirm=confirm_prompt(yes),
    )

    async def _run() -> PublishReport:
        draft = orchestrator.mount()
        try:
            if draft is None:
                console.print(f"[yellow]No draft for {video_id}; starting at the title step[/yellow]")
            else:
                console.print(f"Resuming at step [magenta]{orchestrator.state.current_step.value}[/magenta]")
            return await _drive(
                orchestrator,
                title_index=title_index,
                thumbnail_index=thumbnail_index,
                privacy=privacy,
                playlist=_playlist(playlist_id, playlist_name),
            )
        finally:
            orchestrator.unmount()

    _print_report(anyio.run(_run))


@upload.command("all-in-one")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@_publish_options
def upload_all_in_one(
    file: Path,
    title_index: int,
    thumbnail_index: int,
    privacy: str | None,
    playlist_id: str | None,
    playlist_name: str | None,
    yes: bool,
) -> None:
    """Upload FILE, generate everything in one pass, save and publish."""
    store = open_store()
    flow = AllInOneFlow(build_client(store), store, notifier())

    privacy = privacy or PrivacyStatus.PUBLIC.value

    async def _run() -> PublishReport:
        _check(await flow.start(file))
        try:
            if flow.state.titles:
                flow.select_title(title_index)
            if flow.state.has_thumbnails:
                flow.select_thumbnail(thumbnail_index)
            else:
                console.print("[yellow]No thumbnails were generated; publishing without one[/yellow]")
        except LocalValidationError as exc:
            raise click.ClickException(exc.message) from exc
        flow.select_privacy(privacy)
        flow.set_playlist_name(playlist_name or playlist_id or "")
        if not yes:
            click.confirm(f"Publish this video to YouTube as {privacy}?", abort=True)
        return await flow.save()

    _print_report(anyio.run(_run))


def register(cli: click.Group) -> None:
    cli.add_command(upload)
