"""Session CLI commands."""

from __future__ import annotations

import anyio
import click
from rich.table import Table

from postsiva.api.errors import LocalValidationError
from postsiva.cli.runtime import confirm_prompt, navigator, notifier, open_store
from postsiva.cli.ui import console
from postsiva.session import SessionGuard, SessionManager, is_session_valid


@click.group()
def session() -> None:
    """Manage the local login session."""


@session.command("status")
def session_status() -> None:
    """Show the stored session and whether it is valid."""
    record = SessionManager(open_store()).current()
    valid = is_session_valid(record)

    table = Table(title="Session", show_lines=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Valid", "[green]yes[/green]" if valid else "[red]no[/red]")
    table.add_row("User ID", record.user_id or "-")
    table.add_row("Active User ID", record.active_user_id or "-")
    table.add_row("Session ID", record.session_id or "-")
    table.add_row("Token", "set" if record.token else "-")
    console.print(table)


@session.command("login")
@click.option("--token", required=True, help="Auth token returned by the backend")
@click.option("--user-id", required=True, help="Backend user id")
@click.option("--name", default=None, help="Display name")
@click.option("--email", default=None, help="Account email")
@click.option("--yes", is_flag=True, help="Switch accounts without prompting")
def session_login(token: str, user_id: str, name: str | None, email: str | None, yes: bool) -> None:
    """Store a session for a user."""
    user = {"id": user_id}
    if name:
        user["name"] = name
    if email:
        user["email"] = email
    try:
        switched = SessionManager(open_store()).login(token, user, confirm=confirm_prompt(yes))
    except LocalValidationError as exc:
        raise click.ClickException(exc.message) from exc
    if not switched:
        console.print("[yellow]Kept the current session[/yellow]")
        return
    console.print(f"[green]Logged in[/green] as user {user_id}")


@session.command("logout")
def session_logout() -> None:
    """Clear the stored session."""
    SessionManager(open_store()).logout()
    console.print("Logged out")


@session.command("watch")
@click.option(
    "--interval",
    default=None,
    type=float,
    help="Check interval in seconds (default: SESSION_CHECK_INTERVAL_S)",
)
def session_watch(interval: float | None) -> None:
    """Watch the stored session until it ends."""
    store = open_store()
    record = SessionManager(store).current()
    if not is_session_valid(record):
        raise click.ClickException("No valid session to watch")

    guard = SessionGuard(store, notifier(), navigator(), interval=interval)
    guard.adopt(record.identity)
    console.print(f"Watching session for user {record.user_id} (Ctrl+C to stop)")

    async def _watch() -> None:
        async with anyio.create_task_group() as tg:
            await guard.start(tg)
            while guard.identity is not None:
                await anyio.sleep(guard.interval)
            guard.stop()

    anyio.run(_watch)


def register(cli: click.Group) -> None:
    cli.add_command(session)
