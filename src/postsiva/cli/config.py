"""Configuration CLI commands."""

from __future__ import annotations

import click
from rich.table import Table

from postsiva.cli.runtime import open_store
from postsiva.cli.ui import console
from postsiva.config import effective_backend_provider, get_settings, settings
from postsiva.storage.keys import GEMINI_API_KEY_PREVIEW, HAS_GEMINI_KEY, has_ai_credential


@click.group()
def config() -> None:
    """Inspect configuration."""


@config.command("show")
def config_show() -> None:
    """Show key configuration settings."""
    table = Table(title="Postsiva Configuration", show_lines=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("API Base URL", settings.api_base_url)
    table.add_row("Backend Provider", effective_backend_provider(get_settings()))
    table.add_row("State File", settings.state_file or "(in-memory)")
    table.add_row("Thumbnail Batch Size", str(settings.thumbnail_batch_size))
    table.add_row("Session Check Interval", f"{settings.session_check_interval_s:g}s")
    table.add_row(
        "Timeouts (generate/save/long)",
        f"{settings.generate_timeout_s:g}s / {settings.save_timeout_s:g}s / {settings.long_timeout_s:g}s",
    )
    table.add_row("AI Key Configured", "yes" if has_ai_credential(open_store()) else "no")
    table.add_row("Environment", settings.environment)

    console.print(table)


@config.command("ai-key")
@click.argument("api_key")
def config_ai_key(api_key: str) -> None:
    """Record that a Gemini API key is configured (only a masked preview is stored)."""
    api_key = api_key.strip()
    if len(api_key) < 8:
        raise click.ClickException("API key looks too short")
    store = open_store()
    preview = f"{api_key[:4]}...{api_key[-4:]}"
    store.set(HAS_GEMINI_KEY, "true")
    store.set(GEMINI_API_KEY_PREVIEW, preview)
    console.print(f"[green]Gemini API key saved[/green] ({preview})")


def register(cli: click.Group) -> None:
    cli.add_command(config)
