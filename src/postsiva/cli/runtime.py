"""Wiring shared by CLI commands: local store, backend client and UI adapters."""

from __future__ import annotations

import click

from postsiva.api.client import BackendClient, create_backend_client
from postsiva.api.errors import ProviderDisabledError
from postsiva.cli.ui import console
from postsiva.config import settings
from postsiva.notifications.navigation import Confirm, ConsoleNavigator
from postsiva.notifications.toasts import ConsoleNotifier
from postsiva.storage.local import LocalStorage, StorageContext


def open_store() -> StorageContext:
    """Open a context on the configured state file (in-memory when STATE_FILE is empty)."""
    return LocalStorage(settings.state_file or None).context()


def build_client(store: StorageContext) -> BackendClient:
    try:
        return create_backend_client(store)
    except ProviderDisabledError as exc:
        raise click.ClickException(exc.message) from exc


def notifier() -> ConsoleNotifier:
    return ConsoleNotifier(console)


def navigator() -> ConsoleNavigator:
    return ConsoleNavigator(console)


def confirm_prompt(assume_yes: bool) -> Confirm:
    def _confirm(prompt: str) -> bool:
        if assume_yes:
            return True
        return click.confirm(prompt, default=False)

    return _confirm
