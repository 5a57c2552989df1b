"""Postsiva command-line interface.

The CLI is organized into submodules under `postsiva.cli.*`, one per command
group.
"""

from __future__ import annotations

import click

from postsiva.app_version import get_app_version
from postsiva.observability import init_observability


@click.group()
@click.version_option(version=get_app_version(), prog_name="postsiva")
def cli() -> None:
    """Postsiva - upload videos, review AI metadata and publish to YouTube."""
    init_observability()


def _register_commands() -> None:
    from postsiva.cli import config, drafts, session, upload

    config.register(cli)
    drafts.register(cli)
    session.register(cli)
    upload.register(cli)


_register_commands()


if __name__ == "__main__":
    cli()
