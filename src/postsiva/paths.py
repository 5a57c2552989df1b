"""Filesystem locations used by the client."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path


@lru_cache(maxsize=1)
def get_repo_root() -> Path:
    """Directory containing `pyproject.toml` when running from a checkout, else the cwd."""
    start = Path(__file__).resolve()
    for parent in (start, *start.parents):
        if (parent / "pyproject.toml").is_file():
            return parent
    return Path.cwd()


def default_state_file() -> Path:
    """Where the local store lives when STATE_FILE is not set."""
    return Path.home() / ".postsiva" / "state.json"
