"""Backend provider mode.

`backend_provider` picks the mode. `use_fake_providers` turns "real" into
"fake" and never re-enables "off".
"""

from __future__ import annotations

from typing import Any, Literal, get_args

from postsiva.config.settings import Settings

ProviderMode = Literal["real", "fake", "off"]

_MODES = frozenset(get_args(ProviderMode))
_TRUTHY = frozenset({"1", "true", "yes", "y", "on"})


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)


def effective_backend_provider(settings: Settings) -> ProviderMode:
    """Mode the backend client should run in. Unknown modes count as "real"."""
    mode = str(getattr(settings, "backend_provider", "real")).strip().lower()
    if mode not in _MODES:
        mode = "real"
    if mode == "real" and _flag(getattr(settings, "use_fake_providers", False)):
        return "fake"
    return mode  # type: ignore[return-value]
