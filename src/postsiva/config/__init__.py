"""Postsiva configuration module."""

from postsiva.config.provider_modes import ProviderMode, effective_backend_provider
from postsiva.config.settings import Settings, get_settings, reset_settings_cache, settings

__all__ = [
    "settings",
    "Settings",
    "get_settings",
    "reset_settings_cache",
    "ProviderMode",
    "effective_backend_provider",
]
