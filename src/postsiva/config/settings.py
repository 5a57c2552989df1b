"""Application settings using Pydantic."""

import os
from functools import lru_cache
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from postsiva.paths import default_state_file


class Settings(BaseSettings):
    """Client configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = Field(
        default=os.getenv("ENVIRONMENT", "development"),
        description="Deployment environment (development|production|test)",
    )

    # Backend
    api_base_url: str = Field(
        default="https://backend.postsiva.com",
        description="Postsiva backend base URL (without trailing slash)",
    )
    backend_provider: Literal["real", "fake", "off"] = Field(
        default="real",
        description="Backend provider mode: real=call the API, fake=in-process deterministic backend, off=disable.",
    )
    use_fake_providers: bool = Field(
        default=False,
        description="Convenience switch: treat the backend as fake in dev/tests (off still disables).",
    )

    # Local store
    state_file: str = Field(
        default_factory=lambda: str(default_state_file()),
        description="JSON file backing the local key/value store. Empty = in-memory only.",
    )

    # Timeouts
    generate_timeout_s: float = Field(
        default=30.0,
        description="Timeout for single-field AI generation calls.",
    )
    save_timeout_s: float = Field(
        default=30.0,
        description="Timeout for save/privacy/playlist/publish calls.",
    )
    long_timeout_s: float = Field(
        default=600.0,
        description="Timeout for video uploads, custom thumbnail uploads and all-in-one processing.",
    )

    # Thumbnail batch
    thumbnail_batch_size: Literal[1, 5] = Field(
        default=5,
        description="Number of concurrent thumbnail variants per generation (1 or 5).",
    )
    thumbnail_stagger_s: float = Field(
        default=0.2,
        description="Delay increment between staggered thumbnail requests.",
    )

    # Session guard
    session_check_interval_s: float = Field(
        default=5.0,
        description="Interval between periodic session validity checks.",
    )

    # Navigation
    publish_redirect_delay_s: float = Field(
        default=1.5,
        description="Delay before navigating to the dashboard after a successful publish.",
    )
    all_in_one_reset_delay_s: float = Field(
        default=2.0,
        description="Delay before the all-in-one flow resets after publishing.",
    )
    dashboard_path: str = "/dashboard"
    login_path: str = "/login"

    # Observability
    log_level: str = "INFO"
    log_json: bool = True

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        """Require an http(s) URL and strip the trailing slash."""
        value = (v or "").strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("API_BASE_URL must start with http:// or https://")
        return value.rstrip("/")

    @field_validator("thumbnail_batch_size", mode="before")
    @classmethod
    def _coerce_batch_size(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip().isdigit():
            return int(v.strip())
        return v

    @field_validator("session_check_interval_s")
    @classmethod
    def validate_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("SESSION_CHECK_INTERVAL_S must be positive")
        return v


# Global settings instance
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Lazily construct Settings so tests and CLIs can set env vars before first access.
    return Settings()


def reset_settings_cache() -> None:
    get_settings.cache_clear()


class _SettingsProxy:
    """Lazy proxy for Settings.

    This avoids eager settings instantiation at import time, which can make tests
    order-dependent when env vars are changed during `pytest_configure()`.
    """

    def __getattr__(self, name: str) -> Any:
        return getattr(get_settings(), name)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<SettingsProxy {get_settings()!r}>"


settings = _SettingsProxy()
