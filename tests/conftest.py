"""Pytest configuration and shared fixtures."""

import os
import sys
from pathlib import Path

import httpx
import pytest

# Ensure source tree is importable without editable install
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


def pytest_configure(config):
    """Configure pytest markers and environment for tests."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")

    # These MUST override any developer shell/.env values to keep the test run deterministic.
    os.environ["ENVIRONMENT"] = "test"
    os.environ["API_BASE_URL"] = "http://testserver"
    os.environ["BACKEND_PROVIDER"] = "fake"
    os.environ["USE_FAKE_PROVIDERS"] = "false"
    # In-memory local store unless a test opts into a file.
    os.environ["STATE_FILE"] = ""
    os.environ["THUMBNAIL_BATCH_SIZE"] = "5"
    os.environ["THUMBNAIL_STAGGER_S"] = "0"
    os.environ["PUBLISH_REDIRECT_DELAY_S"] = "0"
    os.environ["ALL_IN_ONE_RESET_DELAY_S"] = "0"
    os.environ["SESSION_CHECK_INTERVAL_S"] = "5"
    os.environ["LOG_JSON"] = "false"


@pytest.fixture(autouse=True)
def _fresh_settings():
    from postsiva.config import reset_settings_cache

    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture(autouse=True)
def block_external_http(monkeypatch):
    """Fail the fast lane if code tries to hit the public internet.

    Allowlist only:
    - the "testserver" host used as API_BASE_URL with the fake backend transport
    - localhost/loopback for local services
    """

    allowed_hosts = {"test", "testserver", "localhost", "127.0.0.1", "0.0.0.0"}

    async def _async_guard(self, method, url, *args, **kwargs):  # type: ignore[no-untyped-def]
        u = httpx.URL(url) if not isinstance(url, httpx.URL) else url
        if u.scheme in {"http", "https"} and (u.host or "") not in allowed_hosts:
            raise RuntimeError(f"External HTTP blocked in tests: {u!s}")
        return await _orig_async_request(self, method, url, *args, **kwargs)

    _orig_async_request = httpx.AsyncClient.request
    monkeypatch.setattr(httpx.AsyncClient, "request", _async_guard, raising=True)

    yield


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def fake_backend():
    from postsiva.api.fakes import FakeBackend

    return FakeBackend()


@pytest.fixture
def store():
    from postsiva.storage.local import LocalStorage

    return LocalStorage().context()


@pytest.fixture
def ai_store(store):
    from postsiva.storage.keys import HAS_GEMINI_KEY

    store.set(HAS_GEMINI_KEY, "true")
    return store


@pytest.fixture
def client(fake_backend, store):
    from postsiva.api.client import BackendClient

    return BackendClient(base_url="http://testserver", store=store, transport=fake_backend.transport())


@pytest.fixture
def notifier():
    from postsiva.notifications.toasts import RecordingNotifier

    return RecordingNotifier()


@pytest.fixture
def navigator():
    from postsiva.notifications.navigation import RecordingNavigator

    return RecordingNavigator()


@pytest.fixture
def video_file(tmp_path) -> Path:
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42" + os.urandom(64 * 1024))
    return path


@pytest.fixture
def image_file(tmp_path) -> Path:
    path = tmp_path / "cover.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 512)
    return path
