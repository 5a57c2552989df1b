"""Local key/value store with browser-storage semantics.

`LocalStorage` is the shared area (one per user profile). Each consumer opens a
`StorageContext` on it, the equivalent of a browser tab. A write through one
context is delivered as a `StorageEvent` to the listeners of every *other*
context, never to the writer itself.

The area can be in-memory or backed by a JSON file. File-backed areas reload
when the file changes on disk, so separate processes see each other's writes
on their next read (there is no cross-process change notification).
"""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol

from postsiva.observability.logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "KeyValueStore",
    "LocalStorage",
    "StorageContext",
    "StorageEvent",
    "StorageListener",
]


@dataclass(frozen=True)
class StorageEvent:
    key: str
    old_value: str | None
    new_value: str | None


StorageListener = Callable[[StorageEvent], None]


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...

    def subscribe(self, listener: StorageListener) -> Callable[[], None]: ...


class LocalStorage:
    """Shared storage area."""

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path).expanduser() if path else None
        self._data: dict[str, str] = {}
        self._signature: tuple[int, int] | None = None
        self._contexts: list[StorageContext] = []
        self._reload_if_changed()

    @property
    def path(self) -> Path | None:
        return self._path

    def context(self) -> "StorageContext":
        ctx = StorageContext(self)
        self._contexts.append(ctx)
        return ctx

    def _detach(self, ctx: "StorageContext") -> None:
        if ctx in self._contexts:
            self._contexts.remove(ctx)

    def _reload_if_changed(self) -> None:
        if self._path is None:
            return
        try:
            stat = self._path.stat()
        except FileNotFoundError:
            self._data = {}
            self._signature = None
            return
        signature = (stat.st_mtime_ns, stat.st_size)
        if signature == self._signature:
            return
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("local_storage_unreadable", path=str(self._path), error=str(exc))
            raw = {}
        if not isinstance(raw, dict):
            logger.warning("local_storage_not_an_object", path=str(self._path))
            raw = {}
        self._data = {str(k): str(v) for k, v in raw.items() if v is not None}
        self._signature = signature

    def _flush(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".state_", dir=str(self._path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, indent=2, sort_keys=True)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        stat = self._path.stat()
        self._signature = (stat.st_mtime_ns, stat.st_size)

    def _get(self, key: str) -> str | None:
        self._reload_if_changed()
        return self._data.get(key)

    def _keys(self) -> list[str]:
        self._reload_if_changed()
        return sorted(self._data)

    def _write(self, key: str, value: str | None, origin: "StorageContext") -> None:
        self._reload_if_changed()
        old_value = self._data.get(key)
        if value is None:
            if key not in self._data:
                return
            del self._data[key]
        else:
            if old_value == value:
                return
            self._data[key] = value
        self._flush()

        event = StorageEvent(key=key, old_value=old_value, new_value=value)
        for ctx in list(self._contexts):
            if ctx is not origin:
                ctx._dispatch(event)


class StorageContext:
    """One consumer's view of a `LocalStorage` area."""

    def __init__(self, area: LocalStorage) -> None:
        self._area = area
        self._listeners: list[StorageListener] = []

    @property
    def area(self) -> LocalStorage:
        return self._area

    def get(self, key: str) -> str | None:
        return self._area._get(key)

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"Storage values must be strings, got {type(value).__name__}")
        self._area._write(key, value, self)

    def remove(self, key: str) -> None:
        self._area._write(key, None, self)

    def keys(self) -> list[str]:
        return self._area._keys()

    def subscribe(self, listener: StorageListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def close(self) -> None:
        self._listeners.clear()
        self._area._detach(self)

    def _dispatch(self, event: StorageEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                # One failing listener must not starve the others.
                logger.exception("storage_listener_failed", key=event.key)
