"""Local persisted state: key/value store, well-known keys and upload drafts."""

from postsiva.storage.local import (
    KeyValueStore,
    LocalStorage,
    StorageContext,
    StorageEvent,
    StorageListener,
)

__all__ = [
    "KeyValueStore",
    "LocalStorage",
    "StorageContext",
    "StorageEvent",
    "StorageListener",
]
