"""Session record and the validity predicate."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from postsiva.storage.keys import ACTIVE_USER_ID, AUTH_TOKEN, SESSION_ID, SESSION_KEYS, USER
from postsiva.storage.local import KeyValueStore


@dataclass(frozen=True)
class SessionIdentity:
    user_id: str
    session_id: str


@dataclass(frozen=True)
class SessionRecord:
    token: str | None
    user_json: str | None
    session_id: str | None
    active_user_id: str | None

    @property
    def user(self) -> dict[str, Any] | None:
        if not self.user_json:
            return None
        try:
            user = json.loads(self.user_json)
        except json.JSONDecodeError:
            return None
        return user if isinstance(user, dict) else None

    @property
    def user_id(self) -> str | None:
        user = self.user
        if user is None or user.get("id") in (None, ""):
            return None
        return str(user["id"])

    @property
    def has_any_field(self) -> bool:
        return any((self.token, self.user_json, self.session_id, self.active_user_id))

    @property
    def identity(self) -> SessionIdentity | None:
        if not is_session_valid(self):
            return None
        return SessionIdentity(user_id=str(self.user_id), session_id=str(self.session_id))


def read_session_record(store: KeyValueStore) -> SessionRecord:
    return SessionRecord(
        token=store.get(AUTH_TOKEN),
        user_json=store.get(USER),
        session_id=store.get(SESSION_ID),
        active_user_id=store.get(ACTIVE_USER_ID),
    )


def is_session_valid(record: SessionRecord) -> bool:
    """All four fields present and the user record matches the active user id."""
    for value in (record.token, record.user_json, record.session_id, record.active_user_id):
        if value is None or not str(value).strip():
            return False
    user_id = record.user_id
    if user_id is None:
        return False
    return user_id == str(record.active_user_id)


def clear_session(store: KeyValueStore) -> None:
    for key in SESSION_KEYS:
        store.remove(key)
