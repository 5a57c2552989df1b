"""Login/logout against the local session record."""

from __future__ import annotations

import json
from typing import Any, Mapping
from uuid import uuid4

from postsiva.api.errors import LocalValidationError
from postsiva.notifications.navigation import Confirm, always_confirm
from postsiva.observability.logging import get_logger
from postsiva.session.guard import SessionGuard
from postsiva.session.record import (
    SessionRecord,
    clear_session,
    is_session_valid,
    read_session_record,
)
from postsiva.storage.keys import ACTIVE_USER_ID, AUTH_TOKEN, SESSION_ID, USER
from postsiva.storage.local import KeyValueStore

logger = get_logger(__name__)

__all__ = ["SessionManager"]


class SessionManager:
    def __init__(self, store: KeyValueStore, guard: SessionGuard | None = None) -> None:
        self._store = store
        self._guard = guard

    def current(self) -> SessionRecord:
        return read_session_record(self._store)

    def login(
        self,
        token: str,
        user: Mapping[str, Any],
        *,
        confirm: Confirm = always_confirm,
    ) -> bool:
        """Establish a session for `user`. Returns False if the user declined to switch."""
        token = (token or "").strip()
        if not token:
            raise LocalValidationError("Auth token is required")
        user_id = user.get("id")
        if user_id in (None, ""):
            raise LocalValidationError("User record must include an id")
        user_id = str(user_id)

        existing = self.current()
        session_id: str | None = None
        if is_session_valid(existing):
            if existing.user_id != user_id:
                prompt = (
                    f"You are signed in as user {existing.user_id}. "
                    f"Switch accounts to user {user_id}?"
                )
                if not confirm(prompt):
                    logger.info(
                        "account_switch_declined",
                        current_user_id=existing.user_id,
                        requested_user_id=user_id,
                    )
                    return False
                logger.info(
                    "account_switch_confirmed",
                    previous_user_id=existing.user_id,
                    user_id=user_id,
                )
                clear_session(self._store)
            else:
                session_id = existing.session_id
        elif existing.has_any_field:
            clear_session(self._store)

        session_id = session_id or uuid4().hex
        self._store.set(SESSION_ID, session_id)
        self._store.set(AUTH_TOKEN, token)
        self._store.set(USER, json.dumps(dict(user), sort_keys=True))
        self._store.set(ACTIVE_USER_ID, user_id)

        record = self.current()
        if self._guard is not None:
            self._guard.adopt(record.identity)
        logger.info("session_established", user_id=user_id)
        return True

    def logout(self) -> None:
        clear_session(self._store)
        if self._guard is not None:
            self._guard.adopt(None)
        logger.info("session_cleared")
