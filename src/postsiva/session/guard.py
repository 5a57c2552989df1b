"""Session guard: enforce a single active identity across contexts.

The guard re-validates the stored session once at start, every
`session_check_interval_s` seconds, and whenever another context writes one of
the session keys. Storage events only wake the loop. The check itself runs on
the loop's next turn, so a multi-key login written by another context is seen
as a whole rather than key by key.
"""

from __future__ import annotations

from enum import Enum

import anyio
from anyio.abc import TaskGroup, TaskStatus

from postsiva.config import settings
from postsiva.notifications.navigation import Navigator
from postsiva.notifications.toasts import Notifier, ToastVariant
from postsiva.observability.logging import get_logger
from postsiva.session.record import (
    SessionIdentity,
    clear_session,
    is_session_valid,
    read_session_record,
)
from postsiva.storage.keys import SESSION_KEYS
from postsiva.storage.local import KeyValueStore, StorageEvent

logger = get_logger(__name__)

__all__ = ["GuardState", "SessionGuard"]


class GuardState(str, Enum):
    UNKNOWN = "unknown"
    VALID = "valid"
    INVALID = "invalid"


class SessionGuard:
    """Watch the stored session and force a logout when it stops being ours."""

    def __init__(
        self,
        store: KeyValueStore,
        notifier: Notifier,
        navigator: Navigator,
        *,
        interval: float | None = None,
        login_path: str | None = None,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._navigator = navigator
        self.interval = float(interval if interval is not None else settings.session_check_interval_s)
        self.login_path = login_path or settings.login_path

        self._state = GuardState.UNKNOWN
        self._identity: SessionIdentity | None = None
        # After a forced logout, only an explicit login in this context revives the guard.
        self._awaiting_login = False
        self._changed: anyio.Event | None = None
        self._scope: anyio.CancelScope | None = None
        self.checks = 0

    @property
    def state(self) -> GuardState:
        return self._state

    @property
    def identity(self) -> SessionIdentity | None:
        return self._identity

    def adopt(self, identity: SessionIdentity | None) -> None:
        """Record the identity this context just logged in (or out) with."""
        self._identity = identity
        self._state = GuardState.VALID if identity else GuardState.INVALID
        self._awaiting_login = False

    def check(self) -> bool:
        """Evaluate the stored session once and react to a transition."""
        self.checks += 1
        record = read_session_record(self._store)
        valid = is_session_valid(record)
        current = record.identity

        if self._awaiting_login:
            return False

        if valid and self._identity is not None and current != self._identity:
            logger.warning(
                "session_identity_changed",
                known_user_id=self._identity.user_id,
                stored_user_id=record.user_id,
            )
            self._force_logout(
                "You were signed out because another account signed in from a different window.",
                clear_store=False,
            )
            return False

        if valid:
            if self._state is not GuardState.VALID:
                logger.info("session_valid", user_id=record.user_id)
            self._state = GuardState.VALID
            self._identity = current
            return True

        if self._state is GuardState.VALID:
            logger.warning(
                "session_invalidated",
                has_token=bool(record.token),
                has_user=bool(record.user_json),
                has_session_id=bool(record.session_id),
                has_active_user_id=bool(record.active_user_id),
            )
            self._force_logout(
                "Your session is no longer valid. Please log in again.",
                clear_store=True,
            )
            return False

        if self._state is GuardState.UNKNOWN and record.has_any_field:
            logger.info("session_leftovers_cleared")
            clear_session(self._store)
            self._navigator.navigate(self.login_path)

        self._state = GuardState.INVALID
        self._identity = None
        return False

    def _force_logout(self, description: str, *, clear_store: bool) -> None:
        self._notifier.toast(
            "Session Ended",
            description,
            variant=ToastVariant.DESTRUCTIVE,
        )
        if clear_store:
            clear_session(self._store)
        self._state = GuardState.INVALID
        self._identity = None
        self._awaiting_login = True
        self._navigator.navigate(self.login_path)

    def _on_storage_change(self, event: StorageEvent) -> None:
        if event.key not in SESSION_KEYS:
            return
        logger.debug("session_storage_changed", key=event.key)
        if self._changed is not None:
            self._changed.set()

    async def run(self, *, task_status: TaskStatus[anyio.CancelScope] = anyio.TASK_STATUS_IGNORED) -> None:
        """Check now, then on every interval tick or storage change until cancelled."""
        unsubscribe = self._store.subscribe(self._on_storage_change)
        try:
            with anyio.CancelScope() as scope:
                self._scope = scope
                self._changed = anyio.Event()
                self.check()
                task_status.started(scope)
                while True:
                    with anyio.move_on_after(self.interval):
                        await self._changed.wait()
                    self._changed = anyio.Event()
                    self.check()
        finally:
            unsubscribe()
            self._changed = None
            self._scope = None

    async def start(self, task_group: TaskGroup) -> anyio.CancelScope:
        """Run the guard inside `task_group` and return its cancellable handle."""
        return await task_group.start(self.run)

    def stop(self) -> None:
        if self._scope is not None:
            self._scope.cancel()
