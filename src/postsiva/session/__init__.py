"""Session record, guard and login management."""

from postsiva.session.guard import GuardState, SessionGuard
from postsiva.session.manager import SessionManager
from postsiva.session.record import (
    SessionIdentity,
    SessionRecord,
    clear_session,
    is_session_valid,
    read_session_record,
)

__all__ = [
    "GuardState",
    "SessionGuard",
    "SessionIdentity",
    "SessionManager",
    "SessionRecord",
    "clear_session",
    "is_session_valid",
    "read_session_record",
]
