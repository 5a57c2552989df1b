"""Well-known keys in the local store."""

from __future__ import annotations

from postsiva.storage.local import KeyValueStore

AUTH_TOKEN = "auth_token"
USER = "user"
SESSION_ID = "session_id"
ACTIVE_USER_ID = "active_user_id"

SESSION_KEYS = (AUTH_TOKEN, USER, SESSION_ID, ACTIVE_USER_ID)

HAS_GEMINI_KEY = "has_gemini_key"
GEMINI_API_KEY = "gemini_api_key"
GEMINI_API_KEY_PREVIEW = "gemini_api_key_preview"

UPLOAD_DRAFT_PREFIX = "upload_draft:"


def draft_key(video_id: str) -> str:
    return f"{UPLOAD_DRAFT_PREFIX}{video_id}"


def has_ai_credential(store: KeyValueStore) -> bool:
    """True when an AI-provider key has been configured in settings."""
    if (store.get(HAS_GEMINI_KEY) or "") == "true":
        return True
    for key in (GEMINI_API_KEY, GEMINI_API_KEY_PREVIEW):
        if (store.get(key) or "").strip():
            return True
    return False
