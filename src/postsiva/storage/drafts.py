"""Per-video upload drafts.

A draft is the user's in-progress selections for one video. It is written on
every successful save action, read once when an upload screen mounts, and
removed after a successful publish or an explicit cancel.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from postsiva.api.errors import LocalValidationError
from postsiva.api.schemas import Playlist, PrivacyStatus, Timestamp
from postsiva.observability.logging import get_logger
from postsiva.storage.keys import UPLOAD_DRAFT_PREFIX, draft_key
from postsiva.storage.local import KeyValueStore

logger = get_logger(__name__)

__all__ = ["DraftStore", "UploadDraft"]


class UploadDraft(BaseModel):
    model_config = ConfigDict(extra="allow")

    thumbnail_url: Optional[str] = None
    step: Optional[str] = None
    selected_title: Optional[str] = None
    description: Optional[str] = None
    timestamps: Optional[List[Timestamp]] = None
    privacy_status: Optional[PrivacyStatus] = None
    playlist: Optional[Playlist] = None
    updated_at: Optional[str] = None


class DraftStore:
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    @staticmethod
    def _require_id(video_id: str) -> str:
        video_id = (video_id or "").strip()
        if not video_id:
            raise LocalValidationError("Video ID is required for drafts")
        return video_id

    def load(self, video_id: str) -> UploadDraft | None:
        video_id = self._require_id(video_id)
        raw = self._store.get(draft_key(video_id))
        if not raw:
            return None
        try:
            return UploadDraft.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as exc:
            logger.warning("upload_draft_corrupt", video_id=video_id, error=str(exc))
            return None

    def save(self, video_id: str, partial: UploadDraft | Mapping[str, Any]) -> UploadDraft:
        """Merge `partial` into the stored draft. `None` values leave keys untouched."""
        video_id = self._require_id(video_id)
        if isinstance(partial, UploadDraft):
            updates = partial.model_dump(mode="json", exclude_none=True)
        else:
            updates = UploadDraft.model_validate(dict(partial)).model_dump(
                mode="json", exclude_none=True
            )

        existing = self.load(video_id)
        merged = existing.model_dump(mode="json", exclude_none=True) if existing else {}
        merged.update(updates)
        merged["updated_at"] = datetime.now(tz=UTC).isoformat(timespec="seconds")

        draft = UploadDraft.model_validate(merged)
        self._store.set(draft_key(video_id), draft.model_dump_json(exclude_none=True))
        logger.debug("upload_draft_saved", video_id=video_id, keys=sorted(updates))
        return draft

    def unset(self, video_id: str, *fields: str) -> UploadDraft | None:
        """Remove individual fields from a stored draft."""
        video_id = self._require_id(video_id)
        existing = self.load(video_id)
        if existing is None:
            return None
        data = existing.model_dump(mode="json", exclude_none=True)
        for name in fields:
            data.pop(name, None)
        draft = UploadDraft.model_validate(data)
        self._store.set(draft_key(video_id), draft.model_dump_json(exclude_none=True))
        return draft

    def clear(self, video_id: str) -> None:
        video_id = self._require_id(video_id)
        self._store.remove(draft_key(video_id))
        logger.debug("upload_draft_cleared", video_id=video_id)

    def list_video_ids(self) -> list[str]:
        return [
            key[len(UPLOAD_DRAFT_PREFIX) :]
            for key in self._store.keys()
            if key.startswith(UPLOAD_DRAFT_PREFIX)
        ]
