"""Deterministic in-process backend for fake mode and tests.

`FakeBackend.transport()` returns an `httpx.MockTransport`, so the real
`BackendClient` code path (headers, JSON encoding, multipart, error mapping)
runs unchanged against it.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Dict, List, Optional, Tuple

import anyio
import httpx

from postsiva.api.errors import THUMBNAIL_FAILURE_CODE, THUMBNAIL_FAILURE_TYPE

__all__ = ["FakeBackend", "FakeCall"]

_ROUTES: List[Tuple[re.Pattern[str], str]] = [
    (re.compile(r"^/videos/upload$"), "videos.upload"),
    (re.compile(r"^/titles/(?P<vid>[^/]+)/generate$"), "titles.generate"),
    (re.compile(r"^/titles/(?P<vid>[^/]+)/save$"), "titles.save"),
    (re.compile(r"^/description/(?P<vid>[^/]+)/generate$"), "description.generate"),
    (re.compile(r"^/description/(?P<vid>[^/]+)/save$"), "description.save"),
    (re.compile(r"^/timestamps/(?P<vid>[^/]+)/generate$"), "timestamps.generate"),
    (re.compile(r"^/timestamps/(?P<vid>[^/]+)/save$"), "timestamps.save"),
    (re.compile(r"^/thumbnail-generator/(?P<vid>[^/]+)/generate$"), "thumbnail.generate"),
    (re.compile(r"^/thumbnail-generator/(?P<vid>[^/]+)/save$"), "thumbnail.save"),
    (re.compile(r"^/thumbnail-generator/(?P<vid>[^/]+)/upload$"), "thumbnail.upload"),
    (re.compile(r"^/privacy-status/(?P<vid>[^/]+)/privacy-status$"), "privacy.set"),
    (re.compile(r"^/playlists/(?P<vid>[^/]+)/select$"), "playlist.select"),
    (re.compile(r"^/youtube-upload/(?P<vid>[^/]+)/upload$"), "youtube.upload"),
    (re.compile(r"^/all-in-one/(?P<vid>[^/]+)/process$"), "all_in_one.process"),
    (re.compile(r"^/all-in-one/(?P<vid>[^/]+)/save-content$"), "all_in_one.save"),
]


@dataclass
class FakeCall:
    operation: str
    video_id: Optional[str]
    body: Any
    headers: Dict[str, str]


@dataclass
class _Failure:
    status_code: int
    payload: Dict[str, Any]
    remaining: Optional[int]


@dataclass
class FakeBackend:
    """Fake Postsiva backend that records every call."""

    titles: List[str] = field(
        default_factory=lambda: [
            "10 Python Tricks You Missed",
            "Python Tricks That Actually Matter",
            "Stop Writing Python Like This",
        ]
    )
    description: str = "In this video we walk through practical Python tricks."
    timestamps: List[Dict[str, str]] = field(
        default_factory=lambda: [
            {"time": "00:00", "title": "Intro"},
            {"time": "01:30", "title": "Trick one"},
            {"time": "04:10", "title": "Wrap-up"},
        ]
    )
    all_in_one_thumbnail_count: int = 2
    playlists: Dict[str, str] = field(default_factory=lambda: {"PL1": "Tutorials"})
    thumbnail_delays: List[float] = field(default_factory=list)
    thumbnail_failures: set[int] = field(default_factory=set)

    calls: List[FakeCall] = field(default_factory=list)
    _failures: Dict[str, _Failure] = field(default_factory=dict)
    _overrides: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    _video_seq: int = 0
    _thumbnail_seq: int = 0

    # Configuration

    def fail(
        self,
        operation: str,
        status_code: int = 500,
        payload: Dict[str, Any] | None = None,
        *,
        times: int | None = None,
    ) -> None:
        """Make `operation` answer with an HTTP error (`times` calls, or forever)."""
        self._failures[operation] = _Failure(
            status_code=status_code,
            payload=payload or {"message": f"{operation} failed"},
            remaining=times,
        )

    def fail_thumbnail_on_publish(self, youtube_video_id: str = "yt-fake-1") -> None:
        self.fail(
            "youtube.upload",
            500,
            {
                "code": THUMBNAIL_FAILURE_CODE,
                "message": "Video uploaded but thumbnail upload failed",
                "details": {
                    "error_type": THUMBNAIL_FAILURE_TYPE,
                    "youtube_video_id": youtube_video_id,
                },
            },
        )

    def respond(self, operation: str, payload: Dict[str, Any]) -> None:
        """Answer `operation` with a fixed 200 payload."""
        self._overrides[operation] = payload

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    # Introspection

    def calls_for(self, operation: str) -> List[FakeCall]:
        return [c for c in self.calls if c.operation == operation]

    def operations(self) -> List[str]:
        return [c.operation for c in self.calls]

    # Handler

    async def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        for pattern, operation in _ROUTES:
            match = pattern.match(path)
            if match and request.method == "POST":
                video_id = match.groupdict().get("vid")
                break
        else:
            return httpx.Response(404, json={"message": f"No route for {request.method} {path}"})

        call = FakeCall(
            operation=operation,
            video_id=video_id,
            body=self._decode_body(request),
            headers=dict(request.headers),
        )
        self.calls.append(call)

        seq = 0

        if operation == "thumbnail.generate":
            index = self._thumbnail_seq
            self._thumbnail_seq += 1
            seq = index + 1
            if index < len(self.thumbnail_delays):
                await anyio.sleep(self.thumbnail_delays[index])
            if index in self.thumbnail_failures:
                return httpx.Response(500, json={"message": "Image model overloaded"})

        failure = self._failures.get(operation)
        if failure is not None:
            if failure.remaining is not None:
                failure.remaining -= 1
                if failure.remaining <= 0:
                    del self._failures[operation]
            return httpx.Response(failure.status_code, json=failure.payload)

        if operation in self._overrides:
            return httpx.Response(200, json=self._overrides[operation])

        return httpx.Response(200, json=self._success_payload(operation, video_id, call.body, seq))

    @staticmethod
    def _decode_body(request: httpx.Request) -> Any:
        raw = request.content
        if not raw:
            return None
        content_type = request.headers.get("content-type", "")
        if content_type.startswith("multipart/form-data"):
            return {"multipart_bytes": len(raw)}
        try:
            return json.loads(raw)
        except ValueError:
            return raw.decode("utf-8", errors="replace")

    def _success_payload(
        self, operation: str, video_id: Optional[str], body: Any, seq: int
    ) -> Dict[str, Any]:
        now = datetime.now(tz=UTC).isoformat(timespec="seconds")

        if operation == "videos.upload":
            self._video_seq += 1
            return {"id": f"vid-{self._video_seq}"}
        if operation == "titles.generate":
            return {"success": True, "generated_titles": list(self.titles)}
        if operation == "description.generate":
            return {"success": True, "generated_description": self.description}
        if operation == "timestamps.generate":
            return {"success": True, "generated_timestamps": list(self.timestamps)}
        if operation in {"titles.save", "description.save", "timestamps.save", "all_in_one.save"}:
            return {"success": True, "message": "Saved", "video_id": video_id}
        if operation == "thumbnail.generate":
            return {
                "success": True,
                "image_url": f"https://cdn.postsiva.test/thumbnails/{video_id}/{seq}.png",
                "video_id": video_id,
                "width": 1280,
                "height": 720,
            }
        if operation == "thumbnail.save":
            return {
                "success": True,
                "message": "Thumbnail saved",
                "video_id": video_id,
                "thumbnail_url": (body or {}).get("thumbnail_url"),
                "saved_at": now,
            }
        if operation == "thumbnail.upload":
            return {
                "success": True,
                "message": "Thumbnail uploaded",
                "video_id": video_id,
                "thumbnail_path": f"uploads/thumbnails/{video_id}/custom.png",
                "saved_at": now,
            }
        if operation == "privacy.set":
            return {"success": True, "privacy_status": (body or {}).get("privacy_status")}
        if operation == "playlist.select":
            playlist_id = body if isinstance(body, str) else str(body)
            return {
                "playlist_name": self.playlists.get(playlist_id, playlist_id),
                "playlist_id": playlist_id,
                "playlist_exists": playlist_id in self.playlists,
                "video_id": video_id,
            }
        if operation == "youtube.upload":
            return {
                "success": True,
                "message": "Video uploaded to YouTube",
                "youtube_video_id": f"yt-{video_id}",
            }
        if operation == "all_in_one.process":
            return {
                "success": True,
                "video_id": video_id,
                "results": {
                    "titles": {"success": True, "generated_titles": list(self.titles)},
                    "description": {"success": True, "generated_description": self.description},
                    "timestamps": {"success": True, "generated_timestamps": list(self.timestamps)},
                    "thumbnails": {
                        "success": self.all_in_one_thumbnail_count > 0,
                        "generated_thumbnails": [
                            {"image_url": f"https://cdn.postsiva.test/aio/{video_id}/{i}.png"}
                            for i in range(self.all_in_one_thumbnail_count)
                        ],
                    },
                },
            }
        return {"success": True}
