"""AI field generators for titles, descriptions and timestamps.

Each generator wraps one generate endpoint and one save endpoint. Generation
errors are non-fatal: the user sees a toast and can retry. Results that arrive
after `close()` are dropped without touching state.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Generic, List, Optional, Tuple, TypeVar

from postsiva.api.client import BackendClient
from postsiva.api.errors import ApiError, ErrorKind
from postsiva.api.schemas import Timestamp
from postsiva.notifications.toasts import Notifier, ToastVariant
from postsiva.observability.logging import get_logger
from postsiva.upload.results import StepResult

logger = get_logger(__name__)

__all__ = [
    "DescriptionGenerator",
    "FieldGenerator",
    "TimestampsGenerator",
    "TitleGenerator",
]

G = TypeVar("G")
S = TypeVar("S")


class FieldGenerator(ABC, Generic[G, S]):
    """Generated values have type G; the value the user saves has type S."""

    field_name: str = "field"
    label: str = "Field"
    saved_label: str = "Field"

    def __init__(self, client: BackendClient, notifier: Notifier) -> None:
        self._client = client
        self._notifier = notifier
        self.is_loading = False
        self.error: Optional[str] = None
        self.generated: Optional[G] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    def reopen(self) -> None:
        self._closed = False

    def clear(self) -> None:
        self.is_loading = False
        self.error = None
        self.generated = None

    @abstractmethod
    async def _request_generate(self, video_id: str) -> Tuple[bool, G, Optional[str]]:
        """Return (success flag, generated value, server message)."""

    @abstractmethod
    async def _request_save(self, video_id: str, value: S) -> Tuple[bool, Optional[str]]:
        """Return (success flag, server message)."""

    def _is_empty(self, value: G) -> bool:
        return not value

    def _validate(self, value: S) -> Optional[str]:
        return None

    async def generate(self, video_id: str) -> StepResult[G]:
        operation = f"{self.field_name}.generate"
        if not video_id:
            return self._reject(operation, "Video ID is required")

        self.is_loading = True
        self.error = None
        logger.info("field_generate_started", field=self.field_name, video_id=video_id)
        try:
            ok, value, server_message = await self._request_generate(video_id)
        except ApiError as exc:
            if self._closed:
                return self._dropped(operation, video_id)
            self.is_loading = False
            self.error = exc.message
            logger.warning(
                "field_generate_failed",
                field=self.field_name,
                video_id=video_id,
                error_kind=exc.kind.value,
                status_code=exc.status_code,
            )
            self._notifier.toast(
                f"Failed to generate {self.label.lower()}",
                exc.message,
                variant=ToastVariant.DESTRUCTIVE,
            )
            return StepResult.from_error(operation, exc)

        if self._closed:
            return self._dropped(operation, video_id)

        self.is_loading = False
        if not ok or self._is_empty(value):
            message = server_message or f"No {self.label.lower()} were generated"
            self.error = message
            logger.warning("field_generate_empty", field=self.field_name, video_id=video_id)
            self._notifier.toast(
                f"Failed to generate {self.label.lower()}",
                message,
                variant=ToastVariant.DESTRUCTIVE,
            )
            return StepResult.failure(operation, message, ErrorKind.INVALID_RESPONSE)

        self.generated = value
        logger.info("field_generate_completed", field=self.field_name, video_id=video_id)
        self._notifier.toast(f"{self.label} Generated", "Review and pick what works best.")
        return StepResult.success(operation, value)

    async def save(self, video_id: str, value: S) -> StepResult[S]:
        operation = f"{self.field_name}.save"
        if not video_id:
            return self._reject(operation, "Video ID is required")
        problem = self._validate(value)
        if problem:
            return self._reject(operation, problem)

        self.is_loading = True
        self.error = None
        try:
            ok, server_message = await self._request_save(video_id, value)
        except ApiError as exc:
            self.is_loading = False
            self.error = exc.message
            logger.warning(
                "field_save_failed",
                field=self.field_name,
                video_id=video_id,
                error_kind=exc.kind.value,
                status_code=exc.status_code,
            )
            self._notifier.toast(
                f"Failed to save {self.label.lower()}",
                exc.message,
                variant=ToastVariant.DESTRUCTIVE,
            )
            return StepResult.from_error(operation, exc)

        self.is_loading = False
        if not ok:
            message = server_message or "Save operation failed"
            self.error = message
            self._notifier.toast(
                f"Failed to save {self.label.lower()}", message, variant=ToastVariant.DESTRUCTIVE
            )
            return StepResult.failure(operation, message, ErrorKind.SERVER)

        logger.info("field_saved", field=self.field_name, video_id=video_id)
        self._notifier.toast(f"{self.saved_label} Saved", f"{self.saved_label} saved successfully.")
        return StepResult.success(operation, value)

    def _reject(self, operation: str, message: str) -> StepResult[Any]:
        self.error = message
        self._notifier.toast("Missing Data", message, variant=ToastVariant.DESTRUCTIVE)
        return StepResult.failure(operation, message, ErrorKind.VALIDATION)

    def _dropped(self, operation: str, video_id: str) -> StepResult[Any]:
        logger.info("field_result_dropped_after_close", field=self.field_name, video_id=video_id)
        return StepResult.cancelled(operation, "Result arrived after the view was closed")


class TitleGenerator(FieldGenerator[List[str], str]):
    field_name = "titles"
    label = "Titles"
    saved_label = "Title"

    async def _request_generate(self, video_id: str) -> Tuple[bool, List[str], Optional[str]]:
        response = await self._client.generate_titles(video_id)
        titles = [t.strip() for t in response.generated_titles if t and t.strip()]
        return response.success, titles, response.message

    async def _request_save(self, video_id: str, value: str) -> Tuple[bool, Optional[str]]:
        response = await self._client.save_title(video_id, value.strip())
        return response.success, response.message

    def _validate(self, value: str) -> Optional[str]:
        if not value or not value.strip():
            return "Please select or enter a title"
        if len(value.strip()) > 100:
            return "Titles must be 100 characters or fewer"
        return None


class DescriptionGenerator(FieldGenerator[str, str]):
    field_name = "description"
    label = "Description"
    saved_label = "Description"

    async def _request_generate(self, video_id: str) -> Tuple[bool, str, Optional[str]]:
        response = await self._client.generate_description(video_id)
        return response.success, response.generated_description.strip(), response.message

    async def _request_save(self, video_id: str, value: str) -> Tuple[bool, Optional[str]]:
        response = await self._client.save_description(video_id, value)
        return response.success, response.message

    def _validate(self, value: str) -> Optional[str]:
        if not value or not value.strip():
            return "Description cannot be empty"
        return None


class TimestampsGenerator(FieldGenerator[List[Timestamp], List[Timestamp]]):
    field_name = "timestamps"
    label = "Timestamps"
    saved_label = "Timestamps"

    async def _request_generate(
        self, video_id: str
    ) -> Tuple[bool, List[Timestamp], Optional[str]]:
        response = await self._client.generate_timestamps(video_id)
        return response.success, list(response.generated_timestamps), response.message

    async def _request_save(
        self, video_id: str, value: List[Timestamp]
    ) -> Tuple[bool, Optional[str]]:
        response = await self._client.save_timestamps(video_id, value)
        return response.success, response.message

    def _validate(self, value: List[Timestamp]) -> Optional[str]:
        for ts in value:
            if not ts.time.strip() or not ts.title.strip():
                return "Every timestamp needs a time and a title"
        return None
