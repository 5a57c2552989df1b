"""Outcome-tagged results for upload steps."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from postsiva.api.errors import ErrorKind, PostsivaError

T = TypeVar("T")


class Outcome(str, Enum):
    OK = "ok"
    WARNED = "warned"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class StepResult(Generic[T]):
    """Result of one upload step.

    A `warned` result is a success the user should hear about (partial batch,
    metadata not applied). Only `failed` blocks progression.
    """

    outcome: Outcome
    operation: str
    value: Optional[T] = None
    message: str = ""
    error_kind: Optional[ErrorKind] = None

    @property
    def is_success(self) -> bool:
        return self.outcome in (Outcome.OK, Outcome.WARNED)

    @property
    def is_warning(self) -> bool:
        return self.outcome is Outcome.WARNED

    @property
    def is_failure(self) -> bool:
        return self.outcome is Outcome.FAILED

    @property
    def is_cancelled(self) -> bool:
        return self.outcome is Outcome.CANCELLED

    @classmethod
    def success(cls, operation: str, value: Optional[T] = None, message: str = "") -> "StepResult[T]":
        return cls(outcome=Outcome.OK, operation=operation, value=value, message=message)

    @classmethod
    def warning(
        cls,
        operation: str,
        message: str,
        *,
        value: Optional[T] = None,
        error_kind: ErrorKind | None = None,
    ) -> "StepResult[T]":
        return cls(
            outcome=Outcome.WARNED,
            operation=operation,
            value=value,
            message=message,
            error_kind=error_kind,
        )

    @classmethod
    def failure(
        cls, operation: str, message: str, error_kind: ErrorKind = ErrorKind.UNKNOWN
    ) -> "StepResult[T]":
        return cls(outcome=Outcome.FAILED, operation=operation, message=message, error_kind=error_kind)

    @classmethod
    def from_error(cls, operation: str, error: PostsivaError) -> "StepResult[T]":
        return cls.failure(operation, error.message, error.kind)

    @classmethod
    def cancelled(cls, operation: str, message: str = "") -> "StepResult[T]":
        return cls(outcome=Outcome.CANCELLED, operation=operation, message=message)


@dataclass(frozen=True)
class PublishReport:
    """What happened to each call of the publish sequence."""

    publish: StepResult[str]
    privacy: Optional[StepResult[str]] = None
    playlist: Optional[StepResult[str]] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def outcome(self) -> Outcome:
        if self.publish.outcome in (Outcome.FAILED, Outcome.CANCELLED):
            return self.publish.outcome
        if self.publish.is_warning or self.warnings:
            return Outcome.WARNED
        return Outcome.OK

    @property
    def is_success(self) -> bool:
        return self.outcome in (Outcome.OK, Outcome.WARNED)
