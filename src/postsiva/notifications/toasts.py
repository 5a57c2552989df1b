"""User-visible notices (toasts)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Protocol

from rich.console import Console

from postsiva.observability.logging import get_logger

logger = get_logger("notifications.toasts")

__all__ = [
    "ConsoleNotifier",
    "Notifier",
    "RecordingNotifier",
    "Toast",
    "ToastVariant",
]


class ToastVariant(str, Enum):
    DEFAULT = "default"
    SUCCESS = "success"
    WARNING = "warning"
    DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Toast:
    title: str
    description: str = ""
    variant: ToastVariant = ToastVariant.DEFAULT


class Notifier(Protocol):
    def toast(
        self,
        title: str,
        description: str = "",
        *,
        variant: ToastVariant = ToastVariant.DEFAULT,
    ) -> None: ...


@dataclass
class RecordingNotifier:
    """Notifier that keeps every toast in memory."""

    toasts: List[Toast] = field(default_factory=list)

    def toast(
        self,
        title: str,
        description: str = "",
        *,
        variant: ToastVariant = ToastVariant.DEFAULT,
    ) -> None:
        self.toasts.append(Toast(title=title, description=description, variant=variant))

    @property
    def titles(self) -> list[str]:
        return [t.title for t in self.toasts]

    def by_variant(self, variant: ToastVariant) -> list[Toast]:
        return [t for t in self.toasts if t.variant == variant]


_VARIANT_STYLES = {
    ToastVariant.DEFAULT: "cyan",
    ToastVariant.SUCCESS: "green",
    ToastVariant.WARNING: "yellow",
    ToastVariant.DESTRUCTIVE: "red",
}


class ConsoleNotifier:
    """Render toasts on a Rich console."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def toast(
        self,
        title: str,
        description: str = "",
        *,
        variant: ToastVariant = ToastVariant.DEFAULT,
    ) -> None:
        color = _VARIANT_STYLES.get(variant, "white")
        line = f"[bold {color}]{title}[/bold {color}]"
        if description:
            line += f" {description}"
        self.console.print(line)
