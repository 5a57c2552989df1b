"""Navigation and confirmation hooks used by the flows."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Protocol

from rich.console import Console

Confirm = Callable[[str], bool]


def always_confirm(_prompt: str) -> bool:
    return True


def never_confirm(_prompt: str) -> bool:
    return False


class Navigator(Protocol):
    def navigate(self, path: str) -> None: ...


@dataclass
class RecordingNavigator:
    visited: List[str] = field(default_factory=list)

    def navigate(self, path: str) -> None:
        self.visited.append(path)

    @property
    def current(self) -> str | None:
        return self.visited[-1] if self.visited else None


class ConsoleNavigator:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self.current: str | None = None

    def navigate(self, path: str) -> None:
        self.current = path
        self.console.print(f"[dim]→ {path}[/dim]")
