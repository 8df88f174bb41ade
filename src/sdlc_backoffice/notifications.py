"""
Operator notifications.

Controllers report outcomes through a Notifier instead of printing, so the
same controller code drives the terminal UI and tests.
"""

import logging
from typing import Protocol

from rich.console import Console

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Receives user-facing success, error and info messages."""

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...


class ConsoleNotifier:
    """Notifier printing styled messages to a Rich console."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(stderr=True)

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓ {message}[/green]")

    def error(self, message: str) -> None:
        logger.debug(f"Reported error to operator: {message}")
        self.console.print(f"[bold red]Error:[/bold red] {message}")

    def info(self, message: str) -> None:
        self.console.print(f"[blue]{message}[/blue]")
