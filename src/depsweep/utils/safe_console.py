"""Rich console with Unicode fallback and status-line helpers.

Wraps Rich's Console to sanitize Unicode icons on terminals that don't
support UTF-8, and adds the one-line success/info/warn/error messages the
CLI prints.
"""
from typing import Any

from rich.console import Console
from rich.markup import escape

from .logger import ICON_MAP, is_utf8_capable, sanitize_for_terminal


class SafeConsole(Console):
    """Console that sanitizes Unicode output on non-UTF-8 terminals.

    All constructor arguments are passed through to Rich's Console.
    """

    def __init__(self, *args, **kwargs):
        self._needs_sanitization = not is_utf8_capable()
        super().__init__(*args, **kwargs)

    def print(self, *objects: Any, **kwargs) -> None:
        """Print with automatic Unicode sanitization."""
        if self._needs_sanitization:
            objects = tuple(
                sanitize_for_terminal(obj) if isinstance(obj, str) else obj
                for obj in objects
            )
        super().print(*objects, **kwargs)

    def status(self, *args, **kwargs):
        """Create a status context with an ASCII-safe spinner when needed."""
        if self._needs_sanitization:
            kwargs['spinner'] = 'line'
        return super().status(*args, **kwargs)

    def _icon(self, icon: str) -> str:
        # ASCII fallbacks look like markup tags and must be escaped
        if self._needs_sanitization:
            return escape(ICON_MAP.get(icon, icon))
        return icon

    def success(self, message: str) -> None:
        self.print(f"[bold green]{self._icon('✔')}[/bold green] {escape(message)}")

    def info(self, message: str) -> None:
        self.print(f"[blue]{self._icon('ℹ')}[/blue] {escape(message)}")

    def warn(self, message: str) -> None:
        self.print(f"[bold yellow]{self._icon('⚠')}[/bold yellow] {escape(message)}")

    def error(self, message: str) -> None:
        self.print(f"[bold red]{self._icon('✘')}[/bold red] {escape(message)}")
