"""
Progress reporting utilities for cookbookvendor.

Progress goes to stderr so stdout stays clean for JSONL data. It is shown
when stderr is a terminal, or when forced with -v or COOKBOOKVENDOR_PROGRESS.
"""

import os
from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Optional

from rich.console import Console


class LogLevel(Enum):
    """Log levels for progress messages, valued by their rich style."""
    DEBUG = "dim"
    INFO = ""
    WARNING = "yellow"
    ERROR = "bold red"
    SUCCESS = "green"


PREFIXES = {
    LogLevel.WARNING: "WARNING: ",
    LogLevel.ERROR: "ERROR: ",
}


def progress_from_env() -> Optional[bool]:
    """COOKBOOKVENDOR_PROGRESS=0/1 forces progress off/on."""
    value = os.environ.get('COOKBOOKVENDOR_PROGRESS')
    if value == '0':
        return False
    if value == '1':
        return True
    return None


class ProgressReporter:
    """Handles progress reporting to stderr while keeping stdout clean for data."""

    def __init__(self, enabled: Optional[bool] = None, console: Optional[Console] = None):
        """
        Initialize progress reporter.

        Args:
            enabled: Explicitly enable/disable progress. None = environment,
                then auto-detect from stderr
            console: rich console to write to (stderr if None)
        """
        self.console = console or Console(stderr=True, highlight=False)
        if enabled is None:
            enabled = progress_from_env()
        if enabled is None:
            enabled = self.console.is_terminal
        self.enabled = enabled

    def _emit(self, message: str, level: LogLevel) -> None:
        self.console.print(
            f"{PREFIXES.get(level, '')}{message}",
            style=level.value or None,
            markup=False,
        )

    def __call__(self, message: str, force: bool = False, level: LogLevel = LogLevel.INFO):
        """
        Output progress message to stderr if enabled.

        Args:
            message: Progress message to display
            force: Force output even if disabled
            level: Log level for the message
        """
        if force or self.enabled:
            self._emit(message, level)

    def error(self, message: str):
        """Always output errors to stderr."""
        self._emit(message, LogLevel.ERROR)

    def warning(self, message: str):
        if self.enabled:
            self._emit(message, LogLevel.WARNING)

    def success(self, message: str):
        if self.enabled:
            self._emit(message, LogLevel.SUCCESS)

    @contextmanager
    def spinner(self, message: str = "Working...") -> Iterator[None]:
        """
        Show a spinner while a long step (clone, merge) runs.

        Falls back to a single static line when stderr is not a terminal.
        """
        if self.enabled and self.console.is_terminal:
            with self.console.status(message):
                yield
        else:
            self(message)
            yield


_progress: Optional[ProgressReporter] = None


def get_progress(enabled: Optional[bool] = None) -> ProgressReporter:
    """
    Get the global progress reporter.

    Args:
        enabled: Override auto-detection of progress display

    Returns:
        ProgressReporter instance
    """
    global _progress
    if _progress is None or enabled is not None:
        _progress = ProgressReporter(enabled)
    return _progress
