"""Interfaces the host (editor or terminal) implements for the core."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Sequence


class OutputSink(ABC):
    """Display surface that receives job output and status lines."""

    @abstractmethod
    def ensure_visible(self) -> None:
        """Make the display surface visible if it is hidden."""

    @abstractmethod
    def reset(self) -> None:
        """Clear all content, leaving a single empty line."""

    @abstractmethod
    def append_lines(self, lines: Sequence[str]) -> None:
        """Append lines after the current last line."""

    @abstractmethod
    def replace_last_line(self, text: str) -> None:
        """Replace whatever is currently the last line with ``text``."""


class BufferSource(ABC):
    """Read access to the host's current buffer."""

    @abstractmethod
    def current_file_path(self) -> str:
        """Return the path of the current file, or an empty string."""

    @abstractmethod
    def get_lines(self, buffer_id: int, start_line: int, end_line: int) -> list[str]:
        """Return lines ``start_line..end_line`` (1-based, inclusive)."""

    @abstractmethod
    def expand_modifier(self, token: str) -> str:
        """Expand a filename-modifier token such as ``%`` or ``%:p``."""


class InsertionSink(ABC):
    """Target for synchronous output inserted into the buffer."""

    @abstractmethod
    def insert_after_cursor(self, lines: Sequence[str]) -> None:
        """Insert lines below the cursor line."""

    def filetype(self) -> str:
        """Return the filetype of the insertion context."""

        return ""

    def commentstring(self) -> str | None:
        """Return the host's comment template, if it knows one."""

        return None


class Notifier(ABC):
    """User-visible notifications outside the output sink."""

    @abstractmethod
    def notify(self, message: str, level: int = logging.INFO) -> None:
        """Show a message at the given logging level."""

    def echo(self, message: str) -> None:
        """Show a transient status message."""

        self.notify(message, logging.INFO)
