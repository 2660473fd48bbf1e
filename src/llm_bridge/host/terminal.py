"""Terminal implementations of the host interfaces, used by the CLI."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence, TextIO

import typer

from llm_bridge.comments import filetype_for_path
from llm_bridge.host.base import BufferSource, InsertionSink, Notifier, OutputSink
from llm_bridge.modifiers import expand_filename_modifiers

_ERASE_LINE = "\r\x1b[2K"


class TerminalSink(OutputSink):
    """Render sink content to a text stream.

    On a TTY the last line is rewritten in place; otherwise each replacement
    is written on its own line. ``lines`` always holds the logical content.
    """

    def __init__(self, stream: TextIO | None = None, interactive: bool | None = None) -> None:
        self._stream = stream
        if interactive is None:
            interactive = bool(stream is not None and stream.isatty())
        self._interactive = interactive
        self._lines: list[str] = [""]
        self._line_open = False

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    def ensure_visible(self) -> None:
        pass

    def reset(self) -> None:
        self._close_line()
        self._lines = [""]

    def append_lines(self, lines: Sequence[str]) -> None:
        for line in lines:
            self._lines.append(line)
            self._close_line()
            self._write(line)

    def replace_last_line(self, text: str) -> None:
        if self._lines:
            self._lines[-1] = text
        else:
            self._lines.append(text)
        if self._interactive and self._line_open:
            self._write(f"{_ERASE_LINE}{text}")
            return
        self._close_line()
        self._write(text)

    def finish(self) -> None:
        """Terminate the last rendered line."""

        self._close_line()

    def _write(self, text: str) -> None:
        typer.echo(text, file=self._stream, nl=False)
        self._line_open = True

    def _close_line(self) -> None:
        if self._line_open:
            typer.echo("", file=self._stream)
            self._line_open = False


class FileBuffer(BufferSource):
    """Buffer source backed by a file on disk; the buffer id is ignored."""

    def __init__(self, path: Path | None) -> None:
        self._path = path

    def current_file_path(self) -> str:
        return str(self._path) if self._path is not None else ""

    def get_lines(self, buffer_id: int, start_line: int, end_line: int) -> list[str]:
        if self._path is None or not self._path.exists():
            return []
        lines = self._path.read_text(encoding="utf-8").splitlines()
        return lines[max(start_line, 1) - 1 : end_line]

    def expand_modifier(self, token: str) -> str:
        return expand_filename_modifiers(token, self.current_file_path())


class FileInsertion(InsertionSink):
    """Insert lines into a file after a given line, or echo them if there is no file."""

    def __init__(self, path: Path | None = None, after_line: int | None = None) -> None:
        self._path = path
        self._after_line = after_line

    def filetype(self) -> str:
        if self._path is None:
            return ""
        return filetype_for_path(self._path)

    def insert_after_cursor(self, lines: Sequence[str]) -> None:
        if self._path is None:
            for line in lines:
                typer.echo(line)
            return
        text = self._path.read_text(encoding="utf-8") if self._path.exists() else ""
        existing = text.splitlines()
        index = len(existing) if self._after_line is None else self._after_line
        index = min(max(index, 0), len(existing))
        updated = existing[:index] + list(lines) + existing[index:]
        self._path.write_text("\n".join(updated) + "\n", encoding="utf-8")


class EchoNotifier(Notifier):
    """Print notifications; warnings and errors go to stderr."""

    def notify(self, message: str, level: int = logging.INFO) -> None:
        typer.echo(message, err=level >= logging.WARNING)

    def echo(self, message: str) -> None:
        if message:
            typer.echo(message, err=True)
