"""Assembly of the shell command line for one invocation."""

from __future__ import annotations

import re
from dataclasses import dataclass

from llm_bridge.host.base import BufferSource

DEFAULT_TOOL_NAME = "llm"
ESCAPE_CHAR = "\\"
_TOKEN_PATTERN = re.compile(r"(\\?)(%\S*)")


@dataclass(frozen=True)
class SelectionRange:
    """A pair of 1-based buffer line numbers, in either order."""

    start_line: int
    end_line: int

    def ordered(self) -> tuple[int, int]:
        """Return ``(first, last)`` regardless of selection direction."""

        return min(self.start_line, self.end_line), max(self.start_line, self.end_line)

    def is_valid(self) -> bool:
        return min(self.start_line, self.end_line) >= 1


@dataclass(frozen=True)
class InvocationRequest:
    """A user request coming from the host's command layer.

    Attributes:
        raw_args: Arguments for the external tool, as typed by the user.
        synchronous: Block and insert the result at the cursor instead of
            streaming it to the output sink.
        selection_range: Optional line range whose text is piped to the tool.
    """

    raw_args: str
    synchronous: bool = False
    selection_range: SelectionRange | None = None


@dataclass(frozen=True)
class CommandSpec:
    """Everything needed to launch one job.

    Attributes:
        command: Final shell command string.
        input_text: Text piped to the process's stdin, if any.
        stream: True when output goes to the output sink, False when it is
            returned for direct insertion.
    """

    command: str
    input_text: str | None = None
    stream: bool = True


class CommandAssembler:
    """Build :class:`CommandSpec` values from invocation requests.

    No shell quoting is applied; the substituted argument string is appended
    to the tool name verbatim and callers must quote as needed.
    """

    def __init__(self, buffer: BufferSource, tool_name: str = DEFAULT_TOOL_NAME) -> None:
        self._buffer = buffer
        self._tool_name = tool_name

    def assemble(self, request: InvocationRequest) -> CommandSpec:
        """Create the command spec for ``request``."""

        args = self.substitute(request.raw_args)
        return CommandSpec(
            command=f"{self._tool_name} {args}",
            input_text=self.selection_text(request.selection_range),
            stream=not request.synchronous,
        )

    def substitute(self, raw_args: str) -> str:
        """Expand ``%`` tokens; an escaped token loses its escape and stays literal.

        Nothing is substituted when the buffer has no file name.
        """

        if not self._buffer.current_file_path():
            return raw_args

        def _replace(match: re.Match[str]) -> str:
            escape, token = match.group(1), match.group(2)
            if escape:
                return token
            return self._buffer.expand_modifier(token)

        return _TOKEN_PATTERN.sub(_replace, raw_args)

    def selection_text(self, selection: SelectionRange | None) -> str | None:
        """Return the selected lines joined by newlines, or None."""

        if selection is None or not selection.is_valid():
            return None
        first, last = selection.ordered()
        lines = self._buffer.get_lines(0, first, last)
        if not lines:
            return None
        return "\n".join(lines)
