"""Host integration interfaces and the terminal host."""

from llm_bridge.host.base import BufferSource, InsertionSink, Notifier, OutputSink
from llm_bridge.host.terminal import EchoNotifier, FileBuffer, FileInsertion, TerminalSink

__all__ = [
    "BufferSource",
    "EchoNotifier",
    "FileBuffer",
    "FileInsertion",
    "InsertionSink",
    "Notifier",
    "OutputSink",
    "TerminalSink",
]
