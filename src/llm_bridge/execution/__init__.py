"""Process execution package."""

from llm_bridge.execution.base import (
    ProcessHandle,
    ProcessResult,
    ProcessRunner,
    ProcessStartError,
)
from llm_bridge.execution.shell_exec import ShellProcessHandle, ShellProcessRunner

__all__ = [
    "ProcessHandle",
    "ProcessResult",
    "ProcessRunner",
    "ProcessStartError",
    "ShellProcessHandle",
    "ShellProcessRunner",
]
