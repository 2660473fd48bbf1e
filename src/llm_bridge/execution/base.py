"""Process runner base types and interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable


class ProcessStartError(RuntimeError):
    """Raised when the shell for a command cannot be spawned at all."""


@dataclass(frozen=True)
class ProcessResult:
    """Result of running a shell command.

    Attributes:
        command: The shell command string that was executed.
        stdout: Captured standard output.
        stderr: Captured standard error.
        exit_code: Exit code of the process. Signal termination is reported
            as ``128 + signum``.
        duration_s: Duration of the execution in seconds.
    """

    command: str
    stdout: str
    stderr: str
    exit_code: int
    duration_s: float


ExitCallback = Callable[["ProcessResult | None"], None]
StartedCallback = Callable[[], None]


class ProcessHandle(ABC):
    """Live handle for an asynchronously running process."""

    @property
    @abstractmethod
    def running(self) -> bool:
        """Return True until the process has exited."""

    @abstractmethod
    def kill(self) -> None:
        """Request termination. Calling this on an exited process does nothing."""


class ProcessRunner(ABC):
    """Abstract base class for shell command runners."""

    @abstractmethod
    def run(self, command: str, input_text: str | None = None) -> ProcessResult:
        """Run a command to completion, blocking the caller.

        Args:
            command: Shell command string.
            input_text: Optional text written to the process's stdin.

        Returns:
            ProcessResult with stdout, stderr, exit code, and duration.

        Raises:
            ProcessStartError: If the process could not be spawned.
        """

    @abstractmethod
    def start(
        self,
        command: str,
        input_text: str | None,
        on_exit: ExitCallback,
        on_started: StartedCallback | None = None,
    ) -> ProcessHandle:
        """Start a command without blocking.

        ``on_started`` is invoked once the process has actually been spawned,
        and never if spawning fails. ``on_exit`` is invoked exactly once, after
        ``on_started`` when that was called, with the result or with ``None``
        if the process could not be started, communicated with, or was
        cancelled.
        """
