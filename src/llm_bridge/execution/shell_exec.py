"""Shell-backed process runner."""

from __future__ import annotations

import asyncio
import os
import signal
import subprocess
import time

from llm_bridge.execution.base import (
    ExitCallback,
    ProcessHandle,
    ProcessResult,
    ProcessRunner,
    ProcessStartError,
    StartedCallback,
)
from llm_bridge.util.logging import get_logger

_LOGGER = get_logger("llm_bridge.execution")


def normalize_exit_code(returncode: int) -> int:
    """Report signal deaths the way a shell does (128 + signum)."""

    if returncode < 0:
        return 128 - returncode
    return returncode


class ShellProcessHandle(ProcessHandle):
    """Handle for a command started by :class:`ShellProcessRunner`."""

    def __init__(self) -> None:
        self._process: asyncio.subprocess.Process | None = None
        self._kill_requested = False
        self._done = False
        self.task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return not self._done

    def kill(self) -> None:
        if self._done:
            return
        self._kill_requested = True
        if self._process is not None:
            _terminate_group(self._process.pid)

    def _attach(self, process: asyncio.subprocess.Process) -> None:
        self._process = process
        if self._kill_requested:
            _terminate_group(process.pid)

    def _finish(self) -> None:
        self._done = True
        self._process = None


class ShellProcessRunner(ProcessRunner):
    """Run commands through ``<shell> -c <command>``.

    The command string is handed to the shell untouched so it may contain
    pipes and redirections. Each command runs in its own session so that
    :meth:`ShellProcessHandle.kill` reaches the shell's children as well.
    """

    def __init__(self, shell: str = "sh", env: dict[str, str] | None = None) -> None:
        """Initialize the runner.

        Args:
            shell: Shell executable used for indirection.
            env: Optional environment variables merged over ``os.environ``.
        """

        self._shell = shell
        self._env = dict(env or {})

    def run(self, command: str, input_text: str | None = None) -> ProcessResult:
        start = time.monotonic()
        _LOGGER.debug("Running command synchronously: %s", command)
        try:
            completed = subprocess.run(
                self._argv(command),
                input=input_text,
                env=self._merged_env(),
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise ProcessStartError(f"Failed to start {self._shell!r}: {exc}") from exc
        duration = time.monotonic() - start
        _LOGGER.debug(
            "Command finished with exit code %s in %.2fs.",
            completed.returncode,
            duration,
        )

        return ProcessResult(
            command=command,
            stdout=completed.stdout,
            stderr=completed.stderr,
            exit_code=normalize_exit_code(completed.returncode),
            duration_s=duration,
        )

    def start(
        self,
        command: str,
        input_text: str | None,
        on_exit: ExitCallback,
        on_started: StartedCallback | None = None,
    ) -> ShellProcessHandle:
        loop = asyncio.get_running_loop()
        handle = ShellProcessHandle()
        handle.task = loop.create_task(
            self._supervise(handle, command, input_text, on_exit, on_started)
        )
        return handle

    async def _supervise(
        self,
        handle: ShellProcessHandle,
        command: str,
        input_text: str | None,
        on_exit: ExitCallback,
        on_started: StartedCallback | None,
    ) -> None:
        start = time.monotonic()
        stdin = asyncio.subprocess.PIPE if input_text is not None else asyncio.subprocess.DEVNULL
        try:
            process = await asyncio.create_subprocess_exec(
                *self._argv(command),
                stdin=stdin,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._merged_env(),
                start_new_session=True,
            )
        except OSError:
            _LOGGER.exception("Failed to start command: %s", command)
            handle._finish()
            on_exit(None)
            return
        except asyncio.CancelledError:
            handle._finish()
            on_exit(None)
            raise

        handle._attach(process)
        _LOGGER.debug("Started pid %s: %s", process.pid, command)
        if on_started is not None:
            on_started()
        payload = input_text.encode("utf-8") if input_text is not None else None
        try:
            stdout, stderr = await process.communicate(payload)
        except (BrokenPipeError, ConnectionResetError):
            _LOGGER.warning("Process %s closed stdin before reading all input.", process.pid)
            stdout, stderr = b"", b""
            await process.wait()
        except asyncio.CancelledError:
            _terminate_group(process.pid)
            handle._finish()
            on_exit(None)
            raise
        except OSError:
            _LOGGER.exception("Lost communication with pid %s.", process.pid)
            _terminate_group(process.pid)
            handle._finish()
            on_exit(None)
            return

        handle._finish()
        result = ProcessResult(
            command=command,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            exit_code=normalize_exit_code(process.returncode or 0),
            duration_s=time.monotonic() - start,
        )
        _LOGGER.debug("pid %s exited with %s.", process.pid, result.exit_code)
        on_exit(result)

    def _argv(self, command: str) -> list[str]:
        return [self._shell, "-c", command]

    def _merged_env(self) -> dict[str, str]:
        merged_env = os.environ.copy()
        merged_env.update(self._env)
        return merged_env


def _terminate_group(pid: int) -> None:
    try:
        os.killpg(pid, signal.SIGTERM)
    except ProcessLookupError:
        _LOGGER.debug("Process group %s already gone.", pid)
    except PermissionError:
        _LOGGER.warning("Not permitted to signal process group %s.", pid)
