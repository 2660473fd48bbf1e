"""Application wiring: one session per host, mirroring the user commands."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path

from llm_bridge.commands import CommandAssembler, CommandSpec, InvocationRequest
from llm_bridge.comments import commentstring_for, format_as_comments, needs_commenting
from llm_bridge.config import AppConfig, config_to_dict
from llm_bridge.execution.base import ProcessRunner, ProcessStartError
from llm_bridge.execution.shell_exec import ShellProcessRunner
from llm_bridge.host.base import BufferSource, InsertionSink, Notifier, OutputSink
from llm_bridge.jobs.controller import JobController
from llm_bridge.util.logging import get_logger
from llm_bridge.util.observability import ObservabilityManager, create_observability_manager

SYNC_PROGRESS_MESSAGE = "In progress..."
SYNC_FAILURE_PREFIX = "llm failed: "

_LOGGER = get_logger("llm_bridge.app")


class AppConfigError(RuntimeError):
    """Raised when configuration or runtime setup fails."""


@dataclass(frozen=True)
class SyncOutcome:
    """What a synchronous invocation did.

    Attributes:
        inserted: Lines inserted after the cursor (empty on failure).
        exit_code: Exit code of the tool, or None if it never started.
    """

    inserted: list[str]
    exit_code: int | None


class LLMSession:
    """Entry point for a host: invoke the external tool or stop the running job."""

    def __init__(
        self,
        assembler: CommandAssembler,
        controller: JobController,
        sink: OutputSink,
        insertion: InsertionSink,
        notifier: Notifier,
    ) -> None:
        self._assembler = assembler
        self._controller = controller
        self._sink = sink
        self._insertion = insertion
        self._notifier = notifier

    @property
    def controller(self) -> JobController:
        return self._controller

    def invoke(self, request: InvocationRequest) -> str | SyncOutcome:
        """Run one request.

        Asynchronous requests return the new job id; synchronous requests
        block and return a :class:`SyncOutcome`.
        """

        spec = self._assembler.assemble(request)
        _LOGGER.info("Invoking: %s", spec.command)
        self._sink.reset()
        if not spec.stream:
            return self._run_sync(spec)
        self._sink.ensure_visible()
        return self._controller.start(spec)

    def stop(self) -> None:
        """Interrupt the running job, if any."""

        self._controller.stop()

    def _run_sync(self, spec: CommandSpec) -> SyncOutcome:
        self._notifier.echo(SYNC_PROGRESS_MESSAGE)
        try:
            result = self._controller.run_sync(spec)
        except ProcessStartError as exc:
            _LOGGER.error("Synchronous run could not start: %s", exc)
            self._notifier.notify(f"{SYNC_FAILURE_PREFIX}{exc}", logging.ERROR)
            return SyncOutcome(inserted=[], exit_code=None)

        if result.exit_code > 0:
            self._notifier.notify(f"{SYNC_FAILURE_PREFIX}{result.stderr}", logging.ERROR)
            return SyncOutcome(inserted=[], exit_code=result.exit_code)

        lines = output_lines(result.stdout)
        filetype = self._insertion.filetype()
        if needs_commenting(filetype):
            commentstring = self._insertion.commentstring() or commentstring_for(filetype)
            lines = format_as_comments(lines, commentstring)
        if lines:
            self._insertion.insert_after_cursor(lines)
        self._notifier.echo("")
        return SyncOutcome(inserted=lines, exit_code=result.exit_code)


def output_lines(stdout: str) -> list[str]:
    """Split output into lines, dropping the empty item after a final newline.

    A leading blank line in ``stdout`` is kept.
    """

    lines = stdout.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def build_session(
    config: AppConfig,
    *,
    sink: OutputSink,
    buffer: BufferSource,
    insertion: InsertionSink,
    notifier: Notifier,
    runner: ProcessRunner | None = None,
    loop: asyncio.AbstractEventLoop | None = None,
    observability: ObservabilityManager | None = None,
) -> LLMSession:
    """Build a session from configuration and host collaborators.

    Args:
        config: Application configuration.
        sink: Output display surface.
        buffer: Source of the current file name and buffer lines.
        insertion: Target for synchronous output.
        notifier: User notification channel.
        runner: Optional pre-built process runner (for testing).
        loop: Optional event loop for the controller.
        observability: Optional pre-built observability manager.

    Returns:
        A ready-to-use LLMSession.
    """

    runner_instance = runner or ShellProcessRunner(shell=config.shell, env=config.env)
    controller = JobController(
        runner_instance,
        sink,
        loop=loop,
        progress=config.progress,
        overlap_policy=config.overlap_policy,
        observability=observability or create_observability_manager(),
    )
    assembler = CommandAssembler(buffer, tool_name=config.tool_name)
    return LLMSession(assembler, controller, sink, insertion, notifier)


def initialize_config(workspace: Path) -> Path:
    """Create a default configuration file in the workspace.

    Args:
        workspace: Directory where the config should be written.

    Returns:
        Path to the generated configuration file.

    Raises:
        AppConfigError: If the config file already exists.
    """

    workspace = workspace.resolve()
    config_path = workspace / "llm_bridge.yaml"
    if config_path.exists():
        raise AppConfigError(
            f"Config file already exists at {config_path}. Remove it or choose another "
            "workspace."
        )
    config_path.write_text(json.dumps(config_to_dict(AppConfig()), indent=2), encoding="utf-8")
    _LOGGER.info("Initialized configuration at %s", config_path)
    return config_path
