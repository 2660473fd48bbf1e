"""Lifecycle management for the single tracked asynchronous job."""

from __future__ import annotations

import asyncio
import time
from functools import partial
from typing import Any

from llm_bridge.commands import CommandSpec
from llm_bridge.config import ProgressConfig
from llm_bridge.execution.base import ProcessResult, ProcessRunner
from llm_bridge.host.base import OutputSink
from llm_bridge.jobs.models import (
    ABORTED_MARKER,
    NO_RESPONSE_MARKER,
    Job,
    JobOutcome,
    JobRejectedError,
    JobState,
)
from llm_bridge.jobs.ticker import ProgressTicker
from llm_bridge.util.logging import get_logger
from llm_bridge.util.observability import (
    JobEvent,
    ObservabilityManager,
    create_observability_manager,
)

_LOGGER = get_logger("llm_bridge.jobs")


class JobController:
    """Start, stop and report on at most one tracked job.

    All state changes happen on the event loop thread. Spawn and completion
    reports from the runner are re-posted onto the loop before they touch
    controller state or the sink.

    Starting a job while another is tracked follows ``overlap_policy``. With
    "replace" (the default) the new job takes over the tracked slot once the
    runner has accepted it, and the previous process keeps running untracked.
    When it exits, its completion is handled as if it were the tracked job's,
    so it writes its result to the sink and returns the controller to idle
    while the newer job may still be running. "reject" raises
    :class:`JobRejectedError` instead.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        sink: OutputSink,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        progress: ProgressConfig | None = None,
        overlap_policy: str = "replace",
        observability: ObservabilityManager | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            runner: Process runner used to launch commands.
            sink: Display surface that receives results and status lines.
            loop: Event loop to schedule on. Defaults to the running loop at
                the time a job starts.
            progress: Progress ticker settings.
            overlap_policy: "replace" or "reject".
            observability: Event logger and metrics collector.
        """

        self._runner = runner
        self._sink = sink
        self._loop = loop
        self._progress = progress or ProgressConfig()
        self._overlap_policy = overlap_policy
        self._observability = observability or create_observability_manager()
        self._state = JobState.IDLE
        self._job: Job | None = None
        self._last_outcome: JobOutcome | None = None
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def state(self) -> JobState:
        """Return the current lifecycle state."""

        return self._state

    @property
    def last_outcome(self) -> JobOutcome | None:
        """Return how the most recently completed job was reported."""

        return self._last_outcome

    @property
    def active_job_id(self) -> str | None:
        return self._job.job_id if self._job is not None else None

    def start(self, spec: CommandSpec) -> str:
        """Launch ``spec`` asynchronously.

        The job is tracked in STARTING until the runner reports the spawned
        process; only then does it move to RUNNING and start its progress
        ticker. A spawn failure completes the job without it ever running.

        Returns:
            Identifier of the new job.

        Raises:
            JobRejectedError: If a job is tracked and overlap is rejected.
        """

        loop = self._loop or asyncio.get_running_loop()
        self._loop = loop
        previous = self._job
        if previous is not None and self._overlap_policy == "reject":
            self._observability.metrics.increment("jobs.rejected")
            raise JobRejectedError(f"Job {previous.job_id} is still running.")

        job = Job(spec=spec)
        self._transition(JobState.STARTING, job)
        self._idle.clear()
        try:
            job.handle = self._runner.start(
                spec.command,
                spec.input_text,
                self._on_exit,
                partial(self._on_started, job),
            )
        except Exception:
            if previous is not None:
                self._transition(previous.state, previous)
            else:
                self._transition(JobState.IDLE, job)
                self._idle.set()
            raise

        if previous is not None:
            self._orphan(previous)
        self._job = job
        return job.job_id

    def run_sync(self, spec: CommandSpec) -> ProcessResult:
        """Run ``spec`` to completion on the calling thread.

        The tracked job, its state and the ticker are left untouched.

        Raises:
            ProcessStartError: If the process could not be spawned.
        """

        result = self._runner.run(spec.command, spec.input_text)
        self._observability.metrics.record_duration("sync.duration", result.duration_s)
        self._observability.log_event(
            JobEvent.SYNC_COMPLETED,
            {"command": spec.command, "exit_code": result.exit_code},
        )
        return result

    def stop(self) -> None:
        """Ask the tracked process to terminate. Does nothing when no job is tracked.

        Completion is still reported through the normal exit path.
        """

        job = self._job
        if job is None or job.handle is None:
            _LOGGER.debug("Stop requested with no tracked job.")
            return
        if not job.handle.running:
            _LOGGER.debug("Stop requested after job %s exited.", job.job_id)
            return
        self._observability.log_event(JobEvent.STOP_REQUESTED, {"job_id": job.job_id})
        job.handle.kill()

    async def wait_idle(self) -> None:
        """Wait until the controller returns to idle."""

        await self._idle.wait()

    def metrics_snapshot(self) -> dict[str, Any]:
        return self._observability.metrics.snapshot()

    def _orphan(self, previous: Job) -> None:
        _LOGGER.warning(
            "Replacing tracked job %s; its process keeps running untracked.",
            previous.job_id,
        )
        self._observability.metrics.increment("jobs.replaced")
        self._observability.log_event(
            JobEvent.REPLACED,
            {"job_id": previous.job_id},
            level="WARNING",
        )
        previous.progress.active = False

    def _on_started(self, job: Job) -> None:
        loop = self._loop
        if loop is None:
            raise RuntimeError("Process started before the controller bound an event loop.")
        loop.call_soon_threadsafe(self._mark_running, job)

    def _mark_running(self, job: Job) -> None:
        if self._job is not job:
            _LOGGER.debug("Job %s spawned after it stopped being tracked.", job.job_id)
            return
        self._transition(JobState.RUNNING, job)
        self._observability.metrics.increment("jobs.started")
        self._observability.log_event(
            JobEvent.STARTED,
            {
                "job_id": job.job_id,
                "command": job.spec.command,
                "has_input": job.spec.input_text is not None,
            },
        )
        job.progress.active = True
        ProgressTicker(
            self._sink,
            job.progress,
            self._loop,
            label=self._progress.label,
            marker=self._progress.marker,
            max_markers=self._progress.max_markers,
            interval_s=self._progress.interval_s,
        ).start()

    def _on_exit(self, result: ProcessResult | None) -> None:
        loop = self._loop
        if loop is None:
            raise RuntimeError("Process exited before the controller bound an event loop.")
        loop.call_soon_threadsafe(self._complete, result)

    def _complete(self, result: ProcessResult | None) -> None:
        job = self._job
        self._transition(JobState.COMPLETING, job)
        if job is not None:
            job.progress.active = False
            job.result = result
        self._job = None

        outcome, lines = classify_result(result)
        self._last_outcome = outcome
        self._sink.replace_last_line(lines[0])
        if len(lines) > 1:
            self._sink.append_lines(lines[1:])

        self._record_completion(job, result, outcome)
        self._transition(JobState.IDLE, job)
        self._idle.set()

    def _record_completion(
        self,
        job: Job | None,
        result: ProcessResult | None,
        outcome: JobOutcome,
    ) -> None:
        metrics = self._observability.metrics
        metrics.increment(f"jobs.{outcome.value}")
        if job is not None:
            metrics.record_duration("job.duration", time.monotonic() - job.started_at)
        self._observability.log_event(
            JobEvent.COMPLETED,
            {
                "job_id": job.job_id if job is not None else None,
                "outcome": outcome.value,
                "exit_code": result.exit_code if result is not None else None,
            },
            level="INFO" if outcome is JobOutcome.SUCCEEDED else "WARNING",
        )
        if outcome is JobOutcome.ABORTED and result is not None and result.stderr:
            _LOGGER.debug("Discarded stderr of aborted job: %s", result.stderr.strip())

    def _transition(self, new_state: JobState, job: Job | None) -> None:
        previous_state = self._state
        self._state = new_state
        if job is not None:
            job.state = new_state
        self._observability.log_event(
            JobEvent.TRANSITION,
            {
                "job_id": job.job_id if job is not None else None,
                "from": previous_state.value,
                "to": new_state.value,
            },
            level="DEBUG",
        )


def classify_result(result: ProcessResult | None) -> tuple[JobOutcome, list[str]]:
    """Map a process result to its outcome and the lines shown for it."""

    if result is None:
        return JobOutcome.NO_RESPONSE, [NO_RESPONSE_MARKER]
    if result.exit_code > 0:
        return JobOutcome.ABORTED, [ABORTED_MARKER]
    return JobOutcome.SUCCEEDED, result.stdout.split("\n")
