"""Job lifecycle data types."""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum

from llm_bridge.commands import CommandSpec
from llm_bridge.execution.base import ProcessHandle, ProcessResult

ABORTED_MARKER = "Aborted"
NO_RESPONSE_MARKER = "Error: No response"


class JobRejectedError(RuntimeError):
    """Raised when a job is requested while another is active and overlap is rejected."""


class JobState(str, Enum):
    """Lifecycle states of the job controller."""

    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    COMPLETING = "completing"


class JobOutcome(str, Enum):
    """How a finished job was reported to the output sink."""

    SUCCEEDED = "succeeded"
    ABORTED = "aborted"
    NO_RESPONSE = "no_response"


@dataclass
class ProgressState:
    """Animation state of one job's progress ticker.

    Attributes:
        active: Cleared when the job finishes; the ticker stops on its next tick.
        ticks: Number of status lines rendered so far.
        timer: Pending loop callback for the next tick, if any.
    """

    active: bool = False
    ticks: int = 0
    timer: asyncio.Handle | None = None

    def frame(self, frames: int) -> int:
        """Return the current animation frame in ``0..frames-1``."""

        return self.ticks % frames


@dataclass
class Job:
    """One tracked invocation of the external tool."""

    spec: CommandSpec
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    state: JobState = JobState.STARTING
    handle: ProcessHandle | None = None
    progress: ProgressState = field(default_factory=ProgressState)
    result: ProcessResult | None = None
    started_at: float = field(default_factory=time.monotonic)

