"""Job lifecycle package."""

from llm_bridge.jobs.controller import JobController, classify_result
from llm_bridge.jobs.models import (
    ABORTED_MARKER,
    NO_RESPONSE_MARKER,
    Job,
    JobOutcome,
    JobRejectedError,
    JobState,
    ProgressState,
)
from llm_bridge.jobs.ticker import ProgressTicker

__all__ = [
    "ABORTED_MARKER",
    "NO_RESPONSE_MARKER",
    "Job",
    "JobController",
    "JobOutcome",
    "JobRejectedError",
    "JobState",
    "ProgressState",
    "ProgressTicker",
    "classify_result",
]
