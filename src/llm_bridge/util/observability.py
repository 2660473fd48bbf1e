"""Structured job events and simple run metrics."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from llm_bridge.util.logging import get_logger, normalize_level


class JobEvent(str, Enum):
    """Names of the events emitted over a job's lifecycle."""

    TRANSITION = "job.transition"
    STARTED = "job.started"
    REPLACED = "job.replaced"
    STOP_REQUESTED = "job.stop_requested"
    COMPLETED = "job.completed"
    SYNC_COMPLETED = "sync.completed"


@dataclass(frozen=True)
class LogEvent:
    """One JSON line in the event log.

    Attributes:
        event_type: Value of the :class:`JobEvent` that occurred.
        timestamp: Unix timestamp in seconds.
        payload: Job id, states, exit code and similar fields.
    """

    event_type: str
    timestamp: float
    payload: dict[str, Any]


class EventLogger:
    """Writes job events as sorted-key JSON through a stdlib logger."""

    def __init__(self, logger_name: str) -> None:
        self._logger = get_logger(logger_name)

    def log(self, event: JobEvent, payload: dict[str, Any], *, level: str = "INFO") -> None:
        """Emit ``event`` with ``payload`` at ``level``."""

        record = LogEvent(event_type=event.value, timestamp=time.time(), payload=payload)
        self._logger.log(normalize_level(level), json.dumps(record.__dict__, sort_keys=True))


@dataclass
class MetricsCollector:
    """Counts job outcomes and records job durations."""

    counters: dict[str, int] = field(default_factory=dict)
    durations: dict[str, list[float]] = field(default_factory=dict)

    def increment(self, name: str, value: int = 1) -> None:
        self.counters[name] = self.counters.get(name, 0) + value

    def record_duration(self, name: str, duration_s: float) -> None:
        self.durations.setdefault(name, []).append(duration_s)

    def snapshot(self) -> dict[str, Any]:
        """Return counters plus count, total, mean and longest run per duration."""

        durations = {
            name: {
                "count": len(values),
                "total_s": sum(values),
                "avg_s": sum(values) / len(values),
                "max_s": max(values),
            }
            for name, values in self.durations.items()
            if values
        }
        return {"counters": dict(self.counters), "durations": durations}


@dataclass(frozen=True)
class ObservabilityManager:
    """Event log and metrics shared by a session's controller."""

    events: EventLogger
    metrics: MetricsCollector

    def log_event(self, event: JobEvent, payload: dict[str, Any], *, level: str = "INFO") -> None:
        self.events.log(event, payload, level=level)


def create_observability_manager(logger_name: str = "llm_bridge.events") -> ObservabilityManager:
    """Create an observability manager logging to ``logger_name``."""

    return ObservabilityManager(events=EventLogger(logger_name), metrics=MetricsCollector())
