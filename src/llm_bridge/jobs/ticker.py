"""Progress animation shown while an asynchronous job runs."""

from __future__ import annotations

import asyncio

from llm_bridge.host.base import OutputSink
from llm_bridge.jobs.models import ProgressState

DEFAULT_LABEL = "In progress"
DEFAULT_MARKER = "."
DEFAULT_MAX_MARKERS = 3
DEFAULT_INTERVAL_S = 1.0


class ProgressTicker:
    """Re-render a status line on the sink until the job's progress goes inactive.

    The first tick runs on the next loop iteration; later ticks follow every
    ``interval_s`` seconds. The ticker has no stop method: it stops scheduling
    itself the first time it sees ``state.active`` cleared. Each tick rewrites
    the sink's current last line, so the sink may be reset between ticks.
    """

    def __init__(
        self,
        sink: OutputSink,
        state: ProgressState,
        loop: asyncio.AbstractEventLoop,
        *,
        label: str = DEFAULT_LABEL,
        marker: str = DEFAULT_MARKER,
        max_markers: int = DEFAULT_MAX_MARKERS,
        interval_s: float = DEFAULT_INTERVAL_S,
    ) -> None:
        if max_markers < 1:
            raise ValueError("max_markers must be at least 1.")
        self._sink = sink
        self._state = state
        self._loop = loop
        self._label = label
        self._marker = marker
        self._max_markers = max_markers
        self._interval_s = interval_s

    def start(self) -> None:
        """Schedule the first tick. Starting twice is a no-op."""

        if self._state.timer is not None:
            return
        self._state.timer = self._loop.call_soon(self._tick)

    def status_line(self) -> str:
        """Return the status line the next tick will render."""

        count = self._state.frame(self._max_markers) + 1
        return f"{self._label}{self._marker * count}"

    def _tick(self) -> None:
        self._state.timer = None
        if not self._state.active:
            return
        self._sink.replace_last_line(self.status_line())
        self._state.ticks += 1
        self._state.timer = self._loop.call_later(self._interval_s, self._tick)
