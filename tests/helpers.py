"""Fakes shared by the test modules."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

import pytest

from llm_bridge.host.base import BufferSource, OutputSink


@dataclass
class _Scheduled:
    when: float
    callback: Callable[..., None]
    args: tuple[Any, ...]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """Deterministic stand-in for the event loop's scheduling methods."""

    def __init__(self) -> None:
        self.time = 0.0
        self.ready: list[_Scheduled] = []
        self.timers: list[_Scheduled] = []
        self.delays: list[float] = []

    def call_soon(self, callback: Callable[..., None], *args: Any) -> _Scheduled:
        item = _Scheduled(self.time, callback, args)
        self.ready.append(item)
        return item

    call_soon_threadsafe = call_soon

    def call_later(self, delay: float, callback: Callable[..., None], *args: Any) -> _Scheduled:
        self.delays.append(delay)
        item = _Scheduled(self.time + delay, callback, args)
        self.timers.append(item)
        return item

    def run_ready(self) -> None:
        while self.ready:
            item = self.ready.pop(0)
            if not item.cancelled:
                item.callback(*item.args)

    def advance(self, seconds: float) -> None:
        self.time += seconds
        due = sorted((t for t in self.timers if t.when <= self.time), key=lambda t: t.when)
        self.timers = [t for t in self.timers if t.when > self.time]
        self.ready.extend(due)
        self.run_ready()


class RecordingSink(OutputSink):
    def __init__(self) -> None:
        self.lines: list[str] = [""]
        self.visible = False
        self.replacements: list[str] = []

    def ensure_visible(self) -> None:
        self.visible = True

    def reset(self) -> None:
        self.lines = [""]

    def append_lines(self, lines: Sequence[str]) -> None:
        self.lines.extend(lines)

    def replace_last_line(self, text: str) -> None:
        self.replacements.append(text)
        if self.lines:
            self.lines[-1] = text
        else:
            self.lines.append(text)


@dataclass
class FakeBuffer(BufferSource):
    path: str = ""
    content: list[str] = field(default_factory=list)
    expanded: dict[str, str] = field(default_factory=dict)

    def current_file_path(self) -> str:
        return self.path

    def get_lines(self, buffer_id: int, start_line: int, end_line: int) -> list[str]:
        return self.content[start_line - 1 : end_line]

    def expand_modifier(self, token: str) -> str:
        return self.expanded.get(token, token)


def job_events(caplog: pytest.LogCaptureFixture, event_type: str) -> list[dict[str, Any]]:
    events = []
    for record in caplog.records:
        if record.name != "llm_bridge.events":
            continue
        payload = json.loads(record.getMessage())
        if payload["event_type"] == event_type:
            events.append(payload["payload"])
    return events

