from __future__ import annotations

import json
import logging
from pathlib import Path
from types import SimpleNamespace
from typing import Iterator

import pytest
from typer.testing import CliRunner

from llm_bridge.cli.main import _interrupt, app


def _write_config(tmp_path: Path, **values: object) -> Path:
    config_path = tmp_path / "llm_bridge.yaml"
    config_path.write_text(json.dumps(values), encoding="utf-8")
    return config_path


def test_cli_init_creates_config_file(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["init", str(tmp_path)])

    assert result.exit_code == 0
    data = json.loads((tmp_path / "llm_bridge.yaml").read_text(encoding="utf-8"))
    assert data["tool_name"] == "llm"


def test_cli_init_reports_existing_config(tmp_path: Path) -> None:
    runner = CliRunner()
    runner.invoke(app, ["init", str(tmp_path)])

    result = runner.invoke(app, ["init", str(tmp_path)])

    assert result.exit_code == 1
    assert "already exists" in result.output


def test_cli_run_streams_output(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, tool_name="echo")
    runner = CliRunner()

    result = runner.invoke(app, ["run", "--config", str(config_path), "world"])

    assert result.exit_code == 0
    assert "world" in result.output


def test_cli_run_reports_aborted_job(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, tool_name="exit")
    runner = CliRunner()

    result = runner.invoke(app, ["run", "--config", str(config_path), "4"])

    assert result.exit_code == 1
    assert "Aborted" in result.output


def test_cli_sync_inserts_into_file(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, tool_name="tr a-z A-Z <")
    target = tmp_path / "notes.md"
    target.write_text("hello\nthere\n", encoding="utf-8")
    runner = CliRunner()

    result = runner.invoke(
        app,
        [
            "run",
            "--config",
            str(config_path),
            "--sync",
            "--file",
            str(target),
            "--insert-after",
            "1",
            "%",
        ],
    )

    assert result.exit_code == 0
    assert target.read_text(encoding="utf-8") == "hello\nHELLO\nTHERE\nthere\n"


def test_cli_sync_pipes_selected_range(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, tool_name="sort")
    target = tmp_path / "words.txt"
    target.write_text("pear\napple\nfig\n", encoding="utf-8")
    runner = CliRunner()

    result = runner.invoke(
        app,
        ["run", "-c", str(config_path), "--sync", "-f", str(target), "--range", "3:1", "--", "-r"],
    )

    assert result.exit_code == 0
    assert target.read_text(encoding="utf-8") == "pear\napple\nfig\npear\nfig\napple\n"


def test_cli_run_rejects_malformed_range(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["run", "--range", "a:b", "x"])

    assert result.exit_code != 0


def test_cli_sync_failure_exits_nonzero(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, tool_name="echo bad >&2; exit 1;")
    runner = CliRunner()

    result = runner.invoke(app, ["run", "-c", str(config_path), "--sync", "x"])

    assert result.exit_code == 1


@pytest.fixture
def root_level() -> Iterator[None]:
    previous = logging.getLogger().level
    yield
    logging.getLogger().setLevel(previous)


def test_cli_applies_configured_log_level(tmp_path: Path, root_level: None) -> None:
    config_path = _write_config(tmp_path, tool_name="echo", log_level="DEBUG")
    runner = CliRunner()

    result = runner.invoke(app, ["run", "-c", str(config_path), "--sync", "hi"])

    assert result.exit_code == 0
    assert logging.getLogger().level == logging.DEBUG


def test_cli_log_level_option_overrides_config(tmp_path: Path, root_level: None) -> None:
    config_path = _write_config(tmp_path, tool_name="echo", log_level="DEBUG")
    runner = CliRunner()

    result = runner.invoke(
        app, ["--log-level", "ERROR", "run", "-c", str(config_path), "--sync", "hi"]
    )

    assert result.exit_code == 0
    assert logging.getLogger().level == logging.ERROR


def test_cli_logs_run_metrics_at_debug(
    tmp_path: Path, root_level: None, caplog: pytest.LogCaptureFixture
) -> None:
    config_path = _write_config(tmp_path, tool_name="echo")
    caplog.set_level(logging.DEBUG, logger="llm_bridge.cli")
    runner = CliRunner()

    result = runner.invoke(app, ["run", "-c", str(config_path), "world"])

    assert result.exit_code == 0
    messages = [r.getMessage() for r in caplog.records if r.name == "llm_bridge.cli"]
    metrics_lines = [m for m in messages if m.startswith("Run metrics: ")]
    assert len(metrics_lines) == 1
    snapshot = json.loads(metrics_lines[0].removeprefix("Run metrics: "))
    assert snapshot["counters"]["jobs.started"] == 1
    assert snapshot["counters"]["jobs.succeeded"] == 1


class _StubSession:
    def __init__(self, job_id: str | None) -> None:
        self.controller = SimpleNamespace(active_job_id=job_id)
        self.stops = 0

    def stop(self) -> None:
        self.stops += 1


def test_interrupt_stops_only_a_tracked_job() -> None:
    idle = _StubSession(None)
    busy = _StubSession("abc123")

    _interrupt(idle)  # type: ignore[arg-type]
    _interrupt(busy)  # type: ignore[arg-type]

    assert idle.stops == 0
    assert busy.stops == 1
