"""CLI entrypoints for llm-bridge."""

from __future__ import annotations

import asyncio
import json
import signal
import sys
from pathlib import Path

import typer

from llm_bridge.app import (
    AppConfigError,
    LLMSession,
    SyncOutcome,
    build_session,
    initialize_config,
)
from llm_bridge.commands import InvocationRequest, SelectionRange
from llm_bridge.config import load_config
from llm_bridge.host.terminal import EchoNotifier, FileBuffer, FileInsertion, TerminalSink
from llm_bridge.jobs.models import JobOutcome
from llm_bridge.util.logging import configure_logging, get_logger

app = typer.Typer(help="Run the llm command-line tool as a tracked job.")

_LOGGER = get_logger("llm_bridge.cli")


@app.callback()
def main(
    ctx: typer.Context,
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Logging level (e.g., DEBUG, INFO, WARNING). Overrides the config file.",
    ),
) -> None:
    """Configure CLI-level options."""

    ctx.obj = {"log_level": log_level}
    configure_logging(log_level or "WARNING")


@app.command()
def init(workspace: Path = typer.Argument(Path("."))) -> None:
    """Write a default llm_bridge.yaml into a workspace."""

    try:
        config_path = initialize_config(workspace)
    except AppConfigError as exc:
        typer.echo(f"Error: {exc}")
        raise typer.Exit(code=1) from exc
    typer.echo(f"Created configuration at {config_path}")


@app.command("run")
def run_command(
    ctx: typer.Context,
    args: list[str] = typer.Argument(
        ...,
        help="Arguments passed to the tool; use -- before tool flags.",
    ),
    sync: bool = typer.Option(
        False,
        "--sync",
        "-s",
        help="Block and insert the output instead of streaming it.",
    ),
    file: Path | None = typer.Option(
        None,
        "--file",
        "-f",
        help="Current file: source of % expansion, selections and insertions.",
    ),
    line_range: str | None = typer.Option(
        None,
        "--range",
        help="START:END lines of --file whose text is piped to the tool.",
    ),
    insert_after: int | None = typer.Option(
        None,
        "--insert-after",
        help="With --sync and --file, insert output after this line (default: end of file).",
    ),
    config_path: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file or directory.",
    ),
) -> None:
    """Run the tool once, asynchronously with progress or synchronously."""

    try:
        config = load_config(config_path)
    except (OSError, ValueError) as exc:
        typer.echo(f"Error: {exc}")
        raise typer.Exit(code=1) from exc
    if not (ctx.obj or {}).get("log_level"):
        configure_logging(config.log_level)

    selection = _parse_range(line_range) if line_range else None
    request = InvocationRequest(
        raw_args=" ".join(args),
        synchronous=sync,
        selection_range=selection,
    )
    sink = TerminalSink(sys.stdout)
    session = build_session(
        config,
        sink=sink,
        buffer=FileBuffer(file),
        insertion=FileInsertion(file, after_line=insert_after),
        notifier=EchoNotifier(),
    )

    if sync:
        outcome = session.invoke(request)
        _log_metrics(session)
        if not isinstance(outcome, SyncOutcome) or outcome.exit_code != 0:
            raise typer.Exit(code=1)
        return

    try:
        asyncio.run(_run_streaming(session, request))
    finally:
        sink.finish()
    _log_metrics(session)
    if session.controller.last_outcome is not JobOutcome.SUCCEEDED:
        raise typer.Exit(code=1)


async def _run_streaming(session: LLMSession, request: InvocationRequest) -> None:
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, _interrupt, session)
    except (NotImplementedError, RuntimeError):
        _LOGGER.debug("SIGINT handler unavailable; Ctrl-C will not stop the job cleanly.")
        handler_installed = False
    else:
        handler_installed = True
    try:
        session.invoke(request)
        await session.controller.wait_idle()
    finally:
        if handler_installed:
            loop.remove_signal_handler(signal.SIGINT)


def _interrupt(session: LLMSession) -> None:
    job_id = session.controller.active_job_id
    if job_id is None:
        _LOGGER.debug("Interrupt received with no tracked job.")
        return
    _LOGGER.info("Interrupt received; stopping job %s.", job_id)
    session.stop()


def _log_metrics(session: LLMSession) -> None:
    snapshot = session.controller.metrics_snapshot()
    _LOGGER.debug("Run metrics: %s", json.dumps(snapshot, sort_keys=True))


def _parse_range(value: str) -> SelectionRange:
    start, sep, end = value.partition(":")
    try:
        if not sep:
            return SelectionRange(int(start), int(start))
        return SelectionRange(int(start), int(end))
    except ValueError as exc:
        raise typer.BadParameter(f"Expected START:END line numbers, got {value!r}.") from exc
