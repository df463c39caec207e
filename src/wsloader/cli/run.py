"""``wsloader run`` — execute a load run and print its summary."""

from __future__ import annotations

import dataclasses
import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from wsloader._internal.config import load_config
from wsloader._internal.errors import WsLoaderError
from wsloader._internal.logging import setup_logging
from wsloader.engine.runner import run_load_test
from wsloader.metrics.prometheus import PrometheusRecorder, start_metrics_server

if TYPE_CHECKING:
    from wsloader._internal.config import RunConfig
    from wsloader.metrics.models import RunSummary
    from wsloader.metrics.prometheus import MetricsServer

console = Console(stderr=True)


def _describe_config(config: RunConfig) -> Panel:
    drain = (
        "until closed"
        if config.drain_timeout_secs is None
        else f"{config.drain_timeout_secs:g}s max"
    )
    return Panel(
        f"[bold]Target:[/bold]   {config.connect_addr}\n"
        f"[bold]Payload:[/bold]  {config.payload_path}\n"
        f"[bold]Pattern:[/bold]  {config.pattern.value}\n"
        f"[bold]Clients:[/bold]  {config.clients}\n"
        f"[bold]Interval:[/bold] {config.interval_ms}ms\n"
        f"[bold]Duration:[/bold] {config.duration_secs:g}s\n"
        f"[bold]Topic:[/bold]    {config.topic.value}\n"
        f"[bold]Drain:[/bold]    {drain}",
        title="wsloader",
        border_style="cyan",
    )


def _print_summary(summary: RunSummary) -> None:
    """Print the end-of-run table."""
    table = Table(
        title="Run Complete",
        show_header=True,
        header_style="bold green",
        expand=True,
    )
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Pattern", summary.pattern_description)
    table.add_row("Clients", str(summary.clients))
    table.add_row("Elapsed", f"{summary.elapsed_seconds:.2f}s")
    table.add_row("Messages Sent", str(summary.total_sent))
    table.add_row("Messages Received", str(summary.total_received))
    table.add_row("Failures", str(summary.total_failed))
    table.add_row("Messages/sec", f"{summary.requests_per_second:.2f}")
    table.add_row("p50 Latency", f"{summary.latency_p50:.1f}ms")
    table.add_row("p95 Latency", f"{summary.latency_p95:.1f}ms")
    table.add_row("p99 Latency", f"{summary.latency_p99:.1f}ms")
    table.add_row("Max Latency", f"{summary.latency_max:.1f}ms")
    for outcome, count in sorted(summary.outcomes.items()):
        table.add_row(f"Clients {outcome}", str(count))

    console.print(table)
    console.print(summary.summary_line())


def _hold(server: MetricsServer) -> None:
    console.print(
        f"[cyan]Metrics still served on port {server.port}. Press Ctrl+C to exit.[/cyan]"
    )
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        console.print("Shutting down.")


def run_cmd(
    config_file: Path = typer.Argument(
        ...,
        help="Path to the loader TOML file.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    pattern: str | None = typer.Option(
        None,
        "--pattern",
        "-p",
        help="Override the load pattern: steady, burst, or ramp-up.",
    ),
    clients: int | None = typer.Option(
        None,
        "--clients",
        "-c",
        help="Override the number of clients.",
        min=1,
    ),
    interval_ms: int | None = typer.Option(
        None,
        "--interval-ms",
        "-i",
        help="Override the base send interval in milliseconds.",
        min=0,
    ),
    duration: float | None = typer.Option(
        None,
        "--duration",
        "-d",
        help="Override the run duration in seconds.",
    ),
    target: str | None = typer.Option(
        None,
        "--target",
        "-t",
        help="Override the WebSocket URL of the target server.",
    ),
    payload: Path | None = typer.Option(
        None,
        "--payload",
        help="Override the payload JSON file.",
    ),
    topic: str | None = typer.Option(
        None,
        "--topic",
        help="Override the topic of every request (e.g. /vault/open).",
    ),
    metrics_addr: str | None = typer.Option(
        None,
        "--metrics-addr",
        help="Override the host:port of the Prometheus exporter.",
    ),
    no_metrics: bool = typer.Option(
        False,
        "--no-metrics",
        help="Do not start the Prometheus exporter.",
    ),
    unbounded_drain: bool = typer.Option(
        False,
        "--unbounded-drain",
        help="Let clients drain until the server closes, with no time limit.",
    ),
    hold: bool = typer.Option(
        False,
        "--hold",
        help="Keep serving metrics after the run until Ctrl+C.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose (DEBUG) logging, including every send.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Emit logs as one JSON object per line.",
    ),
) -> None:
    """Execute a load run against a WebSocket server."""
    log_level = logging.DEBUG if verbose else logging.INFO
    setup_logging(level=log_level, json_format=json_logs)

    try:
        config = load_config(config_file).with_overrides(
            pattern=pattern,
            clients=clients,
            interval_ms=interval_ms,
            duration_secs=duration,
            connect_addr=target,
            payload_path=payload,
            topic=topic,
            metrics_addr=metrics_addr,
        )
    except WsLoaderError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    if unbounded_drain:
        config = dataclasses.replace(config, drain_timeout_secs=None)

    console.print(_describe_config(config))

    recorder: PrometheusRecorder | None = None
    server: MetricsServer | None = None
    if not no_metrics:
        recorder = PrometheusRecorder()
        try:
            server = start_metrics_server(recorder, config.metrics_addr)
        except OSError as exc:
            console.print(
                f"[yellow]Metrics exporter not started on {config.metrics_addr}:[/yellow] {exc}"
            )

    try:
        summary = run_load_test(config, recorder=recorder, log_level=log_level)
    except WsLoaderError as exc:
        console.print(f"[red]Load run failed:[/red] {exc}")
        if server is not None:
            server.close()
        raise typer.Exit(code=1) from exc

    _print_summary(summary)

    if server is not None:
        if hold:
            _hold(server)
        server.close()
