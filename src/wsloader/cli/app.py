"""Main Typer application — entry point for the ``wsloader`` CLI."""

from __future__ import annotations

import typer

from wsloader import __version__
from wsloader.cli.init_cmd import init_cmd
from wsloader.cli.run import run_cmd

app = typer.Typer(
    name="wsloader",
    help="Drive concurrent WebSocket clients against a server and measure throughput.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("run", help="Run a load test from a loader TOML file.")(run_cmd)
app.command("init", help="Scaffold a loader.toml and payload.json.")(init_cmd)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"wsloader {__version__}")
        raise typer.Exit


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """wsloader — WebSocket load generation."""
