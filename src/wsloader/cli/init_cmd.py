"""``wsloader init`` — scaffold a loader config and payload file."""

from __future__ import annotations

import json
from pathlib import Path
from string import Template

import typer
from rich.console import Console

console = Console(stderr=True)

CONFIG_FILENAME = "loader.toml"
PAYLOAD_FILENAME = "payload.json"

_CONFIG_TEMPLATE = Template("""\
# wsloader configuration.
#
# Run with:
#     wsloader run $config_filename

[server]
connect_addr = "$connect_addr"
json_path = "$payload_filename"
metrics_addr = "127.0.0.1:9100"

[load]
clients = 10
interval_ms = 100
duration_secs = 30
pattern = "steady"  # steady | burst | ramp-up
topic = "/vault/open"
drain_timeout_secs = 5.0
""")

_SAMPLE_PAYLOAD = {
    "tx_feerate": 1,
    "vault_pubkey": "",
    "acct_id": "",
    "borrow_amount": 0,
    "deposit_amount": 0,
}


def init_cmd(
    directory: Path = typer.Argument(
        Path("."),
        help="Directory to write loader.toml and payload.json into.",
        file_okay=False,
    ),
    connect_addr: str = typer.Option(
        "ws://127.0.0.1:8080/ws",
        "--target",
        "-t",
        help="WebSocket URL written into the config.",
    ),
) -> None:
    """Scaffold a loader.toml and a sample payload.json."""
    directory.mkdir(parents=True, exist_ok=True)
    config_path = directory / CONFIG_FILENAME
    payload_path = directory / PAYLOAD_FILENAME

    for target in (config_path, payload_path):
        if target.exists():
            console.print(f"[red]File already exists:[/red] {target}")
            raise typer.Exit(code=1)

    config_path.write_text(
        _CONFIG_TEMPLATE.substitute(
            config_filename=CONFIG_FILENAME,
            payload_filename=PAYLOAD_FILENAME,
            connect_addr=connect_addr,
        )
    )
    payload_path.write_text(json.dumps(_SAMPLE_PAYLOAD, indent=2) + "\n")
    console.print(f"[green]Created:[/green] {config_path} and {payload_path}")
