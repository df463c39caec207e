"""Shared test fixtures for the wsloader test suite."""

from __future__ import annotations

import asyncio
import json
import socket
import threading
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

import aiohttp
import pytest
from aiohttp import web

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator
    from pathlib import Path


# =============================================================================
# Pytest configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-apply markers based on test directory structure."""
    for item in items:
        test_path = str(item.fspath)
        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/e2e/" in test_path:
            item.add_marker(pytest.mark.e2e)


# =============================================================================
# Network utilities
# =============================================================================


def _get_free_port() -> int:
    """Find an available port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


# =============================================================================
# WebSocket server handlers
# =============================================================================


# Above aiohttp's default 4 MiB max_msg_size, so the client rejects it.
OVERSIZE_FRAME = "x" * (5 * 1024 * 1024)


async def _ws_handler(request: web.Request) -> web.WebSocketResponse:
    """Reply to every text frame, shaped by query parameters.

    Query parameters:
        replies: Copies of each frame sent back (default 1).
        idle_close: Close the stream after this many idle seconds.
        close_after: Echo this many frames, then close on the next one.
        oversize_reply: Answer every frame with an oversize frame.
        oversize_on_idle: With ``idle_close``, send an oversize frame
            instead of closing once the stream goes idle.
        stall_on_idle: With ``idle_close``, stop reading for this many
            seconds once the stream goes idle, ignoring close frames.
    """
    query = request.query
    replies = int(query.get("replies", "1"))
    idle_close = float(query["idle_close"]) if "idle_close" in query else None
    close_after = int(query["close_after"]) if "close_after" in query else None
    oversize_reply = "oversize_reply" in query
    oversize_on_idle = "oversize_on_idle" in query
    stall_on_idle = float(query["stall_on_idle"]) if "stall_on_idle" in query else None
    received: list[dict[str, Any]] = request.app["received"]

    ws = web.WebSocketResponse()
    await ws.prepare(request)

    handled = 0
    while True:
        try:
            msg = await ws.receive(timeout=idle_close)
        except TimeoutError:
            if oversize_on_idle:
                await ws.send_str(OVERSIZE_FRAME)
            elif stall_on_idle is not None:
                await asyncio.sleep(stall_on_idle)
            break
        if msg.type is not aiohttp.WSMsgType.TEXT:
            break
        received.append(json.loads(msg.data))
        handled += 1
        if close_after is not None and handled > close_after:
            break
        if oversize_reply:
            await ws.send_str(OVERSIZE_FRAME)
            continue
        for _ in range(replies):
            await ws.send_str(msg.data)

    await ws.close()
    return ws


async def _plain_handler(request: web.Request) -> web.Response:
    """Plain HTTP endpoint; a WebSocket handshake against it fails."""
    return web.json_response({"status": "ok"})


def _create_ws_app() -> web.Application:
    app = web.Application()
    app["received"] = []
    app.router.add_get("/ws", _ws_handler)
    app.router.add_get("/plain", _plain_handler)
    return app


class WsServer:
    """Handle on a running test server.

    Attributes:
        base_url: ``ws://127.0.0.1:<port>``.
        received: Decoded frames the server has received, in order.
    """

    def __init__(self, port: int, app: web.Application) -> None:
        self.port = port
        self.base_url = f"ws://127.0.0.1:{port}"
        self.received: list[dict[str, Any]] = app["received"]

    def url(self, path: str = "/ws", **params: object) -> str:
        """Return a URL on this server, with *params* as the query string."""
        query = f"?{urlencode(params)}" if params else ""
        return f"{self.base_url}{path}{query}"


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
async def ws_server() -> AsyncIterator[WsServer]:
    """Aiohttp WebSocket server running on the test's event loop."""
    app = _create_ws_app()
    port = _get_free_port()
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    yield WsServer(port, app)
    await runner.cleanup()


@pytest.fixture
def closed_port_url() -> str:
    """WebSocket URL on a port nothing listens on."""
    return f"ws://127.0.0.1:{_get_free_port()}/ws"


@pytest.fixture
def payload_data() -> dict[str, Any]:
    """A small vault-open request body."""
    return {
        "tx_feerate": 2,
        "vault_pubkey": "02abc",
        "acct_id": "acct-1",
        "borrow_amount": 1000,
        "sats_inputs": [{"txid": "00" * 32, "vout": 0, "value": 5000}],
    }


@pytest.fixture
def payload_file(tmp_path: Path, payload_data: dict[str, Any]) -> Path:
    """Payload JSON file on disk."""
    path = tmp_path / "payload.json"
    path.write_text(json.dumps(payload_data))
    return path


# =============================================================================
# Sync fixtures for CLI tests
# =============================================================================


@pytest.fixture
def sync_ws_server() -> Iterator[WsServer]:
    """WebSocket server running in a background thread.

    Used by CLI tests, where the command under test runs its own event loop
    and blocks the main thread.
    """
    port = _get_free_port()
    app = _create_ws_app()
    started = threading.Event()
    loop_holder: list[asyncio.AbstractEventLoop] = []

    def _thread_target() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        runner = web.AppRunner(app)
        loop.run_until_complete(runner.setup())
        site = web.TCPSite(runner, "127.0.0.1", port)
        loop.run_until_complete(site.start())
        loop_holder.append(loop)
        started.set()
        loop.run_forever()
        loop.run_until_complete(runner.cleanup())
        loop.close()

    thread = threading.Thread(target=_thread_target, daemon=True)
    thread.start()
    started.wait(timeout=5.0)

    yield WsServer(port, app)

    if loop_holder:
        loop_holder[0].call_soon_threadsafe(loop_holder[0].stop)
    thread.join(timeout=5.0)


@pytest.fixture
def loader_config(tmp_path: Path, payload_file: Path, sync_ws_server: WsServer) -> Path:
    """loader.toml pointing at the threaded server; idle streams close after 0.2s."""
    path = tmp_path / "loader.toml"
    path.write_text(
        f"""\
[server]
connect_addr = "{sync_ws_server.url(idle_close=0.2)}"
json_path = "{payload_file.name}"
metrics_addr = "127.0.0.1:0"

[load]
clients = 2
interval_ms = 50
duration_secs = 0.5
pattern = "burst"
drain_timeout_secs = 1.0
"""
    )
    return path
