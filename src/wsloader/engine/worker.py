"""Connection worker: one virtual client driving one WebSocket session."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING

import aiohttp

from wsloader._internal.logging import get_logger
from wsloader.metrics.recorder import (
    LATENCY_MS,
    MESSAGES_FAILED,
    MESSAGES_RECEIVED,
    MESSAGES_SENT,
)
from wsloader.protocol.messages import OutgoingMessage, Topic

if TYPE_CHECKING:
    from wsloader.metrics.counter import SentCounter
    from wsloader.metrics.recorder import Recorder
    from wsloader.protocol.payload import PayloadTemplate

logger = get_logger("engine.worker")

_DATA_FRAMES = (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY)
_TRANSPORT_ERRORS = (aiohttp.ClientError, OSError, RuntimeError)

# Wait for the peer's close frame; a peer that never answers is dropped after this.
CLOSE_TIMEOUT_SECS = 1.0


class WorkerState(Enum):
    """Lifecycle of a connection worker.

    CONNECTING -> ACTIVE -> DRAINING -> TERMINATED, and any state may jump
    straight to TERMINATED on error.
    """

    CONNECTING = auto()
    ACTIVE = auto()
    DRAINING = auto()
    TERMINATED = auto()


class WorkerOutcome(str, Enum):
    """Why a worker terminated."""

    COMPLETED = "completed"
    STREAM_CLOSED = "stream_closed"
    CONNECTION_FAILED = "connection_failed"
    SEND_FAILED = "send_failed"
    RECEIVE_FAILED = "receive_failed"
    DRAIN_TIMEOUT = "drain_timeout"

    @property
    def is_failure(self) -> bool:
        """True for outcomes counted in ``messages_failed_total``."""
        return self in (
            WorkerOutcome.CONNECTION_FAILED,
            WorkerOutcome.SEND_FAILED,
            WorkerOutcome.RECEIVE_FAILED,
        )


@dataclass
class ClientState:
    """Per-client settings fixed at spawn time.

    Attributes:
        client_id: Id of the client, dense in ``[0, clients)``.
        send_interval_ms: Pause after each request/reply round, in milliseconds.
        started_at: Monotonic time the client was spawned.
    """

    client_id: int
    send_interval_ms: int
    started_at: float = field(default_factory=time.monotonic)

    @property
    def send_interval(self) -> float:
        """Send interval in seconds."""
        return self.send_interval_ms / 1000.0


@dataclass
class WorkerReport:
    """What one worker did during the run.

    Attributes:
        client_id: Id of the client.
        outcome: Why the worker terminated; None while it is still running.
        sent: Requests sent (counted before each transmission).
        received: Replies received, drain phase included.
        drained: Replies received during the drain phase.
        failed: Failures recorded (at most one, since a failure ends the worker).
        states: Every state the worker entered, in order.
    """

    client_id: int
    outcome: WorkerOutcome | None = None
    sent: int = 0
    received: int = 0
    drained: int = 0
    failed: int = 0
    states: list[WorkerState] = field(default_factory=list)


class ConnectionWorker:
    """Runs the send/receive loop of a single virtual client.

    While ACTIVE the worker sends a fresh request, waits for exactly one
    inbound message, then sleeps for its send interval, until
    ``duration_seconds`` have passed since the session opened. It then
    DRAINS: no more sends, but replies still in flight are consumed until
    the server closes the stream (or ``drain_timeout`` expires).

    Every failure is handled here; nothing propagates to the caller.

    Args:
        client: Spawn-time settings of this client.
        connect_addr: WebSocket URL of the target server.
        template: Shared payload template.
        session: aiohttp session used to open the WebSocket.
        recorder: Sink for counters and latency samples.
        sent_counter: Run-wide sent counter.
        duration_seconds: Length of the ACTIVE phase.
        topic: Topic stamped on every request.
        drain_timeout: Upper bound on the DRAINING phase in seconds; None
            drains until the server closes the stream.
        connect_timeout: Timeout for the WebSocket handshake in seconds.
        close_timeout: Seconds to wait for the server to answer our close
            frame before the connection is dropped.
    """

    def __init__(
        self,
        client: ClientState,
        *,
        connect_addr: str,
        template: PayloadTemplate,
        session: aiohttp.ClientSession,
        recorder: Recorder,
        sent_counter: SentCounter,
        duration_seconds: float,
        topic: Topic = Topic.VAULT_OPEN,
        drain_timeout: float | None = 5.0,
        connect_timeout: float = 10.0,
        close_timeout: float = CLOSE_TIMEOUT_SECS,
    ) -> None:
        self.client = client
        self._connect_addr = connect_addr
        self._template = template
        self._session = session
        self._recorder = recorder
        self._sent_counter = sent_counter
        self._duration_seconds = duration_seconds
        self._topic = topic
        self._drain_timeout = drain_timeout
        self._connect_timeout = connect_timeout
        self._close_timeout = close_timeout

        self._labels = {"client_id": str(client.client_id)}
        self._log = logging.LoggerAdapter(logger, {"client_id": client.client_id})
        self.report = WorkerReport(client_id=client.client_id)

    @property
    def state(self) -> WorkerState | None:
        """Current state, or None before :meth:`run` is called."""
        return self.report.states[-1] if self.report.states else None

    async def run(self) -> WorkerReport:
        """Drive the session from connect to termination.

        Returns:
            The WorkerReport, with ``outcome`` set.
        """
        self._transition(WorkerState.CONNECTING)
        try:
            ws = await asyncio.wait_for(
                self._session.ws_connect(
                    self._connect_addr,
                    timeout=aiohttp.ClientWSTimeout(ws_close=self._close_timeout),
                ),
                timeout=self._connect_timeout,
            )
        except (*_TRANSPORT_ERRORS, TimeoutError, ValueError) as exc:
            self._log.warning(
                "Client %d: connection to %s failed: %s",
                self.client.client_id,
                self._connect_addr,
                str(exc) or type(exc).__name__,
            )
            self._fail()
            return self._finish(WorkerOutcome.CONNECTION_FAILED)

        self._log.debug("Client %d: connected to %s", self.client.client_id, self._connect_addr)
        try:
            outcome = await self._run_active(ws)
            if outcome is None:
                outcome = await self._run_draining(ws)
        finally:
            if not ws.closed:
                await ws.close()
            if self.state is not WorkerState.TERMINATED:
                self._transition(WorkerState.TERMINATED)

        return self._finish(outcome)

    async def _run_active(self, ws: aiohttp.ClientWebSocketResponse) -> WorkerOutcome | None:
        """Send/receive until the duration is spent.

        Returns:
            None when the duration ran out (go on to DRAINING), otherwise the
            terminal outcome.
        """
        self._transition(WorkerState.ACTIVE)
        activated_at = time.monotonic()
        client_id = self.client.client_id

        while time.monotonic() - activated_at < self._duration_seconds:
            message = OutgoingMessage.request(self._template, self._topic)
            frame = message.to_json()

            self._increment(MESSAGES_SENT)
            self._sent_counter.increment()
            self.report.sent += 1

            sent_at = time.monotonic()
            try:
                await ws.send_str(frame)
            except _TRANSPORT_ERRORS as exc:
                self._log.warning("Client %d: failed to send: %s", client_id, exc)
                self._fail()
                return WorkerOutcome.SEND_FAILED

            self._log.debug("Client %d: sent message with ID %s", client_id, message.correlation_id)

            try:
                reply = await ws.receive()
            except _TRANSPORT_ERRORS as exc:
                self._log.warning("Client %d: error receiving: %s", client_id, exc)
                self._fail()
                return WorkerOutcome.RECEIVE_FAILED

            if reply.type in _DATA_FRAMES:
                latency_ms = (time.monotonic() - sent_at) * 1000
                self._increment(MESSAGES_RECEIVED)
                self._observe(LATENCY_MS, latency_ms)
                self.report.received += 1
                self._log.debug("Client %d: received reply in %.2fms", client_id, latency_ms)
            elif reply.type is aiohttp.WSMsgType.ERROR:
                self._log.warning("Client %d: error receiving: %s", client_id, ws.exception())
                self._fail()
                return WorkerOutcome.RECEIVE_FAILED
            else:
                self._log.info("Client %d: connection closed by server", client_id)
                return WorkerOutcome.STREAM_CLOSED

            await asyncio.sleep(self.client.send_interval)

        return None

    async def _run_draining(self, ws: aiohttp.ClientWebSocketResponse) -> WorkerOutcome:
        """Consume late replies until the server closes the stream."""
        self._transition(WorkerState.DRAINING)
        client_id = self.client.client_id
        deadline = None
        if self._drain_timeout is not None:
            deadline = time.monotonic() + self._drain_timeout

        while True:
            timeout = None
            if deadline is not None:
                timeout = deadline - time.monotonic()
                if timeout <= 0:
                    return self._drain_expired()

            try:
                reply = await ws.receive(timeout=timeout)
            except TimeoutError:
                return self._drain_expired()
            except _TRANSPORT_ERRORS as exc:
                self._log.warning("Client %d: error receiving while draining: %s", client_id, exc)
                self._fail()
                return WorkerOutcome.RECEIVE_FAILED

            if reply.type in _DATA_FRAMES:
                self._increment(MESSAGES_RECEIVED)
                self.report.received += 1
                self.report.drained += 1
            elif reply.type is aiohttp.WSMsgType.ERROR:
                self._log.warning(
                    "Client %d: error receiving while draining: %s", client_id, ws.exception()
                )
                self._fail()
                return WorkerOutcome.RECEIVE_FAILED
            else:
                self._log.debug(
                    "Client %d: drained %d late replies", client_id, self.report.drained
                )
                return WorkerOutcome.COMPLETED

    def _drain_expired(self) -> WorkerOutcome:
        self._log.info(
            "Client %d: server did not close within %.1fs of the deadline, closing",
            self.client.client_id,
            self._drain_timeout,
        )
        return WorkerOutcome.DRAIN_TIMEOUT

    def _transition(self, state: WorkerState) -> None:
        self.report.states.append(state)

    def _finish(self, outcome: WorkerOutcome) -> WorkerReport:
        if self.state is not WorkerState.TERMINATED:
            self._transition(WorkerState.TERMINATED)
        self.report.outcome = outcome
        return self.report

    def _fail(self) -> None:
        self.report.failed += 1
        self._increment(MESSAGES_FAILED)

    def _increment(self, name: str) -> None:
        try:
            self._recorder.increment(name, self._labels)
        except Exception:
            self._log.debug("Recorder failed on %s", name, exc_info=True)

    def _observe(self, name: str, value: float) -> None:
        try:
            self._recorder.observe(name, value, self._labels)
        except Exception:
            self._log.debug("Recorder failed on %s", name, exc_info=True)
