"""Spawn scheduler that turns a SpawnPattern into running client tasks."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from wsloader._internal.logging import get_logger
from wsloader.engine.worker import ClientState, WorkerReport

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine

    from wsloader.patterns.base import SpawnPattern

    WorkerFactory = Callable[[ClientState], Coroutine[Any, Any, WorkerReport]]

logger = get_logger("engine.scheduler")


@dataclass(frozen=True)
class SpawnRecord:
    """A client the scheduler has spawned.

    Attributes:
        client_id: Id of the client.
        send_interval_ms: Send interval the client was given.
        spawned_at: Monotonic time of the spawn.
        offset_seconds: Seconds between the scheduler start and the spawn.
    """

    client_id: int
    send_interval_ms: int
    spawned_at: float
    offset_seconds: float


class Scheduler:
    """Spawns one task per client following a SpawnPattern, then waits.

    :meth:`run` walks the pattern's spawn steps, starting each client as
    its own asyncio task and sleeping the step's delay before the next one.
    Once every client is spawned it waits the full run duration and
    returns. It never waits for the clients themselves: a client that is
    still draining keeps running after :meth:`run` returns.

    Args:
        pattern: Spawn policy.
        worker_factory: Coroutine function that runs one client to
            completion and returns its WorkerReport.
        duration_seconds: Time to wait after the last spawn.
    """

    def __init__(
        self,
        pattern: SpawnPattern,
        worker_factory: WorkerFactory,
        duration_seconds: float,
    ) -> None:
        self._pattern = pattern
        self._worker_factory = worker_factory
        self._duration_seconds = duration_seconds
        self._tasks: list[asyncio.Task[WorkerReport | None]] = []
        self.spawned: list[SpawnRecord] = []

    @property
    def tasks(self) -> list[asyncio.Task[WorkerReport | None]]:
        """Tasks of all spawned clients, in spawn order."""
        return list(self._tasks)

    async def run(self) -> None:
        """Spawn every client, then wait for the run duration."""
        start = time.monotonic()
        logger.info("Spawning clients: %s", self._pattern.describe())

        for step in self._pattern.iter_spawns():
            client = ClientState(client_id=step.client_id, send_interval_ms=step.send_interval_ms)
            task = asyncio.create_task(
                self._supervise(client),
                name=f"ws-client-{step.client_id}",
            )
            self._tasks.append(task)
            self.spawned.append(
                SpawnRecord(
                    client_id=step.client_id,
                    send_interval_ms=step.send_interval_ms,
                    spawned_at=client.started_at,
                    offset_seconds=client.started_at - start,
                )
            )
            logger.info(
                "Spawned client %d (interval %dms)", step.client_id, step.send_interval_ms
            )

            if step.delay_after_ms > 0:
                await asyncio.sleep(step.delay_after)

        logger.info(
            "All %d clients spawned in %.2fs, waiting %.1fs",
            len(self._tasks),
            time.monotonic() - start,
            self._duration_seconds,
        )
        await asyncio.sleep(self._duration_seconds)
        logger.info("Load complete")

    def finished_reports(self) -> list[WorkerReport]:
        """Return the reports of clients that have already terminated."""
        reports: list[WorkerReport] = []
        for task in self._tasks:
            if task.done() and not task.cancelled():
                report = task.result()
                if report is not None:
                    reports.append(report)
        return reports

    async def _supervise(self, client: ClientState) -> WorkerReport | None:
        """Run one client, keeping an unexpected crash local to it."""
        try:
            return await self._worker_factory(client)
        except Exception:
            logger.exception("Client %d crashed", client.client_id)
            return None
