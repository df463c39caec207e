"""Top-level orchestration of one load run."""

from __future__ import annotations

import asyncio
import logging
import sys
import time
from typing import TYPE_CHECKING, Any

import aiohttp

from wsloader._internal.errors import EngineError
from wsloader._internal.logging import get_logger, setup_logging
from wsloader.engine.scheduler import Scheduler
from wsloader.engine.worker import ConnectionWorker
from wsloader.metrics.counter import SentCounter
from wsloader.metrics.recorder import FanoutRecorder, SummaryRecorder
from wsloader.metrics.summary import compute_summary
from wsloader.patterns import build_pattern
from wsloader.protocol.payload import load_payload

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine

    from wsloader._internal.config import RunConfig
    from wsloader.engine.worker import ClientState, WorkerReport
    from wsloader.metrics.models import RunSummary
    from wsloader.metrics.recorder import Recorder

logger = get_logger("engine.runner")


class LoadRunner:
    """Runs one load test described by a RunConfig.

    Loads the payload template, spawns the clients through a Scheduler,
    waits out the run duration and builds the RunSummary. Clients still
    draining when the summary is taken get ``shutdown_grace`` seconds to
    finish before they are cancelled.

    Attributes:
        config: The run configuration.
        scheduler: Scheduler of the last run, None before :meth:`run`.
    """

    def __init__(
        self,
        config: RunConfig,
        *,
        recorder: Recorder | None = None,
        shutdown_grace: float = 2.0,
    ) -> None:
        """Initialize the runner.

        Args:
            config: Validated run configuration.
            recorder: Extra recorder (e.g. Prometheus) fed alongside the
                in-memory recorder used for the summary.
            shutdown_grace: Seconds to let lingering clients finish after
                the summary is taken.
        """
        self.config = config
        self._recorder = recorder
        self._shutdown_grace = shutdown_grace
        self.scheduler: Scheduler | None = None

    async def run(self) -> RunSummary:
        """Execute the run and return its summary.

        Raises:
            PayloadLoadError: If the payload file cannot be read.
            PayloadFormatError: If the payload file is not valid JSON.
            EngineError: If spawning the clients fails unexpectedly.
        """
        config = self.config
        template = load_payload(config.payload_path)
        pattern = build_pattern(
            config.pattern,
            clients=config.clients,
            interval_ms=config.interval_ms,
            duration_seconds=config.duration_secs,
        )

        summary_recorder = SummaryRecorder()
        recorder: Recorder = summary_recorder
        if self._recorder is not None:
            recorder = FanoutRecorder(summary_recorder, self._recorder)
        sent_counter = SentCounter()

        logger.info(
            "Starting load run: target=%s, clients=%d, duration=%.1fs, pattern=%s",
            config.connect_addr,
            config.clients,
            config.duration_secs,
            pattern.describe(),
        )

        start_time = time.monotonic()
        # One WebSocket per client; the default pool limit of 100 would queue the rest.
        connector = aiohttp.TCPConnector(limit=0)
        async with aiohttp.ClientSession(connector=connector) as session:

            def _make_worker(client: ClientState) -> Coroutine[Any, Any, WorkerReport]:
                worker = ConnectionWorker(
                    client,
                    connect_addr=config.connect_addr,
                    template=template,
                    session=session,
                    recorder=recorder,
                    sent_counter=sent_counter,
                    duration_seconds=config.duration_secs,
                    topic=config.topic,
                    drain_timeout=config.drain_timeout_secs,
                    connect_timeout=config.connect_timeout_secs,
                )
                return worker.run()

            scheduler = Scheduler(pattern, _make_worker, config.duration_secs)
            self.scheduler = scheduler

            try:
                await scheduler.run()
            except Exception as exc:
                logger.exception("Load run failed")
                await shutdown_clients(scheduler.tasks, grace=0.0)
                raise EngineError("Load run failed") from exc

            elapsed = time.monotonic() - start_time
            summary = compute_summary(
                sent_counter.value,
                elapsed,
                recorder=summary_recorder,
                reports=scheduler.finished_reports(),
                clients=len(scheduler.spawned),
                pattern_description=pattern.describe(),
            )
            logger.info(summary.summary_line())

            await shutdown_clients(scheduler.tasks, grace=self._shutdown_grace)

        return summary


async def shutdown_clients(
    tasks: list[asyncio.Task[WorkerReport | None]],
    grace: float,
) -> None:
    """Give client tasks *grace* seconds to finish, then cancel the rest.

    Args:
        tasks: Client tasks from the scheduler.
        grace: Seconds to wait before cancelling.
    """
    pending = [task for task in tasks if not task.done()]
    if not pending:
        return

    if grace > 0:
        _done, still_pending = await asyncio.wait(pending, timeout=grace)
    else:
        still_pending = set(pending)

    for task in still_pending:
        task.cancel()
    if still_pending:
        await asyncio.wait(still_pending, timeout=2.0)
        logger.info("Cancelled %d clients still running after the deadline", len(still_pending))


def _event_loop_runner() -> Callable[..., Any]:
    """Return ``uvloop.run`` when available, else ``asyncio.run``.

    uvloop does not support Windows; there, or if it is not installed, the
    default asyncio event loop is used.
    """
    if sys.platform == "win32":
        return asyncio.run

    try:
        import uvloop
    except ImportError:
        logger.debug("uvloop not available, using default asyncio event loop")
        return asyncio.run

    logger.debug("Using uvloop event loop")
    return uvloop.run


def run_load_test(
    config: RunConfig,
    *,
    recorder: Recorder | None = None,
    log_level: int = logging.INFO,
) -> RunSummary:
    """Run a load test to completion in the current process.

    Args:
        config: Validated run configuration.
        recorder: Optional extra recorder, e.g. a PrometheusRecorder.
        log_level: Logging level for the ``wsloader`` logger.

    Returns:
        The RunSummary.
    """
    setup_logging(level=log_level)
    runner = LoadRunner(config, recorder=recorder)
    return _event_loop_runner()(runner.run())
