"""End-of-run throughput and latency summary."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from wsloader.metrics.models import RunSummary
from wsloader.metrics.recorder import LATENCY_MS, MESSAGES_FAILED, MESSAGES_RECEIVED

if TYPE_CHECKING:
    from collections.abc import Iterable

    from wsloader.engine.worker import WorkerReport
    from wsloader.metrics.recorder import SummaryRecorder


def messages_per_second(total_sent: int, elapsed_seconds: float) -> float:
    """Return throughput, defined as 0.0 when no time has elapsed."""
    if elapsed_seconds <= 0:
        return 0.0
    return total_sent / elapsed_seconds


def compute_summary(
    total_sent: int,
    elapsed_seconds: float,
    *,
    recorder: SummaryRecorder | None = None,
    reports: Iterable[WorkerReport] = (),
    clients: int = 0,
    pattern_description: str = "",
) -> RunSummary:
    """Build the RunSummary for a finished run.

    Only *total_sent* and *elapsed_seconds* are needed for the throughput
    figures. The in-memory *recorder* adds receive/failure totals and latency
    percentiles, and *reports* from clients that already terminated add the
    outcome breakdown.

    Args:
        total_sent: Final value of the shared sent counter.
        elapsed_seconds: Seconds from run start to now.
        recorder: In-memory recorder fed by the clients, if any.
        reports: Reports of clients that have finished.
        clients: Number of clients spawned.
        pattern_description: Description of the load pattern.

    Returns:
        The populated RunSummary.
    """
    summary = RunSummary(
        total_sent=total_sent,
        elapsed_seconds=elapsed_seconds,
        requests_per_second=messages_per_second(total_sent, elapsed_seconds),
        clients=clients,
        pattern_description=pattern_description,
        outcomes=dict(
            Counter(report.outcome.value for report in reports if report.outcome is not None)
        ),
    )

    if recorder is not None:
        latency = recorder.histogram(LATENCY_MS)
        summary.total_received = recorder.total(MESSAGES_RECEIVED)
        summary.total_failed = recorder.total(MESSAGES_FAILED)
        summary.latency_p50 = latency.get_percentile(50.0)
        summary.latency_p95 = latency.get_percentile(95.0)
        summary.latency_p99 = latency.get_percentile(99.0)
        summary.latency_max = latency.get_max()
        summary.latency_avg = latency.get_mean()

    return summary
