"""Recorder capability used by connection workers to report counters and latencies."""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from wsloader._internal.logging import get_logger
from wsloader.metrics.histogram import HdrHistogramWrapper

if TYPE_CHECKING:
    from wsloader._internal.types import Labels

logger = get_logger("metrics.recorder")

MESSAGES_SENT = "messages_sent_total"
MESSAGES_RECEIVED = "messages_received_total"
MESSAGES_FAILED = "messages_failed_total"
LATENCY_MS = "latency_ms"


@runtime_checkable
class Recorder(Protocol):
    """Sink for named counters and histogram samples.

    Calls are fire-and-forget. Workers guard every call, so an implementation
    that raises only loses the sample.
    """

    def increment(self, name: str, labels: Labels) -> None:
        """Add one to the counter *name* for *labels*."""

    def observe(self, name: str, value: float, labels: Labels) -> None:
        """Record *value* in the histogram *name* for *labels*."""


class NoopRecorder:
    """Recorder that discards everything."""

    def increment(self, name: str, labels: Labels) -> None:
        pass

    def observe(self, name: str, value: float, labels: Labels) -> None:
        pass


class SummaryRecorder:
    """In-memory recorder that feeds the end-of-run summary.

    Keeps a total and a per-label-set tally for every counter name, plus one
    HDR histogram per histogram name. Everything runs on the event loop
    thread, so no locking is needed.
    """

    def __init__(self) -> None:
        self._totals: dict[str, int] = defaultdict(int)
        self._by_labels: dict[tuple[str, tuple[tuple[str, str], ...]], int] = defaultdict(int)
        self._histograms: dict[str, HdrHistogramWrapper] = {}

    def increment(self, name: str, labels: Labels) -> None:
        self._totals[name] += 1
        self._by_labels[(name, tuple(sorted(labels.items())))] += 1

    def observe(self, name: str, value: float, labels: Labels) -> None:
        histogram = self._histograms.get(name)
        if histogram is None:
            histogram = self._histograms[name] = HdrHistogramWrapper()
        histogram.record_latency_ms(value)

    def total(self, name: str) -> int:
        """Return the total of counter *name* across all label sets."""
        return self._totals.get(name, 0)

    def count(self, name: str, labels: Labels) -> int:
        """Return counter *name* for exactly *labels*."""
        return self._by_labels.get((name, tuple(sorted(labels.items()))), 0)

    def histogram(self, name: str) -> HdrHistogramWrapper:
        """Return the histogram for *name*, empty if nothing was observed."""
        return self._histograms.get(name) or HdrHistogramWrapper()


class FanoutRecorder:
    """Forward every call to several recorders.

    A recorder that raises does not stop the others from receiving the call.
    """

    def __init__(self, *recorders: Recorder) -> None:
        self._recorders = recorders

    def increment(self, name: str, labels: Labels) -> None:
        for recorder in self._recorders:
            try:
                recorder.increment(name, labels)
            except Exception:
                logger.debug("Recorder %r failed on %s", recorder, name, exc_info=True)

    def observe(self, name: str, value: float, labels: Labels) -> None:
        for recorder in self._recorders:
            try:
                recorder.observe(name, value, labels)
            except Exception:
                logger.debug("Recorder %r failed on %s", recorder, name, exc_info=True)
