"""Prometheus-backed recorder and its pull-based HTTP exporter."""

from __future__ import annotations

from typing import TYPE_CHECKING

from prometheus_client import CollectorRegistry, Counter, Histogram, start_http_server

from wsloader._internal.config import parse_metrics_addr
from wsloader._internal.logging import get_logger
from wsloader.metrics.recorder import (
    LATENCY_MS,
    MESSAGES_FAILED,
    MESSAGES_RECEIVED,
    MESSAGES_SENT,
)

if TYPE_CHECKING:
    import threading
    from wsgiref.simple_server import WSGIServer

    from wsloader._internal.types import Labels

logger = get_logger("metrics.prometheus")

# Millisecond buckets from sub-millisecond to 10 seconds.
LATENCY_BUCKETS_MS = (
    0.5, 1.0, 2.5, 5.0, 10.0, 25.0, 50.0, 100.0, 250.0, 500.0, 1000.0, 2500.0, 5000.0, 10000.0,
)

_DESCRIPTIONS = {
    MESSAGES_SENT: "Messages sent to the target server",
    MESSAGES_RECEIVED: "Messages received from the target server",
    MESSAGES_FAILED: "Failed connects, sends and receives",
    LATENCY_MS: "Round-trip latency from send to first reply, in milliseconds",
}


class PrometheusRecorder:
    """Recorder that keeps its series in a Prometheus registry.

    The four series used by the engine are declared up front with a
    ``client_id`` label. Any other name is created on first use with the
    label names of that first call.

    Args:
        registry: Registry to register the series in. A private registry is
            created by default so that several recorders can coexist.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self._counters: dict[str, Counter] = {}
        self._histograms: dict[str, Histogram] = {}
        for name in (MESSAGES_SENT, MESSAGES_RECEIVED, MESSAGES_FAILED):
            self._counter(name, ("client_id",))
        self._histogram(LATENCY_MS, ("client_id",))

    def increment(self, name: str, labels: Labels) -> None:
        counter = self._counter(name, tuple(sorted(labels)))
        counter.labels(**labels).inc()

    def observe(self, name: str, value: float, labels: Labels) -> None:
        histogram = self._histogram(name, tuple(sorted(labels)))
        histogram.labels(**labels).observe(value)

    def _counter(self, name: str, labelnames: tuple[str, ...]) -> Counter:
        counter = self._counters.get(name)
        if counter is None:
            counter = Counter(
                name,
                _DESCRIPTIONS.get(name, name),
                labelnames,
                registry=self.registry,
            )
            self._counters[name] = counter
        return counter

    def _histogram(self, name: str, labelnames: tuple[str, ...]) -> Histogram:
        histogram = self._histograms.get(name)
        if histogram is None:
            histogram = Histogram(
                name,
                _DESCRIPTIONS.get(name, name),
                labelnames,
                registry=self.registry,
                buckets=LATENCY_BUCKETS_MS,
            )
            self._histograms[name] = histogram
        return histogram


class MetricsServer:
    """Handle on a running exporter started by :func:`start_metrics_server`."""

    def __init__(self, server: WSGIServer, thread: threading.Thread, address: str) -> None:
        self._server = server
        self._thread = thread
        self.address = address

    @property
    def port(self) -> int:
        """Port the exporter is actually bound to."""
        return int(self._server.server_port)

    def close(self) -> None:
        """Stop serving and wait for the exporter thread."""
        self._server.shutdown()
        self._server.server_close()
        self._thread.join(timeout=2.0)
        logger.debug("Metrics exporter on %s stopped", self.address)


def start_metrics_server(recorder: PrometheusRecorder, addr: str) -> MetricsServer:
    """Expose *recorder*'s registry over HTTP at ``http://<addr>/metrics``.

    Args:
        recorder: Recorder whose registry is served.
        addr: ``host:port`` to bind; port 0 picks a free port.

    Returns:
        A MetricsServer that can be closed at the end of the run.

    Raises:
        ConfigError: If *addr* is not a valid ``host:port``.
        OSError: If the address cannot be bound.
    """
    host, port = parse_metrics_addr(addr)
    server, thread = start_http_server(port, addr=host, registry=recorder.registry)
    handle = MetricsServer(server, thread, addr)
    logger.info("Starting Prometheus exporter on http://%s:%d/metrics", host, handle.port)
    return handle
