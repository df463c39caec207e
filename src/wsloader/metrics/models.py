"""Result dataclasses for a load run."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class RunSummary:
    """Aggregate outcome of one load run.

    Attributes:
        total_sent: Messages sent by all clients, read from the shared counter.
        elapsed_seconds: Wall-clock time from run start to the end of the wait.
        requests_per_second: ``total_sent / elapsed_seconds`` (0.0 if no time passed).
        total_received: Replies received, drain phase included.
        total_failed: Failed connects, sends and receives.
        latency_p50: Median round-trip latency (ms).
        latency_p95: 95th percentile round-trip latency (ms).
        latency_p99: 99th percentile round-trip latency (ms).
        latency_max: Largest round-trip latency (ms).
        latency_avg: Mean round-trip latency (ms).
        clients: Number of clients spawned.
        pattern_description: Human-readable load pattern.
        outcomes: Count of finished clients per outcome name.
    """

    total_sent: int
    elapsed_seconds: float
    requests_per_second: float
    total_received: int = 0
    total_failed: int = 0
    latency_p50: float = 0.0
    latency_p95: float = 0.0
    latency_p99: float = 0.0
    latency_max: float = 0.0
    latency_avg: float = 0.0
    clients: int = 0
    pattern_description: str = ""
    outcomes: dict[str, int] = field(default_factory=dict)

    def summary_line(self) -> str:
        """Return the one-line operator summary."""
        return (
            f"Summary: sent {self.total_sent} messages in {self.elapsed_seconds:.2f} "
            f"seconds ({self.requests_per_second:.2f} msg/sec)"
        )
