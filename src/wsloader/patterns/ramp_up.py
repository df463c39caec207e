"""Ramp-up spawn pattern — clients join one by one and send ever more eagerly."""

from __future__ import annotations

from typing import TYPE_CHECKING

from wsloader.patterns.base import SpawnPattern, SpawnStep, _validate_positive

if TYPE_CHECKING:
    from collections.abc import Iterator


class RampUpPattern(SpawnPattern):
    """Spread client spawns evenly over the run duration.

    Clients are spawned ``duration * 1000 // clients`` milliseconds apart, so
    the last one joins shortly before the run's own deadline. Client ``k``
    sends every ``interval_ms // 2 + k`` milliseconds.

    Args:
        clients: Number of clients.  Must be >= 1.
        interval_ms: Base send interval.  Must be >= 0.
        duration_seconds: Run duration the spawns are spread over.  Must be > 0.

    Raises:
        ConfigError: If any argument is out of range.

    Example::

        pattern = RampUpPattern(clients=5, interval_ms=100, duration_seconds=5.0)
        steps = list(pattern.iter_spawns())
        assert [s.send_interval_ms for s in steps] == [50, 51, 52, 53, 54]
        assert all(s.delay_after_ms == 1000 for s in steps)
    """

    def __init__(self, clients: int, interval_ms: int, duration_seconds: float) -> None:
        super().__init__(clients, interval_ms)
        _validate_positive(duration_seconds, "duration_seconds")
        self.duration_seconds = duration_seconds

    @property
    def spawn_delay_ms(self) -> int:
        """Delay between two consecutive spawns, in whole milliseconds."""
        return int(self.duration_seconds * 1000) // self.clients

    def iter_spawns(self) -> Iterator[SpawnStep]:
        base_ms = self.interval_ms // 2
        delay_ms = self.spawn_delay_ms
        for client_id in range(self.clients):
            yield SpawnStep(
                client_id=client_id,
                send_interval_ms=base_ms + client_id,
                delay_after_ms=delay_ms,
            )

    def describe(self) -> str:
        return (
            f"Ramp-up: {self.clients} clients, one every {self.spawn_delay_ms}ms, "
            f"interval {self.interval_ms // 2}ms +1ms per client"
        )
