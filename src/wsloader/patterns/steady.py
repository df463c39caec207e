"""Steady spawn pattern — uniform offered load with staggered connects."""

from __future__ import annotations

from typing import TYPE_CHECKING

from wsloader.patterns.base import SpawnPattern, SpawnStep

if TYPE_CHECKING:
    from collections.abc import Iterator

# Pause between two spawns, so that connects do not all land at once.
STAGGER_DELAY_MS = 10


class SteadyPattern(SpawnPattern):
    """Spawn every client with the same send interval, 10 ms apart.

    Args:
        clients: Number of clients.  Must be >= 1.
        interval_ms: Send interval of every client.  Must be >= 0.

    Example::

        steps = list(SteadyPattern(clients=3, interval_ms=100).iter_spawns())
        assert [s.send_interval_ms for s in steps] == [100, 100, 100]
        assert all(s.delay_after_ms == 10 for s in steps)
    """

    def iter_spawns(self) -> Iterator[SpawnStep]:
        for client_id in range(self.clients):
            yield SpawnStep(
                client_id=client_id,
                send_interval_ms=self.interval_ms,
                delay_after_ms=STAGGER_DELAY_MS,
            )

    def describe(self) -> str:
        return f"Steady: {self.clients} clients every {self.interval_ms}ms"
