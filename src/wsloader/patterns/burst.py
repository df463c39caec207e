"""Burst spawn pattern — every client connects at once."""

from __future__ import annotations

from typing import TYPE_CHECKING

from wsloader.patterns.base import SpawnPattern, SpawnStep

if TYPE_CHECKING:
    from collections.abc import Iterator


class BurstPattern(SpawnPattern):
    """Spawn all clients back-to-back with no delay between them.

    This is the worst case for the server: simultaneous handshakes followed
    by simultaneous first sends.

    Args:
        clients: Number of clients.  Must be >= 1.
        interval_ms: Send interval of every client.  Must be >= 0.
    """

    def iter_spawns(self) -> Iterator[SpawnStep]:
        for client_id in range(self.clients):
            yield SpawnStep(
                client_id=client_id,
                send_interval_ms=self.interval_ms,
                delay_after_ms=0,
            )

    def describe(self) -> str:
        return f"Burst: {self.clients} clients at once, every {self.interval_ms}ms"
