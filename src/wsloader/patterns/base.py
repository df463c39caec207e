"""Abstract base class for client spawn patterns."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from wsloader._internal.errors import ConfigError

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass(frozen=True)
class SpawnStep:
    """One client to spawn.

    Attributes:
        client_id: Id of the client, dense in ``[0, clients)``.
        send_interval_ms: Pause between the client's sends, in milliseconds.
        delay_after_ms: Pause before the next spawn, in milliseconds.
    """

    client_id: int
    send_interval_ms: int
    delay_after_ms: int

    @property
    def send_interval(self) -> float:
        """Send interval in seconds."""
        return self.send_interval_ms / 1000.0

    @property
    def delay_after(self) -> float:
        """Spawn delay in seconds."""
        return self.delay_after_ms / 1000.0


class SpawnPattern(ABC):
    """Abstract base for spawn policies.

    A spawn pattern decides, for every client of a run, when it starts and
    how often it sends. Concrete subclasses implement :meth:`iter_spawns`,
    which yields exactly ``clients`` steps with ids ``0..clients-1`` in order.

    Example::

        pattern = SteadyPattern(clients=3, interval_ms=100)
        for step in pattern.iter_spawns():
            print(step.client_id, step.send_interval_ms, step.delay_after_ms)
    """

    def __init__(self, clients: int, interval_ms: int) -> None:
        _validate_positive(clients, "clients")
        _validate_non_negative(interval_ms, "interval_ms")
        self.clients = clients
        self.interval_ms = interval_ms

    @abstractmethod
    def iter_spawns(self) -> Iterator[SpawnStep]:
        """Yield one SpawnStep per client, in spawn order."""

    @abstractmethod
    def describe(self) -> str:
        """Return a short description for logs and the summary table."""


def _validate_positive(value: float, name: str) -> None:
    """Raise :class:`ConfigError` if *value* is not strictly positive."""
    if value <= 0:
        msg = f"{name} must be positive, got {value}"
        raise ConfigError(msg)


def _validate_non_negative(value: float, name: str) -> None:
    """Raise :class:`ConfigError` if *value* is negative."""
    if value < 0:
        msg = f"{name} must be non-negative, got {value}"
        raise ConfigError(msg)
