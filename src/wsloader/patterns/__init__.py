"""Client spawn patterns for wsloader.

Each pattern implements :class:`SpawnPattern` and yields one
:class:`SpawnStep` per client via :meth:`SpawnPattern.iter_spawns`.
"""

from __future__ import annotations

from wsloader._internal.config import LoadPatternKind
from wsloader.patterns.base import SpawnPattern, SpawnStep
from wsloader.patterns.burst import BurstPattern
from wsloader.patterns.ramp_up import RampUpPattern
from wsloader.patterns.steady import STAGGER_DELAY_MS, SteadyPattern

__all__ = [
    "STAGGER_DELAY_MS",
    "BurstPattern",
    "RampUpPattern",
    "SpawnPattern",
    "SpawnStep",
    "SteadyPattern",
    "build_pattern",
]


def build_pattern(
    kind: LoadPatternKind,
    clients: int,
    interval_ms: int,
    duration_seconds: float,
) -> SpawnPattern:
    """Construct the SpawnPattern named by *kind*.

    Raises:
        ConfigError: If the arguments are out of range for the pattern.
    """
    if kind is LoadPatternKind.STEADY:
        return SteadyPattern(clients=clients, interval_ms=interval_ms)
    if kind is LoadPatternKind.BURST:
        return BurstPattern(clients=clients, interval_ms=interval_ms)
    return RampUpPattern(
        clients=clients,
        interval_ms=interval_ms,
        duration_seconds=duration_seconds,
    )
