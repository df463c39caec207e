"""wsloader — WebSocket load generation with steady, burst and ramp-up patterns."""

from __future__ import annotations

from wsloader._internal.config import LoadPatternKind, RunConfig, load_config
from wsloader.engine.runner import LoadRunner, run_load_test
from wsloader.metrics.models import RunSummary
from wsloader.patterns import BurstPattern, RampUpPattern, SpawnPattern, SteadyPattern
from wsloader.protocol import OutgoingMessage, PayloadTemplate, Topic, load_payload

__version__ = "0.1.0"

__all__ = [
    "BurstPattern",
    "LoadPatternKind",
    "LoadRunner",
    "OutgoingMessage",
    "PayloadTemplate",
    "RampUpPattern",
    "RunConfig",
    "RunSummary",
    "SpawnPattern",
    "SteadyPattern",
    "Topic",
    "load_config",
    "load_payload",
    "run_load_test",
]
