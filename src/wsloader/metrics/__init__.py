"""Counters, latency histograms and the run summary."""

from __future__ import annotations

from wsloader.metrics.counter import SentCounter
from wsloader.metrics.models import RunSummary
from wsloader.metrics.recorder import (
    LATENCY_MS,
    MESSAGES_FAILED,
    MESSAGES_RECEIVED,
    MESSAGES_SENT,
    FanoutRecorder,
    NoopRecorder,
    Recorder,
    SummaryRecorder,
)
from wsloader.metrics.summary import compute_summary, messages_per_second

__all__ = [
    "LATENCY_MS",
    "MESSAGES_FAILED",
    "MESSAGES_RECEIVED",
    "MESSAGES_SENT",
    "FanoutRecorder",
    "NoopRecorder",
    "Recorder",
    "RunSummary",
    "SentCounter",
    "SummaryRecorder",
    "compute_summary",
    "messages_per_second",
]
