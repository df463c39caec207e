"""Run-wide counter of sent messages."""

from __future__ import annotations

import threading


class SentCounter:
    """Shared count of messages sent by all clients of a run.

    Every client increments it, and the run summary reads it once at the end.
    A ``threading.Lock`` makes each increment atomic even if clients are ever
    moved off the event loop thread.
    """

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def increment(self) -> int:
        """Add one and return the new total."""
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        """Return the current total."""
        with self._lock:
            return self._value
