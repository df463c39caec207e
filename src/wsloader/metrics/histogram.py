"""Round-trip latency histogram backing the run summary.

Workers time each request/reply pair in float milliseconds. ``hdrh`` counts
integers, so each sample is stored as whole microseconds.
"""

from __future__ import annotations

from hdrh.histogram import HdrHistogram  # type: ignore[import-untyped]

_US_PER_MS = 1000

# A reply consumed while draining may be minutes late; anything past
# ten minutes lands in the top bucket.
_FLOOR_US = 1
_CEILING_US = 600_000_000
_PRECISION_DIGITS = 3


class HdrHistogramWrapper:
    """Latency samples in, millisecond percentiles out.

    Samples outside ``[floor_us, ceiling_us]`` are pulled to the nearest
    edge, so a 0 ms loopback reply still counts.
    """

    def __init__(
        self,
        floor_us: int = _FLOOR_US,
        ceiling_us: int = _CEILING_US,
        precision_digits: int = _PRECISION_DIGITS,
    ) -> None:
        self.floor_us = floor_us
        self.ceiling_us = ceiling_us
        self._hdr: HdrHistogram = HdrHistogram(  # type: ignore[no-any-unimported]
            floor_us, ceiling_us, precision_digits
        )

    @property
    def total_count(self) -> int:
        """Samples recorded so far."""
        return int(self._hdr.total_count)

    def record_latency_ms(self, latency_ms: float) -> bool:
        """Add one round trip; False if hdrh refused the sample."""
        sample_us = min(max(int(latency_ms * _US_PER_MS), self.floor_us), self.ceiling_us)
        return bool(self._hdr.record_value(sample_us))

    def get_percentile(self, percentile: float) -> float:
        """Latency in ms below which *percentile* percent of samples fall."""
        if not self.total_count:
            return 0.0
        return self._hdr.get_value_at_percentile(percentile) / _US_PER_MS

    def get_max(self) -> float:
        """Slowest round trip in ms."""
        if not self.total_count:
            return 0.0
        return self._hdr.get_max_value() / _US_PER_MS

    def get_mean(self) -> float:
        """Average round trip in ms."""
        if not self.total_count:
            return 0.0
        return float(self._hdr.get_mean_value()) / _US_PER_MS
