"""Shared type aliases for wsloader."""

from __future__ import annotations

# Metric labels, e.g. {"client_id": "3"}.
Labels = dict[str, str]

# Bind address for the metrics exporter (host, port).
HostPort = tuple[str, int]
