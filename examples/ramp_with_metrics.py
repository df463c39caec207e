"""Ramp-up run driven from Python, with the Prometheus exporter attached.

Clients join one by one over the run, each sending slightly less often than
the one before. Scrape ``http://127.0.0.1:9100/metrics`` while it runs:

    python examples/ramp_with_metrics.py
"""

from __future__ import annotations

from pathlib import Path

from wsloader import LoadPatternKind, RunConfig, run_load_test
from wsloader.metrics.prometheus import PrometheusRecorder, start_metrics_server

HERE = Path(__file__).parent


def main() -> None:
    config = RunConfig(
        connect_addr="ws://127.0.0.1:8080/ws",
        payload_path=HERE / "payload.json",
        clients=20,
        interval_ms=200,
        duration_secs=20,
        pattern=LoadPatternKind.RAMP_UP,
    )
    recorder = PrometheusRecorder()
    server = start_metrics_server(recorder, config.metrics_addr)
    try:
        summary = run_load_test(config, recorder=recorder)
    finally:
        server.close()

    print(summary.summary_line())
    for outcome, count in sorted(summary.outcomes.items()):
        print(f"  {outcome}: {count}")


if __name__ == "__main__":
    main()
