"""
Metrics Collector

Tracks the agent's own health: cycles completed/failed/skipped, metrics
emitted, emit failures, cycle duration.
"""

import threading
from typing import Optional


class MetricsCollector:
    """Counters describing how the agent itself is doing."""

    def __init__(self):
        self._lock = threading.Lock()
        self.metrics = {
            "cycles_completed": 0,
            "cycles_failed": 0,
            "cycles_skipped": 0,
            "metrics_emitted": 0,
            "emit_failures": 0,
        }
        self.last_cycle_duration_sec: Optional[float] = None
        self.last_error: Optional[str] = None

    def record_cycle(self, emitted: int, emit_failures: int, duration_sec: float):
        with self._lock:
            self.metrics["cycles_completed"] += 1
            self.metrics["metrics_emitted"] += emitted
            self.metrics["emit_failures"] += emit_failures
            self.last_cycle_duration_sec = duration_sec

    def record_failure(self, error: str, duration_sec: float):
        with self._lock:
            self.metrics["cycles_failed"] += 1
            self.last_error = error
            self.last_cycle_duration_sec = duration_sec

    def record_skip(self):
        with self._lock:
            self.metrics["cycles_skipped"] += 1

    def snapshot(self) -> dict:
        with self._lock:
            data = dict(self.metrics)
            data["last_cycle_duration_sec"] = self.last_cycle_duration_sec
            data["last_error"] = self.last_error
            return data
