"""In-process metrics for scoring requests and reference reloads.

Timers, counters and histograms are kept in a single lock-guarded registry and
exposed read-only through ``/admin/metrics``. Nothing here is exported to an
external backend.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from math import sqrt
from time import perf_counter
from typing import Any, Dict, Sequence

# Total-score buckets aligned with the payment corridor boundaries.
SCORE_BUCKETS: tuple[float, ...] = (40.0, 59.0, 60.0, 80.0, 100.0)


@dataclass(slots=True)
class TimingStats:
    """Running aggregates for a timing label (Welford variance)."""

    count: float = 0.0
    total_ms: float = 0.0
    max_ms: float = 0.0
    avg_ms: float = 0.0
    stddev_ms: float = 0.0
    _m2: float = 0.0

    def update(self, elapsed_ms: float) -> None:
        value = float(elapsed_ms)
        self.count += 1.0
        self.total_ms += value
        self.max_ms = max(self.max_ms, value)
        delta = value - self.avg_ms
        self.avg_ms += delta / self.count
        self._m2 += delta * (value - self.avg_ms)
        variance = self._m2 / (self.count - 1.0) if self.count > 1.0 else 0.0
        self.stddev_ms = sqrt(variance) if variance > 0.0 else 0.0

    def snapshot(self) -> Dict[str, float]:
        return {
            "count": self.count,
            "total_ms": self.total_ms,
            "max_ms": self.max_ms,
            "avg_ms": self.avg_ms,
            "stddev_ms": self.stddev_ms,
        }


@dataclass(slots=True)
class HistogramBuckets:
    """Cumulative-upper-bound bucket counts for a metric label."""

    boundaries: tuple[float, ...]
    counts: Dict[str, float] = field(init=False)

    def __post_init__(self) -> None:
        self.counts = {str(boundary): 0.0 for boundary in self.boundaries}
        self.counts.setdefault("+Inf", 0.0)

    def observe(self, value: float) -> None:
        for boundary in self.boundaries:
            if value <= boundary:
                self.counts[str(boundary)] += 1.0
                return
        self.counts["+Inf"] += 1.0


class _MetricsRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._timings: Dict[str, TimingStats] = {}
        self._counters: Dict[str, float] = {}
        self._histograms: Dict[str, HistogramBuckets] = {}
        self._last_runs: Dict[str, Dict[str, Any]] = {}

    def record(self, label: str, elapsed_ms: float) -> None:
        if not label:
            return
        with self._lock:
            self._timings.setdefault(label, TimingStats()).update(elapsed_ms)
            self._last_runs[label] = {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "duration_ms": float(elapsed_ms),
            }

    def inc(self, label: str, amount: float = 1.0) -> None:
        if not label:
            return
        with self._lock:
            self._counters[label] = self._counters.get(label, 0.0) + float(amount)

    def observe(self, label: str, value: float, buckets: Sequence[float]) -> None:
        if not label:
            return
        with self._lock:
            histogram = self._histograms.get(label)
            if histogram is None:
                histogram = HistogramBuckets(tuple(buckets))
                self._histograms[label] = histogram
            histogram.observe(value)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "timings": {label: stats.snapshot() for label, stats in self._timings.items()},
                "counters": dict(self._counters),
                "histograms": {label: dict(h.counts) for label, h in self._histograms.items()},
                "last_runs": {label: dict(run) for label, run in self._last_runs.items()},
            }

    def reset(self) -> None:
        with self._lock:
            self._timings.clear()
            self._counters.clear()
            self._histograms.clear()
            self._last_runs.clear()


metrics_registry = _MetricsRegistry()

_INSTRUMENTATION_ENABLED: bool = True


def set_instrumentation_enabled(enabled: bool) -> None:
    global _INSTRUMENTATION_ENABLED
    _INSTRUMENTATION_ENABLED = bool(enabled)


def instrumentation_enabled() -> bool:
    return _INSTRUMENTATION_ENABLED


@contextmanager
def timer(label: str):
    """Context manager to time a code block and record it under `label`."""
    if not instrumentation_enabled():
        yield
        return
    t0 = perf_counter()
    try:
        yield
    finally:
        metrics_registry.record(label, (perf_counter() - t0) * 1000.0)


def inc_counter(label: str, amount: float = 1.0) -> None:
    if instrumentation_enabled():
        metrics_registry.inc(label, amount)


def observe_score(label: str, value: float, *, buckets: Sequence[float] = SCORE_BUCKETS) -> None:
    if instrumentation_enabled():
        metrics_registry.observe(label, value, buckets)


def get_metrics() -> Dict[str, Any]:
    return metrics_registry.snapshot()


def get_counters() -> Dict[str, float]:
    return metrics_registry.snapshot()["counters"]


__all__ = [
    "SCORE_BUCKETS",
    "timer",
    "inc_counter",
    "observe_score",
    "get_metrics",
    "get_counters",
    "metrics_registry",
    "set_instrumentation_enabled",
    "instrumentation_enabled",
]
