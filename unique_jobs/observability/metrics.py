"""In-memory lock metrics: counters and latency histograms. Thread-safe; no Prometheus dependency."""

import threading
from typing import Any


class MetricsCollector:
    """
    Counts lock outcomes and script executions, and records latencies.
    Counters may carry a lock_type or category label (e.g. conflict strategy).
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[str, float] = {}
        self._counters_by_labels: dict[str, dict[str, float]] = {}
        self._histograms: dict[str, list[float]] = {}

    def increment(
        self,
        name: str,
        value: float = 1.0,
        *,
        lock_type: str | None = None,
        category: str | None = None,
    ) -> None:
        """Increment a counter, labelled by lock_type or category when given."""
        with self._lock:
            if lock_type is not None:
                label = f"{name}:lock_type={lock_type}"
            elif category is not None:
                label = f"{name}:category={category}"
            else:
                self._counters[name] = self._counters.get(name, 0) + value
                return
            labelled = self._counters_by_labels.setdefault(name, {})
            labelled[label] = labelled.get(label, 0) + value

    def observe_latency(
        self,
        name: str,
        latency_ms: float,
        *,
        script: str | None = None,
    ) -> None:
        """Record a latency observation, optionally per script name."""
        with self._lock:
            bucket = name if script is None else f"{name}:script={script}"
            self._histograms.setdefault(bucket, []).append(latency_ms)

    def count(self, name: str, label: str | None = None) -> float:
        """Current value of a counter; label is the full 'name:key=value' string."""
        with self._lock:
            if label is None:
                return self._counters.get(name, 0)
            return self._counters_by_labels.get(name, {}).get(label, 0)

    def export_metrics(self) -> dict[str, Any]:
        with self._lock:
            return {
                "counters": dict(self._counters),
                "counters_by_labels": {
                    k: dict(v) for k, v in self._counters_by_labels.items()
                },
                "histograms": {
                    k: {"count": len(v), "sum": sum(v), "values": list(v)}
                    for k, v in self._histograms.items()
                },
            }

    def reset(self) -> None:
        """Reset all metrics (for tests)."""
        with self._lock:
            self._counters.clear()
            self._counters_by_labels.clear()
            self._histograms.clear()
