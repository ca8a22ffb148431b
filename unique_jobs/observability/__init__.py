"""Observability layer: in-memory lock metrics."""

from unique_jobs.observability.metrics import MetricsCollector

__all__ = ["MetricsCollector"]
