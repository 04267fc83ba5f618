"""In-process counters for cleanup and CA lifecycle events."""

from interceptca.metrics.collector import MetricsCollector

__all__ = ["MetricsCollector"]
