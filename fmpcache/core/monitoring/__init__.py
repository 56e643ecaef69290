"""Monitoring helpers."""

from fmpcache.core.monitoring.metrics import MetricsCollector

__all__ = ["MetricsCollector"]
