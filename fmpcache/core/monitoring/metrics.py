"""Prometheus metrics for cache reads, provider fetches and refreshes."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

READ_OUTCOMES = frozenset({"fresh", "stale", "absent", "listing", "served_stale"})
FETCH_STATUSES = frozenset({"success", "empty", "error"})


class MetricsCollector:
    """Collects cache and provider metrics in its own registry."""

    def __init__(self, *, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self.cache_reads_total = Counter(
            "fmpcache_cache_reads_total",
            "Cache reads grouped by record kind and freshness outcome.",
            ("kind", "outcome"),
            registry=self.registry,
        )
        self.provider_fetches_total = Counter(
            "fmpcache_provider_fetches_total",
            "Upstream provider fetches grouped by record kind and status.",
            ("kind", "status"),
            registry=self.registry,
        )
        self.refresh_latency_seconds = Histogram(
            "fmpcache_refresh_latency_seconds",
            "Latency distribution of fetch-normalize-upsert refresh cycles.",
            ("kind",),
            buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, float("inf")),
            registry=self.registry,
        )
        self.records_upserted_total = Counter(
            "fmpcache_records_upserted_total",
            "Records written to the store by refreshes.",
            ("kind",),
            registry=self.registry,
        )

    def record_read(self, kind: str, outcome: str) -> None:
        """Count a cache read with a constrained outcome label."""

        label = outcome if outcome in READ_OUTCOMES else "__other__"
        self.cache_reads_total.labels(kind=kind, outcome=label).inc()

    def record_fetch(self, kind: str, status: str) -> None:
        label = status if status in FETCH_STATUSES else "__other__"
        self.provider_fetches_total.labels(kind=kind, status=label).inc()

    def observe_refresh(self, kind: str, latency_seconds: float, records: int) -> None:
        """Record a completed refresh."""

        self.refresh_latency_seconds.labels(kind=kind).observe(latency_seconds)
        if records:
            self.records_upserted_total.labels(kind=kind).inc(records)

    def sample(self, name: str, labels: dict[str, str]) -> float:
        """Return the current value of one sample, 0.0 when never recorded."""

        value = self.registry.get_sample_value(name, labels)
        return value if value is not None else 0.0

    def render(self) -> bytes:
        """Render metrics in Prometheus exposition format."""

        return generate_latest(self.registry)


__all__ = ["FETCH_STATUSES", "MetricsCollector", "READ_OUTCOMES"]
