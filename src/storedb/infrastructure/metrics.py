"""Prometheus metrics for storedb."""

from __future__ import annotations

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    Info,
    start_http_server,
    REGISTRY,
    CollectorRegistry,
)


class MetricsRegistry:
    """Registry of all storedb metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize metrics registry."""
        self._registry = registry or REGISTRY

        self.transactions_total = Counter(
            "storedb_transactions_total",
            "Total number of finished transactions",
            ["mode", "status"],  # mode: read, write; status: commit, rollback, commit_failed
            registry=self._registry,
        )

        self.transactions_active = Gauge(
            "storedb_transactions_active",
            "Number of transactions currently holding a connection",
            registry=self._registry,
        )

        self.operations_total = Counter(
            "storedb_operations_total",
            "Total number of collection operations",
            ["operation", "status"],  # status: success, error
            registry=self._registry,
        )

        self.operation_latency_seconds = Histogram(
            "storedb_operation_latency_seconds",
            "Collection operation latency in seconds",
            ["operation"],
            buckets=(0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0),
            registry=self._registry,
        )

        self.commit_latency_seconds = Histogram(
            "storedb_commit_latency_seconds",
            "Commit latency in seconds",
            buckets=(0.0001, 0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.5),
            registry=self._registry,
        )

        self.collections_opened_total = Counter(
            "storedb_collections_opened_total",
            "Collection opens by outcome",
            ["outcome"],  # created, validated, type_mismatch
            registry=self._registry,
        )

        self.info = Info(
            "storedb",
            "storedb library information",
            registry=self._registry,
        )

        from storedb import __version__
        self.info.info({"version": __version__})

    @property
    def registry(self) -> CollectorRegistry:
        """The prometheus registry the metrics are bound to."""
        return self._registry


_metrics: MetricsRegistry | None = None


def setup_metrics(
    port: int | None = None, registry: CollectorRegistry | None = None
) -> MetricsRegistry:
    """
    Create the global metrics registry.

    Args:
        port: Start a Prometheus scrape server on this port when given.
            Embedding applications usually expose their own endpoint instead.
        registry: Optional custom registry

    Returns:
        The metrics registry
    """
    global _metrics
    _metrics = MetricsRegistry(registry)

    if port is not None:
        start_http_server(port, registry=registry or REGISTRY)

    return _metrics


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsRegistry()
    return _metrics
