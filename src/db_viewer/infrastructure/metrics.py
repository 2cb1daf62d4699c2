"""Prometheus metrics for the database viewer."""

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
    """Registry of all database viewer metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize metrics registry."""
        self._registry = registry or REGISTRY

        # Document metrics
        self.loads_total = Counter(
            "db_viewer_loads_total",
            "Total number of document loads",
            ["status"],  # success, error
            registry=self._registry,
        )

        self.document_size_bytes = Gauge(
            "db_viewer_document_size_bytes",
            "Size of the currently loaded document in bytes",
            registry=self._registry,
        )

        # Query metrics
        self.queries_total = Counter(
            "db_viewer_queries_total",
            "Total number of read queries executed",
            ["query_type", "status"],  # query_type: count, rows, meta, tables
            registry=self._registry,
        )

        self.query_latency_seconds = Histogram(
            "db_viewer_query_latency_seconds",
            "Read query latency in seconds",
            ["query_type"],
            buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
            registry=self._registry,
        )

        self.rowid_fallbacks_total = Counter(
            "db_viewer_rowid_fallbacks_total",
            "Row fetches that fell back to a plain select without rowid",
            registry=self._registry,
        )

        # Mutation metrics
        self.mutations_total = Counter(
            "db_viewer_mutations_total",
            "Total number of mutations",
            ["operation", "status"],  # status: success, error
            registry=self._registry,
        )

        # Save metrics
        self.saves_total = Counter(
            "db_viewer_saves_total",
            "Total number of save outcomes",
            ["outcome"],  # saved, failed, timed_out
            registry=self._registry,
        )

        self.saves_superseded_total = Counter(
            "db_viewer_saves_superseded_total",
            "Save acknowledgments discarded because a newer save was current",
            registry=self._registry,
        )

        self.save_latency_seconds = Histogram(
            "db_viewer_save_latency_seconds",
            "Save round-trip latency in seconds",
            buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
            registry=self._registry,
        )

        # Export metrics
        self.exports_total = Counter(
            "db_viewer_exports_total",
            "Total number of exports",
            ["format"],
            registry=self._registry,
        )

        # Server info
        self.info = Info(
            "db_viewer",
            "Database viewer information",
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        """The collector registry the metrics are registered with."""
        return self._registry


# Global metrics registry
_metrics: MetricsRegistry | None = None


def setup_metrics(port: int = 8001, registry: CollectorRegistry | None = None) -> MetricsRegistry:
    """
    Set up Prometheus metrics server.

    Args:
        port: Port for the metrics HTTP server
        registry: Optional custom registry

    Returns:
        The metrics registry
    """
    global _metrics
    _metrics = MetricsRegistry(registry)

    from db_viewer import __version__
    _metrics.info.info({
        "version": __version__,
    })

    start_http_server(port, registry=registry or REGISTRY)

    return _metrics


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsRegistry()
    return _metrics
