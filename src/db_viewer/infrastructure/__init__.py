"""Infrastructure layer - cross-cutting concerns."""

from db_viewer.infrastructure.config import Config, get_config
from db_viewer.infrastructure.container import Container, create_container, get_container, reset_container
from db_viewer.infrastructure.logging import setup_logging, get_logger
from db_viewer.infrastructure.metrics import setup_metrics, get_metrics, MetricsRegistry
from db_viewer.infrastructure.tracing import setup_tracing, get_tracer, trace_span

__all__ = [
    "Config",
    "get_config",
    "Container",
    "create_container",
    "get_container",
    "reset_container",
    "setup_logging",
    "get_logger",
    "setup_metrics",
    "get_metrics",
    "MetricsRegistry",
    "setup_tracing",
    "get_tracer",
    "trace_span",
]
