"""Infrastructure layer - cross-cutting concerns."""

from storedb.infrastructure.config import Config, ObservabilityConfig, StorageConfig, get_config
from storedb.infrastructure.logging import setup_logging, get_logger
from storedb.infrastructure.metrics import setup_metrics, get_metrics, MetricsRegistry
from storedb.infrastructure.tracing import setup_tracing, get_tracer, trace_span

__all__ = [
    "Config",
    "StorageConfig",
    "ObservabilityConfig",
    "get_config",
    "setup_logging",
    "get_logger",
    "setup_metrics",
    "get_metrics",
    "MetricsRegistry",
    "setup_tracing",
    "get_tracer",
    "trace_span",
]
