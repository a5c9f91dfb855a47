"""
Observability Module for the Producer Resolver

Provides:
- Structured logging with correlation IDs
- Metrics collection (resolutions by kind/confidence, timings)
"""

from core.observability.metrics import (
    MetricsCollector,
    get_metrics,
)

from core.observability.logging import (
    configure_logging,
    get_logger,
    CorrelationContext,
    with_correlation,
)

__all__ = [
    # Metrics
    "MetricsCollector",
    "get_metrics",
    # Logging
    "configure_logging",
    "get_logger",
    "CorrelationContext",
    "with_correlation",
]
