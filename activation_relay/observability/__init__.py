"""
Observability module - Logging, Metrics, and Tracing.
"""

from activation_relay.observability.logging import get_logger, log_context, setup_logging
from activation_relay.observability.metrics import metrics
from activation_relay.observability.tracing import get_tracer, instrument_fastapi, setup_tracing

__all__ = [
    "get_logger",
    "log_context",
    "setup_logging",
    "metrics",
    "get_tracer",
    "instrument_fastapi",
    "setup_tracing",
]
