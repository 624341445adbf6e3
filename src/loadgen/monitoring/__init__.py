"""Monitoring components for the load generator and target service."""

from .metrics import (
    LOADGEN_ACTIVE_USERS,
    LOADGEN_REQUESTS_TOTAL,
    LOADGEN_REQUEST_LATENCY,
    PrometheusMiddleware,
    metrics_endpoint,
    record_request,
    start_metrics_server,
)

from .tracing import (
    tracer,
    setup_tracing,
    set_span_attributes,
    record_exception,
)

__all__ = [
    # Metrics
    "LOADGEN_ACTIVE_USERS",
    "LOADGEN_REQUESTS_TOTAL",
    "LOADGEN_REQUEST_LATENCY",
    "PrometheusMiddleware",
    "metrics_endpoint",
    "record_request",
    "start_metrics_server",
    # Tracing
    "tracer",
    "setup_tracing",
    "set_span_attributes",
    "record_exception",
]
