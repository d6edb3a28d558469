"""
Observability for the clinic payments service.

Structured logging without patient data, Prometheus metrics, OpenTelemetry
spans, request correlation and health probes.
"""
from .events import log_consistency_checkpoint, log_domain_event
from .logging import get_sanitized_logger
from .metrics import metrics
from .tracing import trace_span

__all__ = [
    'get_sanitized_logger',
    'log_consistency_checkpoint',
    'log_domain_event',
    'metrics',
    'trace_span',
]
