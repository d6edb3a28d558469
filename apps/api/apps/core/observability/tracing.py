"""
OpenTelemetry spans for ledger operations.

Only the OpenTelemetry API is a dependency. Until a deployment installs and
configures an SDK the tracer hands out non-recording spans.
"""
import logging
from contextlib import contextmanager
from typing import Any, Dict, Optional

from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode

logger = logging.getLogger(__name__)

tracer = trace.get_tracer('clinic.payments')

_SPAN_KINDS = {
    'server': SpanKind.SERVER,
    'client': SpanKind.CLIENT,
    'internal': SpanKind.INTERNAL,
}


@contextmanager
def trace_span(name: str, kind: Optional[str] = None, attributes: Optional[Dict[str, Any]] = None):
    """
    Run the block inside a span; exceptions mark the span as failed and propagate.

    Usage:
        with trace_span('payment_batch_create', attributes={'psychologist_id': psychologist_id}):
            ...
    """
    with tracer.start_as_current_span(name, kind=_SPAN_KINDS.get(kind, SpanKind.INTERNAL)) as span:
        for key, value in (attributes or {}).items():
            span.set_attribute(key, value)
        try:
            yield span
        except Exception as e:
            span.set_attribute('error', True)
            span.set_attribute('error.type', e.__class__.__name__)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            logger.debug(
                f'Span failed: {name}',
                extra={'event': 'span_error', 'span_name': name, 'error_type': e.__class__.__name__}
            )
            raise


def add_span_attribute(key: str, value: Any):
    """Set an attribute on the current span when it is recording."""
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attribute(key, value)
