"""
Request correlation.

Every request gets an X-Request-ID (taken from the caller or generated) that
is echoed on the response and stamped on each log line written while the
request runs. The acting user is added once the bearer token is validated.
"""
import logging
import time
import uuid
from threading import local

from django.utils.deprecation import MiddlewareMixin

from .metrics import metrics

logger = logging.getLogger(__name__)

_context = local()

_CONTEXT_FIELDS = ('request_id', 'trace_id', 'span_id', 'user_id', 'user_roles')


def get_request_id():
    return getattr(_context, 'request_id', None)


def get_trace_id():
    return getattr(_context, 'trace_id', None)


def get_user_id():
    return getattr(_context, 'user_id', None)


def get_user_roles():
    return getattr(_context, 'user_roles', [])


def bind_user_context(user_id, roles):
    """
    Attach the acting user to the current request.

    Called from ``ClinicJWTAuthentication``: DRF authenticates lazily, after
    the middleware has already run.
    """
    _context.user_id = str(user_id) if user_id is not None else None
    _context.user_roles = [role for role in roles if role]


def clear_request_context():
    """Forget the current request (tests and worker reuse)."""
    for field in _CONTEXT_FIELDS:
        if hasattr(_context, field):
            delattr(_context, field)


class RequestCorrelationMiddleware(MiddlewareMixin):
    """
    Propagates X-Request-ID / X-Trace-ID and records request metrics.

    Metrics use the path, method and status only; user and batch ids stay
    out of the label set.
    """

    REQUEST_ID_HEADER = 'HTTP_X_REQUEST_ID'
    TRACE_ID_HEADER = 'HTTP_X_TRACE_ID'
    SPAN_ID_HEADER = 'HTTP_X_SPAN_ID'

    def process_request(self, request):
        request.request_id = request.META.get(self.REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.trace_id = request.META.get(self.TRACE_ID_HEADER)
        request.span_id = request.META.get(self.SPAN_ID_HEADER)
        request.start_time = time.time()

        clear_request_context()
        _context.request_id = request.request_id
        _context.trace_id = request.trace_id
        _context.span_id = request.span_id

    def process_response(self, request, response):
        if hasattr(request, 'request_id'):
            response['X-Request-ID'] = request.request_id
        if getattr(request, 'trace_id', None):
            response['X-Trace-ID'] = request.trace_id

        if not hasattr(request, 'start_time'):
            return response

        duration = time.time() - request.start_time
        metrics.http_requests_total.labels(
            path=request.path,
            method=request.method,
            status=str(response.status_code)
        ).inc()
        metrics.http_request_duration_seconds.labels(
            path=request.path,
            method=request.method
        ).observe(duration)

        logger.info(
            'Request completed',
            extra={
                'event': 'http_request_completed',
                'path': request.path,
                'method': request.method,
                'status_code': response.status_code,
                'duration_ms': round(duration * 1000, 2),
                'user_id': get_user_id(),
            }
        )
        return response

    def process_exception(self, request, exception):
        exception_type = exception.__class__.__name__
        metrics.exceptions_total.labels(exception_type=exception_type, location='request').inc()

        duration_ms = 0
        if hasattr(request, 'start_time'):
            duration_ms = round((time.time() - request.start_time) * 1000, 2)

        logger.error(
            f'Request failed: {exception_type}',
            exc_info=True,
            extra={
                'event': 'http_request_exception',
                'path': request.path,
                'method': request.method,
                'exception_type': exception_type,
                'duration_ms': duration_ms,
                'request_id': getattr(request, 'request_id', None),
                'user_id': get_user_id(),
            }
        )
