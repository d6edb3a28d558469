"""
Structured logging that keeps patient data out of the logs.

Log records carry ids, statuses and amounts. Patient names, contestation
text and insurance authorization tokens are replaced by ``[REDACTED]``
wherever they appear as a key, at any nesting depth.
"""
import json
import logging
from datetime import datetime, timezone

from .correlation import get_request_id, get_trace_id, get_user_id, get_user_roles

REDACTED = '[REDACTED]'

# Keys whose values never reach a log line
SENSITIVE_FIELDS = frozenset({
    # credentials
    'password',
    'token',
    'access_token',
    'secret',
    'api_key',
    'authorization_token',
    # patient and review data
    'patient_name',
    'contestation_reason',
    'reason',
    'notes',
    # contact details
    'email',
    'phone',
    'phone_number',
    'address',
    'date_of_birth',
})

# LogRecord internals left out of the JSON payload
_RECORD_ATTRS = frozenset(vars(logging.LogRecord('', 0, '', 0, '', None, None))) | {'message', 'asctime'}


def is_sensitive(key) -> bool:
    return str(key).lower() in SENSITIVE_FIELDS


def redact(value):
    """Copy of ``value`` with every sensitive key redacted, recursively."""
    if isinstance(value, dict):
        return {k: REDACTED if is_sensitive(k) else redact(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [redact(v) for v in value]
    return value


def sanitize_dict(data):
    """
    Redacted copy of a dict, e.g. the ``extra`` of a domain event.

    Non-dict input is returned unchanged.
    """
    if not isinstance(data, dict):
        return data
    return redact(data)


class CorrelationFilter(logging.Filter):
    """Stamps request, trace and user ids onto every record."""

    def filter(self, record):
        record.request_id = get_request_id() or '-'
        record.trace_id = get_trace_id() or '-'
        record.user_id = get_user_id() or '-'
        record.user_roles = ','.join(get_user_roles()) or '-'
        return True


class SanitizedJSONFormatter(logging.Formatter):
    """One JSON object per line, extras included and redacted."""

    def format(self, record):
        payload = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'request_id': getattr(record, 'request_id', '-'),
            'trace_id': getattr(record, 'trace_id', '-'),
            'user_id': getattr(record, 'user_id', '-'),
            'user_roles': getattr(record, 'user_roles', '-'),
        }

        extras = {
            key: value for key, value in vars(record).items()
            if key not in payload and key not in _RECORD_ATTRS and not key.startswith('_')
        }
        payload.update(redact(extras))

        if record.exc_info:
            payload['exception'] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def get_sanitized_logger(name):
    """
    Module logger with the correlation filter attached.

    Usage:
        logger = get_sanitized_logger(__name__)
        logger.info('Batch created', extra={'event': 'payment_batch_created', 'batch_id': batch.id})
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationFilter) for f in logger.filters):
        logger.addFilter(CorrelationFilter())
    return logger
