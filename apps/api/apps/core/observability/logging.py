"""
Structured JSON logging that never emits patient data.

Log calls pass identifiers through ``extra={...}``; any key naming a
free-text or identity field is replaced with ``[REDACTED]`` before output.
"""
import json
import logging
from datetime import datetime, timezone

from .correlation import get_request_id

REDACTED = '[REDACTED]'

# Appointment and patient fields that may carry PHI, plus credentials
SENSITIVE_FIELDS = frozenset({
    'password',
    'token',
    'secret',
    'api_key',
    'chief_complaint',
    'history_present_illness',
    'symptoms',
    'primary_diagnosis',
    'differential_diagnosis',
    'treatment_plan',
    'examination_findings',
    'notes',
    'reason',
    'cancellation_reason',
    'first_name',
    'last_name',
    'patient_name',
    'email',
    'phone',
    'address',
    'birth_date',
    'date_of_birth',
})

_RECORD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {'message', 'asctime'}


def sanitize_dict(data):
    """
    Copy of ``data`` with sensitive keys redacted, recursing into nested
    dicts and into dicts inside lists.
    """
    if not isinstance(data, dict):
        return data

    sanitized = {}
    for key, value in data.items():
        if str(key).lower() in SENSITIVE_FIELDS:
            sanitized[key] = REDACTED
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value)
        elif isinstance(value, (list, tuple)):
            sanitized[key] = [sanitize_dict(item) for item in value]
        else:
            sanitized[key] = value
    return sanitized


class CorrelationFilter(logging.Filter):
    """Stamps the current request id on every record ('-' outside a request)."""

    def filter(self, record):
        record.request_id = get_request_id() or '-'
        return True


class SanitizedJSONFormatter(logging.Formatter):
    """One JSON object per line: fixed envelope plus the sanitized extras."""

    def format(self, record):
        payload = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'request_id': getattr(record, 'request_id', '-'),
        }

        extras = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRIBUTES and key not in payload and not key.startswith('_')
        }
        payload.update(sanitize_dict(extras))

        if record.exc_info:
            payload['exception'] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def get_sanitized_logger(name):
    """
    Module logger with the correlation filter attached.

    Usage:
        logger = get_sanitized_logger(__name__)
        logger.info('Event', extra={'event': 'appointment_created', 'appointment_id': str(appt.id)})
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationFilter) for f in logger.filters):
        logger.addFilter(CorrelationFilter())
    return logger
