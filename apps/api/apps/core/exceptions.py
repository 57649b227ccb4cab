"""
Domain error taxonomy and its translation to HTTP responses.

Services raise these; DRF views let them bubble up to
``domain_exception_handler`` which maps them to status codes:

- NotFoundError -> 404
- ConflictError -> 409
- InvalidTransitionError -> 400
- DomainValidationError -> 400 (with field-level error map)
"""
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base class for expected, request-scoped domain failures."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    """Referenced patient/appointment/schedule/override/examination is absent."""
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(DomainError):
    """Operation would violate a uniqueness rule."""
    status_code = status.HTTP_409_CONFLICT


class InvalidTransitionError(DomainError):
    """Illegal appointment status change."""

    def __init__(self, current, requested):
        super().__init__(f'Invalid status transition: {current} -> {requested}')
        self.current = current
        self.requested = requested


class DomainValidationError(DomainError):
    """Field-level validation failure."""

    def __init__(self, errors, message='Validation failed'):
        super().__init__(message)
        self.errors = errors


def domain_exception_handler(exc, context):
    """
    DRF exception handler that understands domain errors.

    Anything that is not a domain error (or a Django ValidationError raised
    from model.clean()) is delegated to DRF's default handler.
    """
    if isinstance(exc, DomainError):
        body = {'error': exc.message}
        if isinstance(exc, DomainValidationError):
            body['errors'] = exc.errors

        view = context.get('view')
        logger.info(
            'Domain error returned to client',
            extra={
                'event': 'domain_error',
                'error_type': exc.__class__.__name__,
                'status_code': exc.status_code,
                'view': view.__class__.__name__ if view else None,
            }
        )
        return Response(body, status=exc.status_code)

    if isinstance(exc, DjangoValidationError):
        if hasattr(exc, 'message_dict'):
            return Response(
                {'error': 'Validation failed', 'errors': exc.message_dict},
                status=status.HTTP_400_BAD_REQUEST
            )
        return Response({'error': ' '.join(exc.messages)}, status=status.HTTP_400_BAD_REQUEST)

    return exception_handler(exc, context)
