"""
Request correlation middleware.

Every request gets an X-Request-ID (propagated from the caller or generated)
that is echoed on the response and stamped on each log line written while
the request is being served.
"""
import logging
import time
import uuid
from threading import local

from django.utils.deprecation import MiddlewareMixin

from .metrics import metrics

_request_context = local()

logger = logging.getLogger(__name__)


def get_request_id():
    """Request id of the request being served on this thread, if any."""
    return getattr(_request_context, 'request_id', None)


def clear_request_context():
    if hasattr(_request_context, 'request_id'):
        del _request_context.request_id


def _route(request):
    match = getattr(request, 'resolver_match', None)
    return match.route if match else 'unmatched'


def _user_id(request):
    # DRF copies the authenticated user back onto the Django request
    user = getattr(request, 'user', None)
    if user is not None and user.is_authenticated:
        return str(user.pk)
    return None


class RequestCorrelationMiddleware(MiddlewareMixin):
    """
    Assigns the request id, counts and times requests, and logs their outcome.

    Domain code never reads the request context; the acting user reaches the
    services as an explicit Actor.
    """

    REQUEST_ID_HEADER = 'HTTP_X_REQUEST_ID'

    def process_request(self, request):
        request.request_id = request.META.get(self.REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.start_time = time.time()
        _request_context.request_id = request.request_id

    def process_response(self, request, response):
        request_id = getattr(request, 'request_id', None)
        if request_id:
            response['X-Request-ID'] = request_id

        if hasattr(request, 'start_time'):
            duration = time.time() - request.start_time
            route = _route(request)

            metrics.http_requests_total.labels(
                path=route, method=request.method, status=str(response.status_code)
            ).inc()
            metrics.http_request_duration_seconds.labels(path=route, method=request.method).observe(duration)

            logger.info(
                'Request completed',
                extra={
                    'event': 'http_request_completed',
                    'route': route,
                    'method': request.method,
                    'status_code': response.status_code,
                    'duration_ms': round(duration * 1000, 2),
                    'user_id': _user_id(request),
                }
            )

        clear_request_context()
        return response

    def process_exception(self, request, exception):
        exception_type = exception.__class__.__name__
        metrics.exceptions_total.labels(exception_type=exception_type, location='request').inc()

        logger.error(
            f'Request failed: {exception_type}',
            exc_info=True,
            extra={
                'event': 'http_request_exception',
                'route': _route(request),
                'method': request.method,
                'exception_type': exception_type,
            }
        )
