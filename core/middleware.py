import logging
import time
import uuid

logger = logging.getLogger(__name__)


class RequestLogMiddleware:
    """Tag every request with an ``X-Request-ID`` and log its outcome."""
    HEADER = 'HTTP_X_REQUEST_ID'
    SKIP_PREFIXES = ('/static/', '/metrics')

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        path = request.path or ''
        request_id = request.META.get(self.HEADER) or uuid.uuid4().hex
        request.request_id = request_id
        started = time.monotonic()
        response = self.get_response(request)
        response['X-Request-ID'] = request_id
        if not any(path.startswith(p) for p in self.SKIP_PREFIXES):
            logger.info(
                '%s %s -> %s',
                request.method, path, response.status_code,
                extra={
                    'request_id': request_id,
                    'status': response.status_code,
                    'duration_ms': round((time.monotonic() - started) * 1000, 1),
                },
            )
        return response
