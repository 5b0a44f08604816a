"""
Request logging middleware
"""
import logging
import time

from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(MiddlewareMixin):
    """Logs method, path, status and duration of every request"""

    def process_request(self, request):
        request._request_started_at = time.monotonic()
        return None

    def process_response(self, request, response):
        started_at = getattr(request, '_request_started_at', None)
        if started_at is not None:
            elapsed_ms = (time.monotonic() - started_at) * 1000
            logger.info(f"{request.method} {request.path} -> {response.status_code} ({elapsed_ms:.1f} ms)")
        return response
