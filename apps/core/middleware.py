"""
Request ID propagation.

``RequestIDMiddleware`` accepts a well-formed ``X-Request-ID`` header or
generates one, exposes it as ``request.request_id`` and echoes it on the
response. ``RequestIDFilter`` stamps it on every log record emitted while
the request is being handled, so workflow logs can be correlated with the
error envelope returned to the client.
"""

import logging
import threading
import uuid

from django.utils.deprecation import MiddlewareMixin

_local = threading.local()


def get_request_id():
    """Request ID of the request being handled on this thread, or None."""
    return getattr(_local, 'request_id', None)


def _coerce(value):
    if value:
        try:
            return str(uuid.UUID(value))
        except (ValueError, TypeError):
            pass
    return str(uuid.uuid4())


class RequestIDMiddleware(MiddlewareMixin):

    header = 'HTTP_X_REQUEST_ID'
    response_header = 'X-Request-ID'

    def process_request(self, request):
        request.request_id = _coerce(request.META.get(self.header))
        _local.request_id = request.request_id

    def process_response(self, request, response):
        request_id = getattr(request, 'request_id', None)
        if request_id:
            response[self.response_header] = request_id
        _local.request_id = None
        return response


class RequestIDFilter(logging.Filter):
    """Add ``request_id`` to log records ('-' outside a request)."""

    def filter(self, record):
        record.request_id = get_request_id() or '-'
        return True
