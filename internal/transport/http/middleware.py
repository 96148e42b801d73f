"""
HTTP Middleware for Catalog Service.

Provides middleware components for request processing.
"""

import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from pkg.logger.logger import set_owner_id, set_request_id

from .metrics import MetricsMiddleware


REQUEST_ID_HEADER = "X-Request-ID"


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Put the request ID in the logging context and echo it back.

    A missing `X-Request-ID` header gets a freshly generated ID.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        set_request_id(request_id)
        set_owner_id(None)

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


__all__ = [
    "MetricsMiddleware",
    "RequestIdMiddleware",
    "REQUEST_ID_HEADER",
]
