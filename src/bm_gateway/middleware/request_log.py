"""Request logging middleware.

Assigns each request a short id (or keeps an inbound X-Request-Id), stores
it on request.state for the ApiResponse envelope, echoes it back in the
X-Request-Id response header, and logs one line per request:

    INFO [POST] /api/v1/orders -> 201 (23ms) req_a1b2c3d4e5f6 user=u1

Server errors log at ERROR, client errors at WARNING.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("bm.request")

_MAX_INBOUND_ID = 64


def _request_id(request: Request) -> str:
    inbound = request.headers.get("x-request-id", "")
    if inbound and len(inbound) <= _MAX_INBOUND_ID and inbound.isprintable():
        return inbound
    return f"req_{uuid.uuid4().hex[:12]}"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = _request_id(request)
        request.state.request_id = request_id

        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        logger.log(
            level,
            "[%s] %s -> %d (%.0fms) %s user=%s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request_id,
            request.headers.get("x-user-id", "-"),
        )
        response.headers["X-Request-Id"] = request_id
        return response
