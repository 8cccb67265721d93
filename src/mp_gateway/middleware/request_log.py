"""Request logging middleware.

Assigns every request an id (or keeps a well-formed inbound X-Request-ID),
stores it on request.state for ApiResponse envelopes, echoes it in the
X-Request-ID response header and logs one line per request:

    INFO  [POST] /api/v1/transactions -> 201 (23ms) req_a1b2c3d4e5f6
    WARNING [POST] /api/v1/transactions -> 409 (9ms) req_0f1e2d3c4b5a
"""

import logging
import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("mp.request")

_HEADER = "X-Request-ID"
_INBOUND_ID = re.compile(r"^[A-Za-z0-9_.\-]{8,64}$")


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        inbound = request.headers.get(_HEADER, "")
        request_id = inbound if _INBOUND_ID.match(inbound) else f"req_{uuid.uuid4().hex[:12]}"
        request.state.request_id = request_id

        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers[_HEADER] = request_id
        logger.log(
            _level_for(response.status_code),
            "[%s] %s -> %d (%.0fms) %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request_id,
        )
        return response
