"""Request ID middleware: one correlation ID per request.

Learn: an incoming X-Request-ID is reused only if it looks like an ID
(short, no spaces or control characters); anything else is replaced, so a
client cannot inject arbitrary text into log lines. The ID, method and
path are bound to structlog's contextvars for the request's lifetime.
Clearing first also drops the username/role bound for a previous request.
"""

import re
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

HEADER = "X-Request-ID"
_VALID_ID = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")


def _request_id(request: Request) -> str:
    incoming = request.headers.get(HEADER, "")
    if _VALID_ID.match(incoming):
        return incoming
    return str(uuid.uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = _request_id(request)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        response: Response = await call_next(request)
        response.headers[HEADER] = request_id
        return response
