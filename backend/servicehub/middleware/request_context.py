from __future__ import annotations

import uuid

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_ID_HEADER = "X-Request-Id"
USER_ID_HEADER = "X-User-Id"
_MAX_INBOUND_ID_LEN = 128


def _accept_request_id(raw: str | None) -> str:
    rid = (raw or "").strip()
    if not rid or len(rid) > _MAX_INBOUND_ID_LEN or not rid.isprintable():
        return str(uuid.uuid4())
    return rid


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Correlates everything a request logs.

    Reuses a sane inbound X-Request-Id or mints a UUID4, stores it on
    ``request.state`` for problem details, binds it (and the forwarded
    caller id) into structlog's contextvars and echoes it on the response.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = _accept_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id

        bound = {"request_id": request_id}
        caller = (request.headers.get(USER_ID_HEADER) or "").strip()
        if caller:
            bound["caller_id"] = caller

        with structlog.contextvars.bound_contextvars(**bound):
            response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
