from __future__ import annotations

import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ..observability.logging import get_logger

log = get_logger("access")


def _route_template(request: Request) -> str:
    # "/api/services/{service_id}" groups better than the concrete path.
    route = request.scope.get("route")
    return str(getattr(route, "path", "") or request.url.path)


class AccessLogMiddleware(BaseHTTPMiddleware):
    """One `request` event per call; 5xx responses are logged as errors."""

    def __init__(self, app, *, skip_paths: frozenset[str] = frozenset()):
        super().__init__(app)
        self._skip = skip_paths

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self._skip:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)

        status = int(response.status_code)
        fields = {
            "http_method": request.method.upper(),
            "route": _route_template(request),
            "status_code": status,
            "duration_ms": elapsed_ms,
            "response_bytes": response.headers.get("content-length"),
        }
        if status >= 500:
            log.error("request", **fields)
        else:
            log.info("request", **fields)
        return response
