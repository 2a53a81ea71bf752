from __future__ import annotations

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from .db.dynamodb.errors import DdbError
from .errors import FatalInitializationError, ServiceHubError
from .middleware.access_log import AccessLogMiddleware
from .middleware.request_context import RequestContextMiddleware
from .observability.logging import configure_logging, get_logger
from .observability.otel import configure_otel, instrument_app
from .problem_details import Problem, problem_for, problem_response
from .registry import ComponentRegistry, get_registry
from .routers.health import router as health_router
from .routers.notifications import router as notifications_router
from .routers.services import router as services_router
from .routers.uploads import router as uploads_router
from .settings import get_settings

log = get_logger("api")


def create_app(*, registry: ComponentRegistry | None = None) -> FastAPI:
    settings = get_settings()
    configure_logging(level=settings.log_level, environment=settings.normalized_environment)
    configure_otel(settings)

    app = FastAPI(
        title="ServiceHub Backend",
        version="1.0.0",
        default_response_class=ORJSONResponse,
        redirect_slashes=False,
    )
    # Nothing is constructed here; the registry builds components on first use.
    app.state.registry = registry or get_registry()

    # Added last = runs first, so the access log line carries the request id.
    app.add_middleware(AccessLogMiddleware, skip_paths=frozenset({"/"}))
    app.add_middleware(RequestContextMiddleware)

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    for exc_type in (ServiceHubError, DdbError, ClientError, BotoCoreError):
        app.add_exception_handler(exc_type, _known_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_exception_handler)

    app.include_router(health_router)
    app.include_router(services_router, prefix="/api/services")
    app.include_router(uploads_router, prefix="/api/upload")
    app.include_router(notifications_router, prefix="/api/notifications")

    instrument_app(app, settings)
    log.info("app_started", settings=settings.to_log_safe_dict())
    return app


def _known_error_handler(request: Request, exc: Exception) -> Response:
    problem = problem_for(exc)
    if isinstance(exc, FatalInitializationError):
        log.error("component_init_failed", component=exc.component, error=str(exc), path=request.url.path)
    elif problem.status >= 500:
        log.warning(
            "request_failed",
            error_type=type(exc).__name__,
            error=str(exc),
            status_code=problem.status,
            path=request.url.path,
        )
    return problem_response(request, problem)


def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    detail = str(exc.detail) if exc.detail is not None else None
    if exc.status_code == 404 and not detail:
        detail = "Route not found"
    return problem_response(request, Problem(status=int(exc.status_code), detail=detail))


def _validation_error_handler(request: Request, exc: RequestValidationError) -> Response:
    errors = [
        {
            "location": list(e.get("loc") or ()),
            "path": ".".join(str(x) for x in (e.get("loc") or ()) if x != "body"),
            "message": e.get("msg", "Invalid value"),
            "type": e.get("type"),
        }
        for e in exc.errors()
    ]
    return problem_response(
        request,
        Problem(status=422, title="Validation Failed", detail="Request validation failed", errors=errors),
    )


def _unhandled_exception_handler(request: Request, exc: Exception) -> Response:
    log.exception(
        "unhandled_exception",
        request_id=getattr(request.state, "request_id", None),
        http_method=request.method.upper(),
        path=request.url.path,
    )
    return problem_response(request, Problem(status=500, detail=str(exc) or None))


def serve() -> None:
    import uvicorn

    uvicorn.run("servicehub.main:create_app", factory=True, host="0.0.0.0", port=get_settings().port)
