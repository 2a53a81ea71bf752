from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

SERVICE_NAME = "servicehub-backend"

# Fields whose values never reach the log stream in clear text.
_SECRET_FIELDS = frozenset({"aws_secret_access_key", "aws_session_token", "password", "token"})

_configured = False


def _mask_email(value: str) -> str:
    local, sep, domain = value.partition("@")
    if not sep:
        return "***"
    return f"{local[:1]}***@{domain}"


def _redact(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for k in list(event_dict):
        if k in _SECRET_FIELDS and event_dict[k]:
            event_dict[k] = "***"
        elif k == "email" and isinstance(event_dict[k], str):
            event_dict[k] = _mask_email(event_dict[k])
    return event_dict


def _service_context(environment: str):
    def _add(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", SERVICE_NAME)
        event_dict.setdefault("env", environment)
        return event_dict

    return _add


def configure_logging(*, level: str | int = "INFO", environment: str = "development") -> None:
    """
    Route stdlib logging and structlog through one handler on stdout.

    Development gets a readable console renderer; every other environment
    gets one JSON object per line. Request-scoped fields (request id, caller
    id) come from structlog's contextvars, bound by RequestContextMiddleware.
    """
    global _configured
    if _configured:
        return

    shared: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _service_context(environment),
        _redact,
    ]
    renderer: Any = (
        structlog.dev.ConsoleRenderer(colors=False)
        if environment == "development"
        else structlog.processors.JSONRenderer()
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uv = logging.getLogger(name)
        uv.handlers = []
        uv.propagate = True
    # boto's wire-level chatter drowns everything else at INFO.
    for name in ("botocore", "boto3", "urllib3"):
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            *shared,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
