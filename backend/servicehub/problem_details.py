"""RFC 7807 problem details for every failure the API can surface."""

from __future__ import annotations

from dataclasses import dataclass
from http import HTTPStatus
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import Request
from fastapi.responses import ORJSONResponse

from .db.dynamodb.errors import (
    DdbConflict,
    DdbError,
    DdbThrottled,
    DdbTransportError,
    DdbUnavailable,
    DdbValidation,
)
from .errors import (
    ExternalServiceError,
    FatalInitializationError,
    Forbidden,
    InvalidInput,
    NotFound,
    ServiceHubError,
    UploadFailed,
)
from .settings import get_settings

PROBLEM_JSON = "application/problem+json"

# First match wins, so subclasses go before their bases.
_ERROR_STATUS: tuple[tuple[type[Exception], int, str | None], ...] = (
    (NotFound, 404, None),
    (InvalidInput, 400, None),
    (Forbidden, 403, None),
    (UploadFailed, 502, "Upload Failed"),
    (ExternalServiceError, 502, "External Service Error"),
    (FatalInitializationError, 500, "Initialization Failed"),
    (DdbValidation, 400, None),
    (DdbConflict, 409, None),
    (DdbThrottled, 503, None),
    (DdbTransportError, 503, None),
    (DdbUnavailable, 503, None),
    (DdbError, 500, "Storage Error"),
    (ClientError, 502, "Storage Error"),
    (BotoCoreError, 502, "Storage Error"),
)


def default_title(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Internal Server Error" if status_code >= 500 else "Error"


def _compact(d: dict[str, Any]) -> dict[str, Any] | None:
    out = {k: v for k, v in d.items() if v is not None}
    return out or None


def _client_error_code(exc: ClientError) -> str | None:
    return str(((exc.response or {}).get("Error") or {}).get("Code") or "") or None


@dataclass(frozen=True, slots=True)
class Problem:
    status: int
    title: str | None = None
    detail: str | None = None
    errors: list[dict[str, Any]] | None = None
    extensions: dict[str, Any] | None = None

    def to_payload(self, *, instance: str | None = None, request_id: str | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "type": "about:blank",
            "title": self.title or default_title(self.status),
            "status": self.status,
        }
        if self.detail:
            payload["detail"] = self.detail
        if instance:
            payload["instance"] = instance
        if request_id:
            payload["requestId"] = request_id
        if self.errors:
            payload["errors"] = self.errors
        if self.extensions:
            # Never mixed into the top level, so reserved members stay reserved.
            payload["extensions"] = self.extensions
        return payload


def problem_for(exc: Exception) -> Problem:
    """Map a domain, DynamoDB or raw botocore failure onto its problem."""
    status, title = 500, None
    for cls, code, label in _ERROR_STATUS:
        if isinstance(exc, cls):
            status, title = code, label
            break

    extensions: dict[str, Any] | None = None
    if isinstance(exc, ExternalServiceError):
        extensions = _compact(
            {"service": exc.service, "errorCode": exc.error_code, "awsRequestId": exc.aws_request_id}
        )
    elif isinstance(exc, DdbError):
        extensions = _compact(
            {
                "operation": exc.operation,
                "table": exc.table_name,
                "awsRequestId": exc.aws_request_id,
                "retryable": bool(exc.retryable),
            }
        )
    elif isinstance(exc, ClientError):
        extensions = _compact({"errorCode": _client_error_code(exc)})

    detail = exc.message if isinstance(exc, (ServiceHubError, DdbError)) else str(exc)
    return Problem(status=status, title=title, detail=detail or None, extensions=extensions)


def request_id_of(request: Request) -> str | None:
    rid = getattr(request.state, "request_id", None) or request.headers.get("x-request-id")
    return str(rid) if rid else None


def problem_response(request: Request, problem: Problem) -> ORJSONResponse:
    if problem.status >= 500 and get_settings().is_production:
        # Server-side details stay in the logs.
        problem = Problem(status=problem.status, title=problem.title, extensions=problem.extensions)
    return ORJSONResponse(
        status_code=problem.status,
        content=problem.to_payload(instance=request.url.path or None, request_id=request_id_of(request)),
        media_type=PROBLEM_JSON,
    )
