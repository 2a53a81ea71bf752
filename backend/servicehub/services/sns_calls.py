from __future__ import annotations

from typing import Callable, TypeVar

from botocore.exceptions import BotoCoreError, ClientError

from ..errors import ExternalServiceError

T = TypeVar("T")


def sns_call(operation: str, fn: Callable[[], T]) -> T:
    """Run one SNS API call, surfacing botocore failures as ExternalServiceError.

    No retry here; botocore's own retry config is the only one.
    """
    try:
        return fn()
    except ClientError as e:
        resp = e.response or {}
        code = str((resp.get("Error") or {}).get("Code") or "") or None
        raise ExternalServiceError(
            message=f"SNS {operation} failed ({code or 'ClientError'})",
            operation=operation,
            cause=e,
            service="sns",
            error_code=code,
            aws_request_id=(resp.get("ResponseMetadata") or {}).get("RequestId"),
        ) from e
    except BotoCoreError as e:
        raise ExternalServiceError(
            message=f"SNS {operation} failed: {e}",
            operation=operation,
            cause=e,
            service="sns",
        ) from e
