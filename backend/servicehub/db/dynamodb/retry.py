from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from botocore.exceptions import BotoCoreError, ClientError

from ...observability.logging import get_logger
from .errors import (
    DdbConflict,
    DdbError,
    DdbInternal,
    DdbThrottled,
    DdbTransportError,
    DdbUnavailable,
    DdbValidation,
)

T = TypeVar("T")

log = get_logger("ddb")

_CODE_TO_ERROR: dict[str, type[DdbError]] = {
    "ConditionalCheckFailedException": DdbConflict,
    "TransactionConflictException": DdbConflict,
    "ValidationException": DdbValidation,
    "ProvisionedThroughputExceededException": DdbThrottled,
    "ThrottlingException": DdbThrottled,
    "RequestLimitExceeded": DdbThrottled,
    "InternalServerError": DdbThrottled,
    "ServiceUnavailable": DdbThrottled,
    "AccessDeniedException": DdbUnavailable,
    "UnrecognizedClientException": DdbUnavailable,
    "ResourceNotFoundException": DdbUnavailable,
}


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Full-jitter exponential backoff on top of botocore's own retries."""

    max_attempts: int = 6
    base_delay_s: float = 0.05
    max_delay_s: float = 1.5

    def delay_for(self, attempt: int) -> float:
        ceiling = min(self.max_delay_s, self.base_delay_s * (2 ** max(0, attempt - 1)))
        return random.uniform(0, ceiling)


def map_botocore_error(
    *,
    operation: str,
    table_name: str | None,
    key: dict[str, Any] | None,
    exc: Exception,
) -> DdbError:
    ctx: dict[str, Any] = {"operation": operation, "table_name": table_name, "key": key, "cause": exc}

    if isinstance(exc, ClientError):
        resp = exc.response or {}
        code = str((resp.get("Error") or {}).get("Code") or "") or None
        rid = (resp.get("ResponseMetadata") or {}).get("RequestId")
        cls = _CODE_TO_ERROR.get(code or "", DdbInternal)
        return cls(
            message=f"DynamoDB {operation} failed ({code or 'ClientError'})",
            aws_request_id=rid,
            error_code=code,
            **ctx,
        )

    if isinstance(exc, BotoCoreError):
        return DdbTransportError(message=f"DynamoDB {operation} could not be sent: {exc}", **ctx)

    return DdbInternal(message=f"Unexpected error during DynamoDB {operation}: {exc}", **ctx)


def ddb_call(
    operation: str,
    fn: Callable[[], T],
    *,
    table_name: str | None = None,
    key: dict[str, Any] | None = None,
    retry_policy: RetryPolicy | None = None,
) -> T:
    """Run ``fn``; failures come out as the DdbError family, transient ones retried first."""
    policy = retry_policy or RetryPolicy()
    attempts = max(1, int(policy.max_attempts))
    attempt = 0

    while True:
        attempt += 1
        try:
            return fn()
        except DdbError:
            raise
        except Exception as e:  # noqa: BLE001
            err = map_botocore_error(operation=operation, table_name=table_name, key=key, exc=e)
            if not err.retryable or attempt >= attempts:
                raise err from e
            log.info("ddb_retry", attempt=attempt, **err.log_fields())
            time.sleep(policy.delay_for(attempt))
