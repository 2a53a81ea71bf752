from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar


@dataclass(slots=True)
class DdbError(Exception):
    """A DynamoDB call failed.

    Subclasses say why; ``retryable`` is fixed per subclass so ``ddb_call``
    can decide without looking at error codes again.
    """

    retryable: ClassVar[bool] = False

    message: str
    operation: str | None = None
    table_name: str | None = None
    key: dict[str, Any] | None = None
    aws_request_id: str | None = None
    error_code: str | None = None
    cause: Exception | None = None

    def __str__(self) -> str:
        return self.message

    def log_fields(self) -> dict[str, Any]:
        return {
            "ddb_error": type(self).__name__,
            "operation": self.operation,
            "table": self.table_name,
            "error_code": self.error_code,
            "aws_request_id": self.aws_request_id,
        }


@dataclass(slots=True)
class DdbConflict(DdbError):
    """ConditionExpression did not hold: the row is missing or not in the expected state."""


@dataclass(slots=True)
class DdbValidation(DdbError):
    pass


@dataclass(slots=True)
class DdbThrottled(DdbError):
    retryable: ClassVar[bool] = True


@dataclass(slots=True)
class DdbTransportError(DdbError):
    """Could not reach DynamoDB at all (DNS, TLS, connection reset)."""

    retryable: ClassVar[bool] = True


@dataclass(slots=True)
class DdbUnavailable(DdbError):
    """Table missing or credentials rejected; retrying will not help."""


@dataclass(slots=True)
class DdbInternal(DdbError):
    pass
