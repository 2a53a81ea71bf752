from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")

SUCCESS = "SUCCESS"


@dataclass(frozen=True, slots=True)
class ResponseBody(Generic[T]):
    """Success envelope returned by the business components.

    Failures never come back as a ResponseBody: they are raised as
    ``servicehub.errors.ServiceHubError`` subclasses and rendered as
    problem details by the HTTP layer.
    """

    data: T
    message: str
    result_type: str = SUCCESS

    @property
    def ok(self) -> bool:
        return self.result_type == SUCCESS

    def to_dict(self) -> dict[str, Any]:
        data: Any = self.data
        if hasattr(data, "model_dump"):
            data = data.model_dump(mode="json")
        return {"resultType": self.result_type, "data": data, "message": self.message}
