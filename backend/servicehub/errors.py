"""Typed failures raised by the listing, upload and notification components.

The HTTP layer renders each kind as an RFC7807 problem-details response
(see ``main.py``); callers outside HTTP catch them by class.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class ServiceHubError(Exception):
    message: str
    operation: str | None = None
    cause: Exception | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class NotFound(ServiceHubError):
    pass


@dataclass(slots=True)
class InvalidInput(ServiceHubError):
    pass


@dataclass(slots=True)
class Forbidden(ServiceHubError):
    pass


@dataclass(slots=True)
class UploadFailed(ServiceHubError):
    pass


@dataclass(slots=True)
class ExternalServiceError(ServiceHubError):
    """SNS (or another remote API) rejected or failed a call."""

    service: str | None = None
    error_code: str | None = None
    aws_request_id: str | None = None


@dataclass(slots=True)
class FatalInitializationError(ServiceHubError):
    """A component could not be constructed. Not recoverable at request level."""

    component: str | None = None


@dataclass(slots=True)
class CyclicDependencyError(FatalInitializationError):
    chain: tuple[str, ...] = ()
