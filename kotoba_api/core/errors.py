"""Application-level exception types.

This module defines the closed set of domain errors used across services,
adapters and the client, enabling consistent error handling, logging, and API
responses. Each variant carries its wire code and HTTP status.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, NotRequired, TypedDict

if TYPE_CHECKING:
    from kotoba_api.adapters.rate_limit.base import AdmissionDecision


class ErrorCode:
    """Stable, machine-readable error codes shared by server and client."""

    INVALID_INPUT = "INVALID_INPUT"
    RATE_LIMIT = "RATE_LIMIT"
    API_ERROR = "API_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    OFFLINE = "OFFLINE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability.

    Never rendered verbatim to clients; used in logs.
    """

    reason: str
    field: str
    max_chars: int
    actual_chars: int
    upstream_status: int
    provider: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code (see ErrorCode).
        message: Human-readable error message, safe to show to end users.
        details: Optional structured details for debugging/observability.
        status: Optional HTTP status overriding the variant default.
    """

    code: str
    message: str
    details: ErrorDetails | None = None
    status: int | None = None

    default_status: ClassVar[int] = 500
    retryable: ClassVar[bool] = False

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)

    @property
    def http_status(self) -> int:
        return self.status if self.status is not None else self.default_status


class ValidationAppError(AppError):
    """Raised when input validation fails. Never retried."""

    default_status = 400


@dataclass
class RateLimitAppError(AppError):
    """Raised when a request is denied by admission control or upstream throttling.

    Attributes:
        retry_after: Seconds after which the request may succeed, when known.
        decision: Admission decision that caused the denial (None for
            upstream throttling).
    """

    retry_after: int | None = None
    decision: AdmissionDecision | None = None

    default_status = 429
    retryable = True


class UpstreamAppError(AppError):
    """Raised when the downstream provider fails (non-2xx, bad payload)."""

    default_status = 502
    retryable = True


class AuthConfigurationAppError(AppError):
    """Raised when provider credentials are missing or rejected (operator error)."""

    default_status = 500


class NetworkAppError(AppError):
    """Raised when the transport fails before a response is received."""

    default_status = 503
    retryable = True


class OfflineAppError(AppError):
    """Raised by the client when no connectivity is detected."""

    default_status = 0
    retryable = True


ERROR_CLASSES_BY_CODE: dict[str, type[AppError]] = {
    ErrorCode.INVALID_INPUT: ValidationAppError,
    ErrorCode.RATE_LIMIT: RateLimitAppError,
    ErrorCode.API_ERROR: UpstreamAppError,
    ErrorCode.AUTH_ERROR: AuthConfigurationAppError,
    ErrorCode.NETWORK_ERROR: NetworkAppError,
    ErrorCode.OFFLINE: OfflineAppError,
}
