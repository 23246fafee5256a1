"""Rate limiter interfaces.

The services depend on these abstractions (not the concrete implementation)
so we can swap storage backends later (e.g., Redis) with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal

DenialReason = Literal["daily_quota", "global_limit", "client_limit"]


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check/consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window resets.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


@dataclass(frozen=True)
class AdmissionDecision:
    """Outcome of a multi-tier admission check.

    Attributes:
        allowed: Whether every tier admitted the request.
        reason: Most specific tier that denied the request (None when allowed).
        retry_after_seconds: Nearest reset among the denying tiers.
        limit: Per-client ceiling for the current window.
        remaining: Per-client budget left in the current window.
        reset_at: UNIX epoch seconds when the per-client window resets.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    reason: DenialReason | None = None
    retry_after_seconds: int | None = None


class AbstractRateLimiter(ABC):
    """Interface for single-tier rate limiters."""

    @abstractmethod
    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume rate limit budget for a given key.

        Args:
            key: Unique identifier (e.g., client IP).
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def peek(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Report whether ``cost`` units would be allowed, without consuming them."""
        raise NotImplementedError


class AbstractAdmissionController(ABC):
    """Interface for multi-tier admission control."""

    @abstractmethod
    def check(self, client_identity: str) -> AdmissionDecision:
        """Admit or deny one request from ``client_identity``.

        Admitted requests consume one unit from every tier.
        """
        raise NotImplementedError
