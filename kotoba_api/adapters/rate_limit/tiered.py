"""Multi-tier admission control built from fixed-window limiters.

Three tiers gate every request:
- per-client: bounds the burst rate of a single caller;
- global: bounds aggregate throughput against the shared downstream quota;
- daily: bounds total daily spend against the provider quota.

All tiers are evaluated before any counter moves, so a denied request never
consumes budget and an admitted request consumes exactly one unit per tier.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from kotoba_api.adapters.rate_limit.base import (
    AbstractAdmissionController,
    AbstractRateLimiter,
    AdmissionDecision,
    DenialReason,
    RateLimitResult,
)
from kotoba_api.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

logger = logging.getLogger(__name__)

GLOBAL_KEY = "global"
DAILY_KEY = "daily"

DAY_SECONDS = 86400


class TieredAdmissionController(AbstractAdmissionController):
    """Admission controller combining per-client, global and daily tiers.

    Denial reasons are reported most-specific first: an exhausted daily quota
    wins over a global limit, which wins over per-client throttling.
    """

    def __init__(
        self,
        *,
        client_limiter: AbstractRateLimiter,
        global_limiter: AbstractRateLimiter,
        daily_limiter: AbstractRateLimiter,
    ) -> None:
        self._client = client_limiter
        self._global = global_limiter
        self._daily = daily_limiter
        self._lock = threading.RLock()

    @classmethod
    def from_limits(
        cls,
        *,
        client_limit: int,
        global_limit: int,
        daily_limit: int,
        window_seconds: int = 60,
        daily_window_seconds: int = DAY_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> "TieredAdmissionController":
        """Build a controller backed by in-memory fixed-window limiters."""
        return cls(
            client_limiter=InMemoryFixedWindowRateLimiter(
                limit=client_limit, window_seconds=window_seconds, clock=clock
            ),
            global_limiter=InMemoryFixedWindowRateLimiter(
                limit=global_limit, window_seconds=window_seconds, clock=clock
            ),
            daily_limiter=InMemoryFixedWindowRateLimiter(
                limit=daily_limit, window_seconds=daily_window_seconds, clock=clock
            ),
        )

    def check(self, client_identity: str) -> AdmissionDecision:
        """Admit or deny one request from ``client_identity``.

        Args:
            client_identity: Stable identifier of the caller (e.g., client IP).

        Returns:
            AdmissionDecision; per-client quota figures are always populated.

        Raises:
            ValueError: If client_identity is empty.
        """
        with self._lock:
            client = self._client.peek(client_identity)
            global_ = self._global.peek(GLOBAL_KEY)
            daily = self._daily.peek(DAILY_KEY)

            denied: list[tuple[DenialReason, RateLimitResult]] = [
                (reason, result)
                for reason, result in (
                    ("daily_quota", daily),
                    ("global_limit", global_),
                    ("client_limit", client),
                )
                if not result.allowed
            ]

            if denied:
                reason = denied[0][0]
                retry_after = min(result.retry_after_seconds or 1 for _, result in denied)
                logger.debug(
                    "admission.denied_tiers",
                    extra={"tiers": [name for name, _ in denied]},
                )
                return AdmissionDecision(
                    allowed=False,
                    limit=client.limit,
                    remaining=client.remaining,
                    reset_at=client.reset_at,
                    reason=reason,
                    retry_after_seconds=max(1, retry_after),
                )

            client = self._client.consume(client_identity)
            self._global.consume(GLOBAL_KEY)
            self._daily.consume(DAILY_KEY)

            return AdmissionDecision(
                allowed=True,
                limit=client.limit,
                remaining=client.remaining,
                reset_at=client.reset_at,
            )
