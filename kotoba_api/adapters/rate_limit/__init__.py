"""Rate limiting adapters.

This package provides a small abstraction layer so the service can start with
in-memory limiters and later migrate to Redis or another shared store without
changing the orchestration layer.
"""

from kotoba_api.adapters.rate_limit.base import (
    AbstractAdmissionController,
    AbstractRateLimiter,
    AdmissionDecision,
    RateLimitResult,
)
from kotoba_api.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from kotoba_api.adapters.rate_limit.tiered import TieredAdmissionController

__all__ = [
    "AbstractAdmissionController",
    "AbstractRateLimiter",
    "AdmissionDecision",
    "InMemoryFixedWindowRateLimiter",
    "RateLimitResult",
    "TieredAdmissionController",
]
