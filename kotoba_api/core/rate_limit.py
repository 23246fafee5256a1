"""Admission control wiring for the service layer and HTTP layer.

This module connects the rate limiting adapters to the orchestrators and the
HTTP responses.

Design goals:
- Minimal coupling: services depend on an abstract admission controller.
- Swap-friendly: storage backend can be replaced (e.g., Redis) behind an
  abstract interface.
- Process-wide state: one controller per endpoint, rebuilt only when its
  configuration changes (primarily in tests).

Client identity:
- First X-Forwarded-For entry, then X-Real-IP, then the socket peer.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Callable, Union

from fastapi import Request

from kotoba_api.adapters.rate_limit.base import AbstractAdmissionController, AdmissionDecision
from kotoba_api.adapters.rate_limit.tiered import TieredAdmissionController
from kotoba_api.core.config import settings
from kotoba_api.core.errors import ErrorCode, RateLimitAppError

logger = logging.getLogger(__name__)


_controllers: dict[str, tuple[tuple[int, ...], AbstractAdmissionController]] = {}

# A controller, or a zero-argument lookup resolved on every request
AdmissionSource = Union[AbstractAdmissionController, Callable[[], AbstractAdmissionController]]


def _tier_config(operation: str) -> tuple[int, ...]:
    cfg = settings.app
    if operation == "translate":
        limits = (cfg.translate_client_limit, cfg.translate_global_limit, cfg.translate_daily_limit)
    elif operation == "analyze":
        limits = (cfg.analyze_client_limit, cfg.analyze_global_limit, cfg.analyze_daily_limit)
    else:
        raise ValueError(f"Unknown operation: {operation}")
    return (*limits, cfg.rate_limit_window_seconds, cfg.rate_limit_daily_window_seconds)


def get_admission_controller(operation: str) -> AbstractAdmissionController:
    """Return the process-wide admission controller for ``operation``.

    The instance is cached in-module to preserve state across requests.
    If configuration changes (primarily in tests), the controller is rebuilt.

    Args:
        operation: "translate" or "analyze".

    Returns:
        AbstractAdmissionController: Configured controller instance.
    """

    config = _tier_config(operation)
    cached = _controllers.get(operation)
    if cached is not None and cached[0] == config:
        return cached[1]

    client_limit, global_limit, daily_limit, window_s, daily_window_s = config
    controller = TieredAdmissionController.from_limits(
        client_limit=client_limit,
        global_limit=global_limit,
        daily_limit=daily_limit,
        window_seconds=window_s,
        daily_window_seconds=daily_window_s,
    )
    _controllers[operation] = (config, controller)
    return controller


def get_client_identity(request: Request) -> str:
    """Resolve the identity used by the per-client tier.

    Args:
        request: FastAPI request.

    Returns:
        str: Client address, or "unknown" when it cannot be determined.
    """

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _hash_identity(identity: str) -> str:
    """Hash the client identity for logging without exposing addresses."""
    return hashlib.sha256(identity.encode()).hexdigest()[:16]


def _denial_message(decision: AdmissionDecision, noun: str) -> str:
    if decision.reason == "daily_quota":
        return f"Daily {noun} limit reached. Please try again tomorrow."
    if decision.reason == "global_limit":
        return "Service is experiencing high demand. Please try again in a moment."
    return f"Too many requests. Please wait {decision.retry_after_seconds} seconds."


def enforce_admission(
    controller: AdmissionSource | None,
    client_identity: str,
    *,
    noun: str,
) -> AdmissionDecision | None:
    """Admit the request or raise a structured rate-limit error.

    Args:
        controller: Admission controller of the endpoint, or a callable returning
            it (looked up per request so configuration changes apply). None
            disables checks.
        client_identity: Caller identity for the per-client tier.
        noun: Operation name used in the daily-quota message.

    Returns:
        The admission decision, or None when rate limiting is disabled.

    Raises:
        RateLimitAppError: 429 when any tier denies the request.
    """

    if controller is None or not settings.app.rate_limit_enabled:
        return None

    if not isinstance(controller, AbstractAdmissionController):
        controller = controller()

    decision = controller.check(client_identity)
    key_hash = _hash_identity(client_identity)

    if decision.allowed:
        logger.info(
            "admission.allowed",
            extra={
                "key_hash": key_hash,
                "limit": decision.limit,
                "remaining": decision.remaining,
            },
        )
        return decision

    logger.warning(
        "admission.denied",
        extra={
            "key_hash": key_hash,
            "reason": decision.reason,
            "limit": decision.limit,
            "remaining": decision.remaining,
            "retry_after_s": decision.retry_after_seconds,
        },
    )
    raise RateLimitAppError(
        code=ErrorCode.RATE_LIMIT,
        message=_denial_message(decision, noun),
        details={"reason": decision.reason or "client_limit"},
        retry_after=decision.retry_after_seconds,
        decision=decision,
    )


def build_rate_limit_headers(decision: AdmissionDecision | None) -> dict[str, str]:
    """Build X-RateLimit-* (and Retry-After on denial) headers for a decision."""

    if decision is None or not settings.app.rate_limit_include_headers:
        return {}

    headers = {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(decision.reset_at),
    }
    if not decision.allowed and decision.retry_after_seconds is not None:
        headers["Retry-After"] = str(decision.retry_after_seconds)
    return headers
