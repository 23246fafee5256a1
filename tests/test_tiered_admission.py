"""Unit tests for multi-tier admission control."""

from unittest.mock import Mock

from kotoba_api.adapters.rate_limit.tiered import TieredAdmissionController


def _controller(clock: Mock, **limits) -> TieredAdmissionController:
    config = {"client_limit": 2, "global_limit": 5, "daily_limit": 100}
    config.update(limits)
    return TieredAdmissionController.from_limits(
        window_seconds=60,
        daily_window_seconds=86400,
        clock=clock,
        **config,
    )


def test_admits_and_reports_client_tier_figures() -> None:
    clock = Mock(return_value=1000.0)
    controller = _controller(clock)

    decision = controller.check("1.2.3.4")

    assert decision.allowed is True
    assert decision.reason is None
    assert decision.limit == 2
    assert decision.remaining == 1
    assert decision.reset_at == 1020


def test_client_tier_denies_one_identity_only() -> None:
    clock = Mock(return_value=1000.0)
    controller = _controller(clock)

    assert controller.check("a").allowed
    assert controller.check("a").allowed

    denied = controller.check("a")
    assert denied.allowed is False
    assert denied.reason == "client_limit"
    assert denied.retry_after_seconds == 20
    assert denied.remaining == 0

    assert controller.check("b").allowed is True


def test_global_tier_denies_every_identity() -> None:
    clock = Mock(return_value=1000.0)
    controller = _controller(clock, client_limit=10, global_limit=3)

    for identity in ("a", "b", "c"):
        assert controller.check(identity).allowed

    denied = controller.check("d")
    assert denied.allowed is False
    assert denied.reason == "global_limit"


def test_daily_quota_reported_before_other_tiers() -> None:
    clock = Mock(return_value=1000.0)
    controller = _controller(clock, client_limit=1, global_limit=1, daily_limit=1)

    assert controller.check("a").allowed

    denied = controller.check("a")
    assert denied.allowed is False
    assert denied.reason == "daily_quota"
    # Nearest reset among the denying tiers is the minute window
    assert denied.retry_after_seconds == 20


def test_daily_quota_survives_minute_windows() -> None:
    clock = Mock(return_value=1000.0)
    controller = _controller(clock, client_limit=10, global_limit=10, daily_limit=2)

    assert controller.check("a").allowed
    clock.return_value = 1100.0
    assert controller.check("a").allowed
    clock.return_value = 1200.0

    denied = controller.check("b")
    assert denied.reason == "daily_quota"
    assert denied.retry_after_seconds == 86400 - 1200


def test_denied_requests_consume_no_budget() -> None:
    clock = Mock(return_value=1000.0)
    controller = _controller(clock, client_limit=1, global_limit=2)

    assert controller.check("a").allowed
    for _ in range(5):
        assert controller.check("a").allowed is False

    # Global tier only saw the single admitted request
    assert controller.check("b").allowed is True


def test_budget_restored_in_next_window() -> None:
    clock = Mock(return_value=1000.0)
    controller = _controller(clock, client_limit=1)

    assert controller.check("a").allowed
    assert controller.check("a").allowed is False

    clock.return_value = 1020.0
    assert controller.check("a").allowed is True
