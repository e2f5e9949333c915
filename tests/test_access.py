"""Tests for the access gate."""

from datetime import datetime, timedelta, timezone

import pytest

from src.analytics.access import AccessGate, AccessState, UserAccount
from src.core.config import ConfigManager

NOW = datetime(2025, 6, 1, 12, 0, 0)


class Subscriptions:
    def __init__(self, active=(), error: Exception = None) -> None:
        self.active = set(active)
        self.error = error
        self.calls = []

    def has_active_subscription(self, user_id: str) -> bool:
        self.calls.append(user_id)
        if self.error is not None:
            raise self.error
        return user_id in self.active


def user(days_since_signup, role="owner", user_id="u1"):
    return UserAccount(user_id=user_id, role=role, created_at=NOW - timedelta(days=days_since_signup))


def test_trial_user_is_allowed():
    gate = AccessGate(Subscriptions())
    verdict = gate.check(user(29), now=NOW)

    assert verdict.state == AccessState.TRIAL_ACTIVE
    assert verdict.has_access
    assert verdict.trial_days_remaining == 1


def test_expired_trial_without_subscription_is_denied():
    gate = AccessGate(Subscriptions())
    verdict = gate.check(user(31), now=NOW)

    assert verdict.state == AccessState.DENIED
    assert not verdict.has_access
    assert not gate.can_access(user(31), now=NOW)


def test_expired_trial_with_subscription_is_allowed():
    gate = AccessGate(Subscriptions(active={"u1"}))
    verdict = gate.check(user(31), now=NOW)

    assert verdict.state == AccessState.SUBSCRIPTION_ACTIVE
    assert verdict.has_access


def test_trial_ends_exactly_at_thirty_days():
    gate = AccessGate(Subscriptions())
    assert gate.check(user(30), now=NOW).state == AccessState.DENIED


def test_superuser_bypasses_everything():
    subscriptions = Subscriptions()
    gate = AccessGate(subscriptions)
    verdict = gate.check(UserAccount(user_id="root", role="superuser"), now=NOW)

    assert verdict.state == AccessState.SUPERUSER_BYPASS
    assert subscriptions.calls == []


def test_trial_is_checked_before_subscription():
    subscriptions = Subscriptions(active={"u1"})
    verdict = AccessGate(subscriptions).check(user(3), now=NOW)

    assert verdict.state == AccessState.TRIAL_ACTIVE
    assert subscriptions.calls == []


def test_missing_user_is_denied():
    assert AccessGate(Subscriptions()).check(None).state == AccessState.DENIED


def test_missing_signup_date_skips_trial():
    gate = AccessGate(Subscriptions(active={"u2"}))
    verdict = gate.check(UserAccount(user_id="u2", role="dispatcher"), now=NOW)
    assert verdict.state == AccessState.SUBSCRIPTION_ACTIVE


def test_lookup_failure_fails_closed():
    gate = AccessGate(Subscriptions(error=ConnectionError("db down")))
    assert gate.check(user(45), now=NOW).state == AccessState.DENIED


def test_timezone_aware_signup_uses_current_time():
    signup = datetime.now(timezone.utc) - timedelta(days=2)
    verdict = AccessGate(Subscriptions()).check(
        UserAccount(user_id="u1", role="driver", created_at=signup)
    )
    assert verdict.state == AccessState.TRIAL_ACTIVE
    assert verdict.trial_days_remaining == 28


@pytest.mark.parametrize("days,expected", [(13, AccessState.TRIAL_ACTIVE), (15, AccessState.DENIED)])
def test_trial_length_from_config(tmp_path, days, expected):
    (tmp_path / "config.yaml").write_text("access:\n  trial_period_days: 14\n")
    gate = AccessGate.from_config(Subscriptions(), ConfigManager(config_dir=tmp_path))
    assert gate.check(user(days), now=NOW).state == expected


def test_aware_signup_with_naive_now_returns_verdict():
    signup = datetime.now(timezone.utc) - timedelta(days=2)
    verdict = AccessGate(Subscriptions()).check(
        UserAccount(user_id="u1", role="driver", created_at=signup), now=datetime.now()
    )
    assert verdict.state == AccessState.TRIAL_ACTIVE
    assert verdict.trial_days_remaining == 28


def test_naive_signup_with_aware_now_returns_verdict():
    signup = datetime.now() - timedelta(days=45)
    verdict = AccessGate(Subscriptions(active={"u1"})).check(
        UserAccount(user_id="u1", role="driver", created_at=signup), now=datetime.now(timezone.utc)
    )
    assert verdict.state == AccessState.SUBSCRIPTION_ACTIVE
