"""
Access Gate - decides whether a user may use the analytics features.

Access priority:
1. Superusers always have access
2. Users inside the trial window after signup have access
3. Users with an active subscription have access
4. Everyone else is denied

The verdict is recomputed on every check; nothing is stored.
"""

import math
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Protocol

import structlog
from pydantic import BaseModel, computed_field

from src.core.config import ConfigManager, get_config

SUPERUSER_ROLE = "superuser"
DEFAULT_TRIAL_PERIOD_DAYS = 30


class AccessState(str, Enum):
    """Outcome of an access check."""

    DENIED = "denied"
    TRIAL_ACTIVE = "trial_active"
    SUBSCRIPTION_ACTIVE = "subscription_active"
    SUPERUSER_BYPASS = "superuser_bypass"


class UserAccount(BaseModel):
    """The parts of a user profile the gate reads."""

    user_id: str
    role: str
    created_at: Optional[datetime] = None


class SubscriptionLookup(Protocol):
    """Subscription storage."""

    def has_active_subscription(self, user_id: str) -> bool:
        ...


class AccessVerdict(BaseModel):
    """Access decision with a human-readable reason."""

    state: AccessState
    reason: str
    trial_days_remaining: Optional[int] = None

    @computed_field
    @property
    def has_access(self) -> bool:
        return self.state != AccessState.DENIED


class AccessGate:
    """
    Classifies users as superuser, trial, subscribed or denied.

    Subscription lookup errors count as "no subscription" so the gate fails
    closed.
    """

    def __init__(
        self,
        subscriptions: SubscriptionLookup,
        trial_period_days: int = DEFAULT_TRIAL_PERIOD_DAYS,
        logger: Optional[structlog.BoundLogger] = None,
    ) -> None:
        self.subscriptions = subscriptions
        self.trial_period = timedelta(days=trial_period_days)
        self.logger = logger or structlog.get_logger(__name__)

    @classmethod
    def from_config(
        cls,
        subscriptions: SubscriptionLookup,
        config_manager: Optional[ConfigManager] = None,
    ) -> "AccessGate":
        access = (config_manager or get_config()).get_access_config()
        return cls(subscriptions, trial_period_days=access.trial_period_days)

    def check(self, user: Optional[UserAccount], now: Optional[datetime] = None) -> AccessVerdict:
        """
        Classify a user.

        Args:
            user: User to check; None means not authenticated
            now: Current time (defaults to now, in the signup timestamp's timezone)

        Returns:
            AccessVerdict
        """
        if user is None:
            return AccessVerdict(state=AccessState.DENIED, reason="User not authenticated")

        if user.role == SUPERUSER_ROLE:
            return AccessVerdict(
                state=AccessState.SUPERUSER_BYPASS,
                reason="Superuser - bypasses all restrictions",
            )

        if user.created_at is not None:
            created_at = user.created_at
            now = now or datetime.now(tz=created_at.tzinfo)
            if (now.tzinfo is None) != (created_at.tzinfo is None):
                # Naive timestamps are local time
                now, created_at = now.astimezone(), created_at.astimezone()
            trial_end = created_at + self.trial_period
            if now < trial_end:
                days_remaining = math.ceil((trial_end - now).total_seconds() / 86400)
                return AccessVerdict(
                    state=AccessState.TRIAL_ACTIVE,
                    reason=f"Trial period - {days_remaining} days remaining",
                    trial_days_remaining=days_remaining,
                )

        if self._has_subscription(user.user_id):
            return AccessVerdict(
                state=AccessState.SUBSCRIPTION_ACTIVE, reason="Active subscription"
            )

        self.logger.info("access_denied", user_id=user.user_id)
        return AccessVerdict(
            state=AccessState.DENIED,
            reason="No active subscription or trial period expired",
        )

    def can_access(self, user: Optional[UserAccount], now: Optional[datetime] = None) -> bool:
        """Boolean form of check()."""
        return self.check(user, now).has_access

    def _has_subscription(self, user_id: str) -> bool:
        try:
            return bool(self.subscriptions.has_active_subscription(user_id))
        except Exception as e:
            self.logger.error("subscription_lookup_failed", user_id=user_id, error=str(e))
            return False
