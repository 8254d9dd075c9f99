"""
Subscription state objects

Each state answers which lifecycle actions are legal for a subscription.
States do not transition themselves; the lifecycle service consults them
before mutating anything.
"""

import math
from datetime import datetime
from typing import List, Optional

from salonbook.models.subscription import Subscription, SubscriptionStatus


def days_until(moment: Optional[datetime], now: Optional[datetime] = None) -> int:
    """Whole days left until a moment, partial days rounded up, never negative"""
    if moment is None:
        return 0
    now = now or datetime.utcnow()
    seconds = (moment - now).total_seconds()
    if seconds <= 0:
        return 0
    return math.ceil(seconds / 86400)


def _ends_in(days: int, subject: str) -> str:
    if days == 1:
        return f"{subject} ends in 1 day"
    return f"{subject} ends in {days} days"


class SubscriptionState:
    """Base state: every capability is refused unless a state grants it"""

    name = "unknown"
    display_name = "Unknown"

    def __init__(self, subscription: Subscription, now: Optional[datetime] = None):
        self.subscription = subscription
        self.now = now or datetime.utcnow()

    def can_upgrade(self) -> bool:
        return False

    def can_downgrade(self) -> bool:
        return False

    def can_cancel(self) -> bool:
        return False

    def can_resume(self) -> bool:
        return False

    def description(self) -> str:
        return ""

    def allowed_actions(self) -> List[str]:
        return []

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "display_name": self.display_name,
            "description": self.description(),
            "allowed_actions": self.allowed_actions(),
            "can_upgrade": self.can_upgrade(),
            "can_downgrade": self.can_downgrade(),
            "can_cancel": self.can_cancel(),
            "can_resume": self.can_resume(),
        }


class FreeState(SubscriptionState):
    name = "free"
    display_name = "Free"

    def can_upgrade(self) -> bool:
        return True

    def can_cancel(self) -> bool:
        return True

    def description(self) -> str:
        return "You are on the free plan"

    def allowed_actions(self) -> List[str]:
        return ["upgrade", "cancel"]


class TrialingState(SubscriptionState):
    name = "trialing"
    display_name = "On Trial"

    def can_upgrade(self) -> bool:
        return True

    def can_cancel(self) -> bool:
        return True

    def description(self) -> str:
        trial_ends_at = self.subscription.trial_ends_at
        if trial_ends_at is None:
            return "Your trial is active"
        days = days_until(trial_ends_at, self.now)
        if days <= 0:
            return "Your trial has ended"
        return _ends_in(days, "Trial")

    def allowed_actions(self) -> List[str]:
        return ["upgrade", "cancel"]


class ActiveState(SubscriptionState):
    name = "active"
    display_name = "Active"

    def can_upgrade(self) -> bool:
        return True

    def can_downgrade(self) -> bool:
        return True

    def can_cancel(self) -> bool:
        return True

    def description(self) -> str:
        return "Your subscription is active"

    def allowed_actions(self) -> List[str]:
        return ["upgrade", "downgrade", "cancel", "change_billing_cycle"]


class PastDueState(SubscriptionState):
    name = "past_due"
    display_name = "Past Due"

    def can_cancel(self) -> bool:
        return True

    def description(self) -> str:
        return "Payment failed. Please update your payment method."

    def allowed_actions(self) -> List[str]:
        return ["update_payment_method", "cancel"]


class IncompleteState(SubscriptionState):
    name = "incomplete"
    display_name = "Incomplete"

    def can_cancel(self) -> bool:
        return True

    def description(self) -> str:
        return "Payment is required to activate your subscription."

    def allowed_actions(self) -> List[str]:
        return ["update_payment_method", "cancel"]


class CanceledState(SubscriptionState):
    """Terminal: only a resume during the grace period or a new subscription"""

    name = "canceled"
    display_name = "Canceled"

    def can_resume(self) -> bool:
        return self.subscription.on_grace_period(self.now)

    def description(self) -> str:
        ends_at = self.subscription.ends_at
        if ends_at is None:
            return "Subscription is canceled"
        days = days_until(ends_at, self.now)
        if days <= 0:
            return "Subscription has ended"
        return _ends_in(days, "Subscription")

    def allowed_actions(self) -> List[str]:
        if self.can_resume():
            return ["resume"]
        return ["resubscribe"]


class SubscriptionStateFactory:
    """Resolve the state object for a subscription"""

    @staticmethod
    def make(subscription: Subscription, now: Optional[datetime] = None) -> SubscriptionState:
        now = now or datetime.utcnow()
        status = SubscriptionStatus(subscription.stripe_status)

        if subscription.on_trial(now):
            return TrialingState(subscription, now)
        if subscription.ends_at is not None or status == SubscriptionStatus.CANCELED:
            return CanceledState(subscription, now)
        if status == SubscriptionStatus.PAST_DUE:
            return PastDueState(subscription, now)
        if status in (SubscriptionStatus.INCOMPLETE, SubscriptionStatus.INCOMPLETE_EXPIRED):
            return IncompleteState(subscription, now)
        if subscription.is_free():
            return FreeState(subscription, now)
        # active, unpaid, paused and trialing past its end date
        return ActiveState(subscription, now)
