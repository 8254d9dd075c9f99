"""
Unit tests for subscription state resolution and capabilities
"""

import uuid
from datetime import datetime, timedelta

import pytest

from salonbook.models.subscription import Subscription, SubscriptionStatus
from salonbook.services.subscription.states import (
    ActiveState,
    CanceledState,
    FreeState,
    IncompleteState,
    PastDueState,
    SubscriptionStateFactory,
    TrialingState,
    days_until,
)

NOW = datetime(2026, 3, 10, 12, 0, 0)


def _subscription(status=SubscriptionStatus.ACTIVE, stripe_id="sub_123", **fields) -> Subscription:
    return Subscription(
        id=uuid.uuid4(),
        tenant_id=uuid.uuid4(),
        plan_id=uuid.uuid4(),
        stripe_id=stripe_id,
        stripe_status=status,
        **fields,
    )


class TestStateFactory:
    """Factory resolution order"""

    def test_trial_wins_over_everything(self):
        subscription = _subscription(
            SubscriptionStatus.TRIALING,
            trial_ends_at=NOW + timedelta(days=3),
            ends_at=NOW + timedelta(days=3),
        )
        assert isinstance(SubscriptionStateFactory.make(subscription, NOW), TrialingState)

    def test_ends_at_means_canceled(self):
        subscription = _subscription(ends_at=NOW + timedelta(days=5))
        assert isinstance(SubscriptionStateFactory.make(subscription, NOW), CanceledState)

    def test_canceled_status(self):
        subscription = _subscription(SubscriptionStatus.CANCELED)
        assert isinstance(SubscriptionStateFactory.make(subscription, NOW), CanceledState)

    def test_past_due(self):
        subscription = _subscription(SubscriptionStatus.PAST_DUE)
        assert isinstance(SubscriptionStateFactory.make(subscription, NOW), PastDueState)

    @pytest.mark.parametrize("status", [SubscriptionStatus.INCOMPLETE, SubscriptionStatus.INCOMPLETE_EXPIRED])
    def test_incomplete(self, status):
        assert isinstance(SubscriptionStateFactory.make(_subscription(status), NOW), IncompleteState)

    def test_free_subscription(self):
        subscription = _subscription(stripe_id=f"free_{uuid.uuid4()}")
        assert isinstance(SubscriptionStateFactory.make(subscription, NOW), FreeState)

    def test_active(self):
        assert isinstance(SubscriptionStateFactory.make(_subscription(), NOW), ActiveState)

    def test_trial_past_its_end_is_active(self):
        subscription = _subscription(SubscriptionStatus.TRIALING, trial_ends_at=NOW - timedelta(hours=1))
        assert isinstance(SubscriptionStateFactory.make(subscription, NOW), ActiveState)


class TestCapabilities:
    def test_active_allows_everything_but_resume(self):
        state = ActiveState(_subscription(), NOW)
        assert (state.can_upgrade(), state.can_downgrade(), state.can_cancel(), state.can_resume()) == (
            True, True, True, False
        )
        assert "change_billing_cycle" in state.allowed_actions()

    def test_trialing_cannot_downgrade(self):
        state = TrialingState(_subscription(trial_ends_at=NOW + timedelta(days=2)), NOW)
        assert state.can_upgrade() is True
        assert state.can_downgrade() is False
        assert state.can_cancel() is True

    def test_past_due_only_cancels(self):
        state = PastDueState(_subscription(SubscriptionStatus.PAST_DUE), NOW)
        assert state.can_upgrade() is False
        assert state.can_downgrade() is False
        assert state.can_cancel() is True
        assert state.allowed_actions() == ["update_payment_method", "cancel"]

    def test_free_cannot_downgrade(self):
        state = FreeState(_subscription(stripe_id="free_x"), NOW)
        assert state.can_downgrade() is False
        assert state.can_upgrade() is True

    def test_canceled_resumes_only_during_grace_period(self):
        in_grace = CanceledState(_subscription(ends_at=NOW + timedelta(days=1)), NOW)
        ended = CanceledState(_subscription(ends_at=NOW - timedelta(days=1)), NOW)

        assert in_grace.can_resume() is True
        assert in_grace.allowed_actions() == ["resume"]
        assert ended.can_resume() is False
        assert ended.allowed_actions() == ["resubscribe"]
        assert ended.can_upgrade() is False


    def test_incomplete_needs_payment_first(self):
        state = IncompleteState(_subscription(SubscriptionStatus.INCOMPLETE), NOW)
        assert state.can_upgrade() is False
        assert state.can_cancel() is True
        assert state.allowed_actions() == ["update_payment_method", "cancel"]

    @pytest.mark.parametrize("state", [
        FreeState(_subscription(stripe_id="free_x"), NOW),
        TrialingState(_subscription(trial_ends_at=NOW + timedelta(days=2)), NOW),
        ActiveState(_subscription(), NOW),
        PastDueState(_subscription(SubscriptionStatus.PAST_DUE), NOW),
        IncompleteState(_subscription(SubscriptionStatus.INCOMPLETE), NOW),
        CanceledState(_subscription(ends_at=NOW + timedelta(days=1)), NOW),
        CanceledState(_subscription(ends_at=NOW - timedelta(days=1)), NOW),
    ], ids=lambda state: state.name)
    def test_actions_match_capabilities(self, state):
        actions = state.allowed_actions()
        assert ("upgrade" in actions) == state.can_upgrade()
        assert ("downgrade" in actions) == state.can_downgrade()
        assert ("cancel" in actions) == state.can_cancel()
        assert ("resume" in actions) == state.can_resume()


class TestDescriptions:
    def test_trial_days_round_up(self):
        state = TrialingState(_subscription(trial_ends_at=NOW + timedelta(days=2, hours=1)), NOW)
        assert state.description() == "Trial ends in 3 days"

    def test_trial_single_day(self):
        state = TrialingState(_subscription(trial_ends_at=NOW + timedelta(hours=5)), NOW)
        assert state.description() == "Trial ends in 1 day"

    def test_canceled_countdown(self):
        state = CanceledState(_subscription(ends_at=NOW + timedelta(days=4)), NOW)
        assert state.description() == "Subscription ends in 4 days"

    def test_canceled_ended(self):
        state = CanceledState(_subscription(ends_at=NOW - timedelta(minutes=1)), NOW)
        assert state.description() == "Subscription has ended"

    def test_to_dict(self):
        data = ActiveState(_subscription(), NOW).to_dict()
        assert data["name"] == "active"
        assert data["display_name"] == "Active"
        assert data["can_cancel"] is True


def test_days_until_never_negative():
    assert days_until(NOW - timedelta(days=3), NOW) == 0
    assert days_until(None, NOW) == 0
    assert days_until(NOW + timedelta(days=14), NOW) == 14
