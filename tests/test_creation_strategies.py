"""
Tests for free and paid subscription creation
"""

from datetime import datetime, timedelta

import pytest
from sqlmodel import select

from salonbook.core.exceptions import BillingGatewayError, StripeConfigurationError
from salonbook.models import Subscription
from salonbook.models.subscription import BillingCycle, SubscriptionStatus
from salonbook.schemas.subscription import SubscriptionCreate
from salonbook.services.subscription import (
    FreeSubscriptionStrategy,
    PaidSubscriptionStrategy,
    SubscriptionStrategyResolver,
)


@pytest.fixture
def resolver(db, gateway, events):
    return SubscriptionStrategyResolver.default(db, gateway, events)


class TestResolver:
    def test_free_plan_uses_free_strategy(self, resolver, plans):
        assert isinstance(resolver.resolve(plans["free"]), FreeSubscriptionStrategy)

    @pytest.mark.parametrize("slug", ["easy", "smart", "standard", "premium"])
    def test_paid_plans_use_paid_strategy(self, resolver, plans, slug):
        assert isinstance(resolver.resolve(plans[slug]), PaidSubscriptionStrategy)

    def test_no_strategy(self, db, plans):
        resolver = SubscriptionStrategyResolver([FreeSubscriptionStrategy(db)])

        with pytest.raises(RuntimeError, match="No strategy found for plan: smart"):
            resolver.resolve(plans["smart"])


class TestFreeStrategy:
    def test_creates_local_subscription_only(self, db, plans, tenant, gateway):
        data = SubscriptionCreate(plan_id=plans["free"].id, start_trial=True)

        subscription = FreeSubscriptionStrategy(db).create(data, tenant, plans["free"])

        assert subscription.stripe_id == f"free_{tenant.id}"
        assert subscription.stripe_status == SubscriptionStatus.ACTIVE
        assert subscription.trial_ends_at is None
        assert subscription.stripe_price is None
        assert gateway.calls == []


class TestPaidStrategy:
    def test_creates_customer_and_subscription(self, db, plans, tenant, owner, gateway, events):
        data = SubscriptionCreate(plan_id=plans["smart"].id, billing_cycle=BillingCycle.YEARLY)

        subscription = PaidSubscriptionStrategy(db, gateway, events).create(data, tenant, plans["smart"])

        assert gateway.operations() == ["create_customer", "create_subscription"]
        assert subscription.stripe_id == "sub_test_1"
        assert subscription.stripe_price == "price_smart_yearly"
        assert subscription.billing_cycle == BillingCycle.YEARLY
        assert subscription.trial_ends_at is None
        db.refresh(tenant)
        assert tenant.stripe_customer_id == "cus_test_1"
        assert gateway.calls[0][1] == (tenant.id, "owner@aurora.test")

    def test_reuses_existing_customer(self, db, plans, tenant, gateway, events):
        tenant.stripe_customer_id = "cus_existing"
        db.add(tenant)
        db.commit()

        PaidSubscriptionStrategy(db, gateway, events).create(
            SubscriptionCreate(plan_id=plans["easy"].id), tenant, plans["easy"]
        )

        assert gateway.operations() == ["create_subscription"]
        assert gateway.calls[0][1][0] == "cus_existing"

    def test_trial(self, db, plans, tenant, owner, gateway, events):
        before = datetime.utcnow()
        data = SubscriptionCreate(plan_id=plans["easy"].id, start_trial=True)

        subscription = PaidSubscriptionStrategy(db, gateway, events).create(data, tenant, plans["easy"])

        assert subscription.stripe_status == SubscriptionStatus.TRIALING
        expected = before + timedelta(days=14)
        assert abs((subscription.trial_ends_at - expected).total_seconds()) < 60
        assert gateway.calls[-1][1][3] == 14
        assert events.types() == ["TrialStarted"]

    def test_trial_without_owner_publishes_nothing(self, db, plans, tenant, gateway, events):
        data = SubscriptionCreate(plan_id=plans["easy"].id, start_trial=True)

        PaidSubscriptionStrategy(db, gateway, events).create(data, tenant, plans["easy"])

        assert events.published == []

    def test_payment_method_attached(self, db, plans, tenant, gateway, events):
        data = SubscriptionCreate(plan_id=plans["easy"].id, payment_method_id="pm_card_visa")

        PaidSubscriptionStrategy(db, gateway, events).create(data, tenant, plans["easy"])

        assert gateway.operations() == [
            "create_customer",
            "attach_payment_method",
            "set_default_payment_method",
            "get_payment_method",
            "create_subscription",
        ]
        db.refresh(tenant)
        assert (tenant.pm_type, tenant.pm_last_four) == ("visa", "4242")

    def test_gateway_failure_leaves_nothing_behind(self, db, plans, tenant, gateway, events):
        gateway.fail_on.add("create_subscription")
        data = SubscriptionCreate(plan_id=plans["smart"].id)

        with pytest.raises(BillingGatewayError):
            PaidSubscriptionStrategy(db, gateway, events).create(data, tenant, plans["smart"])

        assert db.exec(select(Subscription)).all() == []
        db.refresh(tenant)
        assert tenant.stripe_customer_id is None

    def test_missing_price_id(self, db, plans, tenant, gateway, events):
        plan = plans["premium"]
        plan.stripe_monthly_price_id = None
        db.add(plan)
        db.commit()

        with pytest.raises(StripeConfigurationError):
            PaidSubscriptionStrategy(db, gateway, events).create(
                SubscriptionCreate(plan_id=plan.id), tenant, plan
            )

        assert "create_subscription" not in gateway.operations()
