"""
Tests for the plan-change validation chains
"""

import uuid

import pytest

from conftest import add_staff, make_subscription
from salonbook.core.exceptions import (
    CannotDowngrade,
    CannotUpgrade,
    PlanNotFound,
    SubscriptionNotFound,
    UsageExceedsLimits,
)
from salonbook.services.subscription import (
    SubscriptionService,
    UsageValidationService,
    ValidationChain,
    ValidationContext,
    build_downgrade_chain,
    build_upgrade_chain,
)
from salonbook.services.subscription.validation import SubscriptionValidator


@pytest.fixture
def upgrade_chain(db):
    return build_upgrade_chain(SubscriptionService(db))


@pytest.fixture
def downgrade_chain(db):
    return build_downgrade_chain(SubscriptionService(db), UsageValidationService(db))


class TestChainOrdering:
    """The first failing validator wins"""

    def test_missing_subscription_reported_before_missing_plan(self, upgrade_chain):
        subscription_id = uuid.uuid4()
        context = ValidationContext.for_upgrade(None, None, subscription_id=subscription_id, plan_id=uuid.uuid4())

        with pytest.raises(SubscriptionNotFound) as exc_info:
            upgrade_chain.validate(context)

        assert exc_info.value.subscription_id == subscription_id

    def test_missing_plan(self, db, plans, tenant, upgrade_chain):
        subscription = make_subscription(db, tenant, plans["easy"])
        plan_id = uuid.uuid4()

        with pytest.raises(PlanNotFound) as exc_info:
            upgrade_chain.validate(ValidationContext.for_upgrade(subscription, None, plan_id=plan_id))

        assert exc_info.value.plan_id == plan_id

    def test_validators_after_failure_are_not_run(self):
        calls = []

        class Recording(SubscriptionValidator):
            def __init__(self, name, fail=False):
                self.name = name
                self.fail = fail

            def validate(self, context):
                calls.append(self.name)
                if self.fail:
                    raise SubscriptionNotFound()

        chain = ValidationChain([Recording("first"), Recording("second", fail=True), Recording("third")])

        with pytest.raises(SubscriptionNotFound):
            chain.validate(ValidationContext())

        assert calls == ["first", "second"]
        assert len(chain) == 3


class TestUpgradeChain:
    def test_higher_plan_passes(self, db, plans, tenant, upgrade_chain):
        subscription = make_subscription(db, tenant, plans["easy"])
        context = ValidationContext.for_upgrade(subscription, plans["premium"])

        upgrade_chain.validate(context)

        assert context.plan.slug == "premium"
        assert context.tenant.id == tenant.id

    def test_lower_plan_refused(self, db, plans, tenant, upgrade_chain):
        subscription = make_subscription(db, tenant, plans["standard"])

        with pytest.raises(CannotUpgrade) as exc_info:
            upgrade_chain.validate(ValidationContext.for_upgrade(subscription, plans["easy"]))

        assert exc_info.value.details == {"from": "standard", "to": "easy"}

    def test_same_plan_refused(self, db, plans, tenant, upgrade_chain):
        subscription = make_subscription(db, tenant, plans["smart"])

        with pytest.raises(CannotUpgrade):
            upgrade_chain.validate(ValidationContext.for_upgrade(subscription, plans["smart"]))


class TestDowngradeChain:
    def test_higher_plan_refused(self, db, plans, tenant, downgrade_chain):
        subscription = make_subscription(db, tenant, plans["easy"])

        with pytest.raises(CannotDowngrade):
            downgrade_chain.validate(ValidationContext.for_downgrade(subscription, plans["smart"]))

    def test_usage_over_target_limits(self, db, plans, tenant, downgrade_chain):
        """15 active staff cannot move to a plan allowing 5"""
        subscription = make_subscription(db, tenant, plans["standard"])
        add_staff(db, tenant, 15)

        with pytest.raises(UsageExceedsLimits) as exc_info:
            downgrade_chain.validate(ValidationContext.for_downgrade(subscription, plans["smart"]))

        assert exc_info.value.violations == {"staff": {"current": 15, "limit": 5}}
        assert exc_info.value.status_code == 422
        assert "staff: 15 (limit: 5)" in exc_info.value.message

    def test_usage_within_limits_passes(self, db, plans, tenant, downgrade_chain):
        subscription = make_subscription(db, tenant, plans["standard"])
        add_staff(db, tenant, 5)

        downgrade_chain.validate(ValidationContext.for_downgrade(subscription, plans["smart"]))

    def test_other_tenants_staff_not_counted(self, db, plans, tenant, other_tenant, downgrade_chain):
        subscription = make_subscription(db, tenant, plans["standard"])
        add_staff(db, other_tenant, 20)

        downgrade_chain.validate(ValidationContext.for_downgrade(subscription, plans["easy"]))
