"""
Plan-change validation pipeline

Validators are independent rules. A ValidationChain runs an ordered list
of them and stops at the first failure, so a context with neither a
subscription nor a plan only ever reports the missing subscription.
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence, TYPE_CHECKING
import structlog

from salonbook.core.exceptions import (
    CannotDowngrade,
    CannotUpgrade,
    PlanNotFound,
    SubscriptionNotFound,
    UsageExceedsLimits,
)
from salonbook.models.plan import Plan
from salonbook.models.subscription import Subscription
from salonbook.models.tenant import Tenant

if TYPE_CHECKING:
    from salonbook.services.subscription.subscription_service import SubscriptionService
    from salonbook.services.subscription.usage import UsageValidationService

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ValidationContext:
    """Inputs for one validation run. Never persisted."""
    subscription: Optional[Subscription] = None
    plan: Optional[Plan] = None
    tenant: Optional[Tenant] = None
    subscription_id: Optional[Any] = None
    plan_id: Optional[Any] = None

    @classmethod
    def for_upgrade(
        cls,
        subscription: Optional[Subscription],
        plan: Optional[Plan],
        subscription_id: Optional[Any] = None,
        plan_id: Optional[Any] = None,
    ) -> "ValidationContext":
        return cls(
            subscription=subscription,
            plan=plan,
            tenant=subscription.tenant if subscription is not None else None,
            subscription_id=subscription_id if subscription_id is not None else getattr(subscription, "id", None),
            plan_id=plan_id if plan_id is not None else getattr(plan, "id", None),
        )

    @classmethod
    def for_downgrade(
        cls,
        subscription: Optional[Subscription],
        plan: Optional[Plan],
        subscription_id: Optional[Any] = None,
        plan_id: Optional[Any] = None,
    ) -> "ValidationContext":
        return cls.for_upgrade(subscription, plan, subscription_id, plan_id)


class SubscriptionValidator:
    """A single rule. Raises a SubscriptionError when violated."""

    def validate(self, context: ValidationContext) -> None:
        raise NotImplementedError


class SubscriptionExistsValidator(SubscriptionValidator):
    def validate(self, context: ValidationContext) -> None:
        if context.subscription is None:
            raise SubscriptionNotFound(context.subscription_id or 0)


class PlanExistsValidator(SubscriptionValidator):
    def validate(self, context: ValidationContext) -> None:
        if context.plan is None:
            raise PlanNotFound(context.plan_id or 0)


class _PlanRankValidator(SubscriptionValidator):
    def __init__(self, subscriptions: "SubscriptionService"):
        self.subscriptions = subscriptions

    def _current_plan(self, context: ValidationContext) -> Plan:
        return context.subscription.plan or self.subscriptions.get_current_plan(context.tenant)


class CanUpgradeValidator(_PlanRankValidator):
    def validate(self, context: ValidationContext) -> None:
        if context.tenant is None or context.plan is None or context.subscription is None:
            return
        if not self.subscriptions.can_upgrade_to(context.tenant, context.plan):
            raise CannotUpgrade(self._current_plan(context), context.plan)


class CanDowngradeValidator(_PlanRankValidator):
    def validate(self, context: ValidationContext) -> None:
        if context.tenant is None or context.plan is None or context.subscription is None:
            return
        if not self.subscriptions.can_downgrade_to(context.tenant, context.plan):
            raise CannotDowngrade(self._current_plan(context), context.plan)


class UsageLimitsValidator(SubscriptionValidator):
    """Refuse a plan whose limits the tenant already exceeds"""

    def __init__(self, usage: "UsageValidationService"):
        self.usage = usage

    def validate(self, context: ValidationContext) -> None:
        if context.tenant is None or context.plan is None:
            return
        violations = self.usage.check_limit_violations(context.tenant, context.plan)
        if violations:
            logger.info(
                f"Plan change blocked by usage for tenant {context.tenant.id}",
                plan=context.plan.slug,
                violations=violations,
            )
            raise UsageExceedsLimits(violations)


class ValidationChain:
    """Runs validators in order; the first failure propagates"""

    def __init__(self, validators: Sequence[SubscriptionValidator]):
        self.validators = list(validators)

    def validate(self, context: ValidationContext) -> None:
        for validator in self.validators:
            validator.validate(context)

    def __len__(self) -> int:
        return len(self.validators)


def build_upgrade_chain(subscriptions: "SubscriptionService") -> ValidationChain:
    return ValidationChain([
        SubscriptionExistsValidator(),
        PlanExistsValidator(),
        CanUpgradeValidator(subscriptions),
    ])


def build_downgrade_chain(
    subscriptions: "SubscriptionService",
    usage: "UsageValidationService",
) -> ValidationChain:
    return ValidationChain([
        SubscriptionExistsValidator(),
        PlanExistsValidator(),
        CanDowngradeValidator(subscriptions),
        UsageLimitsValidator(usage),
    ])
