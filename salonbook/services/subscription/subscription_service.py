"""
Plan eligibility and entitlement queries for a tenant
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
import structlog

from sqlmodel import Session

from salonbook.core.tenancy import TenantScope
from salonbook.models.plan import Plan, UNLIMITED
from salonbook.models.subscription import Subscription, SubscriptionStatus
from salonbook.models.tenant import Tenant
from salonbook.repositories.plan_repository import PlanRepository
from salonbook.repositories.subscription_repository import SubscriptionRepository
from salonbook.services.subscription.states import days_until

logger = structlog.get_logger(__name__)


def feature_enabled(value: Any) -> bool:
    """Interpret a Plan.features entry: bool flag or tier string ("none" = off)"""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value != "none"
    if isinstance(value, (int, float)):
        return value != 0
    return False


class SubscriptionService:
    """Read-side queries over a tenant's subscription and plan"""

    def __init__(self, session: Session):
        self.session = session
        self.plans = PlanRepository(session)

    def _subscriptions(self, tenant: Tenant) -> SubscriptionRepository:
        return SubscriptionRepository(self.session, TenantScope().for_tenant(tenant.id))

    def get_current_subscription(self, tenant: Tenant) -> Optional[Subscription]:
        return self._subscriptions(tenant).find_current(tenant.id)

    def get_latest_subscription(self, tenant: Tenant) -> Optional[Subscription]:
        """Most recent subscription of any status"""
        return self._subscriptions(tenant).first(order_by=Subscription.created_at.desc())

    def get_current_plan(self, tenant: Tenant) -> Plan:
        """The active subscription's plan, falling back to the free plan"""
        subscription = self.get_current_subscription(tenant)
        if subscription is not None and subscription.plan is not None:
            return subscription.plan

        free_plan = self.plans.get_free_plan()
        if free_plan is None:
            raise RuntimeError("No free plan configured")
        return free_plan

    # ------------------------------------------------------------------
    # Entitlements
    # ------------------------------------------------------------------

    def get_feature_value(self, tenant: Tenant, feature_key: str) -> Any:
        return (self.get_current_plan(tenant).features or {}).get(feature_key)

    def has_feature(self, tenant: Tenant, feature_key: str) -> bool:
        return feature_enabled(self.get_feature_value(tenant, feature_key))

    def get_limit(self, tenant: Tenant, limit_key: str) -> int:
        return (self.get_current_plan(tenant).limits or {}).get(limit_key, 0)

    def is_unlimited(self, tenant: Tenant, limit_key: str) -> bool:
        return self.get_limit(tenant, limit_key) == UNLIMITED

    # ------------------------------------------------------------------
    # Trials
    # ------------------------------------------------------------------

    def is_on_trial(self, tenant: Tenant, now: Optional[datetime] = None) -> bool:
        subscription = self.get_current_subscription(tenant)
        if subscription is None:
            return False
        return (
            SubscriptionStatus(subscription.stripe_status) == SubscriptionStatus.TRIALING
            and subscription.on_trial(now)
        )

    def get_trial_days_remaining(self, tenant: Tenant, now: Optional[datetime] = None) -> int:
        if not self.is_on_trial(tenant, now):
            return 0
        return days_until(self.get_current_subscription(tenant).trial_ends_at, now)

    # ------------------------------------------------------------------
    # Plan ranking
    # ------------------------------------------------------------------

    def can_upgrade_to(self, tenant: Tenant, plan: Plan) -> bool:
        return plan.sort_order > self.get_current_plan(tenant).sort_order

    def can_downgrade_to(self, tenant: Tenant, plan: Plan) -> bool:
        return plan.sort_order < self.get_current_plan(tenant).sort_order

    def get_upgrade_options(self, tenant: Tenant) -> List[Plan]:
        current = self.get_current_plan(tenant)
        return [plan for plan in self.plans.list_public() if plan.sort_order > current.sort_order]

    def get_downgrade_options(self, tenant: Tenant) -> List[Plan]:
        current = self.get_current_plan(tenant)
        return [plan for plan in self.plans.list_public() if plan.sort_order < current.sort_order]

    # ------------------------------------------------------------------
    # Pending changes
    # ------------------------------------------------------------------

    def has_pending_change(self, tenant: Tenant, now: Optional[datetime] = None) -> bool:
        return self.get_pending_change(tenant, now) is not None

    def get_pending_change(self, tenant: Tenant, now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
        """Cancellation in its grace period, or a scheduled downgrade"""
        subscription = self.get_current_subscription(tenant)
        if subscription is None:
            return None

        if subscription.on_grace_period(now):
            return {
                "type": "cancellation",
                "plan": self.plans.get_free_plan(),
                "date": subscription.ends_at,
            }

        if subscription.has_scheduled_change():
            return {
                "type": "downgrade",
                "plan": subscription.scheduled_plan or self.plans.get(subscription.scheduled_plan_id),
                "date": subscription.scheduled_change_at,
            }

        return None
