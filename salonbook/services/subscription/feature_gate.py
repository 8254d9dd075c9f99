"""
Feature gating by plan tier
"""

from typing import Any, Dict, List, Optional
import structlog

from sqlmodel import Session

from salonbook.core.config import Settings, get_settings
from salonbook.models.entitlements import Feature
from salonbook.models.plan import Plan
from salonbook.models.tenant import Tenant
from salonbook.repositories.plan_repository import PlanRepository
from salonbook.services.subscription.subscription_service import SubscriptionService, feature_enabled

logger = structlog.get_logger(__name__)


class FeatureGateService:
    def __init__(
        self,
        session: Session,
        subscriptions: Optional[SubscriptionService] = None,
        settings: Optional[Settings] = None,
    ):
        self.plans = PlanRepository(session)
        self.subscriptions = subscriptions or SubscriptionService(session)
        self.settings = settings or get_settings()

    def get_required_plan(self, feature: Feature) -> Optional[Plan]:
        return self.plans.get_by_slug(feature.minimum_plan.value)

    def plan_allows(self, plan: Plan, feature: Feature) -> bool:
        """An explicit entry in the plan's feature map wins over tier rank"""
        features = plan.features or {}
        if feature.value in features:
            return feature_enabled(features[feature.value])

        required = self.get_required_plan(feature)
        if required is None:
            return False
        return plan.sort_order >= required.sort_order

    def can_access(self, tenant: Tenant, feature: Feature) -> bool:
        allowed = self.plan_allows(self.subscriptions.get_current_plan(tenant), feature)
        if not allowed:
            logger.debug(f"Feature {feature.value} not in plan for tenant {tenant.id}")
        return allowed

    def get_available_features(self, tenant: Tenant) -> List[Feature]:
        plan = self.subscriptions.get_current_plan(tenant)
        return [feature for feature in Feature if self.plan_allows(plan, feature)]

    def build_upgrade_message(self, tenant: Tenant, feature: Feature) -> Dict[str, Any]:
        required = feature.minimum_plan.value
        return {
            "error": "feature_not_available",
            "message": f"This feature requires {required.upper()} plan or higher.",
            "feature": feature.value,
            "feature_label": feature.label,
            "required_plan": required,
            "current_plan": self.subscriptions.get_current_plan(tenant).slug,
            "upgrade_url": self.settings.BILLING_UPGRADE_URL,
        }
