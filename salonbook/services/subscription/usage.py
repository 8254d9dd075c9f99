"""
Usage limits

UsageValidationService compares a tenant's resource counts with a plan's
limits. UsageLimitService answers the same questions for the tenant's
current plan and keeps the monthly reservation counter.
"""

from typing import Any, Dict, Optional, Type
import structlog

from sqlmodel import Session, SQLModel

from salonbook.core.config import Settings, get_settings
from salonbook.core.exceptions import ResourceLimitReached
from salonbook.core.tenancy import TenantScope
from salonbook.models.client import Client
from salonbook.models.entitlements import UsageResource
from salonbook.models.plan import Plan, UNLIMITED
from salonbook.models.service import Service
from salonbook.models.staff import StaffProfile
from salonbook.models.tenant import Tenant
from salonbook.models.usage_record import UsageRecord
from salonbook.models.user import User
from salonbook.repositories.base import TenantScopedRepository
from salonbook.repositories.usage_record_repository import UsageRecordRepository
from salonbook.services.subscription.subscription_service import SubscriptionService

logger = structlog.get_logger(__name__)

_COUNTED_MODELS: Dict[UsageResource, Type[SQLModel]] = {
    UsageResource.USERS: User,
    UsageResource.STAFF: StaffProfile,
    UsageResource.SERVICES: Service,
    UsageResource.CLIENTS: Client,
}


class UsageValidationService:
    def __init__(self, session: Session, settings: Optional[Settings] = None):
        self.session = session
        self.settings = settings or get_settings()

    def get_limit(self, plan: Plan, resource: UsageResource) -> int:
        key = resource.plan_limit_key
        default = self.settings.SUBSCRIPTION_DEFAULT_LIMITS.get(key, 0)
        return plan.get_limit(key, default)

    def count(self, tenant: Tenant, resource: UsageResource) -> int:
        """Current count of a resource for the tenant"""
        scope = TenantScope().for_tenant(tenant.id)
        if resource == UsageResource.RESERVATIONS:
            return UsageRecordRepository(self.session, scope).get_current_usage(tenant.id)

        model = _COUNTED_MODELS[resource]
        repository = TenantScopedRepository(self.session, scope, model)
        if hasattr(model, "is_active"):
            return repository.count(model.is_active == True)  # noqa: E712
        return repository.count()

    def check_limit_violations(self, tenant: Tenant, plan: Plan) -> Dict[str, Dict[str, int]]:
        """{resource: {"current", "limit"}} for every resource over the plan's limit"""
        violations: Dict[str, Dict[str, int]] = {}
        for resource in UsageResource.for_plan_validation():
            limit = self.get_limit(plan, resource)
            if limit == UNLIMITED:
                continue
            current = self.count(tenant, resource)
            if current > limit:
                violations[resource.value] = {"current": current, "limit": limit}
        return violations

    def can_add_resource(self, tenant: Tenant, plan: Plan, resource: UsageResource) -> bool:
        limit = self.get_limit(plan, resource)
        if limit == UNLIMITED:
            return True
        return self.count(tenant, resource) < limit

    def get_remaining_capacity(self, tenant: Tenant, plan: Plan, resource: UsageResource) -> Optional[int]:
        """None when unlimited"""
        limit = self.get_limit(plan, resource)
        if limit == UNLIMITED:
            return None
        return max(0, limit - self.count(tenant, resource))


class UsageLimitService:
    """Limits against the tenant's current plan. Callers own the commit."""

    def __init__(
        self,
        session: Session,
        subscriptions: Optional[SubscriptionService] = None,
        validation: Optional[UsageValidationService] = None,
        settings: Optional[Settings] = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.subscriptions = subscriptions or SubscriptionService(session)
        self.validation = validation or UsageValidationService(session, self.settings)

    def _usage(self, tenant: Tenant) -> UsageRecordRepository:
        return UsageRecordRepository(self.session, TenantScope().for_tenant(tenant.id))

    def _current_and_limit(self, tenant: Tenant, resource: UsageResource) -> tuple[int, int]:
        plan = self.subscriptions.get_current_plan(tenant)
        return self.validation.count(tenant, resource), self.validation.get_limit(plan, resource)

    @staticmethod
    def get_usage_percentage(current: int, limit: int) -> float:
        if limit == UNLIMITED:
            return 0.0
        if limit == 0:
            return 100.0
        return min(100.0, round(current / limit * 100, 1))

    def can_use_resource(self, tenant: Tenant, resource: UsageResource) -> bool:
        current, limit = self._current_and_limit(tenant, resource)
        return limit == UNLIMITED or current < limit

    def has_reached_limit(self, tenant: Tenant, resource: UsageResource) -> bool:
        return not self.can_use_resource(tenant, resource)

    def is_near_limit(self, tenant: Tenant, resource: UsageResource) -> bool:
        current, limit = self._current_and_limit(tenant, resource)
        percentage = self.get_usage_percentage(current, limit)
        return self.settings.SUBSCRIPTION_USAGE_WARNING_THRESHOLD * 100 <= percentage < 100

    def authorize(self, tenant: Tenant, resource: UsageResource) -> None:
        """Raise ResourceLimitReached when one more resource would not fit"""
        current, limit = self._current_and_limit(tenant, resource)
        if limit != UNLIMITED and current >= limit:
            raise ResourceLimitReached(resource.value, limit)

    def get_usage_stats(self, tenant: Tenant) -> Dict[str, Dict[str, Any]]:
        stats: Dict[str, Dict[str, Any]] = {}
        for resource in UsageResource:
            current, limit = self._current_and_limit(tenant, resource)
            stats[resource.value] = {
                "current": current,
                "limit": "unlimited" if limit == UNLIMITED else limit,
                "percentage": self.get_usage_percentage(current, limit),
            }
        return stats

    def record_reservation_created(self, tenant: Tenant) -> UsageRecord:
        plan = self.subscriptions.get_current_plan(tenant)
        repository = self._usage(tenant)
        record = repository.find_or_create_for_period(tenant.id, plan)
        return repository.increment_reservations(record)

    def record_reservation_deleted(self, tenant: Tenant) -> Optional[UsageRecord]:
        repository = self._usage(tenant)
        record = repository.find_for_period(tenant.id, UsageRecord.period_for())
        if record is None:
            return None
        return repository.decrement_reservations(record)
