"""
Plan administration
"""

from datetime import datetime
import uuid
import structlog

from sqlmodel import Session

from salonbook.core.database import transaction
from salonbook.core.exceptions import PlanHasActiveSubscribers, PlanNotFound
from salonbook.core.tenancy import TenantScope
from salonbook.models.plan import Plan
from salonbook.repositories.plan_repository import PlanRepository
from salonbook.repositories.subscription_repository import SubscriptionRepository
from salonbook.schemas.plan import PlanCreate, PlanUpdate

logger = structlog.get_logger(__name__)


class PlanAdminService:
    """Platform-admin operations on the plan catalog"""

    def __init__(self, session: Session):
        self.session = session
        self.plans = PlanRepository(session)

    def _get(self, plan_id: uuid.UUID) -> Plan:
        plan = self.plans.get(plan_id)
        if plan is None:
            raise PlanNotFound(plan_id)
        return plan

    def get_subscriber_count(self, plan_id: uuid.UUID) -> int:
        # Counts across every tenant
        scope = TenantScope().unscoped(reason=f"plan subscriber count {plan_id}")
        return SubscriptionRepository(self.session, scope).count_active_subscribers(plan_id)

    def create_plan(self, data: PlanCreate) -> Plan:
        plan = Plan(**data.model_dump())
        with transaction(self.session):
            self.session.add(plan)
        self.session.refresh(plan)
        logger.info(f"Plan created: {plan.slug}")
        return plan

    def update_plan(self, plan_id: uuid.UUID, data: PlanUpdate) -> Plan:
        plan = self._get(plan_id)
        with transaction(self.session):
            for field, value in data.model_dump(exclude_unset=True).items():
                setattr(plan, field, value)
            plan.updated_at = datetime.utcnow()
            self.session.add(plan)
        self.session.refresh(plan)
        logger.info(f"Plan updated: {plan.slug}")
        return plan

    def deactivate_plan(self, plan_id: uuid.UUID) -> Plan:
        """Hide a plan from sale. Refused while tenants are still on it."""
        plan = self._get(plan_id)
        subscribers = self.get_subscriber_count(plan.id)
        if subscribers > 0:
            raise PlanHasActiveSubscribers(subscribers)

        with transaction(self.session):
            plan.is_active = False
            plan.updated_at = datetime.utcnow()
            self.session.add(plan)
        self.session.refresh(plan)
        logger.info(f"Plan deactivated: {plan.slug}")
        return plan
