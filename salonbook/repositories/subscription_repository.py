"""
Subscription queries
"""

from datetime import datetime
from typing import List, Optional
import uuid

from sqlmodel import Session

from salonbook.core.tenancy import TenantScope
from salonbook.models.subscription import Subscription, SubscriptionStatus
from salonbook.repositories.base import TenantScopedRepository


class SubscriptionRepository(TenantScopedRepository[Subscription]):
    model = Subscription

    def __init__(self, session: Session, scope: TenantScope):
        super().__init__(session, scope)

    def find_current(self, tenant_id: Optional[uuid.UUID] = None) -> Optional[Subscription]:
        """The tenant's active or trialing subscription, newest first"""
        criteria = [Subscription.stripe_status.in_(SubscriptionStatus.active_statuses())]
        if tenant_id is not None:
            criteria.append(Subscription.tenant_id == tenant_id)
        return self.first(*criteria, order_by=Subscription.created_at.desc())

    def get_by_stripe_id(self, stripe_id: str) -> Optional[Subscription]:
        return self.first(Subscription.stripe_id == stripe_id)

    def find_due_scheduled_changes(self, now: datetime, limit: Optional[int] = None) -> List[Subscription]:
        statement = self.select(
            Subscription.scheduled_plan_id != None,  # noqa: E711
            Subscription.scheduled_change_at <= now,
        ).order_by(Subscription.scheduled_change_at)
        if limit:
            statement = statement.limit(limit)
        return list(self.session.exec(statement).all())

    def find_expired_trials(self, now: datetime, limit: Optional[int] = None) -> List[Subscription]:
        statement = self.select(
            Subscription.stripe_status == SubscriptionStatus.TRIALING,
            Subscription.trial_ends_at != None,  # noqa: E711
            Subscription.trial_ends_at <= now,
        ).order_by(Subscription.trial_ends_at)
        if limit:
            statement = statement.limit(limit)
        return list(self.session.exec(statement).all())

    def find_expired_cancellations(self, now: datetime, limit: Optional[int] = None) -> List[Subscription]:
        statement = self.select(
            Subscription.stripe_status.in_(SubscriptionStatus.active_statuses()),
            Subscription.ends_at != None,  # noqa: E711
            Subscription.ends_at <= now,
        ).order_by(Subscription.ends_at)
        if limit:
            statement = statement.limit(limit)
        return list(self.session.exec(statement).all())

    def count_active_subscribers(self, plan_id: uuid.UUID) -> int:
        """Active subscriptions on a plan that are not winding down"""
        return self.count(
            Subscription.plan_id == plan_id,
            Subscription.stripe_status.in_(SubscriptionStatus.active_statuses()),
            Subscription.ends_at == None,  # noqa: E711
        )
