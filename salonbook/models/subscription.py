"""
Subscription model linking a tenant to a plan and its billing state
"""

from sqlmodel import Field, SQLModel, Relationship
from datetime import datetime
from typing import Optional, TYPE_CHECKING
from enum import Enum
import uuid

if TYPE_CHECKING:
    from salonbook.models.plan import Plan
    from salonbook.models.tenant import Tenant

FREE_SUBSCRIPTION_PREFIX = "free_"


class SubscriptionStatus(str, Enum):
    """Processor subscription statuses"""
    ACTIVE = "active"
    TRIALING = "trialing"
    CANCELED = "canceled"
    PAST_DUE = "past_due"
    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    UNPAID = "unpaid"
    PAUSED = "paused"

    @classmethod
    def active_statuses(cls) -> list["SubscriptionStatus"]:
        return [cls.ACTIVE, cls.TRIALING]

    def is_active(self) -> bool:
        return self in self.active_statuses()


class BillingCycle(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Subscription(SQLModel, table=True):
    """A tenant's subscription. At most one is current (active or trialing)."""

    __tablename__ = "subscriptions"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", index=True, description="Tenant ID for multi-tenant isolation")
    plan_id: uuid.UUID = Field(foreign_key="plans.id", index=True)

    type: str = Field(default="default", max_length=50)
    stripe_id: str = Field(index=True, max_length=255, description="Processor id, free_<tenant_id> for the free tier")
    stripe_status: SubscriptionStatus = Field(default=SubscriptionStatus.ACTIVE, index=True)
    stripe_price: Optional[str] = Field(default=None, max_length=255)
    billing_cycle: BillingCycle = Field(default=BillingCycle.MONTHLY)
    quantity: int = Field(default=1)

    trial_ends_at: Optional[datetime] = Field(default=None)
    ends_at: Optional[datetime] = Field(default=None, index=True)

    # Downgrade scheduled for the end of the billing period
    scheduled_plan_id: Optional[uuid.UUID] = Field(default=None, foreign_key="plans.id", nullable=True)
    scheduled_change_at: Optional[datetime] = Field(default=None, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    # Relationships
    plan: Optional["Plan"] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "Subscription.plan_id", "lazy": "selectin"}
    )
    scheduled_plan: Optional["Plan"] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "Subscription.scheduled_plan_id", "lazy": "selectin"}
    )
    tenant: Optional["Tenant"] = Relationship(sa_relationship_kwargs={"lazy": "selectin"})

    def is_free(self) -> bool:
        return self.stripe_id.startswith(FREE_SUBSCRIPTION_PREFIX)

    def is_active(self) -> bool:
        return SubscriptionStatus(self.stripe_status).is_active()

    def on_trial(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.utcnow()
        return self.trial_ends_at is not None and self.trial_ends_at > now

    def canceled(self) -> bool:
        return self.ends_at is not None

    def on_grace_period(self, now: Optional[datetime] = None) -> bool:
        """Canceled but still usable until ends_at"""
        now = now or datetime.utcnow()
        return self.ends_at is not None and self.ends_at > now

    def ended(self, now: Optional[datetime] = None) -> bool:
        return self.canceled() and not self.on_grace_period(now)

    def has_scheduled_change(self) -> bool:
        return self.scheduled_plan_id is not None and self.scheduled_change_at is not None

    def clear_scheduled_change(self) -> None:
        self.scheduled_plan_id = None
        self.scheduled_change_at = None

    def touch(self) -> None:
        self.updated_at = datetime.utcnow()
