"""
Pydantic schemas for subscriptions
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from datetime import datetime
import uuid

from salonbook.models.subscription import BillingCycle, SubscriptionStatus


class SubscriptionCreate(BaseModel):
    """Request to subscribe a tenant to a plan"""
    plan_id: uuid.UUID
    billing_cycle: BillingCycle = Field(default=BillingCycle.MONTHLY)
    payment_method_id: Optional[str] = Field(default=None, max_length=255)
    start_trial: bool = False


class PlanChangeRequest(BaseModel):
    """Upgrade or downgrade request"""
    plan_id: uuid.UUID
    subscription_id: Optional[uuid.UUID] = None
    billing_cycle: Optional[BillingCycle] = None
    payment_method_id: Optional[str] = Field(default=None, max_length=255)


class BillingCycleChange(BaseModel):
    billing_cycle: BillingCycle


class SubscriptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    plan_id: uuid.UUID
    stripe_status: SubscriptionStatus
    billing_cycle: BillingCycle
    trial_ends_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    scheduled_plan_id: Optional[uuid.UUID] = None
    scheduled_change_at: Optional[datetime] = None
    created_at: datetime


class SubscriptionContextResponse(BaseModel):
    """Everything the billing page needs in one call"""
    plan: Dict[str, Any]
    subscription: Optional[SubscriptionResponse] = None
    state: Dict[str, Any]
    on_trial: bool
    trial_days_remaining: int
    pending_change: Optional[Dict[str, Any]] = None
    upgrade_options: List[Dict[str, Any]]
    downgrade_options: List[Dict[str, Any]]
    usage: Dict[str, Any]
