"""
Schemas for API responses and requests
"""

from salonbook.schemas.subscription import (
    SubscriptionCreate,
    PlanChangeRequest,
    BillingCycleChange,
    SubscriptionResponse,
    SubscriptionContextResponse,
)
from salonbook.schemas.plan import PlanCreate, PlanUpdate, PlanResponse
from salonbook.schemas.working_hours import WorkingHoursEntry, WeeklySchedule, ReorderRequest

__all__ = [
    "SubscriptionCreate",
    "PlanChangeRequest",
    "BillingCycleChange",
    "SubscriptionResponse",
    "SubscriptionContextResponse",
    "PlanCreate",
    "PlanUpdate",
    "PlanResponse",
    "WorkingHoursEntry",
    "WeeklySchedule",
    "ReorderRequest",
]
