"""
Tenant model - Multi-tenancy foundation
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import Column, JSON
from datetime import datetime
from typing import Any, Dict, Optional
from enum import Enum
import uuid


class BusinessType(str, Enum):
    """Kind of business running the booking page"""
    HAIR_BEAUTY = "hair_beauty"
    SPA_WELLNESS = "spa_wellness"
    OTHER = "other"


class TenantStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"


class Tenant(SQLModel, table=True):
    """Tenant (business account). Never hard-deleted."""

    __tablename__ = "tenants"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(index=True, max_length=255)
    slug: str = Field(unique=True, index=True, max_length=255, description="Public booking URL identifier")
    business_type: BusinessType = Field(default=BusinessType.HAIR_BEAUTY)

    # Contact
    address: Optional[str] = Field(default=None, max_length=500)
    phone: Optional[str] = Field(default=None, max_length=50)
    country: Optional[str] = Field(default=None, max_length=2)
    timezone: str = Field(default="UTC", max_length=64)

    # Billing customer
    stripe_customer_id: Optional[str] = Field(default=None, index=True, max_length=255)
    pm_type: Optional[str] = Field(default=None, max_length=50, description="Default payment method brand")
    pm_last_four: Optional[str] = Field(default=None, max_length=4)

    settings: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))

    # Reservation policy set by the business; None means not configured
    reservation_lead_time_hours: Optional[int] = Field(default=None)
    reservation_max_days_in_advance: Optional[int] = Field(default=None)
    reservation_slot_interval_minutes: Optional[int] = Field(default=None)

    status: TenantStatus = Field(default=TenantStatus.ACTIVE, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    def has_billing_customer(self) -> bool:
        return bool(self.stripe_customer_id)

    def is_suspended(self) -> bool:
        return self.status == TenantStatus.SUSPENDED
