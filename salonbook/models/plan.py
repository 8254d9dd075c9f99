"""
Plan model - pricing tiers with feature and limit entitlements
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import Column, JSON, Numeric
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from enum import Enum
import uuid

UNLIMITED = -1


class PlanSlug(str, Enum):
    """Known plan tiers, lowest first"""
    FREE = "free"
    EASY = "easy"
    SMART = "smart"
    STANDARD = "standard"
    PREMIUM = "premium"


class Plan(SQLModel, table=True):
    """Pricing plan. Plans are ranked by sort_order; free is the lowest tier."""

    __tablename__ = "plans"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    slug: str = Field(unique=True, index=True, max_length=50)
    name: str = Field(max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)

    # Pricing
    monthly_price: Decimal = Field(default=Decimal("0.00"), sa_column=Column(Numeric(10, 2)))
    yearly_price: Decimal = Field(default=Decimal("0.00"), sa_column=Column(Numeric(10, 2)))
    stripe_monthly_price_id: Optional[str] = Field(default=None, max_length=255)
    stripe_yearly_price_id: Optional[str] = Field(default=None, max_length=255)

    # Entitlements: feature key -> bool | tier string, resource -> int (-1 = unlimited)
    features: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    limits: Dict[str, int] = Field(default_factory=dict, sa_column=Column(JSON))

    is_active: bool = Field(default=True, index=True)
    is_public: bool = Field(default=True, index=True)
    sort_order: int = Field(default=0, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    def is_free(self) -> bool:
        return self.slug == PlanSlug.FREE.value

    def stripe_price_id_for(self, billing_cycle: str) -> Optional[str]:
        """Resolve the processor price id for a billing cycle"""
        if billing_cycle == "yearly":
            return self.stripe_yearly_price_id
        return self.stripe_monthly_price_id

    def price_for(self, billing_cycle: str) -> Decimal:
        if billing_cycle == "yearly":
            return self.yearly_price
        return self.monthly_price

    def get_limit(self, key: str, default: Optional[int] = None) -> Optional[int]:
        return (self.limits or {}).get(key, default)

    def is_unlimited(self, key: str) -> bool:
        return self.get_limit(key) == UNLIMITED
