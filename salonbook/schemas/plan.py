"""
Pydantic schemas for plans
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional
from decimal import Decimal
import uuid


class PlanCreate(BaseModel):
    slug: str = Field(..., min_length=2, max_length=50, pattern=r"^[a-z0-9_-]+$")
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    monthly_price: Decimal = Field(default=Decimal("0.00"), ge=0)
    yearly_price: Decimal = Field(default=Decimal("0.00"), ge=0)
    stripe_monthly_price_id: Optional[str] = None
    stripe_yearly_price_id: Optional[str] = None
    features: Dict[str, Any] = Field(default_factory=dict)
    limits: Dict[str, int] = Field(default_factory=dict)
    is_public: bool = True
    sort_order: int = 0


class PlanUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    monthly_price: Optional[Decimal] = Field(default=None, ge=0)
    yearly_price: Optional[Decimal] = Field(default=None, ge=0)
    stripe_monthly_price_id: Optional[str] = None
    stripe_yearly_price_id: Optional[str] = None
    features: Optional[Dict[str, Any]] = None
    limits: Optional[Dict[str, int]] = None
    is_public: Optional[bool] = None
    sort_order: Optional[int] = None


class PlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    slug: str
    name: str
    description: Optional[str] = None
    monthly_price: Decimal
    yearly_price: Decimal
    features: Dict[str, Any]
    limits: Dict[str, int]
    is_active: bool
    is_public: bool
    sort_order: int
