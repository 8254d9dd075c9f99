"""
Bookable service model
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import Column, Numeric
from datetime import datetime
from decimal import Decimal
from typing import Optional
import uuid


class Service(SQLModel, table=True):
    """A service clients can book (haircut, massage, ...)"""

    __tablename__ = "services"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", index=True, description="Tenant ID for multi-tenant isolation")

    name: str = Field(max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    duration_minutes: int = Field(default=30, ge=5)
    price: Decimal = Field(default=Decimal("0.00"), sa_column=Column(Numeric(10, 2)))
    is_active: bool = Field(default=True, index=True)
    sort_order: int = Field(default=0)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None
