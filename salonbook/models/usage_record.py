"""
Monthly usage counters per tenant
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import UniqueConstraint
from datetime import datetime
from typing import Optional
import uuid

from salonbook.models.plan import UNLIMITED

PERIOD_FORMAT = "%Y-%m"


class UsageRecord(SQLModel, table=True):
    """Reservation counter for one tenant and one YYYY-MM period"""

    __tablename__ = "usage_records"
    __table_args__ = (UniqueConstraint("tenant_id", "period", name="uq_usage_records_tenant_period"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", index=True, description="Tenant ID for multi-tenant isolation")
    period: str = Field(index=True, max_length=7)
    reservations_count: int = Field(default=0)
    reservations_limit: int = Field(default=0)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    def is_unlimited(self) -> bool:
        return self.reservations_limit == UNLIMITED

    def has_reached_limit(self) -> bool:
        if self.is_unlimited():
            return False
        return self.reservations_count >= self.reservations_limit

    def get_remaining_reservations(self) -> Optional[int]:
        """None when unlimited"""
        if self.is_unlimited():
            return None
        return max(0, self.reservations_limit - self.reservations_count)

    def get_usage_percentage(self) -> float:
        if self.is_unlimited():
            return 0.0
        if self.reservations_limit == 0:
            return 100.0
        return min(100.0, round(self.reservations_count / self.reservations_limit * 100, 2))

    @staticmethod
    def period_for(moment: Optional[datetime] = None) -> str:
        return (moment or datetime.utcnow()).strftime(PERIOD_FORMAT)
