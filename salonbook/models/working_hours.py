"""
Working hours model

Rows with staff_id NULL are business-wide hours; rows with a staff_id are
that staff member's own hours, intersected with business hours at read time.
"""

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel
from datetime import datetime, time
from typing import Optional
import uuid


class WorkingHours(SQLModel, table=True):
    __tablename__ = "working_hours"
    __table_args__ = (
        UniqueConstraint("tenant_id", "staff_id", "day_of_week", name="uq_working_hours_tenant_staff_day"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", index=True, description="Tenant ID for multi-tenant isolation")
    staff_id: Optional[uuid.UUID] = Field(default=None, foreign_key="staff_profiles.id", index=True, nullable=True)

    day_of_week: int = Field(ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    start_time: time
    end_time: time
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    def is_business_wide(self) -> bool:
        return self.staff_id is None
