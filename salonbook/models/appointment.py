"""
Appointment model
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
from enum import Enum
import uuid


class AppointmentStatus(str, Enum):
    BOOKED = "booked"
    COMPLETED = "completed"
    CANCELED = "canceled"
    NO_SHOW = "no_show"


class Appointment(SQLModel, table=True):
    """A reservation; counted against the monthly reservation limit"""

    __tablename__ = "appointments"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", index=True, description="Tenant ID for multi-tenant isolation")
    client_id: Optional[uuid.UUID] = Field(default=None, foreign_key="clients.id", index=True)
    staff_id: Optional[uuid.UUID] = Field(default=None, foreign_key="staff_profiles.id", index=True)
    service_id: Optional[uuid.UUID] = Field(default=None, foreign_key="services.id")

    starts_at: datetime = Field(index=True)
    ends_at: datetime
    status: AppointmentStatus = Field(default=AppointmentStatus.BOOKED, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: Optional[datetime] = None
