"""
Staff profile model
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
import uuid


class StaffProfile(SQLModel, table=True):
    """Bookable staff member"""

    __tablename__ = "staff_profiles"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", index=True, description="Tenant ID for multi-tenant isolation")
    user_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id", nullable=True)

    name: str = Field(max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    bio: Optional[str] = Field(default=None, max_length=2000)
    is_active: bool = Field(default=True, index=True)
    sort_order: int = Field(default=0, description="Position on the public booking page")

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None
