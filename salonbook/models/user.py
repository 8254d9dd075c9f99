"""
User model with roles and tenant scoping
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
from enum import Enum
import uuid


class UserRole(str, Enum):
    """User roles"""
    OWNER = "owner"
    STAFF = "staff"
    ADMIN = "admin"


class User(SQLModel, table=True):
    """Dashboard user. The tenant owner receives billing notifications."""

    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", index=True, description="Tenant ID for multi-tenant isolation")

    email: str = Field(index=True, nullable=False, max_length=255)
    name: str = Field(nullable=False, max_length=255)
    role: UserRole = Field(default=UserRole.STAFF, nullable=False)
    is_active: bool = Field(default=True, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    def is_owner(self) -> bool:
        return self.role == UserRole.OWNER
