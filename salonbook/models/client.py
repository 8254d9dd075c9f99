"""
Client (end customer) model
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
import uuid


class Client(SQLModel, table=True):
    __tablename__ = "clients"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", index=True, description="Tenant ID for multi-tenant isolation")

    name: str = Field(max_length=255)
    email: Optional[str] = Field(default=None, index=True, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    notes: Optional[str] = Field(default=None, max_length=2000)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None
