"""
Tenant and owner lookups
"""

from typing import Optional
import uuid

from sqlmodel import Session, select

from salonbook.models.tenant import Tenant
from salonbook.models.user import User, UserRole


class TenantRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, tenant_id: uuid.UUID) -> Optional[Tenant]:
        return self.session.get(Tenant, tenant_id)

    def get_by_stripe_customer(self, customer_id: str) -> Optional[Tenant]:
        return self.session.exec(select(Tenant).where(Tenant.stripe_customer_id == customer_id)).first()

    def get_owner(self, tenant_id: uuid.UUID) -> Optional[User]:
        statement = select(User).where(
            User.tenant_id == tenant_id,
            User.role == UserRole.OWNER,
            User.is_active == True,  # noqa: E712
        )
        return self.session.exec(statement).first()
