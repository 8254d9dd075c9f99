"""
Tenant context and row-level tenant scoping

A TenantContext is created per request and carried explicitly through the
dependency graph. TenantScope turns it into the `tenant_id = ?` predicate
applied to every query on tenant-owned tables.
"""

from typing import Any, Optional, Type, TypeVar
import uuid
import structlog

from sqlmodel import Session, SQLModel

from salonbook.models.tenant import Tenant

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)


class TenantContext:
    """Holds the tenant for the current unit of work"""

    def __init__(self, tenant: Optional[Tenant] = None):
        self._tenant = tenant

    def set_tenant(self, tenant: Tenant) -> None:
        self._tenant = tenant
        logger.debug(f"Tenant context set: {tenant.id}")

    def get_tenant(self) -> Optional[Tenant]:
        return self._tenant

    def get_tenant_id(self) -> Optional[uuid.UUID]:
        return self._tenant.id if self._tenant else None

    def has_tenant(self) -> bool:
        return self._tenant is not None

    def clear(self) -> None:
        self._tenant = None


class TenantScope:
    """
    Applies tenant isolation to queries and new rows.

    With neither a context tenant nor an explicit tenant id, queries are
    unrestricted. System jobs rely on this; request code must go through a
    TenantContext populated by the auth dependency.
    """

    def __init__(
        self,
        context: Optional[TenantContext] = None,
        tenant_id: Optional[uuid.UUID] = None,
        bypass_reason: Optional[str] = None,
    ):
        self._context = context
        self._tenant_id = tenant_id
        self.bypass_reason = bypass_reason

    @property
    def tenant_id(self) -> Optional[uuid.UUID]:
        if self.bypass_reason is not None:
            return None
        if self._tenant_id is not None:
            return self._tenant_id
        if self._context is not None:
            return self._context.get_tenant_id()
        return None

    def is_restricted(self) -> bool:
        return self.tenant_id is not None

    def apply(self, statement: Any, model: Type[SQLModel]) -> Any:
        """Add the tenant predicate to a select/update/delete statement"""
        tenant_id = self.tenant_id
        if tenant_id is None:
            return statement
        return statement.where(model.tenant_id == tenant_id)

    def stamp(self, entity: ModelT) -> ModelT:
        """Fill tenant_id on a new row when the caller left it unset"""
        tenant_id = self.tenant_id
        if tenant_id is not None and getattr(entity, "tenant_id", None) is None:
            entity.tenant_id = tenant_id
        return entity

    def owns(self, entity: SQLModel) -> bool:
        tenant_id = self.tenant_id
        return tenant_id is None or getattr(entity, "tenant_id", None) == tenant_id

    def get(self, session: Session, model: Type[ModelT], entity_id: Any) -> Optional[ModelT]:
        """Primary-key lookup that hides rows owned by other tenants"""
        entity = session.get(model, entity_id)
        if entity is None or not self.owns(entity):
            return None
        return entity

    def unscoped(self, reason: str) -> "TenantScope":
        """Explicit, logged bypass of tenant isolation"""
        logger.warning(
            "tenant_scope_bypassed",
            reason=reason,
            tenant_id=str(self.tenant_id) if self.tenant_id else None,
        )
        return TenantScope(context=None, bypass_reason=reason)

    def for_tenant(self, tenant_id: uuid.UUID) -> "TenantScope":
        """Scope restricted to an explicit tenant, independent of the context"""
        return TenantScope(tenant_id=tenant_id)

    @classmethod
    def system(cls) -> "TenantScope":
        """Unrestricted scope for scheduled jobs and webhooks"""
        return cls()
