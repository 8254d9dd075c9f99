"""
Tenant-scoped repository base

Every query on a tenant-owned table goes through TenantScope.apply, and
every insert goes through TenantScope.stamp.
"""

from typing import Any, Generic, List, Optional, Type, TypeVar
from sqlalchemy import func
from sqlmodel import Session, SQLModel, select

from salonbook.core.tenancy import TenantScope

ModelT = TypeVar("ModelT", bound=SQLModel)


class TenantScopedRepository(Generic[ModelT]):
    model: Type[ModelT]

    def __init__(self, session: Session, scope: TenantScope, model: Optional[Type[ModelT]] = None):
        self.session = session
        self.scope = scope
        if model is not None:
            self.model = model

    def select(self, *criteria: Any):
        statement = select(self.model)
        if criteria:
            statement = statement.where(*criteria)
        return self.scope.apply(statement, self.model)

    def list(self, *criteria: Any, order_by: Any = None) -> List[ModelT]:
        statement = self.select(*criteria)
        if order_by is not None:
            statement = statement.order_by(order_by)
        return list(self.session.exec(statement).all())

    def first(self, *criteria: Any, order_by: Any = None) -> Optional[ModelT]:
        statement = self.select(*criteria)
        if order_by is not None:
            statement = statement.order_by(order_by)
        return self.session.exec(statement).first()

    def get(self, entity_id: Any) -> Optional[ModelT]:
        return self.scope.get(self.session, self.model, entity_id)

    def count(self, *criteria: Any) -> int:
        statement = select(func.count()).select_from(self.model)
        if criteria:
            statement = statement.where(*criteria)
        statement = self.scope.apply(statement, self.model)
        return self.session.exec(statement).one()

    def add(self, entity: ModelT) -> ModelT:
        self.scope.stamp(entity)
        self.session.add(entity)
        return entity

    def delete(self, entity: ModelT) -> None:
        if not self.scope.owns(entity):
            raise ValueError("Cannot delete a row owned by another tenant")
        self.session.delete(entity)
