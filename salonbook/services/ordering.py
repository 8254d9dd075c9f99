"""
Display-order reindexing for services and staff

Position i in the submitted list becomes sort_order i. There is no version
check: concurrent reorders for the same tenant are last-write-wins.
"""

from typing import Sequence, Type
import uuid
import structlog

from sqlmodel import Session, SQLModel

from salonbook.core.database import transaction
from salonbook.core.tenancy import TenantScope
from salonbook.models.service import Service
from salonbook.models.staff import StaffProfile

logger = structlog.get_logger(__name__)


def reorder(session: Session, scope: TenantScope, model: Type[SQLModel], ordered_ids: Sequence[uuid.UUID]) -> int:
    """Apply a position -> id list; ids outside the tenant are skipped"""
    updated = 0
    with transaction(session):
        for position, entity_id in enumerate(ordered_ids):
            entity = scope.get(session, model, entity_id)
            if entity is None:
                logger.warning(f"Reorder skipped unknown {model.__name__} {entity_id}")
                continue
            entity.sort_order = position
            session.add(entity)
            updated += 1

    logger.info(f"Reordered {updated} {model.__tablename__} for tenant {scope.tenant_id}")
    return updated


def reorder_services(session: Session, scope: TenantScope, ordered_ids: Sequence[uuid.UUID]) -> int:
    return reorder(session, scope, Service, ordered_ids)


def reorder_staff(session: Session, scope: TenantScope, ordered_ids: Sequence[uuid.UUID]) -> int:
    return reorder(session, scope, StaffProfile, ordered_ids)
