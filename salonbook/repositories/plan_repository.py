"""
Plan lookups. Plans are global, not tenant-owned.
"""

from typing import List, Optional
import uuid

from sqlmodel import Session, select

from salonbook.models.plan import Plan, PlanSlug


class PlanRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, plan_id: Optional[uuid.UUID]) -> Optional[Plan]:
        if plan_id is None:
            return None
        return self.session.get(Plan, plan_id)

    def get_by_slug(self, slug: str) -> Optional[Plan]:
        return self.session.exec(select(Plan).where(Plan.slug == slug)).first()

    def get_free_plan(self) -> Optional[Plan]:
        return self.get_by_slug(PlanSlug.FREE.value)

    def list_public(self) -> List[Plan]:
        """Active, public plans ordered by tier"""
        statement = (
            select(Plan)
            .where(Plan.is_active == True, Plan.is_public == True)  # noqa: E712
            .order_by(Plan.sort_order)
        )
        return list(self.session.exec(statement).all())

    def list_all(self) -> List[Plan]:
        return list(self.session.exec(select(Plan).order_by(Plan.sort_order)).all())
