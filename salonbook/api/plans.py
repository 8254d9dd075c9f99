"""
Plan catalog API endpoints
Public plan list and comparison, platform-admin plan management
"""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session
from typing import List
import uuid

from salonbook.core.database import get_session
from salonbook.core.auth import TokenClaims
from salonbook.core.dependencies import require_admin
from salonbook.core.exceptions import PlanNotFound
from salonbook.repositories.plan_repository import PlanRepository
from salonbook.schemas import PlanCreate, PlanResponse, PlanUpdate
from salonbook.services.plans import PlanAdminService
from salonbook.services.subscription import PlanComparisonService

router = APIRouter(prefix="/plans", tags=["plans"])


@router.get("/", response_model=List[PlanResponse])
def list_plans(session: Session = Depends(get_session)):
    """Active public plans in display order"""
    return PlanRepository(session).list_public()


@router.get("/comparison")
def get_comparison(session: Session = Depends(get_session)):
    return PlanComparisonService(session).get_comparison_matrix()


@router.get("/difference")
def get_plan_difference(
    from_plan: str,
    to_plan: str,
    session: Session = Depends(get_session),
):
    """What changes between two plans, by slug"""
    plans = PlanRepository(session)
    source = plans.get_by_slug(from_plan)
    if source is None:
        raise PlanNotFound(from_plan)
    target = plans.get_by_slug(to_plan)
    if target is None:
        raise PlanNotFound(to_plan)
    return PlanComparisonService(session).get_plan_difference(source, target)


@router.post("/", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
def create_plan(
    data: PlanCreate,
    session: Session = Depends(get_session),
    _: TokenClaims = Depends(require_admin),
):
    return PlanAdminService(session).create_plan(data)


@router.patch("/{plan_id}", response_model=PlanResponse)
def update_plan(
    plan_id: uuid.UUID,
    data: PlanUpdate,
    session: Session = Depends(get_session),
    _: TokenClaims = Depends(require_admin),
):
    return PlanAdminService(session).update_plan(plan_id, data)


@router.get("/{plan_id}/subscribers")
def get_subscriber_count(
    plan_id: uuid.UUID,
    session: Session = Depends(get_session),
    _: TokenClaims = Depends(require_admin),
):
    return {"plan_id": str(plan_id), "subscribers": PlanAdminService(session).get_subscriber_count(plan_id)}


@router.post("/{plan_id}/deactivate", response_model=PlanResponse)
def deactivate_plan(
    plan_id: uuid.UUID,
    session: Session = Depends(get_session),
    _: TokenClaims = Depends(require_admin),
):
    """Refused with 409 while tenants are subscribed to the plan"""
    return PlanAdminService(session).deactivate_plan(plan_id)
