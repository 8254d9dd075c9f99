"""
Business settings API endpoints
Working hours for the business and its staff, display order of services and staff
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session
from typing import List
import uuid

from salonbook.core.database import get_session
from salonbook.core.auth import TokenClaims
from salonbook.core.dependencies import get_tenant_scope, require_owner
from salonbook.core.tenancy import TenantScope
from salonbook.models.working_hours import WorkingHours
from salonbook.schemas import ReorderRequest, WeeklySchedule
from salonbook.services.ordering import reorder_services, reorder_staff
from salonbook.services.working_hours import BusinessWorkingHoursService

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/working-hours", response_model=List[WorkingHours])
def get_business_hours(
    session: Session = Depends(get_session),
    scope: TenantScope = Depends(get_tenant_scope),
):
    return BusinessWorkingHoursService(session, scope).get_active_business_hours()


@router.put("/working-hours", response_model=List[WorkingHours])
def replace_business_hours(
    entries: WeeklySchedule,
    session: Session = Depends(get_session),
    scope: TenantScope = Depends(get_tenant_scope),
    _: TokenClaims = Depends(require_owner),
):
    """Replace the whole weekly schedule; days left out are closed"""
    return BusinessWorkingHoursService(session, scope).replace_business_hours(entries)


@router.get("/staff/{staff_id}/working-hours")
def get_staff_hours(
    staff_id: uuid.UUID,
    session: Session = Depends(get_session),
    scope: TenantScope = Depends(get_tenant_scope),
):
    """Stored hours and the bookable window left after business hours are applied"""
    service = BusinessWorkingHoursService(session, scope)
    effective = service.get_effective_staff_hours(staff_id)
    return {
        "hours": service.get_staff_hours(staff_id),
        "effective": [
            {"day_of_week": day, "start_time": window.start, "end_time": window.end}
            for day, window in sorted(effective.items())
        ],
    }


@router.put("/staff/{staff_id}/working-hours", response_model=List[WorkingHours])
def replace_staff_hours(
    staff_id: uuid.UUID,
    entries: WeeklySchedule,
    session: Session = Depends(get_session),
    scope: TenantScope = Depends(get_tenant_scope),
    _: TokenClaims = Depends(require_owner),
):
    return BusinessWorkingHoursService(session, scope).replace_staff_hours(staff_id, entries)


@router.put("/services/order")
def reorder_service_list(
    data: ReorderRequest,
    session: Session = Depends(get_session),
    scope: TenantScope = Depends(get_tenant_scope),
    _: TokenClaims = Depends(require_owner),
):
    return {"updated": reorder_services(session, scope, data.ids)}


@router.put("/staff/order")
def reorder_staff_list(
    data: ReorderRequest,
    session: Session = Depends(get_session),
    scope: TenantScope = Depends(get_tenant_scope),
    _: TokenClaims = Depends(require_owner),
):
    return {"updated": reorder_staff(session, scope, data.ids)}
