"""
Business and staff working hours

Staff hours are stored as entered and intersected with business hours when
read. One row per day; days are numbered 0 = Sunday to 6 = Saturday.
"""

from datetime import time
from typing import Dict, List, NamedTuple, Optional, Sequence
import uuid
import structlog

from sqlmodel import Session

from salonbook.core.database import transaction
from salonbook.core.exceptions import DuplicateWorkingDay, ResourceNotFound, TenantNotResolved
from salonbook.core.tenancy import TenantScope
from salonbook.models.staff import StaffProfile
from salonbook.models.working_hours import WorkingHours
from salonbook.repositories.base import TenantScopedRepository
from salonbook.schemas.working_hours import WorkingHoursEntry, repeated_days

logger = structlog.get_logger(__name__)


class TimeRange(NamedTuple):
    start: time
    end: time


class BusinessWorkingHoursService:
    def __init__(self, session: Session, scope: TenantScope):
        self.session = session
        self.scope = scope
        self.hours = TenantScopedRepository(session, scope, WorkingHours)

    def get_active_business_hours(self) -> List[WorkingHours]:
        return self.hours.list(
            WorkingHours.staff_id == None,  # noqa: E711
            WorkingHours.is_active == True,  # noqa: E712
            order_by=WorkingHours.day_of_week,
        )

    def has_configured_business_hours(self) -> bool:
        return len(self.get_active_business_hours()) > 0

    def business_hours_for_day(self, day_of_week: int) -> Optional[TimeRange]:
        for row in self.get_active_business_hours():
            if row.day_of_week == day_of_week:
                return TimeRange(row.start_time, row.end_time)
        return None

    def constrain_staff_hours(self, staff_hours: Optional[WorkingHours]) -> Optional[TimeRange]:
        """Intersect one day of staff hours with the business hours for that day"""
        if staff_hours is None:
            return None

        own = TimeRange(staff_hours.start_time, staff_hours.end_time)
        if not self.has_configured_business_hours():
            return own

        business = self.business_hours_for_day(staff_hours.day_of_week)
        if business is None:
            return None

        start = max(own.start, business.start)
        end = min(own.end, business.end)
        if start >= end:
            return None
        return TimeRange(start, end)

    def is_interval_within_business_hours(self, day_of_week: int, start: time, end: time) -> bool:
        if not self.has_configured_business_hours():
            return True
        business = self.business_hours_for_day(day_of_week)
        if business is None:
            return False
        return business.start <= start and end <= business.end

    def get_staff_hours(self, staff_id: uuid.UUID) -> List[WorkingHours]:
        return self.hours.list(
            WorkingHours.staff_id == staff_id,
            WorkingHours.is_active == True,  # noqa: E712
            order_by=WorkingHours.day_of_week,
        )

    def get_effective_staff_hours(self, staff_id: uuid.UUID) -> Dict[int, TimeRange]:
        """Bookable window per day for a staff member; closed days are omitted"""
        effective: Dict[int, TimeRange] = {}
        for row in self.get_staff_hours(staff_id):
            window = self.constrain_staff_hours(row)
            if window is not None:
                effective[row.day_of_week] = window
        return effective

    def _replace(self, staff_id: Optional[uuid.UUID], entries: Sequence[WorkingHoursEntry]) -> List[WorkingHours]:
        if not self.scope.is_restricted():
            raise TenantNotResolved()

        repeated = repeated_days(entries)
        if repeated:
            raise DuplicateWorkingDay(repeated)

        with transaction(self.session):
            for row in self.hours.list(WorkingHours.staff_id == staff_id):
                self.hours.delete(row)
            # old rows must be gone before the same days are inserted again
            self.session.flush()

            created = [
                self.hours.add(WorkingHours(
                    staff_id=staff_id,
                    day_of_week=entry.day_of_week,
                    start_time=entry.start_time,
                    end_time=entry.end_time,
                    is_active=entry.is_active,
                ))
                for entry in entries
            ]

        logger.info(
            f"Working hours replaced for tenant {self.scope.tenant_id}",
            staff_id=str(staff_id) if staff_id else None,
            rows=len(created),
        )
        return created

    def replace_business_hours(self, entries: Sequence[WorkingHoursEntry]) -> List[WorkingHours]:
        return self._replace(None, entries)

    def replace_staff_hours(self, staff_id: uuid.UUID, entries: Sequence[WorkingHoursEntry]) -> List[WorkingHours]:
        if self.scope.get(self.session, StaffProfile, staff_id) is None:
            raise ResourceNotFound("Staff member", staff_id)
        return self._replace(staff_id, entries)
