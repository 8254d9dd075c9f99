"""
Tests for business and staff working hours
"""

from datetime import time
import uuid

import pytest
from pydantic import TypeAdapter, ValidationError
from sqlmodel import select

from conftest import add_staff
from salonbook.core.exceptions import DuplicateWorkingDay, ResourceNotFound, TenantNotResolved
from salonbook.core.tenancy import TenantScope
from salonbook.models import WorkingHours
from salonbook.schemas.working_hours import WeeklySchedule, WorkingHoursEntry
from salonbook.services.working_hours import BusinessWorkingHoursService, TimeRange

SUNDAY, MONDAY, TUESDAY = 0, 1, 2


def _entry(day, start, end, active=True):
    return WorkingHoursEntry(day_of_week=day, start_time=start, end_time=end, is_active=active)


@pytest.fixture
def service(db, tenant):
    return BusinessWorkingHoursService(db, TenantScope(tenant_id=tenant.id))


@pytest.fixture
def stylist(db, tenant):
    return add_staff(db, tenant, 1)[0]


class TestEffectiveStaffHours:
    def test_no_business_hours_keeps_staff_hours(self, service, stylist):
        service.replace_staff_hours(stylist.id, [_entry(MONDAY, time(8), time(12))])

        assert service.get_effective_staff_hours(stylist.id) == {MONDAY: TimeRange(time(8), time(12))}

    def test_intersection_with_business_hours(self, service, stylist):
        service.replace_business_hours([_entry(MONDAY, time(9), time(17))])
        service.replace_staff_hours(stylist.id, [_entry(MONDAY, time(8), time(12))])

        assert service.get_effective_staff_hours(stylist.id) == {MONDAY: TimeRange(time(9), time(12))}

    def test_day_business_is_closed(self, service, stylist):
        service.replace_business_hours([_entry(MONDAY, time(9), time(17))])
        service.replace_staff_hours(stylist.id, [_entry(TUESDAY, time(9), time(17))])

        assert service.get_effective_staff_hours(stylist.id) == {}

    def test_no_overlap(self, service, stylist):
        service.replace_business_hours([_entry(MONDAY, time(9), time(17))])
        service.replace_staff_hours(stylist.id, [_entry(MONDAY, time(17), time(20))])

        assert service.get_effective_staff_hours(stylist.id) == {}

    def test_sunday_is_day_zero(self, service, stylist):
        service.replace_business_hours([_entry(SUNDAY, time(10), time(14))])
        service.replace_staff_hours(stylist.id, [_entry(SUNDAY, time(9), time(12))])

        assert service.get_effective_staff_hours(stylist.id) == {0: TimeRange(time(10), time(12))}

    def test_inactive_business_rows_ignored(self, service, stylist):
        service.replace_business_hours([_entry(MONDAY, time(9), time(17), active=False)])
        service.replace_staff_hours(stylist.id, [_entry(TUESDAY, time(10), time(11))])

        assert service.has_configured_business_hours() is False
        assert service.get_effective_staff_hours(stylist.id) == {TUESDAY: TimeRange(time(10), time(11))}


class TestIntervalCheck:
    def test_unconfigured_allows_anything(self, service):
        assert service.is_interval_within_business_hours(MONDAY, time(2), time(3)) is True

    def test_configured(self, service):
        service.replace_business_hours([_entry(MONDAY, time(9), time(17))])

        assert service.is_interval_within_business_hours(MONDAY, time(9), time(10)) is True
        assert service.is_interval_within_business_hours(MONDAY, time(16), time(18)) is False
        assert service.is_interval_within_business_hours(TUESDAY, time(10), time(11)) is False


class TestReplace:
    def test_replace_removes_previous_rows(self, db, service):
        service.replace_business_hours([_entry(MONDAY, time(9), time(17)), _entry(TUESDAY, time(9), time(17))])
        service.replace_business_hours([_entry(MONDAY, time(10), time(14))])

        rows = service.get_active_business_hours()
        assert [(row.day_of_week, row.start_time, row.end_time) for row in rows] == [(MONDAY, time(10), time(14))]

    def test_replace_only_touches_own_tenant(self, db, service, other_tenant):
        other = BusinessWorkingHoursService(db, TenantScope(tenant_id=other_tenant.id))
        other.replace_business_hours([_entry(MONDAY, time(8), time(20))])

        service.replace_business_hours([_entry(MONDAY, time(9), time(17))])

        assert len(other.get_active_business_hours()) == 1
        assert other.business_hours_for_day(MONDAY) == TimeRange(time(8), time(20))

    def test_repeated_business_day_rejected(self, db, service):
        """A day can only appear once in a weekly schedule"""
        with pytest.raises(DuplicateWorkingDay) as exc_info:
            service.replace_business_hours([
                _entry(MONDAY, time(9), time(12)),
                _entry(MONDAY, time(14), time(18)),
            ])

        assert exc_info.value.details == {"days": [MONDAY]}
        assert exc_info.value.status_code == 422
        assert db.exec(select(WorkingHours)).all() == []

    def test_repeated_staff_day_keeps_previous_hours(self, service, stylist):
        service.replace_staff_hours(stylist.id, [_entry(MONDAY, time(9), time(17))])

        with pytest.raises(DuplicateWorkingDay):
            service.replace_staff_hours(stylist.id, [
                _entry(MONDAY, time(9), time(12)),
                _entry(MONDAY, time(14), time(18)),
            ])

        assert service.get_effective_staff_hours(stylist.id) == {MONDAY: TimeRange(time(9), time(17))}

    def test_replace_same_days_again(self, service, stylist):
        service.replace_staff_hours(stylist.id, [_entry(MONDAY, time(9), time(17)), _entry(TUESDAY, time(9), time(17))])
        service.replace_staff_hours(stylist.id, [_entry(MONDAY, time(12), time(20)), _entry(TUESDAY, time(8), time(10))])

        assert service.get_effective_staff_hours(stylist.id) == {
            MONDAY: TimeRange(time(12), time(20)),
            TUESDAY: TimeRange(time(8), time(10)),
        }

    def test_unscoped_write_refused(self, db, tenant):
        service = BusinessWorkingHoursService(db, TenantScope.system())

        with pytest.raises(TenantNotResolved):
            service.replace_business_hours([_entry(MONDAY, time(9), time(17))])

    def test_foreign_staff_member(self, db, service, other_tenant):
        foreign = add_staff(db, other_tenant, 1)[0]

        with pytest.raises(ResourceNotFound):
            service.replace_staff_hours(foreign.id, [_entry(MONDAY, time(9), time(17))])

        assert db.exec(select(WorkingHours)).all() == []

    def test_unknown_staff_member(self, service):
        with pytest.raises(ResourceNotFound):
            service.replace_staff_hours(uuid.uuid4(), [])


class TestEntrySchema:
    def test_end_before_start_rejected(self):
        with pytest.raises(ValueError):
            _entry(MONDAY, time(17), time(9))

    def test_day_out_of_range(self):
        with pytest.raises(ValueError):
            _entry(7, time(9), time(17))

    def test_weekly_schedule_needs_distinct_days(self):
        schedule = TypeAdapter(WeeklySchedule)
        payload = [
            {"day_of_week": MONDAY, "start_time": "09:00", "end_time": "12:00"},
            {"day_of_week": MONDAY, "start_time": "14:00", "end_time": "18:00"},
        ]

        with pytest.raises(ValidationError):
            schedule.validate_python(payload)

        assert len(schedule.validate_python(payload[:1])) == 1
