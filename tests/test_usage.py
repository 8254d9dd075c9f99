"""
Tests for usage limits and the monthly reservation counter
"""

from datetime import datetime, timedelta

import pytest

from conftest import add_staff, make_subscription
from salonbook.core.exceptions import ResourceLimitReached
from salonbook.core.tenancy import TenantScope
from salonbook.models import Appointment, Service, UsageRecord, UsageResource
from salonbook.repositories.usage_record_repository import UsageRecordRepository
from salonbook.services.subscription import UsageLimitService, UsageValidationService


def _add_services(db, tenant, count, active=True):
    db.add_all([
        Service(tenant_id=tenant.id, name=f"Service {i}", duration_minutes=30, is_active=active)
        for i in range(count)
    ])
    db.commit()


class TestUsageValidation:
    def test_counts_only_active_rows(self, db, plans, tenant):
        _add_services(db, tenant, 3)
        _add_services(db, tenant, 2, active=False)

        assert UsageValidationService(db).count(tenant, UsageResource.SERVICES) == 3

    def test_violations_for_every_resource_over_limit(self, db, plans, tenant):
        add_staff(db, tenant, 3)
        _add_services(db, tenant, 12)

        violations = UsageValidationService(db).check_limit_violations(tenant, plans["free"])

        assert violations == {
            "staff": {"current": 3, "limit": 1},
            "services": {"current": 12, "limit": 10},
        }

    def test_unlimited_never_violated(self, db, plans, tenant):
        add_staff(db, tenant, 40)

        assert UsageValidationService(db).check_limit_violations(tenant, plans["premium"]) == {}

    def test_remaining_capacity(self, db, plans, tenant):
        add_staff(db, tenant, 2)
        usage = UsageValidationService(db)

        assert usage.get_remaining_capacity(tenant, plans["smart"], UsageResource.STAFF) == 3
        assert usage.get_remaining_capacity(tenant, plans["free"], UsageResource.STAFF) == 0
        assert usage.get_remaining_capacity(tenant, plans["premium"], UsageResource.STAFF) is None
        assert usage.can_add_resource(tenant, plans["smart"], UsageResource.STAFF) is True
        assert usage.can_add_resource(tenant, plans["easy"], UsageResource.STAFF) is False

    def test_missing_limit_uses_configured_default(self, db, plans, tenant):
        plan = plans["easy"]
        plan.limits = {"users": 1}
        db.add(plan)
        db.commit()

        assert UsageValidationService(db).get_limit(plan, UsageResource.CLIENTS) == 100


class TestUsagePercentage:
    @pytest.mark.parametrize("current,limit,expected", [
        (75, 100, 75.0),
        (1, 3, 33.3),
        (150, 100, 100.0),
        (5, -1, 0.0),
        (3, 0, 100.0),
    ])
    def test_percentage(self, current, limit, expected):
        assert UsageLimitService.get_usage_percentage(current, limit) == expected


class TestUsageLimits:
    def test_authorize_refuses_at_limit(self, db, plans, tenant):
        _add_services(db, tenant, 10)

        with pytest.raises(ResourceLimitReached) as exc_info:
            UsageLimitService(db).authorize(tenant, UsageResource.SERVICES)

        assert exc_info.value.details == {"resource": "services", "limit": 10}

    def test_authorize_unlimited(self, db, plans, tenant):
        make_subscription(db, tenant, plans["easy"])
        _add_services(db, tenant, 50)

        UsageLimitService(db).authorize(tenant, UsageResource.SERVICES)

    def test_near_limit(self, db, plans, tenant):
        limits = UsageLimitService(db)
        _add_services(db, tenant, 7)
        assert limits.is_near_limit(tenant, UsageResource.SERVICES) is False

        _add_services(db, tenant, 1)
        assert limits.is_near_limit(tenant, UsageResource.SERVICES) is True

        _add_services(db, tenant, 2)
        assert limits.is_near_limit(tenant, UsageResource.SERVICES) is False
        assert limits.has_reached_limit(tenant, UsageResource.SERVICES) is True

    def test_usage_stats(self, db, plans, tenant):
        make_subscription(db, tenant, plans["smart"])
        add_staff(db, tenant, 4)

        stats = UsageLimitService(db).get_usage_stats(tenant)

        assert stats["staff"] == {"current": 4, "limit": 5, "percentage": 80.0}
        assert stats["clients"]["limit"] == "unlimited"
        assert stats["reservations"] == {"current": 0, "limit": 1500, "percentage": 0.0}
        assert set(stats) == {"reservations", "users", "staff", "services", "clients"}


class TestReservationCounter:
    def test_first_reservation_creates_record(self, db, plans, tenant):
        limits = UsageLimitService(db)

        record = limits.record_reservation_created(tenant)
        limits.record_reservation_created(tenant)
        db.commit()

        db.refresh(record)
        assert record.period == datetime.utcnow().strftime("%Y-%m")
        assert record.reservations_count == 2
        assert record.reservations_limit == 150
        assert limits.validation.count(tenant, UsageResource.RESERVATIONS) == 2

    def test_delete_never_goes_below_zero(self, db, plans, tenant):
        limits = UsageLimitService(db)
        assert limits.record_reservation_deleted(tenant) is None

        limits.record_reservation_created(tenant)
        limits.record_reservation_deleted(tenant)
        record = limits.record_reservation_deleted(tenant)
        db.commit()

        assert record.reservations_count == 0

    def test_record_limit_taken_at_creation(self, db, plans, tenant):
        limits = UsageLimitService(db)
        record = limits.record_reservation_created(tenant)
        db.commit()

        make_subscription(db, tenant, plans["premium"])
        limits.record_reservation_created(tenant)
        db.commit()

        db.refresh(record)
        assert record.reservations_limit == 150

    def test_recalculate_from_appointments(self, db, plans, tenant, other_tenant):
        now = datetime.utcnow()
        this_month = now.replace(day=1, hour=12)
        last_month = this_month - timedelta(days=3)
        db.add_all([
            Appointment(tenant_id=tenant.id, starts_at=now, ends_at=now, created_at=this_month),
            Appointment(tenant_id=tenant.id, starts_at=now, ends_at=now, created_at=this_month),
            Appointment(tenant_id=tenant.id, starts_at=now, ends_at=now, created_at=last_month),
            Appointment(tenant_id=other_tenant.id, starts_at=now, ends_at=now, created_at=this_month),
        ])
        db.commit()

        repository = UsageRecordRepository(db, TenantScope().for_tenant(tenant.id))
        record = repository.find_or_create_for_period(tenant.id, plans["free"])
        record.reservations_count = 40
        repository.recalculate_from_database(record)
        db.commit()

        assert record.reservations_count == 2


class TestUsageRecordModel:
    def test_period_format(self):
        assert UsageRecord.period_for(datetime(2026, 2, 5)) == "2026-02"

    def test_limits(self):
        record = UsageRecord(period="2026-02", reservations_count=150, reservations_limit=150)
        assert record.has_reached_limit() is True
        assert record.get_remaining_reservations() == 0

        unlimited = UsageRecord(period="2026-02", reservations_count=999, reservations_limit=-1)
        assert unlimited.has_reached_limit() is False
        assert unlimited.get_remaining_reservations() is None
        assert unlimited.get_usage_percentage() == 0.0
