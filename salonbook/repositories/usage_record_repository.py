"""
Monthly usage counters
"""

from datetime import datetime
from typing import Optional
import uuid
import structlog

from sqlalchemy import func
from sqlmodel import Session, select

from salonbook.core.config import get_settings
from salonbook.core.tenancy import TenantScope
from salonbook.models.appointment import Appointment
from salonbook.models.plan import Plan
from salonbook.models.usage_record import UsageRecord, PERIOD_FORMAT
from salonbook.repositories.base import TenantScopedRepository

logger = structlog.get_logger(__name__)
settings = get_settings()


def _period_bounds(period: str) -> tuple[datetime, datetime]:
    start = datetime.strptime(period, PERIOD_FORMAT)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


class UsageRecordRepository(TenantScopedRepository[UsageRecord]):
    model = UsageRecord

    def __init__(self, session: Session, scope: TenantScope):
        super().__init__(session, scope)

    def find_for_period(self, tenant_id: uuid.UUID, period: str) -> Optional[UsageRecord]:
        return self.first(UsageRecord.tenant_id == tenant_id, UsageRecord.period == period)

    def find_or_create_for_period(
        self,
        tenant_id: uuid.UUID,
        plan: Optional[Plan],
        period: Optional[str] = None,
    ) -> UsageRecord:
        """Lazily create the counter, taking the limit from the plan at creation time"""
        period = period or UsageRecord.period_for()
        record = self.find_for_period(tenant_id, period)
        if record is not None:
            return record

        default_limit = settings.SUBSCRIPTION_DEFAULT_LIMITS.get("reservations_per_month", 50)
        limit = plan.get_limit("reservations_per_month", default_limit) if plan else default_limit
        record = UsageRecord(
            tenant_id=tenant_id,
            period=period,
            reservations_count=0,
            reservations_limit=limit,
        )
        self.add(record)
        self.session.flush()
        logger.info(f"Usage record created for tenant {tenant_id} period {period}")
        return record

    def increment_reservations(self, record: UsageRecord) -> UsageRecord:
        record.reservations_count += 1
        record.updated_at = datetime.utcnow()
        self.session.add(record)
        return record

    def decrement_reservations(self, record: UsageRecord) -> UsageRecord:
        if record.reservations_count > 0:
            record.reservations_count -= 1
            record.updated_at = datetime.utcnow()
            self.session.add(record)
        return record

    def get_current_usage(self, tenant_id: uuid.UUID) -> int:
        record = self.find_for_period(tenant_id, UsageRecord.period_for())
        return record.reservations_count if record else 0

    def recalculate_from_database(self, record: UsageRecord) -> UsageRecord:
        """Rebuild the counter from appointments created in the record's month"""
        start, end = _period_bounds(record.period)
        statement = select(func.count()).select_from(Appointment).where(
            Appointment.tenant_id == record.tenant_id,
            Appointment.created_at >= start,
            Appointment.created_at < end,
        )
        record.reservations_count = self.session.exec(statement).one()
        record.updated_at = datetime.utcnow()
        self.session.add(record)
        logger.info(
            f"Usage recalculated for tenant {record.tenant_id} period {record.period}: "
            f"{record.reservations_count}"
        )
        return record
