from salonbook.repositories.base import TenantScopedRepository
from salonbook.repositories.plan_repository import PlanRepository
from salonbook.repositories.subscription_repository import SubscriptionRepository
from salonbook.repositories.tenant_repository import TenantRepository
from salonbook.repositories.usage_record_repository import UsageRecordRepository
