from salonbook.models.tenant import Tenant, TenantStatus, BusinessType
from salonbook.models.user import User, UserRole
from salonbook.models.plan import Plan, PlanSlug, UNLIMITED
from salonbook.models.subscription import Subscription, SubscriptionStatus, BillingCycle, FREE_SUBSCRIPTION_PREFIX
from salonbook.models.usage_record import UsageRecord
from salonbook.models.staff import StaffProfile
from salonbook.models.service import Service
from salonbook.models.client import Client
from salonbook.models.appointment import Appointment, AppointmentStatus
from salonbook.models.working_hours import WorkingHours
from salonbook.models.entitlements import Feature, FeatureCategory, UsageResource
