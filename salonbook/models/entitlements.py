"""
Gated features and metered resources
"""

from enum import Enum
from typing import Dict, List, Tuple

from salonbook.models.plan import PlanSlug


class FeatureCategory(str, Enum):
    CUSTOMIZATION = "customization"
    INTEGRATIONS = "integrations"
    ADVANCED_FEATURES = "advanced_features"
    NOTIFICATIONS = "notifications"


class Feature(str, Enum):
    """Plan-gated features. The value is the key used in Plan.features."""
    CUSTOM_LOGO = "custom_logo"
    CUSTOM_COLORS = "custom_colors"
    CUSTOM_BOOKING_URL = "custom_booking_url"
    CUSTOM_DOMAIN = "custom_domain"
    WHITE_LABEL = "white_label"
    GOOGLE_CALENDAR_SYNC = "google_calendar_sync"
    PAYMENT_GATEWAY = "payment_gateway"
    API_ACCESS = "api_access"
    ZAPIER_INTEGRATION = "zapier_integration"
    MULTI_LANGUAGE = "multi_language"
    RECURRING_APPOINTMENTS = "recurring_appointments"
    STAFF_PERMISSIONS = "staff_permissions"
    CLIENT_SEGMENTATION = "client_segmentation"
    WAITLIST_MANAGEMENT = "waitlist_management"
    GIFT_VOUCHERS = "gift_vouchers"
    EMAIL_REMINDERS = "email_reminders"
    SMS_REMINDERS = "sms_reminders"

    @property
    def minimum_plan(self) -> PlanSlug:
        return _FEATURE_META[self][0]

    @property
    def label(self) -> str:
        return _FEATURE_META[self][1]

    @property
    def category(self) -> FeatureCategory:
        return _FEATURE_META[self][2]

    @classmethod
    def by_category(cls) -> Dict[FeatureCategory, List["Feature"]]:
        grouped: Dict[FeatureCategory, List[Feature]] = {category: [] for category in FeatureCategory}
        for feature in cls:
            grouped[feature.category].append(feature)
        return grouped


_FEATURE_META: Dict[Feature, Tuple[PlanSlug, str, FeatureCategory]] = {
    Feature.CUSTOM_LOGO: (PlanSlug.EASY, "Custom logo", FeatureCategory.CUSTOMIZATION),
    Feature.CUSTOM_COLORS: (PlanSlug.EASY, "Custom colors", FeatureCategory.CUSTOMIZATION),
    Feature.CUSTOM_BOOKING_URL: (PlanSlug.EASY, "Custom booking URL", FeatureCategory.CUSTOMIZATION),
    Feature.CUSTOM_DOMAIN: (PlanSlug.SMART, "Custom domain", FeatureCategory.CUSTOMIZATION),
    Feature.WHITE_LABEL: (PlanSlug.PREMIUM, "White label", FeatureCategory.CUSTOMIZATION),
    Feature.GOOGLE_CALENDAR_SYNC: (PlanSlug.EASY, "Google Calendar sync", FeatureCategory.INTEGRATIONS),
    Feature.PAYMENT_GATEWAY: (PlanSlug.EASY, "Online payments", FeatureCategory.INTEGRATIONS),
    Feature.API_ACCESS: (PlanSlug.SMART, "API access", FeatureCategory.INTEGRATIONS),
    Feature.ZAPIER_INTEGRATION: (PlanSlug.SMART, "Zapier integration", FeatureCategory.INTEGRATIONS),
    Feature.MULTI_LANGUAGE: (PlanSlug.EASY, "Multi-language booking page", FeatureCategory.ADVANCED_FEATURES),
    Feature.RECURRING_APPOINTMENTS: (PlanSlug.EASY, "Recurring appointments", FeatureCategory.ADVANCED_FEATURES),
    Feature.STAFF_PERMISSIONS: (PlanSlug.SMART, "Staff permissions", FeatureCategory.ADVANCED_FEATURES),
    Feature.CLIENT_SEGMENTATION: (PlanSlug.SMART, "Client segmentation", FeatureCategory.ADVANCED_FEATURES),
    Feature.WAITLIST_MANAGEMENT: (PlanSlug.SMART, "Waitlist management", FeatureCategory.ADVANCED_FEATURES),
    Feature.GIFT_VOUCHERS: (PlanSlug.SMART, "Gift vouchers", FeatureCategory.ADVANCED_FEATURES),
    Feature.EMAIL_REMINDERS: (PlanSlug.EASY, "Email reminders", FeatureCategory.NOTIFICATIONS),
    Feature.SMS_REMINDERS: (PlanSlug.SMART, "SMS reminders", FeatureCategory.NOTIFICATIONS),
}


class UsageResource(str, Enum):
    """Metered resources. The value is the resource name used in usage reports."""
    RESERVATIONS = "reservations"
    USERS = "users"
    STAFF = "staff"
    SERVICES = "services"
    CLIENTS = "clients"

    @property
    def plan_limit_key(self) -> str:
        """Key of this resource in Plan.limits"""
        if self == UsageResource.RESERVATIONS:
            return "reservations_per_month"
        return self.value

    @classmethod
    def for_plan_validation(cls) -> List["UsageResource"]:
        """Resources checked before a downgrade. Reservations reset monthly."""
        return [cls.USERS, cls.STAFF, cls.SERVICES, cls.CLIENTS]
