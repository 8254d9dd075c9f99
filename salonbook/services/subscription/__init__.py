"""
Subscription lifecycle and plan entitlements
"""

from salonbook.services.subscription.states import SubscriptionState, SubscriptionStateFactory
from salonbook.services.subscription.validation import (
    ValidationChain,
    ValidationContext,
    build_downgrade_chain,
    build_upgrade_chain,
)
from salonbook.services.subscription.strategies import (
    FreeSubscriptionStrategy,
    PaidSubscriptionStrategy,
    SubscriptionStrategyResolver,
)
from salonbook.services.subscription.subscription_service import SubscriptionService
from salonbook.services.subscription.usage import UsageLimitService, UsageValidationService
from salonbook.services.subscription.feature_gate import FeatureGateService
from salonbook.services.subscription.comparison import PlanComparisonService
from salonbook.services.subscription.lifecycle import SubscriptionLifecycle
from salonbook.services.subscription.maintenance import SubscriptionMaintenance
from salonbook.services.subscription.webhooks import StripeWebhookHandler

__all__ = [
    "SubscriptionState",
    "SubscriptionStateFactory",
    "ValidationChain",
    "ValidationContext",
    "build_downgrade_chain",
    "build_upgrade_chain",
    "FreeSubscriptionStrategy",
    "PaidSubscriptionStrategy",
    "SubscriptionStrategyResolver",
    "SubscriptionService",
    "UsageLimitService",
    "UsageValidationService",
    "FeatureGateService",
    "PlanComparisonService",
    "SubscriptionLifecycle",
    "SubscriptionMaintenance",
    "StripeWebhookHandler",
]
