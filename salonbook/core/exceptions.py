"""
Domain exceptions

Every error raised by the subscription and entitlement layers derives from
SalonBookError so the API layer can render them with a single handler.
"""

from typing import Any, Dict, List, Optional, TYPE_CHECKING

from fastapi import status

if TYPE_CHECKING:
    from salonbook.models.plan import Plan


class SalonBookError(Exception):
    """Base exception class for all domain errors"""

    error_code: str = "salonbook_error"

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


# ============================================================================
# Subscription lifecycle
# ============================================================================


class SubscriptionError(SalonBookError):
    """Base class for subscription lifecycle failures"""

    error_code = "subscription_error"


class SubscriptionNotFound(SubscriptionError):
    error_code = "subscription_not_found"

    def __init__(self, subscription_id: Any = 0):
        self.subscription_id = subscription_id
        super().__init__(
            f"Subscription with ID {subscription_id} not found.",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"subscription_id": str(subscription_id)},
        )


class PlanNotFound(SubscriptionError):
    error_code = "plan_not_found"

    def __init__(self, plan_id: Any = 0):
        self.plan_id = plan_id
        super().__init__(
            f"Plan with ID {plan_id} not found.",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"plan_id": str(plan_id)},
        )


class CannotUpgrade(SubscriptionError):
    error_code = "cannot_upgrade"

    def __init__(self, from_plan: "Plan", to_plan: "Plan"):
        self.from_plan = from_plan
        self.to_plan = to_plan
        super().__init__(
            f"Cannot upgrade from {from_plan.name} to {to_plan.name}.",
            details={"from": from_plan.slug, "to": to_plan.slug},
        )


class CannotDowngrade(SubscriptionError):
    error_code = "cannot_downgrade"

    def __init__(self, from_plan: "Plan", to_plan: "Plan"):
        self.from_plan = from_plan
        self.to_plan = to_plan
        super().__init__(
            f"Cannot downgrade from {from_plan.name} to {to_plan.name}.",
            details={"from": from_plan.slug, "to": to_plan.slug},
        )


class UsageExceedsLimits(SubscriptionError):
    """Current usage does not fit inside the target plan's limits"""

    error_code = "usage_exceeds_limits"

    def __init__(self, violations: Dict[str, Dict[str, int]]):
        self.violations = violations
        summary = ", ".join(
            f"{resource}: {values['current']} (limit: {values['limit']})"
            for resource, values in violations.items()
        )
        super().__init__(
            f"Current usage exceeds new plan limits: {summary}",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details={"violations": violations},
        )


class StripeConfigurationError(SubscriptionError):
    error_code = "stripe_configuration_error"

    def __init__(self, message: str = "No Stripe price ID configured for this plan."):
        super().__init__(f"Stripe error: {message}", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


class AlreadySubscribed(SubscriptionError):
    error_code = "already_subscribed"

    def __init__(self):
        super().__init__("Tenant already has an active subscription.", status_code=status.HTTP_409_CONFLICT)


class AlreadyCanceled(SubscriptionError):
    error_code = "already_canceled"

    def __init__(self):
        super().__init__("Subscription is already canceled.", status_code=status.HTTP_409_CONFLICT)


class NotCanceled(SubscriptionError):
    error_code = "not_canceled"

    def __init__(self):
        super().__init__("Subscription is not canceled.", status_code=status.HTTP_409_CONFLICT)


class CancellationAlreadyEffective(SubscriptionError):
    error_code = "cancellation_already_effective"

    def __init__(self):
        super().__init__("Cancellation has already taken effect.", status_code=status.HTTP_409_CONFLICT)


class NoActiveSubscription(SubscriptionError):
    error_code = "no_active_subscription"

    def __init__(self):
        super().__init__("No active subscription found.", status_code=status.HTTP_404_NOT_FOUND)


class PaymentMethodRequired(SubscriptionError):
    error_code = "payment_method_required"

    def __init__(self):
        super().__init__("Payment method is required for paid plans.", status_code=status.HTTP_402_PAYMENT_REQUIRED)


class ActionNotAllowed(SubscriptionError):
    """The subscription's current state refuses the requested action"""

    error_code = "action_not_allowed"

    def __init__(self, action: str, state_name: str):
        self.action = action
        self.state_name = state_name
        super().__init__(
            f"Cannot {action} a subscription that is {state_name}.",
            status_code=status.HTTP_409_CONFLICT,
            details={"action": action, "state": state_name},
        )


# ============================================================================
# Billing gateway
# ============================================================================


class BillingGatewayError(SalonBookError):
    """Raised when the payment processor rejects or fails a call"""

    error_code = "billing_gateway_error"

    def __init__(self, message: str, operation: Optional[str] = None):
        self.operation = operation
        super().__init__(
            f"Stripe error: {message}",
            status_code=status.HTTP_502_BAD_GATEWAY,
            details={"operation": operation} if operation else {},
        )


# ============================================================================
# Plans and entitlements
# ============================================================================


class PlanHasActiveSubscribers(SalonBookError):
    error_code = "plan_has_active_subscribers"

    def __init__(self, subscriber_count: int = 0):
        self.subscriber_count = subscriber_count
        super().__init__(
            "Cannot deactivate plan with active subscribers. Please migrate subscribers first.",
            status_code=status.HTTP_409_CONFLICT,
            details={"subscriber_count": subscriber_count},
        )


class ResourceLimitReached(SalonBookError):
    error_code = "resource_limit_reached"

    def __init__(self, resource: str, limit: int):
        self.resource = resource
        self.limit = limit
        super().__init__(
            f"You have reached your plan limit of {limit} {resource}.",
            status_code=status.HTTP_403_FORBIDDEN,
            details={"resource": resource, "limit": limit},
        )


# ============================================================================
# Tenancy
# ============================================================================


class TenantNotResolved(SalonBookError):
    error_code = "tenant_not_resolved"

    def __init__(self, message: str = "No tenant in the current request context."):
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST)


class TenantSuspended(SalonBookError):
    error_code = "tenant_suspended"

    def __init__(self):
        super().__init__("This account has been suspended.", status_code=status.HTTP_403_FORBIDDEN)


class ResourceNotFound(SalonBookError):
    error_code = "resource_not_found"

    def __init__(self, resource_type: str, resource_id: Any = None):
        message = f"{resource_type} not found"
        if resource_id is not None:
            message = f"{resource_type} with ID {resource_id} not found"
        super().__init__(
            message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": str(resource_id) if resource_id else None},
        )


# ============================================================================
# Business settings
# ============================================================================


class DuplicateWorkingDay(SalonBookError):
    error_code = "duplicate_working_day"

    def __init__(self, days: List[int]):
        self.days = days
        super().__init__(
            "Each day of the week can only be listed once.",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details={"days": days},
        )
