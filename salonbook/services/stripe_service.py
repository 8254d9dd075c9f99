"""
Stripe billing gateway
Customer, payment-method and subscription operations against the Stripe API
"""

from dataclasses import dataclass
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol, TYPE_CHECKING

import stripe
import structlog

from salonbook.core.config import Settings, get_settings
from salonbook.core.exceptions import BillingGatewayError

if TYPE_CHECKING:
    from salonbook.models.tenant import Tenant

logger = structlog.get_logger(__name__)


def from_timestamp(value: Optional[int]) -> Optional[datetime]:
    """Stripe epoch seconds to naive UTC"""
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc).replace(tzinfo=None)


@dataclass
class GatewaySubscription:
    """Subset of a processor subscription the core mirrors locally"""
    id: str
    status: str
    current_period_end: Optional[datetime] = None
    trial_end: Optional[datetime] = None
    price_id: Optional[str] = None


class BillingGateway(Protocol):
    """Operations the subscription core needs from the payment processor"""

    def is_configured(self) -> bool: ...

    def create_customer(self, tenant: "Tenant", email: Optional[str] = None) -> str: ...

    def attach_payment_method(self, customer_id: str, payment_method_id: str) -> Dict[str, Any]: ...

    def set_default_payment_method(self, customer_id: str, payment_method_id: str) -> Dict[str, Any]: ...

    def get_payment_method(self, payment_method_id: str) -> Dict[str, Any]: ...

    def get_default_payment_method(self, customer_id: str) -> Optional[str]: ...

    def create_subscription(
        self,
        customer_id: str,
        price_id: str,
        payment_method_id: Optional[str] = None,
        trial_days: Optional[int] = None,
    ) -> GatewaySubscription: ...

    def swap_subscription_price(self, subscription_id: str, price_id: str) -> GatewaySubscription: ...

    def cancel_subscription_at_period_end(self, subscription_id: str) -> GatewaySubscription: ...

    def cancel_subscription_now(self, subscription_id: str) -> GatewaySubscription: ...

    def resume_subscription(self, subscription_id: str) -> GatewaySubscription: ...

    def get_subscription(self, subscription_id: str) -> GatewaySubscription: ...

    def create_setup_intent(self, customer_id: str) -> Dict[str, str]: ...


class StripeService:
    """Stripe implementation of the billing gateway"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.api_key = self.settings.STRIPE_SECRET_KEY
        stripe.max_network_retries = self.settings.STRIPE_MAX_NETWORK_RETRIES

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _call(self, operation: str, fn, *args, **kwargs) -> Any:
        """Invoke the SDK and translate processor failures"""
        if not self.is_configured():
            raise BillingGatewayError("Stripe is not configured.", operation=operation)
        try:
            return fn(*args, api_key=self.api_key, **kwargs)
        except stripe.StripeError as e:
            logger.error(f"Stripe {operation} failed: {e}", operation=operation)
            raise BillingGatewayError(getattr(e, "user_message", None) or str(e), operation=operation) from e

    @staticmethod
    def _to_subscription(obj: Any) -> GatewaySubscription:
        period_end = obj.get("current_period_end")
        items = (obj.get("items") or {}).get("data") or []
        if period_end is None and items:
            # Newer API versions carry the period on the subscription item
            period_end = items[0].get("current_period_end")
        price_id = items[0]["price"]["id"] if items and items[0].get("price") else None
        return GatewaySubscription(
            id=obj["id"],
            status=obj["status"],
            current_period_end=from_timestamp(period_end),
            trial_end=from_timestamp(obj.get("trial_end")),
            price_id=price_id,
        )

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    def create_customer(self, tenant: "Tenant", email: Optional[str] = None) -> str:
        """
        Create a Stripe customer for a tenant

        Args:
            tenant: Tenant being billed
            email: Owner email used for invoices

        Returns:
            The Stripe customer id
        """
        params: Dict[str, Any] = {
            "name": tenant.name,
            "metadata": {"tenant_id": str(tenant.id)},
        }
        if email:
            params["email"] = email
        if tenant.phone:
            params["phone"] = tenant.phone
        if tenant.address:
            params["address"] = {"line1": tenant.address, "country": tenant.country}

        customer = self._call("create_customer", stripe.Customer.create, **params)
        logger.info(f"Stripe customer created for tenant {tenant.id}: {customer['id']}")
        return customer["id"]

    def get_customer(self, customer_id: str) -> Dict[str, Any]:
        return self._call("get_customer", stripe.Customer.retrieve, customer_id)

    def update_customer(self, customer_id: str, **fields: Any) -> Dict[str, Any]:
        return self._call("update_customer", stripe.Customer.modify, customer_id, **fields)

    # ------------------------------------------------------------------
    # Payment methods
    # ------------------------------------------------------------------

    def attach_payment_method(self, customer_id: str, payment_method_id: str) -> Dict[str, Any]:
        return self._call(
            "attach_payment_method",
            stripe.PaymentMethod.attach,
            payment_method_id,
            customer=customer_id,
        )

    def set_default_payment_method(self, customer_id: str, payment_method_id: str) -> Dict[str, Any]:
        return self._call(
            "set_default_payment_method",
            stripe.Customer.modify,
            customer_id,
            invoice_settings={"default_payment_method": payment_method_id},
        )

    def get_payment_method(self, payment_method_id: str) -> Dict[str, Any]:
        return self._call("get_payment_method", stripe.PaymentMethod.retrieve, payment_method_id)

    def detach_payment_method(self, payment_method_id: str) -> Dict[str, Any]:
        return self._call("detach_payment_method", stripe.PaymentMethod.detach, payment_method_id)

    def get_default_payment_method(self, customer_id: str) -> Optional[str]:
        customer = self.get_customer(customer_id)
        invoice_settings = customer.get("invoice_settings") or {}
        default = invoice_settings.get("default_payment_method")
        if isinstance(default, dict):
            return default.get("id")
        return default

    def create_setup_intent(self, customer_id: str) -> Dict[str, str]:
        """Setup intent used by the frontend to collect a card"""
        intent = self._call(
            "create_setup_intent",
            stripe.SetupIntent.create,
            customer=customer_id,
            payment_method_types=["card"],
        )
        return {"client_secret": intent["client_secret"], "id": intent["id"]}

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def get_price(self, price_id: str) -> Dict[str, Any]:
        return self._call("get_price", stripe.Price.retrieve, price_id)

    def get_product(self, product_id: str) -> Dict[str, Any]:
        return self._call("get_product", stripe.Product.retrieve, product_id)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def create_subscription(
        self,
        customer_id: str,
        price_id: str,
        payment_method_id: Optional[str] = None,
        trial_days: Optional[int] = None,
    ) -> GatewaySubscription:
        """
        Create a processor subscription

        Args:
            customer_id: Stripe customer
            price_id: Stripe price for the plan and billing cycle
            payment_method_id: Card to charge, also set as the subscription default
            trial_days: Trial length, omitted when no trial was requested

        Returns:
            GatewaySubscription with the Stripe id and status
        """
        params: Dict[str, Any] = {
            "customer": customer_id,
            "items": [{"price": price_id}],
            "payment_behavior": "default_incomplete" if payment_method_id is None else "allow_incomplete",
        }
        if payment_method_id:
            params["default_payment_method"] = payment_method_id
        if trial_days:
            params["trial_period_days"] = trial_days

        subscription = self._call("create_subscription", stripe.Subscription.create, **params)
        logger.info(f"Stripe subscription created: {subscription['id']} ({subscription['status']})")
        return self._to_subscription(subscription)

    def get_subscription(self, subscription_id: str) -> GatewaySubscription:
        return self._to_subscription(
            self._call("get_subscription", stripe.Subscription.retrieve, subscription_id)
        )

    def swap_subscription_price(self, subscription_id: str, price_id: str) -> GatewaySubscription:
        """Replace the subscription's price, prorating the difference"""
        current = self._call("get_subscription", stripe.Subscription.retrieve, subscription_id)
        item_id = current["items"]["data"][0]["id"]
        subscription = self._call(
            "swap_subscription_price",
            stripe.Subscription.modify,
            subscription_id,
            items=[{"id": item_id, "price": price_id}],
            proration_behavior="create_prorations",
            cancel_at_period_end=False,
        )
        return self._to_subscription(subscription)

    def cancel_subscription_at_period_end(self, subscription_id: str) -> GatewaySubscription:
        subscription = self._call(
            "cancel_subscription",
            stripe.Subscription.modify,
            subscription_id,
            cancel_at_period_end=True,
        )
        return self._to_subscription(subscription)

    def cancel_subscription_now(self, subscription_id: str) -> GatewaySubscription:
        subscription = self._call("cancel_subscription_now", stripe.Subscription.cancel, subscription_id)
        return self._to_subscription(subscription)

    def resume_subscription(self, subscription_id: str) -> GatewaySubscription:
        subscription = self._call(
            "resume_subscription",
            stripe.Subscription.modify,
            subscription_id,
            cancel_at_period_end=False,
        )
        return self._to_subscription(subscription)

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    def construct_webhook_event(self, payload: bytes, sig_header: str) -> Dict[str, Any]:
        """Verify the signature and parse a webhook payload.

        Raises ValueError for malformed payloads and
        stripe.SignatureVerificationError for bad signatures.
        """
        if not self.settings.STRIPE_WEBHOOK_SECRET:
            raise BillingGatewayError("Webhook secret not configured.", operation="webhook")
        event = stripe.Webhook.construct_event(
            payload=payload,
            sig_header=sig_header,
            secret=self.settings.STRIPE_WEBHOOK_SECRET,
        )
        logger.info(f"Stripe webhook verified: {event['type']}")
        # Plain dicts for the handlers
        return json.loads(payload)
