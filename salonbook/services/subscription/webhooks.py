"""
Stripe webhook synchronisation

Mirrors processor-side subscription changes onto local rows. Events for
subscriptions we do not know are logged and acknowledged.
"""

from datetime import datetime
from typing import Any, Callable, Dict, Optional
import structlog

from sqlmodel import Session, select

from salonbook.core.config import Settings, get_settings
from salonbook.core.database import transaction
from salonbook.core.events import (
    EventBus,
    PaymentFailed,
    SubscriptionDowngraded,
    TrialEnding,
    event_bus,
)
from salonbook.core.tenancy import TenantScope
from salonbook.models.plan import Plan
from salonbook.models.subscription import BillingCycle, Subscription, SubscriptionStatus
from salonbook.repositories.plan_repository import PlanRepository
from salonbook.repositories.subscription_repository import SubscriptionRepository
from salonbook.services.stripe_service import from_timestamp
from salonbook.services.subscription.strategies import apply_free_plan

logger = structlog.get_logger(__name__)


class StripeWebhookHandler:
    def __init__(
        self,
        session: Session,
        events: Optional[EventBus] = None,
        settings: Optional[Settings] = None,
    ):
        self.session = session
        self.events = events or event_bus
        self.settings = settings or get_settings()
        self.plans = PlanRepository(session)
        self.subscriptions = SubscriptionRepository(session, TenantScope.system())
        self._handlers: Dict[str, Callable[[Dict[str, Any]], str]] = {
            "customer.subscription.updated": self.handle_subscription_updated,
            "customer.subscription.deleted": self.handle_subscription_deleted,
            "customer.subscription.trial_will_end": self.handle_trial_will_end,
            "invoice.payment_failed": self.handle_payment_failed,
        }

    def handle(self, event: Dict[str, Any]) -> str:
        """Dispatch a verified webhook event; returns a short outcome string"""
        event_type = event["type"]
        handler = self._handlers.get(event_type)
        if handler is None:
            logger.debug(f"Ignoring webhook event {event_type}")
            return "ignored"

        outcome = handler(event["data"]["object"])
        logger.info(f"Webhook {event_type} handled", outcome=outcome, event_id=event.get("id"))
        return outcome

    def _find(self, stripe_id: Optional[str]) -> Optional[Subscription]:
        if not stripe_id:
            return None
        subscription = self.subscriptions.get_by_stripe_id(stripe_id)
        if subscription is None:
            logger.warning(f"Webhook for unknown subscription {stripe_id}")
        return subscription

    def _plan_for_price(self, price_id: str) -> Optional[tuple[Plan, BillingCycle]]:
        statement = select(Plan).where(
            (Plan.stripe_monthly_price_id == price_id) | (Plan.stripe_yearly_price_id == price_id)
        )
        plan = self.session.exec(statement).first()
        if plan is None:
            return None
        cycle = BillingCycle.YEARLY if plan.stripe_yearly_price_id == price_id else BillingCycle.MONTHLY
        return plan, cycle

    def handle_subscription_updated(self, data: Dict[str, Any]) -> str:
        subscription = self._find(data.get("id"))
        if subscription is None:
            return "unknown_subscription"

        items = (data.get("items") or {}).get("data") or []

        with transaction(self.session):
            subscription.stripe_status = SubscriptionStatus(data["status"])
            subscription.trial_ends_at = from_timestamp(data.get("trial_end"))

            if data.get("cancel_at_period_end") or data.get("cancel_at"):
                period_end = data.get("current_period_end")
                if period_end is None and items:
                    period_end = items[0].get("current_period_end")
                subscription.ends_at = from_timestamp(data.get("cancel_at") or period_end)
            elif subscription.stripe_status != SubscriptionStatus.CANCELED:
                subscription.ends_at = None

            price_id = items[0]["price"]["id"] if items and items[0].get("price") else None
            if price_id and price_id != subscription.stripe_price:
                match = self._plan_for_price(price_id)
                subscription.stripe_price = price_id
                if match is not None:
                    plan, cycle = match
                    subscription.plan_id = plan.id
                    subscription.billing_cycle = cycle

            subscription.touch()
            self.session.add(subscription)
        return "updated"

    def handle_subscription_deleted(self, data: Dict[str, Any]) -> str:
        subscription = self._find(data.get("id"))
        if subscription is None:
            return "unknown_subscription"

        free_plan = self.plans.get_free_plan()
        with transaction(self.session):
            if free_plan is not None:
                subscription.plan_id = free_plan.id
            subscription.stripe_status = SubscriptionStatus.CANCELED
            subscription.ends_at = subscription.ends_at or datetime.utcnow()
            subscription.clear_scheduled_change()
            subscription.touch()
            self.session.add(subscription)
        return "canceled"

    def handle_trial_will_end(self, data: Dict[str, Any]) -> str:
        subscription = self._find(data.get("id"))
        if subscription is None:
            return "unknown_subscription"

        self.events.publish(TrialEnding(
            tenant_id=subscription.tenant_id,
            subscription_id=subscription.id,
            plan_slug=subscription.plan.slug if subscription.plan else "",
        ))
        return "notified"

    def handle_payment_failed(self, data: Dict[str, Any]) -> str:
        stripe_id = data.get("subscription")
        if stripe_id is None:
            # Newer API versions nest the subscription under parent
            details = (data.get("parent") or {}).get("subscription_details") or {}
            stripe_id = details.get("subscription")
        subscription = self._find(stripe_id)
        if subscription is None:
            return "unknown_subscription"

        attempts = int(data.get("attempt_count") or 0)
        give_up = attempts >= self.settings.SUBSCRIPTION_MAX_FAILED_PAYMENT_ATTEMPTS
        free_plan = self.plans.get_free_plan() if give_up else None

        with transaction(self.session):
            if free_plan is not None:
                apply_free_plan(subscription, free_plan)
            else:
                subscription.stripe_status = SubscriptionStatus.PAST_DUE
                subscription.touch()
            self.session.add(subscription)

        plan_slug = subscription.plan.slug if subscription.plan else ""
        self.events.publish(PaymentFailed(
            tenant_id=subscription.tenant_id,
            subscription_id=subscription.id,
            plan_slug=plan_slug,
            attempt_count=attempts,
        ))

        if free_plan is not None:
            logger.warning(f"Subscription {subscription.id} moved to free after {attempts} failed payments")
            self.events.publish(SubscriptionDowngraded(
                tenant_id=subscription.tenant_id,
                subscription_id=subscription.id,
                plan_slug=free_plan.slug,
            ))
            return "downgraded"
        return "past_due"
