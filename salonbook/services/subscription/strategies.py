"""
Subscription creation strategies

FreeSubscriptionStrategy handles the free tier without touching the
billing gateway. PaidSubscriptionStrategy provisions the Stripe customer
and subscription inside the same database transaction as the local row,
so a processor failure leaves nothing behind.
"""

from datetime import datetime, timedelta
from typing import List, Optional, Sequence
import structlog

from sqlmodel import Session

from salonbook.core.config import Settings, get_settings
from salonbook.core.database import transaction
from salonbook.core.events import EventBus, TrialStarted, event_bus
from salonbook.core.exceptions import StripeConfigurationError
from salonbook.models.plan import Plan
from salonbook.models.subscription import (
    BillingCycle,
    FREE_SUBSCRIPTION_PREFIX,
    Subscription,
    SubscriptionStatus,
)
from salonbook.models.tenant import Tenant
from salonbook.repositories.tenant_repository import TenantRepository
from salonbook.schemas.subscription import SubscriptionCreate
from salonbook.services.stripe_service import BillingGateway

logger = structlog.get_logger(__name__)


def free_stripe_id(tenant_id) -> str:
    return f"{FREE_SUBSCRIPTION_PREFIX}{tenant_id}"


def apply_free_plan(subscription: Subscription, free_plan: Plan) -> Subscription:
    """Move an existing subscription row onto the free tier"""
    subscription.plan_id = free_plan.id
    subscription.stripe_id = free_stripe_id(subscription.tenant_id)
    subscription.stripe_status = SubscriptionStatus.ACTIVE
    subscription.stripe_price = None
    subscription.billing_cycle = BillingCycle.MONTHLY
    subscription.trial_ends_at = None
    subscription.ends_at = None
    subscription.clear_scheduled_change()
    subscription.touch()
    return subscription


def ensure_billing_customer(session: Session, gateway: BillingGateway, tenant: Tenant) -> str:
    """Create the Stripe customer on first use and remember its id on the tenant"""
    if tenant.stripe_customer_id:
        return tenant.stripe_customer_id

    owner = TenantRepository(session).get_owner(tenant.id)
    customer_id = gateway.create_customer(tenant, email=owner.email if owner else None)
    tenant.stripe_customer_id = customer_id
    tenant.updated_at = datetime.utcnow()
    session.add(tenant)
    return customer_id


def attach_default_payment_method(
    session: Session,
    gateway: BillingGateway,
    tenant: Tenant,
    customer_id: str,
    payment_method_id: str,
) -> None:
    gateway.attach_payment_method(customer_id, payment_method_id)
    gateway.set_default_payment_method(customer_id, payment_method_id)
    card = (gateway.get_payment_method(payment_method_id) or {}).get("card") or {}
    tenant.pm_type = card.get("brand")
    tenant.pm_last_four = card.get("last4")
    session.add(tenant)


def resolve_price_id(plan: Plan, billing_cycle: BillingCycle) -> str:
    price_id = plan.stripe_price_id_for(BillingCycle(billing_cycle).value)
    if not price_id:
        raise StripeConfigurationError()
    return price_id


class SubscriptionCreationStrategy:
    def supports(self, plan: Plan) -> bool:
        raise NotImplementedError

    def create(self, data: SubscriptionCreate, tenant: Tenant, plan: Plan) -> Subscription:
        raise NotImplementedError


class FreeSubscriptionStrategy(SubscriptionCreationStrategy):
    def __init__(self, session: Session):
        self.session = session

    def supports(self, plan: Plan) -> bool:
        return plan.is_free()

    def create(self, data: SubscriptionCreate, tenant: Tenant, plan: Plan) -> Subscription:
        subscription = Subscription(
            tenant_id=tenant.id,
            plan_id=plan.id,
            type="default",
            stripe_id=free_stripe_id(tenant.id),
            stripe_status=SubscriptionStatus.ACTIVE,
            stripe_price=None,
            billing_cycle=BillingCycle.MONTHLY,
            trial_ends_at=None,
        )
        with transaction(self.session):
            self.session.add(subscription)
        self.session.refresh(subscription)

        logger.info(f"Free subscription created for tenant {tenant.id}")
        return subscription


class PaidSubscriptionStrategy(SubscriptionCreationStrategy):
    def __init__(
        self,
        session: Session,
        gateway: BillingGateway,
        events: Optional[EventBus] = None,
        settings: Optional[Settings] = None,
    ):
        self.session = session
        self.gateway = gateway
        self.events = events or event_bus
        self.settings = settings or get_settings()

    def supports(self, plan: Plan) -> bool:
        return not plan.is_free()

    def create(self, data: SubscriptionCreate, tenant: Tenant, plan: Plan) -> Subscription:
        trial_days = self.settings.SUBSCRIPTION_TRIAL_DAYS if data.start_trial else None

        # Stripe calls share the transaction: a processor error rolls back the customer id too
        with transaction(self.session):
            customer_id = ensure_billing_customer(self.session, self.gateway, tenant)
            price_id = resolve_price_id(plan, data.billing_cycle)

            if data.payment_method_id:
                attach_default_payment_method(
                    self.session, self.gateway, tenant, customer_id, data.payment_method_id
                )

            remote = self.gateway.create_subscription(
                customer_id,
                price_id,
                payment_method_id=data.payment_method_id,
                trial_days=trial_days,
            )

            subscription = Subscription(
                tenant_id=tenant.id,
                plan_id=plan.id,
                type="default",
                stripe_id=remote.id,
                stripe_status=SubscriptionStatus(remote.status),
                stripe_price=price_id,
                billing_cycle=data.billing_cycle,
                trial_ends_at=datetime.utcnow() + timedelta(days=trial_days) if data.start_trial else None,
            )
            self.session.add(subscription)

        self.session.refresh(subscription)
        logger.info(
            f"Paid subscription created for tenant {tenant.id}",
            plan=plan.slug,
            stripe_id=subscription.stripe_id,
            trial=bool(data.start_trial),
        )

        if data.start_trial and TenantRepository(self.session).get_owner(tenant.id) is not None:
            self.events.publish(TrialStarted(
                tenant_id=tenant.id,
                subscription_id=subscription.id,
                plan_slug=plan.slug,
                trial_ends_at=subscription.trial_ends_at,
            ))

        return subscription


class SubscriptionStrategyResolver:
    """Picks the single strategy that supports a plan"""

    def __init__(self, strategies: Sequence[SubscriptionCreationStrategy]):
        self.strategies: List[SubscriptionCreationStrategy] = list(strategies)

    def resolve(self, plan: Plan) -> SubscriptionCreationStrategy:
        for strategy in self.strategies:
            if strategy.supports(plan):
                return strategy
        raise RuntimeError(f"No strategy found for plan: {plan.slug}")

    @classmethod
    def default(
        cls,
        session: Session,
        gateway: BillingGateway,
        events: Optional[EventBus] = None,
        settings: Optional[Settings] = None,
    ) -> "SubscriptionStrategyResolver":
        return cls([
            FreeSubscriptionStrategy(session),
            PaidSubscriptionStrategy(session, gateway, events, settings),
        ])
