"""
Subscription lifecycle operations

Every mutating operation follows the same order: validate (chain), ask the
state object whether the action is legal, mutate inside one transaction,
then publish a domain event once the transaction has committed.
"""

from datetime import datetime
from typing import Optional
import uuid
import structlog

from sqlmodel import Session

from salonbook.core.config import Settings, get_settings
from salonbook.core.database import transaction
from salonbook.core.events import (
    DowngradeScheduled,
    EventBus,
    SubscriptionCanceled,
    SubscriptionCreated,
    SubscriptionResumed,
    SubscriptionUpgraded,
    event_bus,
)
from salonbook.core.exceptions import (
    ActionNotAllowed,
    AlreadyCanceled,
    AlreadySubscribed,
    CancellationAlreadyEffective,
    NoActiveSubscription,
    NotCanceled,
    PlanNotFound,
)
from salonbook.core.tenancy import TenantScope
from salonbook.models.subscription import BillingCycle, Subscription, SubscriptionStatus
from salonbook.models.tenant import Tenant
from salonbook.repositories.plan_repository import PlanRepository
from salonbook.repositories.subscription_repository import SubscriptionRepository
from salonbook.schemas.subscription import SubscriptionCreate
from salonbook.services.stripe_service import BillingGateway
from salonbook.services.subscription.states import SubscriptionState, SubscriptionStateFactory
from salonbook.services.subscription.strategies import (
    SubscriptionStrategyResolver,
    attach_default_payment_method,
    ensure_billing_customer,
    resolve_price_id,
)
from salonbook.services.subscription.subscription_service import SubscriptionService
from salonbook.services.subscription.usage import UsageValidationService
from salonbook.services.subscription.validation import (
    ValidationContext,
    build_downgrade_chain,
    build_upgrade_chain,
)

logger = structlog.get_logger(__name__)


class SubscriptionLifecycle:
    """Create, upgrade, downgrade, cancel and resume a tenant's subscription"""

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
        self.plans = PlanRepository(session)
        self.subscriptions = SubscriptionService(session)
        self.usage = UsageValidationService(session, self.settings)
        self.strategies = SubscriptionStrategyResolver.default(session, gateway, self.events, self.settings)
        self.upgrade_chain = build_upgrade_chain(self.subscriptions)
        self.downgrade_chain = build_downgrade_chain(self.subscriptions, self.usage)

    def _repository(self, tenant: Tenant) -> SubscriptionRepository:
        return SubscriptionRepository(self.session, TenantScope().for_tenant(tenant.id))

    def _target_subscription(self, tenant: Tenant, subscription_id: Optional[uuid.UUID]) -> Optional[Subscription]:
        repository = self._repository(tenant)
        if subscription_id is not None:
            return repository.get(subscription_id)
        return repository.find_current(tenant.id)

    @staticmethod
    def _require(state: SubscriptionState, allowed: bool, action: str) -> None:
        if not allowed:
            raise ActionNotAllowed(action, state.display_name.lower())

    def get_state(self, subscription: Subscription) -> SubscriptionState:
        return SubscriptionStateFactory.make(subscription)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, tenant: Tenant, data: SubscriptionCreate) -> Subscription:
        if self._repository(tenant).find_current(tenant.id) is not None:
            raise AlreadySubscribed()

        plan = self.plans.get(data.plan_id)
        if plan is None:
            raise PlanNotFound(data.plan_id)

        subscription = self.strategies.resolve(plan).create(data, tenant, plan)

        self.events.publish(SubscriptionCreated(
            tenant_id=tenant.id,
            subscription_id=subscription.id,
            plan_slug=plan.slug,
        ))
        return subscription

    # ------------------------------------------------------------------
    # Upgrade
    # ------------------------------------------------------------------

    def upgrade(
        self,
        tenant: Tenant,
        plan_id: uuid.UUID,
        subscription_id: Optional[uuid.UUID] = None,
        billing_cycle: Optional[BillingCycle] = None,
        payment_method_id: Optional[str] = None,
    ) -> Subscription:
        subscription = self._target_subscription(tenant, subscription_id)
        plan = self.plans.get(plan_id)

        self.upgrade_chain.validate(ValidationContext.for_upgrade(
            subscription, plan, subscription_id=subscription_id, plan_id=plan_id
        ))
        state = self.get_state(subscription)
        self._require(state, state.can_upgrade(), "upgrade")

        previous_slug = subscription.plan.slug if subscription.plan else None
        cycle = BillingCycle(billing_cycle or subscription.billing_cycle)

        with transaction(self.session):
            subscription.clear_scheduled_change()
            price_id = resolve_price_id(plan, cycle)

            if subscription.is_free():
                # Leaving the free tier starts a real processor subscription
                customer_id = ensure_billing_customer(self.session, self.gateway, tenant)
                if payment_method_id:
                    attach_default_payment_method(
                        self.session, self.gateway, tenant, customer_id, payment_method_id
                    )
                remote = self.gateway.create_subscription(
                    customer_id, price_id, payment_method_id=payment_method_id
                )
                subscription.stripe_id = remote.id
                subscription.stripe_status = SubscriptionStatus(remote.status)
            else:
                self.gateway.swap_subscription_price(subscription.stripe_id, price_id)

            subscription.plan_id = plan.id
            subscription.stripe_price = price_id
            subscription.billing_cycle = cycle
            subscription.ends_at = None
            subscription.touch()
            self.session.add(subscription)

        logger.info(f"Subscription upgraded for tenant {tenant.id}", from_plan=previous_slug, to_plan=plan.slug)
        self.events.publish(SubscriptionUpgraded(
            tenant_id=tenant.id,
            subscription_id=subscription.id,
            plan_slug=plan.slug,
            previous_plan_slug=previous_slug,
        ))
        return subscription

    # ------------------------------------------------------------------
    # Downgrade
    # ------------------------------------------------------------------

    def downgrade(
        self,
        tenant: Tenant,
        plan_id: uuid.UUID,
        subscription_id: Optional[uuid.UUID] = None,
    ) -> Subscription:
        """Schedule a move to a lower plan at the end of the billing period"""
        subscription = self._target_subscription(tenant, subscription_id)
        plan = self.plans.get(plan_id)

        self.downgrade_chain.validate(ValidationContext.for_downgrade(
            subscription, plan, subscription_id=subscription_id, plan_id=plan_id
        ))
        state = self.get_state(subscription)
        self._require(state, state.can_downgrade(), "downgrade")

        with transaction(self.session):
            if subscription.is_free():
                effective_at = datetime.utcnow()
            else:
                remote = self.gateway.get_subscription(subscription.stripe_id)
                effective_at = remote.current_period_end or datetime.utcnow()

            subscription.scheduled_plan_id = plan.id
            subscription.scheduled_change_at = effective_at
            subscription.touch()
            self.session.add(subscription)

        logger.info(
            f"Downgrade scheduled for tenant {tenant.id}",
            to_plan=plan.slug,
            effective_at=effective_at.isoformat(),
        )
        self.events.publish(DowngradeScheduled(
            tenant_id=tenant.id,
            subscription_id=subscription.id,
            plan_slug=plan.slug,
            effective_at=effective_at,
        ))
        return subscription

    # ------------------------------------------------------------------
    # Billing cycle
    # ------------------------------------------------------------------

    def change_billing_cycle(self, tenant: Tenant, billing_cycle: BillingCycle) -> Subscription:
        subscription = self._repository(tenant).find_current(tenant.id)
        if subscription is None:
            raise NoActiveSubscription()

        state = self.get_state(subscription)
        self._require(state, "change_billing_cycle" in state.allowed_actions(), "change the billing cycle of")

        cycle = BillingCycle(billing_cycle)
        if cycle == BillingCycle(subscription.billing_cycle):
            return subscription

        with transaction(self.session):
            price_id = resolve_price_id(subscription.plan, cycle)
            self.gateway.swap_subscription_price(subscription.stripe_id, price_id)
            subscription.stripe_price = price_id
            subscription.billing_cycle = cycle
            subscription.touch()
            self.session.add(subscription)

        logger.info(f"Billing cycle changed for tenant {tenant.id}", billing_cycle=cycle.value)
        return subscription

    # ------------------------------------------------------------------
    # Cancel / resume
    # ------------------------------------------------------------------

    def cancel(self, tenant: Tenant) -> Subscription:
        """Free subscriptions end now; paid ones at the end of the period"""
        subscription = self._repository(tenant).find_current(tenant.id)
        if subscription is None:
            raise NoActiveSubscription()
        if subscription.canceled():
            raise AlreadyCanceled()

        state = self.get_state(subscription)
        self._require(state, state.can_cancel(), "cancel")

        with transaction(self.session):
            if subscription.is_free():
                subscription.ends_at = datetime.utcnow()
                subscription.stripe_status = SubscriptionStatus.CANCELED
            else:
                remote = self.gateway.cancel_subscription_at_period_end(subscription.stripe_id)
                subscription.ends_at = remote.current_period_end or datetime.utcnow()

            subscription.clear_scheduled_change()
            subscription.touch()
            self.session.add(subscription)

        plan_slug = subscription.plan.slug if subscription.plan else ""
        logger.info(f"Subscription canceled for tenant {tenant.id}", ends_at=subscription.ends_at.isoformat())
        self.events.publish(SubscriptionCanceled(
            tenant_id=tenant.id,
            subscription_id=subscription.id,
            plan_slug=plan_slug,
            ends_at=subscription.ends_at,
        ))
        return subscription

    def resume(self, tenant: Tenant) -> Subscription:
        """Undo a cancellation while its grace period lasts"""
        subscription = self.subscriptions.get_latest_subscription(tenant)
        if subscription is None:
            raise NoActiveSubscription()
        if subscription.ends_at is None:
            raise NotCanceled()
        if subscription.ends_at <= datetime.utcnow():
            raise CancellationAlreadyEffective()

        state = self.get_state(subscription)
        self._require(state, state.can_resume(), "resume")

        with transaction(self.session):
            if subscription.is_free():
                subscription.stripe_status = SubscriptionStatus.ACTIVE
            else:
                remote = self.gateway.resume_subscription(subscription.stripe_id)
                subscription.stripe_status = SubscriptionStatus(remote.status)
            subscription.ends_at = None
            subscription.touch()
            self.session.add(subscription)

        logger.info(f"Subscription resumed for tenant {tenant.id}")
        self.events.publish(SubscriptionResumed(
            tenant_id=tenant.id,
            subscription_id=subscription.id,
            plan_slug=subscription.plan.slug if subscription.plan else "",
        ))
        return subscription
