"""
Scheduled subscription maintenance

Runs without a tenant context (system scope). Each subscription is handled
in its own transaction; a failure is logged and the batch moves on.
"""

from datetime import datetime
from typing import Dict, Optional
import structlog

from sqlmodel import Session

from salonbook.core.config import Settings, get_settings
from salonbook.core.database import transaction
from salonbook.core.events import EventBus, SubscriptionDowngraded, event_bus
from salonbook.core.tenancy import TenantScope
from salonbook.models.subscription import Subscription, SubscriptionStatus
from salonbook.repositories.plan_repository import PlanRepository
from salonbook.repositories.subscription_repository import SubscriptionRepository
from salonbook.services.stripe_service import BillingGateway
from salonbook.services.subscription.strategies import apply_free_plan, resolve_price_id

logger = structlog.get_logger(__name__)


class SubscriptionMaintenance:
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
        self.subscriptions = SubscriptionRepository(session, TenantScope.system())

    def _downgraded(self, subscription: Subscription) -> None:
        self.events.publish(SubscriptionDowngraded(
            tenant_id=subscription.tenant_id,
            subscription_id=subscription.id,
            plan_slug=subscription.plan.slug if subscription.plan else "",
        ))

    def _move_to_free(self, subscription: Subscription) -> None:
        free_plan = self.plans.get_free_plan()
        if free_plan is None:
            raise RuntimeError("No free plan configured")
        if not subscription.is_free():
            self.gateway.cancel_subscription_now(subscription.stripe_id)
        apply_free_plan(subscription, free_plan)
        self.session.add(subscription)

    def process_scheduled_downgrades(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Apply downgrades whose scheduled_change_at has passed"""
        now = now or datetime.utcnow()
        due = self.subscriptions.find_due_scheduled_changes(now, limit=self.settings.SUBSCRIPTION_JOB_CHUNK_SIZE)
        result = {"processed": len(due), "applied": 0, "failed": 0}

        for subscription in due:
            subscription_id = subscription.id
            try:
                with transaction(self.session):
                    target = subscription.scheduled_plan or self.plans.get(subscription.scheduled_plan_id)
                    if target is None:
                        raise RuntimeError(f"Scheduled plan {subscription.scheduled_plan_id} no longer exists")

                    if target.is_free():
                        self._move_to_free(subscription)
                    else:
                        price_id = resolve_price_id(target, subscription.billing_cycle)
                        if not subscription.is_free():
                            self.gateway.swap_subscription_price(subscription.stripe_id, price_id)
                        subscription.plan_id = target.id
                        subscription.stripe_price = price_id
                        subscription.clear_scheduled_change()
                        subscription.touch()
                        self.session.add(subscription)
                result["applied"] += 1
                logger.info(f"Applied scheduled downgrade for subscription {subscription_id}")
                self._downgraded(subscription)
            except Exception as e:
                result["failed"] += 1
                logger.error(f"Failed to apply scheduled downgrade for subscription {subscription_id}: {e}")
                continue

        return result

    def process_expired_cancellations(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Mark subscriptions whose grace period is over as canceled"""
        now = now or datetime.utcnow()
        expired = self.subscriptions.find_expired_cancellations(now, limit=self.settings.SUBSCRIPTION_JOB_CHUNK_SIZE)
        result = {"processed": len(expired), "ended": 0, "failed": 0}

        for subscription in expired:
            subscription_id = subscription.id
            try:
                with transaction(self.session):
                    subscription.stripe_status = SubscriptionStatus.CANCELED
                    subscription.clear_scheduled_change()
                    subscription.touch()
                    self.session.add(subscription)
                result["ended"] += 1
                logger.info(f"Ended canceled subscription {subscription_id}")
            except Exception as e:
                result["failed"] += 1
                logger.error(f"Failed to end subscription {subscription_id}: {e}")
                continue

        return result

    def process_expired_trials(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Convert finished trials with a card on file, otherwise fall back to free"""
        now = now or datetime.utcnow()
        expired = self.subscriptions.find_expired_trials(now, limit=self.settings.SUBSCRIPTION_JOB_CHUNK_SIZE)
        result = {"processed": len(expired), "converted": 0, "downgraded": 0, "failed": 0}

        for subscription in expired:
            subscription_id = subscription.id
            try:
                tenant = subscription.tenant
                has_card = bool(
                    tenant is not None
                    and tenant.stripe_customer_id
                    and self.gateway.get_default_payment_method(tenant.stripe_customer_id)
                )
                with transaction(self.session):
                    if has_card:
                        subscription.stripe_status = SubscriptionStatus.ACTIVE
                        subscription.touch()
                        self.session.add(subscription)
                    else:
                        self._move_to_free(subscription)

                if has_card:
                    result["converted"] += 1
                    logger.info(f"Trial converted for subscription {subscription_id}")
                else:
                    result["downgraded"] += 1
                    logger.info(f"Trial expired without payment method, moved to free: {subscription_id}")
                    self._downgraded(subscription)
            except Exception as e:
                result["failed"] += 1
                logger.error(f"Failed to process expired trial {subscription_id}: {e}")
                continue

        return result

    def run(self, now: Optional[datetime] = None) -> Dict[str, Dict[str, int]]:
        now = now or datetime.utcnow()
        summary = {
            "scheduled_downgrades": self.process_scheduled_downgrades(now),
            "expired_cancellations": self.process_expired_cancellations(now),
            "expired_trials": self.process_expired_trials(now),
        }
        logger.info("Subscription maintenance finished", **summary)
        return summary
