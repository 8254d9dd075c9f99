"""
Owner notifications for subscription events

Handlers run after commit through the EventBus. Mail rendering and delivery
live outside this service; a sender callable receives the owner address,
a template name and the event payload.
"""

from typing import Any, Callable, Dict, Optional
import structlog

from sqlmodel import Session

from salonbook.core.events import (
    DomainEvent,
    DowngradeScheduled,
    EventBus,
    PaymentFailed,
    SubscriptionCanceled,
    SubscriptionDowngraded,
    SubscriptionResumed,
    SubscriptionUpgraded,
    TrialEnding,
    TrialStarted,
)
from salonbook.repositories.tenant_repository import TenantRepository

logger = structlog.get_logger(__name__)

Sender = Callable[[str, str, Dict[str, Any]], None]

TEMPLATES = {
    TrialStarted: "subscription.trial_started",
    TrialEnding: "subscription.trial_ending",
    SubscriptionUpgraded: "subscription.upgraded",
    DowngradeScheduled: "subscription.downgrade_scheduled",
    SubscriptionDowngraded: "subscription.downgraded",
    SubscriptionCanceled: "subscription.canceled",
    SubscriptionResumed: "subscription.resumed",
    PaymentFailed: "subscription.payment_failed",
}


def log_sender(email: str, template: str, payload: Dict[str, Any]) -> None:
    logger.info("owner_notification", to=email, template=template, event_id=payload.get("event_id"))


class OwnerNotifier:
    def __init__(self, session_factory: Callable[[], Session], sender: Optional[Sender] = None):
        self.session_factory = session_factory
        self.sender = sender or log_sender

    def __call__(self, event: DomainEvent) -> None:
        template = TEMPLATES.get(type(event))
        if template is None:
            return

        with self.session_factory() as session:
            owner = TenantRepository(session).get_owner(event.tenant_id)
        if owner is None:
            logger.debug(f"No owner to notify for tenant {event.tenant_id}")
            return

        self.sender(owner.email, template, event.to_dict())


def register_notification_handlers(
    bus: EventBus,
    session_factory: Callable[[], Session],
    sender: Optional[Sender] = None,
) -> OwnerNotifier:
    notifier = OwnerNotifier(session_factory, sender)
    for event_class in TEMPLATES:
        bus.subscribe(event_class.__name__, notifier)
    return notifier
