"""
Domain events system

Subscription lifecycle events are published after the surrounding
transaction commits. Handlers are best-effort: a failing handler is logged
and never affects the committed state or the other handlers.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import uuid
import structlog

logger = structlog.get_logger(__name__)


class DomainEvent:
    """Base class for domain events"""

    def __init__(self, tenant_id: uuid.UUID, event_id: uuid.UUID = None):
        self.event_id = event_id or uuid.uuid4()
        self.tenant_id = tenant_id
        self.occurred_at = datetime.utcnow()

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary"""
        return {
            "event_id": str(self.event_id),
            "occurred_at": self.occurred_at.isoformat(),
            "event_type": self.__class__.__name__,
            "tenant_id": str(self.tenant_id),
        }


class SubscriptionEvent(DomainEvent):
    """Base for events about a single subscription"""

    def __init__(
        self,
        tenant_id: uuid.UUID,
        subscription_id: uuid.UUID,
        plan_slug: str,
        event_id: uuid.UUID = None
    ):
        super().__init__(tenant_id, event_id)
        self.subscription_id = subscription_id
        self.plan_slug = plan_slug

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "subscription_id": str(self.subscription_id),
            "plan_slug": self.plan_slug,
        })
        return data


class SubscriptionCreated(SubscriptionEvent):
    """Event fired when a tenant subscribes to a plan"""


class TrialStarted(SubscriptionEvent):
    """Event fired when a paid subscription starts with a trial"""

    def __init__(
        self,
        tenant_id: uuid.UUID,
        subscription_id: uuid.UUID,
        plan_slug: str,
        trial_ends_at: datetime,
        event_id: uuid.UUID = None
    ):
        super().__init__(tenant_id, subscription_id, plan_slug, event_id)
        self.trial_ends_at = trial_ends_at

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["trial_ends_at"] = self.trial_ends_at.isoformat()
        return data


class SubscriptionUpgraded(SubscriptionEvent):
    """Event fired when a subscription moves to a higher plan"""

    def __init__(
        self,
        tenant_id: uuid.UUID,
        subscription_id: uuid.UUID,
        plan_slug: str,
        previous_plan_slug: str,
        event_id: uuid.UUID = None
    ):
        super().__init__(tenant_id, subscription_id, plan_slug, event_id)
        self.previous_plan_slug = previous_plan_slug

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["previous_plan_slug"] = self.previous_plan_slug
        return data


class DowngradeScheduled(SubscriptionEvent):
    """Event fired when a downgrade is scheduled for the end of the period"""

    def __init__(
        self,
        tenant_id: uuid.UUID,
        subscription_id: uuid.UUID,
        plan_slug: str,
        effective_at: datetime,
        event_id: uuid.UUID = None
    ):
        super().__init__(tenant_id, subscription_id, plan_slug, event_id)
        self.effective_at = effective_at

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["effective_at"] = self.effective_at.isoformat()
        return data


class SubscriptionDowngraded(SubscriptionEvent):
    """Event fired when a scheduled downgrade or a fallback to free is applied"""


class SubscriptionCanceled(SubscriptionEvent):
    """Event fired when a subscription is canceled"""

    def __init__(
        self,
        tenant_id: uuid.UUID,
        subscription_id: uuid.UUID,
        plan_slug: str,
        ends_at: Optional[datetime],
        event_id: uuid.UUID = None
    ):
        super().__init__(tenant_id, subscription_id, plan_slug, event_id)
        self.ends_at = ends_at

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["ends_at"] = self.ends_at.isoformat() if self.ends_at else None
        return data


class SubscriptionResumed(SubscriptionEvent):
    """Event fired when a canceled subscription is resumed in its grace period"""


class TrialEnding(SubscriptionEvent):
    """Event fired when the processor reports a trial ending soon"""


class PaymentFailed(SubscriptionEvent):
    """Event fired when an invoice payment fails"""

    def __init__(
        self,
        tenant_id: uuid.UUID,
        subscription_id: uuid.UUID,
        plan_slug: str,
        attempt_count: int,
        event_id: uuid.UUID = None
    ):
        super().__init__(tenant_id, subscription_id, plan_slug, event_id)
        self.attempt_count = attempt_count

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["attempt_count"] = self.attempt_count
        return data


class EventBus:
    """Simple in-memory event bus for publishing domain events"""

    def __init__(self):
        self._subscribers: Dict[str, List[Callable]] = {}

    def subscribe(self, event_type: str, handler: Callable):
        """Subscribe to a specific event type"""
        if event_type not in self._subscribers:
            self._subscribers[event_type] = []
        self._subscribers[event_type].append(handler)
        logger.debug(f"Subscribed handler to event type: {event_type}")

    def unsubscribe(self, event_type: str, handler: Callable):
        """Unsubscribe from an event type"""
        if event_type in self._subscribers:
            self._subscribers[event_type].remove(handler)
            logger.debug(f"Unsubscribed handler from event type: {event_type}")

    def publish(self, event: DomainEvent):
        """Publish an event to all subscribers"""
        event_type = event.__class__.__name__
        handlers = self._subscribers.get(event_type, [])

        if not handlers:
            logger.debug(f"No subscribers for event type: {event_type}")
            return

        logger.info(f"Publishing event {event_type}: {event.event_id}")

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler for {event_type}: {e}", exc_info=True)

    def clear_subscribers(self):
        """Clear all subscribers (useful for testing)"""
        self._subscribers.clear()
        logger.debug("Cleared all event subscribers")


# Global event bus instance
event_bus = EventBus()
