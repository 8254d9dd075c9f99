"""
Service dependencies shared by the routers
"""

from fastapi import Depends
from sqlmodel import Session

from salonbook.core.database import get_session
from salonbook.core.events import EventBus, event_bus
from salonbook.services.stripe_service import BillingGateway, StripeService
from salonbook.services.subscription import SubscriptionLifecycle


def get_stripe_service() -> StripeService:
    return StripeService()


def get_billing_gateway() -> BillingGateway:
    return StripeService()


def get_event_bus() -> EventBus:
    return event_bus


def get_lifecycle(
    session: Session = Depends(get_session),
    gateway: BillingGateway = Depends(get_billing_gateway),
    events: EventBus = Depends(get_event_bus),
) -> SubscriptionLifecycle:
    return SubscriptionLifecycle(session, gateway, events)
