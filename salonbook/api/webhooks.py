"""
Stripe webhook endpoint
Verifies the signature, then hands the event to the subscription sync handler
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlmodel import Session
import stripe
import structlog

from salonbook.api.deps import get_event_bus, get_stripe_service
from salonbook.core.database import get_session
from salonbook.core.events import EventBus
from salonbook.services.stripe_service import StripeService
from salonbook.services.subscription import StripeWebhookHandler

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    session: Session = Depends(get_session),
    stripe_service: StripeService = Depends(get_stripe_service),
    events: EventBus = Depends(get_event_bus),
):
    """Handle Stripe subscription and invoice events"""
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    if not sig_header:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing stripe-signature header",
        )

    try:
        event = stripe_service.construct_webhook_event(payload, sig_header)
    except ValueError as e:
        logger.warning(f"Invalid webhook payload: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload")
    except stripe.SignatureVerificationError as e:
        logger.warning(f"Invalid webhook signature: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid signature")

    outcome = StripeWebhookHandler(session, events).handle(event)
    return {"received": True, "outcome": outcome}
