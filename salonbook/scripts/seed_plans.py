"""
Seed the default plan catalog

Upserts the five plans by slug. Paid plans take their Stripe price ids from
STRIPE_PRICES; a paid plan without them is still written but cannot be
subscribed to until the ids are set. Pass --strict to fail instead.
"""

import sys
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlmodel import Session
import structlog

from salonbook.core.config import Settings, get_settings
from salonbook.core.database import engine, transaction
from salonbook.models.plan import Plan, PlanSlug, UNLIMITED
from salonbook.repositories.plan_repository import PlanRepository

logger = structlog.get_logger(__name__)

_BASE_FEATURES: Dict[str, Any] = {
    "online_booking_widget": True,
    "manual_reservations": True,
    "calendar_view": "basic",
    "client_database": "basic",
    "email_confirmations": True,
    "email_reminders": True,
    "sms_reminders": False,
    "custom_logo": False,
    "custom_colors": False,
    "custom_booking_url": False,
    "custom_domain": False,
    "white_label": False,
    "google_calendar_sync": False,
    "payment_gateway": False,
    "api_access": False,
    "zapier_integration": False,
    "multi_language": False,
    "staff_permissions": False,
    "client_segmentation": False,
    "waitlist_management": False,
    "recurring_appointments": False,
    "gift_vouchers": False,
    "reports_statistics": "basic",
}

_EASY_FEATURES = {
    **_BASE_FEATURES,
    "calendar_view": "advanced",
    "custom_logo": True,
    "custom_colors": True,
    "custom_booking_url": True,
    "google_calendar_sync": True,
    "payment_gateway": True,
    "multi_language": True,
    "recurring_appointments": True,
    "reports_statistics": "full",
}

_SMART_FEATURES = {
    **_EASY_FEATURES,
    "client_database": "advanced",
    "sms_reminders": True,
    "custom_domain": True,
    "api_access": True,
    "zapier_integration": True,
    "staff_permissions": True,
    "client_segmentation": True,
    "waitlist_management": True,
    "gift_vouchers": True,
}

DEFAULT_PLANS: List[Dict[str, Any]] = [
    {
        "slug": PlanSlug.FREE.value,
        "name": "FREE",
        "description": "Perfect for trying out SalonBook",
        "monthly_price": Decimal("0.00"),
        "yearly_price": Decimal("0.00"),
        "sort_order": 0,
        "features": _BASE_FEATURES,
        "limits": {
            "reservations_per_month": 150,
            "users": 1,
            "staff": 1,
            "locations": 1,
            "services": 10,
            "clients": 100,
            "sms_credits_per_month": 0,
        },
    },
    {
        "slug": PlanSlug.EASY.value,
        "name": "EASY",
        "description": "For solo practitioners getting started",
        "monthly_price": Decimal("6.00"),
        "yearly_price": Decimal("54.00"),
        "sort_order": 1,
        "features": _EASY_FEATURES,
        "limits": {
            "reservations_per_month": 350,
            "users": 1,
            "staff": 2,
            "locations": 1,
            "services": UNLIMITED,
            "clients": UNLIMITED,
            "sms_credits_per_month": 0,
        },
    },
    {
        "slug": PlanSlug.SMART.value,
        "name": "SMART",
        "description": "Best value for growing businesses",
        "monthly_price": Decimal("15.00"),
        "yearly_price": Decimal("135.00"),
        "sort_order": 2,
        "features": _SMART_FEATURES,
        "limits": {
            "reservations_per_month": 1500,
            "users": 3,
            "staff": 5,
            "locations": 2,
            "services": UNLIMITED,
            "clients": UNLIMITED,
            "sms_credits_per_month": 50,
        },
    },
    {
        "slug": PlanSlug.STANDARD.value,
        "name": "STANDARD",
        "description": "For established businesses with teams",
        "monthly_price": Decimal("30.00"),
        "yearly_price": Decimal("270.00"),
        "sort_order": 3,
        "features": _SMART_FEATURES,
        "limits": {
            "reservations_per_month": UNLIMITED,
            "users": 10,
            "staff": 15,
            "locations": 10,
            "services": UNLIMITED,
            "clients": UNLIMITED,
            "sms_credits_per_month": 200,
        },
    },
    {
        "slug": PlanSlug.PREMIUM.value,
        "name": "PREMIUM",
        "description": "Enterprise features with priority support",
        "monthly_price": Decimal("50.00"),
        "yearly_price": Decimal("450.00"),
        "sort_order": 4,
        "features": {**_SMART_FEATURES, "white_label": True},
        "limits": {
            "reservations_per_month": UNLIMITED,
            "users": UNLIMITED,
            "staff": UNLIMITED,
            "locations": UNLIMITED,
            "services": UNLIMITED,
            "clients": UNLIMITED,
            "sms_credits_per_month": UNLIMITED,
        },
    },
]


def _price_ids(settings: Settings, slug: str) -> Dict[str, Optional[str]]:
    prices = settings.STRIPE_PRICES.get(slug) or {}
    return {
        "stripe_monthly_price_id": prices.get("monthly"),
        "stripe_yearly_price_id": prices.get("yearly"),
    }


def seed_plans(session: Session, settings: Optional[Settings] = None, strict: bool = False) -> dict:
    """Create or update the default plans; returns created/updated counts and missing price ids"""
    settings = settings or get_settings()
    plans = PlanRepository(session)
    result = {"created": 0, "updated": 0, "missing_prices": []}

    with transaction(session):
        for definition in DEFAULT_PLANS:
            values = {**definition, **_price_ids(settings, definition["slug"])}

            if definition["slug"] != PlanSlug.FREE.value and not (
                values["stripe_monthly_price_id"] and values["stripe_yearly_price_id"]
            ):
                if strict:
                    raise RuntimeError(
                        f"Missing Stripe price IDs for paid plan \"{definition['name']}\" ({definition['slug']})"
                    )
                logger.warning(f"Plan {definition['slug']} has no Stripe price ids configured")
                result["missing_prices"].append(definition["slug"])

            plan = plans.get_by_slug(definition["slug"])
            if plan is None:
                session.add(Plan(**values))
                result["created"] += 1
                continue

            for field, value in values.items():
                setattr(plan, field, value)
            plan.updated_at = datetime.utcnow()
            session.add(plan)
            result["updated"] += 1

    logger.info(f"Plans seeded: {result['created']} created, {result['updated']} updated")
    return result


def main():
    strict = "--strict" in sys.argv[1:]
    try:
        with Session(engine) as session:
            results = seed_plans(session, strict=strict)
            logger.info(f"Results: {results}")
    except Exception as e:
        logger.error(f"Fatal error seeding plans: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
