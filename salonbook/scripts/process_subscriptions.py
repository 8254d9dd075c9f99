"""
Background job for subscription maintenance

Run periodically (e.g. hourly via cron) to apply scheduled downgrades, end
subscriptions whose cancellation grace period is over and settle expired
trials.
"""

import sys
from datetime import datetime
from typing import Optional

from sqlmodel import Session
import structlog

from salonbook.core.database import engine
from salonbook.services.stripe_service import BillingGateway, StripeService
from salonbook.services.subscription import SubscriptionMaintenance

logger = structlog.get_logger(__name__)


def process_subscriptions(
    session: Session,
    gateway: Optional[BillingGateway] = None,
    now: Optional[datetime] = None,
) -> dict:
    """Run every maintenance pass once and return the per-pass counts"""
    maintenance = SubscriptionMaintenance(session, gateway or StripeService())
    return maintenance.run(now)


def main():
    """Main entry point for the maintenance job"""
    logger.info("=" * 80)
    logger.info("Starting Subscription Maintenance Job")
    logger.info("=" * 80)

    try:
        with Session(engine) as session:
            results = process_subscriptions(session)

            logger.info("=" * 80)
            logger.info("Subscription Maintenance Complete")
            logger.info(f"Results: {results}")
            logger.info("=" * 80)

    except Exception as e:
        logger.error(f"Fatal error in maintenance job: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
