"""
Test configuration for pytest
"""

import hashlib
import hmac
import json
import os
import time
from datetime import datetime, timedelta
from typing import Any, Dict, Generator, List, Optional, Set

# Test environment variables, set before any salonbook import reads settings
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["DEBUG"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_dummy"
os.environ["STRIPE_PRICES"] = json.dumps({
    slug: {"monthly": f"price_{slug}_monthly", "yearly": f"price_{slug}_yearly"}
    for slug in ("easy", "smart", "standard", "premium")
})

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, select

import salonbook.models  # noqa: F401
from salonbook.core.events import DomainEvent, EventBus
from salonbook.core.exceptions import BillingGatewayError
from salonbook.models import Plan, StaffProfile, Subscription, Tenant, User, UserRole
from salonbook.models.subscription import BillingCycle, SubscriptionStatus
from salonbook.scripts.seed_plans import seed_plans
from salonbook.services.stripe_service import GatewaySubscription


# Single shared connection so the TestClient's worker threads see the same database
test_engine = create_engine(
    "sqlite:///:memory:",
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a clean database session for each test"""
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


class FakeBillingGateway:
    """In-memory billing gateway that records every call"""

    def __init__(self):
        self.calls: List[tuple] = []
        self.fail_on: Set[str] = set()
        self.failing_subscriptions: Set[str] = set()
        self.default_payment_method: Optional[str] = None
        self.period_end = datetime.utcnow() + timedelta(days=30)
        self._customers = 0
        self._subscriptions = 0

    def _record(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, args))
        if operation in self.fail_on:
            raise BillingGatewayError("Your card was declined.", operation=operation)

    def _check_subscription(self, operation: str, subscription_id: str) -> None:
        if subscription_id in self.failing_subscriptions:
            raise BillingGatewayError("No such subscription.", operation=operation)

    def operations(self) -> List[str]:
        return [operation for operation, _ in self.calls]

    def is_configured(self) -> bool:
        return True

    def create_customer(self, tenant, email=None) -> str:
        self._record("create_customer", tenant.id, email)
        self._customers += 1
        return f"cus_test_{self._customers}"

    def attach_payment_method(self, customer_id, payment_method_id) -> Dict[str, Any]:
        self._record("attach_payment_method", customer_id, payment_method_id)
        return {"id": payment_method_id, "customer": customer_id}

    def set_default_payment_method(self, customer_id, payment_method_id) -> Dict[str, Any]:
        self._record("set_default_payment_method", customer_id, payment_method_id)
        self.default_payment_method = payment_method_id
        return {"id": customer_id}

    def get_payment_method(self, payment_method_id) -> Dict[str, Any]:
        self._record("get_payment_method", payment_method_id)
        return {"id": payment_method_id, "card": {"brand": "visa", "last4": "4242"}}

    def get_default_payment_method(self, customer_id) -> Optional[str]:
        self._record("get_default_payment_method", customer_id)
        return self.default_payment_method

    def create_subscription(self, customer_id, price_id, payment_method_id=None, trial_days=None):
        self._record("create_subscription", customer_id, price_id, payment_method_id, trial_days)
        self._subscriptions += 1
        return GatewaySubscription(
            id=f"sub_test_{self._subscriptions}",
            status="trialing" if trial_days else "active",
            current_period_end=self.period_end,
            trial_end=datetime.utcnow() + timedelta(days=trial_days) if trial_days else None,
            price_id=price_id,
        )

    def swap_subscription_price(self, subscription_id, price_id):
        self._record("swap_subscription_price", subscription_id, price_id)
        self._check_subscription("swap_subscription_price", subscription_id)
        return GatewaySubscription(subscription_id, "active", self.period_end, None, price_id)

    def cancel_subscription_at_period_end(self, subscription_id):
        self._record("cancel_subscription_at_period_end", subscription_id)
        return GatewaySubscription(subscription_id, "active", self.period_end)

    def cancel_subscription_now(self, subscription_id):
        self._record("cancel_subscription_now", subscription_id)
        self._check_subscription("cancel_subscription_now", subscription_id)
        return GatewaySubscription(subscription_id, "canceled", datetime.utcnow())

    def resume_subscription(self, subscription_id):
        self._record("resume_subscription", subscription_id)
        return GatewaySubscription(subscription_id, "active", self.period_end)

    def get_subscription(self, subscription_id):
        self._record("get_subscription", subscription_id)
        return GatewaySubscription(subscription_id, "active", self.period_end)

    def create_setup_intent(self, customer_id) -> Dict[str, str]:
        self._record("create_setup_intent", customer_id)
        return {"client_secret": "seti_secret_test", "id": "seti_test"}


class RecordingBus(EventBus):
    """EventBus that also keeps every published event"""

    def __init__(self):
        super().__init__()
        self.published: List[DomainEvent] = []

    def publish(self, event: DomainEvent):
        self.published.append(event)
        super().publish(event)

    def types(self) -> List[str]:
        return [event.__class__.__name__ for event in self.published]


@pytest.fixture
def gateway() -> FakeBillingGateway:
    return FakeBillingGateway()


@pytest.fixture
def events() -> RecordingBus:
    return RecordingBus()


@pytest.fixture
def plans(db: Session) -> Dict[str, Plan]:
    """The default catalog: free, easy, smart, standard, premium"""
    seed_plans(db)
    return {plan.slug: plan for plan in db.exec(select(Plan)).all()}


def make_tenant(db: Session, name: str = "Studio Aurora", slug: str = "studio-aurora") -> Tenant:
    tenant = Tenant(name=name, slug=slug)
    db.add(tenant)
    db.commit()
    db.refresh(tenant)
    return tenant


@pytest.fixture
def tenant(db: Session) -> Tenant:
    return make_tenant(db)


@pytest.fixture
def other_tenant(db: Session) -> Tenant:
    return make_tenant(db, name="Barber Bros", slug="barber-bros")


@pytest.fixture
def owner(db: Session, tenant: Tenant) -> User:
    user = User(tenant_id=tenant.id, email="owner@aurora.test", name="Ana Owner", role=UserRole.OWNER)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_subscription(
    db: Session,
    tenant: Tenant,
    plan: Plan,
    stripe_id: Optional[str] = None,
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
    **fields: Any,
) -> Subscription:
    """Persist a subscription row directly, bypassing the lifecycle"""
    if stripe_id is None:
        stripe_id = f"free_{tenant.id}" if plan.is_free() else f"sub_{plan.slug}_{tenant.slug}"
    subscription = Subscription(
        tenant_id=tenant.id,
        plan_id=plan.id,
        stripe_id=stripe_id,
        stripe_status=status,
        stripe_price=plan.stripe_monthly_price_id,
        billing_cycle=BillingCycle.MONTHLY,
        **fields,
    )
    db.add(subscription)
    db.commit()
    db.refresh(subscription)
    return subscription


def add_staff(db: Session, tenant: Tenant, count: int) -> List[StaffProfile]:
    staff = [StaffProfile(tenant_id=tenant.id, name=f"Stylist {i}", sort_order=i) for i in range(count)]
    db.add_all(staff)
    db.commit()
    return staff


def sign_payload(payload: bytes, secret: str = "whsec_test_dummy", timestamp: Optional[int] = None) -> str:
    """Stripe-Signature header for a payload, as Stripe computes it"""
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"
