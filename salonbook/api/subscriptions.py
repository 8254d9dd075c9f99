"""
Subscription API endpoints
Billing page context, plan changes, cancellation and card collection
"""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session
from typing import Any, Dict, List

from salonbook.api.deps import get_billing_gateway, get_lifecycle
from salonbook.core.database import get_session, transaction
from salonbook.core.auth import TokenClaims
from salonbook.core.dependencies import get_tenant_context, require_owner
from salonbook.core.tenancy import TenantContext
from salonbook.models.entitlements import Feature
from salonbook.models.plan import Plan
from salonbook.schemas import (
    BillingCycleChange,
    PlanChangeRequest,
    PlanResponse,
    SubscriptionContextResponse,
    SubscriptionCreate,
    SubscriptionResponse,
)
from salonbook.services.stripe_service import BillingGateway
from salonbook.services.subscription import (
    FeatureGateService,
    SubscriptionLifecycle,
    SubscriptionService,
    SubscriptionStateFactory,
    UsageLimitService,
)
from salonbook.services.subscription.strategies import ensure_billing_customer

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


def _plan_summary(plan: Plan) -> Dict[str, Any]:
    return PlanResponse.model_validate(plan).model_dump(mode="json")


@router.get("/current", response_model=SubscriptionContextResponse)
def get_current_subscription(
    session: Session = Depends(get_session),
    context: TenantContext = Depends(get_tenant_context),
):
    """Current plan, state, pending change, plan options and usage"""
    tenant = context.get_tenant()
    subscriptions = SubscriptionService(session)

    subscription = subscriptions.get_current_subscription(tenant)
    if subscription is None:
        subscription = subscriptions.get_latest_subscription(tenant)

    if subscription is not None:
        state = SubscriptionStateFactory.make(subscription).to_dict()
    else:
        state = {"name": "none", "display_name": "No subscription", "allowed_actions": ["subscribe"]}

    pending = subscriptions.get_pending_change(tenant)
    if pending is not None:
        pending = {
            "type": pending["type"],
            "plan": _plan_summary(pending["plan"]) if pending["plan"] else None,
            "date": pending["date"].isoformat() if pending["date"] else None,
        }

    return SubscriptionContextResponse(
        plan=_plan_summary(subscriptions.get_current_plan(tenant)),
        subscription=SubscriptionResponse.model_validate(subscription) if subscription else None,
        state=state,
        on_trial=subscriptions.is_on_trial(tenant),
        trial_days_remaining=subscriptions.get_trial_days_remaining(tenant),
        pending_change=pending,
        upgrade_options=[_plan_summary(plan) for plan in subscriptions.get_upgrade_options(tenant)],
        downgrade_options=[_plan_summary(plan) for plan in subscriptions.get_downgrade_options(tenant)],
        usage=UsageLimitService(session, subscriptions).get_usage_stats(tenant),
    )


@router.get("/features", response_model=List[str])
def list_available_features(
    session: Session = Depends(get_session),
    context: TenantContext = Depends(get_tenant_context),
):
    """Feature keys the tenant's current plan grants"""
    features = FeatureGateService(session).get_available_features(context.get_tenant())
    return [feature.value for feature in features]


@router.get("/features/{feature}")
def check_feature(
    feature: Feature,
    session: Session = Depends(get_session),
    context: TenantContext = Depends(get_tenant_context),
):
    tenant = context.get_tenant()
    gate = FeatureGateService(session)
    if gate.can_access(tenant, feature):
        return {"feature": feature.value, "allowed": True}
    return {"allowed": False, **gate.build_upgrade_message(tenant, feature)}


@router.post("/", response_model=SubscriptionResponse, status_code=status.HTTP_201_CREATED)
def create_subscription(
    data: SubscriptionCreate,
    context: TenantContext = Depends(get_tenant_context),
    lifecycle: SubscriptionLifecycle = Depends(get_lifecycle),
    _: TokenClaims = Depends(require_owner),
):
    """Subscribe the tenant to a plan, optionally starting a trial"""
    return lifecycle.create(context.get_tenant(), data)


@router.post("/upgrade", response_model=SubscriptionResponse)
def upgrade_subscription(
    data: PlanChangeRequest,
    context: TenantContext = Depends(get_tenant_context),
    lifecycle: SubscriptionLifecycle = Depends(get_lifecycle),
    _: TokenClaims = Depends(require_owner),
):
    return lifecycle.upgrade(
        context.get_tenant(),
        data.plan_id,
        subscription_id=data.subscription_id,
        billing_cycle=data.billing_cycle,
        payment_method_id=data.payment_method_id,
    )


@router.post("/downgrade", response_model=SubscriptionResponse)
def downgrade_subscription(
    data: PlanChangeRequest,
    context: TenantContext = Depends(get_tenant_context),
    lifecycle: SubscriptionLifecycle = Depends(get_lifecycle),
    _: TokenClaims = Depends(require_owner),
):
    """Schedule a downgrade for the end of the billing period"""
    return lifecycle.downgrade(context.get_tenant(), data.plan_id, subscription_id=data.subscription_id)


@router.put("/billing-cycle", response_model=SubscriptionResponse)
def change_billing_cycle(
    data: BillingCycleChange,
    context: TenantContext = Depends(get_tenant_context),
    lifecycle: SubscriptionLifecycle = Depends(get_lifecycle),
    _: TokenClaims = Depends(require_owner),
):
    return lifecycle.change_billing_cycle(context.get_tenant(), data.billing_cycle)


@router.post("/cancel", response_model=SubscriptionResponse)
def cancel_subscription(
    context: TenantContext = Depends(get_tenant_context),
    lifecycle: SubscriptionLifecycle = Depends(get_lifecycle),
    _: TokenClaims = Depends(require_owner),
):
    return lifecycle.cancel(context.get_tenant())


@router.post("/resume", response_model=SubscriptionResponse)
def resume_subscription(
    context: TenantContext = Depends(get_tenant_context),
    lifecycle: SubscriptionLifecycle = Depends(get_lifecycle),
    _: TokenClaims = Depends(require_owner),
):
    return lifecycle.resume(context.get_tenant())


@router.post("/setup-intent")
def create_setup_intent(
    session: Session = Depends(get_session),
    context: TenantContext = Depends(get_tenant_context),
    gateway: BillingGateway = Depends(get_billing_gateway),
    _: TokenClaims = Depends(require_owner),
):
    """Client secret for collecting a card with Stripe Elements"""
    tenant = context.get_tenant()
    with transaction(session):
        customer_id = ensure_billing_customer(session, gateway, tenant)
    return gateway.create_setup_intent(customer_id)
