from fastapi import APIRouter, Depends

from billing_relay.api.deps import get_billing_actions
from billing_relay.api.schemas.billing import (
    CancelIn,
    ChangePlanIn,
    CheckoutIn,
    LifecycleOut,
    PortalIn,
    ReactivateIn,
    SubscriptionDetailsOut,
    UrlOut,
)
from billing_relay.services.payments.billing_actions import BillingActions

router = APIRouter()


@router.post("/api/create-checkout", response_model=UrlOut)
def api_create_checkout(payload: CheckoutIn, actions: BillingActions = Depends(get_billing_actions)):
    return actions.create_checkout(payload.escritorio_id, payload.email, payload.price_id)


@router.post("/api/create-portal", response_model=UrlOut)
def api_create_portal(payload: PortalIn, actions: BillingActions = Depends(get_billing_actions)):
    return actions.create_portal(payload.customer_id, payload.return_url)


@router.post("/api/subscription/portal", response_model=UrlOut)
def api_subscription_portal(payload: PortalIn, actions: BillingActions = Depends(get_billing_actions)):
    return actions.create_portal(payload.customer_id, payload.return_url)


@router.get("/api/subscription/details/{customer_id}", response_model=SubscriptionDetailsOut)
def api_subscription_details(customer_id: str, actions: BillingActions = Depends(get_billing_actions)):
    return actions.subscription_details(customer_id)


@router.post("/api/subscription/cancel", response_model=LifecycleOut)
def api_subscription_cancel(payload: CancelIn, actions: BillingActions = Depends(get_billing_actions)):
    return actions.cancel(payload.subscription_id, immediately=payload.immediately)


@router.post("/api/subscription/reactivate", response_model=LifecycleOut)
def api_subscription_reactivate(payload: ReactivateIn, actions: BillingActions = Depends(get_billing_actions)):
    return actions.reactivate(payload.subscription_id)


@router.post("/api/subscription/change-plan", response_model=LifecycleOut)
def api_subscription_change_plan(payload: ChangePlanIn, actions: BillingActions = Depends(get_billing_actions)):
    return actions.change_plan(payload.subscription_id, payload.new_price_id)
