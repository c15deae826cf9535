from fastapi import Request

from billing_relay.services.payments.billing_actions import BillingActions
from billing_relay.services.payments.reconciler import WebhookReconciler


def get_reconciler(request: Request) -> WebhookReconciler:
    return request.app.state.reconciler


def get_billing_actions(request: Request) -> BillingActions:
    return request.app.state.billing_actions
