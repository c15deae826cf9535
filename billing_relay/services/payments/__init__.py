from billing_relay.services.payments.billing_actions import BillingActions
from billing_relay.services.payments.enricher import SubscriptionEnricher
from billing_relay.services.payments.factory import build_billing_actions, build_gateway, build_reconciler, build_sinks
from billing_relay.services.payments.gateway import StripeGateway
from billing_relay.services.payments.reconciler import WebhookReconciler
from billing_relay.services.payments.sinks import SinkWriter, SnapshotSink

__all__ = [
    "BillingActions",
    "SinkWriter",
    "SnapshotSink",
    "StripeGateway",
    "SubscriptionEnricher",
    "WebhookReconciler",
    "build_billing_actions",
    "build_gateway",
    "build_reconciler",
    "build_sinks",
]
