import logging

from billing_relay.config import Settings
from billing_relay.infra.backend.forwarder import BackendClient
from billing_relay.infra.supabase.client import SupabaseRest
from billing_relay.infra.supabase.subscription_repo import SubscriptionRepo
from billing_relay.services.payments.billing_actions import BillingActions
from billing_relay.services.payments.enricher import SubscriptionEnricher
from billing_relay.services.payments.gateway import StripeGateway
from billing_relay.services.payments.reconciler import WebhookReconciler
from billing_relay.services.payments.sinks import (
    BackendForwardSink,
    SinkWriter,
    SnapshotSink,
    SupabaseSubscriptionSink,
)

logger = logging.getLogger(__name__)


def build_sinks(settings: Settings) -> list[SnapshotSink]:
    sinks: list[SnapshotSink] = []

    if settings.persistence_enabled:
        rest = SupabaseRest(
            settings.supabase_url,
            settings.supabase_service_role_key,
            timeout=settings.http_timeout_seconds,
        )
        sinks.append(SupabaseSubscriptionSink(SubscriptionRepo(rest, settings.subscriptions_table)))
    else:
        logger.warning("SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not set: persistence disabled")

    if settings.forwarding_enabled:
        client = BackendClient(
            settings.backend_url,
            settings.backend_webhook_secret,
            timeout=settings.http_timeout_seconds,
        )
        sinks.append(BackendForwardSink(client))
    else:
        logger.info("BACKEND_URL not set: forwarding disabled")

    return sinks


def build_gateway(settings: Settings) -> StripeGateway:
    if not settings.stripe_secret_key:
        logger.warning("STRIPE_SECRET_KEY not set: provider calls will fail")
    return StripeGateway(settings.stripe_secret_key)


def build_reconciler(settings: Settings, gateway, sinks: list[SnapshotSink]) -> WebhookReconciler:
    return WebhookReconciler(
        webhook_secret=settings.stripe_webhook_secret,
        enricher=SubscriptionEnricher(gateway),
        sink_writer=SinkWriter(sinks),
    )


def build_billing_actions(settings: Settings, gateway) -> BillingActions:
    return BillingActions(gateway, settings)
