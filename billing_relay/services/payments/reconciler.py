"""Webhook reconciliation: verify -> classify -> enrich -> sink.

Each call is independent; nothing is cached between deliveries. Once the
signature is verified and enrichment succeeds the delivery is acknowledged,
whatever the sinks report.
"""

import logging
from typing import Optional

from billing_relay.services.payments.enricher import SubscriptionEnricher
from billing_relay.services.payments.sinks import SinkWriter
from billing_relay.services.payments.webhook_events import is_subscription_event, verify_event

logger = logging.getLogger(__name__)


class WebhookReconciler:
    def __init__(self, webhook_secret: str, enricher: SubscriptionEnricher, sink_writer: SinkWriter):
        self.webhook_secret = webhook_secret
        self.enricher = enricher
        self.sink_writer = sink_writer

    def handle(self, payload: bytes, signature: Optional[str]) -> dict:
        # SignatureInvalid / EnrichmentFailed propagate to the route
        event = verify_event(payload, signature, self.webhook_secret)
        logger.info("Webhook received: %s (%s)", event.type, event.id)

        if not is_subscription_event(event):
            logger.info("WEBHOOK_AUDIT id=%s event=%s status=ignored", event.id, event.type)
            return {"received": True}

        snapshot = self.enricher.enrich(event)
        outcome = self.sink_writer.write(snapshot, event)

        logger.info(
            "WEBHOOK_AUDIT id=%s event=%s subscription=%s status=%s sinks=%s",
            event.id,
            event.type,
            snapshot.subscription_id,
            snapshot.status.value,
            outcome,
        )
        return {"received": True}
