import logging
from datetime import datetime, timezone
from typing import Any, Optional

from billing_relay.domain.billing.errors import EnrichmentFailed
from billing_relay.domain.billing.models import SubscriptionSnapshot, VerifiedEvent

logger = logging.getLogger(__name__)

TENANT_METADATA_KEY = "escritorio_id"


def dt_from_unix_ts(ts: Any) -> Optional[datetime]:
    if not ts:
        return None
    try:
        return datetime.fromtimestamp(int(ts), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def first_item(subscription: dict) -> dict:
    items = (subscription.get("items") or {}).get("data") or []
    return items[0] if items else {}


def primary_price_id(subscription: dict) -> str:
    """First subscription item's price id (one plan item per subscription)."""
    price = first_item(subscription).get("price") or {}
    if isinstance(price, str):
        return price.strip()
    return (price.get("id") or "").strip()


def _customer_id(subscription: dict) -> str:
    customer = subscription.get("customer")
    if isinstance(customer, dict):
        return (customer.get("id") or "").strip()
    return (customer or "").strip()


def period_end(subscription: dict) -> Optional[datetime]:
    # newer API versions carry current_period_end on the items only
    ts = subscription.get("current_period_end") or first_item(subscription).get("current_period_end")
    return dt_from_unix_ts(ts)


def build_snapshot(subscription: dict, customer: dict, price: dict) -> SubscriptionSnapshot:
    customer_meta = customer.get("metadata") or {}
    product = price.get("product")
    product_meta = (product.get("metadata") if isinstance(product, dict) else None) or {}

    return SubscriptionSnapshot(
        subscription_id=subscription["id"],
        customer_id=_customer_id(subscription),
        escritorio_id=customer_meta.get(TENANT_METADATA_KEY) or None,
        status=subscription.get("status"),
        plan_id=price.get("lookup_key") or price["id"],
        price_id=price["id"],
        limits=dict(product_meta),
        current_period_end=period_end(subscription),
        trial_end=dt_from_unix_ts(subscription.get("trial_end")),
        cancel_at_period_end=bool(subscription.get("cancel_at_period_end")),
    )


class SubscriptionEnricher:
    """Assembles a SubscriptionSnapshot from the event's subscription plus
    customer and price (product expanded) lookups.

    Any failure aborts the whole enrichment: no partial snapshot is produced.
    """

    def __init__(self, gateway):
        self.gateway = gateway

    def enrich_subscription(self, subscription: dict) -> SubscriptionSnapshot:
        subscription_id = (subscription.get("id") or "").strip()
        if not subscription_id:
            raise EnrichmentFailed("Subscription object has no id")

        customer_id = _customer_id(subscription)
        if not customer_id:
            raise EnrichmentFailed(f"Subscription {subscription_id} has no customer")

        price_id = primary_price_id(subscription)
        if not price_id:
            raise EnrichmentFailed(f"Subscription {subscription_id} has no price item")

        try:
            customer = self.gateway.retrieve_customer(customer_id)
            price = self.gateway.retrieve_price(price_id)
            return build_snapshot(subscription, customer, price)
        except EnrichmentFailed:
            raise
        except Exception as e:
            logger.error("Enrichment failed for subscription %s: %s", subscription_id, e)
            raise EnrichmentFailed(f"Enrichment failed for {subscription_id}: {e}") from e

    def enrich(self, event: VerifiedEvent) -> SubscriptionSnapshot:
        return self.enrich_subscription(event.data_object)
