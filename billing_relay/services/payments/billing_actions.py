import logging
from typing import Any, Optional

from billing_relay.config import Settings
from billing_relay.domain.billing.errors import NotFound, ValidationError
from billing_relay.services.payments.enricher import TENANT_METADATA_KEY, SubscriptionEnricher, first_item, period_end

logger = logging.getLogger(__name__)

INVOICE_HISTORY_LIMIT = 5


def _require(value: Optional[str], name: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{name} is required")
    return value


def subscription_summary(sub: dict) -> dict[str, Any]:
    price = first_item(sub).get("price") or {}
    if isinstance(price, str):
        price = {"id": price}
    ends_at = period_end(sub)
    return {
        "id": sub.get("id"),
        "status": sub.get("status"),
        "cancel_at_period_end": bool(sub.get("cancel_at_period_end")),
        "current_period_end": ends_at.isoformat() if ends_at else None,
        "plan_id": price.get("lookup_key") or price.get("id"),
    }


def invoice_summary(inv: dict) -> dict[str, Any]:
    return {
        "id": inv.get("id"),
        "number": inv.get("number"),
        "status": inv.get("status"),
        "amount_paid": inv.get("amount_paid"),
        "amount_due": inv.get("amount_due"),
        "currency": inv.get("currency"),
        "created": inv.get("created"),
        "hosted_invoice_url": inv.get("hosted_invoice_url"),
        "invoice_pdf": inv.get("invoice_pdf"),
    }


class BillingActions:
    """Checkout, portal and subscription lifecycle calls.

    Each operation checks that its identifiers are present and then makes a
    direct provider call; provider errors surface as UpstreamProviderError.
    """

    def __init__(self, gateway, settings: Settings, enricher: Optional[SubscriptionEnricher] = None):
        self.gateway = gateway
        self.settings = settings
        self.enricher = enricher or SubscriptionEnricher(gateway)

    def ensure_customer(self, email: str, escritorio_id: Optional[str]) -> str:
        """Reuse the customer registered under `email`, or create one.

        The tenant id is written into customer metadata on creation, or on
        first encounter when an existing customer does not carry it yet.
        """
        existing = self.gateway.find_customer_by_email(email)
        if existing:
            customer_id = existing["id"]
            meta = existing.get("metadata") or {}
            if escritorio_id and not meta.get(TENANT_METADATA_KEY):
                self.gateway.update_customer_metadata(customer_id, {TENANT_METADATA_KEY: escritorio_id})
                logger.info("Tagged customer %s with escritorio_id=%s", customer_id, escritorio_id)
            return customer_id

        metadata = {TENANT_METADATA_KEY: escritorio_id} if escritorio_id else {}
        customer = self.gateway.create_customer(email, metadata)
        logger.info("Created customer %s for escritorio_id=%s", customer["id"], escritorio_id)
        return customer["id"]

    def create_checkout(self, escritorio_id: Optional[str], email: Optional[str], price_id: Optional[str]) -> dict:
        escritorio_id = _require(escritorio_id, "escritorio_id")
        email = _require(email, "email")
        price_id = _require(price_id, "price_id")

        customer_id = self.ensure_customer(email, escritorio_id)

        metadata = {TENANT_METADATA_KEY: escritorio_id}
        session = self.gateway.create_checkout_session(
            mode="subscription",
            customer=customer_id,
            line_items=[{"price": price_id, "quantity": 1}],
            success_url=f"{self.settings.app_url}/billing/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{self.settings.app_url}/billing/cancel",
            metadata=metadata,
            subscription_data={"metadata": metadata},
        )
        return {"url": session.get("url")}

    def create_portal(self, customer_id: Optional[str], return_url: Optional[str] = None) -> dict:
        customer_id = _require(customer_id, "customer_id")
        return_url = (return_url or "").strip() or f"{self.settings.app_url}/billing"

        session = self.gateway.create_portal_session(customer_id, return_url)
        return {"url": session.get("url")}

    def subscription_details(self, customer_id: Optional[str]) -> dict:
        customer_id = _require(customer_id, "customer_id")

        sub = self.gateway.latest_subscription(customer_id)
        if not sub:
            raise NotFound(f"No subscription found for customer {customer_id}")

        snapshot = self.enricher.enrich_subscription(sub)
        invoices = self.gateway.list_invoices(customer_id, limit=INVOICE_HISTORY_LIMIT)

        return {
            "subscription": snapshot.model_dump(mode="json"),
            # real consumption lives in the application backend
            "usage": {
                "placeholder": True,
                "counters": {key: 0 for key in snapshot.limits},
            },
            "invoices": [invoice_summary(inv) for inv in invoices],
        }

    def cancel(self, subscription_id: Optional[str], immediately: bool = False) -> dict:
        subscription_id = _require(subscription_id, "subscription_id")

        if immediately:
            sub = self.gateway.cancel_subscription(subscription_id)
            message = "Subscription canceled immediately"
        else:
            sub = self.gateway.modify_subscription(subscription_id, cancel_at_period_end=True)
            message = "Subscription will be canceled at the end of the current period"

        logger.info("Cancel subscription %s (immediately=%s)", subscription_id, immediately)
        return {"success": True, "message": message, "subscription": subscription_summary(sub)}

    def reactivate(self, subscription_id: Optional[str]) -> dict:
        subscription_id = _require(subscription_id, "subscription_id")

        sub = self.gateway.modify_subscription(subscription_id, cancel_at_period_end=False)
        logger.info("Reactivated subscription %s", subscription_id)
        return {"success": True, "message": "Subscription reactivated", "subscription": subscription_summary(sub)}

    def change_plan(self, subscription_id: Optional[str], new_price_id: Optional[str]) -> dict:
        subscription_id = _require(subscription_id, "subscription_id")
        new_price_id = _require(new_price_id, "new_price_id")

        current = self.gateway.retrieve_subscription(subscription_id)
        item_id = (first_item(current).get("id") or "").strip()
        if not item_id:
            raise ValidationError(f"Subscription {subscription_id} has no items")

        sub = self.gateway.modify_subscription(
            subscription_id,
            items=[{"id": item_id, "price": new_price_id}],
            proration_behavior="always_invoice",
        )
        logger.info("Changed plan of subscription %s to %s", subscription_id, new_price_id)
        return {"success": True, "message": "Plan changed", "subscription": subscription_summary(sub)}
