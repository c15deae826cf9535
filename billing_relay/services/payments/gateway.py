import logging
from typing import Any, Callable, Optional

import stripe

from billing_relay.domain.billing.errors import UpstreamProviderError

logger = logging.getLogger(__name__)


def _as_dict(obj: Any) -> Any:
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)


class StripeGateway:
    """Thin wrapper over the Stripe SDK.

    Every call carries the configured API key explicitly instead of relying on
    the module-level `stripe.api_key`, and every result is returned as a plain
    dict. Stripe errors surface as UpstreamProviderError with the provider's
    message.
    """

    def __init__(self, api_key: str):
        self.api_key = (api_key or "").strip()

    def _call(self, fn: Callable[..., Any], *args, **kwargs) -> Any:
        if not self.api_key:
            raise UpstreamProviderError("Missing required env: STRIPE_SECRET_KEY")
        try:
            return fn(*args, api_key=self.api_key, **kwargs)
        except stripe.StripeError as e:
            message = e.user_message or str(e)
            logger.warning("Stripe call %s failed: %s", getattr(fn, "__qualname__", fn), message)
            raise UpstreamProviderError(message) from e

    # customers

    def retrieve_customer(self, customer_id: str) -> dict:
        return _as_dict(self._call(stripe.Customer.retrieve, customer_id))

    def find_customer_by_email(self, email: str) -> Optional[dict]:
        result = self._call(stripe.Customer.list, email=email, limit=1)
        data = list(result.data or [])
        return _as_dict(data[0]) if data else None

    def create_customer(self, email: str, metadata: dict[str, str]) -> dict:
        return _as_dict(self._call(stripe.Customer.create, email=email, metadata=metadata))

    def update_customer_metadata(self, customer_id: str, metadata: dict[str, str]) -> dict:
        return _as_dict(self._call(stripe.Customer.modify, customer_id, metadata=metadata))

    # prices

    def retrieve_price(self, price_id: str) -> dict:
        return _as_dict(self._call(stripe.Price.retrieve, price_id, expand=["product"]))

    # sessions

    def create_checkout_session(self, **params) -> dict:
        return _as_dict(self._call(stripe.checkout.Session.create, **params))

    def create_portal_session(self, customer_id: str, return_url: str) -> dict:
        return _as_dict(
            self._call(stripe.billing_portal.Session.create, customer=customer_id, return_url=return_url)
        )

    # subscriptions

    def latest_subscription(self, customer_id: str) -> Optional[dict]:
        result = self._call(stripe.Subscription.list, customer=customer_id, status="all", limit=1)
        data = list(result.data or [])
        return _as_dict(data[0]) if data else None

    def retrieve_subscription(self, subscription_id: str) -> dict:
        return _as_dict(self._call(stripe.Subscription.retrieve, subscription_id))

    def cancel_subscription(self, subscription_id: str) -> dict:
        return _as_dict(self._call(stripe.Subscription.cancel, subscription_id))

    def modify_subscription(self, subscription_id: str, **params) -> dict:
        return _as_dict(self._call(stripe.Subscription.modify, subscription_id, **params))

    # invoices

    def list_invoices(self, customer_id: str, limit: int = 5) -> list[dict]:
        result = self._call(stripe.Invoice.list, customer=customer_id, limit=limit)
        return [_as_dict(inv) for inv in (result.data or [])]
