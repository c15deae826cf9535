import hashlib
import hmac
import json
import pathlib
import sys
import time
from typing import Any, Optional

import pytest
from fastapi.testclient import TestClient

# Ensure repository root is importable when pytest is invoked from other directories
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from billing_relay.config import Settings
from billing_relay.domain.billing.errors import UpstreamProviderError
from billing_relay.services.payments.sinks import SnapshotSink
from server import create_app

WEBHOOK_SECRET = "whsec_test_secret"
PERIOD_END = 1767225600  # 2026-01-01T00:00:00Z


def sign_payload(body: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """Build a valid Stripe-Signature header (v1 scheme) for body."""
    ts = timestamp or int(time.time())
    signed_payload = f"{ts}.".encode() + body
    sig = hmac.new(secret.encode(), signed_payload, hashlib.sha256).hexdigest()
    return f"t={ts},v1={sig}"


def make_subscription(
    subscription_id: str = "sub_123",
    customer_id: str = "cus_123",
    price_id: str = "price_pro_monthly",
    status: str = "active",
    **overrides: Any,
) -> dict:
    sub = {
        "id": subscription_id,
        "object": "subscription",
        "customer": customer_id,
        "status": status,
        "cancel_at_period_end": False,
        "current_period_end": PERIOD_END,
        "trial_end": None,
        "items": {
            "object": "list",
            "data": [
                {
                    "id": "si_123",
                    "price": {"id": price_id, "object": "price"},
                    "current_period_end": PERIOD_END,
                }
            ],
        },
    }
    sub.update(overrides)
    return sub


def make_event(event_type: str, data_object: dict, event_id: str = "evt_123") -> bytes:
    return json.dumps(
        {
            "id": event_id,
            "object": "event",
            "type": event_type,
            "created": 1760000000,
            "data": {"object": data_object},
        }
    ).encode()


class FakeStripeGateway:
    """In-memory stand-in for StripeGateway."""

    def __init__(self):
        self.customers: dict[str, dict] = {
            "cus_123": {"id": "cus_123", "email": "ana@example.com", "metadata": {"escritorio_id": "esc_42"}},
        }
        self.prices: dict[str, dict] = {
            "price_pro_monthly": {
                "id": "price_pro_monthly",
                "lookup_key": "pro_monthly",
                "product": {"id": "prod_pro", "metadata": {"max_users": "10", "max_processos": "500"}},
            },
        }
        self.subscriptions: dict[str, dict] = {"sub_123": make_subscription()}
        self.invoices: dict[str, list[dict]] = {}
        self.calls: list[tuple] = []
        self.fail_on: set[str] = set()
        self._seq = 0

    def _record(self, name: str, *args: Any):
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise UpstreamProviderError(f"{name} failed")

    def called(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]

    def _next_id(self, prefix: str) -> str:
        self._seq += 1
        return f"{prefix}_new{self._seq}"

    def retrieve_customer(self, customer_id):
        self._record("retrieve_customer", customer_id)
        if customer_id not in self.customers:
            raise UpstreamProviderError(f"No such customer: '{customer_id}'")
        return self.customers[customer_id]

    def find_customer_by_email(self, email):
        self._record("find_customer_by_email", email)
        for customer in self.customers.values():
            if customer.get("email") == email:
                return customer
        return None

    def create_customer(self, email, metadata):
        self._record("create_customer", email, metadata)
        customer = {"id": self._next_id("cus"), "email": email, "metadata": dict(metadata)}
        self.customers[customer["id"]] = customer
        return customer

    def update_customer_metadata(self, customer_id, metadata):
        self._record("update_customer_metadata", customer_id, metadata)
        customer = self.customers[customer_id]
        customer["metadata"] = {**(customer.get("metadata") or {}), **metadata}
        return customer

    def retrieve_price(self, price_id):
        self._record("retrieve_price", price_id)
        if price_id not in self.prices:
            raise UpstreamProviderError(f"No such price: '{price_id}'")
        return self.prices[price_id]

    def create_checkout_session(self, **params):
        self._record("create_checkout_session", params)
        return {"id": "cs_test_1", "url": "https://checkout.stripe.test/cs_test_1"}

    def create_portal_session(self, customer_id, return_url):
        self._record("create_portal_session", customer_id, return_url)
        return {"id": "bps_1", "url": f"https://billing.stripe.test/{customer_id}"}

    def latest_subscription(self, customer_id):
        self._record("latest_subscription", customer_id)
        for sub in self.subscriptions.values():
            if sub["customer"] == customer_id:
                return sub
        return None

    def retrieve_subscription(self, subscription_id):
        self._record("retrieve_subscription", subscription_id)
        if subscription_id not in self.subscriptions:
            raise UpstreamProviderError(f"No such subscription: '{subscription_id}'")
        return self.subscriptions[subscription_id]

    def cancel_subscription(self, subscription_id):
        self._record("cancel_subscription", subscription_id)
        sub = self.retrieve_subscription(subscription_id)
        sub["status"] = "canceled"
        return sub

    def modify_subscription(self, subscription_id, **params):
        self._record("modify_subscription", subscription_id, params)
        sub = self.retrieve_subscription(subscription_id)
        if "cancel_at_period_end" in params:
            sub["cancel_at_period_end"] = params["cancel_at_period_end"]
        for item in params.get("items") or []:
            price_id = item["price"]
            price = self.prices.get(price_id) or {"id": price_id}
            sub["items"]["data"][0] = {**sub["items"]["data"][0], "price": price}
        return sub

    def list_invoices(self, customer_id, limit=5):
        self._record("list_invoices", customer_id, limit)
        return list(self.invoices.get(customer_id, []))[:limit]


class RecordingSink(SnapshotSink):
    name = "recording"

    def __init__(self):
        self.writes = []

    def write(self, snapshot, event=None):
        self.writes.append((snapshot, event))


@pytest.fixture
def settings():
    return Settings(
        stripe_secret_key="sk_test_123",
        stripe_webhook_secret=WEBHOOK_SECRET,
        app_url="https://app.example.com",
    )


@pytest.fixture
def gateway():
    return FakeStripeGateway()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def app_instance(settings, gateway, sink):
    return create_app(settings, gateway=gateway, sinks=[sink])


@pytest.fixture
def client(app_instance):
    with TestClient(app_instance) as c:
        yield c
