"""Stripe webhook verification and classification.

The signature is checked over the exact request bytes with Stripe's own
primitive (HMAC-SHA256 over "<timestamp>.<payload>", 5 minute tolerance).
The body is only parsed after the check succeeds.
"""

import json
from typing import Optional

import stripe

from billing_relay.domain.billing.errors import SignatureInvalid
from billing_relay.domain.billing.models import VerifiedEvent

DEFAULT_TOLERANCE_SECONDS = 300

SUBSCRIPTION_EVENT_PREFIX = "customer.subscription"


def verify_event(
    payload: bytes,
    signature: Optional[str],
    secret: str,
    tolerance: int = DEFAULT_TOLERANCE_SECONDS,
) -> VerifiedEvent:
    """Authenticate a raw webhook body and return the verified event.

    Raises SignatureInvalid on any failure; nothing is parsed before the
    signature is accepted.
    """
    if not secret:
        raise SignatureInvalid("Webhook signing secret is not configured")
    if not signature:
        raise SignatureInvalid("Missing stripe-signature header")

    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError as e:
        raise SignatureInvalid(f"Payload is not valid UTF-8: {e}") from e

    try:
        stripe.WebhookSignature.verify_header(text, signature, secret, tolerance)
    except stripe.SignatureVerificationError as e:
        raise SignatureInvalid(str(e) or "No signatures found matching the expected signature") from e

    try:
        data = json.loads(text)
    except ValueError as e:
        raise SignatureInvalid(f"Invalid payload: {e}") from e

    if not isinstance(data, dict) or not data.get("type"):
        raise SignatureInvalid("Invalid payload: missing event type")

    data_object = (data.get("data") or {}).get("object") or {}

    return VerifiedEvent(
        id=str(data.get("id") or ""),
        type=str(data["type"]),
        created=data.get("created"),
        data_object=data_object,
        raw=data,
    )


def is_subscription_event(event: VerifiedEvent) -> bool:
    return event.type.startswith(SUBSCRIPTION_EVENT_PREFIX)
