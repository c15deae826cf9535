import logging
from typing import Any

import requests

logger = logging.getLogger(__name__)

FORWARD_PATH = "/api/stripe/webhook"
SECRET_HEADER = "X-Webhook-Secret"


class BackendClient:
    """Posts enriched subscription events to the application backend."""

    def __init__(self, base_url: str, shared_secret: str, timeout: float = 15.0):
        self.base_url = (base_url or "").strip().rstrip("/")
        self.shared_secret = shared_secret
        self.timeout = timeout

    @property
    def webhook_url(self) -> str:
        return f"{self.base_url}{FORWARD_PATH}"

    def post_event(self, body: dict[str, Any]) -> int:
        r = requests.post(
            self.webhook_url,
            headers={
                SECRET_HEADER: self.shared_secret,
                "Content-Type": "application/json",
            },
            json=body,
            timeout=self.timeout,
        )
        if r.status_code >= 300:
            body_text = (r.text or "")[:300]
            raise RuntimeError(f"Backend webhook failed: {r.status_code} {r.reason} body={body_text}")

        logger.debug("Forwarded event to %s (status=%s)", self.webhook_url, r.status_code)
        return r.status_code
