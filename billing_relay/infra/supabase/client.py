import logging
from typing import Any

import requests

logger = logging.getLogger(__name__)

_MAX_BODY_IN_ERROR = 800


def _truncate(body: str) -> str:
    if len(body) > _MAX_BODY_IN_ERROR:
        return body[:_MAX_BODY_IN_ERROR] + "...(truncated)"
    return body


class SupabaseRest:
    """Minimal PostgREST client authenticated with the service role key."""

    def __init__(self, url: str, service_role_key: str, timeout: float = 15.0):
        self.url = (url or "").strip().rstrip("/")
        self.service_role_key = (service_role_key or "").strip()
        self.timeout = timeout

    def admin_headers(self) -> dict[str, str]:
        return {
            "apikey": self.service_role_key,
            "Authorization": f"Bearer {self.service_role_key}",
            "Content-Type": "application/json",
        }

    def rest_url(self, table: str) -> str:
        if not self.url or not self.service_role_key:
            raise RuntimeError("Missing required env: SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY")
        return f"{self.url}/rest/v1/{table}"

    def post_json(
        self,
        url: str,
        payload: Any,
        params: dict | None = None,
        prefer: str = "return=representation",
    ) -> list:
        headers = self.admin_headers()
        headers["Prefer"] = prefer

        r = requests.post(url, headers=headers, params=params, json=payload, timeout=self.timeout)
        return self._rows(r, "POST")

    def _rows(self, r: requests.Response, method: str) -> list:
        ctype = (r.headers.get("content-type") or "").lower()

        if r.status_code >= 300:
            raise RuntimeError(
                f"Supabase {method} failed: {r.status_code} {r.reason} "
                f"(content-type={ctype}) body={_truncate(r.text or '')}"
            )

        # return=minimal and 204 come back without a body
        if r.status_code == 204 or not (r.content and r.content.strip()):
            return []

        if "application/json" not in ctype and not ctype.endswith("+json"):
            logger.warning("Supabase %s returned non-JSON content-type=%s", method, ctype)
            return []

        try:
            return r.json() or []
        except ValueError as e:
            raise RuntimeError(
                f"Supabase {method} JSON decode failed: {e} "
                f"(status={r.status_code}, content-type={ctype}) body={_truncate(r.text or '')}"
            ) from e
