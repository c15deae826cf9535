from billing_relay.domain.billing.models import SubscriptionSnapshot
from billing_relay.infra.supabase.client import SupabaseRest

CONFLICT_KEY = "stripe_subscription_id"


class SubscriptionRepo:
    def __init__(self, rest: SupabaseRest, table: str = "subscriptions"):
        self.rest = rest
        self.table = table

    def upsert(self, snapshot: SubscriptionSnapshot) -> dict | None:
        """Insert-or-replace the snapshot row keyed by subscription id.

        PostgREST upsert: POST + on_conflict + Prefer resolution=merge-duplicates.
        """
        url = self.rest.rest_url(self.table)
        rows = self.rest.post_json(
            url,
            [snapshot.to_row()],
            params={"on_conflict": CONFLICT_KEY},
            prefer="resolution=merge-duplicates,return=representation",
        )
        if rows and isinstance(rows, list):
            return rows[0]
        return None
