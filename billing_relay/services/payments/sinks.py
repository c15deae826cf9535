import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from billing_relay.domain.billing.errors import SinkFailure
from billing_relay.domain.billing.models import SubscriptionSnapshot, VerifiedEvent
from billing_relay.infra.backend.forwarder import BackendClient
from billing_relay.infra.supabase.subscription_repo import SubscriptionRepo

logger = logging.getLogger(__name__)


class SnapshotSink(ABC):
    """Downstream consumer of an enriched subscription snapshot."""

    name = "sink"

    @abstractmethod
    def write(self, snapshot: SubscriptionSnapshot, event: Optional[VerifiedEvent] = None) -> None:
        """Deliver the snapshot. Raise SinkFailure on failure."""
        raise NotImplementedError


class SupabaseSubscriptionSink(SnapshotSink):
    name = "supabase"

    def __init__(self, repo: SubscriptionRepo):
        self.repo = repo

    def write(self, snapshot: SubscriptionSnapshot, event: Optional[VerifiedEvent] = None) -> None:
        try:
            self.repo.upsert(snapshot)
        except Exception as e:
            raise SinkFailure(self.name, f"Supabase upsert failed: {e}") from e


def forward_body(snapshot: SubscriptionSnapshot, event: Optional[VerifiedEvent] = None) -> dict[str, Any]:
    return {
        "event_id": event.id if event else None,
        "event_type": event.type if event else None,
        "subscription": snapshot.model_dump(mode="json"),
    }


class BackendForwardSink(SnapshotSink):
    name = "backend"

    def __init__(self, client: BackendClient):
        self.client = client

    def write(self, snapshot: SubscriptionSnapshot, event: Optional[VerifiedEvent] = None) -> None:
        try:
            self.client.post_event(forward_body(snapshot, event))
        except Exception as e:
            raise SinkFailure(self.name, f"Forward to {self.client.webhook_url} failed: {e}") from e


class SinkWriter:
    """Runs every sink independently.

    A failing sink is logged and reported as False in the outcome map; it
    never stops the other sinks or reaches the caller.
    """

    def __init__(self, sinks: Iterable[SnapshotSink] = ()):
        self.sinks = list(sinks)

    def write(self, snapshot: SubscriptionSnapshot, event: Optional[VerifiedEvent] = None) -> dict[str, bool]:
        outcome: dict[str, bool] = {}
        for sink in self.sinks:
            try:
                sink.write(snapshot, event)
                outcome[sink.name] = True
            except SinkFailure as e:
                logger.error("Sink %s failed for subscription %s: %s", e.sink, snapshot.subscription_id, e.message)
                outcome[sink.name] = False
            except Exception:
                logger.exception("Sink %s raised unexpectedly for subscription %s", sink.name, snapshot.subscription_id)
                outcome[sink.name] = False
        return outcome
