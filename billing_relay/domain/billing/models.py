from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class VerifiedEvent:
    """A Stripe event whose signature has been checked.

    Produced only by `verify_event`; handlers never build one from an
    unverified body.
    """

    id: str
    type: str
    created: Optional[int]
    data_object: dict[str, Any]
    raw: dict[str, Any] = field(repr=False)


class SubscriptionStatus(str, Enum):
    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    UNPAID = "unpaid"
    PAUSED = "paused"


class SubscriptionSnapshot(BaseModel):
    subscription_id: str
    customer_id: str
    escritorio_id: Optional[str] = None
    status: SubscriptionStatus
    plan_id: str
    price_id: str
    limits: dict[str, str] = Field(default_factory=dict)
    current_period_end: Optional[datetime] = None
    trial_end: Optional[datetime] = None
    cancel_at_period_end: bool = False

    def to_row(self) -> dict[str, Any]:
        """Persistence row keyed by stripe_subscription_id."""
        return {
            "stripe_subscription_id": self.subscription_id,
            "stripe_customer_id": self.customer_id,
            "escritorio_id": self.escritorio_id,
            "status": self.status.value,
            "plan_id": self.plan_id,
            "price_id": self.price_id,
            "limits": dict(self.limits),
            "current_period_end": _iso(self.current_period_end),
            "trial_end": _iso(self.trial_end),
            "cancel_at_period_end": self.cancel_at_period_end,
        }


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None
