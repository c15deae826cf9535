from typing import Any, Optional

from pydantic import BaseModel, Field

# Identifier fields are optional at the schema level so that a missing id is
# answered with 400 by the handlers rather than a 422 from FastAPI.


class CheckoutIn(BaseModel):
    escritorio_id: Optional[str] = Field(None, description="Tenant (escritório) id stored in customer metadata")
    email: Optional[str] = Field(None, description="Customer email; an existing customer with it is reused")
    price_id: Optional[str] = Field(None, description="Stripe price id")


class PortalIn(BaseModel):
    customer_id: Optional[str] = Field(None, description="Stripe customer id")
    return_url: Optional[str] = Field(None, description="Where the portal sends the user back (optional)")


class UrlOut(BaseModel):
    url: Optional[str] = None


class CancelIn(BaseModel):
    subscription_id: Optional[str] = None
    immediately: bool = Field(False, description="Cancel now instead of at period end")


class ReactivateIn(BaseModel):
    subscription_id: Optional[str] = None


class ChangePlanIn(BaseModel):
    subscription_id: Optional[str] = None
    new_price_id: Optional[str] = None


class SubscriptionSummary(BaseModel):
    id: Optional[str] = None
    status: Optional[str] = None
    cancel_at_period_end: bool = False
    current_period_end: Optional[str] = None
    plan_id: Optional[str] = None


class LifecycleOut(BaseModel):
    success: bool = True
    message: str = ""
    subscription: SubscriptionSummary


class SubscriptionDetailsOut(BaseModel):
    subscription: dict[str, Any]
    usage: dict[str, Any]
    invoices: list[dict[str, Any]]
