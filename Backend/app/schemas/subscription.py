import uuid
from datetime import datetime

from pydantic import BaseModel


class CancelSubscriptionRequest(BaseModel):
    subscription_id: str | None = None


class CancelSubscriptionResponse(BaseModel):
    success: bool = True
    message: str


class BillingErrorResponse(BaseModel):
    success: bool = False
    error: str


class SubscriptionPlanResponse(BaseModel):
    id: uuid.UUID
    plan_name: str
    plan_description: str | None = None
    plan_price_usd: float
    features: list[str] | None = None

    model_config = {"from_attributes": True}


class SubscriptionStatusResponse(BaseModel):
    is_active: bool
    subscription_id: uuid.UUID | None = None
    plan_name: str | None = None
    plan_price_usd: float | None = None
    subscription_status: str | None = None
    current_billing_cycle_start: datetime | None = None
    current_billing_cycle_end: datetime | None = None
    auto_renewal_enabled: bool = False
    cancelled_at: datetime | None = None

    model_config = {"from_attributes": True}
