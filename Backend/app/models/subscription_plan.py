from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, Boolean, DateTime, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class SubscriptionPlan(Base):
    __tablename__ = "subscription_plans"

    plan_name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)  # "Basic", "Pro", "VIP"
    plan_description: Mapped[str | None] = mapped_column(Text)
    plan_price_usd: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    features: Mapped[list | None] = mapped_column(JSON, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
