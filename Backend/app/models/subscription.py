import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base

SUBSCRIPTION_PENDING = "pending"
SUBSCRIPTION_ACTIVE = "active"
SUBSCRIPTION_CANCELLED = "cancelled"


class UserSubscription(Base):
    """A user's enrollment in a plan. Moves pending -> active -> cancelled only."""

    __tablename__ = "user_subscriptions"

    user_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    plan_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("subscription_plans.id", ondelete="SET NULL"))
    subscription_status: Mapped[str] = mapped_column(String(20), nullable=False, default=SUBSCRIPTION_PENDING)
    # Payment link id for link-based checkout, subscription id otherwise
    razorpay_subscription_id: Mapped[str | None] = mapped_column(String(255), index=True)
    current_billing_cycle_start: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    current_billing_cycle_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    auto_renewal_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    user: Mapped["User"] = relationship(back_populates="subscriptions")  # noqa: F821
    plan: Mapped["SubscriptionPlan"] = relationship(lazy="joined")  # noqa: F821
