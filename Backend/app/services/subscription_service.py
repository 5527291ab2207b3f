import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.payment_transaction import PaymentTransaction
from app.models.subscription import (
    SUBSCRIPTION_ACTIVE,
    SUBSCRIPTION_CANCELLED,
    SUBSCRIPTION_PENDING,
    UserSubscription,
)
from app.models.subscription_plan import SubscriptionPlan


def _as_utc(value: datetime | None) -> datetime | None:
    # Some backends hand back naive datetimes for timezone-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _is_running(sub: UserSubscription, now: datetime) -> bool:
    cycle_end = _as_utc(sub.current_billing_cycle_end)
    return (
        sub.subscription_status == SUBSCRIPTION_ACTIVE
        and cycle_end is not None
        and cycle_end > now
    )


async def list_plans(db: AsyncSession) -> list[SubscriptionPlan]:
    """Active plans, cheapest first."""
    result = await db.execute(
        select(SubscriptionPlan)
        .where(SubscriptionPlan.is_active.is_(True))
        .order_by(SubscriptionPlan.plan_price_usd)
    )
    return list(result.scalars().all())


async def get_subscription_status(db: AsyncSession, user_id: uuid.UUID) -> dict:
    """Get the subscription the app should display for a user.

    A paid subscription whose cycle is still running wins over newer records
    (e.g. a pending plan change); otherwise the most recent record is used.
    """
    result = await db.execute(
        select(UserSubscription)
        .where(UserSubscription.user_id == user_id)
        .order_by(UserSubscription.created_at.desc())
    )
    subs = list(result.unique().scalars().all())

    now = datetime.now(timezone.utc)
    running = [s for s in subs if _is_running(s, now)]
    sub = running[0] if running else (subs[0] if subs else None)

    if sub is None:
        return {
            "is_active": False,
            "subscription_id": None,
            "plan_name": None,
            "plan_price_usd": None,
            "subscription_status": None,
            "current_billing_cycle_start": None,
            "current_billing_cycle_end": None,
            "auto_renewal_enabled": False,
            "cancelled_at": None,
        }

    cycle_end = _as_utc(sub.current_billing_cycle_end)
    is_active = _is_running(sub, now)

    return {
        "is_active": is_active,
        "subscription_id": sub.id,
        "plan_name": sub.plan.plan_name if sub.plan else None,
        "plan_price_usd": sub.plan.plan_price_usd if sub.plan else None,
        "subscription_status": sub.subscription_status,
        "current_billing_cycle_start": _as_utc(sub.current_billing_cycle_start),
        "current_billing_cycle_end": cycle_end,
        "auto_renewal_enabled": sub.auto_renewal_enabled,
        "cancelled_at": _as_utc(sub.cancelled_at),
    }


async def find_by_provider_reference(
    db: AsyncSession, reference: str
) -> UserSubscription | None:
    """Look up the subscription whose recurring-billing reference matches.

    Pending records come first, then the newest, so a reused reference
    resolves to the record still awaiting payment.
    """
    result = await db.execute(
        select(UserSubscription)
        .where(UserSubscription.razorpay_subscription_id == reference)
        .order_by(
            case((UserSubscription.subscription_status == SUBSCRIPTION_PENDING, 0), else_=1),
            UserSubscription.created_at.desc(),
        )
    )
    return result.unique().scalars().first()


async def get_owned_subscription(
    db: AsyncSession, subscription_id: uuid.UUID, user_id: uuid.UUID
) -> UserSubscription | None:
    """Fetch a subscription only if it belongs to the given user."""
    result = await db.execute(
        select(UserSubscription).where(
            UserSubscription.id == subscription_id,
            UserSubscription.user_id == user_id,
        )
    )
    return result.unique().scalar_one_or_none()


async def activate(
    db: AsyncSession,
    sub: UserSubscription,
    cycle_days: int,
    now: datetime | None = None,
) -> bool:
    """Move a pending subscription to active and open a new billing cycle.

    The update only applies while the row is still pending. Returns False
    when another request changed the status first; `sub` is refreshed
    either way.
    """
    now = now or datetime.now(timezone.utc)
    result = await db.execute(
        update(UserSubscription)
        .where(
            UserSubscription.id == sub.id,
            UserSubscription.subscription_status == SUBSCRIPTION_PENDING,
        )
        .values(
            subscription_status=SUBSCRIPTION_ACTIVE,
            current_billing_cycle_start=now,
            current_billing_cycle_end=now + timedelta(days=cycle_days),
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    await db.refresh(sub)
    return result.rowcount == 1


async def mark_cancelled(
    db: AsyncSession,
    sub: UserSubscription,
    now: datetime | None = None,
) -> bool:
    """Move an active subscription to cancelled and stop auto renewal.

    Same conditional-update contract as `activate`.
    """
    now = now or datetime.now(timezone.utc)
    result = await db.execute(
        update(UserSubscription)
        .where(
            UserSubscription.id == sub.id,
            UserSubscription.subscription_status == SUBSCRIPTION_ACTIVE,
        )
        .values(
            subscription_status=SUBSCRIPTION_CANCELLED,
            cancelled_at=now,
            auto_renewal_enabled=False,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    await db.refresh(sub)
    return result.rowcount == 1


async def record_payment(
    db: AsyncSession,
    sub: UserSubscription,
    payment_id: str | None,
    order_id: str,
    amount_paid: float,
    currency: str,
    now: datetime | None = None,
) -> PaymentTransaction:
    """Append a captured payment for the subscription."""
    transaction = PaymentTransaction(
        user_id=sub.user_id,
        subscription_id=sub.id,
        razorpay_payment_id=payment_id,
        razorpay_order_id=order_id,
        amount_paid=amount_paid,
        currency=currency,
        payment_status="captured",
        transaction_date=now or datetime.now(timezone.utc),
    )
    db.add(transaction)
    await db.flush()
    return transaction
