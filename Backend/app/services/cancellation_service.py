import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.subscription import SUBSCRIPTION_ACTIVE
from app.models.user import User
from app.services import subscription_service
from app.services.exceptions import InvalidState, StoreUpdateError, SubscriptionNotFound
from app.services.razorpay_service import RazorpayClient

logger = logging.getLogger(__name__)


class CancellationHandler:
    """Cancel a user's active subscription upstream first, then locally."""

    def __init__(self, gateway: RazorpayClient):
        self.gateway = gateway

    async def cancel(self, db: AsyncSession, user: User, subscription_id: str) -> None:
        """Cancel `subscription_id` on behalf of `user`.

        Raises SubscriptionNotFound, InvalidState, GatewayError or
        StoreUpdateError. Nothing is written locally unless the gateway
        confirmed the cancellation (or there was nothing to cancel upstream).
        """
        try:
            sub_uuid = uuid.UUID(str(subscription_id))
        except ValueError:
            raise SubscriptionNotFound("Subscription not found")

        sub = await subscription_service.get_owned_subscription(db, sub_uuid, user.id)
        if sub is None:
            raise SubscriptionNotFound("Subscription not found")

        if sub.subscription_status != SUBSCRIPTION_ACTIVE:
            raise InvalidState("Subscription is not active")

        if sub.razorpay_subscription_id:
            await self.gateway.cancel_subscription(sub.razorpay_subscription_id)

        try:
            cancelled = await subscription_service.mark_cancelled(
                db, sub, now=datetime.now(timezone.utc)
            )
        except SQLAlchemyError as exc:
            logger.error(
                "Subscription %s cancelled upstream but local update failed: %s",
                sub.id,
                exc,
            )
            raise StoreUpdateError(f"Failed to update subscription: {exc}") from exc

        if not cancelled:
            logger.error(
                "Subscription %s cancelled upstream but changed status concurrently (now %s)",
                sub.id,
                sub.subscription_status,
            )
            raise StoreUpdateError(
                f"Failed to update subscription: status changed to {sub.subscription_status}"
            )

        logger.info("Subscription %s cancelled for user %s", sub.id, user.id)
