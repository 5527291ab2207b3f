import enum
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import BillingPolicy
from app.models.subscription import SUBSCRIPTION_ACTIVE, SUBSCRIPTION_PENDING
from app.services import subscription_service
from app.services.exceptions import GatewayError, InvalidState, SubscriptionNotFound
from app.services.razorpay_service import PAYMENT_LINK_PAID, RazorpayClient

logger = logging.getLogger(__name__)


class ActivationOutcome(str, enum.Enum):
    FAILED = "failed"
    PENDING = "pending"
    ACTIVATED = "activated"
    ALREADY_ACTIVE = "already_active"


@dataclass
class ActivationResult:
    outcome: ActivationOutcome
    subscription_id: uuid.UUID | None = None
    user_id: uuid.UUID | None = None

    @property
    def success(self) -> bool:
        return self.outcome in (ActivationOutcome.ACTIVATED, ActivationOutcome.ALREADY_ACTIVE)


class ActivationReconciler:
    """Activate subscriptions from Razorpay payment-link callbacks.

    The status reported in the callback is only a gate for calling the
    gateway; activation always follows the gateway's own answer.
    """

    def __init__(self, gateway: RazorpayClient, policy: BillingPolicy):
        self.gateway = gateway
        self.policy = policy

    async def reconcile(
        self,
        db: AsyncSession,
        payment_link_id: str | None,
        payment_id: str | None,
        reported_status: str | None,
    ) -> ActivationResult:
        logger.info(
            "Payment callback received: link=%s payment=%s status=%s",
            payment_link_id,
            payment_id,
            reported_status,
        )

        if not payment_link_id or reported_status != PAYMENT_LINK_PAID:
            return ActivationResult(ActivationOutcome.FAILED)

        payment_link = await self.gateway.fetch_payment_link(payment_link_id)
        if payment_link.get("status") != PAYMENT_LINK_PAID:
            logger.info(
                "Payment link %s not paid yet (gateway status=%s)",
                payment_link_id,
                payment_link.get("status"),
            )
            return ActivationResult(ActivationOutcome.PENDING)

        amount = payment_link.get("amount")
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            logger.error("Paid payment link %s has no usable amount: %r", payment_link_id, amount)
            raise GatewayError("Failed to verify payment with Razorpay")

        sub = await subscription_service.find_by_provider_reference(db, payment_link_id)
        if sub is None:
            logger.error("Subscription not found for payment link %s", payment_link_id)
            raise SubscriptionNotFound("Subscription not found. Please contact support.")

        now = datetime.now(timezone.utc)
        activated = False
        if sub.subscription_status == SUBSCRIPTION_PENDING:
            activated = await subscription_service.activate(
                db, sub, cycle_days=self.policy.cycle_days, now=now
            )

        if not activated:
            return self._settled(sub)

        await subscription_service.record_payment(
            db,
            sub,
            payment_id=payment_id,
            order_id=payment_link_id,
            amount_paid=amount / self.policy.amount_divisor,
            currency=self.policy.currency,
            now=now,
        )
        logger.info("Subscription activated successfully: %s", sub.id)
        return ActivationResult(ActivationOutcome.ACTIVATED, sub.id, sub.user_id)

    @staticmethod
    def _settled(sub) -> ActivationResult:
        """Result for a subscription that was not pending when we tried to activate it."""
        if sub.subscription_status == SUBSCRIPTION_ACTIVE:
            logger.info("Subscription %s already active, skipping duplicate callback", sub.id)
            return ActivationResult(ActivationOutcome.ALREADY_ACTIVE, sub.id, sub.user_id)

        logger.warning(
            "Paid callback for subscription %s in status %s",
            sub.id,
            sub.subscription_status,
        )
        raise InvalidState("Subscription is no longer active. Please contact support.")
