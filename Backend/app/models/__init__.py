from app.models.base import Base
from app.models.payment_transaction import PaymentTransaction
from app.models.subscription import UserSubscription
from app.models.subscription_plan import SubscriptionPlan
from app.models.user import User

__all__ = [
    "Base",
    "PaymentTransaction",
    "SubscriptionPlan",
    "User",
    "UserSubscription",
]
