from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.models.user import User
from app.services import auth_service
from app.services.activation_service import ActivationReconciler
from app.services.cancellation_service import CancellationHandler
from app.services.exceptions import Unauthenticated
from app.services.razorpay_service import RazorpayClient


async def get_current_user(
    authorization: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> User:
    try:
        return await auth_service.resolve_user(db, authorization)
    except Unauthenticated as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_razorpay_client(request: Request) -> RazorpayClient:
    # Shared pool opened in the app lifespan; absent under ASGITransport
    http_client = getattr(request.app.state, "http_client", None)
    return RazorpayClient(settings.razorpay_credentials, http_client=http_client)


def get_activation_reconciler(
    gateway: RazorpayClient = Depends(get_razorpay_client),
) -> ActivationReconciler:
    return ActivationReconciler(gateway, settings.billing_policy)


def get_cancellation_handler(
    gateway: RazorpayClient = Depends(get_razorpay_client),
) -> CancellationHandler:
    return CancellationHandler(gateway)
