from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.subscription import SubscriptionPlanResponse, SubscriptionStatusResponse
from app.services import subscription_service

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.get("/plans", response_model=list[SubscriptionPlanResponse])
async def list_plans(db: AsyncSession = Depends(get_db)):
    """List the plans currently on sale."""
    return await subscription_service.list_plans(db)


@router.get("/status", response_model=SubscriptionStatusResponse)
async def get_status(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get the current subscription for the authenticated user."""
    status = await subscription_service.get_subscription_status(db, user.id)
    return SubscriptionStatusResponse(**status)
