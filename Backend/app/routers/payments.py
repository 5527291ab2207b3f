import logging

import sentry_sdk
from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_activation_reconciler, get_cancellation_handler
from app.middleware.cors import CALLBACK_CORS_HEADERS, CORS_HEADERS
from app.schemas.subscription import (
    BillingErrorResponse,
    CancelSubscriptionRequest,
    CancelSubscriptionResponse,
)
from app.services import auth_service
from app.services.activation_service import ActivationOutcome, ActivationReconciler
from app.services.cancellation_service import CancellationHandler
from app.services.exceptions import (
    BillingError,
    InvalidState,
    MissingInput,
    SubscriptionNotFound,
    Unauthenticated,
)
from app.services.payment_pages import app_redirect_url, render_payment_page

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments"])

GENERIC_ERROR_MESSAGE = "An error occurred. Please contact support."

OUTCOME_PAGES = {
    ActivationOutcome.FAILED: ("Payment Failed", "Your payment was not successful. Please try again."),
    ActivationOutcome.PENDING: ("Payment Pending", "Your payment is still being processed. Please wait."),
    ActivationOutcome.ACTIVATED: ("Success", "Payment successful! Redirecting to app..."),
    ActivationOutcome.ALREADY_ACTIVE: ("Success", "Payment successful! Redirecting to app..."),
}


def _page(content: str) -> HTMLResponse:
    return HTMLResponse(content=content, status_code=200, headers=CALLBACK_CORS_HEADERS)


def _cancel_error(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=BillingErrorResponse(error=message).model_dump(),
        headers=CORS_HEADERS,
    )


@router.options("/payment-callback", include_in_schema=False)
async def payment_callback_preflight():
    return PlainTextResponse("ok", headers=CALLBACK_CORS_HEADERS)


@router.get("/payment-callback", response_class=HTMLResponse)
async def payment_callback(
    razorpay_payment_link_id: str | None = None,
    razorpay_payment_id: str | None = None,
    razorpay_payment_link_status: str | None = None,
    reconciler: ActivationReconciler = Depends(get_activation_reconciler),
    db: AsyncSession = Depends(get_db),
):
    """Razorpay redirects the payer's browser here after checkout.

    Always answers 200 with an HTML status page; failures are rendered, not
    raised.
    """
    try:
        result = await reconciler.reconcile(
            db,
            payment_link_id=razorpay_payment_link_id,
            payment_id=razorpay_payment_id,
            reported_status=razorpay_payment_link_status,
        )
    except BillingError as e:
        await db.rollback()
        message = e.message if isinstance(e, (SubscriptionNotFound, InvalidState)) else GENERIC_ERROR_MESSAGE
        logger.warning("Payment callback for %s failed: %s", razorpay_payment_link_id, e.message)
        return _page(render_payment_page("Error", message, success=False))
    except Exception as e:
        await db.rollback()
        logger.exception("Payment callback for %s crashed", razorpay_payment_link_id)
        sentry_sdk.capture_exception(e)
        return _page(render_payment_page("Error", GENERIC_ERROR_MESSAGE, success=False))

    title, message = OUTCOME_PAGES[result.outcome]
    if not result.success:
        return _page(render_payment_page(title, message, success=False))

    return _page(
        render_payment_page(
            title,
            message,
            success=True,
            redirect_url=app_redirect_url(reconciler.policy.success_url, result.user_id),
            user_id=result.user_id,
        )
    )


@router.options("/cancel-subscription", include_in_schema=False)
async def cancel_subscription_preflight():
    return PlainTextResponse("ok", headers=CORS_HEADERS)


async def _read_subscription_id(request: Request) -> str:
    try:
        body = CancelSubscriptionRequest.model_validate(await request.json())
    except (ValueError, ValidationError):
        raise MissingInput("Missing subscription_id")
    if not body.subscription_id:
        raise MissingInput("Missing subscription_id")
    return body.subscription_id


@router.post(
    "/cancel-subscription",
    response_model=CancelSubscriptionResponse,
    responses={400: {"model": BillingErrorResponse}},
)
async def cancel_subscription(
    request: Request,
    authorization: str | None = Header(default=None),
    handler: CancellationHandler = Depends(get_cancellation_handler),
    db: AsyncSession = Depends(get_db),
):
    """Cancel the caller's active subscription at the end of the paid cycle."""
    try:
        if not authorization:
            raise Unauthenticated("Missing authorization header")
        subscription_id = await _read_subscription_id(request)
        user = await auth_service.resolve_user(db, authorization)
        await handler.cancel(db, user, subscription_id)
    except BillingError:
        # Rendered as a 400 by the app-wide BillingError handler
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.exception("Error cancelling subscription")
        sentry_sdk.capture_exception(e)
        return _cancel_error("Unknown error occurred")

    return JSONResponse(
        status_code=200,
        content=CancelSubscriptionResponse(message="Subscription cancelled successfully").model_dump(),
        headers=CORS_HEADERS,
    )
