import logging
from contextlib import asynccontextmanager

import httpx
import sentry_sdk
from fastapi import FastAPI
from sqlalchemy import text

from app.config import settings
from app.database import engine

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Initialize Sentry
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=0.2 if settings.ENVIRONMENT == "production" else 1.0,
        send_default_pii=False,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: verify DB connection and open the shared gateway pool
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))

    app.state.http_client = httpx.AsyncClient(timeout=settings.RAZORPAY_TIMEOUT_SECONDS)

    yield

    # Shutdown
    await app.state.http_client.aclose()
    await engine.dispose()


app = FastAPI(
    title="MuscleAI Billing API",
    version="0.1.0",
    lifespan=lifespan,
)

from app.middleware.error_handler import register_error_handlers  # noqa: E402

register_error_handlers(app)

# Routers
from app.routers.payments import router as payments_router  # noqa: E402
from app.routers.subscriptions import router as subscriptions_router  # noqa: E402

app.include_router(payments_router)
app.include_router(subscriptions_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
