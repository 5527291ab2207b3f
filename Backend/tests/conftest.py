import json
import uuid
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import StaticPool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.config import RazorpayCredentials, settings
from app.database import get_db
from app.dependencies import get_current_user, get_razorpay_client
from app.main import app
from app.models import Base
from app.models.subscription import UserSubscription
from app.models.subscription_plan import SubscriptionPlan
from app.models.user import User
from app.services.razorpay_service import RazorpayClient

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_CREDENTIALS = RazorpayCredentials(
    key_id="rzp_test_key",
    key_secret="rzp_test_secret",
    api_base="https://api.razorpay.test/v1",
)


class FakeRazorpay:
    """In-memory Razorpay API served through httpx.MockTransport."""

    def __init__(self):
        self.payment_links: dict[str, dict] = {}
        self.requests: list[httpx.Request] = []
        self.fetch_status_code = 200
        self.cancel_status_code = 200

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/v1")

        if request.method == "GET" and path.startswith("/payment_links/"):
            if self.fetch_status_code != 200:
                return httpx.Response(self.fetch_status_code, json={"error": {"code": "SERVER_ERROR"}})
            link_id = path.rsplit("/", 1)[-1]
            link = self.payment_links.get(link_id)
            if link is None:
                return httpx.Response(400, json={"error": {"code": "BAD_REQUEST_ERROR"}})
            return httpx.Response(200, json={"id": link_id, **link})

        if request.method == "POST" and path.endswith("/cancel"):
            if self.cancel_status_code != 200:
                return httpx.Response(
                    self.cancel_status_code,
                    json={"error": {"code": "BAD_REQUEST_ERROR", "description": "cannot cancel"}},
                )
            sub_id = path.split("/")[2]
            return httpx.Response(200, json={"id": sub_id, "status": "active", "ended_at": None})

        return httpx.Response(404, json={"error": {"code": "NOT_FOUND"}})

    def client(self) -> RazorpayClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return RazorpayClient(TEST_CREDENTIALS, http_client=http_client)

    def calls(self, method: str, path_suffix: str = "") -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path.endswith(path_suffix)
        ]

    @staticmethod
    def body(request: httpx.Request) -> dict:
        return json.loads(request.content)


def make_token(user_id: uuid.UUID, secret: str | None = None) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "aud": settings.JWT_AUDIENCE,
        "role": "authenticated",
        "iat": now,
        "exp": now + timedelta(hours=1),
    }
    return jwt.encode(payload, secret or settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    user = User(
        id=uuid.uuid4(),
        email="test@example.com",
        display_name="Test User",
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def second_user(db_session: AsyncSession) -> User:
    user = User(
        id=uuid.uuid4(),
        email="other@example.com",
        display_name="Other User",
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def pro_plan(db_session: AsyncSession) -> SubscriptionPlan:
    plan = SubscriptionPlan(
        id=uuid.uuid4(),
        plan_name="Pro",
        plan_description="Personalised workouts and nutrition",
        plan_price_usd=Decimal("9.99"),
        features=["AI workout plans", "Nutrition tracking"],
        is_active=True,
    )
    db_session.add(plan)
    await db_session.commit()
    await db_session.refresh(plan)
    return plan


@pytest.fixture
def make_subscription(db_session: AsyncSession):
    async def _make(
        user: User,
        status: str = "pending",
        reference: str | None = "plink_test_123",
        plan: SubscriptionPlan | None = None,
        cycle_end: datetime | None = None,
        created_at: datetime | None = None,
    ) -> UserSubscription:
        now = datetime.now(timezone.utc)
        sub = UserSubscription(
            id=uuid.uuid4(),
            user_id=user.id,
            plan_id=plan.id if plan else None,
            subscription_status=status,
            razorpay_subscription_id=reference,
            current_billing_cycle_start=now if cycle_end else None,
            current_billing_cycle_end=cycle_end,
            auto_renewal_enabled=status != "cancelled",
            cancelled_at=now if status == "cancelled" else None,
            created_at=created_at or now,
            updated_at=now,
        )
        db_session.add(sub)
        await db_session.commit()
        await db_session.refresh(sub)
        return sub

    return _make


@pytest.fixture
def razorpay() -> FakeRazorpay:
    return FakeRazorpay()


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    return {"Authorization": f"Bearer {make_token(test_user.id)}"}


@pytest.fixture
async def client(
    session_factory, test_user: User, razorpay: FakeRazorpay
) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_current_user():
        return test_user

    gateway = razorpay.client()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user
    app.dependency_overrides[get_razorpay_client] = lambda: gateway

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    await gateway.http_client.aclose()


@pytest.fixture
def token_for():
    return make_token
