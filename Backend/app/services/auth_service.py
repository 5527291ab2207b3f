import uuid

from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.user import User
from app.services.exceptions import Unauthenticated


def parse_bearer(authorization: str | None) -> str:
    """Extract the token from an Authorization header value."""
    if not authorization:
        raise Unauthenticated("Missing authorization header")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthenticated("Unauthorized")
    return token.strip()


def decode_access_token(token: str) -> uuid.UUID:
    """Verify an access token issued by the auth provider. Returns the user id."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
        )
    except JWTError:
        raise Unauthenticated("Unauthorized")

    try:
        return uuid.UUID(payload.get("sub", ""))
    except (TypeError, ValueError):
        raise Unauthenticated("Unauthorized")


async def resolve_user(db: AsyncSession, authorization: str | None) -> User:
    """Resolve an Authorization header to a known user."""
    user_id = decode_access_token(parse_bearer(authorization))
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise Unauthenticated("Unauthorized")
    return user
