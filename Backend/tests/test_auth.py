import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.services.auth_service import decode_access_token, parse_bearer, resolve_user
from app.services.exceptions import Unauthenticated


def test_parse_bearer():
    assert parse_bearer("Bearer abc.def.ghi") == "abc.def.ghi"
    assert parse_bearer("bearer  abc ") == "abc"


@pytest.mark.parametrize("header", ["", "Basic abc", "Bearer", "Bearer   "])
def test_parse_bearer_rejects(header):
    with pytest.raises(Unauthenticated):
        parse_bearer(header)


def test_parse_bearer_missing_header():
    with pytest.raises(Unauthenticated) as exc_info:
        parse_bearer(None)
    assert exc_info.value.message == "Missing authorization header"


def test_decode_access_token(token_for):
    user_id = uuid.uuid4()
    assert decode_access_token(token_for(user_id)) == user_id


def test_decode_access_token_wrong_secret(token_for):
    with pytest.raises(Unauthenticated):
        decode_access_token(token_for(uuid.uuid4(), secret="not-the-secret"))


def test_decode_access_token_garbage():
    with pytest.raises(Unauthenticated):
        decode_access_token("not-a-jwt")


async def test_resolve_user(db_session: AsyncSession, test_user: User, token_for):
    user = await resolve_user(db_session, f"Bearer {token_for(test_user.id)}")
    assert user.id == test_user.id


async def test_resolve_user_unknown(db_session: AsyncSession, token_for):
    with pytest.raises(Unauthenticated) as exc_info:
        await resolve_user(db_session, f"Bearer {token_for(uuid.uuid4())}")
    assert exc_info.value.message == "Unauthorized"
