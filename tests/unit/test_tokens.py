from datetime import datetime, timedelta, timezone
from jose import jwt
import pytest

from core.config import settings
from core.exceptions import UnauthorizedError
from services.token_service import TokenService


def test_access_token_creation():
    test_token = TokenService.create_access_token(email="user@example.com", user_id=1, role="customer")
    assert test_token

    payload = jwt.decode(test_token, key=settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    assert payload["sub"] == "user@example.com"
    assert payload["id"] == 1
    assert payload["role"] == "customer"
    assert payload["type"] == "access"
    assert payload["exp"]


def test_decode_access_token_returns_identity():
    token = TokenService.create_access_token(email="admin@example.com", user_id=7, role="admin")

    identity = TokenService.decode_access_token(token)

    assert identity == {"email": "admin@example.com", "user_id": 7, "user_role": "admin"}


def test_expired_token_rejected():
    token = TokenService.create_access_token(
        email="user@example.com",
        user_id=1,
        role="customer",
        expires_delta=timedelta(minutes=-1)
    )

    with pytest.raises(UnauthorizedError) as exc:
        TokenService.decode_access_token(token)

    assert exc.value.status_code == 401


def test_wrong_token_type_rejected():
    token = jwt.encode(
        {
            "sub": "user@example.com",
            "id": 1,
            "role": "customer",
            "type": "refresh",
            "exp": datetime.now(timezone.utc) + timedelta(minutes=5)
        },
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )

    with pytest.raises(UnauthorizedError) as exc:
        TokenService.decode_access_token(token)

    assert "access token required" in exc.value.message.lower()


def test_token_signed_with_other_key_rejected():
    token = jwt.encode(
        {"sub": "user@example.com", "id": 1, "type": "access"},
        "not-the-secret",
        algorithm=settings.ALGORITHM
    )

    with pytest.raises(UnauthorizedError):
        TokenService.decode_access_token(token)


def test_create_tokens_shape():
    class _User:
        email = "user@example.com"
        id = 3
        role = "customer"

    tokens = TokenService.create_tokens(_User())

    assert tokens["token_type"] == "bearer"
    assert tokens["expires_in"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    assert TokenService.decode_access_token(tokens["access_token"])["user_id"] == 3
