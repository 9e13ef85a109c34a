from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request
from core.config import settings
from core.exceptions import UnauthorizedError
from services.token_service import TokenService


def get_user_id(request: Request):
    """Rate-limit key: the JWT user id for signed-in callers, else the client IP."""
    header = request.headers.get("Authorization")
    if header and header.startswith("Bearer "):
        try:
            identity = TokenService.decode_access_token(header[len("Bearer "):])
        except UnauthorizedError:
            return get_remote_address(request)
        return f"user:{identity['user_id']}"

    return get_remote_address(request)

limiter = Limiter(
    key_func=get_user_id,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    enabled=settings.ENV != "testing",
)
