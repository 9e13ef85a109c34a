from datetime import datetime, timezone, timedelta
from jose import jwt, JWTError
from core.config import settings
from core.exceptions import UnauthorizedError


class TokenService:
    """
    Issues and decodes JWT access tokens.

    Tokens are stateless: logging out means the client drops its token.
    """

    @staticmethod
    def create_access_token(email: str, user_id: int, role: str, expires_delta: timedelta = None):
        """
        Creates a JWT access token.

        Args:
            email: User's email (``sub`` claim)
            user_id: User's ID
            role: User's role
            expires_delta: Token lifetime (default: ACCESS_TOKEN_EXPIRE_MINUTES)

        Returns:
            JWT access token string
        """
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

        expire = datetime.now(timezone.utc) + expires_delta

        payload = {
            "sub": email,
            "id": user_id,
            "role": role,
            "type": "access",
            "exp": expire
        }

        return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def create_tokens(user) -> dict:
        return {
            "access_token": TokenService.create_access_token(user.email, user.id, user.role),
            "token_type": "bearer",
            "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        }

    @staticmethod
    def decode_access_token(token: str) -> dict:
        """
        Validates an access token and returns the identity it carries.

        Raises:
            UnauthorizedError: bad signature, expired, wrong type or missing claims
        """
        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError:
            raise UnauthorizedError("Could not validate credentials.")

        email = payload.get("sub")
        user_id = payload.get("id")

        if email is None or user_id is None:
            raise UnauthorizedError("Could not validate credentials.")

        if payload.get("type") != "access":
            raise UnauthorizedError("Invalid token type. Access token required.")

        return {"email": email, "user_id": user_id, "user_role": payload.get("role")}
