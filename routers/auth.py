from fastapi import APIRouter, Request
from starlette import status
from utils.deps import db_dependency, user_dependency
from schemas.auth_schemas import CreateUserRequest, LoginRequest, Token, UserResponse
from schemas.common import envelope
from services.auth_service import AuthService
from services.token_service import TokenService
from middleware.rate_limiter import limiter
from utils.logger import get_logger

logger = get_logger(__name__)


router = APIRouter(
    prefix="/api/auth",
    tags=["auth"]
)


def _session_payload(user) -> dict:
    token = Token(**TokenService.create_tokens(user))
    return {
        "user": UserResponse.model_validate(user).model_dump(mode="json"),
        **token.model_dump(),
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit("3/minute")
async def register(request: Request, body: CreateUserRequest, db: db_dependency):
    user = AuthService.create_user(body, db)

    logger.info(
        "User registered successfully",
        extra={"user_id": user.id, "email": user.email}
    )

    return envelope(_session_payload(user), "Registration successful")


@router.post("/login", status_code=status.HTTP_200_OK)
@limiter.limit("5/minute")
async def login(request: Request, body: LoginRequest, db: db_dependency):
    user = AuthService.authenticate_user(body.email, body.password, db)

    logger.info(
        "User logged in successfully",
        extra={"user_id": user.id, "email": user.email}
    )

    return envelope(_session_payload(user), "Login successful")


@router.post("/logout", status_code=status.HTTP_200_OK)
@limiter.limit("10/minute")
async def logout(request: Request, user: user_dependency):
    """
    Access tokens are stateless; the client discards its token.
    """
    logger.info("User logged out", extra={"user_id": user.get("user_id")})

    return envelope(message="Logged out successfully")
