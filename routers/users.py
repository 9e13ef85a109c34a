from fastapi import APIRouter, Request, status
from utils.deps import user_dependency, db_dependency
from schemas.auth_schemas import ChangePasswordRequest, UpdateProfileRequest, UserResponse
from schemas.common import envelope
from services.auth_service import AuthService
from core.exceptions import NotFoundError
from middleware.rate_limiter import limiter
from utils.logger import get_logger

logger = get_logger(__name__)


router = APIRouter(
    prefix="/api/users",
    tags=["users"]
)


@router.get("/me", status_code=status.HTTP_200_OK)
@limiter.limit("30/minute")
async def get_user_info(request: Request, user: user_dependency, db: db_dependency):
    model = AuthService.get_active_user_by_id(db=db, user_id=user.get("user_id"))

    if not model:
        raise NotFoundError("User not found")

    return envelope(UserResponse.model_validate(model).model_dump(mode="json"))


@router.put("/me", status_code=status.HTTP_200_OK)
@limiter.limit("10/minute")
async def update_profile(request: Request, body: UpdateProfileRequest, user: user_dependency, db: db_dependency):
    model = AuthService.update_profile(db, user.get("user_id"), body)

    logger.info("Profile updated", extra={"user_id": model.id})

    return envelope(UserResponse.model_validate(model).model_dump(mode="json"), "Profile updated successfully")


@router.put("/me/password", status_code=status.HTTP_200_OK)
@limiter.limit("3/minute")
async def change_password(request: Request, body: ChangePasswordRequest, user: user_dependency, db: db_dependency):
    AuthService.change_password(db, user.get("user_id"), body)

    logger.info("Password changed", extra={"user_id": user.get("user_id")})

    return envelope(message="Password changed successfully")
