from datetime import datetime, timezone
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from utils.hashing import verify_password, get_password_hash
from models.users import User
from schemas.auth_schemas import CreateUserRequest, UpdateProfileRequest, ChangePasswordRequest
from core.exceptions import ConflictError, DomainError, NotFoundError, UnauthorizedError
from utils.logger import get_logger

logger = get_logger(__name__)


class AuthService:

    @staticmethod
    def create_user(request: CreateUserRequest, db: Session) -> User:
        """
        Registers a new customer account.

        Emails are stored lower-cased and must be unique.
        """
        email = request.email.lower().strip()

        if db.query(User).filter(User.email == email).first():
            logger.warning(
                "Registration attempt with existing email",
                extra={"email": email}
            )
            raise ConflictError("Email already registered")

        model = User(
            email=email,
            full_name=request.full_name,
            hashed_password=get_password_hash(request.password),
            phone=request.phone,
        )

        db.add(model)
        try:
            db.commit()
        except IntegrityError:
            # lost a race with a concurrent registration
            db.rollback()
            raise ConflictError("Email already registered")

        db.refresh(model)
        return model

    @staticmethod
    def authenticate_user(email: str, password: str, db: Session) -> User:
        user = db.query(User).filter(User.email == email.lower().strip()).first()

        if not user:
            logger.warning(
                "Login failed - user not found",
                extra={"email": email}
            )
            raise UnauthorizedError("Invalid email or password")

        if not user.is_active:
            logger.warning(
                "Login failed - inactive account",
                extra={"user_id": user.id, "email": email}
            )
            raise UnauthorizedError("Invalid email or password")

        if not verify_password(password, user.hashed_password):
            logger.warning(
                "Login failed - invalid password",
                extra={"user_id": user.id, "email": email}
            )
            raise UnauthorizedError("Invalid email or password")

        user.last_login_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(user)

        logger.debug(
            "User authenticated successfully",
            extra={"user_id": user.id, "email": email}
        )

        return user

    @staticmethod
    def get_active_user_by_id(db: Session, user_id: int) -> User | None:
        return db.query(User).filter(User.id == user_id, User.is_active == True).one_or_none()

    @staticmethod
    def update_profile(db: Session, user_id: int, body: UpdateProfileRequest) -> User:
        user = AuthService.get_active_user_by_id(db, user_id)
        if not user:
            raise NotFoundError("User not found")

        for field, value in body.model_dump(exclude_unset=True).items():
            # phone/avatar may be cleared, the name may not
            if field == "full_name" and value is None:
                continue
            setattr(user, field, value)

        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def change_password(db: Session, user_id: int, body: ChangePasswordRequest) -> None:
        user = AuthService.get_active_user_by_id(db, user_id)
        if not user:
            raise NotFoundError("User not found")

        if not verify_password(body.current_password, user.hashed_password):
            logger.warning("Password change rejected - wrong current password", extra={"user_id": user_id})
            raise DomainError("Current password is incorrect")

        user.hashed_password = get_password_hash(body.new_password)
        db.commit()
