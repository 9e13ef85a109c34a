from typing import Annotated
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from core.database import SessionLocal
from core.exceptions import ForbiddenError
from services.token_service import TokenService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

db_dependency = Annotated[Session, Depends(get_db)]


def get_current_user(token: Annotated[str, Depends(oauth2_scheme)]):
    return TokenService.decode_access_token(token)

user_dependency = Annotated[dict, Depends(get_current_user)]


def get_current_admin(user: user_dependency):
    if user.get("user_role") != "admin":
        raise ForbiddenError("Admin access required")
    return user

admin_dependency = Annotated[dict, Depends(get_current_admin)]
