from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
import phonenumbers
import re

from core.config import settings


def validate_password_strength(value: str) -> str:
    """
    Password must be at least 8 characters and contain:
    - At least one letter
    - At least one digit
    """
    if len(value) < 8:
        raise ValueError('Password must be at least 8 characters')

    if not re.search(r'[A-Za-z]', value):
        raise ValueError('Password must contain at least one letter')

    if not re.search(r'\d', value):
        raise ValueError('Password must contain at least one digit')

    return value


def normalize_phone(value: Optional[str]) -> Optional[str]:
    """
    Validates a phone number with Google's phonenumbers library and returns
    it in E.164. Numbers without a country code are read in
    DEFAULT_PHONE_REGION (e.g. 0912345678 -> +84912345678).
    """
    if value is None or not value.strip():
        return None
    try:
        parsed = phonenumbers.parse(value, settings.DEFAULT_PHONE_REGION)
    except phonenumbers.NumberParseException:
        raise ValueError('Invalid phone number')

    if not phonenumbers.is_valid_number(parsed):
        raise ValueError('Invalid phone number')

    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


class Token(BaseModel):
    access_token: str
    token_type: str
    expires_in: int


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    full_name: str
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    role: str
    created_at: Optional[datetime] = None


class CreateUserRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: str = Field(min_length=2, max_length=100)
    phone: Optional[str] = None

    @field_validator('full_name')
    @classmethod
    def strip_name(cls, value):
        value = value.strip()
        if len(value) < 2:
            raise ValueError('Full name must be between 2 and 100 characters')
        return value

    @field_validator('password')
    @classmethod
    def validate_password(cls, value):
        return validate_password_strength(value)

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, value):
        return normalize_phone(value)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UpdateProfileRequest(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    phone: Optional[str] = None
    avatar_url: Optional[str] = Field(default=None, max_length=500)

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, value):
        return normalize_phone(value)


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str

    @field_validator('new_password')
    @classmethod
    def validate_password(cls, value):
        return validate_password_strength(value)
