from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_serializer, field_validator

from schemas.auth_schemas import normalize_phone


class RestaurantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    description: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    cover_url: Optional[str] = None
    is_open: bool
    created_at: Optional[datetime] = None


class CreateRestaurantRequest(BaseModel):
    name: str = Field(min_length=2, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    address: str = Field(min_length=1, max_length=500)
    phone: Optional[str] = None
    cover_url: Optional[HttpUrl] = None
    is_open: bool = True

    @field_validator('name', 'address')
    @classmethod
    def not_blank(cls, value):
        value = value.strip()
        if not value:
            raise ValueError('must not be blank')
        return value

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, value):
        return normalize_phone(value)

    @field_serializer('cover_url')
    def serialize_url(self, value):
        return str(value) if value is not None else None


class UpdateRestaurantRequest(BaseModel):
    """Partial update: only the fields present in the body are written."""
    name: Optional[str] = Field(default=None, min_length=2, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    address: Optional[str] = Field(default=None, max_length=500)
    phone: Optional[str] = None
    cover_url: Optional[HttpUrl] = None
    is_open: Optional[bool] = None

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, value):
        return normalize_phone(value)

    @field_serializer('cover_url')
    def serialize_url(self, value):
        return str(value) if value is not None else None
