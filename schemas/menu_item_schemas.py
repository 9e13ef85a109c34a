from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_serializer


class MenuItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    restaurant_id: int
    name: str
    slug: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    price: float
    discounted_price: Optional[float] = None
    category: Optional[str] = None
    is_available: bool
    is_featured: bool
    preparation_time: Optional[int] = None
    calories: Optional[int] = None
    ingredients: Optional[str] = None
    allergens: Optional[str] = None
    created_at: Optional[datetime] = None


class CreateMenuItemRequest(BaseModel):
    restaurant_id: int = Field(ge=1)
    name: str = Field(min_length=2, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    image_url: Optional[HttpUrl] = None
    price: float = Field(ge=0)
    discounted_price: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = Field(default=None, max_length=100)
    is_available: bool = True
    is_featured: bool = False
    preparation_time: int = Field(default=15, ge=0, le=300)
    calories: Optional[int] = Field(default=None, ge=0)
    ingredients: Optional[str] = Field(default=None, max_length=1000)
    allergens: Optional[str] = Field(default=None, max_length=500)

    @field_serializer('image_url')
    def serialize_url(self, value):
        return str(value) if value is not None else None


class UpdateMenuItemRequest(BaseModel):
    """Partial update: only the fields present in the body are written."""
    name: Optional[str] = Field(default=None, min_length=2, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    image_url: Optional[HttpUrl] = None
    price: Optional[float] = Field(default=None, ge=0)
    discounted_price: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = Field(default=None, max_length=100)
    is_available: Optional[bool] = None
    is_featured: Optional[bool] = None
    preparation_time: Optional[int] = Field(default=None, ge=0, le=300)
    calories: Optional[int] = Field(default=None, ge=0)
    ingredients: Optional[str] = Field(default=None, max_length=1000)
    allergens: Optional[str] = Field(default=None, max_length=500)

    @field_serializer('image_url')
    def serialize_url(self, value):
        return str(value) if value is not None else None
