from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

from schemas.common import to_float

FavoriteType = Literal["restaurant", "menu_item"]


class AddFavoriteRequest(BaseModel):
    favorite_type: FavoriteType
    favorite_id: int = Field(ge=1)


class FavoriteRestaurant(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    address: Optional[str] = None
    cover_url: Optional[str] = None
    is_open: bool


class FavoriteMenuItem(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: float
    image_url: Optional[str] = None
    is_available: bool
    restaurant_id: int
    restaurant_name: Optional[str] = None


class FavoriteResponse(BaseModel):
    id: int
    user_id: int
    favorite_type: FavoriteType
    favorite_id: int
    created_at: Optional[datetime] = None
    restaurant: Optional[FavoriteRestaurant] = None
    menu_item: Optional[FavoriteMenuItem] = None

    @classmethod
    def from_favorite(cls, favorite) -> "FavoriteResponse":
        restaurant = menu_item = None

        if favorite.restaurant is not None:
            r = favorite.restaurant
            restaurant = FavoriteRestaurant(
                id=r.id, name=r.name, description=r.description,
                address=r.address, cover_url=r.cover_url, is_open=r.is_open,
            )
        elif favorite.menu_item is not None:
            m = favorite.menu_item
            menu_item = FavoriteMenuItem(
                id=m.id, name=m.name, description=m.description,
                price=to_float(m.price), image_url=m.image_url,
                is_available=m.is_available, restaurant_id=m.restaurant_id,
                restaurant_name=m.restaurant.name if m.restaurant else None,
            )

        return cls(
            id=favorite.id,
            user_id=favorite.user_id,
            favorite_type=favorite.favorite_type,
            favorite_id=favorite.favorite_id,
            created_at=favorite.created_at,
            restaurant=restaurant,
            menu_item=menu_item,
        )
