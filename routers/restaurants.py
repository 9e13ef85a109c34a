from typing import Optional
from fastapi import APIRouter, Query, Request, status
from utils.deps import admin_dependency, db_dependency
from schemas.common import envelope
from schemas.menu_item_schemas import MenuItemResponse
from schemas.restaurant_schemas import CreateRestaurantRequest, RestaurantResponse, UpdateRestaurantRequest
from services.menu_item_service import MenuItemService
from services.restaurant_service import RestaurantService
from middleware.rate_limiter import limiter
from utils.logger import get_logger

logger = get_logger(__name__)


router = APIRouter(
    prefix="/api/restaurants",
    tags=["restaurants"]
)


def _dump(restaurant) -> dict:
    return RestaurantResponse.model_validate(restaurant).model_dump(mode="json")


@router.get("", status_code=status.HTTP_200_OK)
async def list_restaurants(
    db: db_dependency,
    q: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    restaurants = RestaurantService.list_restaurants(db, q=q, limit=limit, offset=offset)
    return envelope({
        "restaurants": [_dump(r) for r in restaurants],
        "pagination": {"limit": limit, "offset": offset},
    })


@router.get("/{restaurant_id}", status_code=status.HTTP_200_OK)
async def get_restaurant(restaurant_id: int, db: db_dependency):
    return envelope({"restaurant": _dump(RestaurantService.get_restaurant(db, restaurant_id))})


@router.get("/{restaurant_id}/menu-items", status_code=status.HTTP_200_OK)
async def list_restaurant_menu_items(
    restaurant_id: int,
    db: db_dependency,
    category: Optional[str] = None,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    RestaurantService.get_restaurant(db, restaurant_id)
    items, count = MenuItemService.list_menu_items(
        db, restaurant_id=restaurant_id, category=category, limit=limit, offset=offset
    )
    return envelope({
        "menu_items": [MenuItemResponse.model_validate(i).model_dump(mode="json") for i in items],
        "count": count,
        "pagination": {"limit": limit, "offset": offset},
    })


@router.post("", status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_restaurant(request: Request, body: CreateRestaurantRequest, admin: admin_dependency, db: db_dependency):
    restaurant = RestaurantService.create_restaurant(db, body)
    return envelope({"restaurant": _dump(restaurant)}, "Restaurant created successfully")


@router.put("/{restaurant_id}", status_code=status.HTTP_200_OK)
@limiter.limit("30/minute")
async def update_restaurant(request: Request, restaurant_id: int, body: UpdateRestaurantRequest,
                            admin: admin_dependency, db: db_dependency):
    restaurant = RestaurantService.update_restaurant(db, restaurant_id, body)
    return envelope({"restaurant": _dump(restaurant)}, "Restaurant updated successfully")


@router.delete("/{restaurant_id}", status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def delete_restaurant(request: Request, restaurant_id: int, admin: admin_dependency, db: db_dependency):
    RestaurantService.delete_restaurant(db, restaurant_id)
    return envelope(message="Restaurant deleted successfully")
