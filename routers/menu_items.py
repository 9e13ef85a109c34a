from typing import Optional
from fastapi import APIRouter, Query, Request, status
from utils.deps import admin_dependency, db_dependency
from schemas.common import envelope
from schemas.menu_item_schemas import CreateMenuItemRequest, MenuItemResponse, UpdateMenuItemRequest
from services.menu_item_service import MenuItemService
from middleware.rate_limiter import limiter


router = APIRouter(
    prefix="/api/menu-items",
    tags=["menu-items"]
)


def _dump(item) -> dict:
    return MenuItemResponse.model_validate(item).model_dump(mode="json")


@router.get("", status_code=status.HTTP_200_OK)
async def list_menu_items(
    db: db_dependency,
    restaurant_id: Optional[int] = Query(None, alias="restaurantId"),
    category: Optional[str] = None,
    q: Optional[str] = None,
    is_available: Optional[bool] = Query(None, alias="isAvailable"),
    is_featured: Optional[bool] = Query(None, alias="isFeatured"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    items, count = MenuItemService.list_menu_items(
        db,
        restaurant_id=restaurant_id,
        category=category,
        q=q,
        is_available=is_available,
        is_featured=is_featured,
        limit=limit,
        offset=offset,
    )
    return envelope({
        "menu_items": [_dump(i) for i in items],
        "count": count,
        "pagination": {"limit": limit, "offset": offset},
    })


@router.get("/{menu_item_id}", status_code=status.HTTP_200_OK)
async def get_menu_item(menu_item_id: int, db: db_dependency):
    return envelope({"menu_item": _dump(MenuItemService.get_menu_item(db, menu_item_id))})


@router.post("", status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def create_menu_item(request: Request, body: CreateMenuItemRequest, admin: admin_dependency, db: db_dependency):
    item = MenuItemService.create_menu_item(db, body)
    return envelope({"menu_item": _dump(item)}, "Menu item created successfully")


@router.put("/{menu_item_id}", status_code=status.HTTP_200_OK)
@limiter.limit("30/minute")
async def update_menu_item(request: Request, menu_item_id: int, body: UpdateMenuItemRequest,
                           admin: admin_dependency, db: db_dependency):
    item = MenuItemService.update_menu_item(db, menu_item_id, body)
    return envelope({"menu_item": _dump(item)}, "Menu item updated successfully")


@router.delete("/{menu_item_id}", status_code=status.HTTP_200_OK)
@limiter.limit("30/minute")
async def delete_menu_item(request: Request, menu_item_id: int, admin: admin_dependency, db: db_dependency):
    MenuItemService.delete_menu_item(db, menu_item_id)
    return envelope(message="Menu item deleted successfully")
