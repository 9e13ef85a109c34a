from typing import Optional
from fastapi import APIRouter, Query, Request, status
from utils.deps import db_dependency, user_dependency
from schemas.common import envelope
from schemas.favorite_schemas import AddFavoriteRequest, FavoriteResponse, FavoriteType
from services.favorite_service import FavoriteService
from middleware.rate_limiter import limiter


router = APIRouter(
    prefix="/api/favorites",
    tags=["favorites"]
)


def _favorite_page(db, user_id: int, favorite_type: Optional[str], limit: int, offset: int) -> dict:
    favorites = FavoriteService.list_favorites(db, user_id, favorite_type, limit, offset)
    return {
        "favorites": [FavoriteResponse.from_favorite(f).model_dump(mode="json") for f in favorites],
        "count": FavoriteService.count_favorites(db, user_id, favorite_type),
        "pagination": {"limit": limit, "offset": offset},
    }


@router.post("", status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def add_favorite(request: Request, body: AddFavoriteRequest, user: user_dependency, db: db_dependency):
    favorite = FavoriteService.add_favorite(db, user.get("user_id"), body.favorite_type, body.favorite_id)
    return envelope(
        {"favorite": FavoriteResponse.from_favorite(favorite).model_dump(mode="json")},
        "Added to favorites"
    )


@router.get("/my-favorites", status_code=status.HTTP_200_OK)
async def my_favorites(
    user: user_dependency,
    db: db_dependency,
    favorite_type: Optional[FavoriteType] = Query(None, alias="type"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    return envelope(_favorite_page(db, user.get("user_id"), favorite_type, limit, offset))


@router.get("/restaurants", status_code=status.HTTP_200_OK)
async def favorite_restaurants(
    user: user_dependency,
    db: db_dependency,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    return envelope(_favorite_page(db, user.get("user_id"), "restaurant", limit, offset))


@router.get("/menu-items", status_code=status.HTTP_200_OK)
async def favorite_menu_items(
    user: user_dependency,
    db: db_dependency,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    return envelope(_favorite_page(db, user.get("user_id"), "menu_item", limit, offset))


@router.get("/check/{favorite_type}/{target_id}", status_code=status.HTTP_200_OK)
async def check_favorite(favorite_type: FavoriteType, target_id: int, user: user_dependency, db: db_dependency):
    is_favorite = FavoriteService.is_favorite(db, user.get("user_id"), favorite_type, target_id)
    return envelope({"is_favorite": is_favorite})


@router.delete("/{favorite_id}", status_code=status.HTTP_200_OK)
@limiter.limit("30/minute")
async def remove_favorite(request: Request, favorite_id: int, user: user_dependency, db: db_dependency):
    FavoriteService.remove_favorite(db, user.get("user_id"), favorite_id)
    return envelope(message="Removed from favorites")


@router.delete("/{favorite_type}/{target_id}", status_code=status.HTTP_200_OK)
@limiter.limit("30/minute")
async def remove_favorite_by_target(request: Request, favorite_type: FavoriteType, target_id: int,
                                    user: user_dependency, db: db_dependency):
    FavoriteService.remove_by_type_and_id(db, user.get("user_id"), favorite_type, target_id)
    return envelope(message="Removed from favorites")
