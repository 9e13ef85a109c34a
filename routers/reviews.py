from typing import Optional
from fastapi import APIRouter, Query, Request, status
from utils.deps import db_dependency, user_dependency
from schemas.common import envelope
from schemas.review_schemas import CreateReviewRequest, RatingStatsResponse, ReviewResponse, UpdateReviewRequest
from services.review_service import ReviewService
from services.restaurant_service import RestaurantService
from services.menu_item_service import MenuItemService
from middleware.rate_limiter import limiter


router = APIRouter(
    prefix="/api/reviews",
    tags=["reviews"]
)


def _reviews(reviews) -> list[dict]:
    return [ReviewResponse.from_review(r).model_dump(mode="json") for r in reviews]


@router.get("/restaurant/{restaurant_id}", status_code=status.HTTP_200_OK)
async def restaurant_reviews(
    restaurant_id: int,
    db: db_dependency,
    rating: Optional[int] = Query(None, ge=1, le=5),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    RestaurantService.get_restaurant(db, restaurant_id)
    reviews = ReviewService.list_restaurant_reviews(db, restaurant_id, rating, limit, offset)
    stats = ReviewService.get_restaurant_rating_stats(db, restaurant_id)
    return envelope({
        "reviews": _reviews(reviews),
        "rating_stats": RatingStatsResponse(**stats).model_dump(),
        "pagination": {"limit": limit, "offset": offset},
    })


@router.get("/restaurant/{restaurant_id}/stats", status_code=status.HTTP_200_OK)
async def restaurant_rating_stats(restaurant_id: int, db: db_dependency):
    RestaurantService.get_restaurant(db, restaurant_id)
    stats = ReviewService.get_restaurant_rating_stats(db, restaurant_id)
    return envelope({"stats": RatingStatsResponse(**stats).model_dump()})


@router.get("/menu-item/{menu_item_id}", status_code=status.HTTP_200_OK)
async def menu_item_reviews(
    menu_item_id: int,
    db: db_dependency,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    MenuItemService.get_menu_item(db, menu_item_id)
    reviews = ReviewService.list_menu_item_reviews(db, menu_item_id, limit, offset)
    stats = ReviewService.get_menu_item_rating_stats(db, menu_item_id)
    return envelope({
        "reviews": _reviews(reviews),
        "rating_stats": RatingStatsResponse(**stats).model_dump(exclude_none=True),
        "pagination": {"limit": limit, "offset": offset},
    })


@router.post("", status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def create_review(request: Request, body: CreateReviewRequest, user: user_dependency, db: db_dependency):
    review = ReviewService.create(db, user.get("user_id"), body)
    return envelope(
        {"review": ReviewResponse.from_review(review).model_dump(mode="json")},
        "Review created successfully"
    )


@router.get("/my-reviews", status_code=status.HTTP_200_OK)
async def my_reviews(
    user: user_dependency,
    db: db_dependency,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    reviews = ReviewService.list_user_reviews(db, user.get("user_id"), limit, offset)
    return envelope({
        "reviews": _reviews(reviews),
        "pagination": {"limit": limit, "offset": offset},
    })


@router.put("/{review_id}", status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def update_review(request: Request, review_id: int, body: UpdateReviewRequest,
                        user: user_dependency, db: db_dependency):
    review = ReviewService.update(db, review_id, user.get("user_id"), body)
    return envelope(
        {"review": ReviewResponse.from_review(review).model_dump(mode="json")},
        "Review updated successfully"
    )


@router.delete("/{review_id}", status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def delete_review(request: Request, review_id: int, user: user_dependency, db: db_dependency):
    ReviewService.delete(db, review_id, user.get("user_id"))
    return envelope(message="Review deleted successfully")
