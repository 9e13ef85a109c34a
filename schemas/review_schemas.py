from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, model_validator


class CreateReviewRequest(BaseModel):
    restaurant_id: Optional[int] = Field(default=None, ge=1)
    menu_item_id: Optional[int] = Field(default=None, ge=1)
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=1000)

    @model_validator(mode='after')
    def require_target(self):
        if self.restaurant_id is None and self.menu_item_id is None:
            raise ValueError('restaurant_id or menu_item_id is required')
        return self


class UpdateReviewRequest(BaseModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=1000)


class ReviewResponse(BaseModel):
    id: int
    user_id: int
    restaurant_id: Optional[int] = None
    menu_item_id: Optional[int] = None
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user_name: Optional[str] = None
    user_avatar: Optional[str] = None
    restaurant_name: Optional[str] = None
    restaurant_cover_url: Optional[str] = None
    menu_item_name: Optional[str] = None
    menu_item_image_url: Optional[str] = None

    @classmethod
    def from_review(cls, review) -> "ReviewResponse":
        user, restaurant, menu_item = review.user, review.restaurant, review.menu_item
        return cls(
            id=review.id,
            user_id=review.user_id,
            restaurant_id=review.restaurant_id,
            menu_item_id=review.menu_item_id,
            rating=review.rating,
            comment=review.comment,
            created_at=review.created_at,
            updated_at=review.updated_at,
            user_name=user.full_name if user else None,
            user_avatar=user.avatar_url if user else None,
            restaurant_name=restaurant.name if restaurant else None,
            restaurant_cover_url=restaurant.cover_url if restaurant else None,
            menu_item_name=menu_item.name if menu_item else None,
            menu_item_image_url=menu_item.image_url if menu_item else None,
        )


class RatingDistribution(BaseModel):
    five_star: int = 0
    four_star: int = 0
    three_star: int = 0
    two_star: int = 0
    one_star: int = 0


class RatingStatsResponse(BaseModel):
    average_rating: float = 0
    review_count: int = 0
    rating_distribution: Optional[RatingDistribution] = None
