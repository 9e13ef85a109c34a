from typing import Optional
from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from models.reviews import Review
from models.menu_items import MenuItem
from models.restaurants import Restaurant
from schemas.review_schemas import CreateReviewRequest, UpdateReviewRequest
from core.exceptions import BadRequestError, ConflictError, NotFoundError
from utils.logger import get_logger

logger = get_logger(__name__)

STAR_BUCKETS = (
    ("five_star", 5),
    ("four_star", 4),
    ("three_star", 3),
    ("two_star", 2),
    ("one_star", 1),
)


class ReviewService:

    @staticmethod
    def _with_relations(query):
        return query.options(
            joinedload(Review.user),
            joinedload(Review.restaurant),
            joinedload(Review.menu_item),
        )

    @staticmethod
    def _load(db: Session, review_id: int) -> Review:
        return ReviewService._with_relations(db.query(Review)).filter(Review.id == review_id).one()

    @staticmethod
    def create(db: Session, user_id: int, body: CreateReviewRequest) -> Review:
        """
        Adds a review for a restaurant, a menu item, or a menu item in the
        context of its restaurant. A user reviews each target once.
        """
        if body.restaurant_id is not None:
            if not db.query(Restaurant.id).filter(Restaurant.id == body.restaurant_id).first():
                raise NotFoundError("Restaurant not found")
        if body.menu_item_id is not None:
            if not db.query(MenuItem.id).filter(MenuItem.id == body.menu_item_id).first():
                raise NotFoundError("Menu item not found")

        duplicate = db.query(Review.id).filter(Review.user_id == user_id)
        if body.menu_item_id is not None:
            duplicate = duplicate.filter(Review.menu_item_id == body.menu_item_id)
        else:
            duplicate = duplicate.filter(
                Review.restaurant_id == body.restaurant_id, Review.menu_item_id.is_(None)
            )
        if duplicate.first():
            logger.warning(
                "Duplicate review rejected",
                extra={"user_id": user_id, "restaurant_id": body.restaurant_id, "menu_item_id": body.menu_item_id}
            )
            raise ConflictError("You have already reviewed this item")

        review = Review(
            user_id=user_id,
            restaurant_id=body.restaurant_id,
            menu_item_id=body.menu_item_id,
            rating=body.rating,
            comment=body.comment,
        )
        db.add(review)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise BadRequestError("Invalid review")

        logger.info("Review created", extra={"review_id": review.id, "user_id": user_id})
        return ReviewService._load(db, review.id)

    @staticmethod
    def _page(query, limit: int, offset: int) -> list[Review]:
        return (
            ReviewService._with_relations(query)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )

    @staticmethod
    def list_restaurant_reviews(db: Session, restaurant_id: int, rating: Optional[int] = None,
                                limit: int = 20, offset: int = 0) -> list[Review]:
        query = db.query(Review).filter(Review.restaurant_id == restaurant_id)
        if rating is not None:
            query = query.filter(Review.rating == rating)
        return ReviewService._page(query, limit, offset)

    @staticmethod
    def list_menu_item_reviews(db: Session, menu_item_id: int, limit: int = 20, offset: int = 0) -> list[Review]:
        query = db.query(Review).filter(Review.menu_item_id == menu_item_id)
        return ReviewService._page(query, limit, offset)

    @staticmethod
    def list_user_reviews(db: Session, user_id: int, limit: int = 20, offset: int = 0) -> list[Review]:
        query = db.query(Review).filter(Review.user_id == user_id)
        return ReviewService._page(query, limit, offset)

    @staticmethod
    def _owned_review(db: Session, review_id: int, user_id: int) -> Review:
        review = db.query(Review).filter(Review.id == review_id, Review.user_id == user_id).one_or_none()
        if not review:
            raise NotFoundError("Review not found or unauthorized")
        return review

    @staticmethod
    def update(db: Session, review_id: int, user_id: int, body: UpdateReviewRequest) -> Review:
        changes = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
        if not changes:
            raise BadRequestError("No fields to update")

        review = ReviewService._owned_review(db, review_id, user_id)
        for field, value in changes.items():
            setattr(review, field, value)

        db.commit()
        return ReviewService._load(db, review.id)

    @staticmethod
    def delete(db: Session, review_id: int, user_id: int) -> None:
        review = ReviewService._owned_review(db, review_id, user_id)
        db.delete(review)
        db.commit()

        logger.info("Review deleted", extra={"review_id": review_id, "user_id": user_id})

    @staticmethod
    def get_restaurant_rating_stats(db: Session, restaurant_id: int) -> dict:
        """
        Average, count and star distribution for a restaurant.
        A restaurant with no reviews gets zeros everywhere.
        """
        buckets = [
            func.coalesce(func.sum(case((Review.rating == stars, 1), else_=0)), 0).label(name)
            for name, stars in STAR_BUCKETS
        ]
        row = (
            db.query(
                func.avg(Review.rating).label("average_rating"),
                func.count(Review.id).label("review_count"),
                *buckets,
            )
            .filter(Review.restaurant_id == restaurant_id)
            .one()
        )

        return {
            "average_rating": round(float(row.average_rating or 0), 1),
            "review_count": int(row.review_count or 0),
            "rating_distribution": {
                name: int(getattr(row, name) or 0) for name, _ in STAR_BUCKETS
            },
        }

    @staticmethod
    def get_menu_item_rating_stats(db: Session, menu_item_id: int) -> dict:
        row = (
            db.query(
                func.avg(Review.rating).label("average_rating"),
                func.count(Review.id).label("review_count"),
            )
            .filter(Review.menu_item_id == menu_item_id)
            .one()
        )
        return {
            "average_rating": round(float(row.average_rating or 0), 1),
            "review_count": int(row.review_count or 0),
        }
