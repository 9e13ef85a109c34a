from typing import Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session
from models.restaurants import Restaurant
from models.orders import Order
from schemas.restaurant_schemas import CreateRestaurantRequest, UpdateRestaurantRequest
from core.exceptions import ConflictError, NotFoundError
from utils.text import slugify
from utils.logger import get_logger

logger = get_logger(__name__)


class RestaurantService:

    @staticmethod
    def list_restaurants(db: Session, q: Optional[str] = None, limit: int = 20, offset: int = 0) -> list[Restaurant]:
        """Newest first; ``q`` matches name or description."""
        query = db.query(Restaurant)

        if q:
            pattern = f"%{q.strip()}%"
            query = query.filter(or_(Restaurant.name.ilike(pattern), Restaurant.description.ilike(pattern)))

        return (
            query.order_by(Restaurant.created_at.desc(), Restaurant.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )

    @staticmethod
    def get_restaurant(db: Session, restaurant_id: int) -> Restaurant:
        restaurant = db.query(Restaurant).filter(Restaurant.id == restaurant_id).one_or_none()
        if not restaurant:
            raise NotFoundError("Restaurant not found")
        return restaurant

    @staticmethod
    def create_restaurant(db: Session, body: CreateRestaurantRequest) -> Restaurant:
        data = body.model_dump()
        restaurant = Restaurant(slug=slugify(data["name"]), **data)

        db.add(restaurant)
        db.commit()
        db.refresh(restaurant)

        logger.info("Restaurant created", extra={"restaurant_id": restaurant.id})
        return restaurant

    @staticmethod
    def update_restaurant(db: Session, restaurant_id: int, body: UpdateRestaurantRequest) -> Restaurant:
        restaurant = RestaurantService.get_restaurant(db, restaurant_id)

        changes = body.model_dump(exclude_unset=True)
        # name/is_open are NOT NULL, an explicit null leaves them unchanged
        for field in ("name", "is_open"):
            if changes.get(field, False) is None:
                changes.pop(field)

        if "name" in changes:
            changes["slug"] = slugify(changes["name"])

        for field, value in changes.items():
            setattr(restaurant, field, value)

        db.commit()
        db.refresh(restaurant)
        return restaurant

    @staticmethod
    def delete_restaurant(db: Session, restaurant_id: int) -> None:
        restaurant = RestaurantService.get_restaurant(db, restaurant_id)

        # orders are never deleted, so a restaurant with history stays
        if db.query(Order.id).filter(Order.restaurant_id == restaurant_id).first():
            raise ConflictError("Restaurant has existing orders and cannot be deleted")

        db.delete(restaurant)
        db.commit()

        logger.info("Restaurant deleted", extra={"restaurant_id": restaurant_id})
