from typing import Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session
from models.menu_items import MenuItem
from models.order_items import OrderItem
from schemas.menu_item_schemas import CreateMenuItemRequest, UpdateMenuItemRequest
from services.restaurant_service import RestaurantService
from core.exceptions import ConflictError, NotFoundError
from utils.text import slugify
from utils.logger import get_logger

logger = get_logger(__name__)

NOT_NULL_FIELDS = ("name", "price", "is_available", "is_featured")


class MenuItemService:

    @staticmethod
    def list_menu_items(
        db: Session,
        restaurant_id: Optional[int] = None,
        category: Optional[str] = None,
        q: Optional[str] = None,
        is_available: Optional[bool] = None,
        is_featured: Optional[bool] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[MenuItem], int]:
        """
        Filtered page of menu items plus the total number of matches.
        Featured items come first, then newest.
        """
        query = db.query(MenuItem)

        if restaurant_id is not None:
            query = query.filter(MenuItem.restaurant_id == restaurant_id)
        if category:
            query = query.filter(MenuItem.category == category)
        if q:
            pattern = f"%{q.strip()}%"
            query = query.filter(or_(MenuItem.name.ilike(pattern), MenuItem.description.ilike(pattern)))
        if is_available is not None:
            query = query.filter(MenuItem.is_available == is_available)
        if is_featured is not None:
            query = query.filter(MenuItem.is_featured == is_featured)

        count = query.count()
        items = (
            query.order_by(MenuItem.is_featured.desc(), MenuItem.created_at.desc(), MenuItem.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )
        return items, count

    @staticmethod
    def get_menu_item(db: Session, menu_item_id: int) -> MenuItem:
        item = db.query(MenuItem).filter(MenuItem.id == menu_item_id).one_or_none()
        if not item:
            raise NotFoundError("Menu item not found")
        return item

    @staticmethod
    def create_menu_item(db: Session, body: CreateMenuItemRequest) -> MenuItem:
        RestaurantService.get_restaurant(db, body.restaurant_id)

        data = body.model_dump()
        item = MenuItem(slug=slugify(data["name"]), **data)

        db.add(item)
        db.commit()
        db.refresh(item)

        logger.info(
            "Menu item created",
            extra={"menu_item_id": item.id, "restaurant_id": item.restaurant_id}
        )
        return item

    @staticmethod
    def update_menu_item(db: Session, menu_item_id: int, body: UpdateMenuItemRequest) -> MenuItem:
        item = MenuItemService.get_menu_item(db, menu_item_id)

        changes = {
            field: value for field, value in body.model_dump(exclude_unset=True).items()
            if not (field in NOT_NULL_FIELDS and value is None)
        }
        if "name" in changes:
            changes["slug"] = slugify(changes["name"])

        for field, value in changes.items():
            setattr(item, field, value)

        db.commit()
        db.refresh(item)
        return item

    @staticmethod
    def delete_menu_item(db: Session, menu_item_id: int) -> None:
        item = MenuItemService.get_menu_item(db, menu_item_id)

        if db.query(OrderItem.id).filter(OrderItem.menu_item_id == menu_item_id).first():
            raise ConflictError("Menu item appears in orders and cannot be deleted")

        db.delete(item)
        db.commit()

        logger.info("Menu item deleted", extra={"menu_item_id": menu_item_id})
