from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from models.favorites import Favorite
from models.menu_items import MenuItem
from models.restaurants import Restaurant
from core.exceptions import BadRequestError, ConflictError, NotFoundError
from utils.logger import get_logger

logger = get_logger(__name__)


def _target_column(favorite_type: str):
    if favorite_type == "restaurant":
        return Favorite.restaurant_id
    if favorite_type == "menu_item":
        return Favorite.menu_item_id
    raise BadRequestError('Invalid favorite type. Must be "restaurant" or "menu_item"')


class FavoriteService:

    @staticmethod
    def add_favorite(db: Session, user_id: int, favorite_type: str, favorite_id: int) -> Favorite:
        """
        Bookmarks a restaurant or a menu item for the user.

        Raises:
            NotFoundError: target does not exist
            ConflictError: already bookmarked
        """
        column = _target_column(favorite_type)

        if favorite_type == "restaurant":
            target = db.query(Restaurant.id).filter(Restaurant.id == favorite_id).first()
            missing_message = "Restaurant not found"
        else:
            target = db.query(MenuItem.id).filter(MenuItem.id == favorite_id).first()
            missing_message = "Menu item not found"
        if not target:
            raise NotFoundError(missing_message)

        if db.query(Favorite.id).filter(Favorite.user_id == user_id, column == favorite_id).first():
            raise ConflictError("Already added to favorites")

        favorite = Favorite(user_id=user_id, **{column.key: favorite_id})
        db.add(favorite)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError("Already added to favorites")

        logger.info(
            "Favorite added",
            extra={"user_id": user_id, "favorite_type": favorite_type, "favorite_id": favorite_id}
        )
        return FavoriteService._load(db, favorite.id)

    @staticmethod
    def _load(db: Session, favorite_id: int) -> Favorite:
        return (
            db.query(Favorite)
            .options(
                joinedload(Favorite.restaurant),
                joinedload(Favorite.menu_item).joinedload(MenuItem.restaurant),
            )
            .filter(Favorite.id == favorite_id)
            .one()
        )

    @staticmethod
    def remove_favorite(db: Session, user_id: int, favorite_id: int) -> None:
        deleted = (
            db.query(Favorite)
            .filter(Favorite.id == favorite_id, Favorite.user_id == user_id)
            .delete(synchronize_session=False)
        )
        if not deleted:
            raise NotFoundError("Favorite not found")
        db.commit()

    @staticmethod
    def remove_by_type_and_id(db: Session, user_id: int, favorite_type: str, target_id: int) -> None:
        column = _target_column(favorite_type)
        deleted = (
            db.query(Favorite)
            .filter(Favorite.user_id == user_id, column == target_id)
            .delete(synchronize_session=False)
        )
        if not deleted:
            raise NotFoundError("Favorite not found")
        db.commit()

    @staticmethod
    def _user_query(db: Session, user_id: int, favorite_type: Optional[str]):
        query = db.query(Favorite).filter(Favorite.user_id == user_id)
        if favorite_type:
            query = query.filter(_target_column(favorite_type).isnot(None))
        return query

    @staticmethod
    def list_favorites(db: Session, user_id: int, favorite_type: Optional[str] = None,
                       limit: int = 50, offset: int = 0) -> list[Favorite]:
        """Newest first, with the bookmarked restaurant or menu item loaded."""
        return (
            FavoriteService._user_query(db, user_id, favorite_type)
            .options(
                joinedload(Favorite.restaurant),
                joinedload(Favorite.menu_item).joinedload(MenuItem.restaurant),
            )
            .order_by(Favorite.created_at.desc(), Favorite.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )

    @staticmethod
    def count_favorites(db: Session, user_id: int, favorite_type: Optional[str] = None) -> int:
        return FavoriteService._user_query(db, user_id, favorite_type).count()

    @staticmethod
    def is_favorite(db: Session, user_id: int, favorite_type: str, target_id: int) -> bool:
        column = _target_column(favorite_type)
        return db.query(Favorite.id).filter(Favorite.user_id == user_id, column == target_id).first() is not None
