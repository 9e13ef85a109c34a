from core.database import Base
from sqlalchemy import (Column, Integer, ForeignKey, UniqueConstraint)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin

FAVORITE_TYPES = ("restaurant", "menu_item")


class Favorite(Base, CreatedAtMixin):
    """
    A user's bookmark of either a restaurant or a menu item.
    Exactly one of ``restaurant_id`` / ``menu_item_id`` is set.
    """
    __tablename__ = "favorites"
    __table_args__ = (
        UniqueConstraint("user_id", "restaurant_id", name="uq_favorites_user_restaurant"),
        UniqueConstraint("user_id", "menu_item_id", name="uq_favorites_user_menu_item"),
    )

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=True)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id", ondelete="CASCADE"), nullable=True)

    #relationships
    user = relationship("User", back_populates="favorites")
    restaurant = relationship("Restaurant", back_populates="favorites")
    menu_item = relationship("MenuItem", back_populates="favorites")

    @property
    def favorite_type(self) -> str:
        return "restaurant" if self.restaurant_id is not None else "menu_item"

    @property
    def favorite_id(self) -> int:
        return self.restaurant_id if self.restaurant_id is not None else self.menu_item_id
