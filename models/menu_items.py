from core.database import Base
from sqlalchemy import (Column, Integer, String, Text, Boolean, ForeignKey, Numeric)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin, UpdatedAtMixin


class MenuItem(Base, CreatedAtMixin, UpdatedAtMixin):
    __tablename__ = "menu_items"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)

    #relationships
    restaurant = relationship("Restaurant", back_populates="menu_items")
    order_items = relationship("OrderItem", back_populates="menu_item")
    favorites = relationship("Favorite", back_populates="menu_item", cascade="all, delete-orphan")
    reviews = relationship("Review", back_populates="menu_item", cascade="all, delete-orphan")

    name = Column(String(200), nullable=False)
    slug = Column(String(220), nullable=False)
    description = Column(Text)
    image_url = Column(String(500))
    price = Column(Numeric(10, 2), nullable=False)
    discounted_price = Column(Numeric(10, 2), nullable=True)
    category = Column(String(100), index=True)
    is_available = Column(Boolean, default=True, nullable=False)
    is_featured = Column(Boolean, default=False, nullable=False)
    preparation_time = Column(Integer, default=15)
    calories = Column(Integer)
    ingredients = Column(Text)
    allergens = Column(String(500))
