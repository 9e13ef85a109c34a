from core.database import Base
from sqlalchemy import (Column, Integer, String, Text, Boolean)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin, UpdatedAtMixin


class Restaurant(Base, CreatedAtMixin, UpdatedAtMixin):
    __tablename__ = "restaurants"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #relationships
    menu_items = relationship("MenuItem", back_populates="restaurant", cascade="all, delete-orphan")
    orders = relationship("Order", back_populates="restaurant")
    favorites = relationship("Favorite", back_populates="restaurant", cascade="all, delete-orphan")
    reviews = relationship("Review", back_populates="restaurant", cascade="all, delete-orphan")

    name = Column(String(200), nullable=False)
    slug = Column(String(220), nullable=False, index=True)
    description = Column(Text)
    address = Column(String(500))
    phone = Column(String(20))
    cover_url = Column(String(500))
    is_open = Column(Boolean, default=True, nullable=False)
