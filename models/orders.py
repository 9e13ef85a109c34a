from core.database import Base
from sqlalchemy.orm import relationship
from sqlalchemy import (Column, Integer, String, ForeignKey, Numeric, Enum, DateTime, UniqueConstraint)
from .mixins import CreatedAtMixin, UpdatedAtMixin

ORDER_STATUSES = ("preparing", "delivered", "cancelled")
PAYMENT_STATUSES = ("pending", "paid", "failed")


class Order(Base, CreatedAtMixin, UpdatedAtMixin):
    __tablename__ = "orders"
    __table_args__ = (
        # NULL keys do not collide; expired keys are reset to NULL before reuse
        UniqueConstraint("user_id", "idempotency_key", name="uq_orders_user_idempotency_key"),
    )

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)

    #relationships
    user = relationship("User", back_populates="orders")
    restaurant = relationship("Restaurant", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")

    order_number = Column(String(40), unique=True, nullable=False)
    idempotency_key = Column(String(64), nullable=True)

    delivery_address = Column(String(255), nullable=False)
    delivery_phone = Column(String(20), default="")
    delivery_notes = Column(String(500), nullable=True)

    subtotal = Column(Numeric(10, 2), nullable=False)
    delivery_fee = Column(Numeric(10, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(10, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0)
    total_amount = Column(Numeric(10, 2), nullable=False)

    payment_method = Column(String(30), nullable=False, default="cash")
    order_status = Column(Enum(*ORDER_STATUSES, name="order_status"), nullable=False, default="preparing")
    payment_status = Column(Enum(*PAYMENT_STATUSES, name="payment_status"), nullable=False, default="pending")

    delivered_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
