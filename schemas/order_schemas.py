from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from schemas.common import to_float

# Amounts coming from the client are floats; allow a cent of drift
AMOUNT_TOLERANCE = Decimal("0.01")

OrderStatus = Literal["preparing", "delivered", "cancelled"]
PayAction = Literal["deliver", "cancel"]


def as_decimal(value: float) -> Decimal:
    return Decimal(str(value))


class OrderItemRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    menu_item_id: int = Field(alias="menuItemId", ge=1)
    quantity: int = Field(ge=1, le=99)
    price: float = Field(ge=0)
    name: Optional[str] = Field(default=None, max_length=200)
    notes: Optional[str] = Field(default=None, max_length=200)

    @property
    def line_total(self) -> Decimal:
        return (as_decimal(self.price) * self.quantity).quantize(AMOUNT_TOLERANCE)


class CreateOrderRequest(BaseModel):
    """
    Checkout payload. Field names follow the mobile client (camelCase);
    snake_case is accepted too.

    The money breakdown is computed client-side, so it is re-checked here:
    subtotal must match the line items and total must equal
    subtotal + tax + delivery fee, each within one cent.
    """
    model_config = ConfigDict(populate_by_name=True)

    restaurant_id: int = Field(alias="restaurantId", ge=1)
    delivery_address: str = Field(alias="deliveryAddress")
    delivery_phone: Optional[str] = Field(default="", alias="deliveryPhone", max_length=20)
    notes: Optional[str] = Field(default=None, max_length=500)
    payment_method: str = Field(default="cash", alias="paymentMethod", max_length=30)
    subtotal_amount: float = Field(alias="subtotalAmount", ge=0)
    tax_amount: float = Field(alias="taxAmount", ge=0)
    delivery_fee: float = Field(alias="deliveryFee", ge=0)
    total_amount: float = Field(alias="totalAmount", ge=0)
    items: list[OrderItemRequest]

    @field_validator('delivery_address')
    @classmethod
    def validate_address(cls, value):
        value = value.strip()
        if not 10 <= len(value) <= 255:
            raise ValueError('Delivery address must be between 10 and 255 characters')
        return value

    @field_validator('notes')
    @classmethod
    def strip_notes(cls, value):
        if value is None:
            return None
        return value.strip() or None

    @field_validator('items')
    @classmethod
    def validate_items(cls, value):
        if not value:
            raise ValueError('Order must contain at least one item')
        return value

    @model_validator(mode='after')
    def validate_amounts(self):
        subtotal = as_decimal(self.subtotal_amount)
        expected_total = subtotal + as_decimal(self.tax_amount) + as_decimal(self.delivery_fee)

        if abs(expected_total - as_decimal(self.total_amount)) > AMOUNT_TOLERANCE:
            raise ValueError('Total amount does not match subtotal + tax + delivery fee')

        items_total = sum((item.line_total for item in self.items), Decimal("0"))
        if abs(items_total - subtotal) > AMOUNT_TOLERANCE:
            raise ValueError('Subtotal amount does not match order items')

        return self


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus
    user_id: Optional[int] = Field(default=None, ge=1)


class PayOrderRequest(BaseModel):
    action: PayAction


class OrderItemResponse(BaseModel):
    id: int
    menu_item_id: int
    item_name: str
    item_price: float
    price: float
    quantity: int
    subtotal: float
    special_instructions: Optional[str] = None
    menu_item_name: Optional[str] = None
    menu_item_description: Optional[str] = None
    menu_item_image: Optional[str] = None

    @classmethod
    def from_item(cls, item) -> "OrderItemResponse":
        menu_item = item.menu_item
        return cls(
            id=item.id,
            menu_item_id=item.menu_item_id,
            item_name=item.item_name,
            item_price=to_float(item.item_price),
            price=to_float(item.item_price),
            quantity=item.quantity,
            subtotal=to_float(item.subtotal),
            special_instructions=item.special_instructions,
            menu_item_name=menu_item.name if menu_item else None,
            menu_item_description=menu_item.description if menu_item else None,
            menu_item_image=menu_item.image_url if menu_item else None,
        )


class OrderSummaryResponse(BaseModel):
    """Row shape for order lists."""
    id: int
    order_number: str
    user_id: int
    restaurant_id: int
    restaurant_name: Optional[str] = None
    restaurant_image: Optional[str] = None
    status: str
    order_status: str
    payment_status: str
    payment_method: str
    subtotal: float
    delivery_fee: float
    tax_amount: float
    discount_amount: float
    total_amount: float
    item_count: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    @classmethod
    def _common_fields(cls, order) -> dict:
        return dict(
            id=order.id,
            order_number=order.order_number,
            user_id=order.user_id,
            restaurant_id=order.restaurant_id,
            restaurant_name=order.restaurant.name if order.restaurant else None,
            status=order.order_status,
            order_status=order.order_status,
            payment_status=order.payment_status,
            payment_method=order.payment_method,
            subtotal=to_float(order.subtotal),
            delivery_fee=to_float(order.delivery_fee),
            tax_amount=to_float(order.tax_amount),
            discount_amount=to_float(order.discount_amount),
            total_amount=to_float(order.total_amount),
            item_count=len(order.items),
            created_at=order.created_at,
            updated_at=order.updated_at,
            delivered_at=order.delivered_at,
            cancelled_at=order.cancelled_at,
        )

    @classmethod
    def from_order(cls, order) -> "OrderSummaryResponse":
        return cls(
            **cls._common_fields(order),
            restaurant_image=order.restaurant.cover_url if order.restaurant else None,
        )


class OrderResponse(OrderSummaryResponse):
    """Full order with restaurant, customer and line items."""
    delivery_address: str
    delivery_phone: Optional[str] = None
    delivery_notes: Optional[str] = None
    restaurant_address: Optional[str] = None
    restaurant_phone: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    user_phone: Optional[str] = None
    items: list[OrderItemResponse]

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        restaurant, user = order.restaurant, order.user
        return cls(
            **cls._common_fields(order),
            restaurant_image=restaurant.cover_url if restaurant else None,
            delivery_address=order.delivery_address,
            delivery_phone=order.delivery_phone,
            delivery_notes=order.delivery_notes,
            restaurant_address=restaurant.address if restaurant else None,
            restaurant_phone=restaurant.phone if restaurant else None,
            user_name=user.full_name if user else None,
            user_email=user.email if user else None,
            user_phone=user.phone if user else None,
            items=[OrderItemResponse.from_item(item) for item in order.items],
        )


class OrderStatsResponse(BaseModel):
    total_orders: int
    completed_orders: int
    cancelled_orders: int
    active_orders: int
    total_spent: float

