import json
import os
import tempfile
from decimal import Decimal, ROUND_HALF_UP
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field
from schemas.order_schemas import CreateOrderRequest, as_decimal
from utils.logger import get_logger

logger = get_logger(__name__)

CART_STORAGE_KEY = "foodgo_cart"
TAX_RATE = Decimal("0.07")
CENT = Decimal("0.01")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class CartLine(BaseModel):
    """Snapshot of a menu item at the time it was put in the cart."""
    id: str
    menu_item_id: int
    restaurant_id: int
    name: str
    price: float
    discounted_price: Optional[float] = None
    quantity: int = Field(ge=1)
    notes: Optional[str] = None

    @property
    def unit_price(self) -> Decimal:
        if self.discounted_price:
            return as_decimal(self.discounted_price)
        return as_decimal(self.price)

    @property
    def line_total(self) -> Decimal:
        return _money(self.unit_price * self.quantity)


class CartState(BaseModel):
    items: list[CartLine] = []
    restaurant_id: Optional[int] = None


class CartStorage:
    """
    Small JSON file key-value store.
    The whole file is a single object; each key holds one JSON document.
    """

    def __init__(self, path):
        self.path = Path(path)

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except ValueError:
            logger.warning("Cart storage is not valid JSON, starting empty", extra={"path": str(self.path)})
            return {}

        if not isinstance(data, dict):
            logger.warning("Cart storage has an unexpected layout, starting empty", extra={"path": str(self.path)})
            return {}
        return data

    def get(self, key: str) -> Optional[dict]:
        return self._read_all().get(key)

    def set(self, key: str, value: dict) -> None:
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)

        # Write beside the target and swap it in, so a crash never leaves half a file
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except Exception:
            os.unlink(tmp_path)
            raise


def line_id(menu_item_id: int, restaurant_id: int) -> str:
    return f"{menu_item_id}-{restaurant_id}"


class CartService:
    """
    Single-restaurant shopping cart.

    Items from one restaurant only: adding an item from a different
    restaurant is refused unless the caller asks to start a new order, which
    empties the cart first. Mutations do not persist by themselves; call
    ``save()`` to write the cart to storage.
    """

    def __init__(self, storage: CartStorage):
        self.storage = storage
        self.state = CartState()

    @property
    def items(self) -> list[CartLine]:
        return self.state.items

    @property
    def restaurant_id(self) -> Optional[int]:
        return self.state.restaurant_id

    def load(self) -> None:
        raw = self.storage.get(CART_STORAGE_KEY)
        try:
            self.state = CartState.model_validate(raw) if raw else CartState()
        except ValueError:
            logger.warning("Saved cart is invalid, starting with an empty cart")
            self.state = CartState()
        logger.debug("Cart loaded", extra={"item_count": self.item_count})

    def save(self) -> None:
        self.storage.set(CART_STORAGE_KEY, self.state.model_dump())

    def add_item(self, menu_item, restaurant, quantity: int = 1, notes: Optional[str] = None,
                 force_new_order: bool = False) -> bool:
        """
        Adds ``quantity`` of ``menu_item`` to the cart.

        Returns:
            False if the cart holds another restaurant's items and
            ``force_new_order`` is not set, True otherwise
        """
        if self.items and self.restaurant_id != restaurant.id:
            if not force_new_order:
                return False
            self.clear()

        key = line_id(menu_item.id, restaurant.id)
        existing = self.get_line(key)
        if existing and not force_new_order:
            existing.quantity += quantity
            if notes:
                existing.notes = notes
            return True

        if force_new_order:
            self.clear()

        self.state.items.append(CartLine(
            id=key,
            menu_item_id=menu_item.id,
            restaurant_id=restaurant.id,
            name=menu_item.name,
            price=float(menu_item.price),
            discounted_price=float(menu_item.discounted_price) if menu_item.discounted_price else None,
            quantity=quantity,
            notes=notes,
        ))
        self.state.restaurant_id = restaurant.id
        return True

    def get_line(self, key: str) -> Optional[CartLine]:
        return next((line for line in self.items if line.id == key), None)

    def remove_item(self, key: str) -> None:
        self.state.items = [line for line in self.items if line.id != key]
        if not self.state.items:
            self.state.restaurant_id = None

    def update_quantity(self, key: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove_item(key)
            return
        line = self.get_line(key)
        if line:
            line.quantity = quantity

    def update_notes(self, key: str, notes: str) -> None:
        line = self.get_line(key)
        if line:
            line.notes = notes

    def clear(self) -> None:
        self.state = CartState()

    def is_in_cart(self, menu_item_id: int) -> bool:
        return any(line.menu_item_id == menu_item_id for line in self.items)

    def get_item(self, menu_item_id: int) -> Optional[CartLine]:
        return next((line for line in self.items if line.menu_item_id == menu_item_id), None)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.items)

    @property
    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self.items), Decimal("0"))

    @property
    def tax(self) -> Decimal:
        return _money(self.subtotal * TAX_RATE)

    @property
    def delivery_fee(self) -> Decimal:
        # flat zero until distance-based pricing exists
        return Decimal("0")

    @property
    def total(self) -> Decimal:
        return self.subtotal + self.tax + self.delivery_fee

    def build_order_request(self, delivery_address: str, delivery_phone: str = "",
                            notes: Optional[str] = None, payment_method: str = "cash") -> CreateOrderRequest:
        """Checkout payload for the current cart, priced at the effective unit price."""
        return CreateOrderRequest(
            restaurant_id=self.restaurant_id,
            delivery_address=delivery_address,
            delivery_phone=delivery_phone,
            notes=notes,
            payment_method=payment_method,
            subtotal_amount=float(self.subtotal),
            tax_amount=float(self.tax),
            delivery_fee=float(self.delivery_fee),
            total_amount=float(self.total),
            items=[
                {
                    "menu_item_id": line.menu_item_id,
                    "quantity": line.quantity,
                    "price": float(line.unit_price),
                    "name": line.name,
                    "notes": line.notes,
                }
                for line in self.items
            ],
        )
