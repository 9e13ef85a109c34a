from models.users import User
from models.restaurants import Restaurant
from models.menu_items import MenuItem
from models.orders import Order
from models.order_items import OrderItem
from models.favorites import Favorite
from models.reviews import Review

__all__ = ["User", "Restaurant", "MenuItem", "Order", "OrderItem", "Favorite", "Review"]
