from datetime import datetime, timedelta, timezone
from decimal import Decimal
import pytest

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from core.exceptions import BadRequestError, DomainError, NotFoundError, PersistenceError
from models.orders import Order
from models.order_items import OrderItem
from schemas.order_schemas import CreateOrderRequest
from services.order_service import OrderService


def _place(session, user, order_payload, key=None, **overrides):
    request = CreateOrderRequest(**order_payload(**overrides))
    return OrderService.create_order(session, user.id, request, key)


def test_create_order_example_scenario(session, customer, restaurant, menu_items, order_payload):
    """2 x 12.99 + 1 x 9.02, tax 2.45, no delivery fee."""
    order, replayed = _place(session, customer, order_payload)

    assert replayed is False
    assert order.order_status == "preparing"
    assert order.payment_status == "pending"
    assert order.total_amount == Decimal("37.45")
    assert order.order_number.startswith("ORD-")

    rows = session.query(OrderItem).filter(OrderItem.order_id == order.id).order_by(OrderItem.id).all()
    assert [row.subtotal for row in rows] == [Decimal("25.98"), Decimal("9.02")]
    assert [row.item_name for row in rows] == ["Beef Pho", "Spring Rolls"]

    items_total = sum(row.subtotal for row in rows)
    assert abs(items_total + order.tax_amount + order.delivery_fee - order.total_amount) <= Decimal("0.01")


def test_create_order_loads_relations(session, customer, restaurant, menu_items, order_payload):
    order, _ = _place(session, customer, order_payload)

    assert order.restaurant.name == restaurant.name
    assert order.user.email == customer.email
    assert len(order.items) == 2


def test_empty_items_rejected_without_writing(session, customer, restaurant, menu_items, order_payload):
    request = CreateOrderRequest(**order_payload()).model_copy(update={"items": []})

    with pytest.raises(BadRequestError) as exc:
        OrderService.create_order(session, customer.id, request)

    assert exc.value.message == "Order must contain at least one item"
    assert session.query(Order).count() == 0
    assert session.query(OrderItem).count() == 0


def test_unknown_restaurant_rejected(session, customer, restaurant, menu_items, order_payload):
    with pytest.raises(NotFoundError):
        _place(session, customer, order_payload, restaurantId=9999)

    assert session.query(Order).count() == 0


def test_menu_item_from_other_restaurant_rejected(session, customer, restaurant, menu_items,
                                                  foreign_menu_item, order_payload):
    items = [{"menuItemId": foreign_menu_item.id, "quantity": 1, "price": 4.50}]

    with pytest.raises(BadRequestError):
        _place(session, customer, order_payload, items=items,
               subtotalAmount=4.50, taxAmount=0, totalAmount=4.50)

    assert session.query(Order).count() == 0


def test_idempotency_key_replays_order(session, customer, restaurant, menu_items, order_payload):
    first, replayed_first = _place(session, customer, order_payload, key="checkout-1")
    second, replayed_second = _place(session, customer, order_payload, key="checkout-1")

    assert replayed_first is False
    assert replayed_second is True
    assert second.id == first.id
    assert session.query(Order).count() == 1


def test_idempotency_key_is_per_user(session, customer, other_customer, restaurant, menu_items, order_payload):
    first, _ = _place(session, customer, order_payload, key="checkout-1")
    second, replayed = _place(session, other_customer, order_payload, key="checkout-1")

    assert replayed is False
    assert second.id != first.id


def test_idempotency_key_expires(session, customer, restaurant, menu_items, order_payload):
    first, _ = _place(session, customer, order_payload, key="checkout-1")
    first.created_at = datetime.now(timezone.utc) - timedelta(days=2)
    session.commit()

    second, replayed = _place(session, customer, order_payload, key="checkout-1")

    assert replayed is False
    assert second.id != first.id

    session.refresh(first)
    assert first.idempotency_key is None
    assert second.idempotency_key == "checkout-1"


def test_concurrent_submissions_with_same_key_store_one_order(session, customer, restaurant, menu_items,
                                                               order_payload, monkeypatch):
    """A retry that lands while the first request is still inserting gets the first order back."""
    request = CreateOrderRequest(**order_payload())
    lookup = OrderService.find_replayed_order
    other_session = sessionmaker(bind=session.get_bind(), autoflush=False)()
    placed_first = {}

    def lookup_then_let_other_request_win(db, user_id, key):
        if db is session and "order" not in placed_first:
            # the other request commits between this lookup and our insert
            placed_first["order"], _ = OrderService.create_order(other_session, user_id, request, key)
            return None
        return lookup(db, user_id, key)

    monkeypatch.setattr(OrderService, "find_replayed_order", staticmethod(lookup_then_let_other_request_win))

    try:
        order, replayed = OrderService.create_order(session, customer.id, request, "checkout-1")
    finally:
        other_session.close()

    assert replayed is True
    assert order.id == placed_first["order"].id
    assert session.query(Order).filter(Order.idempotency_key == "checkout-1").count() == 1


def test_failed_item_insert_stores_nothing(session, customer, restaurant, menu_items, order_payload, monkeypatch):
    def broken_order_item(**kwargs):
        raise SQLAlchemyError("order_items insert failed")

    monkeypatch.setattr("services.order_service.OrderItem", broken_order_item)

    with pytest.raises(PersistenceError) as exc:
        _place(session, customer, order_payload)

    assert exc.value.message == "Error creating order"
    assert session.query(Order).count() == 0
    assert session.query(OrderItem).count() == 0


def test_cancel_order(session, customer, restaurant, menu_items, order_payload):
    order, _ = _place(session, customer, order_payload)

    cancelled = OrderService.cancel_order(session, order.id, customer.id)

    assert cancelled.order_status == "cancelled"
    assert cancelled.cancelled_at is not None
    assert cancelled.payment_status == "pending"


def test_second_cancel_fails(session, customer, restaurant, menu_items, order_payload):
    order, _ = _place(session, customer, order_payload)
    OrderService.cancel_order(session, order.id, customer.id)

    with pytest.raises(DomainError) as exc:
        OrderService.cancel_order(session, order.id, customer.id)

    assert exc.value.message == "Order cannot be cancelled"
    session.expire_all()
    assert session.get(Order, order.id).order_status == "cancelled"


def test_cancel_by_non_owner_fails(session, customer, other_customer, restaurant, menu_items, order_payload):
    order, _ = _place(session, customer, order_payload)

    with pytest.raises(NotFoundError) as exc:
        OrderService.cancel_order(session, order.id, other_customer.id)

    assert exc.value.message == "Order not found"
    session.expire_all()
    unchanged = session.get(Order, order.id)
    assert unchanged.order_status == "preparing"
    assert unchanged.cancelled_at is None


def test_cancel_unknown_order(session, customer):
    with pytest.raises(NotFoundError):
        OrderService.cancel_order(session, 4242, customer.id)


def test_pay_deliver(session, customer, restaurant, menu_items, order_payload):
    order, _ = _place(session, customer, order_payload)

    paid = OrderService.pay_order(session, order.id, customer.id, "deliver")

    assert paid.order_status == "delivered"
    assert paid.payment_status == "paid"
    assert paid.delivered_at is not None


def test_pay_cancel(session, customer, restaurant, menu_items, order_payload):
    order, _ = _place(session, customer, order_payload)

    failed = OrderService.pay_order(session, order.id, customer.id, "cancel")

    assert failed.order_status == "cancelled"
    assert failed.payment_status == "failed"
    assert failed.cancelled_at is not None


def test_pay_after_delivery_fails(session, customer, restaurant, menu_items, order_payload):
    order, _ = _place(session, customer, order_payload)
    OrderService.pay_order(session, order.id, customer.id, "deliver")

    with pytest.raises(DomainError) as exc:
        OrderService.pay_order(session, order.id, customer.id, "deliver")

    assert exc.value.message == "Order cannot be paid - invalid status"


def test_pay_when_payment_settled_but_still_preparing(session, customer, restaurant, menu_items, order_payload):
    order, _ = _place(session, customer, order_payload)
    session.query(Order).filter(Order.id == order.id).update({"payment_status": "paid"})
    session.commit()

    with pytest.raises(DomainError) as exc:
        OrderService.pay_order(session, order.id, customer.id, "deliver")

    assert exc.value.message == "Order has already been paid"


def test_pay_invalid_action(session, customer, restaurant, menu_items, order_payload):
    order, _ = _place(session, customer, order_payload)

    with pytest.raises(BadRequestError):
        OrderService.pay_order(session, order.id, customer.id, "refund")


def test_update_status_stamps_timestamps(session, customer, restaurant, menu_items, order_payload):
    order, _ = _place(session, customer, order_payload)

    delivered = OrderService.update_status(session, order.id, "delivered")

    assert delivered.order_status == "delivered"
    assert delivered.delivered_at is not None
    assert delivered.cancelled_at is None


def test_update_status_scoped_to_user(session, customer, other_customer, restaurant, menu_items, order_payload):
    order, _ = _place(session, customer, order_payload)

    with pytest.raises(NotFoundError) as exc:
        OrderService.update_status(session, order.id, "cancelled", user_id=other_customer.id)

    assert exc.value.message == "Order not found or unauthorized"


def test_update_status_rejects_unknown_status(session, customer, restaurant, menu_items, order_payload):
    order, _ = _place(session, customer, order_payload)

    with pytest.raises(BadRequestError):
        OrderService.update_status(session, order.id, "on_the_way")


def test_list_user_orders_filters_by_status(session, customer, restaurant, menu_items, order_payload):
    first, _ = _place(session, customer, order_payload)
    second, _ = _place(session, customer, order_payload)
    OrderService.cancel_order(session, first.id, customer.id)

    all_orders = OrderService.list_user_orders(session, customer.id)
    preparing = OrderService.list_user_orders(session, customer.id, status="preparing")

    assert [o.id for o in all_orders] == [second.id, first.id]
    assert [o.id for o in preparing] == [second.id]


def test_list_restaurant_orders(session, customer, restaurant, other_restaurant, menu_items, order_payload):
    order, _ = _place(session, customer, order_payload)

    assert [o.id for o in OrderService.list_restaurant_orders(session, restaurant.id)] == [order.id]
    assert OrderService.list_restaurant_orders(session, other_restaurant.id) == []


def test_user_stats(session, customer, restaurant, menu_items, order_payload):
    delivered, _ = _place(session, customer, order_payload)
    cancelled, _ = _place(session, customer, order_payload)
    _place(session, customer, order_payload)
    OrderService.pay_order(session, delivered.id, customer.id, "deliver")
    OrderService.cancel_order(session, cancelled.id, customer.id)

    stats = OrderService.get_user_stats(session, customer.id)

    assert stats == {
        "total_orders": 3,
        "completed_orders": 1,
        "cancelled_orders": 1,
        "active_orders": 1,
        "total_spent": 37.45,
    }


def test_user_stats_without_orders(session, customer):
    stats = OrderService.get_user_stats(session, customer.id)

    assert stats == {
        "total_orders": 0,
        "completed_orders": 0,
        "cancelled_orders": 0,
        "active_orders": 0,
        "total_spent": 0.0,
    }
