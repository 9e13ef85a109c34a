from datetime import datetime, timezone, timedelta
from typing import Optional
from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload
from models.orders import Order, ORDER_STATUSES
from models.order_items import OrderItem
from models.menu_items import MenuItem
from models.mixins import utcnow
from schemas.order_schemas import CreateOrderRequest, as_decimal, AMOUNT_TOLERANCE
from services.restaurant_service import RestaurantService
from core.config import settings
from core.exceptions import BadRequestError, DomainError, NotFoundError, PersistenceError
from utils.order_number import generate_order_number
from utils.logger import get_logger

logger = get_logger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite and MySQL hand back naive datetimes; timestamps are written as UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class OrderService:
    """
    Order creation and the order status lifecycle.

    Status machine: ``preparing`` is the only non-terminal state; it moves
    to ``delivered`` or ``cancelled`` and never back. Every guarded
    transition is a single conditional UPDATE whose WHERE clause repeats the
    required starting state, so two concurrent requests cannot both win.
    The row is only read afterwards, to explain a refused transition.
    """

    @staticmethod
    def _load_order(db: Session, order_id: int) -> Order | None:
        return (
            db.query(Order)
            .options(
                joinedload(Order.restaurant),
                joinedload(Order.user),
                selectinload(Order.items).joinedload(OrderItem.menu_item),
            )
            .filter(Order.id == order_id)
            .one_or_none()
        )

    @staticmethod
    def find_replayed_order(db: Session, user_id: int, idempotency_key: str) -> Order | None:
        """
        Most recent order this user submitted with ``idempotency_key``, if it
        is still inside the idempotency window.
        """
        order = (
            db.query(Order)
            .filter(Order.user_id == user_id, Order.idempotency_key == idempotency_key)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .first()
        )
        if not order:
            return None

        window = timedelta(minutes=settings.IDEMPOTENCY_WINDOW_MINUTES)
        if _as_utc(order.created_at) < utcnow() - window:
            return None

        return OrderService._load_order(db, order.id)

    @staticmethod
    def _release_expired_key(db: Session, user_id: int, idempotency_key: str) -> None:
        """
        Frees ``idempotency_key`` on this user's orders older than the window,
        so the key can be claimed again by a new order.
        """
        cutoff = utcnow() - timedelta(minutes=settings.IDEMPOTENCY_WINDOW_MINUTES)
        (
            db.query(Order)
            .filter(
                Order.user_id == user_id,
                Order.idempotency_key == idempotency_key,
                Order.created_at < cutoff,
            )
            .update({"idempotency_key": None}, synchronize_session=False)
        )

    @staticmethod
    def create_order(db: Session, user_id: int, request: CreateOrderRequest,
                     idempotency_key: Optional[str] = None) -> tuple[Order, bool]:
        """
        Places an order and its line items in one transaction.

        Flow:
        1. Reject an empty item list
        2. Short-circuit a retried submission (same idempotency key), and
           free the key on orders that fell out of the window
        3. Check the restaurant and that every menu item belongs to it
        4. Insert the order (preparing / pending), flush for its id
        5. Insert one order_items row per line, subtotal = price x quantity
        6. Commit, or roll back everything on failure. Losing the race for
           the idempotency key to a concurrent request replays that order
        7. Re-read the order with restaurant, user and items

        Returns:
            (order, replayed) where replayed is True if an earlier order was returned
        """
        if not request.items:
            raise BadRequestError("Order must contain at least one item")

        if idempotency_key:
            existing = OrderService.find_replayed_order(db, user_id, idempotency_key)
            if existing:
                logger.info(
                    "Duplicate order submission replayed",
                    extra={"user_id": user_id, "order_id": existing.id}
                )
                return existing, True

        restaurant = RestaurantService.get_restaurant(db, request.restaurant_id)

        menu_item_ids = {item.menu_item_id for item in request.items}
        menu_items = {
            m.id: m for m in db.query(MenuItem).filter(MenuItem.id.in_(menu_item_ids)).all()
        }
        for item in request.items:
            menu_item = menu_items.get(item.menu_item_id)
            if menu_item is None or menu_item.restaurant_id != restaurant.id:
                raise BadRequestError(
                    f"Menu item {item.menu_item_id} is not available from this restaurant"
                )

        try:
            if idempotency_key:
                OrderService._release_expired_key(db, user_id, idempotency_key)

            order = Order(
                order_number=generate_order_number(),
                idempotency_key=idempotency_key,
                user_id=user_id,
                restaurant_id=restaurant.id,
                delivery_address=request.delivery_address,
                delivery_phone=request.delivery_phone or "",
                delivery_notes=request.notes,
                subtotal=as_decimal(request.subtotal_amount).quantize(AMOUNT_TOLERANCE),
                delivery_fee=as_decimal(request.delivery_fee).quantize(AMOUNT_TOLERANCE),
                tax_amount=as_decimal(request.tax_amount).quantize(AMOUNT_TOLERANCE),
                total_amount=as_decimal(request.total_amount).quantize(AMOUNT_TOLERANCE),
                payment_method=request.payment_method,
                order_status="preparing",
                payment_status="pending",
            )
            db.add(order)
            db.flush()

            db.add_all([
                OrderItem(
                    order_id=order.id,
                    menu_item_id=item.menu_item_id,
                    item_name=menu_items[item.menu_item_id].name or item.name or "Unknown Item",
                    item_price=as_decimal(item.price).quantize(AMOUNT_TOLERANCE),
                    quantity=item.quantity,
                    subtotal=item.line_total,
                    special_instructions=item.notes,
                )
                for item in request.items
            ])

            db.commit()
        except IntegrityError:
            db.rollback()
            existing = OrderService.find_replayed_order(db, user_id, idempotency_key) if idempotency_key else None
            if existing is None:
                logger.error(
                    "Order insert violated a constraint",
                    extra={"user_id": user_id, "restaurant_id": request.restaurant_id},
                    exc_info=True
                )
                raise PersistenceError("Error creating order")

            logger.info(
                "Concurrent order submission replayed",
                extra={"user_id": user_id, "order_id": existing.id}
            )
            return existing, True
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(
                f"Error creating order: {str(e)}",
                extra={"user_id": user_id, "restaurant_id": request.restaurant_id},
                exc_info=True
            )
            raise PersistenceError("Error creating order")

        logger.info(
            "Order created",
            extra={
                "order_id": order.id,
                "order_number": order.order_number,
                "user_id": user_id,
                "item_count": len(request.items),
            }
        )

        return OrderService._load_order(db, order.id), False

    @staticmethod
    def get_order(db: Session, order_id: int) -> Order:
        order = OrderService._load_order(db, order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    @staticmethod
    def _list_orders(db: Session, criteria, status: Optional[str], limit: int, offset: int) -> list[Order]:
        query = (
            db.query(Order)
            .options(joinedload(Order.restaurant), selectinload(Order.items))
            .filter(criteria)
        )
        if status:
            query = query.filter(Order.order_status == status)

        return (
            query.order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )

    @staticmethod
    def list_user_orders(db: Session, user_id: int, status: Optional[str] = None,
                         limit: int = 20, offset: int = 0) -> list[Order]:
        return OrderService._list_orders(db, Order.user_id == user_id, status, limit, offset)

    @staticmethod
    def list_restaurant_orders(db: Session, restaurant_id: int, status: Optional[str] = None,
                               limit: int = 20, offset: int = 0) -> list[Order]:
        return OrderService._list_orders(db, Order.restaurant_id == restaurant_id, status, limit, offset)

    @staticmethod
    def _owned_order_or_404(db: Session, order_id: int, user_id: int) -> Order:
        order = (
            db.query(Order)
            .filter(Order.id == order_id, Order.user_id == user_id)
            .one_or_none()
        )
        if not order:
            raise NotFoundError("Order not found")
        return order

    @staticmethod
    def cancel_order(db: Session, order_id: int, user_id: int) -> Order:
        """
        Owner cancels an order that is still being prepared.

        Raises:
            NotFoundError: unknown order, or owned by someone else
            DomainError: order already delivered or cancelled
        """
        now = utcnow()
        updated = (
            db.query(Order)
            .filter(Order.id == order_id, Order.user_id == user_id, Order.order_status == "preparing")
            .update({"order_status": "cancelled", "cancelled_at": now, "updated_at": now},
                    synchronize_session=False)
        )

        if updated == 0:
            db.rollback()
            order = OrderService._owned_order_or_404(db, order_id, user_id)
            logger.warning(
                "Order cancellation refused",
                extra={"order_id": order_id, "user_id": user_id, "order_status": order.order_status}
            )
            raise DomainError("Order cannot be cancelled")

        db.commit()
        logger.info("Order cancelled", extra={"order_id": order_id, "user_id": user_id})

        db.expire_all()
        return OrderService.get_order(db, order_id)

    @staticmethod
    def pay_order(db: Session, order_id: int, user_id: int, action: str) -> Order:
        """
        Settles an order.

        ``deliver``: preparing/pending -> delivered/paid, stamps delivered_at
        ``cancel``:  preparing/pending -> cancelled/failed, stamps cancelled_at
        """
        if action not in ("deliver", "cancel"):
            raise BadRequestError('Invalid action. Must be "deliver" or "cancel"')

        now = utcnow()
        if action == "deliver":
            values = {"order_status": "delivered", "payment_status": "paid", "delivered_at": now}
        else:
            values = {"order_status": "cancelled", "payment_status": "failed", "cancelled_at": now}
        values["updated_at"] = now

        updated = (
            db.query(Order)
            .filter(
                Order.id == order_id,
                Order.user_id == user_id,
                Order.order_status == "preparing",
                Order.payment_status == "pending",
            )
            .update(values, synchronize_session=False)
        )

        if updated == 0:
            db.rollback()
            order = OrderService._owned_order_or_404(db, order_id, user_id)
            logger.warning(
                "Order settlement refused",
                extra={
                    "order_id": order_id,
                    "user_id": user_id,
                    "order_status": order.order_status,
                    "payment_status": order.payment_status,
                }
            )
            if order.order_status != "preparing":
                raise DomainError("Order cannot be paid - invalid status")
            raise DomainError("Order has already been paid")

        db.commit()
        logger.info(
            "Order settled",
            extra={"order_id": order_id, "user_id": user_id, "action": action}
        )

        db.expire_all()
        return OrderService.get_order(db, order_id)

    @staticmethod
    def update_status(db: Session, order_id: int, status: str, user_id: Optional[int] = None) -> Order:
        """
        Administrative overwrite of ``order_status``.

        Any of the persisted statuses is accepted. Entering ``delivered`` or
        ``cancelled`` stamps the matching timestamp if it is not set yet.
        With ``user_id`` the order must belong to that user.
        """
        if status not in ORDER_STATUSES:
            raise BadRequestError("Invalid order status")

        if user_id is not None:
            exists = db.query(Order.id).filter(Order.id == order_id, Order.user_id == user_id).first()
            if not exists:
                raise NotFoundError("Order not found or unauthorized")

        order = db.query(Order).filter(Order.id == order_id).one_or_none()
        if not order:
            raise NotFoundError("Order not found")

        previous = order.order_status
        now = utcnow()
        order.order_status = status
        order.updated_at = now
        if status == "delivered" and order.delivered_at is None:
            order.delivered_at = now
        if status == "cancelled" and order.cancelled_at is None:
            order.cancelled_at = now

        db.commit()
        logger.info(
            "Order status overwritten",
            extra={"order_id": order_id, "from_status": previous, "to_status": status}
        )

        db.expire_all()
        return OrderService.get_order(db, order_id)

    @staticmethod
    def get_user_stats(db: Session, user_id: int) -> dict:
        """Per-user order counters, computed at read time."""
        def count_where(status):
            return func.coalesce(func.sum(case((Order.order_status == status, 1), else_=0)), 0)

        row = (
            db.query(
                func.count(Order.id).label("total_orders"),
                count_where("delivered").label("completed_orders"),
                count_where("cancelled").label("cancelled_orders"),
                count_where("preparing").label("active_orders"),
                func.coalesce(
                    func.sum(case((Order.order_status == "delivered", Order.total_amount), else_=0)), 0
                ).label("total_spent"),
            )
            .filter(Order.user_id == user_id)
            .one()
        )

        return {
            "total_orders": int(row.total_orders or 0),
            "completed_orders": int(row.completed_orders or 0),
            "cancelled_orders": int(row.cancelled_orders or 0),
            "active_orders": int(row.active_orders or 0),
            "total_spent": round(float(row.total_spent or 0), 2),
        }
