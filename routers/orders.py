from typing import Optional
from fastapi import APIRouter, Header, Query, Request, Response, status
from utils.deps import admin_dependency, db_dependency, user_dependency
from schemas.common import envelope
from schemas.order_schemas import (CreateOrderRequest, OrderResponse, OrderStatsResponse, OrderStatus,
                                   OrderSummaryResponse, PayOrderRequest, UpdateOrderStatusRequest)
from services.order_service import OrderService
from services.restaurant_service import RestaurantService
from core.exceptions import ForbiddenError
from middleware.rate_limiter import limiter
from utils.logger import get_logger

logger = get_logger(__name__)


router = APIRouter(
    prefix="/api/orders",
    tags=["orders"]
)


def _order(order) -> dict:
    return {"order": OrderResponse.from_order(order).model_dump(mode="json")}


def _order_page(orders, limit: int, offset: int) -> dict:
    return {
        "orders": [OrderSummaryResponse.from_order(o).model_dump(mode="json") for o in orders],
        "pagination": {"limit": limit, "offset": offset},
    }


@router.post("", status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def create_order(
    request: Request,
    response: Response,
    body: CreateOrderRequest,
    user: user_dependency,
    db: db_dependency,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key", max_length=64),
):
    """
    Places an order. Resending the same ``Idempotency-Key`` returns the
    order created by the first attempt with status 200.
    """
    order, replayed = OrderService.create_order(db, user.get("user_id"), body, idempotency_key)

    if replayed:
        response.status_code = status.HTTP_200_OK
        return envelope({**_order(order), "replayed": True}, "Order already placed")

    return envelope(_order(order), "Order created successfully")


@router.get("/my-orders", status_code=status.HTTP_200_OK)
async def list_my_orders(
    user: user_dependency,
    db: db_dependency,
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    orders = OrderService.list_user_orders(db, user.get("user_id"), order_status, limit, offset)
    return envelope(_order_page(orders, limit, offset))


@router.get("/my-orders/stats", status_code=status.HTTP_200_OK)
async def my_order_stats(user: user_dependency, db: db_dependency):
    stats = OrderService.get_user_stats(db, user.get("user_id"))
    return envelope({"stats": OrderStatsResponse(**stats).model_dump()})


@router.get("/restaurant/{restaurant_id}", status_code=status.HTTP_200_OK)
async def list_restaurant_orders(
    restaurant_id: int,
    admin: admin_dependency,
    db: db_dependency,
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    RestaurantService.get_restaurant(db, restaurant_id)
    orders = OrderService.list_restaurant_orders(db, restaurant_id, order_status, limit, offset)
    return envelope(_order_page(orders, limit, offset))


@router.get("/{order_id}", status_code=status.HTTP_200_OK)
async def get_order(order_id: int, user: user_dependency, db: db_dependency):
    order = OrderService.get_order(db, order_id)

    if order.user_id != user.get("user_id") and user.get("user_role") != "admin":
        logger.warning(
            "Order access denied",
            extra={"order_id": order_id, "user_id": user.get("user_id")}
        )
        raise ForbiddenError("Access denied")

    return envelope(_order(order))


@router.post("/{order_id}/cancel", status_code=status.HTTP_200_OK)
@limiter.limit("10/minute")
async def cancel_order(request: Request, order_id: int, user: user_dependency, db: db_dependency):
    order = OrderService.cancel_order(db, order_id, user.get("user_id"))
    return envelope(_order(order), "Order cancelled successfully")


@router.put("/{order_id}/pay", status_code=status.HTTP_200_OK)
@limiter.limit("10/minute")
async def pay_order(request: Request, order_id: int, body: PayOrderRequest, user: user_dependency, db: db_dependency):
    order = OrderService.pay_order(db, order_id, user.get("user_id"), body.action)
    message = "Order delivered and paid" if body.action == "deliver" else "Order cancelled"
    return envelope(_order(order), message)


@router.patch("/{order_id}/status", status_code=status.HTTP_200_OK)
@limiter.limit("30/minute")
async def update_order_status(request: Request, order_id: int, body: UpdateOrderStatusRequest,
                              admin: admin_dependency, db: db_dependency):
    order = OrderService.update_status(db, order_id, body.status, body.user_id)
    return envelope(_order(order), "Order status updated successfully")
