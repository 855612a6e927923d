# Overview: Service-layer operations for orders; checkout pricing and stock decrement happen here.

# backend/freshcart/services/order_service.py
"""
Order placement.

- Unit prices are resolved server-side with resolve_price at placement time
  and frozen on the OrderItem. Client-sent prices are not accepted.
- Order, items and the 'sold' stock transactions commit together.
"""
from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Address, Order, OrderItem, Product, User, ORDER_STATUSES
from ..validation import NotFoundError, ValidationError
from .concurrency import run_with_retry
from .inventory_service import sell_for_order
from .pricing_service import resolve_price


def _normalize_items(items) -> list[tuple[int, int]]:
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")

    merged: dict[int, int] = {}
    for raw in items:
        if not isinstance(raw, dict):
            raise ValidationError("each item must be an object")
        product_id = raw.get("productId", raw.get("product_id"))
        quantity = raw.get("quantity", 1)
        if not isinstance(product_id, int) or isinstance(product_id, bool):
            raise ValidationError("item productId must be an integer")
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise ValidationError("item quantity must be an integer >= 1")
        merged[product_id] = merged.get(product_id, 0) + quantity
    return list(merged.items())


def place_order(
    *,
    user_id: int,
    address_id: int,
    payment_method: str,
    estimated_delivery_time: int,
    items,
) -> Order:
    """
    Create an order for the user.

    Raises:
        ValidationError: bad items, or the address is missing / not the user's
        NotFoundError: unknown user or product
    """
    lines = _normalize_items(items)
    if estimated_delivery_time is None or estimated_delivery_time < 0:
        raise ValidationError("estimatedDeliveryTime must be >= 0")

    if db.session.get(User, user_id) is None:
        raise NotFoundError("user not found")

    address = db.session.get(Address, address_id)
    if address is None or address.user_id != user_id:
        raise ValidationError("Invalid address: the selected delivery address does not exist")

    def _op():
        order = Order(
            user_id=user_id,
            address_id=address_id,
            total_cents=0,
            status="pending",
            payment_method=payment_method,
            estimated_delivery_time=estimated_delivery_time,
        )
        db.session.add(order)
        db.session.flush()

        total = 0
        for product_id, quantity in lines:
            if db.session.get(Product, product_id) is None:
                raise NotFoundError(f"product {product_id} not found")
            unit_price = resolve_price(user_id, product_id)
            order.items.append(
                OrderItem(
                    product_id=product_id,
                    quantity=quantity,
                    price_cents=unit_price,
                )
            )
            total += unit_price * quantity
        order.total_cents = total
        db.session.flush()

        sell_for_order(order)

        db.session.commit()
        return order

    try:
        return run_with_retry(_op)
    except (NotFoundError, ValidationError):
        db.session.rollback()
        raise


def list_orders(user_id: int) -> list[Order]:
    return (
        db.session.query(Order)
        .filter_by(user_id=user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


def list_all_orders(*, status: str | None = None) -> list[Order]:
    q = db.session.query(Order)
    if status is not None:
        q = q.filter_by(status=status)
    return q.order_by(Order.created_at.desc(), Order.id.desc()).all()


def get_order(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError("order not found")
    return order


def update_order_status(order_id: int, status: str) -> Order:
    if status not in ORDER_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(ORDER_STATUSES)}")
    order = get_order(order_id)
    order.status = status
    db.session.commit()
    return order


def get_dashboard_stats() -> dict:
    revenue = (
        db.session.query(func.coalesce(func.sum(Order.total_cents), 0))
        .filter(Order.status != "cancelled")
        .scalar()
    )
    return {
        "totalOrders": db.session.query(Order).count(),
        "totalRevenueCents": int(revenue or 0),
        "totalProducts": db.session.query(Product).count(),
        "totalCustomers": db.session.query(User).filter_by(role="customer").count(),
    }
