from __future__ import annotations

from ..extensions import db
from ..models import CartItem, Product, User
from ..validation import NotFoundError, ValidationError
from .pricing_service import resolve_price


def _require_quantity(quantity: int) -> None:
    if quantity is None or quantity < 1:
        raise ValidationError("quantity must be >= 1")


def list_cart(user_id: int) -> list[dict]:
    """
    Cart lines with their product and the user's resolved unit price.

    Prices are resolved per call and never stored on the cart line.
    """
    items = (
        db.session.query(CartItem)
        .filter_by(user_id=user_id)
        .order_by(CartItem.id.asc())
        .all()
    )
    lines = []
    for item in items:
        unit_price = resolve_price(user_id, item.product_id)
        line = item.to_dict()
        line["product"] = item.product.to_dict()
        line["unitPriceCents"] = unit_price
        line["lineTotalCents"] = unit_price * item.quantity
        lines.append(line)
    return lines


def add_to_cart(*, user_id: int, product_id: int, quantity: int = 1) -> CartItem:
    """Adding a product already in the cart increases that line's quantity."""
    _require_quantity(quantity)
    if db.session.get(User, user_id) is None:
        raise NotFoundError("user not found")
    if db.session.get(Product, product_id) is None:
        raise NotFoundError("product not found")

    item = db.session.query(CartItem).filter_by(user_id=user_id, product_id=product_id).first()
    if item is None:
        item = CartItem(user_id=user_id, product_id=product_id, quantity=quantity)
        db.session.add(item)
    else:
        item.quantity += quantity
    db.session.commit()
    return item


def _require_own_item(item_id: int, user_id: int) -> CartItem:
    """Another user's line is reported as missing."""
    item = db.session.get(CartItem, item_id)
    if item is None or item.user_id != user_id:
        raise NotFoundError("cart item not found")
    return item


def update_cart_item(item_id: int, quantity: int, *, user_id: int) -> CartItem:
    _require_quantity(quantity)
    item = _require_own_item(item_id, user_id)
    item.quantity = quantity
    db.session.commit()
    return item


def remove_cart_item(item_id: int, *, user_id: int) -> None:
    item = _require_own_item(item_id, user_id)
    db.session.delete(item)
    db.session.commit()


def clear_cart(user_id: int) -> int:
    removed = db.session.query(CartItem).filter_by(user_id=user_id).delete()
    db.session.commit()
    return removed
