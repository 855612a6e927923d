# backend/freshcart/routes/cart.py
from flask import Blueprint, request

from ..validation import require_int
from ..decorators import handle_service_errors
from ..services import cart_service


cart_bp = Blueprint("cart", __name__, url_prefix="/api/cart")


@cart_bp.get("")
@handle_service_errors("load cart")
def list_cart_route():
    """Cart lines priced for the user at request time."""
    user_id = require_int(request.args.get("userId"), "userId")
    return cart_service.list_cart(user_id), 200


@cart_bp.post("")
@handle_service_errors("add to cart")
def add_to_cart_route():
    data = request.get_json(silent=True) or {}
    item = cart_service.add_to_cart(
        user_id=require_int(data.get("userId"), "userId"),
        product_id=require_int(data.get("productId"), "productId"),
        quantity=require_int(data.get("quantity", 1), "quantity"),
    )
    return item.to_dict(), 201


@cart_bp.patch("/<int:item_id>")
@handle_service_errors("update cart item")
def update_cart_item_route(item_id: int):
    data = request.get_json(silent=True) or {}
    item = cart_service.update_cart_item(
        item_id,
        require_int(data.get("quantity"), "quantity"),
        user_id=require_int(data.get("userId"), "userId"),
    )
    return item.to_dict(), 200


@cart_bp.delete("/<int:item_id>")
@handle_service_errors("remove cart item")
def remove_cart_item_route(item_id: int):
    user_id = require_int(request.args.get("userId"), "userId")
    cart_service.remove_cart_item(item_id, user_id=user_id)
    return "", 204


@cart_bp.delete("")
@handle_service_errors("clear cart")
def clear_cart_route():
    user_id = require_int(request.args.get("userId"), "userId")
    return {"removed": cart_service.clear_cart(user_id)}, 200
