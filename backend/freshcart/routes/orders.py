# backend/freshcart/routes/orders.py
"""
Order routes.

Checkout sends product ids and quantities only. Unit prices come from the
pricing resolver at placement time; any price fields in the body are ignored.
"""
from flask import Blueprint, request

from ..validation import require_int, require_str
from ..decorators import require_admin, handle_service_errors
from ..services import order_service


orders_bp = Blueprint("orders", __name__, url_prefix="/api")


@orders_bp.post("/orders")
@handle_service_errors("place order")
def place_order_route():
    """
    Place an order.

    Body:
    {
        "userId": 1,
        "addressId": 3,
        "paymentMethod": "cod",
        "estimatedDeliveryTime": 30,
        "items": [{"productId": 7, "quantity": 2}]
    }
    """
    data = request.get_json(silent=True) or {}
    payment_method = require_str(data.get("paymentMethod"), "paymentMethod")

    order = order_service.place_order(
        user_id=require_int(data.get("userId"), "userId"),
        address_id=require_int(data.get("addressId"), "addressId"),
        payment_method=payment_method,
        estimated_delivery_time=require_int(data.get("estimatedDeliveryTime", 30), "estimatedDeliveryTime"),
        items=data.get("items"),
    )
    return order.to_dict(include_items=True), 201


@orders_bp.get("/orders")
@handle_service_errors("list orders")
def list_orders_route():
    user_id = require_int(request.args.get("userId"), "userId")
    return [o.to_dict() for o in order_service.list_orders(user_id)], 200


@orders_bp.get("/orders/<int:order_id>")
@handle_service_errors("load order")
def get_order_route(order_id: int):
    return order_service.get_order(order_id).to_dict(include_items=True), 200


@orders_bp.get("/admin/orders")
@require_admin
@handle_service_errors("list orders")
def admin_list_orders_route():
    status = request.args.get("status") or None
    return [o.to_dict() for o in order_service.list_all_orders(status=status)], 200


@orders_bp.patch("/admin/orders/<int:order_id>")
@require_admin
@handle_service_errors("update order status")
def update_order_status_route(order_id: int):
    data = request.get_json(silent=True) or {}
    status = require_str(data.get("status"), "status")
    return order_service.update_order_status(order_id, status).to_dict(include_items=True), 200
