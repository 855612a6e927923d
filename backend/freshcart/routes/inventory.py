# backend/freshcart/routes/inventory.py
"""
Inventory management routes (admin only).

Stock only moves through the ledger: POST /transactions or the
PATCH /inventory/stock/<product_id> shortcut. PATCH /inventory/<id> edits
thresholds and location only.
"""
from flask import Blueprint, request, g

from ..models import Inventory, StockTransaction
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    require_int,
    ValidationError,
)
from ..decorators import require_admin, handle_service_errors
from ..services import inventory_service


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/admin")

INVENTORY_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "product_id",
        "stock_quantity",
        "min_stock_level",
        "max_stock_level",
        "reorder_point",
        "location_code",
    },
    required_on_create={"product_id"},
)

INVENTORY_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"min_stock_level", "max_stock_level", "reorder_point", "location_code"},
)

STOCK_TRANSACTION_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "transaction_type", "quantity", "notes", "reference", "user_id"},
    required_on_create={"product_id", "transaction_type", "quantity"},
)


def _flag(name: str) -> bool:
    return (request.args.get(name) or "").strip().lower() in ("1", "true", "yes")


@inventory_bp.get("/inventory")
@require_admin
@handle_service_errors("list inventory")
def list_inventory_route():
    """List inventory with product details. ?lowStock=true keeps stock <= reorderPoint."""
    rows = inventory_service.list_inventory(low_stock_only=_flag("lowStock"))
    return [inv.to_dict(include_product=True) for inv in rows], 200


@inventory_bp.get("/inventory/product/<int:product_id>")
@require_admin
@handle_service_errors("load product inventory")
def product_inventory_route(product_id: int):
    inventory = inventory_service.get_inventory(product_id)
    return inventory.to_dict(include_product=True), 200


@inventory_bp.post("/inventory")
@require_admin
@handle_service_errors("create inventory")
def create_inventory_route():
    """
    Create the inventory record for a product.

    409 if the product already has one. A positive stockQuantity is logged as
    a 'received' transaction.
    """
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(
        model=Inventory,
        payload=payload,
        policy=INVENTORY_CREATE_POLICY,
        partial=False,
    )
    inventory = inventory_service.create_inventory(user_id=g.current_user.id, **patch)
    return inventory.to_dict(include_product=True), 201


@inventory_bp.patch("/inventory/<int:inventory_id>")
@require_admin
@handle_service_errors("update inventory")
def update_inventory_route(inventory_id: int):
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(
        model=Inventory,
        payload=payload,
        policy=INVENTORY_UPDATE_POLICY,
        partial=True,
    )
    inventory = inventory_service.update_inventory(inventory_id, patch)
    return inventory.to_dict(include_product=True), 200


@inventory_bp.patch("/inventory/stock/<int:product_id>")
@require_admin
@handle_service_errors("update stock quantity")
def update_stock_route(product_id: int):
    """
    Apply a raw delta: {"quantity": -3, "notes": "..."}.

    Logged as 'received' when positive, 'adjusted' otherwise.
    """
    payload = request.get_json(silent=True) or {}
    raw = payload.get("quantity")
    if not isinstance(raw, int) or isinstance(raw, bool):
        raise ValidationError("quantity must be an integer")

    notes = payload.get("notes")
    inventory = inventory_service.update_stock_quantity(
        product_id,
        raw,
        notes=str(notes).strip() if notes else None,
        user_id=g.current_user.id,
    )
    return inventory.to_dict(include_product=True), 200


@inventory_bp.get("/transactions")
@require_admin
@handle_service_errors("list stock transactions")
def list_transactions_route():
    product_id = request.args.get("productId")
    limit = request.args.get("limit")
    rows = inventory_service.list_stock_transactions(
        product_id=require_int(product_id, "productId") if product_id else None,
        limit=max(1, min(require_int(limit, "limit"), 1000)) if limit else 200,
    )
    return [r.to_dict() for r in rows], 200


@inventory_bp.post("/transactions")
@require_admin
@handle_service_errors("create stock transaction")
def create_transaction_route():
    """
    Record a stock transaction and move the counter.

    quantity is a positive magnitude for received/sold/returned/damaged and a
    signed delta for adjusted. userId defaults to the calling admin.
    """
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(
        model=StockTransaction,
        payload=payload,
        policy=STOCK_TRANSACTION_POLICY,
        partial=False,
    )
    tx = inventory_service.record_transaction(
        product_id=patch["product_id"],
        transaction_type=patch["transaction_type"],
        quantity=patch["quantity"],
        notes=patch.get("notes"),
        reference=patch.get("reference"),
        user_id=patch.get("user_id") or g.current_user.id,
    )
    inventory = inventory_service.get_inventory(patch["product_id"])
    return {"transaction": tx.to_dict(), "inventory": inventory.to_dict()}, 201
