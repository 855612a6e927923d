# Overview: Service-layer operations for inventory; owns the stock counter and the stock transaction ledger.

# backend/freshcart/services/inventory_service.py
"""
FreshCart Inventory Invariants (authoritative)

Model:
- One Inventory row per product holds the current stock_quantity.
- Every stock change appends exactly one StockTransaction row. Rows are never
  updated or deleted.
- Product.in_stock is a projection of stock_quantity > 0, re-synced on every
  write path in the same DB transaction.

Direction of a transaction:
- received / returned: +quantity
- sold / damaged: -quantity (quantity is stored as a magnitude)
- adjusted: quantity is a signed delta

Clamping:
- The counter never goes below zero: new = max(0, current + delta).
  Over-deductions are absorbed silently; the ledger still records what the
  caller asked for.

Atomicity / concurrency:
- Counter update, ledger append and in_stock sync flush together and commit
  once. The Inventory row is locked (FOR UPDATE where supported) and carries an
  optimistic version_id; a lost race raises StaleDataError and the whole
  operation is re-run by run_with_retry, so concurrent deltas are not lost.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Inventory, Order, Product, StockTransaction
from ..validation import (
    ConflictError,
    NotFoundError,
    enforce_rules_inventory,
    enforce_rules_stock_transaction,
)
from freshcart.time_utils import utcnow
from .concurrency import lock_for_update, run_with_retry


STATUS_OUT_OF_STOCK = "Out of Stock"
STATUS_LOW_STOCK = "Low Stock"
STATUS_IN_STOCK = "In Stock"

INITIAL_SETUP_NOTE = "Initial inventory setup"
DIRECT_UPDATE_NOTE = "Direct stock quantity update"

INVENTORY_MUTABLE_FIELDS = {"min_stock_level", "max_stock_level", "reorder_point", "location_code"}

_INBOUND_TYPES = {"received", "returned"}
_OUTBOUND_TYPES = {"sold", "damaged"}


def stock_status(inventory: Inventory) -> str:
    """Derived label for reporting; never stored."""
    qty = inventory.stock_quantity or 0
    if qty <= 0:
        return STATUS_OUT_OF_STOCK
    if qty <= inventory.reorder_point:
        return STATUS_LOW_STOCK
    return STATUS_IN_STOCK


def stock_delta(transaction_type: str, quantity: int) -> int:
    if transaction_type in _INBOUND_TYPES:
        return abs(quantity)
    if transaction_type in _OUTBOUND_TYPES:
        return -abs(quantity)
    return quantity


def _require_product(product_id: int, *, lock: bool = False) -> Product:
    query = db.session.query(Product).filter_by(id=product_id)
    if lock:
        query = lock_for_update(query)
    product = query.first()
    if product is None:
        raise NotFoundError("product not found")
    return product


def _find_inventory(product_id: int, *, lock: bool = False) -> Inventory | None:
    query = db.session.query(Inventory).filter_by(product_id=product_id)
    if lock:
        query = lock_for_update(query)
    return query.first()


def _require_inventory(product_id: int, *, lock: bool = False) -> Inventory:
    inventory = _find_inventory(product_id, lock=lock)
    if inventory is None:
        raise NotFoundError("inventory not found for product")
    return inventory


def _sync_in_stock(inventory: Inventory) -> None:
    product = inventory.product or db.session.get(Product, inventory.product_id)
    in_stock = inventory.stock_quantity > 0
    if product is not None and product.in_stock != in_stock:
        product.in_stock = in_stock


def _apply_stock_change(
    inventory: Inventory,
    *,
    delta: int,
    transaction_type: str,
    quantity: int,
    notes: str | None = None,
    reference: str | None = None,
    user_id: int | None = None,
) -> StockTransaction:
    """Core write: clamp counter, append ledger row, sync in_stock. No commit."""
    now = utcnow()

    inventory.stock_quantity = max(0, inventory.stock_quantity + delta)
    inventory.last_stock_update = now
    if transaction_type == "received":
        inventory.last_received_date = now
        inventory.last_received_quantity = abs(quantity)

    tx = StockTransaction(
        product_id=inventory.product_id,
        transaction_type=transaction_type,
        quantity=quantity,
        transaction_date=now,
        notes=notes,
        reference=reference,
        user_id=user_id,
    )
    db.session.add(tx)

    _sync_in_stock(inventory)

    db.session.flush()
    return tx


def create_inventory(
    *,
    product_id: int,
    stock_quantity: int = 0,
    min_stock_level: int | None = None,
    max_stock_level: int | None = None,
    reorder_point: int | None = None,
    location_code: str | None = None,
    user_id: int | None = None,
) -> Inventory:
    """
    Create the inventory record for a product.

    Raises ConflictError if the product already has one (the failed call
    changes nothing). A positive initial quantity is logged as a 'received'
    transaction in the same commit.
    """
    if min_stock_level is None:
        min_stock_level = current_app.config["DEFAULT_MIN_STOCK_LEVEL"]
    if reorder_point is None:
        reorder_point = current_app.config["DEFAULT_REORDER_POINT"]

    enforce_rules_inventory({
        "stock_quantity": stock_quantity,
        "min_stock_level": min_stock_level,
        "max_stock_level": max_stock_level,
        "reorder_point": reorder_point,
    })

    _require_product(product_id)
    if _find_inventory(product_id) is not None:
        raise ConflictError("inventory already exists for product")

    now = utcnow()
    inventory = Inventory(
        product_id=product_id,
        stock_quantity=0,
        min_stock_level=min_stock_level,
        max_stock_level=max_stock_level,
        reorder_point=reorder_point,
        location_code=location_code,
        last_stock_update=now,
    )

    try:
        db.session.add(inventory)
        db.session.flush()

        if stock_quantity > 0:
            _apply_stock_change(
                inventory,
                delta=stock_quantity,
                transaction_type="received",
                quantity=stock_quantity,
                notes=INITIAL_SETUP_NOTE,
                user_id=user_id,
            )
        else:
            _sync_in_stock(inventory)

        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent create for the same product
        db.session.rollback()
        raise ConflictError("inventory already exists for product")

    return inventory


def get_inventory(product_id: int) -> Inventory:
    return _require_inventory(product_id)


def list_inventory(*, low_stock_only: bool = False) -> list[Inventory]:
    q = (
        db.session.query(Inventory)
        .join(Product, Product.id == Inventory.product_id)
        .order_by(Product.name.asc(), Inventory.id.asc())
    )
    if low_stock_only:
        q = q.filter(Inventory.stock_quantity <= Inventory.reorder_point)
    return q.all()


def update_inventory(inventory_id: int, patch: dict) -> Inventory:
    """
    Update thresholds / location. The stock counter itself only moves through
    record_transaction and update_stock_quantity.
    """
    def _op():
        inventory = lock_for_update(
            db.session.query(Inventory).filter_by(id=inventory_id)
        ).first()
        if inventory is None:
            raise NotFoundError("inventory not found")

        enforce_rules_inventory(patch, current=inventory)

        for key, value in patch.items():
            if key not in INVENTORY_MUTABLE_FIELDS:
                continue
            setattr(inventory, key, value)
        inventory.last_stock_update = utcnow()

        db.session.commit()
        return inventory

    return run_with_retry(_op)


def record_transaction(
    *,
    product_id: int,
    transaction_type: str,
    quantity: int,
    notes: str | None = None,
    reference: str | None = None,
    user_id: int | None = None,
) -> StockTransaction:
    """
    Append a stock transaction and move the counter accordingly.

    Input is validated before anything is written. Raises NotFoundError when
    the product has no inventory record.
    """
    enforce_rules_stock_transaction(transaction_type, quantity)
    delta = stock_delta(transaction_type, quantity)

    def _op():
        inventory = _require_inventory(product_id, lock=True)
        tx = _apply_stock_change(
            inventory,
            delta=delta,
            transaction_type=transaction_type,
            quantity=quantity,
            notes=notes,
            reference=reference,
            user_id=user_id,
        )
        db.session.commit()
        return tx

    return run_with_retry(_op)


def update_stock_quantity(
    product_id: int,
    delta: int,
    *,
    notes: str | None = None,
    user_id: int | None = None,
) -> Inventory:
    """
    Apply a raw delta to the counter.

    The audit row is classified 'received' for a positive delta and 'adjusted'
    otherwise (sales decrements included), with quantity = delta.
    A zero delta is rejected, as record_transaction rejects a zero adjustment.
    """
    transaction_type = "received" if isinstance(delta, int) and delta > 0 else "adjusted"
    enforce_rules_stock_transaction(transaction_type, delta)

    def _op():
        inventory = _require_inventory(product_id, lock=True)
        _apply_stock_change(
            inventory,
            delta=delta,
            transaction_type=transaction_type,
            quantity=delta,
            notes=notes or DIRECT_UPDATE_NOTE,
            user_id=user_id,
        )
        db.session.commit()
        return inventory

    return run_with_retry(_op)


def sell_for_order(order: Order) -> list[StockTransaction]:
    """
    Record a 'sold' transaction per order line. No commit: runs inside the
    order placement transaction.

    Products without an inventory record are not stock-tracked and are skipped.
    """
    txs = []
    for item in order.items:
        inventory = _find_inventory(item.product_id, lock=True)
        if inventory is None:
            continue
        txs.append(
            _apply_stock_change(
                inventory,
                delta=-item.quantity,
                transaction_type="sold",
                quantity=item.quantity,
                notes="Order placed",
                reference=f"order:{order.id}",
                user_id=order.user_id,
            )
        )
    return txs


def list_stock_transactions(*, product_id: int | None = None, limit: int = 200) -> list[StockTransaction]:
    q = db.session.query(StockTransaction)
    if product_id is not None:
        q = q.filter_by(product_id=product_id)
    q = q.order_by(
        StockTransaction.transaction_date.desc(),
        StockTransaction.id.desc(),
    )
    return q.limit(limit).all()
