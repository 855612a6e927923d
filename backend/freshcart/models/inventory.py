from __future__ import annotations

from ..extensions import db
from freshcart.time_utils import to_utc_z


TRANSACTION_TYPES = ("received", "sold", "adjusted", "returned", "damaged")


class Inventory(db.Model):
    """
    Current stock counter for a product (one row per product).

    stock_quantity is never negative. It only moves through the inventory
    service, which appends a StockTransaction for every change.

    version_id is the optimistic-lock counter: a concurrent writer that loses
    the race gets StaleDataError and the service retries the whole operation.
    """
    __tablename__ = "inventory"
    __table_args__ = (
        db.UniqueConstraint("product_id", name="uq_inventory_product"),
        db.CheckConstraint("stock_quantity >= 0", name="ck_inventory_stock_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)

    stock_quantity = db.Column(db.Integer, nullable=False, default=0)
    min_stock_level = db.Column(db.Integer, nullable=False, default=5)
    max_stock_level = db.Column(db.Integer, nullable=True)
    reorder_point = db.Column(db.Integer, nullable=False, default=10)
    location_code = db.Column(db.String(64), nullable=True)

    last_stock_update = db.Column(db.DateTime(timezone=True), nullable=False)
    last_received_date = db.Column(db.DateTime(timezone=True), nullable=True)
    last_received_quantity = db.Column(db.Integer, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    product = db.relationship("Product", backref=db.backref("inventory", uselist=False, lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Inventory id={self.id} product_id={self.product_id} stock={self.stock_quantity}>"

    def to_dict(self, include_product: bool = False) -> dict:
        from ..services.inventory_service import stock_status

        data = {
            "id": self.id,
            "productId": self.product_id,
            "stockQuantity": self.stock_quantity,
            "minStockLevel": self.min_stock_level,
            "maxStockLevel": self.max_stock_level,
            "reorderPoint": self.reorder_point,
            "locationCode": self.location_code,
            "lastStockUpdate": to_utc_z(self.last_stock_update),
            "lastReceivedDate": to_utc_z(self.last_received_date),
            "lastReceivedQuantity": self.last_received_quantity,
            "status": stock_status(self),
        }
        if include_product:
            data["product"] = self.product.to_dict() if self.product else None
        return data


class StockTransaction(db.Model):
    """
    Append-only stock history. Rows are never updated or deleted.

    quantity is stored as given: a magnitude for received/sold/returned/damaged
    (the type carries the direction) and a signed delta for adjusted.
    """
    __tablename__ = "stock_transactions"
    __table_args__ = (
        db.Index("ix_stock_transactions_product_date", "product_id", "transaction_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    transaction_type = db.Column(db.String(16), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)

    transaction_date = db.Column(db.DateTime(timezone=True), nullable=False)

    notes = db.Column(db.String(255), nullable=True)
    reference = db.Column(db.String(64), nullable=True)  # order id, adjustment id, ...
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "transactionType": self.transaction_type,
            "quantity": self.quantity,
            "transactionDate": to_utc_z(self.transaction_date),
            "notes": self.notes,
            "reference": self.reference,
            "userId": self.user_id,
        }
