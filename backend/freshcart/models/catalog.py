from __future__ import annotations

from ..extensions import db
from freshcart.time_utils import to_utc_z


class Category(db.Model):
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    icon = db.Column(db.String(64), nullable=True)
    description = db.Column(db.Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "description": self.description,
        }


class Product(db.Model):
    """
    Catalog product.

    Prices are authoritative in cents. discount_price_cents is the promotional
    price; when set it replaces price_cents as the baseline for tier pricing.

    in_stock is a denormalized projection of Inventory.stock_quantity > 0 and
    is maintained by the inventory service on every stock write.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_category_name", "category_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    image = db.Column(db.String(512), nullable=True)

    price_cents = db.Column(db.Integer, nullable=False)
    discount_price_cents = db.Column(db.Integer, nullable=True)

    # Display packaging, e.g. "500 g", "6 pcs"
    quantity_label = db.Column(db.String(64), nullable=False)

    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=False, index=True)
    is_organic = db.Column(db.Boolean, nullable=False, default=False)
    in_stock = db.Column(db.Boolean, nullable=False, default=True, index=True)
    nutrition_info = db.Column(db.JSON, nullable=True)

    sku = db.Column(db.String(64), nullable=True, index=True)
    barcode = db.Column(db.String(64), nullable=True)
    cost_price_cents = db.Column(db.Integer, nullable=True)

    category = db.relationship("Category", backref=db.backref("products", lazy=True))

    @property
    def baseline_price_cents(self) -> int:
        if self.discount_price_cents is not None:
            return self.discount_price_cents
        return self.price_cents

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} price_cents={self.price_cents}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "image": self.image,
            "priceCents": self.price_cents,
            "discountPriceCents": self.discount_price_cents,
            "quantityLabel": self.quantity_label,
            "categoryId": self.category_id,
            "isOrganic": self.is_organic,
            "inStock": self.in_stock,
            "nutritionInfo": self.nutrition_info,
            "sku": self.sku,
            "barcode": self.barcode,
            "costPriceCents": self.cost_price_cents,
        }


class Offer(db.Model):
    """Storefront banner offer, optionally scoped to a category."""
    __tablename__ = "offers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    discount_percentage = db.Column(db.Integer, nullable=True)
    image = db.Column(db.String(512), nullable=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)

    valid_from = db.Column(db.DateTime(timezone=True), nullable=False)
    valid_to = db.Column(db.DateTime(timezone=True), nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    category = db.relationship("Category", backref=db.backref("offers", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "discountPercentage": self.discount_percentage,
            "image": self.image,
            "categoryId": self.category_id,
            "validFrom": to_utc_z(self.valid_from),
            "validTo": to_utc_z(self.valid_to),
            "isActive": self.is_active,
        }
