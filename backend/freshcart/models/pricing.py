from __future__ import annotations

from ..extensions import db
from freshcart.time_utils import to_utc_z


class PricingTier(db.Model):
    """
    Customer pricing tier ("Retail", "Wholesale", ...).

    discount_percentage is a blanket 0-100 discount off the product baseline.
    NULL means the tier only prices through explicit CustomerPricing rows.
    Tiers are never deleted; set is_active=False to retire one.
    """
    __tablename__ = "pricing_tiers"
    __table_args__ = (
        db.CheckConstraint(
            "discount_percentage IS NULL OR (discount_percentage >= 0 AND discount_percentage <= 100)",
            name="ck_pricing_tiers_discount_range",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    discount_percentage = db.Column(db.Float, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    def __repr__(self) -> str:
        return f"<PricingTier id={self.id} name={self.name!r} pct={self.discount_percentage}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "discountPercentage": self.discount_percentage,
            "isActive": self.is_active,
        }


class CustomerPricing(db.Model):
    """Absolute price for one product within one pricing tier."""
    __tablename__ = "customer_pricing"
    __table_args__ = (
        db.UniqueConstraint("product_id", "pricing_tier_id", name="uq_customer_pricing_product_tier"),
        db.CheckConstraint("price_cents >= 0", name="ck_customer_pricing_price_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    pricing_tier_id = db.Column(db.Integer, db.ForeignKey("pricing_tiers.id"), nullable=False, index=True)
    price_cents = db.Column(db.Integer, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    product = db.relationship("Product")
    pricing_tier = db.relationship("PricingTier", backref=db.backref("customer_pricings", lazy=True))

    def to_dict(self, include_product: bool = False) -> dict:
        data = {
            "id": self.id,
            "productId": self.product_id,
            "pricingTierId": self.pricing_tier_id,
            "priceCents": self.price_cents,
            "isActive": self.is_active,
        }
        if include_product:
            data["product"] = self.product.to_dict() if self.product else None
        return data


class UserPricingTier(db.Model):
    """
    Assignment of a user to a pricing tier.

    A user may hold several assignments at once; the resolver considers all
    that are currently effective (is_active and not past end_date).
    """
    __tablename__ = "user_pricing_tiers"
    __table_args__ = (
        db.Index("ix_user_pricing_tiers_user_active", "user_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    pricing_tier_id = db.Column(db.Integer, db.ForeignKey("pricing_tiers.id"), nullable=False, index=True)

    start_date = db.Column(db.DateTime(timezone=True), nullable=False)
    end_date = db.Column(db.DateTime(timezone=True), nullable=True)  # NULL = open-ended

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    pricing_tier = db.relationship("PricingTier")

    def to_dict(self, include_tier: bool = False) -> dict:
        data = {
            "id": self.id,
            "userId": self.user_id,
            "pricingTierId": self.pricing_tier_id,
            "startDate": to_utc_z(self.start_date),
            "endDate": to_utc_z(self.end_date),
            "isActive": self.is_active,
        }
        if include_tier:
            data["pricingTier"] = self.pricing_tier.to_dict() if self.pricing_tier else None
        return data
