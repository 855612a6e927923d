# Overview: Service-layer operations for customer pricing; resolves per-user prices and administers tiers.

# backend/freshcart/services/pricing_service.py
"""
FreshCart Pricing Invariants (authoritative)

Baseline:
- baseline = product.discount_price_cents if set, else product.price_cents.
- A resolved price is never above baseline.

Effective assignments:
- A UserPricingTier counts iff is_active AND (end_date IS NULL OR end_date >= now).
- Its tier must be active; retired tiers (is_active=False) price nothing.
- A user may hold several effective assignments; all are considered.

Candidates per assignment:
- an active CustomerPricing row for (product, tier) -> its absolute price
- else tier.discount_percentage not NULL -> baseline * (1 - pct/100), half-up to the cent
- else nothing

Result:
- min(baseline, candidates). Discounts from different tiers never stack.
- Nothing is cached; every call reads current tier and override rows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import CustomerPricing, PricingTier, Product, User, UserPricingTier
from ..validation import (
    ConflictError,
    NotFoundError,
    enforce_rules_customer_pricing,
    enforce_rules_pricing_tier,
    enforce_rules_user_pricing_tier,
)
from freshcart.time_utils import utcnow


PRICING_TIER_MUTABLE_FIELDS = {"name", "description", "discount_percentage", "is_active"}
CUSTOMER_PRICING_MUTABLE_FIELDS = {"price_cents", "is_active"}
USER_PRICING_TIER_MUTABLE_FIELDS = {"start_date", "end_date", "is_active"}

SOURCE_OVERRIDE = "override"
SOURCE_PERCENTAGE = "percentage"


@dataclass(frozen=True)
class PriceCandidate:
    pricing_tier_id: int
    pricing_tier_name: str
    source: str
    price_cents: int

    def to_dict(self) -> dict:
        return {
            "pricingTierId": self.pricing_tier_id,
            "pricingTierName": self.pricing_tier_name,
            "source": self.source,
            "priceCents": self.price_cents,
        }


@dataclass(frozen=True)
class PriceQuote:
    product_id: int
    user_id: int
    baseline_cents: int
    price_cents: int
    candidates: list[PriceCandidate] = field(default_factory=list)

    @property
    def applied(self) -> PriceCandidate | None:
        """The winning candidate, or None when the baseline stands."""
        winners = [c for c in self.candidates if c.price_cents == self.price_cents]
        if not winners or self.price_cents == self.baseline_cents:
            return None
        return winners[0]

    def to_dict(self) -> dict:
        applied = self.applied
        return {
            "productId": self.product_id,
            "userId": self.user_id,
            "baselinePriceCents": self.baseline_cents,
            "priceCents": self.price_cents,
            "appliedTierId": applied.pricing_tier_id if applied else None,
            "candidates": [c.to_dict() for c in self.candidates],
        }


def apply_percentage(baseline_cents: int, discount_percentage: float) -> int:
    """baseline * (1 - pct/100), rounded half-up to the cent."""
    factor = (Decimal(100) - Decimal(str(discount_percentage))) / Decimal(100)
    return int((Decimal(baseline_cents) * factor).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _effective_tier_rows(user_id: int, product_id: int):
    """
    Effective assignments of the user, each with its tier and the tier's active
    override for this product (None when absent). One SELECT, one snapshot.
    """
    now = utcnow()
    return (
        db.session.query(UserPricingTier, PricingTier, CustomerPricing)
        .join(PricingTier, PricingTier.id == UserPricingTier.pricing_tier_id)
        .outerjoin(
            CustomerPricing,
            and_(
                CustomerPricing.pricing_tier_id == PricingTier.id,
                CustomerPricing.product_id == product_id,
                CustomerPricing.is_active.is_(True),
            ),
        )
        .filter(
            UserPricingTier.user_id == user_id,
            UserPricingTier.is_active.is_(True),
            PricingTier.is_active.is_(True),
            or_(UserPricingTier.end_date.is_(None), UserPricingTier.end_date >= now),
        )
        .order_by(UserPricingTier.id.asc())
        .all()
    )


def quote_price(user_id: int, product_id: int) -> PriceQuote:
    """Full breakdown of how a user's price for a product is reached."""
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("product not found")

    baseline = product.baseline_price_cents
    candidates: list[PriceCandidate] = []

    for _assignment, tier, override in _effective_tier_rows(user_id, product_id):
        if override is not None:
            candidates.append(PriceCandidate(tier.id, tier.name, SOURCE_OVERRIDE, override.price_cents))
        elif tier.discount_percentage is not None:
            candidates.append(
                PriceCandidate(
                    tier.id,
                    tier.name,
                    SOURCE_PERCENTAGE,
                    apply_percentage(baseline, tier.discount_percentage),
                )
            )

    price = min([baseline] + [c.price_cents for c in candidates])
    return PriceQuote(
        product_id=product.id,
        user_id=user_id,
        baseline_cents=baseline,
        price_cents=price,
        candidates=candidates,
    )


def resolve_price(user_id: int, product_id: int) -> int:
    """Effective unit price in cents for this user, right now."""
    return quote_price(user_id, product_id).price_cents


# ---------------------------------------------------------------------------
# Pricing tiers
# ---------------------------------------------------------------------------

def list_pricing_tiers(*, active_only: bool = False) -> list[PricingTier]:
    q = db.session.query(PricingTier)
    if active_only:
        q = q.filter_by(is_active=True)
    return q.order_by(PricingTier.name.asc()).all()


def get_pricing_tier(tier_id: int) -> PricingTier:
    tier = db.session.get(PricingTier, tier_id)
    if tier is None:
        raise NotFoundError("pricing tier not found")
    return tier


def _ensure_tier_name_free(name: str, *, exclude_id: int | None = None) -> None:
    q = db.session.query(PricingTier).filter_by(name=name)
    if exclude_id is not None:
        q = q.filter(PricingTier.id != exclude_id)
    if q.first() is not None:
        raise ConflictError(f"pricing tier '{name}' already exists")


def create_pricing_tier(patch: dict) -> PricingTier:
    enforce_rules_pricing_tier(patch)
    _ensure_tier_name_free(patch["name"])

    tier = PricingTier(
        name=patch["name"],
        description=patch.get("description"),
        discount_percentage=patch.get("discount_percentage"),
        is_active=patch.get("is_active", True),
    )
    db.session.add(tier)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"pricing tier '{patch['name']}' already exists")
    return tier


def update_pricing_tier(tier_id: int, patch: dict) -> PricingTier:
    """Deactivation goes through here too (isActive=false); tiers are never deleted."""
    tier = get_pricing_tier(tier_id)
    enforce_rules_pricing_tier(patch)
    if "name" in patch and patch["name"] != tier.name:
        _ensure_tier_name_free(patch["name"], exclude_id=tier.id)

    for key, value in patch.items():
        if key in PRICING_TIER_MUTABLE_FIELDS:
            setattr(tier, key, value)
    db.session.commit()
    return tier


# ---------------------------------------------------------------------------
# Per-product tier overrides
# ---------------------------------------------------------------------------

def list_customer_pricings(*, product_id: int | None = None, tier_id: int | None = None) -> list[CustomerPricing]:
    q = db.session.query(CustomerPricing)
    if product_id is not None:
        q = q.filter_by(product_id=product_id)
    if tier_id is not None:
        q = q.filter_by(pricing_tier_id=tier_id)
    return q.order_by(CustomerPricing.id.asc()).all()


def get_override(product_id: int, tier_id: int) -> CustomerPricing | None:
    return (
        db.session.query(CustomerPricing)
        .filter_by(product_id=product_id, pricing_tier_id=tier_id)
        .first()
    )


def create_customer_pricing(patch: dict) -> CustomerPricing:
    """Raises ConflictError if the (product, tier) pair already has an override."""
    enforce_rules_customer_pricing(patch)

    product_id = patch["product_id"]
    tier_id = patch["pricing_tier_id"]
    if db.session.get(Product, product_id) is None:
        raise NotFoundError("product not found")
    get_pricing_tier(tier_id)

    if get_override(product_id, tier_id) is not None:
        raise ConflictError("customer pricing already exists for this product and tier")

    pricing = CustomerPricing(
        product_id=product_id,
        pricing_tier_id=tier_id,
        price_cents=patch["price_cents"],
        is_active=patch.get("is_active", True),
    )
    db.session.add(pricing)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("customer pricing already exists for this product and tier")
    return pricing


def update_customer_pricing(pricing_id: int, patch: dict) -> CustomerPricing:
    pricing = db.session.get(CustomerPricing, pricing_id)
    if pricing is None:
        raise NotFoundError("customer pricing not found")
    enforce_rules_customer_pricing(patch)

    for key, value in patch.items():
        if key in CUSTOMER_PRICING_MUTABLE_FIELDS:
            setattr(pricing, key, value)
    db.session.commit()
    return pricing


# ---------------------------------------------------------------------------
# User tier assignments
# ---------------------------------------------------------------------------

def list_user_pricing_tiers(user_id: int) -> list[UserPricingTier]:
    return (
        db.session.query(UserPricingTier)
        .filter_by(user_id=user_id)
        .order_by(UserPricingTier.start_date.desc(), UserPricingTier.id.desc())
        .all()
    )


def create_user_pricing_tier(patch: dict) -> UserPricingTier:
    if db.session.get(User, patch["user_id"]) is None:
        raise NotFoundError("user not found")
    get_pricing_tier(patch["pricing_tier_id"])

    start_date = patch.get("start_date") or utcnow()
    patch = {**patch, "start_date": start_date}
    enforce_rules_user_pricing_tier(patch)

    assignment = UserPricingTier(
        user_id=patch["user_id"],
        pricing_tier_id=patch["pricing_tier_id"],
        start_date=start_date,
        end_date=patch.get("end_date"),
        is_active=patch.get("is_active", True),
    )
    db.session.add(assignment)
    db.session.commit()
    return assignment


def update_user_pricing_tier(assignment_id: int, patch: dict) -> UserPricingTier:
    assignment = db.session.get(UserPricingTier, assignment_id)
    if assignment is None:
        raise NotFoundError("user pricing tier not found")
    enforce_rules_user_pricing_tier(patch, current=assignment)

    for key, value in patch.items():
        if key in USER_PRICING_TIER_MUTABLE_FIELDS:
            setattr(assignment, key, value)
    db.session.commit()
    return assignment
