# backend/freshcart/routes/pricing.py
"""
Customer pricing routes.

Admin: pricing tiers, per-product tier prices, user tier assignments.
Public: a user's tier assignments and the resolved price of a product.
Resolved prices are computed on every request and never cached.
"""
from flask import Blueprint, request

from ..models import CustomerPricing, PricingTier, UserPricingTier
from ..validation import ModelValidationPolicy, validate_payload, require_int
from ..decorators import require_admin, handle_service_errors
from ..services import pricing_service


pricing_bp = Blueprint("pricing", __name__, url_prefix="/api")

PRICING_TIER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "discount_percentage", "is_active"},
    required_on_create={"name"},
)

CUSTOMER_PRICING_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "pricing_tier_id", "price_cents", "is_active"},
    required_on_create={"product_id", "pricing_tier_id", "price_cents"},
)

CUSTOMER_PRICING_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"price_cents", "is_active"},
)

USER_PRICING_TIER_POLICY = ModelValidationPolicy(
    writable_fields={"user_id", "pricing_tier_id", "start_date", "end_date", "is_active"},
    required_on_create={"user_id", "pricing_tier_id"},
)

USER_PRICING_TIER_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"start_date", "end_date", "is_active"},
)


@pricing_bp.get("/admin/pricing-tiers")
@require_admin
@handle_service_errors("list pricing tiers")
def list_pricing_tiers_route():
    return [t.to_dict() for t in pricing_service.list_pricing_tiers()], 200


@pricing_bp.get("/admin/pricing-tiers/<int:tier_id>")
@require_admin
@handle_service_errors("load pricing tier")
def get_pricing_tier_route(tier_id: int):
    return pricing_service.get_pricing_tier(tier_id).to_dict(), 200


@pricing_bp.post("/admin/pricing-tiers")
@require_admin
@handle_service_errors("create pricing tier")
def create_pricing_tier_route():
    patch = validate_payload(
        model=PricingTier,
        payload=request.get_json(silent=True) or {},
        policy=PRICING_TIER_POLICY,
        partial=False,
    )
    return pricing_service.create_pricing_tier(patch).to_dict(), 201


@pricing_bp.patch("/admin/pricing-tiers/<int:tier_id>")
@require_admin
@handle_service_errors("update pricing tier")
def update_pricing_tier_route(tier_id: int):
    """Also used to retire a tier: {"isActive": false}."""
    patch = validate_payload(
        model=PricingTier,
        payload=request.get_json(silent=True) or {},
        policy=PRICING_TIER_POLICY,
        partial=True,
    )
    return pricing_service.update_pricing_tier(tier_id, patch).to_dict(), 200


@pricing_bp.get("/admin/customer-pricing")
@require_admin
@handle_service_errors("list customer pricing")
def list_customer_pricing_route():
    product_id = request.args.get("productId")
    tier_id = request.args.get("tierId")
    rows = pricing_service.list_customer_pricings(
        product_id=require_int(product_id, "productId") if product_id else None,
        tier_id=require_int(tier_id, "tierId") if tier_id else None,
    )
    return [r.to_dict(include_product=True) for r in rows], 200


@pricing_bp.post("/admin/customer-pricing")
@require_admin
@handle_service_errors("create customer pricing")
def create_customer_pricing_route():
    """409 if the product already has a price in this tier."""
    patch = validate_payload(
        model=CustomerPricing,
        payload=request.get_json(silent=True) or {},
        policy=CUSTOMER_PRICING_POLICY,
        partial=False,
    )
    return pricing_service.create_customer_pricing(patch).to_dict(), 201


@pricing_bp.patch("/admin/customer-pricing/<int:pricing_id>")
@require_admin
@handle_service_errors("update customer pricing")
def update_customer_pricing_route(pricing_id: int):
    patch = validate_payload(
        model=CustomerPricing,
        payload=request.get_json(silent=True) or {},
        policy=CUSTOMER_PRICING_UPDATE_POLICY,
        partial=True,
    )
    return pricing_service.update_customer_pricing(pricing_id, patch).to_dict(), 200


@pricing_bp.get("/user-pricing-tiers/<int:user_id>")
@handle_service_errors("load user pricing tiers")
def list_user_pricing_tiers_route(user_id: int):
    rows = pricing_service.list_user_pricing_tiers(user_id)
    return [r.to_dict(include_tier=True) for r in rows], 200


@pricing_bp.post("/admin/user-pricing-tiers")
@require_admin
@handle_service_errors("create user pricing tier")
def create_user_pricing_tier_route():
    patch = validate_payload(
        model=UserPricingTier,
        payload=request.get_json(silent=True) or {},
        policy=USER_PRICING_TIER_POLICY,
        partial=False,
    )
    return pricing_service.create_user_pricing_tier(patch).to_dict(include_tier=True), 201


@pricing_bp.patch("/admin/user-pricing-tiers/<int:assignment_id>")
@require_admin
@handle_service_errors("update user pricing tier")
def update_user_pricing_tier_route(assignment_id: int):
    patch = validate_payload(
        model=UserPricingTier,
        payload=request.get_json(silent=True) or {},
        policy=USER_PRICING_TIER_UPDATE_POLICY,
        partial=True,
    )
    assignment = pricing_service.update_user_pricing_tier(assignment_id, patch)
    return assignment.to_dict(include_tier=True), 200


@pricing_bp.get("/product-price/<int:product_id>/user/<int:user_id>")
@handle_service_errors("resolve product price")
def product_price_route(product_id: int, user_id: int):
    """
    Price this user pays for this product right now.

    Returns the winning price plus the baseline and every tier candidate.
    """
    return pricing_service.quote_price(user_id, product_id).to_dict(), 200
