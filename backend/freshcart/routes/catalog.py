# backend/freshcart/routes/catalog.py
"""
Storefront catalog routes: categories, products, offers.

Reads are public. Writes require an admin caller.
"""
from flask import Blueprint, request

from ..models import Category, Offer, Product
from ..validation import ModelValidationPolicy, validate_payload
from ..decorators import require_admin, handle_service_errors
from ..services import catalog_service


catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "icon", "description"},
    required_on_create={"name"},
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "description", "image", "price_cents", "discount_price_cents",
        "quantity_label", "category_id", "is_organic", "in_stock", "nutrition_info",
        "sku", "barcode", "cost_price_cents",
    },
    required_on_create={"name", "description", "price_cents", "quantity_label", "category_id"},
)

# in_stock follows the inventory record once one exists
PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=PRODUCT_POLICY.writable_fields - {"in_stock"},
)

OFFER_POLICY = ModelValidationPolicy(
    writable_fields={
        "title", "description", "discount_percentage", "image",
        "category_id", "valid_from", "valid_to", "is_active",
    },
    required_on_create={"title", "description", "valid_from", "valid_to"},
)


@catalog_bp.get("/categories")
@handle_service_errors("list categories")
def list_categories_route():
    return [c.to_dict() for c in catalog_service.list_categories()], 200


@catalog_bp.get("/categories/<int:category_id>")
@handle_service_errors("load category")
def get_category_route(category_id: int):
    category = catalog_service.get_category(category_id)
    data = category.to_dict()
    data["products"] = [p.to_dict() for p in category.products]
    return data, 200


@catalog_bp.post("/admin/categories")
@require_admin
@handle_service_errors("create category")
def create_category_route():
    patch = validate_payload(
        model=Category,
        payload=request.get_json(silent=True) or {},
        policy=CATEGORY_POLICY,
        partial=False,
    )
    return catalog_service.create_category(patch).to_dict(), 201


@catalog_bp.get("/products")
@handle_service_errors("list products")
def list_products_route():
    """
    List products.

    Query params:
    - categoryId: int (optional)
    - q: str (optional) - matches name or description
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    return catalog_service.list_products(
        category_id=request.args.get("categoryId", type=int),
        search=request.args.get("q"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    ), 200


@catalog_bp.get("/products/<int:product_id>")
@handle_service_errors("load product")
def get_product_route(product_id: int):
    return catalog_service.get_product(product_id).to_dict(), 200


@catalog_bp.post("/admin/products")
@require_admin
@handle_service_errors("create product")
def create_product_route():
    patch = validate_payload(
        model=Product,
        payload=request.get_json(silent=True) or {},
        policy=PRODUCT_POLICY,
        partial=False,
    )
    return catalog_service.create_product(patch).to_dict(), 201


@catalog_bp.patch("/admin/products/<int:product_id>")
@require_admin
@handle_service_errors("update product")
def update_product_route(product_id: int):
    patch = validate_payload(
        model=Product,
        payload=request.get_json(silent=True) or {},
        policy=PRODUCT_UPDATE_POLICY,
        partial=True,
    )
    return catalog_service.update_product(product_id, patch).to_dict(), 200


@catalog_bp.get("/offers")
@handle_service_errors("list offers")
def list_offers_route():
    """Offers valid right now. ?all=true includes expired and inactive ones."""
    show_all = (request.args.get("all") or "").strip().lower() in ("1", "true", "yes")
    return [o.to_dict() for o in catalog_service.list_offers(current_only=not show_all)], 200


@catalog_bp.post("/admin/offers")
@require_admin
@handle_service_errors("create offer")
def create_offer_route():
    patch = validate_payload(
        model=Offer,
        payload=request.get_json(silent=True) or {},
        policy=OFFER_POLICY,
        partial=False,
    )
    return catalog_service.create_offer(patch).to_dict(), 201
