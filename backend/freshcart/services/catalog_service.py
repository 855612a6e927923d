# backend/freshcart/services/catalog_service.py
"""
Catalog service: categories, products and storefront offers.

Product.in_stock is owned by the inventory service once a product has an
inventory record; product create/update here never recomputes it.
"""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Category, Offer, Product
from ..validation import ConflictError, NotFoundError, enforce_rules_offer, enforce_rules_product
from freshcart.time_utils import utcnow

PRODUCT_MUTABLE_FIELDS = {
    "name", "description", "image", "price_cents", "discount_price_cents",
    "quantity_label", "category_id", "is_organic", "nutrition_info",
    "sku", "barcode", "cost_price_cents",
}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

def list_categories() -> list[Category]:
    return db.session.query(Category).order_by(Category.name.asc()).all()


def get_category(category_id: int) -> Category:
    category = db.session.get(Category, category_id)
    if category is None:
        raise NotFoundError("category not found")
    return category


def create_category(patch: dict) -> Category:
    if db.session.query(Category).filter_by(name=patch["name"]).first() is not None:
        raise ConflictError(f"category '{patch['name']}' already exists")

    category = Category(
        name=patch["name"],
        icon=patch.get("icon"),
        description=patch.get("description"),
    )
    db.session.add(category)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"category '{patch['name']}' already exists")
    return category


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

def list_products(
    *,
    category_id: int | None = None,
    search: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Product listing with optional category filter, name/description search
    and pagination.

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
    """
    base_query = db.session.query(Product)
    if category_id is not None:
        base_query = base_query.filter(Product.category_id == category_id)
    if search:
        pattern = f"%{search.strip()}%"
        base_query = base_query.filter(
            Product.name.ilike(pattern) | Product.description.ilike(pattern)
        )
    base_query = base_query.order_by(Product.name.asc(), Product.id.asc())

    # If no pagination requested, return all items
    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = max(1, min(per_page or 20, 100))  # Default 20, range 1..100
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("product not found")
    return product


def create_product(patch: dict) -> Product:
    enforce_rules_product(patch)
    get_category(patch["category_id"])

    product = Product()
    apply_product_patch(product, patch)
    product.in_stock = patch.get("in_stock", True)
    db.session.add(product)
    db.session.commit()
    return product


def update_product(product_id: int, patch: dict) -> Product:
    product = get_product(product_id)
    enforce_rules_product(patch, current=product)
    if "category_id" in patch:
        get_category(patch["category_id"])

    apply_product_patch(product, patch)
    db.session.commit()
    return product


# ---------------------------------------------------------------------------
# Offers
# ---------------------------------------------------------------------------

def list_offers(*, current_only: bool = True) -> list[Offer]:
    q = db.session.query(Offer)
    if current_only:
        now = utcnow()
        q = q.filter(
            Offer.is_active.is_(True),
            Offer.valid_from <= now,
            Offer.valid_to >= now,
        )
    return q.order_by(Offer.valid_to.asc(), Offer.id.asc()).all()


def create_offer(patch: dict) -> Offer:
    enforce_rules_offer(patch)
    if patch.get("category_id") is not None:
        get_category(patch["category_id"])

    offer = Offer(
        title=patch["title"],
        description=patch["description"],
        discount_percentage=patch.get("discount_percentage"),
        image=patch.get("image"),
        category_id=patch.get("category_id"),
        valid_from=patch["valid_from"],
        valid_to=patch["valid_to"],
        is_active=patch.get("is_active", True),
    )
    db.session.add(offer)
    db.session.commit()
    return offer
