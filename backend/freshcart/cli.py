# Overview: Flask CLI command groups for bootstrap, demo data, and maintenance.

# backend/freshcart/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to freshcart (PowerShell: $env:FLASK_APP="freshcart").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--admin-password "Password123!"]
#   Idempotent bootstrap: creates tables and the default admin user.
# - python -m flask system seed-demo
#   Idempotent demo catalog: categories, products with inventory, offers, pricing tiers.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).

import click
from datetime import timedelta
from flask.cli import with_appcontext

from .extensions import db
from .models import Category, Offer, PricingTier, Product, User
from .services import inventory_service
from .services.user_service import create_user, PasswordValidationError
from .time_utils import utcnow


DEMO_CATEGORIES = [
    ("Fruits & Vegetables", "bx-lemon", "Fresh fruits and vegetables"),
    ("Dairy & Breakfast", "bx-coffee", "Milk, cheese, eggs, bread"),
    ("Snacks", "bx-cookie", "Chips, biscuits, chocolates"),
    ("Beverages", "bx-drink", "Juices, soft drinks, water"),
    ("Bakery", "bx-baguette", "Bread, cakes, pastries"),
    ("Household", "bx-basket", "Cleaning, laundry, kitchen items"),
    ("Personal Care", "bx-shower", "Bath, skin care, hair care"),
]

# (name, price_cents, discount_price_cents, quantity_label, is_organic, stock, description)
DEMO_PRODUCTS = [
    ("Organic Banana", 349, 299, "6 pcs (approx. 1 kg)", True, 120,
     "Organic bananas from certified organic farms. Rich in potassium and fiber."),
    ("Fresh Strawberries", 449, None, "250g pack", False, 40,
     "Sweet and juicy strawberries picked from local farms."),
    ("Organic Avocado", 499, 399, "2 pcs (approx. 450g)", True, 8,
     "Creamy organic avocados rich in healthy fats."),
    ("Red Bell Peppers", 329, None, "3 pcs (approx. 500g)", False, 60,
     "Red bell peppers with a sweet taste and crunchy texture."),
    ("Organic Broccoli", 279, None, "1 pc (approx. 450g)", True, 0,
     "Organic broccoli florets. A versatile vegetable for many dishes."),
]

DEMO_TIERS = [
    ("Regular", "Standard storefront pricing", 0.0),
    ("Silver", "Loyal customers", 5.0),
    ("Gold", "Frequent buyers", 10.0),
    ("Wholesale", "Bulk and business accounts", 15.0),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--admin-username', default='admin', help='Admin username')
@click.option('--admin-email', default='admin@freshcart.local', help='Admin email')
@click.option('--admin-password', default='Password123!', help='Admin password')
@with_appcontext
def init_system(admin_username, admin_email, admin_password):
    """
    Create all tables and the default admin account.

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing FreshCart...")
    db.create_all()
    click.echo("PASS Tables ready")

    existing = db.session.query(User).filter_by(username=admin_username).first()
    if existing:
        click.echo(f"WARN  User '{admin_username}' already exists, skipping...")
        return

    try:
        user = create_user(
            username=admin_username,
            email=admin_email,
            password=admin_password,
            name="Store Admin",
            role="admin",
        )
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed for '{admin_username}': {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
        return

    click.echo(f"PASS Created admin: {user.username} ({user.email}) ID {user.id}")
    click.echo("   Send header 'User-Id: <id>' on /api/admin requests.")


@system_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """Load the demo catalog. Existing rows (matched by name) are left alone."""
    created = 0

    for name, icon, description in DEMO_CATEGORIES:
        if db.session.query(Category).filter_by(name=name).first() is None:
            db.session.add(Category(name=name, icon=icon, description=description))
            created += 1
    db.session.commit()

    produce = db.session.query(Category).filter_by(name="Fruits & Vegetables").one()
    dairy = db.session.query(Category).filter_by(name="Dairy & Breakfast").one()

    for name, price, discount, label, organic, stock, description in DEMO_PRODUCTS:
        if db.session.query(Product).filter_by(name=name).first() is not None:
            continue
        product = Product(
            name=name,
            description=description,
            price_cents=price,
            discount_price_cents=discount,
            quantity_label=label,
            category_id=produce.id,
            is_organic=organic,
            in_stock=stock > 0,
        )
        db.session.add(product)
        db.session.commit()
        inventory_service.create_inventory(product_id=product.id, stock_quantity=stock)
        created += 1

    for name, description, pct in DEMO_TIERS:
        if db.session.query(PricingTier).filter_by(name=name).first() is None:
            db.session.add(PricingTier(name=name, description=description, discount_percentage=pct))
            created += 1

    now = utcnow()
    demo_offers = [
        ("Fresh Vegetables", "Get 30% off on select items", 30, produce.id),
        ("Dairy Products", "Buy one get one free", None, dairy.id),
    ]
    for title, description, pct, category_id in demo_offers:
        if db.session.query(Offer).filter_by(title=title).first() is None:
            db.session.add(Offer(
                title=title,
                description=description,
                discount_percentage=pct,
                category_id=category_id,
                valid_from=now,
                valid_to=now + timedelta(days=7),
                is_active=True,
            ))
            created += 1

    db.session.commit()
    click.echo(f"PASS Demo data loaded ({created} new rows)")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
