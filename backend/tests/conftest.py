"""
Pytest fixtures for FreshCart backend tests.

Provides test database setup, account/catalog fixtures, and test client.
"""

import pytest
from freshcart import create_app
from freshcart.extensions import db
from freshcart.models import Address, Category, Product
from freshcart.services import user_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def admin(db_session):
    return user_service.create_user(
        username="admin",
        email="admin@freshcart.test",
        password="Password123!",
        name="Store Admin",
        role="admin",
    )


@pytest.fixture(scope='function')
def customer(db_session):
    return user_service.create_user(
        username="jane",
        email="jane@freshcart.test",
        password="Password123!",
        name="Jane Customer",
    )


@pytest.fixture(scope='function')
def address(db_session, customer):
    address = Address(
        user_id=customer.id,
        type="home",
        address="12 Orchard Lane",
        city="Springfield",
        state="IL",
        zip_code="62701",
        is_default=True,
    )
    db_session.add(address)
    db_session.commit()
    return address


@pytest.fixture(scope='function')
def category(db_session):
    category = Category(name="Fruits & Vegetables", icon="bx-lemon")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture(scope='function')
def product(db_session, category):
    """$10.00 product with no promotional price."""
    product = Product(
        name="Organic Avocado",
        description="Creamy organic avocados",
        price_cents=1000,
        quantity_label="2 pcs",
        category_id=category.id,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture(scope='function')
def customer_headers(customer):
    return auth_headers(customer)


def auth_headers(user) -> dict:
    """Helper to create caller-identity headers."""
    return {'User-Id': str(user.id)}
