"""
Storefront flow tests: accounts, catalog, cart, checkout.

Verifies:
- Registration hashes passwords and login checks them
- Cart lines are priced per user at read time
- Orders freeze resolved prices, ignore client prices and log 'sold' stock
- Admin order status and dashboard stats
"""

import pytest

from freshcart.models import Order, PricingTier, StockTransaction, User, UserPricingTier
from freshcart.services import inventory_service
from freshcart.time_utils import utcnow


def give_tier(db_session, user, pct):
    tier = PricingTier(name=f"Tier {pct}", discount_percentage=pct)
    db_session.add(tier)
    db_session.commit()
    db_session.add(UserPricingTier(user_id=user.id, pricing_tier_id=tier.id, start_date=utcnow()))
    db_session.commit()
    return tier


class TestAccounts:

    def test_register_and_login(self, client, db_session):
        resp = client.post("/api/users", json={
            "username": "sam",
            "email": "sam@freshcart.test",
            "password": "Password123!",
            "name": "Sam",
        })
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["role"] == "customer"
        assert "passwordHash" not in body

        stored = db_session.get(User, body["id"])
        assert stored.password_hash != "Password123!"

        resp = client.post("/api/auth/login", json={"username": "sam", "password": "Password123!"})
        assert resp.status_code == 200
        assert resp.get_json()["user"]["id"] == body["id"]

        resp = client.post("/api/auth/login", json={"username": "sam", "password": "Wrong123!"})
        assert resp.status_code == 401

    def test_weak_password(self, client, db_session):
        resp = client.post("/api/users", json={
            "username": "sam", "email": "sam@freshcart.test", "password": "short", "name": "Sam",
        })
        assert resp.status_code == 400

    @pytest.mark.parametrize("field", ["username", "email", "password", "name", "phone"])
    def test_non_text_fields_rejected(self, client, db_session, field):
        body = {
            "username": "sam", "email": "sam@freshcart.test", "password": "Password123!", "name": "Sam",
        }
        body[field] = 42
        resp = client.post("/api/users", json=body)
        assert resp.status_code == 400
        assert db_session.query(User).count() == 0

    def test_login_with_non_text_password(self, client, customer):
        resp = client.post("/api/auth/login", json={"username": "jane", "password": 12345678})
        assert resp.status_code == 400

    def test_duplicate_username(self, client, customer):
        resp = client.post("/api/users", json={
            "username": customer.username,
            "email": "other@freshcart.test",
            "password": "Password123!",
            "name": "Other",
        })
        assert resp.status_code == 409

    def test_default_address_is_unique(self, client, customer, address):
        resp = client.post("/api/addresses", json={
            "userId": customer.id,
            "type": "office",
            "address": "1 Market St",
            "city": "Springfield",
            "state": "IL",
            "zipCode": "62702",
            "isDefault": True,
        })
        assert resp.status_code == 201

        rows = client.get(f"/api/addresses?userId={customer.id}").get_json()
        assert [a["type"] for a in rows if a["isDefault"]] == ["office"]


class TestCatalog:

    def test_admin_creates_product(self, client, admin_headers, category):
        resp = client.post("/api/admin/products", json={
            "name": "Fresh Strawberries",
            "description": "Sweet and juicy",
            "priceCents": 449,
            "quantityLabel": "250g pack",
            "categoryId": category.id,
        }, headers=admin_headers)
        assert resp.status_code == 201

        listing = client.get(f"/api/products?categoryId={category.id}").get_json()
        assert listing["count"] == 1
        assert listing["items"][0]["name"] == "Fresh Strawberries"

    def test_discount_above_price_rejected(self, client, admin_headers, product):
        resp = client.patch(
            f"/api/admin/products/{product.id}",
            json={"discountPriceCents": 1500},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_search_and_pagination(self, client, product):
        body = client.get("/api/products?q=avocado&page=1&per_page=5").get_json()
        assert body["count"] == 1
        assert body["pagination"]["total"] == 1
        assert body["pagination"]["has_next"] is False

    def test_missing_product(self, client, db_session):
        assert client.get("/api/products/987654").status_code == 404


class TestCart:

    def test_cart_priced_for_user(self, client, db_session, customer, product):
        give_tier(db_session, customer, 20)

        resp = client.post("/api/cart", json={"userId": customer.id, "productId": product.id, "quantity": 2})
        assert resp.status_code == 201
        client.post("/api/cart", json={"userId": customer.id, "productId": product.id, "quantity": 1})

        lines = client.get(f"/api/cart?userId={customer.id}").get_json()
        assert len(lines) == 1
        assert lines[0]["quantity"] == 3
        assert lines[0]["unitPriceCents"] == 800
        assert lines[0]["lineTotalCents"] == 2400

    def test_clear_cart(self, client, customer, product):
        client.post("/api/cart", json={"userId": customer.id, "productId": product.id})
        resp = client.delete(f"/api/cart?userId={customer.id}")
        assert resp.get_json()["removed"] == 1
        assert client.get(f"/api/cart?userId={customer.id}").get_json() == []

    def test_lines_belong_to_their_user(self, client, admin, customer, product):
        item = client.post(
            "/api/cart", json={"userId": customer.id, "productId": product.id, "quantity": 2}
        ).get_json()

        resp = client.patch(f"/api/cart/{item['id']}", json={"userId": admin.id, "quantity": 9})
        assert resp.status_code == 404
        resp = client.delete(f"/api/cart/{item['id']}?userId={admin.id}")
        assert resp.status_code == 404
        assert client.get(f"/api/cart?userId={customer.id}").get_json()[0]["quantity"] == 2

        resp = client.patch(f"/api/cart/{item['id']}", json={"userId": customer.id, "quantity": 5})
        assert resp.status_code == 200
        assert resp.get_json()["quantity"] == 5
        resp = client.delete(f"/api/cart/{item['id']}?userId={customer.id}")
        assert resp.status_code == 204

    def test_line_update_requires_user(self, client, customer, product):
        item = client.post("/api/cart", json={"userId": customer.id, "productId": product.id}).get_json()
        assert client.patch(f"/api/cart/{item['id']}", json={"quantity": 3}).status_code == 400
        assert client.delete(f"/api/cart/{item['id']}").status_code == 400


class TestCheckout:

    def test_order_uses_resolved_price_and_sells_stock(
        self, client, db_session, customer, address, product
    ):
        inventory_service.create_inventory(product_id=product.id, stock_quantity=10)
        give_tier(db_session, customer, 15)

        resp = client.post("/api/orders", json={
            "userId": customer.id,
            "addressId": address.id,
            "paymentMethod": "cod",
            "estimatedDeliveryTime": 30,
            "items": [{"productId": product.id, "quantity": 2, "priceCents": 1}],
        })
        assert resp.status_code == 201
        order = resp.get_json()
        assert order["totalCents"] == 1700
        assert order["items"][0]["priceCents"] == 850
        assert order["status"] == "pending"

        assert inventory_service.get_inventory(product.id).stock_quantity == 8
        sold = db_session.query(StockTransaction).filter_by(transaction_type="sold").one()
        assert sold.quantity == 2
        assert sold.reference == f"order:{order['id']}"

    def test_untracked_product_still_sells(self, client, customer, address, product):
        resp = client.post("/api/orders", json={
            "userId": customer.id,
            "addressId": address.id,
            "paymentMethod": "cod",
            "items": [{"productId": product.id, "quantity": 1}],
        })
        assert resp.status_code == 201
        assert resp.get_json()["totalCents"] == 1000

    def test_foreign_address_rejected(self, client, db_session, admin, customer, address, product):
        resp = client.post("/api/orders", json={
            "userId": admin.id,
            "addressId": address.id,
            "paymentMethod": "cod",
            "items": [{"productId": product.id, "quantity": 1}],
        })
        assert resp.status_code == 400
        assert db_session.query(Order).count() == 0

    def test_unknown_product_rolls_back(self, client, db_session, customer, address, product):
        inventory_service.create_inventory(product_id=product.id, stock_quantity=10)
        resp = client.post("/api/orders", json={
            "userId": customer.id,
            "addressId": address.id,
            "paymentMethod": "cod",
            "items": [{"productId": product.id, "quantity": 1}, {"productId": 987654, "quantity": 1}],
        })
        assert resp.status_code == 404
        assert db_session.query(Order).count() == 0
        assert inventory_service.get_inventory(product.id).stock_quantity == 10

    def test_empty_items(self, client, customer, address):
        resp = client.post("/api/orders", json={
            "userId": customer.id,
            "addressId": address.id,
            "paymentMethod": "cod",
            "items": [],
        })
        assert resp.status_code == 400

    @pytest.mark.parametrize("payment_method", [5, True, ["cod"], {"type": "cod"}, "   "])
    def test_payment_method_must_be_text(
        self, client, db_session, customer, address, product, payment_method
    ):
        resp = client.post("/api/orders", json={
            "userId": customer.id,
            "addressId": address.id,
            "paymentMethod": payment_method,
            "items": [{"productId": product.id, "quantity": 1}],
        })
        assert resp.status_code == 400
        assert "paymentMethod" in resp.get_json()["error"]
        assert db_session.query(Order).count() == 0


class TestAdminOrders:

    def test_status_and_stats(self, client, admin_headers, customer, address, product):
        order = client.post("/api/orders", json={
            "userId": customer.id,
            "addressId": address.id,
            "paymentMethod": "cod",
            "items": [{"productId": product.id, "quantity": 3}],
        }).get_json()

        resp = client.patch(
            f"/api/admin/orders/{order['id']}",
            json={"status": "shipped-to-moon"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

        resp = client.patch(
            f"/api/admin/orders/{order['id']}",
            json={"status": "delivered"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "delivered"

        stats = client.get("/api/admin/stats", headers=admin_headers).get_json()
        assert stats["totalOrders"] == 1
        assert stats["totalRevenueCents"] == 3000
        assert stats["totalProducts"] == 1
        assert stats["totalCustomers"] == 1

        rows = client.get("/api/admin/orders?status=delivered", headers=admin_headers).get_json()
        assert [o["id"] for o in rows] == [order["id"]]

    @pytest.mark.parametrize("status", [1, False, ["delivered"], None, ""])
    def test_status_must_be_text(self, client, admin_headers, customer, address, product, status):
        order = client.post("/api/orders", json={
            "userId": customer.id,
            "addressId": address.id,
            "paymentMethod": "cod",
            "items": [{"productId": product.id, "quantity": 1}],
        }).get_json()

        resp = client.patch(
            f"/api/admin/orders/{order['id']}", json={"status": status}, headers=admin_headers
        )
        assert resp.status_code == 400
        assert client.get(f"/api/orders/{order['id']}").get_json()["status"] == "pending"


def test_health(client, db_session):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.get_json()["checks"]["database"]["status"] == "healthy"
