"""
Admin API tests.

Verifies:
- /api/admin routes return 401 without a caller and 403 for customers
- Service errors map to 400 / 404 / 409
- Inventory, transaction and pricing endpoints speak camelCase JSON
"""

import pytest

from freshcart.models import StockTransaction


class TestAdminGate:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/admin/inventory"),
            ("POST", "/api/admin/inventory"),
            ("GET", "/api/admin/transactions"),
            ("POST", "/api/admin/transactions"),
            ("GET", "/api/admin/pricing-tiers"),
            ("POST", "/api/admin/customer-pricing"),
            ("POST", "/api/admin/user-pricing-tiers"),
            ("POST", "/api/admin/products"),
            ("GET", "/api/admin/orders"),
            ("GET", "/api/admin/stats"),
        ],
    )
    def test_requires_caller(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_unknown_user_id(self, client, db_session):
        resp = client.get("/api/admin/inventory", headers={"User-Id": "987654"})
        assert resp.status_code == 401

    def test_malformed_user_id(self, client, db_session):
        resp = client.get("/api/admin/inventory", headers={"User-Id": "abc"})
        assert resp.status_code == 401

    def test_customer_forbidden(self, client, customer_headers):
        resp = client.get("/api/admin/inventory", headers=customer_headers)
        assert resp.status_code == 403

    def test_admin_allowed(self, client, admin_headers):
        resp = client.get("/api/admin/inventory", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json() == []


class TestInventoryRoutes:

    def test_create_then_duplicate(self, client, admin_headers, product):
        resp = client.post(
            "/api/admin/inventory",
            json={"productId": product.id, "stockQuantity": 20, "reorderPoint": 10},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["stockQuantity"] == 20
        assert body["status"] == "In Stock"
        assert body["product"]["id"] == product.id

        resp = client.post(
            "/api/admin/inventory",
            json={"productId": product.id, "stockQuantity": 5},
            headers=admin_headers,
        )
        assert resp.status_code == 409

    def test_create_validation(self, client, admin_headers, product):
        resp = client.post(
            "/api/admin/inventory",
            json={"productId": product.id, "stockQuantity": "lots"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

        resp = client.post(
            "/api/admin/inventory",
            json={"stockQuantity": 5},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_create_for_missing_product(self, client, admin_headers, db_session):
        resp = client.post(
            "/api/admin/inventory",
            json={"productId": 987654, "stockQuantity": 5},
            headers=admin_headers,
        )
        assert resp.status_code == 404

    def test_transaction_flow(self, client, admin_headers, admin, product, db_session):
        client.post(
            "/api/admin/inventory",
            json={"productId": product.id, "stockQuantity": 50},
            headers=admin_headers,
        )
        resp = client.post(
            "/api/admin/transactions",
            json={"productId": product.id, "transactionType": "sold", "quantity": 70},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["transaction"]["transactionType"] == "sold"
        assert body["transaction"]["userId"] == admin.id
        assert body["inventory"]["stockQuantity"] == 0
        assert body["inventory"]["status"] == "Out of Stock"

        resp = client.get(f"/api/products/{product.id}")
        assert resp.get_json()["inStock"] is False

        resp = client.get(
            f"/api/admin/transactions?productId={product.id}", headers=admin_headers
        )
        assert [t["transactionType"] for t in resp.get_json()] == ["sold", "received"]

    @pytest.mark.parametrize("limit,expected", [("-5", 1), ("0", 1), ("2", 2), ("5000", 3)])
    def test_transaction_listing_limit(self, client, admin_headers, product, limit, expected):
        client.post(
            "/api/admin/inventory",
            json={"productId": product.id, "stockQuantity": 5},
            headers=admin_headers,
        )
        for quantity in (1, 2):
            client.post(
                "/api/admin/transactions",
                json={"productId": product.id, "transactionType": "sold", "quantity": quantity},
                headers=admin_headers,
            )
        resp = client.get(f"/api/admin/transactions?limit={limit}", headers=admin_headers)
        assert resp.status_code == 200
        assert len(resp.get_json()) == expected

    def test_transaction_bad_type(self, client, admin_headers, product, db_session):
        client.post(
            "/api/admin/inventory",
            json={"productId": product.id, "stockQuantity": 5},
            headers=admin_headers,
        )
        resp = client.post(
            "/api/admin/transactions",
            json={"productId": product.id, "transactionType": "lost", "quantity": 1},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert db_session.query(StockTransaction).count() == 1

    def test_transaction_without_inventory(self, client, admin_headers, product):
        resp = client.post(
            "/api/admin/transactions",
            json={"productId": product.id, "transactionType": "received", "quantity": 1},
            headers=admin_headers,
        )
        assert resp.status_code == 404

    def test_stock_shortcut(self, client, admin_headers, product):
        client.post(
            "/api/admin/inventory",
            json={"productId": product.id, "stockQuantity": 5},
            headers=admin_headers,
        )
        resp = client.patch(
            f"/api/admin/inventory/stock/{product.id}",
            json={"quantity": -2, "notes": "Broken jar"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["stockQuantity"] == 3

        resp = client.patch(
            f"/api/admin/inventory/stock/{product.id}",
            json={"quantity": "3"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

        resp = client.patch(
            f"/api/admin/inventory/stock/{product.id}",
            json={"quantity": 0},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert client.get(
            f"/api/admin/transactions?productId={product.id}", headers=admin_headers
        ).get_json()[0]["quantity"] == -2

    def test_update_thresholds_rejects_stock(self, client, admin_headers, product):
        inv = client.post(
            "/api/admin/inventory",
            json={"productId": product.id, "stockQuantity": 5},
            headers=admin_headers,
        ).get_json()

        resp = client.patch(
            f"/api/admin/inventory/{inv['id']}",
            json={"stockQuantity": 100},
            headers=admin_headers,
        )
        assert resp.status_code == 400

        resp = client.patch(
            f"/api/admin/inventory/{inv['id']}",
            json={"reorderPoint": 2, "locationCode": "B-07"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["reorderPoint"] == 2
        assert resp.get_json()["locationCode"] == "B-07"

    def test_low_stock_filter(self, client, admin_headers, product):
        client.post(
            "/api/admin/inventory",
            json={"productId": product.id, "stockQuantity": 3},
            headers=admin_headers,
        )
        resp = client.get("/api/admin/inventory?lowStock=true", headers=admin_headers)
        assert [row["productId"] for row in resp.get_json()] == [product.id]


class TestPricingRoutes:

    def test_tier_override_and_quote(self, client, admin_headers, customer, product):
        resp = client.post(
            "/api/admin/pricing-tiers",
            json={"name": "Wholesale", "discountPercentage": 15},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        tier_id = resp.get_json()["id"]

        resp = client.post(
            "/api/admin/user-pricing-tiers",
            json={"userId": customer.id, "pricingTierId": tier_id},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.get_json()["pricingTier"]["name"] == "Wholesale"

        resp = client.get(f"/api/product-price/{product.id}/user/{customer.id}")
        assert resp.status_code == 200
        assert resp.get_json()["priceCents"] == 850
        assert resp.get_json()["appliedTierId"] == tier_id

        payload = {"productId": product.id, "pricingTierId": tier_id, "priceCents": 700}
        resp = client.post("/api/admin/customer-pricing", json=payload, headers=admin_headers)
        assert resp.status_code == 201
        resp = client.post("/api/admin/customer-pricing", json=payload, headers=admin_headers)
        assert resp.status_code == 409

        resp = client.get(f"/api/product-price/{product.id}/user/{customer.id}")
        assert resp.get_json()["priceCents"] == 700

    def test_retire_tier(self, client, admin_headers, customer, product):
        tier_id = client.post(
            "/api/admin/pricing-tiers",
            json={"name": "Gold", "discountPercentage": 10},
            headers=admin_headers,
        ).get_json()["id"]
        client.post(
            "/api/admin/user-pricing-tiers",
            json={"userId": customer.id, "pricingTierId": tier_id},
            headers=admin_headers,
        )

        resp = client.patch(
            f"/api/admin/pricing-tiers/{tier_id}",
            json={"isActive": False},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["isActive"] is False

        resp = client.get(f"/api/product-price/{product.id}/user/{customer.id}")
        assert resp.get_json()["priceCents"] == 1000

    def test_expire_assignment(self, client, admin_headers, customer, product):
        tier_id = client.post(
            "/api/admin/pricing-tiers",
            json={"name": "Gold", "discountPercentage": 10},
            headers=admin_headers,
        ).get_json()["id"]
        assignment = client.post(
            "/api/admin/user-pricing-tiers",
            json={"userId": customer.id, "pricingTierId": tier_id, "startDate": "2020-01-01T00:00:00Z"},
            headers=admin_headers,
        ).get_json()

        resp = client.patch(
            f"/api/admin/user-pricing-tiers/{assignment['id']}",
            json={"endDate": "2020-06-01T00:00:00Z"},
            headers=admin_headers,
        )
        assert resp.status_code == 200

        resp = client.get(f"/api/product-price/{product.id}/user/{customer.id}")
        assert resp.get_json()["priceCents"] == 1000

        resp = client.get(f"/api/user-pricing-tiers/{customer.id}")
        assert len(resp.get_json()) == 1

    def test_bad_percentage(self, client, admin_headers):
        resp = client.post(
            "/api/admin/pricing-tiers",
            json={"name": "Silly", "discountPercentage": 140},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_quote_unknown_product(self, client, customer):
        resp = client.get(f"/api/product-price/987654/user/{customer.id}")
        assert resp.status_code == 404

    def test_unknown_tier(self, client, admin_headers):
        resp = client.get("/api/admin/pricing-tiers/987654", headers=admin_headers)
        assert resp.status_code == 404
