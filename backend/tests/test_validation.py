"""
Payload validation tests.

Verifies:
- camelCase wire keys map to column keys
- Policy allowlist and required fields
- Strict integer coercion
- Business rules for prices, inventory thresholds and stock transactions
"""

import pytest

from freshcart.models import Inventory, PricingTier, UserPricingTier
from freshcart.validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_inventory,
    enforce_rules_product,
    enforce_rules_stock_transaction,
    to_column_key,
    to_wire_key,
    validate_payload,
)


INVENTORY_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "stock_quantity", "reorder_point", "location_code"},
    required_on_create={"product_id"},
)


def test_key_mapping():
    assert to_column_key("stockQuantity") == "stock_quantity"
    assert to_column_key("stock_quantity") == "stock_quantity"
    assert to_wire_key("last_received_quantity") == "lastReceivedQuantity"


def test_payload_maps_wire_keys(app):
    patch = validate_payload(
        model=Inventory,
        payload={"productId": 3, "stockQuantity": "12", "locationCode": "  A-1 "},
        policy=INVENTORY_POLICY,
        partial=False,
    )
    assert patch == {"product_id": 3, "stock_quantity": 12, "location_code": "A-1"}


def test_missing_required_reported_in_wire_form(app):
    with pytest.raises(ValidationError, match="productId"):
        validate_payload(model=Inventory, payload={}, policy=INVENTORY_POLICY, partial=False)


def test_partial_skips_required(app):
    assert validate_payload(
        model=Inventory, payload={"reorderPoint": 4}, policy=INVENTORY_POLICY, partial=True
    ) == {"reorder_point": 4}


def test_non_writable_field_rejected(app):
    with pytest.raises(ValidationError, match="versionId"):
        validate_payload(
            model=Inventory,
            payload={"productId": 1, "versionId": 9},
            policy=INVENTORY_POLICY,
            partial=False,
        )


def test_null_for_required_column_rejected(app):
    with pytest.raises(ValidationError):
        validate_payload(
            model=Inventory,
            payload={"productId": 1, "reorderPoint": None},
            policy=INVENTORY_POLICY,
            partial=False,
        )


@pytest.mark.parametrize("value", ["1e3", "12.5", 12.5, "", "ten", True])
def test_integers_are_strict(app, value):
    with pytest.raises(ValidationError):
        validate_payload(
            model=Inventory,
            payload={"productId": 1, "stockQuantity": value},
            policy=INVENTORY_POLICY,
            partial=False,
        )


def test_datetime_normalized_to_utc(app):
    policy = ModelValidationPolicy(writable_fields={"end_date"})
    patch = validate_payload(
        model=UserPricingTier,
        payload={"endDate": "2026-03-01T12:00:00+02:00"},
        policy=policy,
        partial=True,
    )
    assert patch["end_date"].isoformat() == "2026-03-01T10:00:00"


def test_float_column_accepts_int(app):
    policy = ModelValidationPolicy(writable_fields={"discount_percentage"})
    patch = validate_payload(
        model=PricingTier, payload={"discountPercentage": 15}, policy=policy, partial=True
    )
    assert patch["discount_percentage"] == 15.0


class TestRules:

    def test_negative_price(self):
        with pytest.raises(ValidationError):
            enforce_rules_product({"price_cents": -1})

    def test_discount_checked_against_current_price(self):
        class Current:
            price_cents = 500
            discount_price_cents = None

        with pytest.raises(ValidationError):
            enforce_rules_product({"discount_price_cents": 600}, current=Current())
        enforce_rules_product({"discount_price_cents": 400}, current=Current())

    def test_inventory_negative_threshold(self):
        with pytest.raises(ValidationError):
            enforce_rules_inventory({"reorder_point": -1})

    @pytest.mark.parametrize(
        "transaction_type,quantity",
        [("received", 1), ("sold", 3), ("returned", 1), ("damaged", 2), ("adjusted", -4)],
    )
    def test_valid_transactions(self, transaction_type, quantity):
        enforce_rules_stock_transaction(transaction_type, quantity)

    @pytest.mark.parametrize(
        "transaction_type,quantity",
        [("expired", 1), ("sold", 0), ("damaged", -2), ("adjusted", 0), ("received", "5")],
    )
    def test_invalid_transactions(self, transaction_type, quantity):
        with pytest.raises(ValidationError):
            enforce_rules_stock_transaction(transaction_type, quantity)


def test_date_only_end_covers_whole_day(app):
    policy = ModelValidationPolicy(writable_fields={"start_date", "end_date"})
    patch = validate_payload(
        model=UserPricingTier,
        payload={"startDate": "2026-03-01", "endDate": "2026-03-31"},
        policy=policy,
        partial=True,
    )
    assert patch["start_date"].isoformat() == "2026-03-01T00:00:00"
    assert patch["end_date"].isoformat() == "2026-03-31T23:59:59.999999"
