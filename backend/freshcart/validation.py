from __future__ import annotations
from datetime import datetime
from freshcart.time_utils import parse_iso_datetime

import re
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Float, Integer, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta


# Maximum price: $9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

STOCK_TRANSACTION_TYPES = ("received", "sold", "adjusted", "returned", "damaged")

# Date-only values for these columns cover the whole day
END_OF_DAY_COLUMNS = {"end_date", "valid_to"}


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., inventory already exists for product)."""


class NotFoundError(LookupError):
    """404-level missing record (product, inventory, tier, override, ...)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: column keys clients are allowed to set (security boundary)
    - required_on_create: column keys required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def to_column_key(wire_key: str) -> str:
    """stockQuantity -> stock_quantity. Snake-case keys pass through."""
    return _CAMEL_BOUNDARY.sub("_", wire_key).lower()


def to_wire_key(column_key: str) -> str:
    """stock_quantity -> stockQuantity."""
    head, *rest = column_key.split("_")
    return head + "".join(part.title() for part in rest)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_integer(name: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{name} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{name} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{name} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{name} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{name} must be an integer, not a decimal")
    raise ValidationError(f"{name} must be an integer")


def _coerce_value(name: str, col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return _coerce_integer(name, value)

    if isinstance(coltype, Float):
        if isinstance(value, bool):
            raise ValidationError(f"{name} must be a number")
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError:
                raise ValidationError(f"{name} must be a number")
        raise ValidationError(f"{name} must be a number")

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        # fallback: truthiness
        return bool(value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value, end_of_day=col.key in END_OF_DAY_COLUMNS)
            except ValueError:
                raise ValidationError(f"{name} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{name} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{name} must be a datetime")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is (JSON columns)
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict keyed by column name.

    Wire keys are camelCase (stockQuantity); snake_case keys are accepted too.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    keyed = {to_column_key(k): k for k in payload.keys()}

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(to_wire_key(f) for f in required if f not in keyed)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for col_key, wire_key in keyed.items():
        if col_key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {wire_key}")
        if col_key not in cols:
            raise ValidationError(f"Unknown field: {wire_key}")

    patch: dict = {}

    for col_key, wire_key in keyed.items():
        col = cols[col_key]
        raw = payload[wire_key]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{wire_key} cannot be null")
            patch[col_key] = None
            continue

        val = _coerce_value(wire_key, col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{wire_key} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{wire_key} exceeds max length {col.type.length}")

        patch[col_key] = val

    return patch


def require_int(value: Any, name: str) -> int:
    """Coerce a single request value (query arg, JSON scalar) to int."""
    if value is None:
        raise ValidationError(f"{name} is required")
    return _coerce_integer(name, value)


def require_str(value: Any, name: str) -> str:
    """A required non-blank JSON string, stripped."""
    if value is None:
        raise ValidationError(f"{name} is required")
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string")
    value = value.strip()
    if not value:
        raise ValidationError(f"{name} is required")
    return value


def _check_price(name: str, value: int | None) -> None:
    if value is None:
        return
    if value < 0:
        raise ValidationError(f"{name} must be >= 0")
    if value > MAX_PRICE_CENTS:
        raise ValidationError(f"{name} cannot exceed {MAX_PRICE_CENTS} (${MAX_PRICE_CENTS / 100:,.2f})")


def _check_percentage(name: str, value: float | int | None) -> None:
    if value is None:
        return
    if value < 0 or value > 100:
        raise ValidationError(f"{name} must be between 0 and 100")


def enforce_rules_product(patch: dict, *, current=None) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    for key in ("price_cents", "discount_price_cents", "cost_price_cents"):
        _check_price(to_wire_key(key), patch.get(key))

    price = patch.get("price_cents", getattr(current, "price_cents", None))
    discount = patch.get("discount_price_cents", getattr(current, "discount_price_cents", None))
    if price is not None and discount is not None and discount > price:
        raise ValidationError("discountPriceCents cannot exceed priceCents")


def enforce_rules_inventory(patch: dict, *, current=None) -> None:
    for key in ("stock_quantity", "min_stock_level", "max_stock_level", "reorder_point"):
        value = patch.get(key)
        if value is not None and value < 0:
            raise ValidationError(f"{to_wire_key(key)} must be >= 0")

    min_level = patch.get("min_stock_level", getattr(current, "min_stock_level", None))
    max_level = patch.get("max_stock_level", getattr(current, "max_stock_level", None))
    if min_level is not None and max_level is not None and max_level < min_level:
        raise ValidationError("maxStockLevel cannot be below minStockLevel")


def enforce_rules_stock_transaction(transaction_type: str, quantity: int) -> None:
    """
    transactionType must be a known type. quantity must be non-zero;
    received/sold/returned/damaged carry a magnitude (> 0) and the type gives
    the direction, adjusted carries a signed delta.
    """
    if transaction_type not in STOCK_TRANSACTION_TYPES:
        raise ValidationError(
            f"transactionType must be one of: {', '.join(STOCK_TRANSACTION_TYPES)}"
        )
    if not isinstance(quantity, int) or isinstance(quantity, bool):
        raise ValidationError("quantity must be an integer")
    if transaction_type == "adjusted":
        if quantity == 0:
            raise ValidationError("quantity must be non-zero for adjusted")
    elif quantity <= 0:
        raise ValidationError(f"quantity must be > 0 for {transaction_type}")


def enforce_rules_pricing_tier(patch: dict) -> None:
    _check_percentage("discountPercentage", patch.get("discount_percentage"))


def enforce_rules_customer_pricing(patch: dict) -> None:
    _check_price("priceCents", patch.get("price_cents"))


def enforce_rules_user_pricing_tier(patch: dict, *, current=None) -> None:
    start = patch.get("start_date", getattr(current, "start_date", None))
    end = patch.get("end_date", getattr(current, "end_date", None))
    if start is not None and end is not None and end < start:
        raise ValidationError("endDate cannot be before startDate")


def enforce_rules_offer(patch: dict) -> None:
    _check_percentage("discountPercentage", patch.get("discount_percentage"))
    start = patch.get("valid_from")
    end = patch.get("valid_to")
    if start is not None and end is not None and end < start:
        raise ValidationError("validTo cannot be before validFrom")
