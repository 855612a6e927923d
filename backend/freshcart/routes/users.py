# backend/freshcart/routes/users.py
"""
Account and address routes.

Registration always creates a customer; admins are created through the CLI.
Login verifies the bcrypt hash and returns the user. The client then sends
User-Id on admin calls.
"""
from flask import Blueprint, request, jsonify

from ..models import Address, User
from ..validation import ModelValidationPolicy, validate_payload, require_int
from ..decorators import handle_service_errors
from ..services import user_service


users_bp = Blueprint("users", __name__, url_prefix="/api")

USER_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "phone"},
)

ADDRESS_POLICY = ModelValidationPolicy(
    writable_fields={"user_id", "type", "address", "city", "state", "zip_code", "is_default"},
    required_on_create={"user_id", "type", "address", "city", "state", "zip_code"},
)

ADDRESS_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=ADDRESS_POLICY.writable_fields - {"user_id"},
)


def _all_text(data: dict, *keys: str) -> bool:
    return all(data.get(k) is None or isinstance(data.get(k), str) for k in keys)


@users_bp.post("/users")
@handle_service_errors("create user")
def register_route():
    """
    Register a customer account.

    Body: {"username", "email", "password", "name", "phone"?}
    """
    data = request.get_json(silent=True) or {}
    if not _all_text(data, "username", "email", "password", "name", "phone"):
        return jsonify({"error": "username, email, password, name and phone must be strings"}), 400

    username = (data.get("username") or "").strip()
    email = (data.get("email") or "").strip()
    password = data.get("password") or ""
    name = (data.get("name") or "").strip()

    if not all([username, email, password, name]):
        return jsonify({"error": "username, email, password and name required"}), 400

    user = user_service.create_user(
        username=username,
        email=email,
        password=password,
        name=name,
        phone=(data.get("phone") or "").strip() or None,
    )
    return user.to_dict(), 201


@users_bp.get("/users/<int:user_id>")
@handle_service_errors("load user")
def get_user_route(user_id: int):
    return user_service.get_user(user_id).to_dict(), 200


@users_bp.patch("/users/<int:user_id>")
@handle_service_errors("update user")
def update_user_route(user_id: int):
    patch = validate_payload(
        model=User,
        payload=request.get_json(silent=True) or {},
        policy=USER_UPDATE_POLICY,
        partial=True,
    )
    return user_service.update_user(user_id, patch).to_dict(), 200


@users_bp.post("/auth/login")
@handle_service_errors("log in")
def login_route():
    data = request.get_json(silent=True) or {}
    username = data.get("username")
    password = data.get("password")
    if not _all_text(data, "username", "password"):
        return jsonify({"error": "username and password must be strings"}), 400

    if not all([username, password]):
        return jsonify({"error": "username and password required"}), 400

    user = user_service.authenticate(username, password)
    if user is None:
        return jsonify({"error": "Invalid username or password"}), 401
    return {"user": user.to_dict()}, 200


@users_bp.get("/addresses")
@handle_service_errors("list addresses")
def list_addresses_route():
    user_id = require_int(request.args.get("userId"), "userId")
    return [a.to_dict() for a in user_service.list_addresses(user_id)], 200


@users_bp.post("/addresses")
@handle_service_errors("create address")
def create_address_route():
    """A new default address clears the default flag on the user's other addresses."""
    patch = validate_payload(
        model=Address,
        payload=request.get_json(silent=True) or {},
        policy=ADDRESS_POLICY,
        partial=False,
    )
    return user_service.create_address(patch).to_dict(), 201


@users_bp.patch("/addresses/<int:address_id>")
@handle_service_errors("update address")
def update_address_route(address_id: int):
    patch = validate_payload(
        model=Address,
        payload=request.get_json(silent=True) or {},
        policy=ADDRESS_UPDATE_POLICY,
        partial=True,
    )
    return user_service.update_address(address_id, patch).to_dict(), 200


@users_bp.delete("/addresses/<int:address_id>")
@handle_service_errors("delete address")
def delete_address_route(address_id: int):
    user_service.delete_address(address_id)
    return "", 204
