# backend/freshcart/services/user_service.py
"""
User and address management.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, 12 by default)
- Minimum 8 characters with upper, lower, digit and special character
- password_hash never leaves this module (User.to_dict omits it)
"""

from __future__ import annotations

import re

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Address, User
from ..validation import ConflictError, NotFoundError, ValidationError


USER_MUTABLE_FIELDS = {"name", "email", "phone"}
ADDRESS_MUTABLE_FIELDS = {"type", "address", "city", "state", "zip_code", "is_default"}


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""


def validate_password_strength(password: str) -> None:
    """
    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config["BCRYPT_ROUNDS"])
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in the database
        return False


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("user not found")
    return user


def create_user(
    *,
    username: str,
    email: str,
    password: str,
    name: str,
    phone: str | None = None,
    role: str = "customer",
) -> User:
    """
    Raises ConflictError if username or email is taken and
    PasswordValidationError if the password is weak.
    """
    if role not in ("customer", "admin"):
        raise ValidationError("role must be customer or admin")

    existing = db.session.query(User).filter(
        (User.username == username) | (User.email == email)
    ).first()
    if existing is not None:
        raise ConflictError("username or email already registered")

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        name=name,
        phone=phone,
        role=role,
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("username or email already registered")
    return user


def update_user(user_id: int, patch: dict) -> User:
    user = get_user(user_id)
    if "email" in patch and patch["email"] != user.email:
        taken = db.session.query(User).filter(User.email == patch["email"], User.id != user.id).first()
        if taken is not None:
            raise ConflictError("email already registered")

    for key, value in patch.items():
        if key in USER_MUTABLE_FIELDS:
            setattr(user, key, value)
    db.session.commit()
    return user


def authenticate(username: str, password: str) -> User | None:
    user = db.session.query(User).filter_by(username=username).first()
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------

def list_addresses(user_id: int) -> list[Address]:
    return (
        db.session.query(Address)
        .filter_by(user_id=user_id)
        .order_by(Address.is_default.desc(), Address.id.asc())
        .all()
    )


def get_address(address_id: int) -> Address:
    address = db.session.get(Address, address_id)
    if address is None:
        raise NotFoundError("address not found")
    return address


def _clear_default(user_id: int, *, keep_id: int | None = None) -> None:
    q = db.session.query(Address).filter_by(user_id=user_id, is_default=True)
    if keep_id is not None:
        q = q.filter(Address.id != keep_id)
    for other in q.all():
        other.is_default = False


def create_address(patch: dict) -> Address:
    """A new default address clears the flag on the user's other addresses."""
    get_user(patch["user_id"])

    if patch.get("is_default"):
        _clear_default(patch["user_id"])

    address = Address(
        user_id=patch["user_id"],
        type=patch["type"],
        address=patch["address"],
        city=patch["city"],
        state=patch["state"],
        zip_code=patch["zip_code"],
        is_default=bool(patch.get("is_default", False)),
    )
    db.session.add(address)
    db.session.commit()
    return address


def update_address(address_id: int, patch: dict) -> Address:
    address = get_address(address_id)
    if patch.get("is_default"):
        _clear_default(address.user_id, keep_id=address.id)

    for key, value in patch.items():
        if key in ADDRESS_MUTABLE_FIELDS:
            setattr(address, key, value)
    db.session.commit()
    return address


def delete_address(address_id: int) -> None:
    address = get_address(address_id)
    db.session.delete(address)
    db.session.commit()
