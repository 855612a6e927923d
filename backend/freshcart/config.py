# backend/freshcart/config.py
from __future__ import annotations
import os


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/freshcart.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///freshcart.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # bcrypt cost factor; tests lower it
    BCRYPT_ROUNDS = _int_env("BCRYPT_ROUNDS", 12)

    # Defaults applied when an admin creates inventory without thresholds
    DEFAULT_MIN_STOCK_LEVEL = _int_env("DEFAULT_MIN_STOCK_LEVEL", 5)
    DEFAULT_REORDER_POINT = _int_env("DEFAULT_REORDER_POINT", 10)

    # Attempts for a stock or order write that loses an optimistic-lock race
    WRITE_RETRY_ATTEMPTS = _int_env("WRITE_RETRY_ATTEMPTS", 3)

    CORS_ALLOWED_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if origin.strip()
    }
