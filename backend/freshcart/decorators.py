# Overview: Request decorators for API routes (admin gate, service error mapping).

from functools import wraps
from flask import current_app, request, jsonify, g

from .extensions import db
from .models import User
from .validation import ConflictError, NotFoundError, ValidationError


def require_admin(f):
    """
    Require an admin caller.

    The caller is identified by the User-Id header. Sets g.current_user.

    Returns 401 if the header is missing, malformed or names no user, and
    403 if the user is not an admin.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        raw = request.headers.get("User-Id")
        if not raw:
            return jsonify({"error": "Unauthorized: login required"}), 401

        try:
            user_id = int(raw)
        except ValueError:
            return jsonify({"error": "Unauthorized: invalid User-Id header"}), 401

        user = db.session.get(User, user_id)
        if user is None:
            return jsonify({"error": "Unauthorized: unknown user"}), 401
        if not user.is_admin:
            return jsonify({"error": "Forbidden: admin access required"}), 403

        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function


def handle_service_errors(action: str):
    """
    Translate service exceptions into JSON error responses.

    ValidationError -> 400, NotFoundError -> 404, ConflictError -> 409.
    Anything else is logged and returned as 500 with "Failed to <action>".
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except ValidationError as e:
                return jsonify({"error": str(e)}), 400
            except NotFoundError as e:
                return jsonify({"error": str(e)}), 404
            except ConflictError as e:
                return jsonify({"error": str(e)}), 409
            except Exception:
                db.session.rollback()
                current_app.logger.exception("Failed to %s", action)
                return jsonify({"error": f"Failed to {action}"}), 500

        return decorated_function

    return decorator
