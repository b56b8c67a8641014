"""Authentication utilities."""

from functools import wraps

from flask import current_app
from flask_jwt_extended import get_jwt_identity, jwt_required

from app import db
from app.models.user import User
from app.utils.response import forbidden, unauthorized


def get_admin_ids() -> list[int]:
    """Get admin user IDs from app config."""
    return current_app.config.get("ADMIN_USER_IDS") or []


def admin_required(fn):
    """
    Decorator that requires the user to be an admin.

    Must be used instead of @jwt_required().
    """

    @wraps(fn)
    @jwt_required()
    def wrapper(*args, **kwargs):
        user_id = int(get_jwt_identity())
        user = db.session.get(User, user_id)

        if not user:
            return unauthorized("User not found")

        if user_id not in get_admin_ids() and user.role != "admin":
            return forbidden("Admin access required")

        return fn(*args, **kwargs)

    return wrapper
