"""Authentication API endpoints."""

import logging

from flask import current_app, request
from flask_jwt_extended import create_access_token, get_jwt_identity, jwt_required

from app import db
from app.api import api_bp
from app.extensions import limiter
from app.models import User
from app.services.progression_service import ProgressionService
from app.utils import success_response, unauthorized, validation_error

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def _token_response(user: User, is_new_user: bool = False):
    # Identity must be a string for Flask-JWT-Extended
    access_token = create_access_token(identity=str(user.id))
    return success_response(
        {"user": user.to_dict(), "token": access_token, "is_new_user": is_new_user}
    )


def _create_user(login_id: str, **fields) -> User:
    user = User(login_id=login_id, **fields)
    db.session.add(user)
    db.session.flush()  # Get user.id before creating the account
    ProgressionService().get_or_create_account(user.id)
    return user


@api_bp.route("/auth/register", methods=["POST"])
@limiter.limit("10 per minute")
def register():
    """
    Register with a login id and password.

    Request body:
    {
        "login_id": "lifter01",
        "password": "...",
        "email": "me@example.com",    // optional
        "display_name": "Lifter"      // optional
    }
    """
    data = request.get_json() or {}

    login_id = (data.get("login_id") or "").strip()
    password = data.get("password") or ""
    errors = {}
    if not 3 <= len(login_id) <= 64:
        errors["login_id"] = "login_id must be 3-64 characters"
    if len(password) < MIN_PASSWORD_LENGTH:
        errors["password"] = f"password must be at least {MIN_PASSWORD_LENGTH} characters"
    if errors:
        return validation_error(errors)

    if User.query.filter_by(login_id=login_id).first():
        return validation_error({"login_id": "login_id is already taken"})

    email = data.get("email")
    if email and User.query.filter_by(email=email).first():
        return validation_error({"email": "email is already registered"})

    user = _create_user(
        login_id, email=email or None, display_name=data.get("display_name")
    )
    user.set_password(password)
    db.session.commit()

    logger.info(f"Registered user {user.id} ({login_id})")
    return _token_response(user, is_new_user=True)


@api_bp.route("/auth/login", methods=["POST"])
@limiter.limit("20 per minute")
def login():
    """Log in with login id and password."""
    data = request.get_json() or {}

    user = User.query.filter_by(login_id=data.get("login_id") or "").first()
    if not user or not user.check_password(data.get("password") or ""):
        return unauthorized("Invalid login id or password")

    return _token_response(user)


@api_bp.route("/auth/me", methods=["GET"])
@jwt_required()
def get_current_user():
    """Get current authenticated user."""
    user_id = int(get_jwt_identity())
    user = db.session.get(User, user_id)

    if not user:
        return unauthorized("User not found")

    return success_response({"user": user.to_dict()})


@api_bp.route("/auth/dev", methods=["POST"])
def dev_authenticate():
    """
    Development-only endpoint for testing without a password.
    Creates or gets a test user.

    Request body:
    {
        "login_id": "test_user"
    }
    """
    if not current_app.debug:
        return unauthorized("This endpoint is only available in development mode")

    data = request.get_json() or {}
    login_id = data.get("login_id", "test_user")

    user = User.query.filter_by(login_id=login_id).first()
    is_new_user = user is None

    if not user:
        user = _create_user(login_id, display_name=data.get("display_name", "Test User"))
        db.session.commit()

    return _token_response(user, is_new_user=is_new_user)
