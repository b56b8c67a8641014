"""Admin API endpoints for user progression management."""

from flask import request

from app import db
from app.api import api_bp
from app.models.progression import ProgressionAccount
from app.models.user import User
from app.services.progression_service import ProgressionService
from app.utils.auth import admin_required
from app.utils.response import success_response


@api_bp.route("/admin/users", methods=["GET"])
@admin_required
def list_users():
    """List users with their level and total EXP."""
    rows = (
        db.session.query(User, ProgressionAccount)
        .outerjoin(ProgressionAccount, ProgressionAccount.user_id == User.id)
        .order_by(User.id)
        .all()
    )

    users = [
        {
            "id": user.id,
            "login_id": user.login_id,
            "display_name": user.display_name,
            "level": account.level if account else 1,
            "total_exp": account.total_exp if account else 0,
        }
        for user, account in rows
    ]
    return success_response({"users": users})


@api_bp.route("/admin/users/<int:user_id>/level", methods=["PUT"])
@admin_required
def update_user_level(user_id: int):
    """
    Set a user's level; total EXP becomes the level's requirement.

    Request body:
    {
        "level": 25   // 1-1000
    }
    """
    data = request.get_json() or {}
    result = ProgressionService().set_level(user_id, data.get("level"))
    return success_response(result)
