"""Streak, login bonus and settings API endpoints."""

from flask import request
from flask_jwt_extended import get_jwt_identity, jwt_required

from app.api import api_bp
from app.extensions import limiter, user_or_ip_key
from app.services.streak_service import StreakService
from app.utils import success_response


@api_bp.route("/streak", methods=["GET"])
@jwt_required()
def get_streaks():
    """Get training and login streaks with their multipliers."""
    user_id = int(get_jwt_identity())
    return success_response(StreakService().get_streaks(user_id))


@api_bp.route("/streak/login-bonus", methods=["POST"])
@jwt_required()
@limiter.limit("30 per minute", key_func=user_or_ip_key)
def claim_login_bonus():
    """Claim today's login bonus (once per day)."""
    user_id = int(get_jwt_identity())
    return success_response(StreakService().claim_login_bonus(user_id))


@api_bp.route("/streak/record-login", methods=["POST"])
@jwt_required()
def record_login():
    """Count today toward the login streak without a bonus."""
    user_id = int(get_jwt_identity())
    service = StreakService()
    streak = service.record_login(user_id)
    return success_response(
        {"login_streak": streak.to_dict(service.grace_days_for(user_id))}
    )


@api_bp.route("/settings", methods=["GET"])
@jwt_required()
def get_settings():
    """Get progression settings."""
    user_id = int(get_jwt_identity())
    return success_response({"settings": StreakService().get_settings(user_id)})


@api_bp.route("/settings", methods=["POST"])
@jwt_required()
def update_settings():
    """
    Update progression settings.

    Request body:
    {
        "grace_days_allowed": 2   // 0-3
    }
    """
    user_id = int(get_jwt_identity())
    settings = StreakService().update_settings(user_id, request.get_json() or {})
    return success_response({"settings": settings})
