"""User progression API endpoints."""

from flask_jwt_extended import get_jwt_identity, jwt_required

from app import db
from app.api import api_bp
from app.models import User
from app.services.progression_service import ProgressionService
from app.services.streak_service import StreakService
from app.utils import success_response, unauthorized


@api_bp.route("/user/stats", methods=["GET"])
@jwt_required()
def get_user_stats():
    """Get level, EXP progress and streaks."""
    user_id = int(get_jwt_identity())
    if not db.session.get(User, user_id):
        return unauthorized("User not found")

    account = ProgressionService().get_account(user_id)
    streaks = StreakService().get_streaks(user_id)

    return success_response(
        {
            **account,
            "training_streak": streaks["training"],
            "login_streak": streaks["login"],
            "combined_multiplier": streaks["combined_multiplier"],
        }
    )
