"""Daily reward API endpoints."""

from flask_jwt_extended import get_jwt_identity, jwt_required

from app.api import api_bp
from app.extensions import limiter, user_or_ip_key
from app.services.daily_reward_service import DailyRewardService
from app.utils import success_response


@api_bp.route("/daily-rewards", methods=["GET"])
@jwt_required()
def get_daily_rewards():
    """Get the 14-day reward cycle status."""
    user_id = int(get_jwt_identity())
    return success_response(DailyRewardService().get_status(user_id))


@api_bp.route("/daily-rewards/claim", methods=["POST"])
@jwt_required()
@limiter.limit("30 per minute", key_func=user_or_ip_key)
def claim_daily_reward():
    """Claim today's reward."""
    user_id = int(get_jwt_identity())
    return success_response(DailyRewardService().claim(user_id))
