"""API blueprints."""

from flask import Blueprint

api_bp = Blueprint("api", __name__)

from app.api import (admin, auth, daily_rewards, levels,  # noqa: E402, F401
                     pets, streaks, user, workouts)
