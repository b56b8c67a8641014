"""Level curve API endpoints."""

from flask import request

from app.api import api_bp
from app.errors import ValidationError
from app.services.level_curve import LevelCurve
from app.utils import success_response

MAX_PREVIEW_LEVELS = 200


@api_bp.route("/levels/curve", methods=["GET"])
def get_level_curve():
    """Preview the level table (public).

    Query params: ``start`` (default 1) and ``count`` (default 50, max 200).
    """
    start = request.args.get("start", 1, type=int)
    count = request.args.get("count", 50, type=int)
    if start < LevelCurve.MIN_LEVEL or start > LevelCurve.MAX_LEVEL:
        raise ValidationError(
            f"start must be between {LevelCurve.MIN_LEVEL} and {LevelCurve.MAX_LEVEL}",
            {"start": start},
        )
    if count < 1 or count > MAX_PREVIEW_LEVELS:
        raise ValidationError(
            f"count must be between 1 and {MAX_PREVIEW_LEVELS}", {"count": count}
        )

    end = min(start + count - 1, LevelCurve.MAX_LEVEL)
    levels = [
        {
            "level": level,
            "required_exp": LevelCurve.required_exp(level),
            "exp_to_next_level": LevelCurve.exp_to_next_level(level),
        }
        for level in range(start, end + 1)
    ]
    return success_response({"levels": levels, "max_level": LevelCurve.MAX_LEVEL})
