"""Calendar helpers.

All day-based rules (streaks, daily ceilings, daily rewards) count calendar
days in the fixed UTC offset configured by ``APP_UTC_OFFSET_HOURS``.
"""

from datetime import date, datetime, timedelta, timezone

from flask import current_app

from app.errors import ValidationError


def local_today() -> date:
    """Today's date in the application's calendar."""
    offset = timedelta(hours=current_app.config.get("APP_UTC_OFFSET_HOURS", 0))
    return datetime.now(timezone(offset)).date()


def parse_date(value, field: str = "date") -> date:
    """Parse a YYYY-MM-DD string, raising ValidationError when malformed."""
    if not isinstance(value, str):
        raise ValidationError("Invalid date format", {field: "Expected YYYY-MM-DD"})
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("Invalid date format", {field: "Expected YYYY-MM-DD"})
