"""Streak, settings and daily login models."""

from datetime import datetime
from enum import Enum

from app import db


class StreakType(str, Enum):
    """Tracked activity kinds."""

    TRAINING = "training"
    LOGIN = "login"


class StreakRecord(db.Model):
    """Consecutive-day counter for one activity type."""

    __tablename__ = "user_streaks"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    streak_type = db.Column(db.String(20), nullable=False)
    current_streak = db.Column(db.Integer, default=0, nullable=False)
    best_streak = db.Column(db.Integer, default=0, nullable=False)
    last_active_date = db.Column(db.Date, nullable=True)
    grace_days_used = db.Column(db.Integer, default=0, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        db.UniqueConstraint("user_id", "streak_type", name="unique_user_streak"),
    )

    def to_dict(self, grace_days_allowed: int | None = None) -> dict:
        """Convert to dictionary."""
        result = {
            "current": self.current_streak or 0,
            "best": self.best_streak or 0,
            "last_active_date": (
                self.last_active_date.isoformat() if self.last_active_date else None
            ),
            "grace_days_used": self.grace_days_used or 0,
        }
        if grace_days_allowed is not None:
            result["grace_days_allowed"] = grace_days_allowed
        return result

    def __repr__(self) -> str:
        return f"<StreakRecord {self.user_id}:{self.streak_type}={self.current_streak}>"


class UserSettings(db.Model):
    """Per-user progression preferences."""

    __tablename__ = "user_settings"

    MIN_GRACE_DAYS = 0
    MAX_GRACE_DAYS = 3

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )
    grace_days_allowed = db.Column(db.Integer, default=1, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def to_dict(self) -> dict:
        return {"grace_days_allowed": self.grace_days_allowed}


class DailyLoginLog(db.Model):
    """One row per user per calendar day with login bonus / daily reward claims."""

    __tablename__ = "daily_login_logs"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    login_date = db.Column(db.Date, nullable=False)

    # Streak-based login bonus
    bonus_claimed = db.Column(db.Boolean, default=False, nullable=False)
    bonus_exp = db.Column(db.Integer, default=0, nullable=False)

    # 14-day daily reward cycle
    reward_claimed = db.Column(db.Boolean, default=False, nullable=False)
    reward_day = db.Column(db.Integer, nullable=True)
    reward_exp = db.Column(db.Integer, default=0, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("user_id", "login_date", name="unique_user_login_date"),
    )

    def __repr__(self) -> str:
        return f"<DailyLoginLog {self.user_id}:{self.login_date}>"
