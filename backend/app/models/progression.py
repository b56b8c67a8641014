"""Progression account model."""

from datetime import datetime

from app import db
from app.services.level_curve import LevelCurve


class ProgressionAccount(db.Model):
    """Total EXP and cached level for a user. One row per user."""

    __tablename__ = "progression_accounts"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )
    total_exp = db.Column(db.BigInteger, default=0, nullable=False)
    level = db.Column(db.Integer, default=1, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    @property
    def exp_to_next_level(self) -> int:
        return LevelCurve.exp_to_next_level(self.level)

    @property
    def level_progress(self) -> float:
        return LevelCurve.level_progress(self.total_exp, self.level)

    @property
    def exp_in_level(self) -> int:
        return self.total_exp - LevelCurve.required_exp(self.level)

    def add_exp(self, amount: int) -> dict:
        """Add (or, when negative, subtract) EXP and return level change info.

        The total never drops below zero; the level is recomputed every time.
        """
        old_total = self.total_exp or 0
        old_level = self.level or 1
        self.total_exp = max(0, old_total + amount)
        self.level = LevelCurve.level_from_exp(self.total_exp)

        return {
            "exp_earned": self.total_exp - old_total,
            "total_exp": self.total_exp,
            "level_up": self.level > old_level,
            "old_level": old_level,
            "new_level": self.level,
        }

    def set_level(self, level: int) -> None:
        """Jump to the start of ``level`` (admin override)."""
        self.total_exp = LevelCurve.required_exp(level)
        self.level = LevelCurve.level_from_exp(self.total_exp)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "total_exp": self.total_exp,
            "level": self.level,
            "exp_in_level": self.exp_in_level,
            "exp_to_next_level": self.exp_to_next_level,
            "level_progress": self.level_progress,
        }

    def __repr__(self) -> str:
        return f"<ProgressionAccount user={self.user_id} lv={self.level}>"
