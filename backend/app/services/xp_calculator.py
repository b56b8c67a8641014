"""EXP calculation service."""

import math
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from app.errors import ValidationError


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from zero."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class XPCalculator:
    """Service for calculating EXP earned from logged sets.

    Pure arithmetic: persistence and locking live in WorkoutService.
    """

    # Exercise difficulty -> coefficient
    DIFFICULTY_COEFFICIENTS = {
        "high": 30,
        "hard": 30,
        "advanced": 30,
        "medium": 20,
        "intermediate": 20,
        "low": 10,
        "easy": 10,
        "beginner": 10,
    }
    DEFAULT_COEFFICIENT = 15
    CUSTOM_COEFFICIENT = 15

    # Input ranges (rejected, never clamped)
    MAX_WEIGHT = 500
    MAX_REPS = 20

    # Level multiplier stops growing here (+100%)
    LEVEL_MULTIPLIER_CAP = 100

    def __init__(
        self,
        daily_limit: int = 50000,
        past_days_threshold: int = 2,
        past_exp_multiplier: float = 0.25,
        past_limit_multiplier: float = 0.5,
        max_exp_per_set: int = 2000,
        exp_coefficient: float = 1.0,
    ):
        self.daily_limit = daily_limit
        self.past_days_threshold = past_days_threshold
        self.past_exp_multiplier = past_exp_multiplier
        self.past_limit_multiplier = past_limit_multiplier
        self.max_exp_per_set = max_exp_per_set
        self.exp_coefficient = exp_coefficient

    @classmethod
    def from_config(cls, config) -> "XPCalculator":
        """Build a calculator from a Flask config mapping."""
        return cls(
            daily_limit=config.get("EXP_DAILY_LIMIT", 50000),
            past_days_threshold=config.get("EXP_PAST_DAYS_THRESHOLD", 2),
            past_exp_multiplier=config.get("EXP_PAST_MULTIPLIER", 0.25),
            past_limit_multiplier=config.get("EXP_PAST_LIMIT_MULTIPLIER", 0.5),
            max_exp_per_set=config.get("EXP_MAX_PER_SET", 2000),
            exp_coefficient=config.get("EXP_COEFFICIENT", 1.0),
        )

    # ============ Inputs ============

    @classmethod
    def difficulty_coefficient(cls, difficulty: str | None, is_custom: bool) -> int:
        """Coefficient for an exercise; custom and unrated exercises get 15."""
        if is_custom:
            return cls.CUSTOM_COEFFICIENT
        if not difficulty:
            return cls.DEFAULT_COEFFICIENT
        return cls.DIFFICULTY_COEFFICIENTS.get(
            difficulty.strip().lower(), cls.DEFAULT_COEFFICIENT
        )

    @classmethod
    def validate_set(cls, weight, reps) -> tuple[float, int]:
        """Check a (weight, reps) entry and return it normalized."""
        if isinstance(weight, bool) or not isinstance(weight, (int, float)):
            raise ValidationError("Weight must be a number", {"weight": weight})
        if not math.isfinite(weight):
            raise ValidationError("Weight must be a finite number", {"weight": str(weight)})
        if weight < 0 or weight > cls.MAX_WEIGHT:
            raise ValidationError(
                f"Weight must be between 0 and {cls.MAX_WEIGHT} kg",
                {"weight": weight},
            )
        if isinstance(reps, bool) or not isinstance(reps, int):
            raise ValidationError("Reps must be an integer", {"reps": reps})
        if reps < 0 or reps > cls.MAX_REPS:
            raise ValidationError(
                f"Reps must be between 0 and {cls.MAX_REPS}", {"reps": reps}
            )
        return float(weight), reps

    # ============ Temporal rules ============

    def is_past_record(self, record_date: date, today: date) -> bool:
        """Records older than the recent window (today, yesterday) are "past"."""
        return (today - record_date).days >= self.past_days_threshold

    def temporal_multiplier(self, is_past: bool) -> float:
        return self.past_exp_multiplier if is_past else 1.0

    def daily_limit_for(self, is_past: bool) -> int:
        """Daily EXP ceiling for a date; past dates get a reduced ceiling."""
        if is_past:
            return int(self.daily_limit * self.past_limit_multiplier)
        return self.daily_limit

    # ============ EXP arithmetic ============

    def set_exp(self, coefficient: int, weight: float, reps: int, is_past: bool) -> int:
        """EXP for one set: capped per set, never below 1."""
        raw = round_half_up(
            coefficient
            * weight
            * reps
            * self.exp_coefficient
            * self.temporal_multiplier(is_past)
        )
        return max(1, min(raw, self.max_exp_per_set))

    def batch_exp(self, exercises: list[tuple[int, list[tuple]]], is_past: bool) -> int:
        """Sum of set EXP for ``[(coefficient, [(weight, reps), ...]), ...]``."""
        total = 0
        for coefficient, sets in exercises:
            for weight, reps in sets:
                total += self.set_exp(coefficient, weight, reps, is_past)
        return total

    @classmethod
    def level_multiplier(cls, level: int) -> float:
        """+1% per level, up to +100%."""
        return 1.0 + min(max(level, 1), cls.LEVEL_MULTIPLIER_CAP) / 100.0

    @staticmethod
    def streak_multiplier(training_bonus: float, login_bonus: float) -> float:
        return 1.0 + training_bonus + login_bonus

    @classmethod
    def boosted_exp(cls, batch_exp: int, level: int, streak_multiplier: float) -> int:
        return round_half_up(batch_exp * cls.level_multiplier(level) * streak_multiplier)

    def credited_exp(self, boosted_exp: int, already_credited: int, is_past: bool) -> int:
        """Apply the daily ceiling for the attributed date."""
        remaining = max(0, self.daily_limit_for(is_past) - already_credited)
        return max(0, min(boosted_exp, remaining))

    def calculate(
        self,
        exercises: list[tuple[int, list[tuple]]],
        record_date: date,
        today: date,
        level: int,
        training_bonus: float,
        login_bonus: float,
        already_credited: int,
    ) -> dict:
        """Full breakdown for one workout batch."""
        is_past = self.is_past_record(record_date, today)
        batch = self.batch_exp(exercises, is_past)
        streak_mult = self.streak_multiplier(training_bonus, login_bonus)
        boosted = self.boosted_exp(batch, level, streak_mult)
        credited = self.credited_exp(boosted, already_credited, is_past)

        return {
            "is_past_record": is_past,
            "batch_exp": batch,
            "level_multiplier": self.level_multiplier(level),
            "streak_multiplier": streak_mult,
            "boosted_exp": boosted,
            "daily_limit": self.daily_limit_for(is_past),
            "already_credited": already_credited,
            "credited_exp": credited,
        }
