"""Training and login streak service."""

import logging
from datetime import date

from flask import current_app

from app import db
from app.errors import ValidationError
from app.models.streak import DailyLoginLog, StreakRecord, StreakType, UserSettings
from app.models.workout import TrainingRecord
from app.services.locks import user_mutation_lock
from app.services.progression_service import ProgressionService
from app.utils.dates import local_today

logger = logging.getLogger(__name__)


class StreakService:
    """Consecutive-day tracking with grace days, plus the multipliers and
    login bonus derived from it.

    The record/recompute helpers flush but never commit so they can join
    a caller's transaction; the request-level operations commit.
    """

    TRAINING_BONUS_PER_DAY = 0.14
    TRAINING_BONUS_CAP = 1.0
    LOGIN_BONUS_PER_DAY = 0.07
    LOGIN_BONUS_CAP = 0.5

    # Login bonus: base + 10/day (max +100) + 50 per full week
    LOGIN_BONUS_BASE = 100
    LOGIN_BONUS_PER_STREAK_DAY = 10
    LOGIN_BONUS_STREAK_CAP = 100
    LOGIN_BONUS_WEEKLY = 50

    # ============ Pure rules ============

    @staticmethod
    def advance_streak(streak: StreakRecord, activity_date: date, grace_days: int) -> bool:
        """Apply one day of activity to ``streak``.

        Returns False when nothing changed: same-day repeats, and dates
        before ``last_active_date`` (those go through recompute instead).
        """
        last = streak.last_active_date
        if last is None:
            streak.current_streak = 1
            streak.grace_days_used = 0
        else:
            gap = (activity_date - last).days
            if gap <= 0:
                return False
            if gap == 1:
                streak.current_streak = (streak.current_streak or 0) + 1
                streak.grace_days_used = 0
            elif gap <= grace_days + 1:
                streak.current_streak = (streak.current_streak or 0) + 1
                streak.grace_days_used = gap - 1
            else:
                streak.current_streak = 1
                streak.grace_days_used = 0

        streak.last_active_date = activity_date
        streak.best_streak = max(streak.best_streak or 0, streak.current_streak)
        return True

    @staticmethod
    def streak_from_history(
        dates, today: date, grace_days: int, previous_best: int = 0
    ) -> dict:
        """Derive streak state from scratch from a set of activity dates."""
        ordered = sorted(set(dates), reverse=True)
        if not ordered:
            return {
                "current_streak": 0,
                "best_streak": previous_best,
                "last_active_date": None,
                "grace_days_used": 0,
            }

        max_gap = grace_days + 1
        most_recent = ordered[0]
        current = 0
        grace_used = 0

        if (today - most_recent).days <= max_gap:
            current = 1
            for index, (newer, older) in enumerate(zip(ordered, ordered[1:])):
                gap = (newer - older).days
                if gap > max_gap:
                    break
                if index == 0:
                    grace_used = gap - 1
                current += 1

        return {
            "current_streak": current,
            "best_streak": max(previous_best, current),
            "last_active_date": most_recent,
            "grace_days_used": grace_used,
        }

    @classmethod
    def training_bonus(cls, streak: int) -> float:
        return min(streak * cls.TRAINING_BONUS_PER_DAY, cls.TRAINING_BONUS_CAP)

    @classmethod
    def login_bonus(cls, streak: int) -> float:
        return min(streak * cls.LOGIN_BONUS_PER_DAY, cls.LOGIN_BONUS_CAP)

    @classmethod
    def login_bonus_exp(cls, streak: int) -> int:
        return (
            cls.LOGIN_BONUS_BASE
            + min(streak * cls.LOGIN_BONUS_PER_STREAK_DAY, cls.LOGIN_BONUS_STREAK_CAP)
            + (streak // 7) * cls.LOGIN_BONUS_WEEKLY
        )

    # ============ Persistence ============

    def get_or_create_settings(self, user_id: int) -> UserSettings:
        settings = UserSettings.query.filter_by(user_id=user_id).first()
        if not settings:
            settings = UserSettings(
                user_id=user_id,
                grace_days_allowed=current_app.config.get("DEFAULT_GRACE_DAYS", 1),
            )
            db.session.add(settings)
            db.session.flush()
        return settings

    def get_or_create_streak(self, user_id: int, streak_type: StreakType) -> StreakRecord:
        streak = StreakRecord.query.filter_by(
            user_id=user_id, streak_type=streak_type.value
        ).first()
        if not streak:
            streak = StreakRecord(
                user_id=user_id,
                streak_type=streak_type.value,
                current_streak=0,
                best_streak=0,
                grace_days_used=0,
            )
            db.session.add(streak)
            db.session.flush()
        return streak

    def grace_days_for(self, user_id: int) -> int:
        return self.get_or_create_settings(user_id).grace_days_allowed

    def record_activity(
        self, user_id: int, streak_type: StreakType, activity_date: date
    ) -> StreakRecord:
        """Update a streak for activity on ``activity_date``.

        A training date earlier than the last active date triggers a full
        recompute; an earlier login date is ignored.
        """
        streak = self.get_or_create_streak(user_id, streak_type)
        grace = self.grace_days_for(user_id)

        if streak.last_active_date and activity_date < streak.last_active_date:
            if streak_type == StreakType.TRAINING:
                return self.recompute_training_streak(user_id)
            return streak

        self.advance_streak(streak, activity_date, grace)
        db.session.flush()
        return streak

    def recompute_training_streak(self, user_id: int, today: date | None = None) -> StreakRecord:
        """Rebuild the training streak from the user's training records."""
        if today is None:
            today = local_today()
        streak = self.get_or_create_streak(user_id, StreakType.TRAINING)
        grace = self.grace_days_for(user_id)

        rows = (
            db.session.query(TrainingRecord.record_date)
            .filter(TrainingRecord.user_id == user_id)
            .distinct()
            .all()
        )
        state = self.streak_from_history(
            [row[0] for row in rows], today, grace, streak.best_streak or 0
        )
        streak.current_streak = state["current_streak"]
        streak.best_streak = state["best_streak"]
        streak.last_active_date = state["last_active_date"]
        streak.grace_days_used = state["grace_days_used"]
        db.session.flush()
        return streak

    def get_multipliers(self, user_id: int) -> dict:
        training = self.get_or_create_streak(user_id, StreakType.TRAINING)
        login = self.get_or_create_streak(user_id, StreakType.LOGIN)
        training_bonus = self.training_bonus(training.current_streak or 0)
        login_bonus = self.login_bonus(login.current_streak or 0)
        return {
            "training_bonus": training_bonus,
            "login_bonus": login_bonus,
            "combined_multiplier": 1.0 + training_bonus + login_bonus,
        }

    def get_streaks(self, user_id: int) -> dict:
        """Both streaks with multipliers, as shown on the dashboard."""
        grace = self.grace_days_for(user_id)
        training = self.get_or_create_streak(user_id, StreakType.TRAINING)
        login = self.get_or_create_streak(user_id, StreakType.LOGIN)
        result = {
            "training": training.to_dict(grace),
            "login": login.to_dict(grace),
            **self.get_multipliers(user_id),
        }
        db.session.commit()
        return result

    def get_login_log(self, user_id: int, login_date: date) -> DailyLoginLog:
        log = DailyLoginLog.query.filter_by(
            user_id=user_id, login_date=login_date
        ).first()
        if not log:
            log = DailyLoginLog(user_id=user_id, login_date=login_date)
            db.session.add(log)
            db.session.flush()
        return log

    def record_login(self, user_id: int, today: date | None = None) -> StreakRecord:
        """Count today toward the login streak without crediting EXP."""
        if today is None:
            today = local_today()
        streak = self.record_activity(user_id, StreakType.LOGIN, today)
        db.session.commit()
        return streak

    def claim_login_bonus(self, user_id: int, today: date | None = None) -> dict:
        """Advance the login streak and credit the login bonus, once per day."""
        if today is None:
            today = local_today()
        progression = ProgressionService()

        with user_mutation_lock(user_id):
            account = progression.lock_account(user_id)
            log = self.get_login_log(user_id, today)

            if log.bonus_claimed:
                streak = self.get_or_create_streak(user_id, StreakType.LOGIN)
                db.session.commit()
                return {
                    "already_claimed": True,
                    "exp_earned": 0,
                    "current_login_streak": streak.current_streak,
                    "total_exp": account.total_exp,
                    "level": account.level,
                    "level_up": False,
                    "pet": None,
                    "new_unlocks": [],
                }

            streak = self.record_activity(user_id, StreakType.LOGIN, today)
            bonus = self.login_bonus_exp(streak.current_streak)
            change = account.add_exp(bonus)
            log.bonus_claimed = True
            log.bonus_exp = change["exp_earned"]
            db.session.commit()

        logger.info(
            f"User {user_id} claimed login bonus {bonus} EXP "
            f"(streak {streak.current_streak})"
        )

        effects = progression.apply_secondary_effects(
            user_id, change["exp_earned"], change["level_up"]
        )
        return {
            "already_claimed": False,
            "exp_earned": change["exp_earned"],
            "current_login_streak": streak.current_streak,
            "total_exp": change["total_exp"],
            "level": change["new_level"],
            "level_up": change["level_up"],
            **effects,
        }

    # ============ Settings ============

    def get_settings(self, user_id: int) -> dict:
        settings = self.get_or_create_settings(user_id)
        db.session.commit()
        return settings.to_dict()

    def update_settings(self, user_id: int, data: dict) -> dict:
        """Update settings; grace days must be an integer in [0, 3]."""
        settings = self.get_or_create_settings(user_id)

        if "grace_days_allowed" in data:
            grace = data["grace_days_allowed"]
            if isinstance(grace, bool) or not isinstance(grace, int):
                raise ValidationError(
                    "grace_days_allowed must be an integer",
                    {"grace_days_allowed": grace},
                )
            if not UserSettings.MIN_GRACE_DAYS <= grace <= UserSettings.MAX_GRACE_DAYS:
                raise ValidationError(
                    f"grace_days_allowed must be between "
                    f"{UserSettings.MIN_GRACE_DAYS} and {UserSettings.MAX_GRACE_DAYS}",
                    {"grace_days_allowed": grace},
                )
            settings.grace_days_allowed = grace

        db.session.commit()
        logger.info(f"Settings updated for user {user_id}: {settings.to_dict()}")
        return settings.to_dict()
