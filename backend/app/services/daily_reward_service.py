"""14-day daily reward cycle."""

import logging
from datetime import date

from app import db
from app.models.streak import DailyLoginLog
from app.services.locks import user_mutation_lock
from app.services.progression_service import ProgressionService
from app.services.streak_service import StreakService
from app.services.xp_calculator import round_half_up
from app.utils.dates import local_today

logger = logging.getLogger(__name__)

# Base EXP per cycle day (1-14); days 7 and 14 are the big rewards
REWARDS = [200, 200, 200, 200, 200, 200, 500, 200, 200, 200, 200, 200, 200, 1000]
CYCLE_LENGTH = len(REWARDS)
BIG_REWARD_DAYS = (7, 14)


class DailyRewardService:
    """One claim per calendar day, advancing through a 14-day cycle."""

    @staticmethod
    def base_reward(day: int) -> int:
        return REWARDS[day - 1]

    def _claimed_logs(self, user_id: int):
        return DailyLoginLog.query.filter_by(user_id=user_id, reward_claimed=True)

    def current_day(self, user_id: int) -> int:
        """Day to be claimed next: one past the last claim, wrapping after 14."""
        last = (
            self._claimed_logs(user_id)
            .order_by(DailyLoginLog.login_date.desc())
            .first()
        )
        if not last or not last.reward_day or last.reward_day >= CYCLE_LENGTH:
            return 1
        return last.reward_day + 1

    def current_cycle_claims(self, user_id: int) -> list[DailyLoginLog]:
        """Claims made since the last completed cycle."""
        last_completion = (
            self._claimed_logs(user_id)
            .filter(DailyLoginLog.reward_day == CYCLE_LENGTH)
            .order_by(DailyLoginLog.login_date.desc())
            .first()
        )
        query = self._claimed_logs(user_id)
        if last_completion:
            query = query.filter(DailyLoginLog.login_date > last_completion.login_date)
        return query.order_by(DailyLoginLog.reward_day).all()

    def get_status(self, user_id: int, today: date | None = None) -> dict:
        if today is None:
            today = local_today()

        claims = {log.reward_day: log for log in self.current_cycle_claims(user_id)}
        today_log = DailyLoginLog.query.filter_by(
            user_id=user_id, login_date=today
        ).first()

        days = []
        for day in range(1, CYCLE_LENGTH + 1):
            claim = claims.get(day)
            days.append(
                {
                    "day": day,
                    "claimed": claim is not None,
                    "claimed_date": claim.login_date.isoformat() if claim else None,
                    "exp": self.base_reward(day),
                    "is_big_reward": day in BIG_REWARD_DAYS,
                }
            )

        return {
            "current_day": self.current_day(user_id),
            "today_claimed": bool(today_log and today_log.reward_claimed),
            "days": days,
        }

    def claim(self, user_id: int, today: date | None = None) -> dict:
        """Claim today's reward, boosted by the streak multiplier."""
        if today is None:
            today = local_today()
        progression = ProgressionService()
        streaks = StreakService()

        with user_mutation_lock(user_id):
            account = progression.lock_account(user_id)
            log = streaks.get_login_log(user_id, today)

            if log.reward_claimed:
                db.session.commit()
                return {
                    "already_claimed": True,
                    "reward_day": 0,
                    "exp_earned": 0,
                    "total_exp": account.total_exp,
                    "level": account.level,
                    "level_up": False,
                    "pet": None,
                    "new_unlocks": [],
                }

            day = self.current_day(user_id)
            multiplier = streaks.get_multipliers(user_id)["combined_multiplier"]
            reward = round_half_up(self.base_reward(day) * multiplier)

            change = account.add_exp(reward)
            log.reward_claimed = True
            log.reward_day = day
            log.reward_exp = change["exp_earned"]
            db.session.commit()

        logger.info(
            f"User {user_id} claimed daily reward day {day}: "
            f"{reward} EXP (x{multiplier:.2f})"
        )

        effects = progression.apply_secondary_effects(
            user_id, change["exp_earned"], change["level_up"]
        )
        return {
            "already_claimed": False,
            "reward_day": day,
            "exp_earned": change["exp_earned"],
            "total_exp": change["total_exp"],
            "level": change["new_level"],
            "level_up": change["level_up"],
            **effects,
        }
