"""Tests for streak tracking, login bonus and settings."""

from datetime import date, timedelta

import pytest

from app import db
from app.models import DailyLoginLog, ProgressionAccount, StreakRecord, StreakType, TrainingRecord
from app.services.streak_service import StreakService
from app.utils.dates import local_today

DAY1 = date(2024, 5, 1)


def _day(n: int) -> date:
    return DAY1 + timedelta(days=n - 1)


def _streak() -> StreakRecord:
    return StreakRecord(
        streak_type=StreakType.TRAINING.value,
        current_streak=0,
        best_streak=0,
        grace_days_used=0,
    )


class TestAdvanceStreak:
    """Incremental gap rule."""

    def test_first_activity(self):
        streak = _streak()
        assert StreakService.advance_streak(streak, _day(1), grace_days=1) is True
        assert streak.current_streak == 1
        assert streak.best_streak == 1
        assert streak.last_active_date == _day(1)

    def test_consecutive_days(self):
        streak = _streak()
        for n in range(1, 4):
            StreakService.advance_streak(streak, _day(n), grace_days=1)
        assert streak.current_streak == 3
        assert streak.grace_days_used == 0

    def test_same_day_is_idempotent(self):
        streak = _streak()
        StreakService.advance_streak(streak, _day(1), grace_days=1)
        assert StreakService.advance_streak(streak, _day(1), grace_days=1) is False
        assert streak.current_streak == 1

    def test_grace_day_preserves_streak(self):
        streak = _streak()
        StreakService.advance_streak(streak, _day(1), grace_days=1)
        StreakService.advance_streak(streak, _day(3), grace_days=1)
        assert streak.current_streak == 2
        assert streak.grace_days_used == 1

    def test_gap_beyond_grace_resets(self):
        streak = _streak()
        StreakService.advance_streak(streak, _day(1), grace_days=1)
        StreakService.advance_streak(streak, _day(4), grace_days=1)
        assert streak.current_streak == 1
        assert streak.grace_days_used == 0

    def test_zero_grace_resets_on_single_missed_day(self):
        streak = _streak()
        StreakService.advance_streak(streak, _day(4), grace_days=0)
        StreakService.advance_streak(streak, _day(5), grace_days=0)
        StreakService.advance_streak(streak, _day(7), grace_days=0)
        assert streak.current_streak == 1
        assert streak.best_streak == 2

    def test_best_never_below_current(self):
        streak = _streak()
        for n in (1, 2, 3, 10, 11):
            StreakService.advance_streak(streak, _day(n), grace_days=1)
            assert streak.best_streak >= streak.current_streak
        assert streak.best_streak == 3
        assert streak.current_streak == 2


class TestStreakFromHistory:
    """From-scratch derivation used after deletions."""

    def test_empty_history(self):
        state = StreakService.streak_from_history([], _day(5), 1, previous_best=4)
        assert state["current_streak"] == 0
        assert state["best_streak"] == 4
        assert state["last_active_date"] is None

    def test_consecutive_run(self):
        dates = [_day(3), _day(4), _day(5)]
        state = StreakService.streak_from_history(dates, _day(5), 1)
        assert state["current_streak"] == 3
        assert state["last_active_date"] == _day(5)

    def test_run_with_grace_gap(self):
        dates = [_day(1), _day(3), _day(4)]
        state = StreakService.streak_from_history(dates, _day(4), 1)
        assert state["current_streak"] == 3

    def test_run_broken_by_large_gap(self):
        dates = [_day(1), _day(2), _day(6), _day(7)]
        state = StreakService.streak_from_history(dates, _day(7), 1)
        assert state["current_streak"] == 2

    def test_stale_history_is_zero(self):
        dates = [_day(1), _day(2)]
        state = StreakService.streak_from_history(dates, _day(10), 1, previous_best=2)
        assert state["current_streak"] == 0
        assert state["best_streak"] == 2
        assert state["last_active_date"] == _day(2)

    def test_grace_used_from_most_recent_pair(self):
        dates = [_day(1), _day(3)]
        state = StreakService.streak_from_history(dates, _day(3), 2)
        assert state["grace_days_used"] == 1

    def test_duplicates_ignored(self):
        dates = [_day(2), _day(2), _day(3)]
        state = StreakService.streak_from_history(dates, _day(3), 0)
        assert state["current_streak"] == 2


class TestBonuses:
    @pytest.mark.parametrize(
        "streak,expected", [(0, 0.0), (1, 0.14), (5, 0.70), (7, 0.98), (8, 1.0), (30, 1.0)]
    )
    def test_training_bonus(self, streak, expected):
        assert StreakService.training_bonus(streak) == pytest.approx(expected)

    @pytest.mark.parametrize("streak,expected", [(0, 0.0), (2, 0.14), (7, 0.49), (8, 0.5)])
    def test_login_bonus(self, streak, expected):
        assert StreakService.login_bonus(streak) == pytest.approx(expected)

    @pytest.mark.parametrize(
        "streak,expected", [(0, 100), (1, 110), (6, 160), (7, 220), (10, 250), (14, 300)]
    )
    def test_login_bonus_exp(self, streak, expected):
        assert StreakService.login_bonus_exp(streak) == expected


class TestStreakService:
    """Persistence paths inside the app context."""

    def test_streaks_created_lazily(self, app, test_user):
        service = StreakService()
        streak = service.get_or_create_streak(test_user["id"], StreakType.LOGIN)
        assert streak.current_streak == 0
        assert streak.best_streak == 0
        assert streak.last_active_date is None

    def test_login_backfill_is_ignored(self, app, test_user):
        service = StreakService()
        today = local_today()
        service.record_activity(test_user["id"], StreakType.LOGIN, today)
        service.record_activity(
            test_user["id"], StreakType.LOGIN, today - timedelta(days=3)
        )
        streak = service.get_or_create_streak(test_user["id"], StreakType.LOGIN)
        assert streak.current_streak == 1
        assert streak.last_active_date == today

    def test_training_backfill_recomputes(self, app, test_user):
        service = StreakService()
        today = local_today()
        user_id = test_user["id"]

        for offset in (0, 2):
            db.session.add(
                TrainingRecord(user_id=user_id, record_date=today - timedelta(days=offset))
            )
        db.session.flush()
        service.record_activity(user_id, StreakType.TRAINING, today)

        db.session.add(TrainingRecord(user_id=user_id, record_date=today - timedelta(days=1)))
        db.session.flush()
        streak = service.record_activity(
            user_id, StreakType.TRAINING, today - timedelta(days=1)
        )
        assert streak.current_streak == 3
        assert streak.last_active_date == today

    def test_multipliers(self, app, test_user):
        service = StreakService()
        user_id = test_user["id"]
        service.get_or_create_streak(user_id, StreakType.TRAINING).current_streak = 3
        service.get_or_create_streak(user_id, StreakType.LOGIN).current_streak = 2
        result = service.get_multipliers(user_id)
        assert result["training_bonus"] == pytest.approx(0.42)
        assert result["login_bonus"] == pytest.approx(0.14)
        assert result["combined_multiplier"] == pytest.approx(1.56)


class TestStreakAPI:
    """Test cases for streak endpoints."""

    def test_get_streaks(self, auth_client):
        response = auth_client.get("/api/v1/streak")
        assert response.status_code == 200
        data = response.json["data"]
        assert data["training"]["current"] == 0
        assert data["login"]["current"] == 0
        assert data["training"]["grace_days_allowed"] == 1
        assert data["combined_multiplier"] == 1.0

    def test_record_login(self, auth_client):
        response = auth_client.post("/api/v1/streak/record-login")
        assert response.status_code == 200
        assert response.json["data"]["login_streak"]["current"] == 1

        # Same day twice does not double count
        response = auth_client.post("/api/v1/streak/record-login")
        assert response.json["data"]["login_streak"]["current"] == 1

    def test_claim_login_bonus_once_per_day(self, auth_client, test_user):
        response = auth_client.post("/api/v1/streak/login-bonus")
        assert response.status_code == 200
        data = response.json["data"]
        assert data["already_claimed"] is False
        # streak 1: 100 + 10
        assert data["exp_earned"] == 110
        assert data["current_login_streak"] == 1
        assert data["total_exp"] == 110

        response = auth_client.post("/api/v1/streak/login-bonus")
        data = response.json["data"]
        assert data["already_claimed"] is True
        assert data["exp_earned"] == 0
        assert data["total_exp"] == 110

        db.session.expire_all()
        account = ProgressionAccount.query.filter_by(user_id=test_user["id"]).first()
        assert account.total_exp == 110
        log = DailyLoginLog.query.filter_by(user_id=test_user["id"]).one()
        assert log.bonus_claimed is True
        assert log.bonus_exp == 110


class TestSettingsAPI:
    """Test cases for settings endpoints."""

    def test_default_settings(self, auth_client):
        response = auth_client.get("/api/v1/settings")
        assert response.status_code == 200
        assert response.json["data"]["settings"]["grace_days_allowed"] == 1

    def test_update_grace_days(self, auth_client):
        response = auth_client.post("/api/v1/settings", json={"grace_days_allowed": 3})
        assert response.status_code == 200
        assert response.json["data"]["settings"]["grace_days_allowed"] == 3

        response = auth_client.get("/api/v1/settings")
        assert response.json["data"]["settings"]["grace_days_allowed"] == 3

    @pytest.mark.parametrize("value", [-1, 4, "2", 1.5, True])
    def test_invalid_grace_days_rejected(self, auth_client, value):
        response = auth_client.post("/api/v1/settings", json={"grace_days_allowed": value})
        assert response.status_code == 400
        assert response.json["error"]["code"] == "VALIDATION_ERROR"


class TestUserStatsAPI:
    def test_new_user_stats(self, auth_client):
        response = auth_client.get("/api/v1/user/stats")

        assert response.status_code == 200
        data = response.json["data"]
        assert data["total_exp"] == 0
        assert data["level"] == 1
        assert data["exp_in_level"] == 0
        assert data["exp_to_next_level"] == 220
        assert data["training_streak"]["current"] == 0
        assert data["login_streak"]["current"] == 0
        assert data["combined_multiplier"] == pytest.approx(1.0)

    def test_stats_reflect_progress(self, auth_client, test_user):
        account = ProgressionAccount.query.filter_by(user_id=test_user["id"]).first()
        account.add_exp(330)
        db.session.add(
            StreakRecord(
                user_id=test_user["id"],
                streak_type=StreakType.LOGIN.value,
                current_streak=2,
                best_streak=4,
                last_active_date=local_today(),
            )
        )
        db.session.commit()

        data = auth_client.get("/api/v1/user/stats").json["data"]

        assert data["level"] == 2
        assert data["exp_in_level"] == 110
        assert data["level_progress"] == pytest.approx(110 / 300)
        assert data["login_streak"]["best"] == 4
        assert data["combined_multiplier"] == pytest.approx(1.14)
