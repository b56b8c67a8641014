"""Tests for progression account creation and locking."""

from app import db
from app.models import ProgressionAccount, User
from app.services.progression_service import ProgressionService


def _user_without_account(login_id: str = "legacy_user") -> int:
    user = User(login_id=login_id, display_name="Legacy")
    db.session.add(user)
    db.session.commit()
    return user.id


class TestAccountCreation:
    def test_lock_account_creates_missing_row(self, app):
        user_id = _user_without_account()

        account = ProgressionService().lock_account(user_id)
        db.session.commit()

        assert account.total_exp == 0
        assert account.level == 1
        assert ProgressionAccount.query.filter_by(user_id=user_id).count() == 1

    def test_get_or_create_is_idempotent(self, app):
        user_id = _user_without_account()
        service = ProgressionService()

        first = service.get_or_create_account(user_id)
        db.session.commit()
        second = service.get_or_create_account(user_id)

        assert first.id == second.id
        assert ProgressionAccount.query.filter_by(user_id=user_id).count() == 1

    def test_duplicate_insert_yields_to_existing_row(self, app, test_user):
        service = ProgressionService()
        account = ProgressionAccount.query.filter_by(user_id=test_user["id"]).first()
        account.add_exp(500)
        db.session.commit()

        # A concurrent request already created the row
        assert service._insert_account(test_user["id"]) is None

        locked = service.lock_account(test_user["id"])
        assert locked.total_exp == 500
        db.session.commit()
        assert ProgressionAccount.query.filter_by(user_id=test_user["id"]).count() == 1
