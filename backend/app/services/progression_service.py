"""Progression account service.

The account update is the transaction of record. Pet forwarding and unlock
evaluation run afterwards in their own transactions; their failures are
logged and never undo the credit.
"""

import logging

from sqlalchemy.exc import IntegrityError

from app import db
from app.errors import NotFoundError, ValidationError
from app.models.progression import ProgressionAccount
from app.models.user import User
from app.services.level_curve import LevelCurve
from app.services.locks import user_mutation_lock
from app.services.pet_service import PetService
from app.services.unlock_service import UnlockService

logger = logging.getLogger(__name__)


class ProgressionService:
    """Owns ProgressionAccount reads and writes."""

    def get_or_create_account(self, user_id: int) -> ProgressionAccount:
        account = ProgressionAccount.query.filter_by(user_id=user_id).first()
        if not account:
            account = self._insert_account(user_id) or (
                ProgressionAccount.query.filter_by(user_id=user_id).one()
            )
        return account

    def _insert_account(self, user_id: int) -> ProgressionAccount | None:
        """Insert a fresh account; None if a concurrent request won the race."""
        try:
            with db.session.begin_nested():
                account = ProgressionAccount(user_id=user_id, total_exp=0, level=1)
                db.session.add(account)
            return account
        except IntegrityError:
            logger.info(f"Progression account for user {user_id} created concurrently")
            return None

    def lock_account(self, user_id: int) -> ProgressionAccount:
        """Fetch the account with a row lock held until commit."""
        account = (
            ProgressionAccount.query.filter_by(user_id=user_id)
            .with_for_update()
            .first()
        )
        if not account:
            account = self._insert_account(user_id)
        if account is None:
            account = (
                ProgressionAccount.query.filter_by(user_id=user_id)
                .with_for_update()
                .one()
            )
        return account

    def apply_secondary_effects(
        self, user_id: int, exp_delta: int, level_up: bool = False
    ) -> dict:
        """Forward an EXP delta to the active pet, then re-evaluate unlocks
        if the user leveled up or the pet matured.

        Must be called after the primary transaction has committed.
        """
        effects = {"pet": None, "new_unlocks": []}
        matured = False

        if exp_delta:
            try:
                effects["pet"] = PetService().add_exp_to_active_pet(user_id, exp_delta)
                db.session.commit()
                matured = bool(effects["pet"] and effects["pet"]["matured"])
            except Exception as e:
                db.session.rollback()
                effects["pet"] = None
                logger.warning(f"Failed to forward {exp_delta} EXP to pet of user {user_id}: {e}")

        if level_up or matured:
            effects["new_unlocks"] = self.evaluate_unlocks(user_id)

        return effects

    def evaluate_unlocks(self, user_id: int) -> list[dict]:
        """Best-effort unlock evaluation in its own transaction."""
        try:
            unlocked = UnlockService().evaluate(user_id)
            db.session.commit()
            return unlocked
        except Exception as e:
            db.session.rollback()
            logger.warning(f"Unlock evaluation failed for user {user_id}: {e}")
            return []

    def set_level(self, user_id: int, level) -> dict:
        """Admin override: move the user to the start of ``level``."""
        if isinstance(level, bool) or not isinstance(level, int):
            raise ValidationError("Level must be an integer", {"level": level})
        if not LevelCurve.MIN_LEVEL <= level <= LevelCurve.MAX_LEVEL:
            raise ValidationError(
                f"Level must be between {LevelCurve.MIN_LEVEL} and {LevelCurve.MAX_LEVEL}",
                {"level": level},
            )
        if not db.session.get(User, user_id):
            raise NotFoundError("User not found", {"user_id": user_id})

        with user_mutation_lock(user_id):
            account = self.lock_account(user_id)
            old_level = account.level
            account.set_level(level)
            db.session.commit()

        logger.info(f"Admin set user {user_id} level {old_level} -> {account.level}")

        return {
            "user_id": user_id,
            "old_level": old_level,
            "level": account.level,
            "total_exp": account.total_exp,
            "new_unlocks": self.evaluate_unlocks(user_id),
        }

    def get_account(self, user_id: int) -> dict:
        account = self.get_or_create_account(user_id)
        db.session.commit()
        return account.to_dict()
