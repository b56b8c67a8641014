"""Companion type unlock rules."""

import logging

from sqlalchemy.exc import IntegrityError

from app import db
from app.models.pet import CompanionType, Pet, UnlockType, UserUnlock
from app.models.progression import ProgressionAccount

logger = logging.getLogger(__name__)


class UnlockService:
    """Evaluates unlock predicates and records unlocks exactly once."""

    def unlocked_type_ids(self, user_id: int) -> set[int]:
        rows = (
            db.session.query(UserUnlock.companion_type_id)
            .filter(UserUnlock.user_id == user_id)
            .all()
        )
        return {row[0] for row in rows}

    def available_type_ids(self, user_id: int) -> set[int]:
        """Types the user may adopt: starters plus recorded unlocks."""
        starters = (
            db.session.query(CompanionType.id)
            .filter(CompanionType.is_starter.is_(True), CompanionType.is_active.is_(True))
            .all()
        )
        return {row[0] for row in starters} | self.unlocked_type_ids(user_id)

    def user_level(self, user_id: int) -> int:
        account = ProgressionAccount.query.filter_by(user_id=user_id).first()
        return account.level if account else 1

    def mature_codes(self, user_id: int) -> set[str]:
        """Codes of companion types for which the user owns a mature pet."""
        rows = (
            db.session.query(CompanionType.code)
            .join(Pet, Pet.companion_type_id == CompanionType.id)
            .filter(Pet.user_id == user_id, Pet.stage >= Pet.STAGE_MATURE)
            .all()
        )
        return {row[0] for row in rows}

    @staticmethod
    def is_satisfied(companion: CompanionType, user_level: int, mature_codes: set[str]) -> bool:
        if companion.unlock_type == UnlockType.USER_LEVEL.value:
            return user_level >= (companion.unlock_level or 1)
        if companion.unlock_type == UnlockType.PET_GROWTH.value:
            return (companion.unlock_companion_code or "") in mature_codes
        if companion.unlock_type == UnlockType.DEFAULT.value:
            return True
        return False

    @staticmethod
    def unlock_progress(companion: CompanionType, user_level: int) -> str:
        """Human readable hint for a locked companion type."""
        if companion.unlock_type == UnlockType.USER_LEVEL.value:
            required = companion.unlock_level or 1
            if user_level >= required:
                return "Ready to unlock"
            return f"Unlock at user Lv.{required} (current Lv.{user_level})"
        if companion.unlock_type == UnlockType.PET_GROWTH.value:
            return (
                f"Raise {companion.unlock_companion_code} to mature stage "
                f"(Lv.{Pet.MATURE_LEVEL}+) to unlock"
            )
        return "Ready to unlock"

    def evaluate(self, user_id: int) -> list[dict]:
        """Record every newly satisfied unlock; returns the new ones.

        Idempotent: a concurrent insert of the same unlock is absorbed by the
        unique constraint. Does not commit.
        """
        already = self.unlocked_type_ids(user_id)
        level = self.user_level(user_id)
        mature = self.mature_codes(user_id)

        candidates = (
            CompanionType.query.filter_by(is_active=True)
            .order_by(CompanionType.display_order)
            .all()
        )

        newly_unlocked = []
        for companion in candidates:
            if companion.id in already or companion.is_starter:
                continue
            if not self.is_satisfied(companion, level, mature):
                continue

            try:
                with db.session.begin_nested():
                    db.session.add(
                        UserUnlock(user_id=user_id, companion_type_id=companion.id)
                    )
            except IntegrityError:
                logger.info(
                    f"Unlock {companion.code} already recorded for user {user_id}"
                )
                continue

            newly_unlocked.append({"id": companion.id, "code": companion.code, "name": companion.name})
            logger.info(f"User {user_id} unlocked companion type {companion.code}")

        return newly_unlocked
