"""Pet growth and adoption service."""

import logging

from app import db
from app.errors import ConflictError, NotFoundError, ValidationError
from app.models.pet import CompanionType, Pet
from app.models.streak import StreakRecord, StreakType
from app.services.unlock_service import UnlockService
from app.utils.dates import local_today

logger = logging.getLogger(__name__)


class PetService:
    """Adoption, activation and EXP forwarding for companion pets."""

    # ============ Reads ============

    def get_active_pet(self, user_id: int) -> Pet | None:
        return Pet.query.filter_by(user_id=user_id, is_active=True).first()

    def get_user_pet(self, user_id: int, pet_id: int) -> Pet:
        pet = Pet.query.filter_by(id=pet_id, user_id=user_id).first()
        if not pet:
            raise NotFoundError("Pet not found", {"pet_id": pet_id})
        return pet

    def last_training_date(self, user_id: int):
        streak = StreakRecord.query.filter_by(
            user_id=user_id, streak_type=StreakType.TRAINING.value
        ).first()
        return streak.last_active_date if streak else None

    def pet_view(self, pet: Pet) -> dict:
        """Pet dictionary with mood derived from the training streak."""
        return pet.to_dict(
            last_active_date=self.last_training_date(pet.user_id),
            today=local_today(),
        )

    def get_companion_types(self) -> list[dict]:
        types = (
            CompanionType.query.filter_by(is_active=True)
            .order_by(CompanionType.display_order)
            .all()
        )
        return [t.to_dict() for t in types]

    def get_barn(self, user_id: int) -> dict:
        """Everything the user owns, can adopt, and has yet to unlock."""
        unlocks = UnlockService()
        user_level = unlocks.user_level(user_id)
        available = unlocks.available_type_ids(user_id)

        pets = (
            Pet.query.filter_by(user_id=user_id)
            .order_by(Pet.created_at, Pet.id)
            .all()
        )
        owned_type_ids = {p.companion_type_id for p in pets}
        active = next((p for p in pets if p.is_active), None)

        unlocked_types = []
        locked_types = []
        for companion in (
            CompanionType.query.filter_by(is_active=True)
            .order_by(CompanionType.display_order)
            .all()
        ):
            if companion.id in owned_type_ids:
                continue
            if companion.id in available:
                unlocked_types.append(companion.to_dict())
            else:
                data = companion.to_dict()
                data["unlock_progress"] = unlocks.unlock_progress(companion, user_level)
                locked_types.append(data)

        return {
            "active_pet": self.pet_view(active) if active else None,
            "owned_pets": [self.pet_view(p) for p in pets],
            "unlocked_types": unlocked_types,
            "locked_types": locked_types,
        }

    # ============ Mutations ============

    @staticmethod
    def normalize_name(name) -> str:
        if name is None:
            return Pet.DEFAULT_NAME
        if not isinstance(name, str):
            raise ValidationError("Pet name must be a string", {"name": name})
        name = name.strip()
        if not name:
            raise ValidationError("Pet name is required", {"name": name})
        if len(name) > Pet.MAX_NAME_LENGTH:
            raise ValidationError(
                f"Pet name must be at most {Pet.MAX_NAME_LENGTH} characters",
                {"name": name},
            )
        return name

    def adopt(self, user_id: int, companion_type_id: int, name=None) -> Pet:
        """Adopt an unlocked companion type; the new pet becomes active."""
        companion = db.session.get(CompanionType, companion_type_id)
        if not companion or not companion.is_active:
            raise NotFoundError(
                "Companion type not found", {"companion_type_id": companion_type_id}
            )

        if companion.id not in UnlockService().available_type_ids(user_id):
            raise ConflictError(
                "Companion type is locked", {"companion_type_id": companion_type_id}
            )

        existing = Pet.query.filter_by(
            user_id=user_id, companion_type_id=companion.id
        ).first()
        if existing:
            raise ConflictError(
                "You already own this companion", {"pet_id": existing.id}
            )

        pet_name = self.normalize_name(name)

        Pet.query.filter_by(user_id=user_id, is_active=True).update(
            {"is_active": False}
        )
        pet = Pet(
            user_id=user_id,
            companion_type_id=companion.id,
            name=pet_name,
            total_exp=0,
            level=1,
            stage=Pet.STAGE_EGG,
            is_active=True,
        )
        db.session.add(pet)
        db.session.commit()

        logger.info(f"User {user_id} adopted {companion.code} as pet {pet.id}")
        return pet

    def activate(self, user_id: int, pet_id: int) -> Pet:
        pet = self.get_user_pet(user_id, pet_id)
        Pet.query.filter(
            Pet.user_id == user_id, Pet.is_active.is_(True), Pet.id != pet.id
        ).update({"is_active": False}, synchronize_session="fetch")
        pet.is_active = True
        db.session.commit()
        return pet

    def deactivate(self, user_id: int) -> None:
        pet = self.get_active_pet(user_id)
        if not pet:
            raise ConflictError("No active pet")
        pet.is_active = False
        db.session.commit()

    def rename(self, user_id: int, pet_id: int | None, name) -> Pet:
        """Rename a pet; ``pet_id=None`` targets the active pet."""
        if pet_id is None:
            pet = self.get_active_pet(user_id)
            if not pet:
                raise NotFoundError("No active pet")
        else:
            pet = self.get_user_pet(user_id, pet_id)

        if name is None:
            raise ValidationError("Pet name is required", {"name": None})
        pet.name = self.normalize_name(name)
        db.session.commit()
        return pet

    def add_exp_to_active_pet(self, user_id: int, delta: int) -> dict | None:
        """Apply an EXP delta to the active pet. Does not commit.

        Returns None when the user has no active pet.
        """
        if delta == 0:
            return None
        pet = (
            Pet.query.filter_by(user_id=user_id, is_active=True)
            .with_for_update()
            .first()
        )
        if not pet:
            return None

        result = pet.apply_exp(delta)
        db.session.flush()

        logger.debug(
            f"Pet {pet.id} of user {user_id}: {delta:+d} EXP, "
            f"level {result['old_level']} -> {result['new_level']}, "
            f"stage {result['old_stage']} -> {result['new_stage']}"
        )
        return result
