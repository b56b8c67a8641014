"""Companion type, pet and unlock models."""

from datetime import date, datetime
from enum import Enum

from app import db
from app.services.level_curve import LevelCurve


class UnlockType(str, Enum):
    """How a companion type becomes available."""

    DEFAULT = "default"
    USER_LEVEL = "user_level"
    PET_GROWTH = "pet_growth"


class CompanionType(db.Model):
    """Companion species a user can adopt."""

    __tablename__ = "companion_types"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(50), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(255), nullable=True)

    # Image per growth stage
    image_egg = db.Column(db.String(255), nullable=True)
    image_juvenile = db.Column(db.String(255), nullable=True)
    image_mature = db.Column(db.String(255), nullable=True)
    background_image = db.Column(db.String(255), nullable=True)

    display_order = db.Column(db.Integer, default=0, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    # Unlock rule
    unlock_type = db.Column(
        db.String(20), default=UnlockType.DEFAULT.value, nullable=False
    )
    unlock_level = db.Column(db.Integer, nullable=True)
    unlock_companion_code = db.Column(db.String(50), nullable=True)
    is_starter = db.Column(db.Boolean, default=False, nullable=False)

    def image_for_stage(self, stage: int) -> str | None:
        return {
            1: self.image_egg,
            2: self.image_juvenile,
            3: self.image_mature,
        }.get(stage)

    def to_dict(self) -> dict:
        """Convert companion type to dictionary."""
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "description": self.description,
            "image_egg": self.image_egg,
            "image_juvenile": self.image_juvenile,
            "image_mature": self.image_mature,
            "background_image": self.background_image,
            "display_order": self.display_order,
            "unlock_type": self.unlock_type,
            "unlock_level": self.unlock_level,
            "unlock_companion_code": self.unlock_companion_code,
            "is_starter": self.is_starter,
        }

    def __repr__(self) -> str:
        return f"<CompanionType {self.code}>"


class Pet(db.Model):
    """A user's companion. Its EXP mirrors the user's training EXP."""

    __tablename__ = "pets"

    DEFAULT_NAME = "Partner"
    MAX_NAME_LENGTH = 50

    # Stage thresholds by pet level
    JUVENILE_LEVEL = 11
    MATURE_LEVEL = 31

    STAGE_EGG = 1
    STAGE_JUVENILE = 2
    STAGE_MATURE = 3
    STAGE_LABELS = {1: "Egg", 2: "Juvenile", 3: "Mature"}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    companion_type_id = db.Column(
        db.Integer,
        db.ForeignKey("companion_types.id", ondelete="CASCADE"),
        nullable=False,
    )
    name = db.Column(db.String(50), default=DEFAULT_NAME, nullable=False)
    total_exp = db.Column(db.BigInteger, default=0, nullable=False)
    level = db.Column(db.Integer, default=1, nullable=False)
    stage = db.Column(db.Integer, default=STAGE_EGG, nullable=False)
    is_active = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    companion_type = db.relationship("CompanionType")

    __table_args__ = (
        db.UniqueConstraint(
            "user_id", "companion_type_id", name="unique_user_companion_type"
        ),
    )

    @classmethod
    def stage_of(cls, level: int) -> int:
        if level >= cls.MATURE_LEVEL:
            return cls.STAGE_MATURE
        if level >= cls.JUVENILE_LEVEL:
            return cls.STAGE_JUVENILE
        return cls.STAGE_EGG

    @staticmethod
    def mood_score(last_active_date: date | None, today: date) -> int:
        """Mood derived from days since the last training day."""
        if last_active_date is None:
            return 50
        days = (today - last_active_date).days
        if days <= 1:
            return 100
        if days == 2:
            return 80
        if days == 3:
            return 60
        if days <= 7:
            return 40
        return 20

    @staticmethod
    def mood_label(score: int) -> str:
        if score >= 100:
            return "Excellent"
        if score >= 80:
            return "Cheerful"
        if score >= 60:
            return "Okay"
        if score >= 50:
            return "Sleepy"
        if score >= 40:
            return "Lonely"
        return "Weak"

    @property
    def is_mature(self) -> bool:
        return (self.stage or self.STAGE_EGG) >= self.STAGE_MATURE

    def apply_exp(self, delta: int) -> dict:
        """Add (or subtract) EXP, floored at zero, and recompute level/stage.

        ``matured`` is true only on the change that crosses into the mature
        stage.
        """
        old_level = self.level or 1
        old_stage = self.stage or self.STAGE_EGG

        self.total_exp = max(0, (self.total_exp or 0) + delta)
        self.level = LevelCurve.level_from_exp(self.total_exp)
        self.stage = self.stage_of(self.level)

        return {
            "pet_id": self.id,
            "exp_delta": delta,
            "total_exp": self.total_exp,
            "old_level": old_level,
            "new_level": self.level,
            "level_up": self.level > old_level,
            "old_stage": old_stage,
            "new_stage": self.stage,
            "matured": self.stage >= self.STAGE_MATURE
            and old_stage < self.STAGE_MATURE,
        }

    def to_dict(self, last_active_date: date | None = None, today: date | None = None) -> dict:
        """Convert pet to dictionary; mood is included when ``today`` is given."""
        companion = self.companion_type
        data = {
            "id": self.id,
            "name": self.name,
            "companion_type_id": self.companion_type_id,
            "companion_code": companion.code if companion else None,
            "companion_name": companion.name if companion else None,
            "total_exp": self.total_exp,
            "level": self.level,
            "exp_to_next_level": LevelCurve.exp_to_next_level(self.level),
            "level_progress": LevelCurve.level_progress(self.total_exp, self.level),
            "stage": self.stage,
            "stage_label": self.STAGE_LABELS.get(self.stage, "Egg"),
            "image_url": companion.image_for_stage(self.stage) if companion else None,
            "background_image": companion.background_image if companion else None,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if today is not None:
            score = self.mood_score(last_active_date, today)
            data["mood_score"] = score
            data["mood_label"] = self.mood_label(score)
        return data

    def __repr__(self) -> str:
        return f"<Pet {self.id} user={self.user_id} lv={self.level}>"


class UserUnlock(db.Model):
    """Companion types a user has unlocked. Rows are never deleted."""

    __tablename__ = "user_unlocks"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    companion_type_id = db.Column(
        db.Integer,
        db.ForeignKey("companion_types.id", ondelete="CASCADE"),
        nullable=False,
    )
    unlocked_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    companion_type = db.relationship("CompanionType")

    __table_args__ = (
        db.UniqueConstraint(
            "user_id", "companion_type_id", name="unique_user_unlock"
        ),
    )

    def to_dict(self) -> dict:
        return {
            "companion_type_id": self.companion_type_id,
            "code": self.companion_type.code if self.companion_type else None,
            "unlocked_at": self.unlocked_at.isoformat() if self.unlocked_at else None,
        }


# Default companion types loaded by `flask seed companions`
COMPANION_TYPES = [
    {
        "code": "pup",
        "name": "Pup",
        "description": "A loyal training partner.",
        "display_order": 1,
        "unlock_type": UnlockType.DEFAULT.value,
        "is_starter": True,
    },
    {
        "code": "kitten",
        "name": "Kitten",
        "description": "Quiet, curious and quick on its feet.",
        "display_order": 2,
        "unlock_type": UnlockType.DEFAULT.value,
        "is_starter": True,
    },
    {
        "code": "hamster",
        "name": "Hamster",
        "description": "Never skips cardio.",
        "display_order": 3,
        "unlock_type": UnlockType.DEFAULT.value,
        "is_starter": False,
    },
    {
        "code": "fox",
        "name": "Fox",
        "description": "Shows up for trainees who keep showing up.",
        "display_order": 4,
        "unlock_type": UnlockType.USER_LEVEL.value,
        "unlock_level": 10,
    },
    {
        "code": "bear",
        "name": "Bear",
        "description": "Heavy lifter.",
        "display_order": 5,
        "unlock_type": UnlockType.USER_LEVEL.value,
        "unlock_level": 30,
    },
    {
        "code": "wolf",
        "name": "Wolf",
        "description": "Joins once your pup is fully grown.",
        "display_order": 6,
        "unlock_type": UnlockType.PET_GROWTH.value,
        "unlock_companion_code": "pup",
    },
    {
        "code": "lion",
        "name": "Lion",
        "description": "Joins once your kitten is fully grown.",
        "display_order": 7,
        "unlock_type": UnlockType.PET_GROWTH.value,
        "unlock_companion_code": "kitten",
    },
]

for _companion in COMPANION_TYPES:
    _companion.setdefault("image_egg", f"/images/pets/{_companion['code']}_egg.png")
    _companion.setdefault(
        "image_juvenile", f"/images/pets/{_companion['code']}_juvenile.png"
    )
    _companion.setdefault(
        "image_mature", f"/images/pets/{_companion['code']}_mature.png"
    )
