"""Database models."""

from app.models.pet import CompanionType, Pet, UnlockType, UserUnlock
from app.models.progression import ProgressionAccount
from app.models.streak import DailyLoginLog, StreakRecord, StreakType, UserSettings
from app.models.user import User
from app.models.workout import (
    CustomExercise,
    Exercise,
    TrainingRecord,
    TrainingRecordExercise,
    TrainingSet,
)

__all__ = [
    "User",
    "ProgressionAccount",
    "StreakType",
    "StreakRecord",
    "UserSettings",
    "DailyLoginLog",
    # Workout
    "Exercise",
    "CustomExercise",
    "TrainingRecord",
    "TrainingRecordExercise",
    "TrainingSet",
    # Pets
    "UnlockType",
    "CompanionType",
    "Pet",
    "UserUnlock",
]
