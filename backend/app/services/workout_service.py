"""Workout logging service: the path from logged sets to credited EXP."""

import logging

from flask import current_app
from sqlalchemy import func

from app import db
from app.errors import ConflictError, NotFoundError, ValidationError
from app.models.streak import StreakType
from app.models.workout import (
    CustomExercise,
    Exercise,
    TrainingRecord,
    TrainingRecordExercise,
    TrainingSet,
)
from app.services.level_curve import LevelCurve
from app.services.locks import user_mutation_lock
from app.services.progression_service import ProgressionService
from app.services.streak_service import StreakService
from app.services.xp_calculator import XPCalculator
from app.utils.dates import local_today, parse_date

logger = logging.getLogger(__name__)


class WorkoutService:
    """Validates workout batches, persists them and credits EXP."""

    MAX_CUSTOM_NAME_LENGTH = 100
    DEFAULT_CUSTOM_MUSCLE = "other"

    def __init__(self):
        self.calculator = XPCalculator.from_config(current_app.config)
        self.progression = ProgressionService()
        self.streaks = StreakService()

    # ============ Exercises ============

    def get_exercises(self, user_id: int) -> list[dict]:
        """Master catalog followed by the user's custom exercises."""
        exercises = (
            Exercise.query.filter_by(is_active=True)
            .order_by(Exercise.muscle, Exercise.id)
            .all()
        )
        custom = (
            CustomExercise.query.filter_by(user_id=user_id)
            .order_by(CustomExercise.id)
            .all()
        )
        return [e.to_dict() for e in exercises] + [c.to_dict() for c in custom]

    def create_custom_exercise(self, user_id: int, data: dict) -> CustomExercise:
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Exercise name is required", {"name": name})
        name = name.strip()
        if len(name) > self.MAX_CUSTOM_NAME_LENGTH:
            raise ValidationError(
                f"Exercise name must be at most {self.MAX_CUSTOM_NAME_LENGTH} characters",
                {"name": name},
            )

        muscle = data.get("muscle") or self.DEFAULT_CUSTOM_MUSCLE
        if not isinstance(muscle, str):
            raise ValidationError("Muscle must be a string", {"muscle": muscle})

        if CustomExercise.query.filter_by(user_id=user_id, name=name).first():
            raise ConflictError("Custom exercise already exists", {"name": name})

        exercise = CustomExercise(user_id=user_id, name=name, muscle=muscle.strip())
        db.session.add(exercise)
        db.session.commit()
        return exercise

    def delete_custom_exercise(self, user_id: int, exercise_id: int) -> None:
        exercise = CustomExercise.query.filter_by(
            id=exercise_id, user_id=user_id
        ).first()
        if not exercise:
            raise NotFoundError(
                "Custom exercise not found", {"exercise_id": exercise_id}
            )

        in_use = TrainingRecordExercise.query.filter_by(
            custom_exercise_id=exercise.id
        ).first()
        if in_use:
            raise ConflictError(
                "Custom exercise is used by a training record",
                {"exercise_id": exercise_id},
            )

        db.session.delete(exercise)
        db.session.commit()

    # ============ Records ============

    def get_records(self, user_id: int, date_value: str | None = None) -> list[dict]:
        query = TrainingRecord.query.filter_by(user_id=user_id)
        if date_value:
            query = query.filter_by(record_date=parse_date(date_value))
        records = query.order_by(TrainingRecord.record_date.desc()).all()
        return [r.to_dict() for r in records]

    def _resolve_exercise(self, user_id: int, entry) -> tuple:
        """Return (exercise, is_custom, coefficient) for a payload entry."""
        if not isinstance(entry, dict):
            raise ValidationError("Each exercise must be an object")

        exercise_id = entry.get("exercise_id")
        if isinstance(exercise_id, bool) or not isinstance(exercise_id, int):
            raise ValidationError(
                "exercise_id must be an integer", {"exercise_id": exercise_id}
            )
        is_custom = entry.get("is_custom", False)
        if not isinstance(is_custom, bool):
            raise ValidationError(
                "is_custom must be a boolean", {"is_custom": is_custom}
            )

        if is_custom:
            exercise = CustomExercise.query.filter_by(
                id=exercise_id, user_id=user_id
            ).first()
            difficulty = None
        else:
            exercise = db.session.get(Exercise, exercise_id)
            if exercise and not exercise.is_active:
                exercise = None
            difficulty = exercise.difficulty if exercise else None

        if not exercise:
            raise NotFoundError(
                "Exercise not found",
                {"exercise_id": exercise_id, "is_custom": is_custom},
            )

        return (
            exercise,
            is_custom,
            XPCalculator.difficulty_coefficient(difficulty, is_custom),
        )

    def _parse_batch(self, user_id: int, data: dict) -> tuple:
        """Validate the whole payload before anything is written."""
        record_date = parse_date(data.get("date"))
        today = local_today()
        if record_date > today:
            raise ValidationError(
                "Cannot log a workout for a future date",
                {"date": record_date.isoformat()},
            )

        entries = data.get("exercises")
        if not isinstance(entries, list) or not entries:
            raise ValidationError("At least one exercise is required")

        batch = []
        for entry in entries:
            exercise, is_custom, coefficient = self._resolve_exercise(user_id, entry)
            raw_sets = entry.get("sets") or []
            if not isinstance(raw_sets, list):
                raise ValidationError("sets must be a list")

            sets = []
            for raw in raw_sets:
                if not isinstance(raw, dict):
                    raise ValidationError("Each set must be an object")
                sets.append(XPCalculator.validate_set(raw.get("weight"), raw.get("reps")))
            batch.append((exercise, is_custom, coefficient, sets))

        return record_date, today, batch

    def _append_exercise(self, record: TrainingRecord, exercise, is_custom: bool, sets) -> None:
        """Add sets to the record, reusing the exercise row if already present."""
        for record_exercise in record.exercises:
            if is_custom and record_exercise.custom_exercise_id == exercise.id:
                break
            if not is_custom and record_exercise.exercise_id == exercise.id:
                break
        else:
            next_order = max((e.order_index for e in record.exercises), default=-1) + 1
            record_exercise = TrainingRecordExercise(
                exercise_id=None if is_custom else exercise.id,
                custom_exercise_id=exercise.id if is_custom else None,
                order_index=next_order,
            )
            record.exercises.append(record_exercise)

        next_set = max((s.set_number for s in record_exercise.sets), default=0) + 1
        for offset, (weight, reps) in enumerate(sets):
            record_exercise.sets.append(
                TrainingSet(set_number=next_set + offset, weight=weight, reps=reps)
            )

    def already_credited(self, user_id: int, record_date) -> int:
        """EXP already credited for (user, date)."""
        return (
            db.session.query(func.coalesce(func.sum(TrainingRecord.exp_earned), 0))
            .filter(
                TrainingRecord.user_id == user_id,
                TrainingRecord.record_date == record_date,
            )
            .scalar()
        )

    def save_workout(self, user_id: int, data: dict) -> dict:
        """Log a batch of sets for a date and credit the resulting EXP.

        Saving to a date that already has a record appends to it. The
        account, the record and the training streak commit together; pet
        forwarding and unlock evaluation follow as secondary effects.
        """
        record_date, today, batch = self._parse_batch(user_id, data)

        with user_mutation_lock(user_id):
            account = self.progression.lock_account(user_id)
            multipliers = self.streaks.get_multipliers(user_id)

            breakdown = self.calculator.calculate(
                exercises=[(coefficient, sets) for _, _, coefficient, sets in batch],
                record_date=record_date,
                today=today,
                level=account.level,
                training_bonus=multipliers["training_bonus"],
                login_bonus=multipliers["login_bonus"],
                already_credited=self.already_credited(user_id, record_date),
            )
            credited = breakdown["credited_exp"]

            record = TrainingRecord.query.filter_by(
                user_id=user_id, record_date=record_date
            ).first()
            if not record:
                record = TrainingRecord(
                    user_id=user_id, record_date=record_date, exp_earned=0
                )
                db.session.add(record)

            for exercise, is_custom, _, sets in batch:
                self._append_exercise(record, exercise, is_custom, sets)

            record.exp_earned = (record.exp_earned or 0) + credited
            change = account.add_exp(credited)
            db.session.flush()

            self.streaks.record_activity(user_id, StreakType.TRAINING, record_date)
            db.session.commit()

        logger.info(
            f"User {user_id} logged workout for {record_date}: "
            f"batch={breakdown['batch_exp']} boosted={breakdown['boosted_exp']} "
            f"credited={credited}"
        )

        effects = {"pet": None, "new_unlocks": []}
        if credited > 0:
            effects = self.progression.apply_secondary_effects(
                user_id, credited, change["level_up"]
            )

        result = record.to_dict()
        result.update(
            {
                "exp_gained": credited,
                "new_level": change["new_level"] if change["level_up"] else None,
                "total_exp": change["total_exp"],
                "current_level": change["new_level"],
                "level_progress": LevelCurve.level_progress(
                    change["total_exp"], change["new_level"]
                ),
                "breakdown": breakdown,
                **effects,
            }
        )
        return result

    def delete_record(self, user_id: int, record_id: int) -> dict:
        """Delete a record and take back the EXP it credited."""
        with user_mutation_lock(user_id):
            record = TrainingRecord.query.filter_by(
                id=record_id, user_id=user_id
            ).first()
            if not record:
                raise NotFoundError("Record not found", {"record_id": record_id})

            account = self.progression.lock_account(user_id)
            exp_to_deduct = record.exp_earned or 0
            db.session.delete(record)
            change = account.add_exp(-exp_to_deduct)
            db.session.commit()

        logger.info(
            f"User {user_id} deleted record {record_id}, deducted {exp_to_deduct} EXP"
        )

        effects = self.progression.apply_secondary_effects(user_id, -exp_to_deduct)

        try:
            self.streaks.recompute_training_streak(user_id)
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.warning(f"Failed to recompute training streak for user {user_id}: {e}")

        return {
            "deleted_exp": exp_to_deduct,
            "total_exp": change["total_exp"],
            "current_level": change["new_level"],
            **effects,
        }
