"""Exercise catalog and training record models."""

from datetime import datetime

from app import db


class Exercise(db.Model):
    """Master exercise catalog entry."""

    __tablename__ = "exercises"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    muscle = db.Column(db.String(50), nullable=False)
    difficulty = db.Column(db.String(20), nullable=True)  # high, medium, low
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "muscle": self.muscle,
            "difficulty": self.difficulty,
            "is_custom": False,
        }

    def __repr__(self) -> str:
        return f"<Exercise {self.name}>"


class CustomExercise(db.Model):
    """Exercise defined by a user; scored with the custom coefficient."""

    __tablename__ = "custom_exercises"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(100), nullable=False)
    muscle = db.Column(db.String(50), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("user_id", "name", name="unique_user_custom_exercise"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "muscle": self.muscle,
            "difficulty": None,
            "is_custom": True,
        }


class TrainingRecord(db.Model):
    """All training logged by a user for one calendar day.

    ``exp_earned`` accumulates every credit made for the day and is the
    basis of the per-day EXP ceiling.
    """

    __tablename__ = "training_records"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    record_date = db.Column(db.Date, nullable=False, index=True)
    exp_earned = db.Column(db.Integer, default=0, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    exercises = db.relationship(
        "TrainingRecordExercise",
        backref="record",
        order_by="TrainingRecordExercise.order_index",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.UniqueConstraint("user_id", "record_date", name="unique_user_record_date"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.record_date.isoformat(),
            "exp_earned": self.exp_earned,
            "exercises": [e.to_dict() for e in self.exercises],
        }

    def __repr__(self) -> str:
        return f"<TrainingRecord {self.user_id}:{self.record_date}>"


class TrainingRecordExercise(db.Model):
    """An exercise performed within a training record."""

    __tablename__ = "training_record_exercises"

    id = db.Column(db.Integer, primary_key=True)
    record_id = db.Column(
        db.Integer,
        db.ForeignKey("training_records.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    exercise_id = db.Column(
        db.Integer, db.ForeignKey("exercises.id"), nullable=True
    )
    custom_exercise_id = db.Column(
        db.Integer, db.ForeignKey("custom_exercises.id"), nullable=True
    )
    order_index = db.Column(db.Integer, default=0, nullable=False)

    exercise = db.relationship("Exercise")
    custom_exercise = db.relationship("CustomExercise")
    sets = db.relationship(
        "TrainingSet",
        backref="record_exercise",
        order_by="TrainingSet.set_number",
        cascade="all, delete-orphan",
    )

    @property
    def is_custom(self) -> bool:
        return self.custom_exercise_id is not None

    def to_dict(self) -> dict:
        source = self.custom_exercise if self.is_custom else self.exercise
        return {
            "id": self.id,
            "exercise_id": self.custom_exercise_id if self.is_custom else self.exercise_id,
            "name": source.name if source else None,
            "muscle": source.muscle if source else None,
            "is_custom": self.is_custom,
            "sets": [s.to_dict() for s in self.sets],
        }


class TrainingSet(db.Model):
    """A single (weight, reps) entry."""

    __tablename__ = "training_sets"

    id = db.Column(db.Integer, primary_key=True)
    record_exercise_id = db.Column(
        db.Integer,
        db.ForeignKey("training_record_exercises.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    set_number = db.Column(db.Integer, nullable=False)
    weight = db.Column(db.Float, nullable=False)
    reps = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "set_number": self.set_number,
            "weight": self.weight,
            "reps": self.reps,
        }


# Default exercise catalog loaded by `flask seed exercises`
EXERCISES = [
    {"name": "Bench Press", "muscle": "chest", "difficulty": "medium"},
    {"name": "Incline Dumbbell Press", "muscle": "chest", "difficulty": "medium"},
    {"name": "Push-up", "muscle": "chest", "difficulty": "low"},
    {"name": "Deadlift", "muscle": "back", "difficulty": "high"},
    {"name": "Pull-up", "muscle": "back", "difficulty": "high"},
    {"name": "Lat Pulldown", "muscle": "back", "difficulty": "low"},
    {"name": "Barbell Row", "muscle": "back", "difficulty": "medium"},
    {"name": "Back Squat", "muscle": "legs", "difficulty": "high"},
    {"name": "Leg Press", "muscle": "legs", "difficulty": "low"},
    {"name": "Romanian Deadlift", "muscle": "legs", "difficulty": "medium"},
    {"name": "Overhead Press", "muscle": "shoulders", "difficulty": "medium"},
    {"name": "Lateral Raise", "muscle": "shoulders", "difficulty": "low"},
    {"name": "Barbell Curl", "muscle": "arms", "difficulty": "low"},
    {"name": "Dips", "muscle": "arms", "difficulty": "medium"},
    {"name": "Hanging Leg Raise", "muscle": "core", "difficulty": "medium"},
    {"name": "Plank", "muscle": "core", "difficulty": None},
]
