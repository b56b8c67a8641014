"""Workout logging API endpoints."""

from flask import request
from flask_jwt_extended import get_jwt_identity, jwt_required

from app.api import api_bp
from app.services.workout_service import WorkoutService
from app.utils import success_response


@api_bp.route("/workout/exercises", methods=["GET"])
@jwt_required()
def get_exercises():
    """Get the exercise catalog plus the user's custom exercises."""
    user_id = int(get_jwt_identity())
    return success_response({"exercises": WorkoutService().get_exercises(user_id)})


@api_bp.route("/workout/custom-exercises", methods=["POST"])
@jwt_required()
def create_custom_exercise():
    """
    Create a custom exercise.

    Request body:
    {
        "name": "Cable Fly",
        "muscle": "chest"   // optional, defaults to "other"
    }
    """
    user_id = int(get_jwt_identity())
    exercise = WorkoutService().create_custom_exercise(user_id, request.get_json() or {})
    return success_response({"exercise": exercise.to_dict()}, status_code=201)


@api_bp.route("/workout/custom-exercises/<int:exercise_id>", methods=["DELETE"])
@jwt_required()
def delete_custom_exercise(exercise_id: int):
    """Delete a custom exercise that no record uses."""
    user_id = int(get_jwt_identity())
    WorkoutService().delete_custom_exercise(user_id, exercise_id)
    return success_response(message="Custom exercise deleted")


@api_bp.route("/workout/records", methods=["GET"])
@jwt_required()
def get_records():
    """Get training records, optionally for a single date (YYYY-MM-DD)."""
    user_id = int(get_jwt_identity())
    records = WorkoutService().get_records(user_id, request.args.get("date"))
    return success_response({"records": records})


@api_bp.route("/workout/records", methods=["POST"])
@jwt_required()
def save_record():
    """
    Log sets for a date and credit EXP.

    Request body:
    {
        "date": "2024-05-01",
        "exercises": [
            {
                "exercise_id": 1,
                "is_custom": false,
                "sets": [{"weight": 60, "reps": 10}]
            }
        ]
    }
    """
    user_id = int(get_jwt_identity())
    result = WorkoutService().save_workout(user_id, request.get_json() or {})
    return success_response(result)


@api_bp.route("/workout/records/<int:record_id>", methods=["DELETE"])
@jwt_required()
def delete_record(record_id: int):
    """Delete a record and deduct the EXP it earned."""
    user_id = int(get_jwt_identity())
    result = WorkoutService().delete_record(user_id, record_id)
    return success_response(result)
