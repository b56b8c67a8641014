"""Pet and companion API endpoints."""

from flask import request
from flask_jwt_extended import get_jwt_identity, jwt_required

from app.api import api_bp
from app.errors import ValidationError
from app.services.pet_service import PetService
from app.services.progression_service import ProgressionService
from app.utils import success_response


@api_bp.route("/companion-types", methods=["GET"])
def get_companion_types():
    """List adoptable companion types (public)."""
    return success_response({"companion_types": PetService().get_companion_types()})


@api_bp.route("/pet", methods=["GET"])
@jwt_required()
def get_pet():
    """Get the active pet, with mood."""
    user_id = int(get_jwt_identity())
    service = PetService()
    pet = service.get_active_pet(user_id)
    return success_response(
        {"has_pet": pet is not None, "pet": service.pet_view(pet) if pet else None}
    )


@api_bp.route("/pet/barn", methods=["GET"])
@jwt_required()
def get_barn():
    """Get owned pets plus unlocked and locked companion types."""
    user_id = int(get_jwt_identity())
    return success_response(PetService().get_barn(user_id))


@api_bp.route("/pet", methods=["POST"])
@jwt_required()
def adopt_pet():
    """
    Adopt a companion; it becomes the active pet.

    Request body:
    {
        "companion_type_id": 1,
        "name": "Rex"   // optional, defaults to "Partner"
    }
    """
    user_id = int(get_jwt_identity())
    data = request.get_json() or {}

    companion_type_id = data.get("companion_type_id")
    if isinstance(companion_type_id, bool) or not isinstance(companion_type_id, int):
        raise ValidationError(
            "companion_type_id must be an integer",
            {"companion_type_id": companion_type_id},
        )

    service = PetService()
    pet = service.adopt(user_id, companion_type_id, data.get("name"))
    return success_response({"pet": service.pet_view(pet)}, status_code=201)


@api_bp.route("/pet/<int:pet_id>/activate", methods=["PUT"])
@jwt_required()
def activate_pet(pet_id: int):
    """Make an owned pet the active one."""
    user_id = int(get_jwt_identity())
    service = PetService()
    pet = service.activate(user_id, pet_id)
    return success_response({"pet": service.pet_view(pet)})


@api_bp.route("/pet/<int:pet_id>", methods=["PUT"])
@jwt_required()
def rename_pet(pet_id: int):
    """Rename an owned pet."""
    user_id = int(get_jwt_identity())
    data = request.get_json() or {}
    service = PetService()
    pet = service.rename(user_id, pet_id, data.get("name"))
    return success_response({"pet": service.pet_view(pet)})


@api_bp.route("/pet", methods=["PUT"])
@jwt_required()
def rename_active_pet():
    """Rename the active pet."""
    user_id = int(get_jwt_identity())
    data = request.get_json() or {}
    service = PetService()
    pet = service.rename(user_id, None, data.get("name"))
    return success_response({"pet": service.pet_view(pet)})


@api_bp.route("/pet", methods=["DELETE"])
@jwt_required()
def deactivate_pet():
    """Put the active pet back in the barn."""
    user_id = int(get_jwt_identity())
    PetService().deactivate(user_id)
    return success_response({"has_pet": False, "pet": None})


@api_bp.route("/pet/unlock-check", methods=["POST"])
@jwt_required()
def check_unlocks():
    """Re-evaluate unlock rules and return anything newly unlocked."""
    user_id = int(get_jwt_identity())
    unlocked = ProgressionService().evaluate_unlocks(user_id)
    return success_response({"new_unlocks": unlocked})
