# putting/routes/routine_routes.py
from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required, get_jwt_identity

from ..catalog import SUGGESTED_ROUTINES, get_routine
from ..services.factory import get_services
from ..stats import routine_stats
from ..validation import as_int, parse_bool

routines_bp = Blueprint("routines", __name__)


@routines_bp.route("/catalog", methods=["GET"])
def routine_catalog():
    return jsonify({"routines": SUGGESTED_ROUTINES}), 200


@routines_bp.route("", methods=["GET"])
@jwt_required()
def list_routines():
    user_id = int(get_jwt_identity())
    completions = get_services().store.list_routines(user_id)
    return jsonify({"routines": [r.to_dict() for r in completions]}), 200


@routines_bp.route("", methods=["POST"])
@jwt_required()
def complete_routine():
    """
    Body:
    {
      "routine_id": "intermediate_mixed",
      "duration": 25,
      "drills": [{"makes": 15, "attempts": 20}, ...],   # one per catalog drill
      "notes": "windy"
    }
    """
    user_id = int(get_jwt_identity())
    data = request.get_json() or {}

    result = get_services().progression.complete_routine(user_id, data)
    return jsonify(result), 201


@routines_bp.route("/<int:completion_id>", methods=["PUT"])
@jwt_required()
def update_routine(completion_id: int):
    user_id = int(get_jwt_identity())
    data = request.get_json() or {}

    result = get_services().progression.update_routine(user_id, completion_id, data)
    return jsonify(result), 200


@routines_bp.route("/<int:completion_id>", methods=["DELETE"])
@jwt_required()
def delete_routine(completion_id: int):
    user_id = int(get_jwt_identity())
    result = get_services().progression.delete_routine(user_id, completion_id)
    return jsonify(result), 200


@routines_bp.route("/log-for", methods=["POST"])
@jwt_required()
def log_routine_for():
    actor_id = int(get_jwt_identity())
    data = request.get_json() or {}

    target_id = as_int(data.get("user_id"))
    if target_id is None:
        return jsonify({"message": "user_id is required"}), 400

    result = get_services().cross_logging.log_routine_for(
        actor_id, target_id, data, parse_bool(data.get("require_approval"), default=True)
    )
    return jsonify(result), 201


@routines_bp.route("/stats/<routine_id>", methods=["GET"])
@jwt_required()
def stats_for_routine(routine_id: str):
    if get_routine(routine_id) is None:
        return jsonify({"message": "routine not found"}), 404

    user_id = int(get_jwt_identity())
    completions = get_services().store.list_routines(user_id)
    stats = routine_stats(completions, routine_id)
    if stats.get("last_completed"):
        stats["last_completed"] = stats["last_completed"].isoformat()
    return jsonify({"routine_id": routine_id, "stats": stats}), 200
