# putting/routes/session_routes.py
from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required, get_jwt_identity

from ..services.factory import get_services
from ..validation import as_int, parse_bool

sessions_bp = Blueprint("sessions", __name__)


@sessions_bp.route("", methods=["GET"])
@jwt_required()
def list_sessions():
    user_id = int(get_jwt_identity())
    sessions = get_services().store.list_sessions(user_id)
    return jsonify({"sessions": [s.to_dict() for s in sessions]}), 200


@sessions_bp.route("", methods=["POST"])
@jwt_required()
def add_session():
    """
    Body: { "distance": 20, "makes": 7, "attempts": 10, "date": "YYYY-MM-DD" }

    Returns the stored session, the updated user, newly unlocked achievement
    ids and whether the weekly challenge was completed.
    """
    user_id = int(get_jwt_identity())
    data = request.get_json() or {}

    result = get_services().progression.add_session(user_id, data)
    return jsonify(result), 201


@sessions_bp.route("/<int:session_id>", methods=["PUT"])
@jwt_required()
def update_session(session_id: int):
    user_id = int(get_jwt_identity())
    data = request.get_json() or {}

    result = get_services().progression.update_session(user_id, session_id, data)
    return jsonify(result), 200


@sessions_bp.route("/<int:session_id>", methods=["DELETE"])
@jwt_required()
def delete_session(session_id: int):
    user_id = int(get_jwt_identity())
    result = get_services().progression.delete_session(user_id, session_id)
    return jsonify(result), 200


# ---------------------------------------------------------------------------
# Logging for other users
# ---------------------------------------------------------------------------

@sessions_bp.route("/log-for", methods=["POST"])
@jwt_required()
def log_session_for():
    """
    Body: { "user_id": 2, "distance": 20, "makes": 7, "attempts": 10,
            "require_approval": true }
    """
    actor_id = int(get_jwt_identity())
    data = request.get_json() or {}

    target_id = as_int(data.get("user_id"))
    if target_id is None:
        return jsonify({"message": "user_id is required"}), 400

    result = get_services().cross_logging.log_session_for(
        actor_id, target_id, data, parse_bool(data.get("require_approval"), default=True)
    )
    return jsonify(result), 201


@sessions_bp.route("/bulk", methods=["POST"])
@jwt_required()
def bulk_log_sessions():
    """
    Body:
    {
      "require_approval": true,
      "entries": [
        {"user_id": 2, "distance": 20, "makes": 7, "attempts": 10},
        ...
      ]
    }

    Each entry commits on its own; failures come back per user.
    """
    actor_id = int(get_jwt_identity())
    data = request.get_json() or {}

    entries = data.get("entries")
    if not isinstance(entries, list) or not entries:
        return jsonify({"message": "entries must be a non-empty list"}), 400

    result = get_services().cross_logging.bulk_log_sessions(
        actor_id, entries, parse_bool(data.get("require_approval"), default=True)
    )
    status = 201 if result["logged"] else 400
    return jsonify(result), status


@sessions_bp.route("/shareable-users", methods=["GET"])
@jwt_required()
def shareable_users():
    actor_id = int(get_jwt_identity())
    users = get_services().cross_logging.shareable_users(actor_id)
    return jsonify({"users": users}), 200
