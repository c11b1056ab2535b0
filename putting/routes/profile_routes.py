# putting/routes/profile_routes.py
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from ..services.factory import get_services

profile_bp = Blueprint("profile", __name__)


@profile_bp.route("", methods=["GET"])
@jwt_required()
def get_profile():
    user_id = int(get_jwt_identity())
    user = get_services().store.require_user(user_id)
    return jsonify({"user": user.to_dict()}), 200


@profile_bp.route("", methods=["PUT"])
@jwt_required()
def update_profile():
    """
    Body (all optional):
    {
      "display_name": "Sam",
      "gender": "male" | "female",
      "birthday": "YYYY-MM-DD",
      "favorite_putter": "...", "favorite_midrange": "...", "favorite_driver": "...",
      "hide_from_leaderboard": false,
      "opt_out_shared_logging": false,
      "goals": {"putts": 500, "sessions": 5, "routines": 2, "games": 3}
    }
    """
    user_id = int(get_jwt_identity())
    data = request.get_json() or {}

    result = get_services().progression.update_profile(user_id, data)
    return jsonify(result), 200
