# putting/routes/pending_routes.py
from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from ..services.factory import get_services

pending_bp = Blueprint("pending", __name__)


@pending_bp.route("", methods=["GET"])
@jwt_required()
def list_pending():
    """Records other users logged for me that await my review."""
    user_id = int(get_jwt_identity())
    pending = get_services().cross_logging.list_pending(user_id)
    return jsonify(pending), 200


@pending_bp.route("/<kind>/<int:record_id>/accept", methods=["POST"])
@jwt_required()
def accept_pending(kind: str, record_id: int):
    user_id = int(get_jwt_identity())
    result = get_services().cross_logging.accept_pending(user_id, kind, record_id)
    return jsonify(result), 200


@pending_bp.route("/<kind>/<int:record_id>/reject", methods=["POST"])
@jwt_required()
def reject_pending(kind: str, record_id: int):
    user_id = int(get_jwt_identity())
    result = get_services().cross_logging.reject_pending(user_id, kind, record_id)
    return jsonify(result), 200
