# putting/routes/rewards_routes.py
from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from ..scoring import level_from_points, next_level_points
from ..services.factory import get_services

rewards_bp = Blueprint("rewards", __name__)


@rewards_bp.route("/overview", methods=["GET"])
@jwt_required()
def rewards_overview():
    """
    Returns:
    {
      "user": { ... user.to_dict() ... },
      "summary": {
        "total_points": 1200,
        "level": 2,
        "unlocked_achievements_count": 3,
        "total_achievements_count": 60,
        "progress_percentage": 5,
        "next_level_points": 2000
      },
      "unlocked": [ {id, icon, name, desc, points, category, is_unlocked, unlocked_at}, ... ],
      "locked":   [ ... ]
    }
    """
    user_id = int(get_jwt_identity())
    services = get_services()
    user = services.store.require_user(user_id)

    achievements = services.achievements.achievements_with_status(user)
    progress = services.achievements.progress(user)

    unlocked = [a for a in achievements if a["is_unlocked"]]
    unlocked.sort(key=lambda a: a["unlocked_at"] or "", reverse=True)
    locked = [a for a in achievements if not a["is_unlocked"]]

    total_points = user.total_points or 0
    level = level_from_points(total_points)

    summary = {
        "total_points": int(total_points),
        "level": int(level),
        "unlocked_achievements_count": progress["unlocked"],
        "total_achievements_count": progress["total"],
        "progress_percentage": progress["percentage"],
        "next_level_points": int(next_level_points(level)),
    }

    return (
        jsonify(
            {
                "user": user.to_dict(),
                "summary": summary,
                "unlocked": unlocked,
                "locked": locked,
            }
        ),
        200,
    )


@rewards_bp.route("/games-viewed", methods=["POST"])
@jwt_required()
def games_viewed():
    """Opening the games tab unlocks "game_on"."""
    user_id = int(get_jwt_identity())
    services = get_services()

    with services.progression.transaction():
        user = services.store.lock_user(user_id)
        unlocked = services.achievements.unlock(user, "game_on")
        services.store.save_user(user)
        payload = {"new_achievements": ["game_on"] if unlocked else [], "user": user.to_dict()}

    return jsonify(payload), 200
