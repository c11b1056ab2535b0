# putting/routes/game_routes.py
from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required, get_jwt_identity

from ..catalog import PUTTING_GAMES, get_game
from ..services.factory import get_services
from ..stats import game_leaderboard, game_stats
from ..validation import as_int, parse_bool

games_bp = Blueprint("games", __name__)


@games_bp.route("/catalog", methods=["GET"])
def game_catalog():
    return jsonify({"games": PUTTING_GAMES}), 200


@games_bp.route("", methods=["GET"])
@jwt_required()
def list_games():
    user_id = int(get_jwt_identity())
    completions = get_services().store.list_games(user_id)
    return jsonify({"games": [g.to_dict() for g in completions]}), 200


@games_bp.route("", methods=["POST"])
@jwt_required()
def complete_game():
    """
    Body depends on the game's scoring type, e.g.
      time:        {"game_id": "around_the_world", "minutes": 12.5}
      strokes:     {"game_id": "par_game", "strokes": 17, "par": 18}
      points:      {"game_id": "points_poker", "score": 120}
      distance:    {"game_id": "ladder_challenge", "max_distance": 45}
      streak:      {"game_id": "perfect_10", "streak": 10}
      elimination: {"game_id": "horse", "won": true, "opponent": "Alex"}
      rotations:   {"game_id": "putt_100", "distance": 20,
                    "turns": [{"makes": 8, "attempts": 10}, ... 10 turns]}
    plus optional "duration" (minutes) and "notes".
    """
    user_id = int(get_jwt_identity())
    data = request.get_json() or {}

    result = get_services().progression.complete_game(user_id, data)
    return jsonify(result), 201


@games_bp.route("/<int:completion_id>", methods=["PUT"])
@jwt_required()
def update_game(completion_id: int):
    user_id = int(get_jwt_identity())
    data = request.get_json() or {}

    result = get_services().progression.update_game(user_id, completion_id, data)
    return jsonify(result), 200


@games_bp.route("/<int:completion_id>", methods=["DELETE"])
@jwt_required()
def delete_game(completion_id: int):
    user_id = int(get_jwt_identity())
    result = get_services().progression.delete_game(user_id, completion_id)
    return jsonify(result), 200


@games_bp.route("/log-for", methods=["POST"])
@jwt_required()
def log_game_for():
    actor_id = int(get_jwt_identity())
    data = request.get_json() or {}

    target_id = as_int(data.get("user_id"))
    if target_id is None:
        return jsonify({"message": "user_id is required"}), 400

    result = get_services().cross_logging.log_game_for(
        actor_id, target_id, data, parse_bool(data.get("require_approval"), default=True)
    )
    return jsonify(result), 201


@games_bp.route("/stats/<game_id>", methods=["GET"])
@jwt_required()
def stats_for_game(game_id: str):
    if get_game(game_id) is None:
        return jsonify({"message": "game not found"}), 404

    user_id = int(get_jwt_identity())
    completions = get_services().store.list_games(user_id)
    stats = game_stats(completions, game_id)
    if stats.get("last_played"):
        stats["last_played"] = stats["last_played"].isoformat()
    return jsonify({"game_id": game_id, "stats": stats}), 200


@games_bp.route("/leaderboard/<game_id>", methods=["GET"])
@jwt_required()
def leaderboard_for_game(game_id: str):
    """Best single results across users; hidden users are left out."""
    if get_game(game_id) is None:
        return jsonify({"message": "game not found"}), 404

    limit = as_int(request.args.get("limit")) or 10
    store = get_services().store
    rows = [g for g in store.all_games(game_id) if not g.user.hide_from_leaderboard]
    top = game_leaderboard(rows, game_id, limit=limit)

    payload = []
    for rank, g in enumerate(top, start=1):
        owner = g.user
        payload.append(
            {
                "rank": rank,
                "user_id": owner.id,
                "display_name": owner.display_name,
                "score": g.to_dict()["score"],
                "goal_achieved": g.goal_achieved,
                "points": g.points,
                "end_time": g.end_time.isoformat(),
            }
        )
    return jsonify({"game_id": game_id, "leaderboard": payload}), 200
