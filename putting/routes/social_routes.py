# putting/routes/social_routes.py
from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required, get_jwt_identity

from ..errors import NotFoundError, ValidationError
from ..services.factory import get_services
from ..stats import user_rank
from ..validation import as_int

social_bp = Blueprint("social", __name__)


# ---------------------------------------------------------------------------
# Friends
# ---------------------------------------------------------------------------

@social_bp.route("/friends", methods=["GET"])
@jwt_required()
def get_friends():
    """Accepted friends, highest total_points first."""
    me = int(get_jwt_identity())
    store = get_services().store

    friends = [u for u in (store.get_user(fid) for fid in store.friend_ids(me)) if u]
    friends.sort(key=lambda u: u.total_points or 0, reverse=True)

    return jsonify({"friends": [u.to_public_dict() for u in friends]}), 200


@social_bp.route("/friends/request", methods=["POST"])
@jwt_required()
def send_friend_request():
    """Body: {"username": "alice"} or {"user_id": 2}"""
    me = int(get_jwt_identity())
    data = request.get_json() or {}
    services = get_services()

    if data.get("username"):
        target = services.store.find_user(username=data["username"])
    elif data.get("user_id"):
        target = services.store.get_user(as_int(data["user_id"]))
    else:
        raise ValidationError("username or user_id is required")
    if target is None:
        raise NotFoundError("target user not found")

    with services.progression.transaction():
        friendship, created = services.store.request_friendship(me, target.id)
        payload = friendship.to_dict()

    status = 201 if created else 200
    return jsonify({"friendship": payload}), status


@social_bp.route("/friends/<int:friend_id>/accept", methods=["POST"])
@jwt_required()
def accept_friend_request(friend_id: int):
    me = int(get_jwt_identity())
    services = get_services()

    # both sides may have crossed a friend-count threshold
    with services.progression.transaction():
        friendship = services.store.pending_request(friend_id, me)
        friendship.status = "accepted"
        services.store.flush()
        new_achievements = []
        for uid in sorted({me, friend_id}):
            unlocked = services.achievements.check_achievements(services.store.lock_user(uid))
            if uid == me:
                new_achievements = unlocked
        payload = friendship.to_dict()

    return jsonify({"friendship": payload, "new_achievements": new_achievements}), 200


@social_bp.route("/friends/<int:friend_id>/block", methods=["POST"])
@jwt_required()
def block_user(friend_id: int):
    me = int(get_jwt_identity())
    services = get_services()

    with services.progression.transaction():
        services.store.require_user(friend_id)
        payload = services.store.block(me, friend_id).to_dict()

    return jsonify({"friendship": payload}), 200


# ---------------------------------------------------------------------------
# Leaderboard
# ---------------------------------------------------------------------------

@social_bp.route("/leaderboard", methods=["GET"])
@jwt_required()
def get_leaderboard():
    """
    Query: ?metric=points|sessions|routines|games&limit=100

    Users who hide themselves from the leaderboard are left out.
    """
    me = int(get_jwt_identity())
    store = get_services().store

    metric = request.args.get("metric", "points")
    limit = as_int(request.args.get("limit"))
    if limit is not None:
        limit = max(1, min(limit, store.leaderboard_limit))

    users = store.leaderboard(metric, limit)
    payload = []
    for rank, u in enumerate(users, start=1):
        row = u.to_public_dict()
        row["rank"] = rank
        payload.append(row)

    return (
        jsonify(
            {
                "metric": metric,
                "leaderboard": payload,
                "my_rank": user_rank(users, me),
            }
        ),
        200,
    )


# ---------------------------------------------------------------------------
# Weekly challenge
# ---------------------------------------------------------------------------

@social_bp.route("/challenge", methods=["GET"])
@jwt_required()
def get_weekly_challenge():
    """
    Returns the active weekly challenge plus my progress:
    {"challenge": {...}, "current": 32, "target": 50, "percentage": 64, "completed": false}
    """
    me = int(get_jwt_identity())
    services = get_services()

    # loading may rotate in a new challenge
    with services.progression.transaction():
        user = services.store.require_user(me)
        progress = services.challenges.challenge_progress(user)

    return jsonify(progress), 200
