# putting/routes/dashboard_routes.py
from datetime import timedelta

from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from ..services.factory import get_services

# Blueprint for dashboard-related endpoints
dashboard_bp = Blueprint("dashboard", __name__)


@dashboard_bp.route("/overview", methods=["GET"])
@jwt_required()
def dashboard_overview():
    """
    Returns:
    {
      "user": { ... },
      "stats": { total_sessions, total_putts, accuracy, current_streak, ...,
                 level, next_level_points, weekly_progress, routines, games },
      "last7days": { "total_points": ..., "by_day": [{date, points, sessions, putts, makes}, ...] }
    }
    """
    user_id = int(get_jwt_identity())
    services = get_services()
    user = services.store.require_user(user_id)

    stats = services.progression.get_statistics(user.id)

    today = services.progression.clock().date()
    week_start = today - timedelta(days=6)
    sessions = [s for s in services.store.list_sessions(user.id) if s.date >= week_start]

    by_date = {}
    for s in sessions:
        by_date.setdefault(s.date, []).append(s)

    by_day = []
    total_points = total_sessions = total_putts = total_makes = 0

    for i in range(7):
        d = week_start + timedelta(days=i)
        rows = by_date.get(d, [])

        p = sum(s.points for s in rows)
        n = len(rows)
        putts = sum(s.attempts for s in rows)
        makes = sum(s.makes for s in rows)

        total_points += p
        total_sessions += n
        total_putts += putts
        total_makes += makes

        by_day.append(
            {
                "date": d.isoformat(),
                "points": p,
                "sessions": n,
                "putts": putts,
                "makes": makes,
            }
        )

    last7days = {
        "total_points": total_points,
        "total_sessions": total_sessions,
        "total_putts": total_putts,
        "total_makes": total_makes,
        "by_day": by_day,
    }

    return (
        jsonify(
            {
                "user": user.to_dict(),
                "stats": stats,
                "last7days": last7days,
            }
        ),
        200,
    )
