# putting/stats.py
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .scoring import ScoringType, LOWER_IS_BETTER, round_half_up

WEEK_DAYS = 7


# ------------------------------
# Helpers
# ------------------------------
def _get(record, key, default=None):
    if isinstance(record, Mapping):
        return record.get(key, default)
    return getattr(record, key, default)


def _as_date(value) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value)).date()
    except ValueError:
        return None


def unique_practice_dates(sessions: Iterable[Any]) -> List[date]:
    """Distinct calendar days with at least one session, newest first."""
    dates = {_as_date(_get(s, "date")) for s in sessions}
    dates.discard(None)
    return sorted(dates, reverse=True)


# ------------------------------
# Session statistics
# ------------------------------
def calculate_streaks(sessions: Iterable[Any], today: Optional[date] = None) -> Tuple[int, int]:
    """
    Returns (current_streak, longest_streak).

    Current streak counts back from today with no gaps: the date at index i
    must be exactly i days before today. Longest streak scans the same list
    pairwise and is never reported below the current streak.
    """
    unique_dates = unique_practice_dates(sessions)
    if not unique_dates:
        return 0, 0

    today = today or date.today()

    current = 0
    for i, d in enumerate(unique_dates):
        if (today - d).days == i:
            current += 1
        else:
            break

    longest = 0
    running = 1
    for prev, curr in zip(unique_dates, unique_dates[1:]):
        if (prev - curr).days == 1:
            running += 1
            longest = max(longest, running)
        else:
            running = 1

    longest = max(longest, current)
    return current, longest


def calculate_stats(sessions: List[Any], today: Optional[date] = None) -> Dict[str, Any]:
    if not sessions:
        return {
            "total_sessions": 0,
            "total_putts": 0,
            "total_makes": 0,
            "accuracy": 0,
            "best_session": None,
            "current_streak": 0,
            "longest_streak": 0,
        }

    total_putts = 0
    total_makes = 0
    best_session = sessions[0]

    for s in sessions:
        total_putts += _get(s, "attempts") or 0
        total_makes += _get(s, "makes") or 0
        # strict ">" keeps the first occurrence on ties
        if (_get(s, "points") or 0) > (_get(best_session, "points") or 0):
            best_session = s

    accuracy = round_half_up(total_makes / total_putts * 100, 1) if total_putts > 0 else 0
    current, longest = calculate_streaks(sessions, today)

    return {
        "total_sessions": len(sessions),
        "total_putts": total_putts,
        "total_makes": total_makes,
        "accuracy": accuracy,
        "best_session": best_session,
        "current_streak": current,
        "longest_streak": longest,
    }


def _within_last_week(value, today: date) -> bool:
    d = _as_date(value)
    return d is not None and d > today - timedelta(days=WEEK_DAYS)


def weekly_makes(sessions: Iterable[Any], today: Optional[date] = None) -> int:
    today = today or date.today()
    return sum(_get(s, "makes") or 0 for s in sessions if _within_last_week(_get(s, "date"), today))


def calculate_weekly_progress(
    sessions: Iterable[Any],
    routines: Iterable[Any],
    games: Iterable[Any],
    goals: Optional[Mapping[str, Any]],
    today: Optional[date] = None,
) -> Dict[str, Dict[str, Any]]:
    """Last-7-days totals against the user's per-activity weekly goals."""
    today = today or date.today()
    goals = goals or {}

    week_sessions = [s for s in sessions if _within_last_week(_get(s, "date"), today)]
    actual = {
        "putts": sum(_get(s, "attempts") or 0 for s in week_sessions),
        "sessions": len(week_sessions),
        "routines": sum(1 for r in routines if _within_last_week(_get(r, "end_time"), today)),
        "games": sum(1 for g in games if _within_last_week(_get(g, "end_time"), today)),
    }

    progress = {}
    for key, value in actual.items():
        goal = int(goals.get(key) or 0)
        pct = min(int(round_half_up(value / goal * 100)), 100) if goal > 0 else 0
        progress[key] = {"current": value, "goal": goal, "percentage": pct}
    return progress


# ------------------------------
# Routine & game statistics
# ------------------------------
def _routine_pct(r) -> float:
    return (_get(r, "total_stats") or {}).get("overall_percentage") or 0


def routine_stats(completions: List[Any], routine_id: str) -> Dict[str, Any]:
    rows = [r for r in completions if _get(r, "routine_id") == routine_id]
    if not rows:
        return {
            "times_completed": 0,
            "average_accuracy": 0,
            "average_duration": 0,
            "best_accuracy": 0,
            "total_putts": 0,
        }

    accuracies = [_routine_pct(r) for r in rows]
    total_duration = sum(_get(r, "duration") or 0 for r in rows)
    total_putts = sum((_get(r, "total_stats") or {}).get("total_attempts") or 0 for r in rows)
    last = max(rows, key=lambda r: _get(r, "end_time") or datetime.min)

    return {
        "times_completed": len(rows),
        "average_accuracy": round_half_up(sum(accuracies) / len(rows), 1),
        "average_duration": int(round_half_up(total_duration / len(rows))),
        "best_accuracy": max(accuracies),
        "total_putts": total_putts,
        "last_completed": _get(last, "end_time"),
    }


def overall_routine_stats(completions: List[Any]) -> Dict[str, Any]:
    n = len(completions)
    return {
        "total_routines_completed": n,
        "unique_routines": len({_get(r, "routine_id") for r in completions}),
        "total_putts": sum((_get(r, "total_stats") or {}).get("total_attempts") or 0 for r in completions),
        "average_accuracy": round_half_up(sum(_routine_pct(r) for r in completions) / n, 1) if n else 0,
    }


def game_stats(completions: List[Any], game_id: str) -> Dict[str, Any]:
    rows = [g for g in completions if _get(g, "game_id") == game_id]
    if not rows:
        return {
            "times_played": 0,
            "goals_achieved": 0,
            "success_rate": 0,
            "best_score": None,
            "average_score": 0,
            "total_duration": 0,
        }

    goals = sum(1 for g in rows if _get(g, "goal_achieved"))
    scores = [_get(g, "score") for g in rows if _get(g, "score") is not None]
    lower_better = ScoringType(_get(rows[0], "scoring_type")) in LOWER_IS_BETTER
    best = None
    if scores:
        best = min(scores) if lower_better else max(scores)
    last = max(rows, key=lambda g: _get(g, "end_time") or datetime.min)

    return {
        "times_played": len(rows),
        "goals_achieved": goals,
        "success_rate": int(round_half_up(goals / len(rows) * 100)),
        "best_score": best,
        "average_score": int(round_half_up(sum(scores) / len(scores))) if scores else 0,
        "total_duration": sum(_get(g, "duration") or 0 for g in rows),
        "last_played": _get(last, "end_time"),
    }


def overall_game_stats(completions: List[Any]) -> Dict[str, Any]:
    n = len(completions)
    goals = sum(1 for g in completions if _get(g, "goal_achieved"))
    total_duration = sum(_get(g, "duration") or 0 for g in completions)
    return {
        "total_games_played": n,
        "unique_games_played": len({_get(g, "game_id") for g in completions}),
        "total_goals_achieved": goals,
        "overall_success_rate": int(round_half_up(goals / n * 100)) if n else 0,
        "total_time_spent": total_duration,
        "average_game_duration": int(round_half_up(total_duration / n)) if n else 0,
    }


def game_leaderboard(completions: List[Any], game_id: str, limit: int = 10) -> List[Any]:
    rows = [g for g in completions if _get(g, "game_id") == game_id and _get(g, "score") is not None]
    if not rows:
        return []
    lower_better = ScoringType(_get(rows[0], "scoring_type")) in LOWER_IS_BETTER
    rows.sort(key=lambda g: _get(g, "score"), reverse=not lower_better)
    return rows[:limit]


def user_rank(leaderboard: List[Any], user_id) -> int:
    for i, row in enumerate(leaderboard):
        if _get(row, "id") == user_id:
            return i + 1
    return -1
