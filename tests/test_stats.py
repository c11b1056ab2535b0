"""Tests for the statistics aggregator."""

from datetime import date, datetime, timedelta

from putting.stats import (
    calculate_stats,
    calculate_streaks,
    calculate_weekly_progress,
    game_leaderboard,
    game_stats,
    overall_game_stats,
    routine_stats,
    unique_practice_dates,
    user_rank,
    weekly_makes,
)

TODAY = date(2024, 6, 12)


def _session(days_ago, makes=5, attempts=10, points=10):
    return {
        "date": (TODAY - timedelta(days=days_ago)).isoformat(),
        "makes": makes,
        "attempts": attempts,
        "points": points,
    }


class TestStreaks:
    def test_no_sessions(self):
        assert calculate_streaks([], today=TODAY) == (0, 0)

    def test_same_day_sessions_count_once(self):
        sessions = [_session(0), _session(0), _session(0)]
        assert unique_practice_dates(sessions) == [TODAY]
        assert calculate_streaks(sessions, today=TODAY) == (1, 1)

    def test_current_streak_counts_back_from_today(self):
        sessions = [_session(0), _session(1), _session(3)]
        assert calculate_streaks(sessions, today=TODAY) == (2, 2)

    def test_streak_broken_when_today_missing(self):
        sessions = [_session(1), _session(2), _session(3)]
        current, longest = calculate_streaks(sessions, today=TODAY)
        assert current == 0
        assert longest == 3

    def test_longest_run_in_the_past(self):
        sessions = [_session(0)] + [_session(d) for d in range(10, 15)]
        assert calculate_streaks(sessions, today=TODAY) == (1, 5)


class TestSessionStats:
    def test_empty(self):
        stats = calculate_stats([], today=TODAY)
        assert stats["total_sessions"] == 0
        assert stats["accuracy"] == 0
        assert stats["best_session"] is None

    def test_totals_and_accuracy(self):
        sessions = [_session(0, 7, 10, 98), _session(1, 2, 3, 13)]
        stats = calculate_stats(sessions, today=TODAY)
        assert stats["total_putts"] == 13
        assert stats["total_makes"] == 9
        assert stats["accuracy"] == 69.2
        assert stats["best_session"] is sessions[0]
        assert stats["current_streak"] == 2

    def test_best_session_keeps_first_on_ties(self):
        first, second = _session(0, points=50), _session(1, points=50)
        assert calculate_stats([first, second], today=TODAY)["best_session"] is first


class TestWeeklyProgress:
    def test_progress_against_goals(self):
        sessions = [_session(0, attempts=20), _session(2, attempts=15), _session(10, attempts=100)]
        routines = [{"end_time": datetime(2024, 6, 11, 9, 0)}]
        games = []
        goals = {"putts": 70, "sessions": 1, "routines": 2, "games": 0}

        progress = calculate_weekly_progress(sessions, routines, games, goals, today=TODAY)

        assert progress["putts"] == {"current": 35, "goal": 70, "percentage": 50}
        assert progress["sessions"]["percentage"] == 100
        assert progress["routines"]["percentage"] == 50
        assert progress["games"] == {"current": 0, "goal": 0, "percentage": 0}

    def test_weekly_makes(self):
        sessions = [_session(0, makes=10), _session(6, makes=5), _session(7, makes=40)]
        assert weekly_makes(sessions, today=TODAY) == 15

    def test_week_is_seven_calendar_days(self):
        sessions = [_session(d, makes=1) for d in range(10)]
        assert weekly_makes(sessions, today=TODAY) == 7


class TestRoutineAndGameStats:
    def test_routine_stats(self):
        completions = [
            {"routine_id": "beginner_10ft", "duration": 10, "end_time": datetime(2024, 6, 1),
             "total_stats": {"overall_percentage": 80.0, "total_attempts": 50}},
            {"routine_id": "beginner_10ft", "duration": 15, "end_time": datetime(2024, 6, 5),
             "total_stats": {"overall_percentage": 60.0, "total_attempts": 50}},
        ]
        stats = routine_stats(completions, "beginner_10ft")
        assert stats["times_completed"] == 2
        assert stats["average_accuracy"] == 70.0
        assert stats["average_duration"] == 13
        assert stats["best_accuracy"] == 80.0
        assert stats["total_putts"] == 100
        assert stats["last_completed"] == datetime(2024, 6, 5)

        assert routine_stats(completions, "advanced_ladder")["times_completed"] == 0

    def test_lower_is_better_games(self):
        games = [
            {"game_id": "par_game", "scoring_type": "strokes", "score": 20, "goal_achieved": False,
             "duration": 20, "end_time": datetime(2024, 6, 1)},
            {"game_id": "par_game", "scoring_type": "strokes", "score": 17, "goal_achieved": True,
             "duration": 25, "end_time": datetime(2024, 6, 2)},
        ]
        stats = game_stats(games, "par_game")
        assert stats["best_score"] == 17
        assert stats["success_rate"] == 50
        assert stats["average_score"] == 19

        board = game_leaderboard(games, "par_game")
        assert [g["score"] for g in board] == [17, 20]

        overall = overall_game_stats(games)
        assert overall["total_games_played"] == 2
        assert overall["unique_games_played"] == 1
        assert overall["average_game_duration"] == 23

    def test_user_rank(self):
        board = [{"id": 3}, {"id": 1}, {"id": 2}]
        assert user_rank(board, 1) == 2
        assert user_rank(board, 9) == -1
