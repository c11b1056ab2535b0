"""Tests for session, routine and game point calculation."""

import pytest

from putting.catalog import get_game
from putting.errors import ValidationError
from putting.scoring import (
    DistanceResult,
    EliminationResult,
    PointsResult,
    RotationsResult,
    ScoringType,
    StreakResult,
    StrokesResult,
    TimeResult,
    Turn,
    calculate_game_points,
    calculate_routine_points,
    calculate_routine_totals,
    calculate_session_points,
    check_goal_achieved,
    level_from_points,
    merge_result_payload,
    next_level_points,
    parse_game_result,
    result_details,
    round_half_up,
)


class TestSessionPoints:
    """points = round(makes * distance/10 * percentage/100 * 10)"""

    def test_reference_session(self):
        result = calculate_session_points(7, 10, 20)
        assert result["percentage"] == 70.0
        assert result["points"] == 98
        assert result["distance_multiplier"] == 2.0

    def test_perfect_session(self):
        assert calculate_session_points(10, 10, 20)["points"] == 200

    def test_rounds_half_up(self):
        # 1 * 1.0 * 0.25 * 10 = 2.5
        assert calculate_session_points(1, 4, 10)["points"] == 3

    def test_percentage_one_decimal(self):
        result = calculate_session_points(2, 3, 10)
        assert result["percentage"] == 66.7
        assert result["points"] == 13

    def test_zero_makes(self):
        result = calculate_session_points(0, 10, 30)
        assert result["points"] == 0
        assert result["percentage"] == 0.0

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(0.5) == 1


class TestRoutinesAndLevels:
    def test_routine_points_sum_drills(self):
        drills = [
            {"makes": 7, "attempts": 10, "distance": 20},
            {"makes": 10, "attempts": 10, "distance": 20},
        ]
        assert calculate_routine_points(drills) == 298

    def test_routine_totals(self):
        totals = calculate_routine_totals(
            [{"makes": 15, "attempts": 20}, {"makes": 20, "attempts": 30}]
        )
        assert totals["total_makes"] == 35
        assert totals["total_attempts"] == 50
        assert totals["overall_percentage"] == 70.0
        assert totals["completed_drills"] == 2

    def test_levels(self):
        assert level_from_points(0) == 1
        assert level_from_points(999) == 1
        assert level_from_points(1000) == 2
        assert level_from_points(None) == 1
        assert next_level_points(2) == 2000
        assert next_level_points(0) == 1000


class TestGamePoints:
    def test_time_under_target(self):
        result = TimeResult(minutes=12, target_time=15)
        assert check_goal_achieved("time", result)
        assert calculate_game_points(get_game("around_the_world"), result) == 230

    def test_time_over_target(self):
        result = TimeResult(minutes=20, target_time=15)
        assert not check_goal_achieved("time", result)
        assert calculate_game_points(get_game("around_the_world"), result) == 100

    def test_time_never_negative(self):
        result = TimeResult(minutes=45, target_time=15)
        assert calculate_game_points(get_game("around_the_world"), result) == 0

    def test_strokes(self):
        result = StrokesResult(strokes=17, par=18)
        assert calculate_game_points(get_game("par_game"), result) == 240

    def test_points_pass_through(self):
        result = PointsResult(score=120, target_score=100)
        assert check_goal_achieved(ScoringType.POINTS, result)
        assert calculate_game_points(get_game("points_poker"), result) == 120

    def test_distance_ladder(self):
        game = get_game("ladder_challenge")
        assert calculate_game_points(game, DistanceResult(max_distance=45, target_distance=40)) == 130
        assert calculate_game_points(game, DistanceResult(max_distance=35, target_distance=40)) == 60
        assert calculate_game_points(game, DistanceResult(max_distance=5, target_distance=40)) == 0

    def test_streak(self):
        result = StreakResult(streak=10, target_streak=10)
        assert calculate_game_points(get_game("perfect_10"), result) == 150

    def test_elimination(self):
        game = get_game("horse")
        assert calculate_game_points(game, EliminationResult(won=True)) == 100
        assert calculate_game_points(game, EliminationResult(won=False)) == 0
        assert EliminationResult(won=True).score == 1

    def test_rotations(self):
        result = RotationsResult(
            distance=20, target_makes=70, turns=[Turn(makes=7, attempts=10) for _ in range(10)]
        )
        assert result.score == 70
        assert check_goal_achieved("rotations", result)
        assert calculate_game_points(get_game("putt_100"), result) == 980

    def test_unknown_scoring_type(self):
        with pytest.raises(ValidationError, match="Unknown scoring type"):
            check_goal_achieved("golf", TimeResult(minutes=1, target_time=1))


class TestParseGameResult:
    def test_target_comes_from_catalog(self):
        result = parse_game_result("time", {"minutes": 12.5}, get_game("around_the_world"))
        assert result == TimeResult(minutes=12.5, target_time=15)

    def test_bare_score_fills_primary_field(self):
        result = parse_game_result("strokes", {"score": 20}, get_game("par_game"))
        assert result.strokes == 20
        assert result.par == 18

    def test_elimination_from_string(self):
        result = parse_game_result("elimination", {"won": "true", "opponent": "Alex"})
        assert result.won is True
        assert result.opponent == "Alex"

    def test_missing_value(self):
        with pytest.raises(ValidationError, match="Best streak is required"):
            parse_game_result("streak", {}, get_game("perfect_10"))

    def test_rotations_needs_ten_turns(self):
        with pytest.raises(ValidationError, match="Exactly 10 turns"):
            parse_game_result("rotations", {"distance": 20, "turns": [{"makes": 1, "attempts": 2}]})

    def test_rotations_turn_errors(self):
        turns = [{"makes": 5, "attempts": 10} for _ in range(10)]
        turns[2] = {"makes": 5, "attempts": 4}
        with pytest.raises(ValidationError) as exc:
            parse_game_result("rotations", {"distance": 20, "turns": turns}, get_game("putt_100"))
        assert exc.value.errors == ["Turn 3: Makes (5) cannot be greater than Attempts (4)"]

    def test_explicit_zero_target_is_kept(self):
        result = parse_game_result("streak", {"streak": 3, "target_streak": 0}, get_game("perfect_10"))
        assert result.target_streak == 0
        assert check_goal_achieved("streak", result)

        result = parse_game_result("points", {"score": 5, "target_score": 0}, get_game("points_poker"))
        assert result.target_score == 0

    def test_rotations_turn_must_be_an_object(self):
        turns = [{"makes": 5, "attempts": 10} for _ in range(10)]
        turns[0] = 5
        with pytest.raises(ValidationError, match="Turn 1 must be an object"):
            parse_game_result("rotations", {"distance": 20, "turns": turns}, get_game("putt_100"))

    def test_details_reparse(self):
        turns = [{"makes": 8, "attempts": 10} for _ in range(10)]
        result = parse_game_result("rotations", {"distance": 15, "turns": turns}, get_game("putt_100"))
        details = result_details(result)
        assert details["total_makes"] == 80
        assert parse_game_result("rotations", details, get_game("putt_100")) == result

    def test_merge_score_edit(self):
        merged = merge_result_payload("time", {"minutes": 12, "target_time": 15}, {"score": 10})
        assert merged["minutes"] == 10

        merged = merge_result_payload("elimination", {"won": True}, {"score": 0})
        assert merged["won"] is False


class TestMonotonicity:
    @pytest.mark.parametrize("attempts,distance", [(10, 10), (25, 20), (50, 35)])
    def test_points_never_drop_as_makes_rise(self, attempts, distance):
        points = [calculate_session_points(m, attempts, distance)["points"] for m in range(attempts + 1)]
        assert points == sorted(points)

    def test_better_game_results_never_score_less(self):
        game = get_game("around_the_world")
        by_time = [calculate_game_points(game, TimeResult(minutes=m, target_time=15)) for m in range(40, 0, -1)]
        assert by_time == sorted(by_time)

        game = get_game("ladder_challenge")
        by_feet = [calculate_game_points(game, DistanceResult(max_distance=d, target_distance=40)) for d in range(0, 80)]
        assert by_feet == sorted(by_feet)
