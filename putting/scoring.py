# putting/scoring.py
"""
Point calculation for sessions, routines and putting games.

Everything in here is pure: callers validate input first and persist the
results themselves.
"""
from dataclasses import asdict, dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .errors import ValidationError

DISTANCE_DIVISOR = 10
ACCURACY_DIVISOR = 100
BASE_MULTIPLIER = 10

LEVEL_STEP_POINTS = 1000

GOAL_BONUS_POINTS = 50
ELIMINATION_WIN_POINTS = 100
POINTS_PER_LEVEL = 10
LADDER_START_DISTANCE = 10
LADDER_STEP_DISTANCE = 5
ROTATION_TURNS = 10


def round_half_up(value: float, places: int = 0) -> float:
    """Round the way the web client did (Math.round / toFixed), not banker's."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


# ------------------------------
# Sessions & routines
# ------------------------------
def calculate_session_points(makes: int, attempts: int, distance: int) -> Dict[str, Any]:
    """
    points = round(makes * (distance / 10) * (percentage / 100) * 10)

    attempts must be > 0; this does not check it.
    """
    percentage = round_half_up(makes / attempts * 100, 1)
    distance_multiplier = distance / DISTANCE_DIVISOR
    accuracy_multiplier = percentage / ACCURACY_DIVISOR
    points = int(
        round_half_up(makes * distance_multiplier * accuracy_multiplier * BASE_MULTIPLIER)
    )

    return {
        "points": points,
        "percentage": percentage,
        "distance_multiplier": distance_multiplier,
        "accuracy_multiplier": accuracy_multiplier,
    }


def calculate_routine_points(drills: Iterable[Mapping[str, Any]]) -> int:
    return sum(
        calculate_session_points(d["makes"], d["attempts"], d["distance"])["points"]
        for d in drills
    )


def calculate_routine_totals(drills: List[Mapping[str, Any]]) -> Dict[str, Any]:
    total_makes = sum(d.get("makes") or 0 for d in drills)
    total_attempts = sum(d.get("attempts") or 0 for d in drills)
    overall = total_makes / total_attempts * 100 if total_attempts > 0 else 0

    return {
        "total_drills": len(drills),
        "completed_drills": sum(1 for d in drills if d.get("makes") is not None),
        "total_makes": total_makes,
        "total_attempts": total_attempts,
        "overall_percentage": round_half_up(overall, 1),
    }


def level_from_points(total_points: int) -> int:
    total_points = int(total_points or 0)
    return max(1, (total_points // LEVEL_STEP_POINTS) + 1)


def next_level_points(level: int) -> int:
    if level < 1:
        level = 1
    return level * LEVEL_STEP_POINTS


# ------------------------------
# Games
# ------------------------------
class ScoringType(str, Enum):
    TIME = "time"
    STROKES = "strokes"
    POINTS = "points"
    DISTANCE = "distance"
    STREAK = "streak"
    ELIMINATION = "elimination"
    ROTATIONS = "rotations"


# Lower score is better for these; everything else ranks high-to-low.
LOWER_IS_BETTER = {ScoringType.TIME, ScoringType.STROKES}

DEFAULT_TARGETS = {
    ScoringType.TIME: 15,
    ScoringType.STROKES: 18,
    ScoringType.POINTS: 100,
    ScoringType.DISTANCE: 40,
    ScoringType.STREAK: 10,
    ScoringType.ROTATIONS: 70,
}


@dataclass
class TimeResult:
    minutes: float
    target_time: float

    @property
    def score(self):
        return self.minutes


@dataclass
class StrokesResult:
    strokes: int
    par: int

    @property
    def score(self):
        return self.strokes


@dataclass
class PointsResult:
    score: int
    target_score: int
    total_putts: Optional[int] = None


@dataclass
class DistanceResult:
    max_distance: int
    target_distance: int
    total_rounds: Optional[int] = None

    @property
    def score(self):
        return self.max_distance


@dataclass
class StreakResult:
    streak: int
    target_streak: int
    total_attempts: Optional[int] = None

    @property
    def score(self):
        return self.streak


@dataclass
class EliminationResult:
    won: bool
    opponent: Optional[str] = None

    @property
    def score(self):
        return 1 if self.won else 0


@dataclass
class Turn:
    makes: int
    attempts: int

    @property
    def percentage(self) -> float:
        return self.makes / self.attempts * 100 if self.attempts > 0 else 0


@dataclass
class RotationsResult:
    distance: int
    target_makes: int
    turns: List[Turn] = field(default_factory=list)

    @property
    def total_makes(self) -> int:
        return sum(t.makes for t in self.turns)

    @property
    def total_attempts(self) -> int:
        return sum(t.attempts for t in self.turns)

    @property
    def score(self):
        return self.total_makes


# The field an edit of "score" writes to.
PRIMARY_FIELDS = {
    ScoringType.TIME: "minutes",
    ScoringType.STROKES: "strokes",
    ScoringType.POINTS: "score",
    ScoringType.DISTANCE: "max_distance",
    ScoringType.STREAK: "streak",
    ScoringType.ELIMINATION: "won",
}


def _ladder_points(max_distance: int) -> int:
    if max_distance < LADDER_START_DISTANCE:
        return 0
    levels = (max_distance - LADDER_START_DISTANCE) // LADDER_STEP_DISTANCE + 1
    return levels * POINTS_PER_LEVEL


def _rotations_points(r: RotationsResult) -> int:
    if r.total_attempts <= 0:
        return 0
    return calculate_session_points(r.total_makes, r.total_attempts, r.distance)["points"]


@dataclass(frozen=True)
class _GameRule:
    base_points: Callable[[Any], int]
    goal_achieved: Callable[[Any], bool]
    goal_bonus: int = 0


_GAME_RULES: Dict[ScoringType, _GameRule] = {
    ScoringType.TIME: _GameRule(
        base_points=lambda r: max(0, int(round_half_up((2 * r.target_time - r.minutes) * 10))),
        goal_achieved=lambda r: r.minutes <= r.target_time,
        goal_bonus=GOAL_BONUS_POINTS,
    ),
    ScoringType.STROKES: _GameRule(
        base_points=lambda r: max(0, (2 * r.par - r.strokes) * 10),
        goal_achieved=lambda r: r.strokes <= r.par,
        goal_bonus=GOAL_BONUS_POINTS,
    ),
    ScoringType.POINTS: _GameRule(
        base_points=lambda r: int(r.score),
        goal_achieved=lambda r: r.score >= r.target_score,
    ),
    ScoringType.DISTANCE: _GameRule(
        base_points=lambda r: _ladder_points(r.max_distance),
        goal_achieved=lambda r: r.max_distance >= r.target_distance,
        goal_bonus=GOAL_BONUS_POINTS,
    ),
    ScoringType.STREAK: _GameRule(
        base_points=lambda r: r.streak * POINTS_PER_LEVEL,
        goal_achieved=lambda r: r.streak >= r.target_streak,
        goal_bonus=GOAL_BONUS_POINTS,
    ),
    ScoringType.ELIMINATION: _GameRule(
        base_points=lambda r: ELIMINATION_WIN_POINTS if r.won else 0,
        goal_achieved=lambda r: r.won is True,
    ),
    ScoringType.ROTATIONS: _GameRule(
        base_points=_rotations_points,
        goal_achieved=lambda r: r.total_makes >= r.target_makes,
    ),
}


def _scoring_type_of(value) -> ScoringType:
    try:
        return ScoringType(value)
    except ValueError:
        raise ValidationError(f"Unknown scoring type: {value}")


def check_goal_achieved(scoring_type, result) -> bool:
    st = _scoring_type_of(scoring_type)
    return bool(_GAME_RULES[st].goal_achieved(result))


def calculate_game_points(game: Mapping[str, Any], result) -> int:
    """Points for one game result; ``game`` is a PUTTING_GAMES entry."""
    st = _scoring_type_of(game["scoring"]["type"])
    rule = _GAME_RULES[st]
    points = rule.base_points(result)
    if rule.goal_bonus and rule.goal_achieved(result):
        points += rule.goal_bonus
    return int(points)


# ------------------------------
# Parsing raw payloads into result records
# ------------------------------
def _number(payload: Mapping[str, Any], key: str, label: str, minimum=0, integer=True, required=True):
    raw = payload.get(key)
    if raw is None or raw == "":
        if required:
            raise ValidationError(f"{label} is required")
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a valid number")
    if integer:
        if not value.is_integer():
            raise ValidationError(f"{label} must be a whole number")
        value = int(value)
    if value < minimum:
        raise ValidationError(f"{label} must be at least {minimum}")
    return value


def _as_bool(raw) -> bool:
    if isinstance(raw, str):
        return raw.strip().lower() in ("true", "1", "yes")
    return bool(raw)


def parse_game_result(scoring_type, payload: Mapping[str, Any], game: Optional[Mapping[str, Any]] = None):
    st = _scoring_type_of(scoring_type)
    target = None
    if game is not None:
        target = game.get("scoring", {}).get("target")
    if target is None:
        target = DEFAULT_TARGETS.get(st)

    def primary(key):
        return key if payload.get(key) is not None else "score"

    def target_or_default(key, label, **kwargs):
        value = _number(payload, key, label, required=False, **kwargs)
        return target if value is None else value

    if st is ScoringType.TIME:
        return TimeResult(
            minutes=_number(payload, primary("minutes"), "Completion time", minimum=0, integer=False),
            target_time=target_or_default("target_time", "Target time", integer=False),
        )
    if st is ScoringType.STROKES:
        return StrokesResult(
            strokes=_number(payload, primary("strokes"), "Total strokes", minimum=1),
            par=target_or_default("par", "Par", minimum=1),
        )
    if st is ScoringType.POINTS:
        return PointsResult(
            score=_number(payload, "score", "Points scored"),
            target_score=target_or_default("target_score", "Target score"),
            total_putts=_number(payload, "total_putts", "Total putts", required=False),
        )
    if st is ScoringType.DISTANCE:
        return DistanceResult(
            max_distance=_number(payload, primary("max_distance"), "Maximum distance"),
            target_distance=target_or_default("target_distance", "Target distance"),
            total_rounds=_number(payload, "total_rounds", "Total rounds", required=False),
        )
    if st is ScoringType.STREAK:
        return StreakResult(
            streak=_number(payload, primary("streak"), "Best streak"),
            target_streak=target_or_default("target_streak", "Target streak"),
            total_attempts=_number(payload, "total_attempts", "Total attempts", required=False),
        )
    if st is ScoringType.ELIMINATION:
        if payload.get("won") is not None:
            won = _as_bool(payload.get("won"))
        elif payload.get("score") is not None:
            won = _number(payload, "score", "Result") > 0
        else:
            raise ValidationError("Win or loss is required")
        opponent = payload.get("opponent")
        return EliminationResult(won=won, opponent=str(opponent) if opponent else None)

    # rotations
    raw_turns = payload.get("turns") or []
    if len(raw_turns) != ROTATION_TURNS:
        raise ValidationError(f"Exactly {ROTATION_TURNS} turns are required")
    turns: List[Turn] = []
    errors: List[str] = []
    for i, raw in enumerate(raw_turns, start=1):
        if not isinstance(raw, Mapping):
            raise ValidationError(f"Turn {i} must be an object")
        makes = _number(raw, "makes", f"Turn {i} makes")
        attempts = _number(raw, "attempts", f"Turn {i} attempts", minimum=1)
        if makes > attempts:
            errors.append(f"Turn {i}: Makes ({makes}) cannot be greater than Attempts ({attempts})")
        turns.append(Turn(makes=makes, attempts=attempts))
    if errors:
        raise ValidationError(errors)

    return RotationsResult(
        distance=_number(payload, "distance", "Putting distance", minimum=1),
        target_makes=target_or_default("target_makes", "Target makes"),
        turns=turns,
    )


def result_details(result) -> Dict[str, Any]:
    """Plain mapping of a result record, re-parseable by parse_game_result."""
    details = asdict(result)
    if isinstance(result, RotationsResult):
        details["total_makes"] = result.total_makes
        details["total_attempts"] = result.total_attempts
    return details


def merge_result_payload(scoring_type, stored: Mapping[str, Any], changes: Mapping[str, Any]) -> Dict[str, Any]:
    """Overlay an edit onto stored details; a bare "score" edits the primary field."""
    st = _scoring_type_of(scoring_type)
    merged = dict(stored or {})
    merged.update(changes)
    key = PRIMARY_FIELDS.get(st)
    if key and key != "score" and changes.get("score") is not None and changes.get(key) is None:
        if st is ScoringType.ELIMINATION:
            merged[key] = _number(changes, "score", "Result") > 0
        else:
            merged[key] = changes["score"]
    return merged
