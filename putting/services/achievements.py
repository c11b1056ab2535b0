# putting/services/achievements.py
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Set

from flask import current_app

from ..catalog import ACHIEVEMENTS, ACHIEVEMENTS_BY_ID, PUTTING_GAMES, SUGGESTED_ROUTINES
from ..errors import StateError, ValidationError
from ..scoring import round_half_up
from ..stats import calculate_stats, unique_practice_dates, user_rank

# Unlocked by explicit events rather than derived from stored data.
EVENT_ACHIEVEMENTS = {"game_on", "challenge_accepted"}

ALL_RANGES_FEET = {10, 20, 30, 40, 50}
EARLY_ADOPTER_DAYS = 30
COMEBACK_GAP_DAYS = 30


@dataclass
class AchievementContext:
    user: Any
    sessions: List[Any] = field(default_factory=list)
    routines: List[Any] = field(default_factory=list)
    games: List[Any] = field(default_factory=list)
    friends_count: int = 0
    leaderboard_rank: int = -1
    stats: Dict[str, Any] = field(default_factory=dict)
    now: datetime = field(default_factory=datetime.utcnow)
    launch_date: Optional[date] = None

    @property
    def longest_streak(self) -> int:
        return self.stats.get("longest_streak") or 0


# ------------------------------
# Rule helpers
# ------------------------------
def _any_session(pred: Callable[[Any], bool]) -> Callable[[AchievementContext], bool]:
    return lambda ctx: any(pred(s) for s in ctx.sessions)


def _streak(days: int):
    return lambda ctx: ctx.longest_streak >= days


def _rank_within(position: int):
    return lambda ctx: 0 < ctx.leaderboard_rank <= position


def _account_age(days: int):
    def rule(ctx):
        created = ctx.user.created_at
        return created is not None and (ctx.now - created).days >= days
    return rule


def _games_of(ctx, game_id):
    return [g for g in ctx.games if g.game_id == game_id]


def _game_score(game_id: str, pred: Callable[[float], bool]):
    return lambda ctx: any(g.score is not None and pred(g.score) for g in _games_of(ctx, game_id))


def _game_goal(game_id: str):
    return lambda ctx: any(g.goal_achieved for g in _games_of(ctx, game_id))


def _routine_count(ctx, routine_id):
    return sum(1 for r in ctx.routines if r.routine_id == routine_id)


def _hour_of(session) -> Optional[int]:
    ts = getattr(session, "timestamp", None)
    return ts.hour if ts is not None else None


def _weekend_pair(ctx) -> bool:
    days = set(unique_practice_dates(ctx.sessions))
    return any(d.weekday() == 5 and d + timedelta(days=1) in days for d in days)


def _comeback(ctx) -> bool:
    days = unique_practice_dates(ctx.sessions)
    return any((newer - older).days > COMEBACK_GAP_DAYS for newer, older in zip(days, days[1:]))


def _early_adopter(ctx) -> bool:
    created = ctx.user.created_at
    if ctx.launch_date is None or created is None:
        return False
    return created.date() < ctx.launch_date + timedelta(days=EARLY_ADOPTER_DAYS)


def _discs_set(user) -> bool:
    return all((user.favorite_putter, user.favorite_midrange, user.favorite_driver))


def _profile_complete(ctx) -> bool:
    u = ctx.user
    return bool(u.display_name and u.gender and u.birthday) and _discs_set(u)


ACHIEVEMENT_RULES: Dict[str, Callable[[AchievementContext], bool]] = {
    # getting started
    "first_steps": lambda ctx: len(ctx.sessions) >= 1,
    "early_bird": _any_session(lambda s: _hour_of(s) is not None and _hour_of(s) < 8),
    "night_owl": _any_session(lambda s: _hour_of(s) is not None and _hour_of(s) >= 20),
    # accuracy
    "perfect_10": _any_session(lambda s: s.makes >= 10 and s.percentage == 100),
    "ninety_percent_club": _any_session(lambda s: s.percentage >= 90),
    "flawless": _any_session(lambda s: s.makes >= 50 and s.percentage == 100),
    "sharpshooter": _any_session(lambda s: s.distance >= 20 and s.percentage >= 95),
    # points & sessions
    "century_club": _any_session(lambda s: s.points >= 100),
    "half_century": lambda ctx: len(ctx.sessions) >= 50,
    "centurion": lambda ctx: len(ctx.sessions) >= 100,
    "point_king": lambda ctx: (ctx.user.total_points or 0) >= 1000,
    "point_legend": lambda ctx: (ctx.user.total_points or 0) >= 5000,
    # streaks
    "week_warrior": _streak(7),
    "two_week_streak": _streak(14),
    "month_master": _streak(30),
    "iron_will": _streak(60),
    "unstoppable": _streak(100),
    # distance
    "long_ranger": _any_session(lambda s: s.distance >= 30),
    "distance_demon": _any_session(lambda s: s.distance >= 40 and s.makes >= 5),
    "downtown_driver": _any_session(lambda s: s.distance >= 50 and s.makes >= 1),
    "extreme_range": _any_session(lambda s: s.distance >= 60 and s.makes >= 3),
    # volume
    "hundred_club": _any_session(lambda s: s.makes >= 100),
    "two_hundred_club": _any_session(lambda s: s.makes >= 200),
    "marathon_putter": _any_session(lambda s: s.attempts >= 500),
    "iron_man": _any_session(lambda s: s.attempts >= 1000),
    # routines
    "routine_rookie": lambda ctx: len(ctx.routines) >= 1,
    "routine_regular": lambda ctx: len({r.routine_id for r in ctx.routines}) >= 5,
    "routine_master": lambda ctx: all(_routine_count(ctx, r["id"]) for r in SUGGESTED_ROUTINES),
    "ladder_climber": lambda ctx: _routine_count(ctx, "advanced_ladder") >= 1,
    "consistency_king": lambda ctx: _routine_count(ctx, "consistency_builder") >= 3,
    "routine_addict": lambda ctx: len(ctx.routines) >= 25,
    # games
    "first_game": lambda ctx: len(ctx.games) >= 1,
    "game_enthusiast": lambda ctx: len(ctx.games) >= 10,
    "game_master": lambda ctx: {g["id"] for g in PUTTING_GAMES} <= {g.game_id for g in ctx.games},
    "around_the_world_champ": _game_score("around_the_world", lambda minutes: minutes < 15),
    "horse_master": lambda ctx: sum(1 for g in _games_of(ctx, "horse") if g.goal_achieved) >= 3,
    "perfect_streak": _game_goal("perfect_10"),
    "distance_champion": _game_score("ladder_challenge", lambda feet: feet >= 40),
    "par_shooter": _game_goal("par_game"),
    "poker_pro": _game_score("points_poker", lambda points: points >= 100),
    "putt_100_master": _game_score("putt_100", lambda makes: makes >= 80),
    # social & competition
    "social_butterfly": lambda ctx: ctx.friends_count >= 5,
    "friend_magnet": lambda ctx: ctx.friends_count >= 10,
    "podium_finish": _rank_within(3),
    "top_ten": _rank_within(10),
    "number_one": _rank_within(1),
    # variety
    "distance_explorer": lambda ctx: len({s.distance for s in ctx.sessions}) >= 10,
    "all_ranges": lambda ctx: ALL_RANGES_FEET <= {s.distance for s in ctx.sessions},
    "versatile_putter": lambda ctx: bool(ctx.sessions and ctx.routines and ctx.games),
    # dedication
    "weekend_warrior": _weekend_pair,
    "daily_grinder": lambda ctx: len(unique_practice_dates(ctx.sessions)) >= 365,
    "committed": _account_age(30),
    "veteran": _account_age(90),
    "legend": _account_age(365),
    "early_adopter": _early_adopter,
    # special
    "comeback_kid": _comeback,
    "profile_complete": _profile_complete,
    "disc_collector": lambda ctx: _discs_set(ctx.user),
}


def evaluate_achievements(ctx: AchievementContext) -> Set[str]:
    """Ids of every rule whose condition currently holds, unlocked or not."""
    return {aid for aid, rule in ACHIEVEMENT_RULES.items() if rule(ctx)}


class AchievementService:
    def __init__(self, store, clock=datetime.utcnow, credit_points=False, launch_date=None):
        self.store = store
        self.clock = clock
        self.credit_points = credit_points
        self.launch_date = launch_date

    def build_context(self, user, sessions=None, friends_count=None, leaderboard_rank=None,
                      routines=None, games=None) -> AchievementContext:
        now = self.clock()
        if sessions is None:
            sessions = self.store.list_sessions(user.id)
        if routines is None:
            routines = self.store.list_routines(user.id)
        if games is None:
            games = self.store.list_games(user.id)
        if friends_count is None:
            friends_count = self.store.friends_count(user.id)
        if leaderboard_rank is None:
            leaderboard_rank = user_rank(self.store.leaderboard("points"), user.id)

        return AchievementContext(
            user=user,
            sessions=sessions,
            routines=routines,
            games=games,
            friends_count=friends_count,
            leaderboard_rank=leaderboard_rank,
            stats=calculate_stats(sessions, today=now.date()),
            now=now,
            launch_date=self.launch_date,
        )

    def check_achievements(self, user, sessions=None, friends_count=None, leaderboard_rank=None,
                           routines=None, games=None) -> List[str]:
        """
        Evaluate every rule and unlock the ones that now hold.

        Returns only ids unlocked by this call, so a second call with no new
        data returns [].
        """
        if user is None:
            raise StateError("achievement check requires a user")

        ctx = self.build_context(user, sessions, friends_count, leaderboard_rank, routines, games)
        satisfied = evaluate_achievements(ctx)

        newly_unlocked = []
        for a in ACHIEVEMENTS:
            if a["id"] in satisfied and not user.has_achievement(a["id"]):
                if self.unlock(user, a["id"]):
                    newly_unlocked.append(a["id"])

        if newly_unlocked:
            current_app.logger.info(
                "user %s unlocked achievements: %s", user.id, ", ".join(newly_unlocked)
            )
        return newly_unlocked

    def unlock(self, user, achievement_id: str) -> bool:
        if user is None:
            raise StateError("unlock requires a user")
        achievement = ACHIEVEMENTS_BY_ID.get(achievement_id)
        if achievement is None:
            raise ValidationError(f"Unknown achievement: {achievement_id}")

        if user.has_achievement(achievement_id):
            return False
        if not self.store.insert_achievement(user, achievement_id, when=self.clock()):
            return False

        if self.credit_points:
            user.total_points = (user.total_points or 0) + achievement["points"]
        return True

    def achievements_with_status(self, user) -> List[Dict[str, Any]]:
        unlocked = {ua.achievement_id: ua.unlocked_at for ua in user.unlocked_achievements}
        result = []
        for a in ACHIEVEMENTS:
            at = unlocked.get(a["id"])
            result.append({
                **a,
                "is_unlocked": a["id"] in unlocked,
                "unlocked_at": at.isoformat() if at else None,
            })
        return result

    def progress(self, user) -> Dict[str, Any]:
        total = len(ACHIEVEMENTS)
        unlocked = sum(1 for aid in user.achievements if aid in ACHIEVEMENTS_BY_ID)
        return {
            "unlocked": unlocked,
            "total": total,
            "percentage": int(round_half_up(unlocked / total * 100)),
        }
