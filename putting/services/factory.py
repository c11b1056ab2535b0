# putting/services/factory.py
import random
from datetime import date, datetime

from flask import current_app, g

from ..storage import PracticeStore
from .achievements import AchievementService
from .challenges import ChallengeService
from .cross_logging import CrossLoggingService
from .progression import ProgressionService


class Services:
    def __init__(self, store, achievements, challenges, progression, cross_logging):
        self.store = store
        self.achievements = achievements
        self.challenges = challenges
        self.progression = progression
        self.cross_logging = cross_logging


def _launch_date(value):
    if not value:
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def build_services(config, clock=None, rng=None, session=None) -> Services:
    """Wire the engine services from a Flask config mapping."""
    clock = clock or datetime.utcnow
    store = PracticeStore(session=session, leaderboard_limit=config.get("LEADERBOARD_LIMIT", 100))
    achievements = AchievementService(
        store,
        clock=clock,
        credit_points=config.get("CREDIT_ACHIEVEMENT_POINTS", False),
        launch_date=_launch_date(config.get("APP_LAUNCH_DATE")),
    )
    challenges = ChallengeService(
        store,
        achievements,
        clock=clock,
        rng=rng or random.Random(),
        duration_days=config.get("CHALLENGE_DURATION_DAYS", 7),
    )
    progression = ProgressionService(
        store,
        achievements,
        challenges,
        clock=clock,
        min_distance=config.get("MIN_DISTANCE", 1),
        max_distance=config.get("MAX_DISTANCE", 100),
    )
    return Services(store, achievements, challenges, progression, CrossLoggingService(store, progression))


def get_services() -> Services:
    """Per-request services bound to the current app's config."""
    if "putting_services" not in g:
        g.putting_services = build_services(current_app.config)
    return g.putting_services
