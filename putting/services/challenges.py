# putting/services/challenges.py
import random
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from flask import current_app

from ..catalog import CHALLENGE_TYPES, DISTANCE_CHALLENGE_MAKES
from ..errors import StateError
from ..models.social import WeeklyChallenge
from ..scoring import round_half_up
from ..stats import calculate_streaks, weekly_makes


class ChallengeService:
    """
    Weekly challenge lifecycle: NoChallenge -> Active -> Expired -> Active(new).

    The newest WeeklyChallenge row is the active instance. Claims are rows in
    challenge_completions, so membership is checked and written by the store.
    """

    def __init__(self, store, achievements, clock=datetime.utcnow, rng=None, duration_days=7):
        self.store = store
        self.achievements = achievements
        self.clock = clock
        self.rng = rng or random.Random()
        self.duration = timedelta(days=duration_days)

    def load_weekly_challenge(self) -> WeeklyChallenge:
        challenge = self.store.current_challenge()
        if challenge is not None and self.clock() - challenge.start_date < self.duration:
            return challenge
        return self.create_new_challenge()

    def create_new_challenge(self) -> WeeklyChallenge:
        template = self.rng.choice(CHALLENGE_TYPES)
        challenge = WeeklyChallenge(
            type=template["type"],
            target=template["target"],
            desc=template["desc"],
            reward=template["reward"],
            start_date=self.clock(),
        )
        self.store.save_challenge(challenge)
        current_app.logger.info(
            "new weekly challenge %s: %s (reward %s)", challenge.id, challenge.desc, challenge.reward
        )
        return challenge

    def is_completed_by(self, user, challenge: Optional[WeeklyChallenge] = None) -> bool:
        if user is None:
            return False
        challenge = challenge or self.load_weekly_challenge()
        return self.store.has_claimed(challenge, user.id)

    # ------------------------------
    # Completion
    # ------------------------------
    def _is_met(self, challenge, session, sessions) -> bool:
        kind = challenge.type
        if kind == "accuracy":
            return session.percentage >= challenge.target
        if kind == "distance":
            return session.distance >= challenge.target and session.makes >= DISTANCE_CHALLENGE_MAKES
        if kind == "points":
            return session.points >= challenge.target

        today = self.clock().date()
        if kind == "volume":
            return weekly_makes(sessions, today) >= challenge.target
        if kind == "streak":
            current, _ = calculate_streaks(sessions, today)
            return current >= challenge.target
        return False

    def check_challenge_completion(self, user, session, sessions=None) -> bool:
        """
        Claim the active challenge for ``user`` if ``session`` (or the week's
        aggregate for volume/streak) meets it. Returns True only on the call
        that performs the claim.
        """
        if user is None or session is None:
            raise StateError("challenge check requires a user and a session")

        challenge = self.load_weekly_challenge()
        if self.store.has_claimed(challenge, user.id):
            return False

        if sessions is None:
            sessions = self.store.list_sessions(user.id)
        if not self._is_met(challenge, session, sessions):
            return False

        if not self.store.claim_challenge(challenge, user.id, when=self.clock()):
            return False

        user.total_points = (user.total_points or 0) + challenge.reward
        self.achievements.unlock(user, "challenge_accepted")
        current_app.logger.info(
            "user %s completed weekly challenge %s (+%s)", user.id, challenge.id, challenge.reward
        )
        return True

    def challenge_progress(self, user, sessions=None) -> Optional[Dict[str, Any]]:
        if user is None:
            return None

        challenge = self.load_weekly_challenge()
        if sessions is None:
            sessions = self.store.list_sessions(user.id)
        today = self.clock().date()
        target = challenge.target

        if challenge.type == "accuracy":
            progress = min(max([s.percentage for s in sessions] + [0]), target)
        elif challenge.type == "distance":
            long_makes = [s.makes for s in sessions if s.distance >= target]
            progress = min(max(long_makes + [0]), DISTANCE_CHALLENGE_MAKES)
            target = DISTANCE_CHALLENGE_MAKES
        elif challenge.type == "volume":
            progress = weekly_makes(sessions, today)
        elif challenge.type == "streak":
            progress, _ = calculate_streaks(sessions, today)
        else:
            progress = min(max([s.points for s in sessions] + [0]), target)

        return {
            "challenge": challenge.to_dict(),
            "current": progress,
            "target": target,
            "percentage": int(round_half_up(progress / target * 100)) if target else 0,
            "completed": self.store.has_claimed(challenge, user.id),
        }
