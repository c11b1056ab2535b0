# putting/storage.py
"""
Persistence boundary for the progression engine.

Every read and write the services perform goes through ``PracticeStore`` so
that services never touch ``db.session`` directly. Writes are flushed, not
committed: the calling service commits once per user action.
"""
from typing import List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError

from . import db
from .errors import NotFoundError, PermissionDeniedError, ValidationError
from .validation import as_int
from .models.user import User
from .models.practice import RECORD_KINDS, GameCompletion, PracticeSession, RoutineCompletion
from .models.social import ChallengeCompletion, Friendship, UserAchievement, WeeklyChallenge

LEADERBOARD_METRICS = {
    "points": User.total_points,
    "sessions": User.total_sessions,
    "routines": User.total_routines,
    "games": User.total_games,
}

_RECENCY = {
    PracticeSession: (PracticeSession.date.desc(), PracticeSession.timestamp.desc(), PracticeSession.id.desc()),
    RoutineCompletion: (RoutineCompletion.end_time.desc(), RoutineCompletion.id.desc()),
    GameCompletion: (GameCompletion.end_time.desc(), GameCompletion.id.desc()),
}


def record_model(kind: str):
    try:
        return RECORD_KINDS[kind]
    except KeyError:
        raise ValidationError(f"Unknown record kind: {kind}")


class PracticeStore:
    def __init__(self, session=None, leaderboard_limit: int = 100):
        self.session = session or db.session
        self.leaderboard_limit = leaderboard_limit

    # ------------------------------
    # Users
    # ------------------------------
    def get_user(self, user_id) -> Optional[User]:
        user_id = as_int(user_id)
        if user_id is None:
            return None
        return self.session.get(User, user_id)

    def require_user(self, user_id) -> User:
        user = self.get_user(user_id)
        if not user:
            raise NotFoundError("user not found")
        return user

    def lock_user(self, user_id) -> User:
        """Load the user row with SELECT ... FOR UPDATE for an aggregate write."""
        user_id = as_int(user_id)
        if user_id is None:
            raise NotFoundError("user not found")
        user = (
            self.session.query(User)
            .filter(User.id == user_id)
            .populate_existing()
            .with_for_update()
            .first()
        )
        if not user:
            raise NotFoundError("user not found")
        return user

    def find_login(self, identifier: str) -> Optional[User]:
        """Email (case-insensitive) or exact username."""
        return (
            self.session.query(User)
            .filter(or_(User.email == identifier.lower(), User.username == identifier))
            .first()
        )

    def find_user(self, email: str = None, username: str = None) -> Optional[User]:
        q = self.session.query(User)
        if email:
            return q.filter(User.email == email).first()
        if username:
            return q.filter(User.username == username).first()
        return None

    def save_user(self, user: User) -> User:
        self.session.add(user)
        self.session.flush()
        return user

    def shareable_users(self, actor_id) -> List[User]:
        return (
            self.session.query(User)
            .filter(User.id != int(actor_id), User.opt_out_shared_logging.is_(False))
            .order_by(User.display_name.asc(), User.id.asc())
            .all()
        )

    # ------------------------------
    # Sessions / routines / games
    # ------------------------------
    def add_record(self, record):
        self.session.add(record)
        self.session.flush()
        return record

    def list_records(self, kind: str, user_id, include_pending: bool = False):
        model = record_model(kind)
        q = self.session.query(model).filter(model.user_id == int(user_id))
        if not include_pending:
            q = q.filter(model.pending.is_(False))
        return q.order_by(*_RECENCY[model]).all()

    def list_sessions(self, user_id, include_pending: bool = False) -> List[PracticeSession]:
        return self.list_records("session", user_id, include_pending)

    def list_routines(self, user_id, include_pending: bool = False) -> List[RoutineCompletion]:
        return self.list_records("routine", user_id, include_pending)

    def list_games(self, user_id, include_pending: bool = False) -> List[GameCompletion]:
        return self.list_records("game", user_id, include_pending)

    def list_pending(self, user_id):
        result = {}
        for kind, model in RECORD_KINDS.items():
            result[kind] = (
                self.session.query(model)
                .filter(model.user_id == int(user_id), model.pending.is_(True))
                .order_by(*_RECENCY[model])
                .all()
            )
        return result

    def get_record(self, kind: str, record_id):
        model = record_model(kind)
        return self.session.get(model, int(record_id))

    def get_owned_record(self, kind: str, user_id, record_id):
        record = self.get_record(kind, record_id)
        if not record or record.user_id != int(user_id):
            raise NotFoundError(f"{kind} not found")
        return record

    def count_records(self, kind: str, user_id) -> int:
        model = record_model(kind)
        return (
            self.session.query(model)
            .filter(model.user_id == int(user_id), model.pending.is_(False))
            .count()
        )

    def delete_record(self, record) -> None:
        self.session.delete(record)
        self.session.flush()

    def all_games(self, game_id: str) -> List[GameCompletion]:
        return (
            self.session.query(GameCompletion)
            .filter(GameCompletion.game_id == game_id, GameCompletion.pending.is_(False))
            .all()
        )

    # ------------------------------
    # Achievements
    # ------------------------------
    def insert_achievement(self, user: User, achievement_id: str, when=None) -> bool:
        """False when the (user, achievement) row already exists."""
        row = UserAchievement(achievement_id=achievement_id)
        if when is not None:
            row.unlocked_at = when
        try:
            with self.session.begin_nested():
                user.unlocked_achievements.append(row)
                self.session.flush()
        except IntegrityError:
            return False
        return True

    # ------------------------------
    # Weekly challenge
    # ------------------------------
    def current_challenge(self) -> Optional[WeeklyChallenge]:
        return (
            self.session.query(WeeklyChallenge)
            .order_by(WeeklyChallenge.start_date.desc(), WeeklyChallenge.id.desc())
            .first()
        )

    def save_challenge(self, challenge: WeeklyChallenge) -> WeeklyChallenge:
        self.session.add(challenge)
        self.session.flush()
        return challenge

    def has_claimed(self, challenge: WeeklyChallenge, user_id) -> bool:
        return (
            self.session.query(ChallengeCompletion.id)
            .filter_by(challenge_id=challenge.id, user_id=int(user_id))
            .first()
            is not None
        )

    def claim_challenge(self, challenge: WeeklyChallenge, user_id, when=None) -> bool:
        """
        Atomic add-to-set on completedBy. Returns False if this user already
        holds a claim on this challenge instance.
        """
        row = ChallengeCompletion(challenge_id=challenge.id, user_id=int(user_id))
        if when is not None:
            row.completed_at = when
        try:
            with self.session.begin_nested():
                self.session.add(row)
                self.session.flush()
        except IntegrityError:
            return False
        # keep the loaded collection in step with the table
        self.session.expire(challenge, ["completions"])
        return True

    # ------------------------------
    # Friends & leaderboard
    # ------------------------------
    def friend_ids(self, user_id) -> List[int]:
        user_id = int(user_id)
        friendships = self.session.query(Friendship).filter(
            Friendship.status == "accepted",
            or_(
                Friendship.requester_id == user_id,
                Friendship.addressee_id == user_id,
            ),
        ).all()

        friend_ids = set()
        for f in friendships:
            friend_ids.add(f.addressee_id if f.requester_id == user_id else f.requester_id)
        return sorted(friend_ids)

    def friends_count(self, user_id) -> int:
        return len(self.friend_ids(user_id))

    def find_friendship(self, a_id, b_id) -> Optional[Friendship]:
        a_id, b_id = int(a_id), int(b_id)
        return self.session.query(Friendship).filter(
            or_(
                and_(Friendship.requester_id == a_id, Friendship.addressee_id == b_id),
                and_(Friendship.requester_id == b_id, Friendship.addressee_id == a_id),
            )
        ).first()

    def request_friendship(self, requester_id, addressee_id):
        """
        Pending request from requester to addressee; returns (friendship, created).
        An existing accepted or pending pair is returned as-is; a blocked pair refuses.
        """
        if int(requester_id) == int(addressee_id):
            raise ValidationError("cannot add yourself as a friend")
        existing = self.find_friendship(requester_id, addressee_id)
        if existing is not None:
            if existing.status == "blocked":
                raise PermissionDeniedError("friendship is blocked")
            return existing, False
        friendship = Friendship(requester_id=int(requester_id), addressee_id=int(addressee_id), status="pending")
        self.session.add(friendship)
        self.session.flush()
        return friendship, True

    def pending_request(self, requester_id, addressee_id) -> Friendship:
        friendship = (
            self.session.query(Friendship)
            .filter_by(requester_id=int(requester_id), addressee_id=int(addressee_id), status="pending")
            .first()
        )
        if friendship is None:
            raise NotFoundError("no pending request from this user")
        return friendship

    def block(self, user_id, other_id) -> Friendship:
        friendship = self.find_friendship(user_id, other_id)
        if friendship is None:
            friendship = Friendship(requester_id=int(user_id), addressee_id=int(other_id))
            self.session.add(friendship)
        friendship.status = "blocked"
        self.session.flush()
        return friendship

    def leaderboard(self, metric: str = "points", limit: Optional[int] = None) -> List[User]:
        column = LEADERBOARD_METRICS.get(metric)
        if column is None:
            raise ValidationError(f"Unknown leaderboard metric: {metric}")
        return (
            self.session.query(User)
            .filter(User.hide_from_leaderboard.is_(False))
            .order_by(column.desc(), User.id.asc())
            .limit(limit or self.leaderboard_limit)
            .all()
        )

    # ------------------------------
    # Transactions
    # ------------------------------
    def flush(self) -> None:
        self.session.flush()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
