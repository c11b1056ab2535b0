# putting/models/user.py
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from .. import db

# BIGINT ids on MySQL; SQLite only autoincrements INTEGER primary keys.
ID = db.BigInteger().with_variant(db.Integer, "sqlite")

GENDERS = ("male", "female")
GOAL_KEYS = ("putts", "sessions", "routines", "games")
GOAL_LIMITS = {"putts": 10000, "sessions": 100, "routines": 50, "games": 50}


def default_goals():
    return {k: 0 for k in GOAL_KEYS}


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(ID, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    username = db.Column(db.String(50), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    display_name = db.Column(db.String(100))
    avatar_url = db.Column(db.String(255))

    # profile
    gender = db.Column(db.Enum(*GENDERS, name="gender_enum"), nullable=False, default="male")
    birthday = db.Column(db.Date)
    favorite_putter = db.Column(db.String(100))
    favorite_midrange = db.Column(db.String(100))
    favorite_driver = db.Column(db.String(100))
    hide_from_leaderboard = db.Column(db.Boolean, nullable=False, default=False)
    opt_out_shared_logging = db.Column(db.Boolean, nullable=False, default=False)
    goals = db.Column(db.JSON, nullable=False, default=default_goals)

    # aggregate progression state
    total_points = db.Column(db.Integer, nullable=False, default=0)
    total_sessions = db.Column(db.Integer, nullable=False, default=0)
    total_routines = db.Column(db.Integer, nullable=False, default=0)
    total_games = db.Column(db.Integer, nullable=False, default=0)
    total_putts = db.Column(db.Integer, nullable=False, default=0)
    total_makes = db.Column(db.Integer, nullable=False, default=0)
    best_session = db.Column(db.JSON)
    best_accuracy = db.Column(db.Float, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    last_login = db.Column(db.DateTime)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    # optimistic lock: a stale flush raises StaleDataError
    version = db.Column(db.Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}

    unlocked_achievements = db.relationship(
        "UserAchievement",
        backref="user",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="UserAchievement.unlocked_at",
    )

    def __init__(self, **kwargs):
        # aggregates must read as zero before the first flush
        for key in ("total_points", "total_sessions", "total_routines", "total_games",
                    "total_putts", "total_makes", "best_accuracy"):
            kwargs.setdefault(key, 0)
        kwargs.setdefault("hide_from_leaderboard", False)
        kwargs.setdefault("opt_out_shared_logging", False)
        kwargs.setdefault("goals", default_goals())
        kwargs.setdefault("gender", "male")
        super().__init__(**kwargs)

    @property
    def achievements(self):
        return [ua.achievement_id for ua in self.unlocked_achievements]

    def has_achievement(self, achievement_id: str) -> bool:
        return any(ua.achievement_id == achievement_id for ua in self.unlocked_achievements)

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "username": self.username,
            "display_name": self.display_name,
            "avatar_url": self.avatar_url,
            "gender": self.gender,
            "birthday": self.birthday.isoformat() if self.birthday else None,
            "favorite_putter": self.favorite_putter,
            "favorite_midrange": self.favorite_midrange,
            "favorite_driver": self.favorite_driver,
            "hide_from_leaderboard": self.hide_from_leaderboard,
            "opt_out_shared_logging": self.opt_out_shared_logging,
            "goals": dict(self.goals or default_goals()),
            "total_points": self.total_points,
            "total_sessions": self.total_sessions,
            "total_routines": self.total_routines,
            "total_games": self.total_games,
            "total_putts": self.total_putts,
            "total_makes": self.total_makes,
            "best_session": self.best_session,
            "best_accuracy": self.best_accuracy,
            "achievements": self.achievements,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "last_login": self.last_login.isoformat() if self.last_login else None,
        }

    def to_public_dict(self):
        """Fields other users may see (leaderboard, friends, log-for pickers)."""
        return {
            "id": self.id,
            "username": self.username,
            "display_name": self.display_name,
            "avatar_url": self.avatar_url,
            "total_points": self.total_points,
            "total_sessions": self.total_sessions,
            "total_routines": self.total_routines,
            "total_games": self.total_games,
        }
