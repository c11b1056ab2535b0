# putting/models/practice.py
from datetime import datetime
from sqlalchemy.orm import declared_attr
from .. import db
from .user import ID


def _iso(value):
    return value.isoformat() if value else None


class _LoggedRecord:
    """Columns shared by every record another user can log on the owner's behalf."""

    @declared_attr
    def logged_by(cls):
        return db.Column(ID, db.ForeignKey("users.id"))

    logged_by_name = db.Column(db.String(100))
    pending = db.Column(db.Boolean, nullable=False, default=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def _logged_fields(self):
        return {
            "logged_by": self.logged_by,
            "logged_by_name": self.logged_by_name,
            "pending": bool(self.pending),
        }


# -----------------------------
# Sessions
# -----------------------------
class PracticeSession(_LoggedRecord, db.Model):
    __tablename__ = "practice_sessions"

    id = db.Column(ID, primary_key=True)
    user_id = db.Column(ID, db.ForeignKey("users.id"), nullable=False, index=True)

    date = db.Column(db.Date, nullable=False, index=True)
    timestamp = db.Column(db.DateTime)
    distance = db.Column(db.Integer, nullable=False)
    makes = db.Column(db.Integer, nullable=False)
    attempts = db.Column(db.Integer, nullable=False)
    percentage = db.Column(db.Float, nullable=False)
    points = db.Column(db.Integer, nullable=False, default=0)
    routine_name = db.Column(db.String(100))

    user = db.relationship("User", foreign_keys=[user_id], backref="practice_sessions")

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "date": _iso(self.date),
            "timestamp": _iso(self.timestamp),
            "distance": self.distance,
            "makes": self.makes,
            "attempts": self.attempts,
            "percentage": self.percentage,
            "points": self.points,
            "routine_name": self.routine_name,
            **self._logged_fields(),
        }


# -----------------------------
# Routines
# -----------------------------
class RoutineCompletion(_LoggedRecord, db.Model):
    __tablename__ = "routine_completions"

    id = db.Column(ID, primary_key=True)
    user_id = db.Column(ID, db.ForeignKey("users.id"), nullable=False, index=True)

    routine_id = db.Column(db.String(50), nullable=False, index=True)
    routine_name = db.Column(db.String(100), nullable=False)
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False, index=True)
    duration = db.Column(db.Integer, nullable=False, default=0)  # minutes
    # [{distance, target_attempts, description, makes, attempts, percentage}]
    drills = db.Column(db.JSON, nullable=False)
    total_stats = db.Column(db.JSON, nullable=False)
    points = db.Column(db.Integer, nullable=False, default=0)
    notes = db.Column(db.Text)

    user = db.relationship("User", foreign_keys=[user_id], backref="routine_completions")

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "routine_id": self.routine_id,
            "routine_name": self.routine_name,
            "start_time": _iso(self.start_time),
            "end_time": _iso(self.end_time),
            "duration": self.duration,
            "drills": list(self.drills or []),
            "total_stats": dict(self.total_stats or {}),
            "points": self.points,
            "notes": self.notes,
            **self._logged_fields(),
        }


# -----------------------------
# Games
# -----------------------------
class GameCompletion(_LoggedRecord, db.Model):
    __tablename__ = "game_completions"

    id = db.Column(ID, primary_key=True)
    user_id = db.Column(ID, db.ForeignKey("users.id"), nullable=False, index=True)

    game_id = db.Column(db.String(50), nullable=False, index=True)
    game_name = db.Column(db.String(100), nullable=False)
    scoring_type = db.Column(
        db.Enum(
            "time",
            "strokes",
            "points",
            "distance",
            "streak",
            "elimination",
            "rotations",
            name="game_scoring_type",
        ),
        nullable=False,
    )
    score = db.Column(db.Float)
    goal_achieved = db.Column(db.Boolean, nullable=False, default=False)
    points = db.Column(db.Integer, nullable=False, default=0)
    duration = db.Column(db.Integer, nullable=False, default=0)  # minutes
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False, index=True)
    notes = db.Column(db.Text)
    # typed result record (see scoring.result_details)
    details = db.Column(db.JSON, nullable=False)

    user = db.relationship("User", foreign_keys=[user_id], backref="game_completions")

    def to_dict(self):
        score = self.score
        if score is not None and float(score).is_integer():
            score = int(score)
        return {
            "id": self.id,
            "user_id": self.user_id,
            "game_id": self.game_id,
            "game_name": self.game_name,
            "scoring_type": self.scoring_type,
            "score": score,
            "goal_achieved": bool(self.goal_achieved),
            "points": self.points,
            "duration": self.duration,
            "start_time": _iso(self.start_time),
            "end_time": _iso(self.end_time),
            "notes": self.notes,
            "details": dict(self.details or {}),
            **self._logged_fields(),
        }


RECORD_KINDS = {
    "session": PracticeSession,
    "routine": RoutineCompletion,
    "game": GameCompletion,
}
