# putting/models/social.py
from datetime import datetime
from .. import db
from .user import ID


# -----------------------------
# Achievements
# -----------------------------
class UserAchievement(db.Model):
    """One unlocked catalog achievement; definitions live in catalog.ACHIEVEMENTS."""

    __tablename__ = "user_achievements"
    __table_args__ = (
        db.UniqueConstraint("user_id", "achievement_id", name="uq_user_achievement"),
    )

    id = db.Column(ID, primary_key=True)
    user_id = db.Column(ID, db.ForeignKey("users.id"), nullable=False, index=True)
    achievement_id = db.Column(db.String(50), nullable=False)
    unlocked_at = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow
    )


# -----------------------------
# Friendships
# -----------------------------
class Friendship(db.Model):
    __tablename__ = "friendships"

    id = db.Column(ID, primary_key=True)
    requester_id = db.Column(ID, db.ForeignKey("users.id"), nullable=False)
    addressee_id = db.Column(ID, db.ForeignKey("users.id"), nullable=False)
    status = db.Column(
        db.Enum("pending", "accepted", "blocked", name="friendship_status"),
        nullable=False,
        default="pending",
    )
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    requester = db.relationship(
        "User", foreign_keys=[requester_id], backref="sent_friendships"
    )
    addressee = db.relationship(
        "User", foreign_keys=[addressee_id], backref="received_friendships"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "requester_id": self.requester_id,
            "addressee_id": self.addressee_id,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


# -----------------------------
# Weekly challenge
# -----------------------------
class WeeklyChallenge(db.Model):
    """
    Rotating global goal. The newest row is the active instance; older rows
    are superseded, never deleted, so their completions stay attributable.
    """

    __tablename__ = "weekly_challenges"

    id = db.Column(ID, primary_key=True)
    type = db.Column(
        db.Enum(
            "accuracy",
            "distance",
            "volume",
            "streak",
            "points",
            name="weekly_challenge_type",
        ),
        nullable=False,
    )
    target = db.Column(db.Integer, nullable=False)
    desc = db.Column(db.String(255), nullable=False)
    reward = db.Column(db.Integer, nullable=False, default=0)
    start_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    completions = db.relationship(
        "ChallengeCompletion",
        back_populates="challenge",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def completed_by(self):
        return [c.user_id for c in self.completions]

    def to_dict(self):
        return {
            "id": self.id,
            "type": self.type,
            "target": self.target,
            "desc": self.desc,
            "reward": self.reward,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "completed_by": self.completed_by,
        }


class ChallengeCompletion(db.Model):
    """completedBy membership; the unique key makes a claim an atomic add-to-set."""

    __tablename__ = "challenge_completions"
    __table_args__ = (
        db.UniqueConstraint("challenge_id", "user_id", name="uq_challenge_completion"),
    )

    id = db.Column(ID, primary_key=True)
    challenge_id = db.Column(ID, db.ForeignKey("weekly_challenges.id"), nullable=False)
    user_id = db.Column(ID, db.ForeignKey("users.id"), nullable=False)
    completed_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    challenge = db.relationship("WeeklyChallenge", back_populates="completions")
    user = db.relationship("User", backref="challenge_completions")
