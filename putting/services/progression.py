# putting/services/progression.py
"""
Session / routine / game lifecycle and the user aggregates they feed.

Every public method is one transaction: writes are flushed in pipeline order
(record -> user aggregate -> achievements -> weekly challenge) and committed
once. Any exception rolls the whole action back and propagates.
"""
import secrets
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional

from flask import current_app

from ..catalog import get_game, get_routine
from ..errors import NotFoundError, ValidationError
from ..models.practice import GameCompletion, PracticeSession, RoutineCompletion
from ..models.user import GENDERS, GOAL_KEYS, GOAL_LIMITS, User
from ..scoring import (
    calculate_game_points,
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
from ..stats import (
    calculate_stats,
    calculate_weekly_progress,
    overall_game_stats,
    overall_routine_stats,
)
from ..validation import (
    as_int,
    ensure_valid_session_input,
    parse_bool,
    sanitize_string,
    validate_date,
    validate_drill,
)

NAME_MAX = 100
NOTES_MAX = 1000


def _floor(value) -> int:
    return max(0, int(value or 0))


def _duration_minutes(raw) -> int:
    if raw is None or raw == "":
        return 0
    value = as_int(raw)
    if value is None or value < 0:
        raise ValidationError("Duration must be a whole number of minutes, at least 0")
    return value


def _parse_end_time(raw, now: datetime) -> datetime:
    if not raw:
        return now
    try:
        end = datetime.fromisoformat(str(raw))
    except ValueError:
        raise ValidationError("Invalid end time")
    if end.tzinfo is not None:
        end = end.replace(tzinfo=None)
    if end > now:
        raise ValidationError("End time cannot be in the future")
    return end


class ProgressionService:
    def __init__(self, store, achievements, challenges, clock=datetime.utcnow,
                 min_distance: int = 1, max_distance: int = 100):
        self.store = store
        self.achievements = achievements
        self.challenges = challenges
        self.clock = clock
        self.min_distance = min_distance
        self.max_distance = max_distance

    @contextmanager
    def transaction(self):
        try:
            yield
            self.store.commit()
        except Exception:
            self.store.rollback()
            raise

    # ------------------------------
    # Users
    # ------------------------------
    def initialize_user(self, identity: Mapping[str, Any]):
        """
        Create the user on first authentication, or refresh last_login and
        resync the record counters. Returns (user, created).
        """
        email = (identity.get("email") or "").strip().lower()
        if not email:
            raise ValidationError("email is required")

        with self.transaction():
            user = self.store.find_user(email=email)
            now = self.clock()

            if user is not None:
                user = self.store.lock_user(user.id)
                user.last_login = now
                if user.gender not in GENDERS:
                    user.gender = "male"
                user.total_sessions = self.store.count_records("session", user.id)
                user.total_routines = self.store.count_records("routine", user.id)
                user.total_games = self.store.count_records("game", user.id)
                self.store.save_user(user)
                return user, False

            local_part = email.split("@")[0]
            username = sanitize_string(identity.get("username"), 50) or local_part[:50]
            if self.store.find_user(username=username):
                username = f"{username[:41]}_{secrets.token_hex(4)}"

            gender = str(identity.get("gender") or "").lower()
            user = User(
                email=email,
                username=username,
                display_name=sanitize_string(identity.get("display_name"), NAME_MAX) or local_part or "User",
                avatar_url=identity.get("avatar_url"),
                gender=gender if gender in GENDERS else "male",
                created_at=now,
                last_login=now,
            )
            # accounts from an external identity provider get an unusable password
            user.set_password(identity.get("password") or secrets.token_urlsafe(32))
            self.store.save_user(user)
            current_app.logger.info("created user %s (%s)", user.id, user.email)
            return user, True

    def update_profile(self, user_id, data: Mapping[str, Any]) -> Dict[str, Any]:
        with self.transaction():
            user = self.store.lock_user(user_id)

            if "display_name" in data:
                name = sanitize_string(data.get("display_name"), NAME_MAX)
                if not name:
                    raise ValidationError("Display name cannot be empty")
                user.display_name = name
            if "gender" in data:
                gender = str(data.get("gender") or "").lower()
                if gender not in GENDERS:
                    raise ValidationError("Gender must be male or female")
                user.gender = gender
            if "birthday" in data:
                raw = data.get("birthday")
                user.birthday = validate_date(raw, today=self.clock().date()) if raw else None
            for key in ("favorite_putter", "favorite_midrange", "favorite_driver", "avatar_url"):
                if key in data:
                    setattr(user, key, sanitize_string(data.get(key)) or None)
            for key in ("hide_from_leaderboard", "opt_out_shared_logging"):
                if key in data:
                    setattr(user, key, parse_bool(data.get(key)))
            if "goals" in data:
                user.goals = self._parse_goals(data.get("goals") or {})

            self.store.save_user(user)
            new_achievements = self.achievements.check_achievements(user)
            current_app.logger.info("user %s updated profile", user.id)
            return {"user": user.to_dict(), "new_achievements": new_achievements}

    def _parse_goals(self, raw: Mapping[str, Any]) -> Dict[str, int]:
        if not isinstance(raw, Mapping):
            raise ValidationError("Goals must be an object")
        goals = {}
        errors = []
        for key in GOAL_KEYS:
            value = as_int(raw.get(key) or 0)
            if value is None or value < 0 or value > GOAL_LIMITS[key]:
                errors.append(f"Weekly {key} goal must be between 0 and {GOAL_LIMITS[key]}")
            else:
                goals[key] = value
        if errors:
            raise ValidationError(errors)
        return goals

    def get_statistics(self, user_id) -> Dict[str, Any]:
        user = self.store.require_user(user_id)
        today = self.clock().date()
        sessions = self.store.list_sessions(user.id)
        routines = self.store.list_routines(user.id)
        games = self.store.list_games(user.id)

        stats = calculate_stats(sessions, today=today)
        best = stats["best_session"]
        stats["best_session"] = best.to_dict() if best is not None else None

        level = level_from_points(user.total_points)
        return {
            **stats,
            "total_points": user.total_points,
            "total_routines": user.total_routines,
            "total_games": user.total_games,
            "best_accuracy": user.best_accuracy,
            "level": level,
            "next_level_points": next_level_points(level),
            "achievements": user.achievements,
            "routines": overall_routine_stats(routines),
            "games": overall_game_stats(games),
            "weekly_progress": calculate_weekly_progress(sessions, routines, games, user.goals, today=today),
        }

    # ------------------------------
    # Sessions
    # ------------------------------
    def _stamp_actor(self, record, actor: Optional[User], pending: bool):
        record.pending = pending
        if actor is not None:
            record.logged_by = actor.id
            record.logged_by_name = actor.display_name or actor.username

    def build_session(self, user, data: Mapping[str, Any], actor=None, pending=False) -> PracticeSession:
        makes, attempts, distance = ensure_valid_session_input(
            data.get("makes"), data.get("attempts"), data.get("distance"),
            self.min_distance, self.max_distance,
        )
        now = self.clock()
        day = validate_date(data["date"], today=now.date()) if data.get("date") else now.date()
        scored = calculate_session_points(makes, attempts, distance)

        session = PracticeSession(
            user_id=user.id,
            date=day,
            timestamp=now,
            distance=distance,
            makes=makes,
            attempts=attempts,
            percentage=scored["percentage"],
            points=scored["points"],
            routine_name=sanitize_string(data.get("routine_name"), NAME_MAX) or None,
        )
        self._stamp_actor(session, actor, pending)
        return session

    def record_session(self, user, data, actor=None, pending=False) -> Dict[str, Any]:
        session = self.store.add_record(self.build_session(user, data, actor, pending))
        current_app.logger.info(
            "session %s for user %s: %s/%s from %sft = %s pts%s",
            session.id, user.id, session.makes, session.attempts, session.distance,
            session.points, " (pending)" if pending else "",
        )
        if pending:
            return self._result("session", session, user)
        return self.apply_record(user, "session", session)

    def add_session(self, user_id, data: Mapping[str, Any]) -> Dict[str, Any]:
        with self.transaction():
            user = self.store.lock_user(user_id)
            return self.record_session(user, data)

    def update_session(self, user_id, session_id, data: Mapping[str, Any]) -> Dict[str, Any]:
        with self.transaction():
            user = self.store.lock_user(user_id)
            session = self.store.get_owned_record("session", user.id, session_id)

            makes, attempts, distance = ensure_valid_session_input(
                data.get("makes", session.makes),
                data.get("attempts", session.attempts),
                data.get("distance", session.distance),
                self.min_distance, self.max_distance,
            )
            scored = calculate_session_points(makes, attempts, distance)
            points_diff = scored["points"] - session.points
            putts_diff = attempts - session.attempts
            makes_diff = makes - session.makes

            session.makes, session.attempts, session.distance = makes, attempts, distance
            session.percentage = scored["percentage"]
            session.points = scored["points"]
            if data.get("date"):
                session.date = validate_date(data["date"], today=self.clock().date())
            if "routine_name" in data:
                session.routine_name = sanitize_string(data.get("routine_name"), NAME_MAX) or None
            self.store.flush()

            new_achievements = []
            if not session.pending:
                user.total_points = _floor(user.total_points + points_diff)
                user.total_putts = _floor(user.total_putts + putts_diff)
                user.total_makes = _floor(user.total_makes + makes_diff)
                self._refresh_best(user)
                self.store.save_user(user)
                new_achievements = self.achievements.check_achievements(user)

            current_app.logger.info(
                "session %s for user %s edited (%+d pts)", session.id, user.id, points_diff
            )
            return {
                **self._result("session", session, user),
                "points_diff": points_diff,
                "new_achievements": new_achievements,
            }

    def delete_session(self, user_id, session_id) -> Dict[str, Any]:
        with self.transaction():
            user = self.store.lock_user(user_id)
            session = self.store.get_owned_record("session", user.id, session_id)

            if not session.pending:
                user.total_points = _floor(user.total_points - session.points)
                user.total_sessions = _floor(user.total_sessions - 1)
                user.total_putts = _floor(user.total_putts - session.attempts)
                user.total_makes = _floor(user.total_makes - session.makes)

            self.store.delete_record(session)
            self._refresh_best(user)
            self.store.save_user(user)
            current_app.logger.info("session %s for user %s deleted", session_id, user.id)
            return {"deleted": int(session_id), "user": user.to_dict()}

    def _update_best(self, user, session) -> None:
        best = user.best_session or {}
        if best.get("points") is None or session.points > best["points"]:
            user.best_session = session.to_dict()
        if session.percentage > (user.best_accuracy or 0):
            user.best_accuracy = session.percentage

    def _refresh_best(self, user) -> None:
        sessions = self.store.list_sessions(user.id)
        best = calculate_stats(sessions)["best_session"]
        user.best_session = best.to_dict() if best is not None else None
        user.best_accuracy = max([s.percentage for s in sessions] + [0])

    # ------------------------------
    # Routines
    # ------------------------------
    def _score_drills(self, routine, raw_drills) -> List[Dict[str, Any]]:
        template = routine["drills"]
        if not isinstance(raw_drills, list) or len(raw_drills) != len(template):
            raise ValidationError(f"{routine['name']} has {len(template)} drills; all must be completed")

        drills, errors = [], []
        for i, (tpl, raw) in enumerate(zip(template, raw_drills), start=1):
            if not isinstance(raw, Mapping):
                raw = {}
            drill = {
                "distance": tpl["distance"],
                "target_attempts": tpl["attempts"],
                "description": tpl["description"],
                "makes": as_int(raw.get("makes")),
                "attempts": as_int(raw.get("attempts", tpl["attempts"])),
            }
            ok, drill_errors = validate_drill(drill, require_result=True)
            if not ok:
                errors.extend(f"Drill {i}: {e}" for e in drill_errors)
                continue
            drill["percentage"] = round_half_up(drill["makes"] / drill["attempts"] * 100, 1)
            drill["points"] = calculate_session_points(drill["makes"], drill["attempts"], drill["distance"])["points"]
            drills.append(drill)

        if errors:
            raise ValidationError(errors)
        return drills

    def build_routine(self, user, data, actor=None, pending=False) -> RoutineCompletion:
        routine = get_routine(data.get("routine_id"))
        if routine is None:
            raise NotFoundError("routine not found")

        drills = self._score_drills(routine, data.get("drills"))
        duration = _duration_minutes(data.get("duration"))
        end_time = _parse_end_time(data.get("end_time"), self.clock())

        completion = RoutineCompletion(
            user_id=user.id,
            routine_id=routine["id"],
            routine_name=routine["name"],
            start_time=end_time - timedelta(minutes=duration),
            end_time=end_time,
            duration=duration,
            drills=drills,
            total_stats=calculate_routine_totals(drills),
            points=sum(d["points"] for d in drills),
            notes=sanitize_string(data.get("notes"), NOTES_MAX) or None,
        )
        self._stamp_actor(completion, actor, pending)
        return completion

    def record_routine(self, user, data, actor=None, pending=False) -> Dict[str, Any]:
        completion = self.store.add_record(self.build_routine(user, data, actor, pending))
        current_app.logger.info(
            "routine %s (%s) for user %s = %s pts%s",
            completion.id, completion.routine_id, user.id, completion.points,
            " (pending)" if pending else "",
        )
        if pending:
            return self._result("routine", completion, user)
        return self.apply_record(user, "routine", completion)

    def complete_routine(self, user_id, data: Mapping[str, Any]) -> Dict[str, Any]:
        with self.transaction():
            user = self.store.lock_user(user_id)
            return self.record_routine(user, data)

    def update_routine(self, user_id, completion_id, data: Mapping[str, Any]) -> Dict[str, Any]:
        with self.transaction():
            user = self.store.lock_user(user_id)
            completion = self.store.get_owned_record("routine", user.id, completion_id)

            if "drills" in data:
                routine = get_routine(completion.routine_id)
                drills = self._score_drills(routine, data.get("drills"))
                completion.drills = drills
                completion.total_stats = calculate_routine_totals(drills)
            new_points = sum(
                calculate_session_points(d["makes"], d["attempts"], d["distance"])["points"]
                for d in completion.drills
            )
            if "duration" in data:
                completion.duration = _duration_minutes(data.get("duration"))
                completion.start_time = completion.end_time - timedelta(minutes=completion.duration)
            if "notes" in data:
                completion.notes = sanitize_string(data.get("notes"), NOTES_MAX) or None

            points_diff = new_points - completion.points
            completion.points = new_points
            self.store.flush()

            new_achievements = []
            if not completion.pending:
                user.total_points = _floor(user.total_points + points_diff)
                self.store.save_user(user)
                new_achievements = self.achievements.check_achievements(user)

            current_app.logger.info(
                "routine %s for user %s edited (%+d pts)", completion.id, user.id, points_diff
            )
            return {
                **self._result("routine", completion, user),
                "points_diff": points_diff,
                "new_achievements": new_achievements,
            }

    def delete_routine(self, user_id, completion_id) -> Dict[str, Any]:
        with self.transaction():
            user = self.store.lock_user(user_id)
            completion = self.store.get_owned_record("routine", user.id, completion_id)
            if not completion.pending:
                user.total_points = _floor(user.total_points - completion.points)
                user.total_routines = _floor(user.total_routines - 1)
            self.store.delete_record(completion)
            self.store.save_user(user)
            current_app.logger.info("routine %s for user %s deleted", completion_id, user.id)
            return {"deleted": int(completion_id), "user": user.to_dict()}

    # ------------------------------
    # Games
    # ------------------------------
    def _score_game(self, record: GameCompletion, game, payload) -> None:
        result = parse_game_result(game["scoring"]["type"], payload, game)
        record.score = result.score
        record.goal_achieved = check_goal_achieved(game["scoring"]["type"], result)
        record.points = calculate_game_points(game, result)
        record.details = result_details(result)

    def build_game(self, user, data, actor=None, pending=False) -> GameCompletion:
        game = get_game(data.get("game_id"))
        if game is None:
            raise NotFoundError("game not found")

        duration = _duration_minutes(data.get("duration"))
        end_time = _parse_end_time(data.get("end_time"), self.clock())
        completion = GameCompletion(
            user_id=user.id,
            game_id=game["id"],
            game_name=game["name"],
            scoring_type=game["scoring"]["type"],
            duration=duration,
            start_time=end_time - timedelta(minutes=duration),
            end_time=end_time,
            notes=sanitize_string(data.get("notes"), NOTES_MAX) or None,
        )
        self._score_game(completion, game, data)
        self._stamp_actor(completion, actor, pending)
        return completion

    def record_game(self, user, data, actor=None, pending=False) -> Dict[str, Any]:
        completion = self.store.add_record(self.build_game(user, data, actor, pending))
        current_app.logger.info(
            "game %s (%s) for user %s: score %s = %s pts%s",
            completion.id, completion.game_id, user.id, completion.score, completion.points,
            " (pending)" if pending else "",
        )
        if pending:
            return self._result("game", completion, user)
        return self.apply_record(user, "game", completion)

    def complete_game(self, user_id, data: Mapping[str, Any]) -> Dict[str, Any]:
        with self.transaction():
            user = self.store.lock_user(user_id)
            return self.record_game(user, data)

    def update_game(self, user_id, completion_id, data: Mapping[str, Any]) -> Dict[str, Any]:
        with self.transaction():
            user = self.store.lock_user(user_id)
            completion = self.store.get_owned_record("game", user.id, completion_id)
            game = get_game(completion.game_id)

            old_points = completion.points
            payload = merge_result_payload(completion.scoring_type, completion.details, data)
            self._score_game(completion, game, payload)
            if "duration" in data:
                completion.duration = _duration_minutes(data.get("duration"))
                completion.start_time = completion.end_time - timedelta(minutes=completion.duration)
            if "notes" in data:
                completion.notes = sanitize_string(data.get("notes"), NOTES_MAX) or None
            points_diff = completion.points - old_points
            self.store.flush()

            new_achievements = []
            if not completion.pending:
                user.total_points = _floor(user.total_points + points_diff)
                self.store.save_user(user)
                new_achievements = self.achievements.check_achievements(user)

            current_app.logger.info(
                "game %s for user %s edited (%+d pts)", completion.id, user.id, points_diff
            )
            return {
                **self._result("game", completion, user),
                "points_diff": points_diff,
                "new_achievements": new_achievements,
            }

    def delete_game(self, user_id, completion_id) -> Dict[str, Any]:
        with self.transaction():
            user = self.store.lock_user(user_id)
            completion = self.store.get_owned_record("game", user.id, completion_id)
            if not completion.pending:
                user.total_points = _floor(user.total_points - completion.points)
                user.total_games = _floor(user.total_games - 1)
            self.store.delete_record(completion)
            self.store.save_user(user)
            current_app.logger.info("game %s for user %s deleted", completion_id, user.id)
            return {"deleted": int(completion_id), "user": user.to_dict()}

    # ------------------------------
    # Shared pipeline
    # ------------------------------
    def apply_record(self, user, kind: str, record) -> Dict[str, Any]:
        """
        Credit a persisted, non-pending record to its owner: aggregates, then
        achievements, then (sessions only) the weekly challenge.
        """
        user.total_points = (user.total_points or 0) + record.points
        if kind == "session":
            user.total_sessions = (user.total_sessions or 0) + 1
            user.total_putts = (user.total_putts or 0) + record.attempts
            user.total_makes = (user.total_makes or 0) + record.makes
            self._update_best(user, record)
        elif kind == "routine":
            user.total_routines = (user.total_routines or 0) + 1
        else:
            user.total_games = (user.total_games or 0) + 1
        self.store.save_user(user)

        if kind == "session":
            sessions = self.store.list_sessions(user.id)
            new_achievements = self.achievements.check_achievements(user, sessions=sessions)
        else:
            sessions = None
            new_achievements = self.achievements.check_achievements(user)

        challenge_completed = False
        if kind == "session":
            had_badge = user.has_achievement("challenge_accepted")
            challenge_completed = self.challenges.check_challenge_completion(user, record, sessions=sessions)
            if challenge_completed and not had_badge and user.has_achievement("challenge_accepted"):
                new_achievements.append("challenge_accepted")
            self.store.save_user(user)

        return {
            **self._result(kind, record, user),
            "new_achievements": new_achievements,
            "challenge_completed": challenge_completed,
        }

    def _result(self, kind: str, record, user) -> Dict[str, Any]:
        return {kind: record.to_dict(), "user": user.to_dict()}
