# putting/services/cross_logging.py
from typing import Any, Dict, Iterable, List, Mapping

from flask import current_app

from ..errors import NotFoundError, PermissionDeniedError, PuttingError, ValidationError
from ..validation import as_int


class CrossLoggingService:
    """
    Logging practice on another user's behalf.

    With approval the record is stored pending and the owner's aggregates are
    untouched until they accept it. Without approval the owner's normal add
    pipeline runs immediately.
    """

    def __init__(self, store, progression):
        self.store = store
        self.progression = progression
        self._recorders = {
            "session": progression.record_session,
            "routine": progression.record_routine,
            "game": progression.record_game,
        }

    def _check_target(self, actor, target_id):
        if as_int(target_id) is None:
            raise ValidationError("user_id must be a user id")
        target = self.store.get_user(target_id)
        if target is None:
            raise NotFoundError("target user not found")
        if target.id == actor.id:
            raise ValidationError("Use the regular log for your own practice")
        if target.opt_out_shared_logging:
            current_app.logger.warning(
                "user %s tried to log for user %s, who opted out of shared logging",
                actor.id, target.id,
            )
            raise PermissionDeniedError(
                f"{target.display_name or target.username} does not accept shared logging"
            )
        return target

    def _log_for(self, kind: str, actor_id, target_id, data, require_approval: bool) -> Dict[str, Any]:
        with self.progression.transaction():
            actor = self.store.require_user(actor_id)
            target = self._check_target(actor, target_id)
            target = self.store.lock_user(target.id)
            return self._recorders[kind](target, data, actor=actor, pending=bool(require_approval))

    def log_session_for(self, actor_id, target_id, data: Mapping[str, Any], require_approval: bool = True):
        return self._log_for("session", actor_id, target_id, data, require_approval)

    def log_routine_for(self, actor_id, target_id, data: Mapping[str, Any], require_approval: bool = True):
        return self._log_for("routine", actor_id, target_id, data, require_approval)

    def log_game_for(self, actor_id, target_id, data: Mapping[str, Any], require_approval: bool = True):
        return self._log_for("game", actor_id, target_id, data, require_approval)

    def bulk_log_sessions(self, actor_id, entries: Iterable[Mapping[str, Any]],
                          require_approval: bool = True) -> Dict[str, List[Any]]:
        """
        One transaction per entry: a failed entry is reported and the rest
        still commit.
        """
        logged, failed = [], []
        for entry in entries:
            if not isinstance(entry, Mapping):
                failed.append({"user_id": None, "errors": ["Each entry must be an object"]})
                continue
            target_id = entry.get("user_id")
            try:
                result = self.log_session_for(actor_id, target_id, entry, require_approval)
            except PuttingError as e:
                current_app.logger.warning(
                    "bulk log by user %s for user %s failed: %s", actor_id, target_id, e.message
                )
                failed.append({"user_id": target_id, "errors": e.errors or [e.message]})
                continue
            logged.append(result["session"])
        return {"logged": logged, "failed": failed}

    # ------------------------------
    # Owner side
    # ------------------------------
    def list_pending(self, user_id) -> Dict[str, List[Dict[str, Any]]]:
        pending = self.store.list_pending(user_id)
        return {f"{kind}s": [r.to_dict() for r in rows] for kind, rows in pending.items()}

    def _pending_record(self, user_id, kind, record_id):
        record = self.store.get_record(kind, record_id)
        if record is None:
            raise NotFoundError(f"{kind} not found")
        if record.user_id != int(user_id):
            raise PermissionDeniedError(f"only the owner can review this {kind}")
        if not record.pending:
            raise NotFoundError(f"no pending {kind} with this id")
        return record

    def accept_pending(self, user_id, kind: str, record_id) -> Dict[str, Any]:
        with self.progression.transaction():
            user = self.store.lock_user(user_id)
            record = self._pending_record(user.id, kind, record_id)
            record.pending = False
            self.store.flush()
            result = self.progression.apply_record(user, kind, record)
            current_app.logger.info(
                "user %s accepted %s %s logged by %s", user.id, kind, record.id, record.logged_by
            )
            return result

    def reject_pending(self, user_id, kind: str, record_id) -> Dict[str, Any]:
        with self.progression.transaction():
            record = self._pending_record(user_id, kind, record_id)
            logged_by = record.logged_by
            self.store.delete_record(record)
            current_app.logger.info(
                "user %s rejected %s %s logged by %s", user_id, kind, record_id, logged_by
            )
            return {"rejected": int(record_id), "kind": kind}

    def shareable_users(self, actor_id) -> List[Dict[str, Any]]:
        return [u.to_public_dict() for u in self.store.shareable_users(actor_id)]
