# putting/errors.py
from typing import Any, Dict, List, Optional


class PuttingError(Exception):
    """Base class for errors the engine reports back to its caller."""

    status_code = 500

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = list(errors or [])

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"message": self.message}
        if self.errors:
            payload["errors"] = self.errors
        return payload


class ValidationError(PuttingError):
    """Input violates a numeric or format constraint. Nothing was written."""

    status_code = 400

    def __init__(self, errors, message: Optional[str] = None):
        if isinstance(errors, str):
            errors = [errors]
        errors = list(errors)
        super().__init__(message or ". ".join(errors) or "invalid input", errors)


class NotFoundError(PuttingError):
    status_code = 404


class PermissionDeniedError(PuttingError):
    status_code = 403


class StateError(PuttingError):
    """Engine called without the user/session context it requires."""

    status_code = 500
