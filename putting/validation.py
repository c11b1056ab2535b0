# putting/validation.py
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from .errors import ValidationError

MIN_MAKES = 0
MIN_ATTEMPTS = 1
MIN_DISTANCE = 1
MAX_DISTANCE = 100


def as_int(v: Any) -> Optional[int]:
    """Integers, integral floats and numeric strings; None for anything else."""
    if isinstance(v, bool) or v is None:
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, float):
        return int(v) if v.is_integer() else None
    if isinstance(v, str):
        try:
            return int(v.strip())
        except ValueError:
            return None
    return None


def validate_session_input(
    makes: Any,
    attempts: Any,
    distance: Any,
    min_distance: int = MIN_DISTANCE,
    max_distance: int = MAX_DISTANCE,
) -> Tuple[bool, List[str]]:
    errors: List[str] = []

    makes, attempts, distance = as_int(makes), as_int(attempts), as_int(distance)
    if makes is None or attempts is None or distance is None:
        errors.append("All fields must be valid numbers")
        return False, errors

    if makes < MIN_MAKES:
        errors.append(f"Makes must be at least {MIN_MAKES}")

    if attempts < MIN_ATTEMPTS:
        errors.append(f"Attempts must be at least {MIN_ATTEMPTS}")

    if distance < min_distance:
        errors.append(f"Distance must be at least {min_distance} feet")

    if distance > max_distance:
        errors.append(f"Distance must be at most {max_distance} feet")

    if makes > attempts:
        errors.append("Makes cannot exceed attempts")

    return len(errors) == 0, errors


def ensure_valid_session_input(
    makes: Any,
    attempts: Any,
    distance: Any,
    min_distance: int = MIN_DISTANCE,
    max_distance: int = MAX_DISTANCE,
) -> Tuple[int, int, int]:
    """Validate and coerce, raising ValidationError with every violated rule."""
    ok, errors = validate_session_input(
        makes, attempts, distance, min_distance, max_distance
    )
    if not ok:
        raise ValidationError(errors)
    return as_int(makes), as_int(attempts), as_int(distance)


def validate_drill(drill: Dict[str, Any], require_result: bool = False) -> Tuple[bool, List[str]]:
    errors: List[str] = []

    distance = as_int(drill.get("distance"))
    if not distance or distance < MIN_DISTANCE:
        errors.append("Drill distance must be at least 1 foot")

    attempts = as_int(drill.get("attempts"))
    if not attempts or attempts < MIN_ATTEMPTS:
        errors.append("Drill must have at least 1 attempt")

    description = drill.get("description")
    if not isinstance(description, str) or not description.strip():
        errors.append("Drill must have a description")

    if require_result:
        makes = as_int(drill.get("makes"))
        if makes is None or makes < MIN_MAKES:
            errors.append("Drill makes must be a number of at least 0")
        elif attempts and makes > attempts:
            errors.append("Makes cannot exceed attempts")

    return len(errors) == 0, errors


def sanitize_string(value: Any, max_length: int = 255) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()[:max_length]


def validate_date(value: Any, today: Optional[date] = None) -> date:
    """Parse a YYYY-MM-DD (or ISO datetime) string; future dates are rejected."""
    if isinstance(value, datetime):
        parsed = value.date()
    elif isinstance(value, date):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value)).date()
        except ValueError:
            raise ValidationError("Invalid date format")

    today = today or date.today()
    if parsed > today:
        raise ValidationError("Date cannot be in the future")
    return parsed


def parse_bool(value: Any, default: bool = False) -> bool:
    """JSON booleans, or "true"/"1"/"yes"/"on" strings from query args and forms."""
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)
