"""Tests for practice input validation."""

from datetime import date

import pytest

from putting.errors import ValidationError
from putting.validation import (
    as_int,
    ensure_valid_session_input,
    parse_bool,
    sanitize_string,
    validate_date,
    validate_drill,
    validate_session_input,
)


class TestSessionInput:
    def test_valid_input(self):
        assert validate_session_input(7, 10, 20) == (True, [])

    def test_numeric_strings_are_accepted(self):
        assert validate_session_input("7", "10", "20") == (True, [])

    def test_non_numeric_short_circuits(self):
        ok, errors = validate_session_input("seven", 10, 20)
        assert not ok
        assert errors == ["All fields must be valid numbers"]

    def test_makes_cannot_exceed_attempts(self):
        ok, errors = validate_session_input(11, 10, 20)
        assert not ok
        assert errors == ["Makes cannot exceed attempts"]

    def test_zero_attempts(self):
        ok, errors = validate_session_input(0, 0, 10)
        assert not ok
        assert errors == ["Attempts must be at least 1"]

    def test_distance_bounds(self):
        assert validate_session_input(5, 10, 0)[1] == ["Distance must be at least 1 feet"]
        assert validate_session_input(5, 10, 101)[1] == ["Distance must be at most 100 feet"]

    def test_custom_distance_bounds(self):
        ok, errors = validate_session_input(5, 10, 75, min_distance=5, max_distance=60)
        assert errors == ["Distance must be at most 60 feet"]

    def test_every_violation_is_reported(self):
        ok, errors = validate_session_input(-1, 0, 200)
        assert "Makes must be at least 0" in errors
        assert "Attempts must be at least 1" in errors
        assert "Distance must be at most 100 feet" in errors

    def test_ensure_raises_with_all_errors(self):
        with pytest.raises(ValidationError) as exc:
            ensure_valid_session_input(12, 10, 200)
        assert exc.value.errors == ["Distance must be at most 100 feet", "Makes cannot exceed attempts"]
        assert exc.value.status_code == 400

    def test_ensure_returns_ints(self):
        assert ensure_valid_session_input("3", 10.0, "15") == (3, 10, 15)


class TestHelpers:
    def test_as_int(self):
        assert as_int(4) == 4
        assert as_int(4.0) == 4
        assert as_int(" 12 ") == 12
        assert as_int(4.5) is None
        assert as_int(True) is None
        assert as_int(None) is None
        assert as_int("abc") is None

    def test_validate_drill(self):
        ok, errors = validate_drill({"distance": 10, "attempts": 20, "description": "Warm up"})
        assert ok and errors == []

        ok, errors = validate_drill(
            {"distance": 10, "attempts": 20, "description": "Warm up", "makes": 25},
            require_result=True,
        )
        assert errors == ["Makes cannot exceed attempts"]

        ok, errors = validate_drill({"distance": 0, "attempts": 0, "description": " "})
        assert len(errors) == 3

    def test_sanitize_string(self):
        assert sanitize_string("  Sam  ") == "Sam"
        assert sanitize_string("x" * 300) == "x" * 255
        assert sanitize_string(None) == ""

    def test_validate_date(self):
        today = date(2024, 6, 12)
        assert validate_date("2024-06-01", today=today) == date(2024, 6, 1)
        with pytest.raises(ValidationError, match="future"):
            validate_date("2024-06-13", today=today)
        with pytest.raises(ValidationError, match="Invalid date format"):
            validate_date("not a date", today=today)

    def test_parse_bool(self):
        assert parse_bool(None, default=True) is True
        assert parse_bool("false") is False
        assert parse_bool("Yes") is True
        assert parse_bool(0) is False
