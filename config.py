# config.py
import os
from datetime import timedelta


def _env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "dev-jwt-secret-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "mysql+pymysql://root:@localhost/putting"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # 🔐 JWT config
    JWT_TOKEN_LOCATION = ["headers"]
    JWT_HEADER_NAME = "Authorization"
    JWT_HEADER_TYPE = "Bearer"
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=7)

    # Practice input bounds (feet)
    MIN_DISTANCE = int(os.environ.get("MIN_DISTANCE", 1))
    MAX_DISTANCE = int(os.environ.get("MAX_DISTANCE", 100))

    CHALLENGE_DURATION_DAYS = int(os.environ.get("CHALLENGE_DURATION_DAYS", 7))
    LEADERBOARD_LIMIT = int(os.environ.get("LEADERBOARD_LIMIT", 100))

    # Achievement points are display-only unless this is switched on.
    CREDIT_ACHIEVEMENT_POINTS = _env_bool("CREDIT_ACHIEVEMENT_POINTS", False)

    # "YYYY-MM-DD"; early_adopter is never awarded when unset.
    APP_LAUNCH_DATE = os.environ.get("APP_LAUNCH_DATE")


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key-for-the-putting-suite"
    JWT_SECRET_KEY = "test-jwt-secret-for-the-putting-suite-0123456789"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    MIN_DISTANCE = 1
    MAX_DISTANCE = 100
    CHALLENGE_DURATION_DAYS = 7
    LEADERBOARD_LIMIT = 100
    CREDIT_ACHIEVEMENT_POINTS = False
    APP_LAUNCH_DATE = None
