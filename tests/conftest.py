"""Shared fixtures for the putting tracker tests."""

from datetime import datetime, timedelta

import pytest

from config import TestConfig
from putting import create_app, db
from putting.services.factory import build_services

# A Wednesday afternoon; every service clock starts here.
NOW = datetime(2024, 6, 12, 15, 0)


class FrozenClock:
    """Callable clock the services share; tests move it with advance()."""

    def __init__(self, now=NOW):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


class PickChallenge:
    """Stands in for random.Random so the weekly challenge type is known."""

    def __init__(self, kind):
        self.kind = kind

    def choice(self, seq):
        return next(c for c in seq if c["type"] == self.kind)


@pytest.fixture
def app():
    app = create_app(TestConfig)
    ctx = app.app_context()
    ctx.push()
    yield app
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def challenge_rng():
    # volume (50 makes this week) stays out of the way of single-session tests
    return PickChallenge("volume")


@pytest.fixture
def services(app, clock, challenge_rng):
    return build_services(app.config, clock=clock, rng=challenge_rng)


@pytest.fixture
def make_user(services):
    """Factory creating users player1, player2, ... through initialize_user."""
    counter = {"n": 0}

    def _make(**fields):
        counter["n"] += 1
        n = counter["n"]
        identity = {
            "email": f"player{n}@example.com",
            "username": f"player{n}",
            "display_name": f"Player {n}",
            "password": "secret123",
        }
        identity.update(fields)
        user, _ = services.progression.initialize_user(identity)
        return user

    return _make


@pytest.fixture
def client(app):
    return app.test_client()


def session_data(makes, attempts, distance, **extra):
    data = {"makes": makes, "attempts": attempts, "distance": distance}
    data.update(extra)
    return data
