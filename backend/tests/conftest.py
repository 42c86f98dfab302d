"""Shared pytest fixtures.

Each test gets its own SQLite file, settings with a fixed secret and a cheap
bcrypt cost, and a controllable clock.
"""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from loyalty.api.main import create_app
from loyalty.settings import Settings

SECRET = "testing_secret"
PASSWORD = "s3cret-Passw0rd"


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        env="test",
        database_url=f"sqlite:///{tmp_path / 'loyalty-test.db'}",
        jwt_secret_key=SECRET,
        bcrypt_rounds=4,
    )


@pytest.fixture
def app(settings, clock):
    return create_app(settings, clock=clock)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def accounts(app):
    return app.state.account_service


def signup(client, email, password=PASSWORD, referral_code=None):
    body = {"email": email, "password": password}
    if referral_code is not None:
        body["referralCode"] = referral_code
    return client.post("/signup", json=body)


def auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def token(client):
    res = signup(client, "rider@ridershare.com")
    assert res.status_code == 201
    return res.json()["token"]
