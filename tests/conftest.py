"""Shared fixtures: a throwaway SQLite file per test, an app, a client and an admin token."""

import pytest

from app import create_app
from config import Config


@pytest.fixture
def config(tmp_path):
    return Config(
        database_path=tmp_path / "gym-test.db",
        secret_key="test-secret",
        bcrypt_rounds=4,
        log_level="WARNING",
    )


@pytest.fixture
def app(config):
    app = create_app(config)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def database(app):
    return app.extensions["gym_db"]


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(client):
    resp = client.post(
        "/api/auth/register",
        json={"email": "owner@gym.test", "password": "s3cret!", "full_name": "Gym Owner"},
    )
    assert resp.status_code == 201
    token = resp.get_json()["data"]["token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def new_client_payload():
    return {
        "full_name": "Ahmed Hassan",
        "email": "ahmed@example.com",
        "phone": "01000000001",
        "plan_type": "Monthly",
        "plan_amount": 300,
        "start_date": "2024-01-31",
    }
