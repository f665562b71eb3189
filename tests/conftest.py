import os

# must be set before tasktracker.config is imported
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SECRET_KEY", "test-jwt-secret-key-for-testing-only")

import uuid

import pytest
from fastapi.testclient import TestClient

from tasktracker.database import Database
from tasktracker.main import create_app

PASSWORD = "TestPass123"


# Fresh database file for each test
@pytest.fixture
def database(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'test.db'}")
    database.create_all()
    yield database
    database.drop_all()
    database.dispose()


@pytest.fixture
def db(database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(database):
    with TestClient(create_app(database)) as c:
        yield c


@pytest.fixture
def register(client):
    """Register a fresh user and return (user, auth headers)."""

    def _register(email=None, password=PASSWORD, name="Test User"):
        email = email or f"user_{uuid.uuid4().hex[:8]}@example.com"
        r = client.post("/auth/register", json={"email": email, "password": password, "name": name})
        assert r.status_code == 201, r.text
        data = r.json()["data"]
        return data["user"], {"Authorization": f"Bearer {data['token']}"}

    return _register
