# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# Sets test environment variables before the package is imported, then builds
# the app through create_app() with an in-memory mongomock database.
# =============================================================================

import os

# jobtracker.main builds a module-level app from the environment on import
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-1234")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import mongomock
import pytest
from fastapi.testclient import TestClient

from jobtracker.core.config import Settings
from jobtracker.db.mongodb import init_mongo_indexes
from jobtracker.main import create_app

TEST_PASSWORD = "secret123"


def make_settings(**overrides) -> Settings:
    values = {
        "environment": "development",
        "jwt_secret_key": "test-secret-key-1234",
        "bcrypt_rounds": 4,
        "mongo_db": "jobtracker_test",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def mongo_db():
    client = mongomock.MongoClient()
    db = client["jobtracker_test"]
    init_mongo_indexes(db)
    yield db
    client.close()


@pytest.fixture
def app(settings, mongo_db):
    return create_app(settings, db=mongo_db)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def register_user(client):
    """Register a user and return the response body; the session cookie is dropped."""

    def _register(email="a@x.com", password=TEST_PASSWORD, **profile):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": email, "password": password, **profile},
        )
        assert response.status_code == 201, response.text
        client.cookies.clear()
        return response.json()

    return _register


@pytest.fixture
def auth_headers(register_user):
    """Bearer headers for a freshly registered user."""
    token = register_user()["token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def create_job(client):
    def _create(headers, **fields):
        payload = {"company": "Acme", "position": "Engineer", **fields}
        response = client.post("/api/v1/jobs", json=payload, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["job"]

    return _create
