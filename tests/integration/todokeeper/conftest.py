import os
from typing import Generator, Optional

import pytest
from fastapi.testclient import TestClient
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from todokeeper.core.settings import TodoKeeperSettings, reset_settings
from todokeeper.todokeeper import TodoKeeperService

TEST_MONGO_URI = os.environ.get("TODOKEEPER_TEST_MONGO_URI", "mongodb://localhost:27018")
TEST_DB_NAME = "todokeeper_test"


def _get_test_client() -> Optional[MongoClient]:
    """Return a sync client for the test MongoDB, or None if it is not reachable."""
    client = MongoClient(TEST_MONGO_URI, serverSelectionTimeoutMS=2000)
    try:
        client.admin.command("ping")
    except PyMongoError:
        client.close()
        return None
    return client


@pytest.fixture(scope="session")
def mongo() -> Generator[MongoClient, None, None]:
    client = _get_test_client()
    if client is None:
        pytest.skip(f"MongoDB not reachable on {TEST_MONGO_URI}")
    yield client
    client.close()


@pytest.fixture
def test_db(mongo):
    return mongo[TEST_DB_NAME]


@pytest.fixture(autouse=True)
def _clean_database(mongo):
    """Drop the test database around each test."""
    mongo.drop_database(TEST_DB_NAME)
    reset_settings()
    yield
    mongo.drop_database(TEST_DB_NAME)


@pytest.fixture
def settings() -> TodoKeeperSettings:
    return TodoKeeperSettings(
        _env_file=None,
        MONGO_URI=TEST_MONGO_URI,
        MONGO_DB=TEST_DB_NAME,
        MONGO_TIMEOUT_MS=3000,
        LOG_DIR=None,
        LOG_JSON=False,
    )


@pytest.fixture
def service(settings) -> TodoKeeperService:
    return TodoKeeperService(settings=settings)


@pytest.fixture
def client(service) -> Generator[TestClient, None, None]:
    """In-process client; entering it runs startup (connect, indexes, sweeper)."""
    with TestClient(service.app) as test_client:
        yield test_client


def register_and_login(client: TestClient, email: str, password: str = "secret1", name: str = "Test User") -> str:
    body = {"name": name, "email": email, "password": password, "confirmPassword": password}
    assert client.post("/user", json=body).status_code == 201
    response = client.post("/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()["token"]


@pytest.fixture
def login(client):
    """Register a user and return Authorization headers for it."""

    def _login(email: str, password: str = "secret1") -> dict:
        return {"Authorization": f"Bearer {register_and_login(client, email, password)}"}

    return _login
