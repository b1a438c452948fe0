import fnmatch
from typing import Dict

import pytest
from fastapi.testclient import TestClient

from educare.identity import IdentityProvider
from educare.kv_store import KeyValueStore, get_store
from educare.main import app
from educare.profiles import ProfileService


class InMemoryRedis:
    """The subset of the redis client that KeyValueStore uses."""

    def __init__(self):
        self.data: Dict[str, str] = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value
        return True

    def mset(self, mapping):
        self.data.update(mapping)
        return True

    def mget(self, keys):
        return [self.data.get(key) for key in keys]

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    def scan_iter(self, match="*"):
        return iter([key for key in list(self.data) if fnmatch.fnmatchcase(key, match)])


@pytest.fixture
def fake_redis() -> InMemoryRedis:
    return InMemoryRedis()


@pytest.fixture
def store(fake_redis) -> KeyValueStore:
    return KeyValueStore(fake_redis)


@pytest.fixture
def identity(store) -> IdentityProvider:
    return IdentityProvider(store, secret="test-secret", expire_minutes=5)


@pytest.fixture
def service(store, identity) -> ProfileService:
    return ProfileService(store, identity)


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def signed_up(client):
    """Registers Ana and returns (user_id, access_token)."""
    response = client.post(
        "/api/signup",
        json={"name": "Ana", "email": "a@x.com", "password": "pw123456"},
    )
    assert response.status_code == 200
    user_id = response.json()["userId"]
    login = client.post("/api/login", json={"email": "a@x.com", "password": "pw123456"})
    assert login.status_code == 200
    return user_id, login.json()["accessToken"]
