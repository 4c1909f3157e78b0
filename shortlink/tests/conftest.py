import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from shortlink.main import app
from shortlink.core.config import settings
from shortlink.db import repository
from shortlink.db.Connection import database
from shortlink.db.Models.models import Base


class FakeRedis:
    """Just enough of the redis-py client for the cache and rate limiter."""

    def __init__(self):
        self.store = {}
        self.expirations = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.expirations[key] = ttl
        return True

    def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0

    def incr(self, key, amount=1):
        self.store[key] = str(int(self.store.get(key) or 0) + amount)
        return int(self.store[key])

    def expire(self, key, seconds):
        self.expirations[key] = seconds
        return True

    def pipeline(self):
        return FakePipeline(self)

    def ping(self):
        return True

    def close(self):
        pass


class FakePipeline:
    def __init__(self, client):
        self.client = client
        self.calls = []

    def incr(self, key, amount=1):
        self.calls.append(("incr", key, amount))
        return self

    def expire(self, key, seconds):
        self.calls.append(("expire", key, seconds))
        return self

    def execute(self):
        return [getattr(self.client, name)(*args) for name, *args in self.calls]


@pytest.fixture(autouse=True)
def test_database(monkeypatch):
    """Fresh in-memory database per test, Redis and Safe Browsing switched off."""
    monkeypatch.setattr(settings, "REDIS_HOST", None)
    monkeypatch.setattr(settings, "SAFE_BROWSING_API_KEY", None)
    monkeypatch.setattr(settings, "BASE_URL", "https://sho.rt")

    database.dispose_database()
    database.close_redis()
    engine = database.init_database("sqlite://", poolclass=StaticPool)
    database.init_redis()
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    database.dispose_database()
    database.close_redis()


@pytest.fixture
def db_session(test_database):
    db = database.get_session_factory()()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(test_database):
    return TestClient(app)


@pytest.fixture
def fake_redis():
    client = FakeRedis()
    database.init_redis(client)
    return client


@pytest.fixture
def make_link(db_session):
    """Insert a link straight into the store and return the fresh row."""
    def _make_link(short_code="abc123", long_url="https://example.com", owner_id="owner-1",
                   is_active=True, hit_count=0):
        link_id = repository.create_link(db_session, short_code, long_url, owner_id)
        fields = {}
        if not is_active:
            fields["is_active"] = False
        if hit_count:
            fields["hit_count"] = hit_count
        if fields:
            repository.update_link(db_session, link_id, **fields)
        db_session.expire_all()
        return repository.find_link_by_id(db_session, link_id)
    return _make_link


@pytest.fixture
def sample_urls():
    return [
        "https://example.com/test1",
        "https://google.com/search?q=test",
        "https://github.com/user/repo",
    ]
