# tests/conftest.py
"""
Shared fixtures: a disposable SQLite file for the relational store and an
isolated fakeredis server for the key-value store.
"""
import fakeredis
import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.exc import OperationalError

from koronet.app import create_app
from koronet.cache import LastRequestCache
from koronet.config import Settings
from koronet.db import RequestStore


class BrokenStore:
    """Relational store whose every call fails like an unreachable server."""

    def __init__(self):
        self.closed = False

    def _fail(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    ping = record_request = recent_requests = _fail

    def init_schema(self):
        return False

    def close(self):
        self.closed = True


class BrokenRedis:
    def _fail(self, *args, **kwargs):
        raise RedisConnectionError("Error 111 connecting to redis:6379. Connection refused.")

    ping = get = set = _fail

    def close(self):
        pass


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test_koronet.db'}",
        log_as_json=False,
    )


@pytest.fixture
def fake_redis():
    return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def store(settings):
    s = RequestStore(settings.sqlalchemy_url)
    yield s
    s.close()


@pytest.fixture
def cache(fake_redis):
    return LastRequestCache(fake_redis)


@pytest.fixture
def client(settings, store, cache):
    app = create_app(settings, store=store, cache=cache)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def broken_store():
    return BrokenStore()


@pytest.fixture
def broken_cache():
    return LastRequestCache(BrokenRedis())
