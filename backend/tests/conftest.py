"""
Shared fixtures for the summary token tests.
Redis is replaced with fakeredis; no network calls.
"""
import pytest
from fakeredis import FakeServer
from fakeredis.aioredis import FakeRedis

from app.core.config import settings
from app.core.redis import RedisClient
from app.services.summary import SummaryService
from app.services.summary_store import SummaryTokenStore

SECRET = "s3cr3t"
JWT_SECRET = "test-jwt-secret"


@pytest.fixture
def secret():
    return SECRET


@pytest.fixture
def redis_client():
    """A RedisClient backed by a fresh in-memory server"""
    return RedisClient(FakeRedis(server=FakeServer(), decode_responses=True))


@pytest.fixture
def store(redis_client):
    return SummaryTokenStore(redis_client, ttl_seconds=3600)


@pytest.fixture
def service(store):
    return SummaryService(SECRET, store=store)


@pytest.fixture
def patch_settings(monkeypatch):
    monkeypatch.setattr(settings, "SUMMARY_SECRET", SECRET)
    monkeypatch.setattr(settings, "SUPABASE_JWT_SECRET", JWT_SECRET)
    return settings
