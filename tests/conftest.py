"""Pytest configuration and fixtures for field cache tests."""

import pytest

from fakes import FakeRedis, Ship
from fieldcache.core.cache import RedisBackend
from fieldcache.services.field_cache import FieldCache


@pytest.fixture
def fake_redis():
    """Fresh in-memory Redis double."""
    return FakeRedis()


@pytest.fixture
def backend(fake_redis):
    return RedisBackend(fake_redis)


@pytest.fixture
def field_cache(backend):
    """Field cache over the fake backend, no mapper binding."""
    return FieldCache(backend, bind_lifecycle=False)


@pytest.fixture
def ship_cls():
    """Plain (unmapped) entity type."""
    return Ship
