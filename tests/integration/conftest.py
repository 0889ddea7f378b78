"""Integration test fixtures (service checks and prerequisites).

Provides fixtures for checking if external services are available.
Integration tests are skipped if required services are not running.
"""

import pytest
from redis import Redis

REDIS_TEST_URL = "redis://localhost:6379/15"


@pytest.fixture(scope="session")
def check_redis():
    """Check if Redis is available at localhost:6379.

    Skips tests if Redis is not reachable.
    """
    try:
        client = Redis.from_url(REDIS_TEST_URL)
        client.ping()
        client.close()
    except Exception as e:
        pytest.skip(f"Redis not available: {e}")


@pytest.fixture
def clean_redis_db(check_redis):
    """Flush the test database (15) before and after each test."""
    client = Redis.from_url(REDIS_TEST_URL)
    client.flushdb()

    yield REDIS_TEST_URL

    client.flushdb()
    client.close()


@pytest.fixture
def integration_settings(test_settings):
    """Settings for integration tests with real services.

    Points to localhost services on standard ports.
    """
    test_settings.REDIS_URL = REDIS_TEST_URL
    test_settings.CACHE_BACKEND = "redis"

    return test_settings
