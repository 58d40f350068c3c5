"""Pytest configuration and fixtures."""

import os

import pytest

# Settings are read when the app module is imported, before any fixture runs
TEST_ENV = {
    "SUPABASE_URL": "https://test.supabase.co",
    "SUPABASE_SERVICE_ROLE_KEY": "test-key",
    "NOTELY_ENV": "test",
    "API_KEY_ENCRYPTION_KEY": "test-encryption-key",
    "STREAM_STEP_DELAY_MS": "0",
    "FRONTEND_URL": "https://notely.test",
}
for _key, _value in TEST_ENV.items():
    os.environ.setdefault(_key, _value)


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ.update(TEST_ENV)
