"""Pytest configuration and shared fixtures for the equipstic test suite.

This module provides common fixtures used across the unit tests, in
particular environment isolation for the settings and a ready-made client
configuration.
"""

import logging
import os
from collections.abc import Generator

import pytest

from equipstic.config import (
    BASE_URL_ENV,
    CACHE_MAXSIZE_ENV,
    CACHE_TTL_ENV,
    ENVIRONMENT_ENV,
    LOGFIRE_TOKEN_ENV,
    MAX_CONCURRENT_LOOKUPS_ENV,
    PASSWORD_ENV,
    TIMEOUT_ENV,
    TIMEZONE_ENV,
    USERNAME_ENV,
)
from equipstic.libs.inventory.config import ClientConfig

TEST_BASE_URL = "https://soa.example.test/equipstic"

CONFIG_ENV_VARS = [
    BASE_URL_ENV,
    USERNAME_ENV,
    PASSWORD_ENV,
    TIMEZONE_ENV,
    TIMEOUT_ENV,
    CACHE_TTL_ENV,
    CACHE_MAXSIZE_ENV,
    MAX_CONCURRENT_LOOKUPS_ENV,
    ENVIRONMENT_ENV,
    LOGFIRE_TOKEN_ENV,
]


@pytest.fixture(scope="session")
def test_logging() -> Generator[None, None, None]:
    """Configure logging for test sessions."""
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,  # Override any existing configuration
    )

    # Suppress overly verbose third-party logs during testing
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    yield

    # Clean up logging handlers
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)


@pytest.fixture
def clean_env() -> Generator[dict[str, str | None], None, None]:
    """Provide a clean environment for testing, restoring state afterwards.

    Yields:
        Dict containing the original environment state
    """
    original_env = {}
    for var in CONFIG_ENV_VARS:
        original_env[var] = os.environ.get(var)
        if var in os.environ:
            del os.environ[var]

    yield original_env

    for var, value in original_env.items():
        if value is not None:
            os.environ[var] = value
        elif var in os.environ:
            del os.environ[var]


@pytest.fixture
def valid_env_config(clean_env: dict[str, str | None]) -> dict[str, str]:
    """Provide a valid configuration environment for testing.

    Returns:
        Dict containing valid test configuration values
    """
    config = {
        BASE_URL_ENV: TEST_BASE_URL,
        USERNAME_ENV: "test-user",
        PASSWORD_ENV: "test-password-12345",
    }

    for key, value in config.items():
        os.environ[key] = value

    return config


@pytest.fixture
def client_config() -> ClientConfig:
    """Client configuration pointing at the mocked API."""
    return ClientConfig(
        base_url=TEST_BASE_URL,
        username="test-user",
        password="test-password-12345",
    )

