"""
Shared fixtures for adversarial tests.

Provides common test infrastructure for race condition and timing tests.
"""

from collections.abc import Generator

import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresAccountDirectory, PostgresTokenStore
from tests.database import clean_tables, make_directory, make_store, open_test_pool


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for adversarial tests."""
    yield from open_test_pool(max_size=20)


@pytest.fixture(autouse=True)
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Clean all tables before each test."""
    clean_tables(pool)
    yield


@pytest.fixture
def directory(pool: ConnectionPool) -> PostgresAccountDirectory:
    return make_directory(pool)


@pytest.fixture
def store(pool: ConnectionPool) -> PostgresTokenStore:
    return make_store(pool)

