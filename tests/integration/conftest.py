"""
Shared fixtures for integration tests.

Provides a migrated PostgreSQL pool, the two repository adapters and an
AuthService wired to them with a synchronous in-test event recorder.
"""

from collections.abc import Generator

import pytest
from psycopg_pool import ConnectionPool

from src.adapters.jwt import JwtTokenCodec
from src.adapters.repository.postgres import PostgresAccountDirectory, PostgresTokenStore
from src.domain.auth import AuthService
from src.domain.events import DomainEvent
from tests.database import clean_tables, make_directory, make_store, open_test_pool
from tests.factories import TEST_JWT_SECRET


class RecordingPublisher:
    """EventPublisher that records events instead of delivering them."""

    def __init__(self) -> None:
        self.events: list[DomainEvent] = []

    def publish(self, event: DomainEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: type) -> list[DomainEvent]:
        return [e for e in self.events if isinstance(e, event_type)]


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for integration tests."""
    yield from open_test_pool()


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


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def auth_service(
    directory: PostgresAccountDirectory, store: PostgresTokenStore, publisher: RecordingPublisher
) -> AuthService:
    codec = JwtTokenCodec(secret=TEST_JWT_SECRET, expiration_seconds=900)
    return AuthService(
        accounts=directory, tokens=store, codec=codec, events=publisher, bcrypt_cost=4
    )
