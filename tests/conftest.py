"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- Mocked domain ports
- An AuthService wired to the mocks
- A confirmation URL builder
"""

import os
from unittest.mock import Mock

import pytest

from src.domain.auth import AuthService
from src.domain.events import UrlBuilder
from src.domain.models import Account
from tests.factories import TEST_JWT_SECRET, make_account

# Settings require a signing secret; the app under test reads this one.
os.environ.setdefault("JWT_SECRET", TEST_JWT_SECRET)


@pytest.fixture
def account() -> Account:
    return make_account()


@pytest.fixture
def accounts() -> Mock:
    return Mock()


@pytest.fixture
def tokens() -> Mock:
    return Mock()


@pytest.fixture
def codec() -> Mock:
    codec = Mock()
    codec.expiry_duration = 900
    codec.issue_access_token.return_value = "access-token"
    return codec


@pytest.fixture
def events() -> Mock:
    return Mock()


@pytest.fixture
def service(accounts: Mock, tokens: Mock, codec: Mock, events: Mock) -> AuthService:
    """AuthService wired to mocked ports. bcrypt cost 4 keeps hashing fast."""
    return AuthService(accounts=accounts, tokens=tokens, codec=codec, events=events, bcrypt_cost=4)


@pytest.fixture
def url_builder() -> UrlBuilder:
    return UrlBuilder(base_url="http://testserver/", path="/api/auth/registrationConfirmation")
