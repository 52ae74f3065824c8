"""
Integration tests for the authentication flows end-to-end.

Runs AuthService against the PostgreSQL adapters and the real JWT codec,
checking the token lifecycle rules across whole flows.
"""

import psycopg
import pytest
from psycopg_pool import ConnectionPool

from src.domain.auth import AuthService
from src.domain.events import (
    AccountChanged,
    RegistrationCompleted,
    ResetLinkGenerated,
    UrlBuilder,
    VerificationResent,
)
from src.domain.exceptions import (
    InvalidCredentials,
    InvalidToken,
    PasswordResetFailure,
    TokenRefreshFailure,
)
from tests.database import count_rows, expire, rejecting_writes

pytestmark = pytest.mark.integration

CONFIRM = UrlBuilder("http://testserver", "/api/auth/registrationConfirmation")
RESET = UrlBuilder("http://testserver", "/password/reset")


def register_alice(auth_service: AuthService, publisher) -> str:
    """Register alice and return the verification token string from the event."""
    auth_service.register("alice", "alice@x.com", "password123", CONFIRM)
    return publisher.of_type(RegistrationCompleted)[-1].token.token


class TestRegistration:
    """Register, check in-use, confirm."""

    def test_register_emits_event_and_marks_email_in_use(
        self, auth_service: AuthService, publisher
    ) -> None:
        account = auth_service.register("alice", "alice@x.com", "pw-123456", CONFIRM)

        events = publisher.of_type(RegistrationCompleted)
        assert len(events) == 1
        assert events[0].account == account
        assert auth_service.email_in_use("alice@x.com") is True
        assert auth_service.username_in_use("alice") is True

    def test_confirm_twice_fails_second_time(self, auth_service: AuthService, publisher) -> None:
        token = register_alice(auth_service, publisher)

        account = auth_service.confirm_registration(token)
        with pytest.raises(InvalidToken):
            auth_service.confirm_registration(token)

        assert auth_service.accounts.find_by_id(account.id).verified is True

    def test_resend_twice_leaves_one_live_token(
        self, auth_service: AuthService, publisher, pool: ConnectionPool
    ) -> None:
        original = register_alice(auth_service, publisher)

        second = auth_service.resend_verification_token(original, CONFIRM)
        third = auth_service.resend_verification_token(second.token, CONFIRM)

        assert count_rows(pool, "email_verification_tokens") == 1
        with pytest.raises(InvalidToken):
            auth_service.resend_verification_token(second.token, CONFIRM)
        with pytest.raises(InvalidToken):
            auth_service.confirm_registration(original)
        assert len(publisher.of_type(VerificationResent)) == 2
        assert auth_service.confirm_registration(third.token).username == "alice"

    def test_resend_after_expiry_then_confirm(
        self, auth_service: AuthService, publisher, pool: ConnectionPool
    ) -> None:
        token = register_alice(auth_service, publisher)
        expire(pool, "email_verification_tokens", token)

        with pytest.raises(InvalidToken):
            auth_service.confirm_registration(token)
        fresh = auth_service.resend_verification_token(token, CONFIRM)

        assert auth_service.confirm_registration(fresh.token).email == "alice@x.com"

    def test_resend_with_consumed_token_fails(self, auth_service: AuthService, publisher) -> None:
        token = register_alice(auth_service, publisher)
        auth_service.confirm_registration(token)

        with pytest.raises(InvalidToken):
            auth_service.resend_verification_token(token, CONFIRM)

    def test_failed_token_issue_leaves_no_account(
        self, auth_service: AuthService, publisher, pool: ConnectionPool
    ) -> None:
        with rejecting_writes(pool, "email_verification_tokens", "FALSE"):
            with pytest.raises(psycopg.Error):
                auth_service.register("alice", "alice@x.com", "password123", CONFIRM)

        assert count_rows(pool, "accounts") == 0
        assert publisher.of_type(RegistrationCompleted) == []
        assert auth_service.email_in_use("alice@x.com") is False

        token = register_alice(auth_service, publisher)
        assert auth_service.confirm_registration(token).username == "alice"

    def test_failed_verify_keeps_confirmation_link_usable(
        self, auth_service: AuthService, publisher, pool: ConnectionPool
    ) -> None:
        token = register_alice(auth_service, publisher)

        with rejecting_writes(pool, "accounts", "verified = FALSE"):
            with pytest.raises(psycopg.Error):
                auth_service.confirm_registration(token)

        assert auth_service.tokens.find_email_verification_token(token) is not None
        assert count_rows(pool, "accounts", "verified") == 0

        account = auth_service.confirm_registration(token)
        assert auth_service.accounts.find_by_id(account.id).verified is True


class TestLoginAndRefresh:
    """Login supersession and refresh without rotation."""

    def test_two_logins_same_device_leave_one_token(
        self, auth_service: AuthService, publisher, pool: ConnectionPool
    ) -> None:
        register_alice(auth_service, publisher)

        first = auth_service.login("alice", "password123", "phone")
        second = auth_service.login("alice@x.com", "password123", "phone")

        assert auth_service.tokens.find_refresh_token(first.refresh_token) is None
        assert auth_service.tokens.find_refresh_token(second.refresh_token) is not None
        assert count_rows(pool, "refresh_tokens") == 1

    def test_wrong_password_creates_no_refresh_token(
        self, auth_service: AuthService, publisher, pool: ConnectionPool
    ) -> None:
        register_alice(auth_service, publisher)

        with pytest.raises(InvalidCredentials):
            auth_service.login("alice", "wrong-password", "phone")

        assert count_rows(pool, "refresh_tokens") == 0

    def test_refresh_returns_same_refresh_token(self, auth_service: AuthService, publisher) -> None:
        register_alice(auth_service, publisher)
        login = auth_service.login("alice", "password123", "phone")

        refreshed = auth_service.refresh_access_token(login.refresh_token)

        assert refreshed.refresh_token == login.refresh_token
        assert auth_service.authenticate(refreshed.access_token).username == "alice"

    def test_expired_refresh_fails_but_access_token_still_valid(
        self, auth_service: AuthService, publisher, pool: ConnectionPool
    ) -> None:
        register_alice(auth_service, publisher)
        login = auth_service.login("alice", "password123", "phone")
        expire(pool, "refresh_tokens", login.refresh_token)

        with pytest.raises(TokenRefreshFailure):
            auth_service.refresh_access_token(login.refresh_token)

        principal = auth_service.authenticate(login.access_token)
        assert principal.account_id == login.principal.account_id

    def test_superseded_refresh_token_fails(self, auth_service: AuthService, publisher) -> None:
        register_alice(auth_service, publisher)
        first = auth_service.login("alice", "password123", "phone")
        auth_service.login("alice", "password123", "phone")

        with pytest.raises(TokenRefreshFailure):
            auth_service.refresh_access_token(first.refresh_token)


class TestPasswordReset:
    """Reset link, reset, replay."""

    def test_reset_password_flow(self, auth_service: AuthService, publisher) -> None:
        register_alice(auth_service, publisher)

        reset = auth_service.request_password_reset_link("alice@x.com", RESET)
        auth_service.reset_password(reset.token, "newpassword1")

        assert publisher.of_type(ResetLinkGenerated)[0].token == reset
        changed = publisher.of_type(AccountChanged)[0]
        assert (changed.action, changed.detail) == ("Reset Password", "Changed Successfully")
        assert auth_service.login("alice", "newpassword1", "phone").principal.username == "alice"
        with pytest.raises(InvalidCredentials):
            auth_service.login("alice", "password123", "phone")

    def test_consumed_reset_token_leaves_credential_unchanged(
        self, auth_service: AuthService, publisher
    ) -> None:
        register_alice(auth_service, publisher)
        reset = auth_service.request_password_reset_link("alice@x.com", RESET)
        auth_service.reset_password(reset.token, "newpassword1")

        with pytest.raises(PasswordResetFailure):
            auth_service.reset_password(reset.token, "attacker-pass")

        auth_service.login("alice", "newpassword1", "phone")
        with pytest.raises(InvalidCredentials):
            auth_service.login("alice", "attacker-pass", "phone")
