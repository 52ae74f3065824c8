"""
Authentication domain service - Token lifecycle orchestration.

This module composes the account directory, the token store, the access
token codec and the event publisher into the account lifecycle flows.

Token Lifecycle
===============

Every token kind moves forward only:

    issued -> valid -> consumed | expired | superseded

- Refresh tokens: one per (account, device). A new login on the same
  device supersedes the previous token. Refresh re-validates the token
  without rotating it.
- Email verification / password reset tokens: one per account. Reissuing
  supersedes the previous token. Consumption is exactly-once.
- Access tokens: stateless, valid until their embedded expiry.

Absent, expired and consumed tokens are reported with the same error so
callers cannot tell which state a token string is in.

Store mutations complete before an event is published. Events are
fire-and-forget: a failing subscriber never fails the flow.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

import bcrypt

from .events import (
    AccountChanged,
    RegistrationCompleted,
    ResetLinkGenerated,
    UrlBuilder,
    VerificationResent,
)
from .exceptions import (
    AccessTokenError,
    DuplicateIdentifier,
    InvalidAccessToken,
    InvalidCredentials,
    InvalidToken,
    LoginFailure,
    PasswordResetFailure,
    PasswordResetLinkFailure,
    TokenRefreshFailure,
)
from .models import (
    Account,
    AuthenticatedPrincipal,
    EmailVerificationToken,
    IdentifierKind,
    LoginResult,
    PasswordResetToken,
    RefreshResult,
    RegistrationData,
)
from .ports import AccountDirectory, EventPublisher, TokenCodec, TokenStore

logger = logging.getLogger(__name__)

EMAIL_VERIFICATION_TOKEN = "Email Verification Token"


def _mask(token: str) -> str:
    return f"{token[:6]}..." if token else "<empty>"


@dataclass
class AuthService:
    """
    Domain service for the authentication flows.

    Stateless apart from its collaborators; one instance may serve
    concurrent requests. Coordination happens in the store.
    """

    accounts: AccountDirectory
    tokens: TokenStore
    codec: TokenCodec
    events: EventPublisher
    bcrypt_cost: int = 10

    def email_in_use(self, email: str) -> bool:
        return self.accounts.exists(IdentifierKind.EMAIL, self._normalize_email(email))

    def username_in_use(self, username: str) -> bool:
        return self.accounts.exists(IdentifierKind.USERNAME, username.strip())

    def login(self, identifier: str, password: str, device_id: str) -> LoginResult:
        """
        Authenticate and hand out a refresh/access token pair.

        The refresh token supersedes any earlier token for the same device.

        Raises:
            InvalidCredentials: Identifier or password mismatch
            LoginFailure: Tokens could not be issued
        """
        identifier = identifier.strip()
        if "@" in identifier:
            identifier = self._normalize_email(identifier)

        account = self.accounts.verify_credentials(identifier, password, device_id)
        if account is None:
            raise InvalidCredentials()

        try:
            refresh_token = self.tokens.issue_refresh_token(account.id, device_id)
            access_token = self._issue_access_token(account)
        except Exception as e:
            logger.exception("Token issuance failed for account %s", account.username)
            raise LoginFailure() from e

        logger.info("Logged in account %s on device %s", account.username, device_id)

        return LoginResult(
            access_token=access_token,
            refresh_token=refresh_token.token,
            expires_in=self.codec.expiry_duration,
            principal=self._principal(account),
        )

    def register(
        self, username: str, email: str, password: str, url_builder: UrlBuilder
    ) -> Account:
        """
        Create an unverified account and publish RegistrationCompleted.

        The account and its verification token are stored together, before
        the event is published, so the mailer always has a live token to link
        to and a failed registration leaves no account behind.

        Raises:
            DuplicateIdentifier: If email or username is already taken
        """
        data = RegistrationData(
            username=username.strip(),
            email=self._normalize_email(email),
            password_hash=self._hash_password(password),
        )

        created = self.tokens.open_registration(data)
        if created is None:
            raise DuplicateIdentifier()

        account, token = created
        self.events.publish(RegistrationCompleted(account, url_builder, token))
        logger.info("Registered account %s", account.username)
        return account

    def confirm_registration(self, token: str) -> Account:
        """
        Consume a verification token and mark its owner verified.

        Both happen in one store operation: a failure keeps the token usable.

        Raises:
            InvalidToken: Token absent, expired or already used
        """
        account = self.tokens.confirm_email_verification_token(token)
        if account is None:
            raise InvalidToken(
                EMAIL_VERIFICATION_TOKEN,
                "Failed to confirm. Please generate a new email verification request",
            )

        logger.info("Verified account %s", account.username)
        return account

    def resend_verification_token(
        self, existing_token: str, url_builder: UrlBuilder
    ) -> EmailVerificationToken:
        """
        Replace a live verification token with a fresh one.

        Only the currently live token string is accepted. Strings of
        consumed or superseded tokens are rejected. An expired but
        unconsumed token is accepted, which is the usual reason to resend.

        Raises:
            InvalidToken: Unknown token, missing owner or already verified
        """
        current = self.tokens.find_email_verification_token(existing_token)
        if current is None:
            raise InvalidToken(EMAIL_VERIFICATION_TOKEN)

        account = self.accounts.find_by_id(current.account_id)
        if account is None:
            raise InvalidToken(
                EMAIL_VERIFICATION_TOKEN,
                "No user associated with this request. Re-verification denied",
            )
        if account.verified:
            raise InvalidToken(
                EMAIL_VERIFICATION_TOKEN,
                "User is already registered. No need to re-generate token",
            )

        new_token = self.tokens.issue_email_verification_token(account.id)
        self.events.publish(VerificationResent(account, url_builder, new_token))
        logger.info("Resent verification token for account %s", account.username)
        return new_token

    def request_password_reset_link(
        self, email: str, url_builder: UrlBuilder
    ) -> PasswordResetToken:
        """
        Mint a password reset token and publish ResetLinkGenerated.

        Raises:
            PasswordResetLinkFailure: No account for this email
        """
        account = self.accounts.find_by_email(self._normalize_email(email))
        if account is None:
            raise PasswordResetLinkFailure()

        token = self.tokens.issue_password_reset_token(account.id)
        self.events.publish(ResetLinkGenerated(token, url_builder))
        logger.info("Generated password reset link for account %s", account.username)
        return token

    def reset_password(self, token: str, new_password: str) -> Account:
        """
        Consume a reset token and replace the owner's password.

        Raises:
            PasswordResetFailure: Token absent, expired or already used
        """
        account = self.tokens.consume_password_reset_token(token)
        if account is None:
            raise PasswordResetFailure()

        self.accounts.replace_credential(account.id, self._hash_password(new_password))
        self.events.publish(AccountChanged(account, "Reset Password", "Changed Successfully"))
        logger.info("Reset password for account %s", account.username)
        return account

    def refresh_access_token(self, refresh_token: str) -> RefreshResult:
        """
        Mint a new access token from a live refresh token.

        The refresh token itself is returned unchanged.

        Raises:
            TokenRefreshFailure: Refresh token absent or expired
        """
        stored = self.tokens.find_refresh_token(refresh_token)
        if stored is None:
            raise TokenRefreshFailure("Missing refresh token in database. Please login again")
        if stored.is_expired():
            raise TokenRefreshFailure("Expired token. Please issue a new request")

        account = self.accounts.find_by_id(stored.account_id)
        if account is None:
            raise TokenRefreshFailure()

        self.tokens.record_refresh(stored.token)
        access_token = self._issue_access_token(account)
        logger.info("Refreshed access token for refresh token %s", _mask(stored.token))

        return RefreshResult(
            access_token=access_token,
            refresh_token=stored.token,
            expires_in=self.codec.expiry_duration,
        )

    def authenticate(self, access_token: str) -> AuthenticatedPrincipal:
        """
        Resolve a bearer access token into a principal.

        Raises:
            InvalidAccessToken: Expired, malformed or forged token
        """
        try:
            claims = self.codec.validate_access_token(access_token)
            account_id = UUID(claims.subject)
        except (AccessTokenError, ValueError) as e:
            raise InvalidAccessToken() from e

        return AuthenticatedPrincipal(
            account_id=account_id,
            username=claims.extra.get("username", ""),
            email=claims.extra.get("email", ""),
        )

    def _issue_access_token(self, account: Account) -> str:
        return self.codec.issue_access_token(
            account.id, {"username": account.username, "email": account.email}
        )

    def _principal(self, account: Account) -> AuthenticatedPrincipal:
        return AuthenticatedPrincipal(
            account_id=account.id, username=account.username, email=account.email
        )

    def _normalize_email(self, email: str) -> str:
        """
        Normalize email address for consistent storage and lookup.

        Applies: strip whitespace + lowercase
        """
        return email.strip().lower()

    def _hash_password(self, password: str) -> str:
        """Hash password using bcrypt with the configured cost factor."""
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=self.bcrypt_cost)).decode()
