"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.

Absence is signalled with None at every store boundary. The domain
service converts None into the matching domain failure explicitly.
"""

from collections.abc import Callable
from typing import Any, Protocol
from uuid import UUID

from .events import DomainEvent
from .models import (
    AccessClaims,
    Account,
    EmailVerificationToken,
    IdentifierKind,
    PasswordResetToken,
    RefreshToken,
    RegistrationData,
)


class AccountDirectory(Protocol):
    """Port interface for account persistence and credential checks."""

    def exists(self, kind: IdentifierKind, value: str) -> bool:
        """Return True if an account already uses the email/username."""
        ...

    def verify_credentials(self, identifier: str, secret: str, device_id: str) -> Account | None:
        """
        Check a username-or-email and password pair.

        Implementations must run the password comparison even when the
        identifier is unknown so that every failure takes the same time.

        Returns:
            The matching account, or None on any mismatch
        """
        ...

    def create_account(self, data: RegistrationData) -> Account | None:
        """
        Atomically create an unverified account.

        Returns:
            The new account, or None if email or username is taken
        """
        ...

    def find_by_email(self, email: str) -> Account | None: ...

    def find_by_id(self, account_id: UUID) -> Account | None: ...

    def mark_verified(self, account_id: UUID) -> None:
        """Set verified=True. Idempotent."""
        ...

    def replace_credential(self, account_id: UUID, password_hash: str) -> None:
        """
        Replace the stored password hash.

        Already issued access tokens remain valid until their own expiry.
        """
        ...


class TokenStore(Protocol):
    """
    Port interface for the three persisted token kinds.

    Issue operations supersede the previous token of the same scope
    atomically. Consume operations delete and return in one step so a
    token can succeed at most once.
    """

    def issue_refresh_token(self, account_id: UUID, device_id: str) -> RefreshToken: ...

    def find_refresh_token(self, token: str) -> RefreshToken | None:
        """Look up a refresh token. Expired tokens are returned as-is."""
        ...

    def record_refresh(self, token: str) -> None:
        """Increment the usage counter of a refresh token."""
        ...

    def issue_email_verification_token(self, account_id: UUID) -> EmailVerificationToken: ...

    def find_email_verification_token(self, token: str) -> EmailVerificationToken | None: ...

    def consume_email_verification_token(self, token: str) -> Account | None:
        """
        Delete an unexpired verification token and return its owner.

        Returns:
            The owning account, or None if absent, expired or already consumed
        """
        ...

    def open_registration(
        self, data: RegistrationData
    ) -> tuple[Account, EmailVerificationToken] | None:
        """
        Create an unverified account and its first verification token atomically.

        Returns:
            The account and token, or None if email or username is taken
        """
        ...

    def confirm_email_verification_token(self, token: str) -> Account | None:
        """
        Consume a verification token and mark its owner verified atomically.

        Returns:
            The verified account, or None if absent, expired or already consumed
        """
        ...

    def issue_password_reset_token(self, account_id: UUID) -> PasswordResetToken: ...

    def consume_password_reset_token(self, token: str) -> Account | None:
        """Same contract as consume_email_verification_token."""
        ...


class TokenCodec(Protocol):
    """Port interface for the stateless access token."""

    @property
    def expiry_duration(self) -> int:
        """Access token lifetime in seconds."""
        ...

    def issue_access_token(self, account_id: UUID, claims: dict[str, Any] | None = None) -> str: ...

    def validate_access_token(self, token: str) -> AccessClaims:
        """
        Verify signature and expiry.

        Raises:
            ExpiredAccessToken, BadTokenSignature, MalformedAccessToken
        """
        ...


EventHandler = Callable[[DomainEvent], None]


class EventPublisher(Protocol):
    """Port interface for the outbound event channel."""

    def publish(self, event: DomainEvent) -> None:
        """Enqueue an event for delivery. Never raises for handler failures."""
        ...


class EmailSender(Protocol):
    """Port interface for email delivery."""

    def send_email(self, to: str, subject: str, body: str) -> None:
        """
        Deliver a plain-text email.

        Args:
            to: Recipient email address
            subject: Mail subject line
            body: Mail body
        """
        ...
