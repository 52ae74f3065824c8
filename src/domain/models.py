"""
Domain models - Accounts, persisted tokens and flow results.

Plain dataclasses shared by the ports, the orchestrator and the adapters.
Token lifecycle: issued -> valid -> consumed | expired | superseded.
All three end states are terminal; consumed and superseded tokens simply
stop existing in the store.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from uuid import UUID


class IdentifierKind(str, Enum):
    """Account attribute used for uniqueness checks."""

    EMAIL = "email"
    USERNAME = "username"


@dataclass(frozen=True)
class Account:
    """Registered account. Created unverified, never deleted."""

    id: UUID
    username: str
    email: str
    password_hash: str = field(repr=False)
    verified: bool = False


@dataclass(frozen=True)
class RegistrationData:
    """Validated registration input with an already hashed password."""

    username: str
    email: str
    password_hash: str = field(repr=False)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class RefreshToken:
    """Opaque per-device refresh credential."""

    token: str
    account_id: UUID
    device_id: str
    expires_at: datetime
    refresh_count: int = 0

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or _utcnow()) >= self.expires_at


@dataclass(frozen=True)
class EmailVerificationToken:
    """One live token per account, consumed on confirmation."""

    token: str
    account_id: UUID
    expires_at: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or _utcnow()) >= self.expires_at


@dataclass(frozen=True)
class PasswordResetToken:
    """One live token per account, consumed on password change."""

    token: str
    account_id: UUID
    email: str
    expires_at: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or _utcnow()) >= self.expires_at


@dataclass(frozen=True)
class AccessClaims:
    """Decoded access token claims."""

    subject: str
    issued_at: datetime
    expires_at: datetime
    extra: dict = field(default_factory=dict)


@dataclass(frozen=True)
class AuthenticatedPrincipal:
    """
    Identity established by login or by a validated access token.

    Returned to the transport layer and passed along explicitly; there is
    no ambient security context.
    """

    account_id: UUID
    username: str
    email: str


@dataclass(frozen=True)
class LoginResult:
    """Tokens handed out after a successful login."""

    access_token: str
    refresh_token: str
    expires_in: int
    principal: AuthenticatedPrincipal


@dataclass(frozen=True)
class RefreshResult:
    """Fresh access token paired with the unchanged refresh token."""

    access_token: str
    refresh_token: str
    expires_in: int
