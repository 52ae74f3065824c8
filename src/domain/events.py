"""
Domain events - Notifications published by the authentication flows.

Events are immutable records handed to the event bus once the triggering
flow has committed its store changes. Subscribers (e.g. the mailer) build
deep links from the UrlBuilder carried by each event.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from urllib.parse import urlencode
from uuid import UUID, uuid4

from .models import Account, EmailVerificationToken, PasswordResetToken


@dataclass(frozen=True)
class UrlBuilder:
    """Base URL plus path, completed with query parameters by subscribers."""

    base_url: str
    path: str

    def build(self, **query: str) -> str:
        url = self.base_url.rstrip("/") + "/" + self.path.lstrip("/")
        if query:
            url = f"{url}?{urlencode(query)}"
        return url


@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""

    event_id: UUID = field(default_factory=uuid4, kw_only=True)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC), kw_only=True)


@dataclass(frozen=True)
class RegistrationCompleted(DomainEvent):
    """A new unverified account exists and its verification token is live."""

    account: Account
    url_builder: UrlBuilder
    token: EmailVerificationToken


@dataclass(frozen=True)
class VerificationResent(DomainEvent):
    """A fresh verification token superseded the previous one."""

    account: Account
    url_builder: UrlBuilder
    token: EmailVerificationToken


@dataclass(frozen=True)
class ResetLinkGenerated(DomainEvent):
    """A password reset token was minted for the account's email."""

    token: PasswordResetToken
    url_builder: UrlBuilder


@dataclass(frozen=True)
class AccountChanged(DomainEvent):
    """Account credentials or attributes were modified."""

    account: Account
    action: str
    detail: str
