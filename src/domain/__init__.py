"""
Domain layer - Pure business logic with zero framework imports.

This package contains the token lifecycle and authentication flows.
It defines its own port interfaces for infrastructure abstraction,
ensuring true hexagonal architecture decoupling.
"""

from .auth import AuthService
from .events import (
    AccountChanged,
    DomainEvent,
    RegistrationCompleted,
    ResetLinkGenerated,
    UrlBuilder,
    VerificationResent,
)
from .exceptions import (
    AuthError,
    DuplicateIdentifier,
    InvalidAccessToken,
    InvalidCredentials,
    InvalidToken,
    LoginFailure,
    PasswordResetFailure,
    PasswordResetLinkFailure,
    RegistrationFailure,
    TokenRefreshFailure,
)
from .models import Account, AuthenticatedPrincipal, IdentifierKind
from .notifications import AccountNotifier
from .ports import AccountDirectory, EmailSender, EventPublisher, TokenCodec, TokenStore

__all__ = [
    "Account",
    "AccountChanged",
    "AccountDirectory",
    "AccountNotifier",
    "AuthError",
    "AuthService",
    "AuthenticatedPrincipal",
    "DomainEvent",
    "DuplicateIdentifier",
    "EmailSender",
    "EventPublisher",
    "IdentifierKind",
    "InvalidAccessToken",
    "InvalidCredentials",
    "InvalidToken",
    "LoginFailure",
    "PasswordResetFailure",
    "PasswordResetLinkFailure",
    "RegistrationCompleted",
    "RegistrationFailure",
    "ResetLinkGenerated",
    "TokenCodec",
    "TokenRefreshFailure",
    "TokenStore",
    "UrlBuilder",
    "VerificationResent",
]
