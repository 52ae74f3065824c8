"""
Domain exceptions - Semantic error types for the authentication flows.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
Every exception carries a human-readable message suitable for the
transport boundary.
"""


class AuthError(Exception):
    """Base class for authentication domain errors."""

    default_message = "Authentication request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class LoginFailure(AuthError):
    """Login could not be completed."""

    default_message = "Couldn't login user"


class InvalidCredentials(LoginFailure):
    """Identifier or secret mismatch (never says which)."""

    default_message = "Invalid username/email or password"


class RegistrationFailure(AuthError):
    """Account could not be created."""

    default_message = "Registration failed"


class DuplicateIdentifier(RegistrationFailure):
    """Email or username already belongs to an account."""

    default_message = "Email or username already in use"


class InvalidToken(AuthError):
    """Verification token is absent, expired, consumed or superseded."""

    default_message = "Invalid or expired token"

    def __init__(self, token_type: str, message: str | None = None) -> None:
        self.token_type = token_type
        super().__init__(message)


class InvalidAccessToken(AuthError):
    """Bearer access token failed validation."""

    default_message = "Invalid or expired access token"


class TokenRefreshFailure(AuthError):
    """Refresh token is absent or expired."""

    default_message = "Unexpected error during token refresh. Please logout and login again."


class PasswordResetLinkFailure(AuthError):
    """Password reset link could not be generated."""

    default_message = "Couldn't create a valid token"


class PasswordResetFailure(AuthError):
    """Password reset token was not accepted."""

    default_message = "Error in resetting password"


class AccessTokenError(Exception):
    """Base class for access token codec failures."""

    pass


class ExpiredAccessToken(AccessTokenError):
    """Access token expiry is in the past."""

    pass


class BadTokenSignature(AccessTokenError):
    """Access token signature does not match the signing key."""

    pass


class MalformedAccessToken(AccessTokenError):
    """Access token cannot be decoded or lacks required claims."""

    pass
