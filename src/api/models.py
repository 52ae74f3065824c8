"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
JSON field names are camelCase; Python attributes stay snake_case.
"""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing to and accepting camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(CamelModel):
    """Generic acknowledgement, also used for every failure."""

    success: bool
    message: str


class LoginRequest(CamelModel):
    """Request model for login with username or email."""

    username: str | None = Field(None, min_length=1)
    email: EmailStr | None = None
    password: str = Field(..., min_length=1)
    device_id: str = Field(..., min_length=1, max_length=255, description="Client device identifier")

    @model_validator(mode="after")
    def _require_identifier(self) -> "LoginRequest":
        if not self.username and not self.email:
            raise ValueError("Either username or email is required")
        return self

    @property
    def identifier(self) -> str:
        return self.email or self.username or ""


class JwtAuthenticationResponse(CamelModel):
    """Access/refresh token pair."""

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class LoginResponse(JwtAuthenticationResponse):
    """Response model for successful login."""

    account_id: UUID


class RegistrationRequest(CamelModel):
    """Request model for account registration."""

    username: str = Field(..., min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_.-]+$")
    email: EmailStr
    password: str = Field(..., min_length=8, description="User password (min 8 characters)")


class PasswordResetLinkRequest(CamelModel):
    """Request model for a password reset link."""

    email: EmailStr


class PasswordResetRequest(CamelModel):
    """Request model for changing the password with a reset token."""

    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, description="New password (min 8 characters)")


class TokenRefreshRequest(CamelModel):
    """Request model for access token refresh."""

    refresh_token: str = Field(..., min_length=1)


class PrincipalResponse(CamelModel):
    """The account behind a bearer access token."""

    account_id: UUID
    username: str
    email: str
