"""
Auth API routes.

Defines the REST endpoints of the account lifecycle. Routes are plain
``def`` functions: FastAPI runs them on its worker threadpool, one
independent worker per request, and all coordination happens in the
database.

Domain failures propagate as AuthError and are rendered by the handlers
in src.api.errors.
"""

from fastapi import APIRouter, Depends, Query, Request

from src.api.dependencies import get_auth_service, get_current_principal
from src.api.models import (
    ApiResponse,
    JwtAuthenticationResponse,
    LoginRequest,
    LoginResponse,
    PasswordResetLinkRequest,
    PasswordResetRequest,
    PrincipalResponse,
    RegistrationRequest,
    TokenRefreshRequest,
)
from src.domain.auth import AuthService
from src.domain.events import UrlBuilder
from src.domain.models import AuthenticatedPrincipal

router = APIRouter(tags=["auth"])

CONFIRMATION_PATH = "/api/auth/registrationConfirmation"
PASSWORD_RESET_PATH = "/password/reset"


def _url_builder(request: Request, path: str) -> UrlBuilder:
    return UrlBuilder(base_url=str(request.base_url), path=path)


@router.get(
    "/checkEmailInUse",
    response_model=ApiResponse,
    summary="Check whether an email is in use",
)
def check_email_in_use(
    email: str = Query(..., min_length=1),
    service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    return ApiResponse(success=True, message=str(service.email_in_use(email)).lower())


@router.get(
    "/checkUsernameInUse",
    response_model=ApiResponse,
    summary="Check whether a username is in use",
)
def check_username_in_use(
    username: str = Query(..., min_length=1),
    service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    return ApiResponse(success=True, message=str(service.username_in_use(username)).lower())


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"model": ApiResponse, "description": "Invalid credentials"}},
    summary="Log in and obtain access and refresh tokens",
)
def login(
    request_data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    """
    Authenticate with username or email and password.

    The refresh token replaces any earlier refresh token of the same device.
    """
    result = service.login(request_data.identifier, request_data.password, request_data.device_id)
    return LoginResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        expires_in=result.expires_in,
        account_id=result.principal.account_id,
    )


@router.post(
    "/register",
    response_model=ApiResponse,
    responses={409: {"model": ApiResponse, "description": "Email or username in use"}},
    summary="Register a new account",
    description="Creates an unverified account. A verification link is emailed asynchronously.",
)
def register(
    request_data: RegistrationRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    service.register(
        request_data.username,
        request_data.email,
        request_data.password,
        _url_builder(request, CONFIRMATION_PATH),
    )
    return ApiResponse(
        success=True, message="User registered successfully. Check your email for verification"
    )


@router.post(
    "/password/resetlink",
    response_model=ApiResponse,
    responses={417: {"model": ApiResponse, "description": "No valid token could be created"}},
    summary="Request a password reset link",
)
def reset_link(
    request_data: PasswordResetLinkRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    service.request_password_reset_link(request_data.email, _url_builder(request, PASSWORD_RESET_PATH))
    return ApiResponse(success=True, message="Password reset link sent successfully")


@router.post(
    "/password/reset",
    response_model=ApiResponse,
    responses={417: {"model": ApiResponse, "description": "Invalid or used reset token"}},
    summary="Reset the password with a reset token",
)
def reset_password(
    request_data: PasswordResetRequest,
    service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    service.reset_password(request_data.token, request_data.new_password)
    return ApiResponse(success=True, message="Password changed successfully")


@router.get(
    "/registrationConfirmation",
    response_model=ApiResponse,
    responses={406: {"model": ApiResponse, "description": "Invalid, expired or used token"}},
    summary="Confirm the email address of a registration",
)
def confirm_registration(
    token: str = Query(..., min_length=1),
    service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    service.confirm_registration(token)
    return ApiResponse(success=True, message="User verified successfully")


@router.get(
    "/resendRegistrationToken",
    response_model=ApiResponse,
    responses={406: {"model": ApiResponse, "description": "Token not live or user verified"}},
    summary="Resend the email verification link",
)
def resend_registration_token(
    request: Request,
    token: str = Query(..., min_length=1),
    service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    """
    Replace the live verification token with a new one and email it.

    Only the most recent token is accepted; strings of consumed or
    superseded tokens fail.
    """
    service.resend_verification_token(token, _url_builder(request, CONFIRMATION_PATH))
    return ApiResponse(success=True, message="Email verification resent successfully")


@router.post(
    "/refresh",
    response_model=JwtAuthenticationResponse,
    responses={403: {"model": ApiResponse, "description": "Refresh token absent or expired"}},
    summary="Exchange a refresh token for a new access token",
)
def refresh(
    request_data: TokenRefreshRequest,
    service: AuthService = Depends(get_auth_service),
) -> JwtAuthenticationResponse:
    result = service.refresh_access_token(request_data.refresh_token)
    return JwtAuthenticationResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        expires_in=result.expires_in,
    )


@router.get(
    "/me",
    response_model=PrincipalResponse,
    responses={401: {"model": ApiResponse, "description": "Missing or invalid access token"}},
    summary="Describe the account behind the bearer access token",
)
def me(principal: AuthenticatedPrincipal = Depends(get_current_principal)) -> PrincipalResponse:
    return PrincipalResponse(
        account_id=principal.account_id, username=principal.username, email=principal.email
    )
