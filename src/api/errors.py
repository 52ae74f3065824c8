"""
Exception handlers - Map domain failures to the uniform failure response.

Every domain failure becomes ``{"success": false, "message": ...}`` with a
fixed status code. Anything else (including database errors) becomes a
generic 500 without details.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from src.api.models import ApiResponse
from src.domain.exceptions import (
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

logger = logging.getLogger(__name__)

# Most specific classes first: lookup walks the exception's MRO.
STATUS_CODES: dict[type[AuthError], int] = {
    InvalidCredentials: status.HTTP_401_UNAUTHORIZED,
    LoginFailure: status.HTTP_417_EXPECTATION_FAILED,
    DuplicateIdentifier: status.HTTP_409_CONFLICT,
    RegistrationFailure: status.HTTP_417_EXPECTATION_FAILED,
    InvalidToken: status.HTTP_406_NOT_ACCEPTABLE,
    InvalidAccessToken: status.HTTP_401_UNAUTHORIZED,
    TokenRefreshFailure: status.HTTP_403_FORBIDDEN,
    PasswordResetLinkFailure: status.HTTP_417_EXPECTATION_FAILED,
    PasswordResetFailure: status.HTTP_417_EXPECTATION_FAILED,
}


def status_code_for(exc: AuthError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_CODES:
            return STATUS_CODES[cls]
    return status.HTTP_400_BAD_REQUEST


def _failure(status_code: int, message: str) -> JSONResponse:
    body = ApiResponse(success=False, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    status_code = status_code_for(exc)
    logger.info("%s %s failed: %s (%s)", request.method, request.url.path, type(exc).__name__, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, InvalidAccessToken) else None
    response = _failure(status_code, exc.message)
    if headers:
        response.headers.update(headers)
    return response


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def install_exception_handlers(app: FastAPI) -> None:
    """Register the domain and fallback exception handlers on an app."""
    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
