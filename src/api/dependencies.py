"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from psycopg_pool import ConnectionPool

from src.adapters.events import ThreadPoolEventBus
from src.adapters.jwt import JwtTokenCodec
from src.adapters.repository.postgres import PostgresAccountDirectory, PostgresTokenStore
from src.config.settings import get_settings
from src.domain.auth import AuthService
from src.domain.exceptions import InvalidAccessToken
from src.domain.models import AuthenticatedPrincipal


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_event_bus(request: Request) -> ThreadPoolEventBus:
    """Get the event bus created during app lifespan startup."""
    return request.app.state.event_bus


def get_account_directory(request: Request) -> PostgresAccountDirectory:
    """Create account directory with connection pool from app state."""
    return PostgresAccountDirectory(get_pool(request), bcrypt_cost=get_settings().bcrypt_cost)


def get_token_store(request: Request) -> PostgresTokenStore:
    """Create token store with connection pool and configured lifetimes."""
    settings = get_settings()
    return PostgresTokenStore(
        get_pool(request),
        refresh_ttl_seconds=settings.refresh_token_ttl_seconds,
        verification_ttl_seconds=settings.email_verification_ttl_seconds,
        reset_ttl_seconds=settings.password_reset_ttl_seconds,
    )


def get_token_codec() -> JwtTokenCodec:
    """Create JWT codec from settings (stateless)."""
    settings = get_settings()
    return JwtTokenCodec(
        secret=settings.jwt_secret.get_secret_value(),
        expiration_seconds=settings.jwt_expiration_seconds,
        algorithm=settings.jwt_algorithm,
    )


def get_auth_service(request: Request) -> AuthService:
    """
    Create auth service with injected dependencies.

    Wires together the directory, token store, codec and event bus.
    """
    return AuthService(
        accounts=get_account_directory(request),
        tokens=get_token_store(request),
        codec=get_token_codec(),
        events=get_event_bus(request),
        bcrypt_cost=get_settings().bcrypt_cost,
    )


# Bearer security scheme for OpenAPI documentation
http_bearer = HTTPBearer(auto_error=False)


def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    service: AuthService = Depends(get_auth_service),
) -> AuthenticatedPrincipal:
    """
    Resolve the bearer access token into an explicit principal.

    Raises:
        InvalidAccessToken: Missing, expired or forged token (401)
    """
    if credentials is None:
        raise InvalidAccessToken("Missing bearer access token")
    return service.authenticate(credentials.credentials)
