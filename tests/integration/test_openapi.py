"""
Integration tests for OpenAPI documentation.

Verifies OpenAPI schema is correctly generated for all endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from src.api.main import app

AUTH_ENDPOINTS = [
    ("get", "/api/auth/checkEmailInUse"),
    ("get", "/api/auth/checkUsernameInUse"),
    ("post", "/api/auth/login"),
    ("post", "/api/auth/register"),
    ("post", "/api/auth/password/resetlink"),
    ("post", "/api/auth/password/reset"),
    ("get", "/api/auth/registrationConfirmation"),
    ("get", "/api/auth/resendRegistrationToken"),
    ("post", "/api/auth/refresh"),
    ("get", "/api/auth/me"),
]


@pytest.fixture
def client() -> TestClient:
    """Create test client for the application."""
    return TestClient(app)


@pytest.fixture
def schema(client: TestClient) -> dict:
    response = client.get("/openapi.json")
    assert response.status_code == 200
    return response.json()


class TestOpenAPISchema:
    """Tests for OpenAPI schema generation."""

    def test_openapi_title_and_description(self, schema: dict) -> None:
        """OpenAPI schema has correct title and description."""
        assert schema["info"]["title"] == "authservice"
        assert "token issuance" in schema["info"]["description"]
        assert schema["info"]["version"] == "0.1.0"

    @pytest.mark.parametrize(("method", "path"), AUTH_ENDPOINTS)
    def test_auth_endpoint_documented(self, schema: dict, method: str, path: str) -> None:
        assert path in schema["paths"]
        operation = schema["paths"][path][method]
        assert operation["summary"]
        assert "auth" in operation["tags"]

    def test_login_request_uses_camel_case(self, schema: dict) -> None:
        props = schema["components"]["schemas"]["LoginRequest"]["properties"]
        assert {"username", "email", "password", "deviceId"} <= set(props)

    def test_jwt_response_schema(self, schema: dict) -> None:
        props = schema["components"]["schemas"]["JwtAuthenticationResponse"]["properties"]
        assert {"accessToken", "refreshToken", "tokenType", "expiresIn"} <= set(props)

    def test_password_reset_request_schema(self, schema: dict) -> None:
        props = schema["components"]["schemas"]["PasswordResetRequest"]["properties"]
        assert {"token", "newPassword"} <= set(props)

    def test_me_endpoint_declares_bearer_security(self, schema: dict) -> None:
        assert "HTTPBearer" in schema["components"]["securitySchemes"]
        assert schema["paths"]["/api/auth/me"]["get"]["security"] == [{"HTTPBearer": []}]

    def test_auth_tag_in_schema(self, schema: dict) -> None:
        assert "auth" in [t["name"] for t in schema.get("tags", [])]


class TestSwaggerUI:
    """Tests for Swagger UI availability."""

    def test_docs_endpoint_accessible(self, client: TestClient) -> None:
        """Swagger UI is accessible at /docs."""
        response = client.get("/docs")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "swagger" in response.text.lower()

    def test_redoc_endpoint_accessible(self, client: TestClient) -> None:
        """ReDoc is accessible at /redoc."""
        response = client.get("/redoc")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "redoc" in response.text.lower()
