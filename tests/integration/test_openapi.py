"""
Integration tests for OpenAPI documentation.

Verifies OpenAPI schema is correctly generated for all endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from src.api.main import app

V1_PATHS = [
    "/v1/request-code",
    "/v1/verify-code",
    "/v1/check-username",
    "/v1/register",
    "/v1/login",
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

    def test_openapi_schema_accessible(self, schema: dict) -> None:
        assert "openapi" in schema
        assert "info" in schema
        assert "paths" in schema

    def test_openapi_title_and_description(self, schema: dict) -> None:
        assert schema["info"]["title"] == "handshake"
        assert "Verified Registration API" in schema["info"]["description"]
        assert schema["info"]["version"] == "0.1.0"

    @pytest.mark.parametrize("path", V1_PATHS)
    def test_v1_endpoints_in_schema(self, schema: dict, path: str) -> None:
        """Every v1 endpoint is documented as a POST tagged v1."""
        assert path in schema["paths"]
        operation = schema["paths"][path]["post"]
        assert "v1" in operation.get("tags", [])

    def test_register_summary_and_status(self, schema: dict) -> None:
        register = schema["paths"]["/v1/register"]["post"]
        assert register["summary"] == "Register a new user"
        assert "201" in register["responses"]
        assert "409" in register["responses"]

    def test_register_request_schema(self, schema: dict) -> None:
        """RegisterRequest schema has email and credentials fields."""
        props = schema["components"]["schemas"]["RegisterRequest"]["properties"]
        assert set(props) == {"email", "credentials"}

    def test_auth_response_schema(self, schema: dict) -> None:
        props = schema["components"]["schemas"]["AuthResponse"]["properties"]
        assert {"message", "user", "token", "expires_in_seconds"} <= set(props)

    def test_user_response_has_no_password(self, schema: dict) -> None:
        props = schema["components"]["schemas"]["UserResponse"]["properties"]
        assert "password_hash" not in props
        assert "password" not in props

    def test_verify_code_request_schema(self, schema: dict) -> None:
        props = schema["components"]["schemas"]["VerifyCodeRequest"]["properties"]
        assert props["code"]["pattern"] == r"^\d{6}$"

    def test_v1_tag_in_schema(self, schema: dict) -> None:
        tag_names = [t["name"] for t in schema.get("tags", [])]
        assert "v1" in tag_names


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
