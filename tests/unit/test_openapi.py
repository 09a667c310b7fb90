"""
Tests for OpenAPI documentation.

Verifies OpenAPI schema is correctly generated for all endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from learngate.api.main import app


@pytest.fixture
def schema() -> dict:
    """Fetch the generated OpenAPI schema."""
    response = TestClient(app).get("/openapi.json")
    assert response.status_code == 200
    return response.json()


class TestOpenAPISchema:
    """Tests for OpenAPI schema generation."""

    def test_title_and_version(self, schema: dict) -> None:
        assert schema["info"]["title"] == "learngate"
        assert schema["info"]["version"] == "0.1.0"

    @pytest.mark.parametrize(
        ("path", "method"),
        [
            ("/v1/auth/register", "post"),
            ("/v1/auth/login", "post"),
            ("/v1/auth/verify-email", "post"),
            ("/v1/auth/resend-verification", "post"),
            ("/v1/auth/forgot-password", "post"),
            ("/v1/auth/reset-password", "post"),
            ("/v1/auth/change-password", "put"),
            ("/v1/users/me", "get"),
            ("/health", "get"),
        ],
    )
    def test_endpoint_documented(self, schema: dict, path: str, method: str) -> None:
        assert method in schema["paths"][path]

    def test_register_summary(self, schema: dict) -> None:
        assert schema["paths"]["/v1/auth/register"]["post"]["summary"] == "Register a new user"

    def test_error_responses_documented(self, schema: dict) -> None:
        """Failure statuses are part of the contract."""
        responses = schema["paths"]["/v1/auth/resend-verification"]["post"]["responses"]
        assert {"400", "401", "429"} <= set(responses)
        assert "403" in schema["paths"]["/v1/users/me"]["get"]["responses"]

    def test_validation_error_schema(self, schema: dict) -> None:
        props = schema["components"]["schemas"]["ValidationErrorResponse"]["properties"]
        assert {"status", "message", "errors"} <= set(props)

    def test_protected_routes_declare_bearer_auth(self, schema: dict) -> None:
        assert "HTTPBearer" in schema["components"]["securitySchemes"]
