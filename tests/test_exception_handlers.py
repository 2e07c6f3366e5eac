"""Tests for global exception handlers.

Validates that all exception types are rendered with the same
``{"error", "details"?}`` shape, the right status codes, and no
information leakage.
"""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tempmail_relay.core.errors import (
    AppError,
    AuthenticationAppError,
    RateLimitAppError,
    UpstreamAppError,
    ValidationAppError,
)
from tempmail_relay.core.exception_handlers import setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    """Create test client with handlers enabled."""
    return TestClient(app_with_handlers)


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    def test_validation_error_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-validation")
        async def test_endpoint():
            raise ValidationAppError(code="test_validation", message="Test validation error")

        response = client.get("/test-validation")

        assert response.status_code == 400
        assert response.json() == {"error": "Test validation error"}

    def test_authentication_error_returns_401(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-auth")
        async def test_endpoint():
            raise AuthenticationAppError(
                code="missing_authorization",
                message="Missing Authorization header",
            )

        response = client.get("/test-auth")

        assert response.status_code == 401
        assert response.json() == {"error": "Missing Authorization header"}

    def test_rate_limit_error_returns_429_with_headers(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        @app_with_handlers.get("/test-rate")
        async def test_endpoint():
            raise RateLimitAppError(
                code="rate_limited",
                message="Too many requests, please wait a minute.",
                details={"ignored": True},
                retry_after=12,
                response_headers={"Retry-After": "12", "RateLimit-Remaining": "0"},
            )

        response = client.get("/test-rate")

        assert response.status_code == 429
        assert response.json() == {"error": "Too many requests, please wait a minute."}
        assert response.headers["Retry-After"] == "12"
        assert response.headers["RateLimit-Remaining"] == "0"

    def test_upstream_error_uses_upstream_status_and_details(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        @app_with_handlers.get("/test-upstream")
        async def test_endpoint():
            raise UpstreamAppError(
                code="upstream_error",
                message="Failed to fetch messages",
                details={"code": 401, "message": "JWT Token not found"},
                upstream_status=401,
            )

        response = client.get("/test-upstream")

        assert response.status_code == 401
        assert response.json() == {
            "error": "Failed to fetch messages",
            "details": {"code": 401, "message": "JWT Token not found"},
        }

    def test_upstream_error_without_status_is_502(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        @app_with_handlers.get("/test-upstream-down")
        async def test_endpoint():
            raise UpstreamAppError(code="upstream_timeout", message="Upstream request timed out")

        response = client.get("/test-upstream-down")

        assert response.status_code == 502
        assert response.json() == {"error": "Upstream request timed out"}

    def test_request_validation_error_returns_400(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        @app_with_handlers.get("/test-query")
        async def test_endpoint(page: int):
            return {"page": page}

        response = client.get("/test-query", params={"page": "abc"})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Invalid request"
        assert data["details"][0]["loc"] == ["query", "page"]


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_handler_registered(self, app_with_handlers: FastAPI):
        assert Exception in app_with_handlers.exception_handlers

    def test_general_exception_handler_logic(self):
        from tempmail_relay.core.exception_handlers import general_exception_handler

        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"
        request.state = SimpleNamespace()

        exc = RuntimeError("Unexpected error: upstream socket closed")
        response = asyncio.run(general_exception_handler(request, exc))

        data = json.loads(bytes(response.body).decode())
        assert response.status_code == 500
        assert data == {"error": "Internal Server Error"}

    def test_unhandled_route_error_is_normalized(self, app_with_handlers: FastAPI):
        @app_with_handlers.get("/boom")
        async def boom():
            raise RuntimeError("secret internals")

        response = TestClient(app_with_handlers, raise_server_exceptions=False).get("/boom")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal Server Error"}
        assert "secret internals" not in response.text
        assert "Traceback" not in response.text


class TestErrorHandlerIntegration:
    """Integration tests for exception handler setup."""

    def test_setup_exception_handlers_registers_handlers(self, app_with_handlers: FastAPI):
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers

    def test_multiple_handler_setups_does_not_fail(self):
        app = FastAPI()

        setup_exception_handlers(app)
        setup_exception_handlers(app)

        assert AppError in app.exception_handlers
