"""Tests for global exception handlers.

Validates that all exception types are handled consistently with
proper HTTP status codes, error format, and no information leakage.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from kotoba_api.adapters.rate_limit.base import AdmissionDecision
from kotoba_api.core.errors import (
    AppError,
    AuthConfigurationAppError,
    ErrorCode,
    NetworkAppError,
    RateLimitAppError,
    UpstreamAppError,
    ValidationAppError,
)
from kotoba_api.core.exception_handlers import general_exception_handler, setup_exception_handlers


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
        """Verify ValidationAppError returns HTTP 400 in the flat wire shape."""
        @app_with_handlers.get("/test-validation")
        async def test_endpoint():
            raise ValidationAppError(
                code=ErrorCode.INVALID_INPUT,
                message="Please enter text to translate.",
            )

        response = client.get("/test-validation")

        assert response.status_code == 400
        assert response.json() == {
            "code": "INVALID_INPUT",
            "message": "Please enter text to translate.",
            "status": 400,
        }

    def test_details_are_never_returned(self, client: TestClient, app_with_handlers: FastAPI):
        """Verify structured details stay in logs only."""
        @app_with_handlers.get("/test-details")
        async def test_endpoint():
            raise UpstreamAppError(
                code=ErrorCode.API_ERROR,
                message="Translation service is temporarily unavailable.",
                details={"upstream_status": 500, "provider": "google"},
            )

        response = client.get("/test-details")

        assert response.status_code == 502
        assert "details" not in response.json()
        assert "google" not in response.text

    @pytest.mark.parametrize(
        ("error_cls", "code", "status"),
        [
            (AuthConfigurationAppError, ErrorCode.AUTH_ERROR, 500),
            (NetworkAppError, ErrorCode.NETWORK_ERROR, 503),
            (UpstreamAppError, ErrorCode.API_ERROR, 502),
        ],
    )
    def test_variant_status_codes(self, client, app_with_handlers, error_cls, code, status):
        """Verify each variant maps to its HTTP status."""
        @app_with_handlers.get("/test-variant")
        async def test_endpoint():
            raise error_cls(code=code, message="failure")

        response = client.get("/test-variant")

        assert response.status_code == status
        assert response.json()["code"] == code
        assert response.json()["status"] == status

    def test_rate_limit_error_includes_retry_after(self, client: TestClient, app_with_handlers: FastAPI):
        """Verify 429 responses carry retryAfter and rate-limit headers."""
        decision = AdmissionDecision(
            allowed=False,
            limit=20,
            remaining=0,
            reset_at=1020,
            reason="client_limit",
            retry_after_seconds=7,
        )

        @app_with_handlers.get("/test-rate-limit")
        async def test_endpoint():
            raise RateLimitAppError(
                code=ErrorCode.RATE_LIMIT,
                message="Too many requests. Please wait 7 seconds.",
                retry_after=7,
                decision=decision,
            )

        response = client.get("/test-rate-limit")

        assert response.status_code == 429
        assert response.json()["retryAfter"] == 7
        assert response.headers["Retry-After"] == "7"
        assert response.headers["X-RateLimit-Limit"] == "20"
        assert response.headers["X-RateLimit-Remaining"] == "0"

    def test_upstream_throttling_without_decision(self, client: TestClient, app_with_handlers: FastAPI):
        """Verify provider throttling (no admission decision) still returns 429."""
        @app_with_handlers.get("/test-upstream-429")
        async def test_endpoint():
            raise RateLimitAppError(code=ErrorCode.RATE_LIMIT, message="Too many requests.")

        response = client.get("/test-upstream-429")

        assert response.status_code == 429
        assert "retryAfter" not in response.json()
        assert "X-RateLimit-Limit" not in response.headers


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_handler_registered(self, app_with_handlers: FastAPI):
        """Verify fallback exception handler is registered."""
        assert Exception in app_with_handlers.exception_handlers

    def test_general_exception_handler_logic(self):
        """Verify general_exception_handler returns correct structure."""
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "POST"

        exc = RuntimeError("Unexpected error: dictionary file corrupted")
        response = asyncio.run(general_exception_handler(request, exc))

        response_body = response.body if isinstance(response.body, bytes) else bytes(response.body)
        data = json.loads(response_body.decode())
        assert response.status_code == 500
        assert data["code"] == "INTERNAL_ERROR"
        assert data["status"] == 500
        # Original error message should NOT be in response
        assert "dictionary" not in data["message"]

    def test_general_exception_handler_never_leaks_stack_trace(self):
        """Verify stack traces are never included in response."""
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = ValueError("Test error with details")
        response = asyncio.run(general_exception_handler(request, exc))

        response_text = bytes(response.body).decode()
        assert "Traceback" not in response_text
        assert "ValueError" not in response_text


class TestErrorHandlerIntegration:
    """Integration tests for exception handler setup."""

    def test_setup_exception_handlers_registers_handlers(self, app_with_handlers: FastAPI):
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers

    def test_multiple_handler_setups_does_not_fail(self):
        """Verify calling setup_exception_handlers multiple times is safe."""
        app = FastAPI()

        setup_exception_handlers(app)
        setup_exception_handlers(app)

        assert AppError in app.exception_handlers
