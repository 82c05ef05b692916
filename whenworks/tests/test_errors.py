"""Tests for standardized error handling."""

from fastapi import FastAPI
from fastapi.testclient import TestClient

from whenworks.scheduling import InvalidLimitError, InvalidTimeError


class TestAPIErrors:
    """Test custom API error classes."""

    def test_not_found_error_defaults(self):
        """Test NotFoundError has correct defaults."""
        from whenworks.errors import NotFoundError

        error = NotFoundError()
        assert error.status_code == 404
        assert error.error == "not_found"
        assert error.detail == "Resource not found"

    def test_not_found_error_with_context(self):
        from whenworks.errors import NotFoundError

        error = NotFoundError(detail="Event not found", slug="team-sync-abc123")
        assert error.detail == "Event not found"
        assert error.context == {"slug": "team-sync-abc123"}

    def test_bad_request_error(self):
        from whenworks.errors import BadRequestError

        error = BadRequestError(detail="Invalid slot: 2024-01-10T08:30")
        assert error.status_code == 400
        assert error.error == "bad_request"

    def test_conflict_error(self):
        from whenworks.errors import ConflictError

        error = ConflictError()
        assert error.status_code == 409
        assert error.error == "conflict"

    def test_rate_limited_error(self):
        from whenworks.errors import RateLimitedError

        error = RateLimitedError(reset_in=42)
        assert error.status_code == 429
        assert error.context == {"reset_in": 42}

    def test_service_unavailable_error(self):
        from whenworks.errors import ServiceUnavailableError

        error = ServiceUnavailableError(detail="Redis not connected")
        assert error.status_code == 503
        assert error.error == "service_unavailable"
        assert error.detail == "Redis not connected"


class TestErrorResponse:
    """Test error response model."""

    def test_error_response_model(self):
        from whenworks.errors import ErrorResponse

        response = ErrorResponse(
            error="not_found",
            detail="Event not found",
            error_code="EVENT_NOT_FOUND",
            context={"slug": "abc"},
        )

        data = response.model_dump()
        assert data["error"] == "not_found"
        assert data["detail"] == "Event not found"
        assert data["error_code"] == "EVENT_NOT_FOUND"
        assert data["context"] == {"slug": "abc"}

    def test_error_response_minimal(self):
        from whenworks.errors import ErrorResponse

        data = ErrorResponse(error="internal_error").model_dump(exclude_none=True)
        assert data == {"error": "internal_error"}

    def test_api_error_to_response(self):
        from whenworks.errors import NotFoundError

        response = NotFoundError(detail="Not found", slug="abc").to_response()
        assert response.error == "not_found"
        assert response.detail == "Not found"
        assert response.context == {"slug": "abc"}


class TestExceptionHandlers:
    """Test exception handlers integration."""

    def _client(self, exc):
        from whenworks.errors import register_exception_handlers

        app = FastAPI()
        register_exception_handlers(app)

        @app.get("/boom")
        async def boom():
            raise exc

        return TestClient(app, raise_server_exceptions=False)

    def test_api_error_handler_integration(self):
        from whenworks.errors import NotFoundError

        response = self._client(NotFoundError(detail="Event not found")).get("/boom")
        assert response.status_code == 404
        assert response.json() == {"error": "not_found", "detail": "Event not found"}

    def test_rate_limited_sets_retry_after(self):
        from whenworks.errors import RateLimitedError

        response = self._client(RateLimitedError(reset_in=17)).get("/boom")
        assert response.status_code == 429
        assert response.headers["Retry-After"] == "17"

    def test_scheduling_error_maps_to_bad_request(self):
        response = self._client(InvalidLimitError("limit must be positive, got 0")).get("/boom")
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "bad_request"
        assert body["error_code"] == "InvalidLimitError"
        assert body["detail"] == "limit must be positive, got 0"

    def test_scheduling_error_subclass(self):
        response = self._client(InvalidTimeError("bad time")).get("/boom")
        assert response.json()["error_code"] == "InvalidTimeError"

    def test_http_exception_uses_standard_format(self):
        from fastapi import HTTPException

        response = self._client(HTTPException(status_code=403, detail="nope")).get("/boom")
        assert response.status_code == 403
        assert response.json() == {"error": "forbidden", "detail": "nope"}


class TestStatusToErrorType:
    """Test status code to error type mapping."""

    def test_common_status_codes(self):
        from whenworks.errors import _status_to_error_type

        assert _status_to_error_type(400) == "bad_request"
        assert _status_to_error_type(404) == "not_found"
        assert _status_to_error_type(409) == "conflict"
        assert _status_to_error_type(429) == "rate_limited"
        assert _status_to_error_type(503) == "service_unavailable"

    def test_unknown_status_code(self):
        from whenworks.errors import _status_to_error_type

        assert _status_to_error_type(418) == "error"
