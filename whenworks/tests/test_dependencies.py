"""Tests for dependency injection."""

from unittest.mock import MagicMock, patch

import pytest

from whenworks import state
from whenworks.errors import ServiceUnavailableError
from whenworks.rate_limit import AllowAllRateLimiter


class TestGetOptionalRedis:
    """Test get_optional_redis dependency."""

    def test_returns_client_when_connected(self):
        from whenworks.dependencies import get_optional_redis

        mock_redis = MagicMock()
        with patch.object(state, "redis_client", mock_redis):
            assert get_optional_redis() is mock_redis

    def test_returns_none_when_not_connected(self):
        from whenworks.dependencies import get_optional_redis

        with patch.object(state, "redis_client", None):
            assert get_optional_redis() is None


class TestRateLimiterDependencies:

    @pytest.mark.parametrize(
        ("attr", "getter"),
        [
            ("create_event_limiter", "get_create_event_limiter"),
            ("submit_limiter", "get_submit_limiter"),
        ],
    )
    def test_returns_limiter_when_initialized(self, attr, getter):
        import whenworks.dependencies as dependencies

        limiter = AllowAllRateLimiter()
        with patch.object(state, attr, limiter):
            assert getattr(dependencies, getter)() is limiter

    @pytest.mark.parametrize(
        ("attr", "getter"),
        [
            ("create_event_limiter", "get_create_event_limiter"),
            ("submit_limiter", "get_submit_limiter"),
        ],
    )
    def test_raises_when_not_initialized(self, attr, getter):
        import whenworks.dependencies as dependencies

        with patch.object(state, attr, None):
            with pytest.raises(ServiceUnavailableError) as exc_info:
                getattr(dependencies, getter)()
            assert exc_info.value.detail == "Rate limiter not initialized"


class TestTypeAliases:
    """Test that type aliases are properly defined."""

    def test_aliases_exist(self):
        from whenworks.dependencies import EventLimiter, OptionalRedis, SubmitLimiter

        assert OptionalRedis is not None
        assert EventLimiter is not None
        assert SubmitLimiter is not None
