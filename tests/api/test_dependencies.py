"""
Test suite for dependency injection container.

Tests ServiceCache lazy construction, reuse and teardown, and the
FastAPI provider functions built on it.

System role: Verification of DI container
"""

from unittest.mock import AsyncMock, MagicMock, patch

from recall.api.deps import ServiceCache, get_service_cache


class TestServiceCache:
    """Test suite for ServiceCache."""

    def test_engine_should_be_created_once(self) -> None:
        # Arrange
        cache = ServiceCache()
        with patch("recall.api.deps.dependencies.get_async_engine") as mock_engine_factory:
            mock_engine_factory.return_value = MagicMock()

            # Act
            first = cache.engine
            second = cache.engine

        # Assert
        assert first is second
        mock_engine_factory.assert_called_once()

    def test_rag_service_should_be_built_from_settings_and_session_factory(self) -> None:
        cache = ServiceCache()
        with patch("recall.api.deps.dependencies.get_async_engine"), patch(
            "recall.api.deps.dependencies.get_async_session_factory"
        ) as mock_factory, patch(
            "recall.api.deps.dependencies.create_rag_service"
        ) as mock_create:
            service = cache.rag_service
            again = cache.rag_service

        assert service is again
        mock_create.assert_called_once()
        assert mock_create.call_args.args[1] is mock_factory.return_value

    async def test_aclose_should_release_resources_and_clear(self) -> None:
        # Arrange
        cache = ServiceCache()
        engine = MagicMock(dispose=AsyncMock())
        service = MagicMock(aclose=AsyncMock())
        cache._engine = engine
        cache._rag_service = service

        # Act
        await cache.aclose()

        # Assert
        service.aclose.assert_awaited_once()
        engine.dispose.assert_awaited_once()
        assert cache._engine is None
        assert cache._rag_service is None

    async def test_aclose_on_empty_cache_is_noop(self) -> None:
        cache = ServiceCache()

        await cache.aclose()

        assert cache._session_factory is None


class TestProviders:
    """Test suite for provider functions."""

    def test_get_service_cache_should_be_singleton(self) -> None:
        assert get_service_cache() is get_service_cache()
