"""High-level API service for lost phone search."""

import logging
from typing import Any, AsyncContextManager, Dict, List, Optional, Sequence
from contextlib import asynccontextmanager

from pydantic import ValidationError as PydanticValidationError

from ..core.engine import PhoneSearchEngine
from ..analytics.events import AnalyticsSink
from ..config import SearchSettings
from ..core.exceptions import ConfigurationError, PhoneSearchError, ValidationError
from ..core.filters import FilterBuilder
from ..core.optimizer import SearchCache
from ..models.query import SearchRequest, SearchRequestModel
from ..models.record import PhoneRecord
from ..models.result import SearchResponse
from ..store.base import RecordStore
from ..store.sqlite import SQLiteRecordStore
from ..utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


class PhoneSearchService:
    """
    High-level service interface for lost and found phone search.

    Wires a record store, result cache, analytics sink and clock into a
    search engine and manages their lifecycle.
    """

    def __init__(
        self,
        store: Optional[RecordStore] = None,
        settings: Optional[SearchSettings] = None,
        cache: Optional[SearchCache] = None,
        analytics: Optional[AnalyticsSink] = None,
        clock=None,
        configure_logging: bool = True,
        **overrides
    ):
        """
        Initialize the search service.

        Args:
            store: Record store; a SQLite store at ``settings.database_path`` by default
            settings: Search settings, read from the environment when omitted
            cache: Shared result cache
            analytics: Analytics sink
            clock: Time source
            configure_logging: Whether to set up package logging
            **overrides: Individual settings overriding ``settings``

        Raises:
            ConfigurationError: If the resulting settings are invalid
        """
        try:
            settings = settings or SearchSettings()
            if overrides:
                settings = SearchSettings(**{**settings.model_dump(), **overrides})
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid search settings: {str(e)}") from e
        if settings.default_page_size > settings.max_page_size:
            raise ConfigurationError("Default page size cannot exceed the maximum page size")
        self.settings = settings

        if configure_logging:
            setup_logging(level=self.settings.log_level)

        self.store = store or SQLiteRecordStore(self.settings.database_path)
        self.engine = PhoneSearchEngine(
            store=self.store,
            cache=cache,
            analytics=analytics,
            clock=clock,
            settings=self.settings
        )

        self._initialized = False
        logger.info("Phone search service initialized")

    async def initialize(self, records: Optional[Sequence[PhoneRecord]] = None) -> None:
        """
        Initialize the service, optionally seeding the store.

        Args:
            records: Reports to add to the store before serving searches
        """
        try:
            if records:
                await self.store.add_records(records)
                logger.info(f"Seeded store with {len(records)} records")

            self._initialized = True
            logger.info("Service initialization complete")

        except Exception as e:
            logger.error(f"Failed to initialize service: {str(e)}")
            raise PhoneSearchError(f"Service initialization failed: {str(e)}")

    async def add_records(self, records: Sequence[PhoneRecord]) -> None:
        """Add reports to the store and drop cached searches."""
        self._check_initialized()
        await self.store.add_records(records)
        self.engine.clear_cache()
        logger.info(f"Added {len(records)} records")

    async def search(self, request: SearchRequest) -> SearchResponse:
        """
        Search lost and found reports.

        Args:
            request: Search request

        Returns:
            One page of merged results with search metadata

        Raises:
            ValidationError: If filters are invalid
            MissingCriteriaError: If the request has no usable criterion
            StoreError: If the lost-report scan fails
        """
        self._check_initialized()

        try:
            return await self.engine.search(request)

        except PhoneSearchError as e:
            logger.error(f"Search failed: {str(e)}")
            raise

    async def search_params(self, **params: Any) -> SearchResponse:
        """
        Convenience method for raw query-string style parameters.

        Accepts the keys understood by ``SearchRequestModel`` such as
        ``query``, ``type``, ``fuzzy``, ``lat``, ``status`` or ``dateFrom``.
        """
        try:
            model = SearchRequestModel.model_validate(params)
        except PydanticValidationError as e:
            errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
            raise ValidationError("Invalid search parameters", errors) from e

        return await self.search(model.to_request())

    def clear_cache(self, pattern: Optional[str] = None) -> int:
        """Drop cached searches, optionally only keys containing ``pattern``."""
        return self.engine.clear_cache(pattern)

    def filter_options(self) -> Dict[str, List[str]]:
        """Accepted filter values."""
        return FilterBuilder.filter_options()

    async def get_stats(self) -> Dict[str, Any]:
        """Get service and engine statistics."""
        self._check_initialized()

        return {
            'service': {
                'initialized': self._initialized,
                'cache_enabled': self.settings.cache_enabled,
                'store': type(self.store).__name__
            },
            'engine': self.engine.get_stats()
        }

    async def health_check(self) -> Dict[str, Any]:
        """Perform comprehensive health check."""
        try:
            if not self._initialized:
                return {
                    'status': 'not_initialized',
                    'message': 'Service not initialized'
                }

            return await self.engine.health_check()

        except Exception as e:
            logger.error(f"Health check failed: {str(e)}")
            return {
                'status': 'error',
                'message': str(e)
            }

    def _check_initialized(self) -> None:
        """Check if service is properly initialized."""
        if not self._initialized:
            raise PhoneSearchError("Service not initialized. Call initialize() first.")

    async def close(self) -> None:
        """Clean up resources and close the service."""
        try:
            await self.engine.close()
            self._initialized = False
            logger.info("Service closed successfully")

        except Exception as e:
            logger.error(f"Error during service shutdown: {str(e)}")

    @classmethod
    @asynccontextmanager
    async def create(
        cls,
        records: Optional[Sequence[PhoneRecord]] = None,
        **kwargs
    ) -> AsyncContextManager['PhoneSearchService']:
        """
        Create and manage service lifecycle with context manager.

        Args:
            records: Reports to seed the store with
            **kwargs: Additional service configuration

        Yields:
            Initialized phone search service
        """
        service = cls(**kwargs)

        try:
            await service.initialize(records)
            yield service
        finally:
            await service.close()
