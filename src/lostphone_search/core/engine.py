"""Search orchestrator over lost and found phone reports."""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from ..analytics.events import AnalyticsSink, NullAnalyticsSink, SearchEvent
from ..config import SearchSettings
from ..models.query import FilterSet, SearchRequest, SearchType
from ..models.record import CategoryFields, PhoneRecord, RecordCategory, RecordField
from ..models.result import SearchResponse, SearchResult
from ..utils.clock import SystemClock
from ..utils.logging_config import StructuredLogger
from ..utils.text_processing import TextProcessor
from ..utils.validators import validate_request
from .exceptions import StoreError, ValidationError
from .filters import FilterBuilder
from .geospatial import bounding_box, filter_by_proximity
from .optimizer import SearchCache, cache_key, normalize_params, paginate, performance_metrics
from .predicates import (
    AnyOf,
    Between,
    Contains,
    IsPresent,
    MatchAll,
    Ordering,
    Predicate,
    all_of,
)
from .similarity import IdentifierKind, identifier_score, multi_field_rank, phonetic_match

logger = logging.getLogger(__name__)

# Fields searched by general queries, both as LIKE conditions and fuzzy candidates
GENERAL_FIELDS = (
    RecordField.PHONE_NUMBER,
    RecordField.IMEI,
    RecordField.EMAIL,
    RecordField.BRAND,
    RecordField.MODEL,
    RecordField.DESCRIPTION,
    RecordField.LOCATION,
    RecordField.REPORTER_NAME,
)

PHONE_FIELDS = (RecordField.PHONE_NUMBER, RecordField.REPORTER_CONTACT)

PHONETIC_FIELDS = (
    RecordField.REPORTER_NAME,
    RecordField.BRAND,
    RecordField.MODEL,
    RecordField.DESCRIPTION,
    RecordField.LOCATION,
)

# (record, similarity score, matched field) before provenance tagging
Scored = Tuple[PhoneRecord, Optional[float], Optional[RecordField]]


class PhoneSearchEngine:
    """
    Search pipeline over the lost and found report collections.

    Each request is validated and normalized, answered from the injected
    cache when possible, and otherwise turned into one structured predicate
    that is scanned against both categories concurrently. Candidates are
    re-ranked in memory (fuzzy, phonetic and proximity filters), merged,
    cached whole and paginated. An analytics event is emitted in the
    background for every completed search.
    """

    def __init__(
        self,
        store,
        cache: Optional[SearchCache] = None,
        analytics: Optional[AnalyticsSink] = None,
        clock=None,
        settings: Optional[SearchSettings] = None
    ):
        """
        Initialize the search engine.

        Args:
            store: Record store scanned for both categories
            cache: Result cache; one is created from settings when omitted
            analytics: Sink receiving one event per search
            clock: Time source for date windows and cache expiry
            settings: Search defaults
        """
        self.store = store
        self.settings = settings or SearchSettings()
        self.clock = clock or SystemClock()
        self.cache = cache if cache is not None else SearchCache(
            ttl_seconds=self.settings.cache_ttl_seconds, clock=self.clock
        )
        self.analytics = analytics or NullAnalyticsSink()
        self.filter_builder = FilterBuilder(self.clock)
        self.text_processor = TextProcessor()

        self._log = StructuredLogger(__name__)
        self._pending_analytics: Set[asyncio.Task] = set()
        self._stats = {
            'total_searches': 0,
            'cache_hits': 0,
            'partial_searches': 0,
            'failed_searches': 0,
            'avg_search_time': 0.0
        }

        logger.info("Phone search engine initialized")

    async def search(self, request: SearchRequest) -> SearchResponse:
        """
        Run one search request end to end.

        Args:
            request: Search request

        Returns:
            One page of merged results with search metadata

        Raises:
            ValidationError: If filter parameters are invalid
            MissingCriteriaError: If the request has no usable criterion
            StoreError: If the lost-report scan fails
        """
        loop = asyncio.get_running_loop()
        start_time = loop.time()

        if not isinstance(request, SearchRequest):
            raise ValidationError("Invalid request type")

        params = normalize_params(
            request,
            default_threshold=self.settings.default_threshold,
            default_radius_km=self.settings.default_radius_km,
            default_page_size=self.settings.default_page_size,
            max_page_size=self.settings.max_page_size,
        )

        errors = self.filter_builder.validate(params.filters)
        if errors:
            raise ValidationError("Invalid filter parameters", errors)
        validate_request(params)

        log = self._log.with_context(
            type=params.search_type.value, query=params.query or "-", caller=params.caller_ip
        )
        geospatial = params.has_coordinates
        use_cache = params.use_cache and self.settings.cache_enabled
        key = cache_key(params) if use_cache else None

        entry = self.cache.get(key) if key else None
        if entry is not None:
            results = list(entry.results)
            search_info = dict(entry.search_info)
            cache_hit = True
            self._stats['cache_hits'] += 1
            log.debug(f"Cache hit with {len(results)} results")
        else:
            cache_hit = False
            try:
                results, failed = await self._execute(params, geospatial)
            except StoreError:
                self._stats['failed_searches'] += 1
                raise

            search_info = self._search_info(params, geospatial, len(results))
            if failed:
                search_info['partial_results'] = True
                search_info['failed_categories'] = failed
                self._stats['partial_searches'] += 1
            elif key:
                self.cache.set(key, results, search_info)

        page = paginate(results, params.page, params.page_size, self.settings.max_page_size)
        elapsed = loop.time() - start_time
        metrics = performance_metrics(elapsed, len(page.data), cache_hit, self.clock.now())

        search_info.update(
            performance=metrics,
            cache_hit=cache_hit,
            filter_summary=self.filter_builder.filter_summary(params.filters),
        )

        self._update_search_stats(elapsed)
        self._emit_analytics(SearchEvent(
            query_text=params.query,
            search_type=params.search_type.value,
            filters=params.filters.active(),
            result_count=len(results),
            response_time_ms=metrics['execution_time_ms'],
            cache_hit=cache_hit,
            caller_ip=params.caller_ip,
            user_agent=params.user_agent,
            timestamp=self.clock.now(),
        ))

        log.info(f"Search completed: {len(results)} results in {elapsed:.3f}s")
        return SearchResponse(data=page.data, pagination=page.pagination, search_info=search_info)

    async def _execute(
        self,
        params: SearchRequest,
        geospatial: bool
    ) -> Tuple[List[SearchResult], List[str]]:
        """Scan both categories, post-filter and merge. Returns results and failed categories."""
        filters = params.filters.without_location() if geospatial else params.filters
        predicate = self.build_predicate(params, filters)
        order = self.filter_builder.order_for(filters)

        lost_rows, found_rows = await self._scan_categories(predicate, order)

        failed = []
        if found_rows is None:
            failed.append(RecordCategory.FOUND.value)
            found_rows = []

        lost = self._post_filter(RecordCategory.LOST, lost_rows, params, geospatial)
        found = self._post_filter(RecordCategory.FOUND, found_rows, params, geospatial)
        return self._merge(lost + found, geospatial), failed

    async def _scan_categories(
        self,
        predicate: Predicate,
        order: Ordering
    ) -> Tuple[List[PhoneRecord], Optional[List[PhoneRecord]]]:
        """
        Scan both categories concurrently.

        A failed lost scan fails the search; a failed found scan is logged
        and reported as None so the search degrades to lost-only results.
        """
        limit = self.settings.scan_limit
        lost, found = await asyncio.gather(
            self.store.scan(RecordCategory.LOST, predicate, order, limit),
            self.store.scan(RecordCategory.FOUND, predicate, order, limit),
            return_exceptions=True,
        )

        for outcome in (lost, found):
            if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
                raise outcome

        if isinstance(lost, Exception):
            logger.error(f"Lost report scan failed: {lost}")
            raise StoreError(f"Failed to scan lost reports: {lost}", category="lost") from lost

        if isinstance(found, Exception):
            logger.error(f"Found report scan failed, returning lost reports only: {found}")
            return lost, None

        return lost, found

    def build_predicate(self, params: SearchRequest, filters: FilterSet) -> Predicate:
        """
        AND together the text, geographic and advanced filter conditions.

        With coordinates the bounding box replaces the plain location
        filters, so ``filters`` is expected to have them stripped already.
        """
        conditions: List[Predicate] = []

        if params.has_coordinates:
            box = bounding_box(params.lat, params.lon, params.radius_km)
            conditions.append(Between(RecordField.LATITUDE, box.min_lat, box.max_lat))
            conditions.append(Between(RecordField.LONGITUDE, box.min_lon, box.max_lon))

        conditions.append(self._text_predicate(params))
        conditions.append(self.filter_builder.build_predicate(filters))
        return all_of(conditions)

    def _text_predicate(self, params: SearchRequest) -> Predicate:
        query = params.query
        if not query:
            return MatchAll()

        search_type = params.search_type
        if search_type is SearchType.PHONE:
            if params.fuzzy:
                return AnyOf(IsPresent(f) for f in PHONE_FIELDS)
            return AnyOf(Contains(f, query) for f in PHONE_FIELDS)

        if search_type is SearchType.IMEI:
            if params.fuzzy:
                return IsPresent(RecordField.IMEI)
            return Contains(RecordField.IMEI, query)

        if search_type is SearchType.EMAIL:
            return Contains(RecordField.EMAIL, query)

        if params.fuzzy or params.phonetic:
            return AnyOf(IsPresent(f) for f in GENERAL_FIELDS)
        return AnyOf(Contains(f, query) for f in GENERAL_FIELDS)

    def _post_filter(
        self,
        category: RecordCategory,
        records: Sequence[PhoneRecord],
        params: SearchRequest,
        geospatial: bool
    ) -> List[SearchResult]:
        """Apply fuzzy, phonetic and proximity filters to one category's rows."""
        scored: List[Scored] = [(record, None, None) for record in records]
        query = params.query
        search_type = params.search_type

        if params.fuzzy and query:
            if search_type is SearchType.PHONE:
                scored = self._score_identifiers(records, IdentifierKind.PHONE, PHONE_FIELDS, query, params.threshold)
            elif search_type is SearchType.IMEI:
                scored = self._score_identifiers(records, IdentifierKind.IMEI, (RecordField.IMEI,), query, params.threshold)
            elif search_type is SearchType.GENERAL:
                ranked = multi_field_rank(
                    records, query, [f.value for f in GENERAL_FIELDS], params.threshold
                )
                scored = [
                    (record, score, RecordField(name) if name else None)
                    for record, score, name in ranked
                ]

        if params.phonetic and query and search_type is SearchType.GENERAL:
            scored = [item for item in scored if self._phonetic_hit(item[0], query)]

        distances: Dict[int, float] = {}
        if geospatial:
            nearby = filter_by_proximity(
                [record for record, _, _ in scored], params.lat, params.lon, params.radius_km
            )
            distances = {id(record): distance for record, distance in nearby}
            scored = [item for item in scored if id(item[0]) in distances]

        columns = CategoryFields.for_category(category)
        return [
            SearchResult(
                record=record,
                source=category,
                similarity_score=score,
                matched_field=columns.column(matched) if matched else None,
                distance_km=distances.get(id(record)),
            )
            for record, score, matched in scored
        ]

    def _score_identifiers(
        self,
        records: Sequence[PhoneRecord],
        kind: IdentifierKind,
        fields: Sequence[RecordField],
        query: str,
        threshold: float
    ) -> List[Scored]:
        """Keep records whose best identifier score reaches the threshold."""
        kept = []
        for record in records:
            best_score = 0.0
            best_field = None
            for record_field in fields:
                score = identifier_score(kind, query, record.value_of(record_field))
                if score > best_score:
                    best_score, best_field = score, record_field
            if best_field is not None and best_score >= threshold:
                kept.append((record, best_score, best_field))
        return kept

    def _phonetic_hit(self, record: PhoneRecord, query: str) -> bool:
        for record_field in PHONETIC_FIELDS:
            for word in self.text_processor.split_words(record.value_of(record_field)):
                if phonetic_match(query, word):
                    return True
        return False

    @staticmethod
    def _merge(results: List[SearchResult], geospatial: bool) -> List[SearchResult]:
        """Nearest first for geospatial searches, otherwise newest first."""
        if geospatial:
            return sorted(results, key=lambda r: r.distance_km)
        return sorted(results, key=lambda r: r.record.created_at, reverse=True)

    def _search_info(self, params: SearchRequest, geospatial: bool, total: int) -> Dict[str, Any]:
        return {
            'query': params.query,
            'type': params.search_type.value,
            'fuzzy_enabled': params.fuzzy,
            'phonetic_enabled': params.phonetic,
            'geospatial_enabled': geospatial,
            'threshold': params.threshold,
            'radius_km': params.radius_km if geospatial else None,
            'center_coordinates': {'lat': params.lat, 'lon': params.lon} if geospatial else None,
            'total_results': total,
        }

    def _emit_analytics(self, event: SearchEvent) -> None:
        """Record the event in the background; never blocks the response."""
        task = asyncio.create_task(self._record_event(event))
        self._pending_analytics.add(task)
        task.add_done_callback(self._pending_analytics.discard)

    async def _record_event(self, event: SearchEvent) -> None:
        try:
            await self.analytics.record(event)
        except Exception as e:
            logger.warning(f"Failed to record search analytics: {str(e)}")

    async def drain_analytics(self) -> None:
        """Wait for analytics events still being recorded."""
        if self._pending_analytics:
            await asyncio.gather(*list(self._pending_analytics))

    def clear_cache(self, pattern: Optional[str] = None) -> int:
        return self.cache.clear(pattern)

    def _update_search_stats(self, search_time: float) -> None:
        """Update search performance statistics."""
        self._stats['total_searches'] += 1

        total_searches = self._stats['total_searches']
        current_avg = self._stats['avg_search_time']
        self._stats['avg_search_time'] = (
            (current_avg * (total_searches - 1) + search_time) / total_searches
        )

    def get_stats(self) -> Dict[str, Any]:
        """Get engine statistics."""
        return {
            **self._stats,
            'cache': self.cache.stats(),
            'pending_analytics': len(self._pending_analytics),
            'default_threshold': self.settings.default_threshold,
            'default_radius_km': self.settings.default_radius_km
        }

    async def health_check(self) -> Dict[str, Any]:
        """Perform health check of the search engine."""
        loop = asyncio.get_running_loop()
        try:
            counts = {
                category.value: await self.store.count(category)
                for category in RecordCategory
            }

            return {
                'status': 'healthy',
                'record_counts': counts,
                'stats': self.get_stats(),
                'timestamp': loop.time()
            }

        except Exception as e:
            logger.error(f"Health check failed: {str(e)}")
            return {
                'status': 'unhealthy',
                'error': str(e),
                'timestamp': loop.time()
            }

    async def close(self) -> None:
        """Flush analytics and release the store."""
        await self.drain_analytics()
        await self.analytics.close()
        await self.store.close()
        logger.info("Phone search engine closed")
