"""Parameter normalization, result caching, pagination and metrics."""

import json
import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple
from dataclasses import dataclass, replace

from ..models.query import FilterSet, SearchRequest
from ..models.record import valid_coordinates
from ..models.result import Pagination, SearchResult
from ..utils.clock import SystemClock
from ..utils.text_processing import TextProcessor

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 70.0
DEFAULT_RADIUS_KM = 10.0
MIN_RADIUS_KM = 0.1
MAX_RADIUS_KM = 1000.0
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100
DEFAULT_CACHE_TTL_SECONDS = 600

# Bump when changing key construction so old entries are never reused
CACHE_KEY_VERSION = "v1"

_text_processor = TextProcessor()


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _as_number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def validate_pagination(
    page: Any,
    page_size: Any,
    default_page_size: int = DEFAULT_PAGE_SIZE,
    max_page_size: int = MAX_PAGE_SIZE,
) -> Tuple[int, int]:
    """Coerce page to ``>= 1`` and page size to ``[1, max_page_size]``."""
    page_number = _as_number(page)
    size = _as_number(page_size)
    valid_page = max(1, int(page_number)) if page_number is not None else 1
    if size is None or size == 0:
        size = default_page_size
    valid_size = int(_clamp(int(size), 1, max_page_size))
    return valid_page, valid_size


def normalize_params(
    request: SearchRequest,
    default_threshold: float = DEFAULT_THRESHOLD,
    default_radius_km: float = DEFAULT_RADIUS_KM,
    default_page_size: int = DEFAULT_PAGE_SIZE,
    max_page_size: int = MAX_PAGE_SIZE,
) -> SearchRequest:
    """
    Canonical form of a request.

    Free text is trimmed and lowercased, the similarity threshold is clamped
    to [0, 100] and the radius to [0.1, 1000] km with defaults filled in,
    the coordinate pair is dropped unless both halves are valid, and
    filters and pagination are normalized.
    """
    threshold = _as_number(request.threshold)
    threshold = default_threshold if threshold is None else _clamp(threshold, 0.0, 100.0)

    radius = _as_number(request.radius_km)
    radius = default_radius_km if radius is None else _clamp(radius, MIN_RADIUS_KM, MAX_RADIUS_KM)

    lat, lon = request.lat, request.lon
    if valid_coordinates(lat, lon):
        lat, lon = float(lat), float(lon)
    else:
        lat = lon = None

    page, page_size = validate_pagination(
        request.page, request.page_size, default_page_size, max_page_size
    )

    filters = request.filters
    normalized_filters = FilterSet(
        date_from=filters.date_from or None,
        date_to=filters.date_to or None,
        time_range=_text_processor.clean_query(filters.time_range) or None,
        statuses=sorted({s.strip().lower() for s in filters.statuses if s and s.strip()}),
        device_types=sorted({d.strip().lower() for d in filters.device_types if d and d.strip()}),
        brands=sorted({b.strip().lower() for b in filters.brands if b and b.strip()}),
        country=_text_processor.clean_label(filters.country),
        region=_text_processor.clean_label(filters.region),
        city=_text_processor.clean_label(filters.city),
        imei=_text_processor.clean_label(filters.imei),
        phone_number=_text_processor.clean_label(filters.phone_number),
    )

    return replace(
        request,
        query=_text_processor.clean_query(request.query),
        threshold=threshold,
        radius_km=radius,
        lat=lat,
        lon=lon,
        page=page,
        page_size=page_size,
        filters=normalized_filters,
    )


def cache_key(params: SearchRequest) -> str:
    """
    Deterministic cache key for a normalized request.

    Every parameter that changes the merged result set is part of the key,
    so equivalent requests share an entry regardless of how defaults were
    spelled by the caller.
    """
    filters = params.filters

    def label(value: Optional[str]) -> Optional[str]:
        return value.lower() if value else None

    key_payload = {
        "query": params.query or None,
        "type": params.search_type.value,
        "country": label(filters.country),
        "region": label(filters.region),
        "city": label(filters.city),
        "fuzzy": bool(params.fuzzy),
        "phonetic": bool(params.phonetic),
        "threshold": params.threshold,
        "lat": params.lat,
        "lon": params.lon,
        "radius": params.radius_km,
        "page": params.page,
        "limit": params.page_size,
        "date_from": str(filters.date_from) if filters.date_from else None,
        "date_to": str(filters.date_to) if filters.date_to else None,
        "time_range": filters.time_range,
        "status": sorted(s.lower() for s in filters.statuses),
        "device_type": sorted(d.lower() for d in filters.device_types),
        "brand": sorted(b.lower() for b in filters.brands),
        "imei": label(filters.imei),
        "phone_number": label(filters.phone_number),
    }
    raw = json.dumps(key_payload, sort_keys=True, separators=(",", ":"))
    return f"search:{CACHE_KEY_VERSION}:{raw}"


@dataclass
class CacheEntry:
    """Merged, unpaginated results of one search plus its metadata."""
    results: Tuple[SearchResult, ...]
    search_info: Dict[str, Any]
    created_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class SearchCache:
    """
    Process-wide search result cache with per-entry time-to-live.

    Entries are written whole and never updated in place; concurrent
    writers of the same key simply replace each other.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS, clock=None):
        self.ttl_seconds = ttl_seconds
        self.clock = clock or SystemClock()
        self._entries: Dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return a live entry, or None on a miss or expiry."""
        entry = self._entries.get(key)
        if entry is not None and entry.is_expired(self.clock.monotonic()):
            del self._entries[key]
            entry = None

        if entry is None:
            self._misses += 1
            return None

        self._hits += 1
        return entry

    def set(
        self,
        key: str,
        results: Sequence[SearchResult],
        search_info: Dict[str, Any],
        ttl_seconds: Optional[float] = None,
    ) -> CacheEntry:
        """Store a full result set under ``key``, replacing any previous entry."""
        now = self.clock.monotonic()
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        entry = CacheEntry(
            results=tuple(results),
            search_info=dict(search_info),
            created_at=now,
            expires_at=now + ttl,
        )
        self._entries[key] = entry
        return entry

    def clear(self, pattern: Optional[str] = None) -> int:
        """Drop every entry, or those whose key contains ``pattern``."""
        if pattern is None:
            removed = len(self._entries)
            self._entries.clear()
        else:
            matching = [key for key in self._entries if pattern in key]
            for key in matching:
                del self._entries[key]
            removed = len(matching)
        logger.info(f"Cleared {removed} cached searches")
        return removed

    def purge_expired(self) -> int:
        now = self.clock.monotonic()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def stats(self) -> Dict[str, Any]:
        self.purge_expired()
        lookups = self._hits + self._misses
        return {
            "keys": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / lookups if lookups else 0.0,
            "ttl_seconds": self.ttl_seconds,
        }

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class Page:
    """One page of results and its markers."""
    data: List[Any]
    pagination: Pagination


def paginate(
    results: Sequence[Any],
    page: Any = 1,
    page_size: Any = DEFAULT_PAGE_SIZE,
    max_page_size: int = MAX_PAGE_SIZE,
) -> Page:
    """
    Slice one page out of a result list.

    The page size is clamped to [1, max_page_size] and the page to
    [1, total_pages]; an empty list yields page 1 of 0.
    """
    page, page_size = validate_pagination(page, page_size, DEFAULT_PAGE_SIZE, max_page_size)
    total_items = len(results)
    total_pages = math.ceil(total_items / page_size)
    current_page = max(1, min(page, total_pages))
    offset = (current_page - 1) * page_size

    has_next = current_page < total_pages
    has_previous = current_page > 1
    return Page(
        data=list(results[offset:offset + page_size]),
        pagination=Pagination(
            current_page=current_page,
            total_pages=total_pages,
            total_items=total_items,
            items_per_page=page_size,
            has_next=has_next,
            has_previous=has_previous,
            next_page=current_page + 1 if has_next else None,
            previous_page=current_page - 1 if has_previous else None,
        ),
    )


def performance_metrics(
    elapsed_seconds: float,
    result_count: int,
    from_cache: bool,
    timestamp: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Observability block attached to every response."""
    return {
        "execution_time_ms": round(max(0.0, elapsed_seconds) * 1000, 3),
        "result_count": result_count,
        "from_cache": from_cache,
        "timestamp": (timestamp or datetime.now()).isoformat(),
    }
