"""
Lost Phone Search

Search and ranking over lost and found phone reports: structured filtering,
fuzzy and phonetic re-ranking, geospatial proximity, result caching and
pagination behind a single search operation.
"""

from .core.engine import PhoneSearchEngine
from .api.service import PhoneSearchService
from .config import SearchSettings
from .core.optimizer import SearchCache
from .models.record import PhoneRecord, RecordCategory, RecordStatus
from .models.query import FilterSet, SearchRequest, SearchType
from .models.result import SearchResponse, SearchResult
from .store import InMemoryRecordStore, RecordStore, SQLiteRecordStore
from .analytics import InMemorySearchAnalytics, NullAnalyticsSink, SearchEvent

__version__ = "1.0.0"

__all__ = [
    "PhoneSearchService",
    "PhoneSearchEngine",
    "SearchSettings",
    "SearchCache",
    "PhoneRecord",
    "RecordCategory",
    "RecordStatus",
    "FilterSet",
    "SearchRequest",
    "SearchType",
    "SearchResponse",
    "SearchResult",
    "RecordStore",
    "InMemoryRecordStore",
    "SQLiteRecordStore",
    "InMemorySearchAnalytics",
    "NullAnalyticsSink",
    "SearchEvent",
]
