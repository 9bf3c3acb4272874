"""Data models for lost phone search."""

from .record import PhoneRecord, RecordCategory, RecordStatus, RecordField, CategoryFields
from .query import SearchRequest, SearchRequestModel, SearchType, FilterSet
from .result import SearchResult, SearchResponse, Pagination

__all__ = [
    "PhoneRecord",
    "RecordCategory",
    "RecordStatus",
    "RecordField",
    "CategoryFields",
    "SearchRequest",
    "SearchRequestModel",
    "SearchType",
    "FilterSet",
    "SearchResult",
    "SearchResponse",
    "Pagination",
]
