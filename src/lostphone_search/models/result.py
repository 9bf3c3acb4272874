"""Search result data models."""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

from .record import PhoneRecord, RecordCategory


@dataclass
class SearchResult:
    """
    A matched report annotated with how it matched.

    Attributes:
        record: The matched report
        source: Category the report came from
        similarity_score: Best similarity percentage (0-100), if scored
        matched_field: Column that produced the best score
        distance_km: Distance from the search center, if geospatial
    """
    record: PhoneRecord
    source: RecordCategory
    similarity_score: Optional[float] = None
    matched_field: Optional[str] = None
    distance_km: Optional[float] = None

    def __post_init__(self) -> None:
        """Validate search result."""
        self.source = RecordCategory(self.source)
        if self.similarity_score is not None and not 0.0 <= self.similarity_score <= 100.0:
            raise ValueError("Similarity score must be between 0 and 100")
        if self.distance_km is not None and self.distance_km < 0:
            raise ValueError("Distance cannot be negative")

    def to_dict(self) -> Dict[str, Any]:
        """Flatten into the record's columns plus match annotations."""
        data = self.record.to_dict()
        data["source"] = self.source.source
        if self.similarity_score is not None:
            data["similarity_score"] = round(self.similarity_score, 2)
            data["matched_field"] = self.matched_field
        if self.distance_km is not None:
            data["distance_km"] = self.distance_km
        return data


@dataclass
class Pagination:
    """Page markers for a paginated result list."""
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next: bool
    has_previous: bool
    next_page: Optional[int]
    previous_page: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_page": self.current_page,
            "total_pages": self.total_pages,
            "total_items": self.total_items,
            "items_per_page": self.items_per_page,
            "has_next": self.has_next,
            "has_previous": self.has_previous,
            "next_page": self.next_page,
            "previous_page": self.previous_page,
        }


@dataclass
class SearchResponse:
    """One page of merged results with search metadata."""
    data: List[SearchResult]
    pagination: Pagination
    search_info: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "data": [result.to_dict() for result in self.data],
            "pagination": self.pagination.to_dict(),
            "search_info": self.search_info,
        }
