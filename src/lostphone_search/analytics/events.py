"""Search analytics event and sink interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional
from dataclasses import dataclass, field


@dataclass
class SearchEvent:
    """
    One executed search, as reported to analytics.

    Attributes:
        query_text: Normalized query text
        search_type: Search type value
        filters: Active advanced filters
        result_count: Total merged results (before pagination)
        response_time_ms: Wall-clock time of the search
        cache_hit: Whether results came from the cache
        caller_ip: Caller address, if known
        user_agent: Caller user agent, if known
        timestamp: When the search completed
    """
    query_text: str
    search_type: str
    filters: Dict[str, Any] = field(default_factory=dict)
    result_count: int = 0
    response_time_ms: float = 0.0
    cache_hit: bool = False
    caller_ip: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def successful(self) -> bool:
        return self.result_count > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query_text": self.query_text,
            "search_type": self.search_type,
            "filters": dict(self.filters),
            "result_count": self.result_count,
            "response_time_ms": self.response_time_ms,
            "cache_hit": self.cache_hit,
            "caller_ip": self.caller_ip,
            "user_agent": self.user_agent,
            "timestamp": self.timestamp.isoformat(),
        }


class AnalyticsSink(ABC):
    """Receives search events; delivery is best effort."""

    @abstractmethod
    async def record(self, event: SearchEvent) -> None:
        """Record one search event."""

    async def close(self) -> None:
        """Flush and release resources."""


class NullAnalyticsSink(AnalyticsSink):
    """Sink that discards every event."""

    async def record(self, event: SearchEvent) -> None:
        return None
