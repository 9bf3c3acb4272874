"""Search analytics collaborators."""

from .events import AnalyticsSink, NullAnalyticsSink, SearchEvent
from .tracker import DailyMetrics, InMemorySearchAnalytics, PopularTerm

__all__ = [
    "AnalyticsSink",
    "NullAnalyticsSink",
    "SearchEvent",
    "InMemorySearchAnalytics",
    "PopularTerm",
    "DailyMetrics",
]
