"""In-process search analytics: popular terms, daily metrics and suggestions."""

import logging
from collections import OrderedDict
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Set
from dataclasses import dataclass, field

from ..utils.clock import SystemClock
from .events import AnalyticsSink, SearchEvent

logger = logging.getLogger(__name__)

# Rarely used terms idle for this long are pruned by clean_old_data
UNPOPULAR_TERM_DAYS = 90


@dataclass
class PopularTerm:
    """Running statistics for one normalized search term."""
    term: str
    frequency: int = 0
    average_results: float = 0.0
    success_rate: float = 0.0
    last_searched: Optional[datetime] = None

    def add(self, event: SearchEvent) -> None:
        total = self.frequency + 1
        self.average_results = (self.average_results * self.frequency + event.result_count) / total
        self.success_rate = (self.success_rate * self.frequency + float(event.successful)) / total
        self.frequency = total
        self.last_searched = event.timestamp

    def to_dict(self) -> Dict[str, Any]:
        return {
            "search_term": self.term,
            "frequency": self.frequency,
            "avg_results": round(self.average_results),
            "success_rate": self.success_rate,
            "last_searched": self.last_searched.isoformat() if self.last_searched else None,
        }


@dataclass
class DailyMetrics:
    """Aggregated search performance for one calendar day."""
    day: date
    total_searches: int = 0
    average_response_time: float = 0.0
    cache_hit_rate: float = 0.0
    successful_searches: int = 0
    failed_searches: int = 0
    callers: Set[str] = field(default_factory=set)

    def add(self, event: SearchEvent) -> None:
        total = self.total_searches + 1
        self.average_response_time = (
            self.average_response_time * self.total_searches + event.response_time_ms
        ) / total
        self.cache_hit_rate = (self.cache_hit_rate * self.total_searches + float(event.cache_hit)) / total
        self.total_searches = total
        if event.successful:
            self.successful_searches += 1
        else:
            self.failed_searches += 1
        self.callers.add(event.caller_ip or "unknown")

    @property
    def success_rate(self) -> float:
        if not self.total_searches:
            return 0.0
        return self.successful_searches / self.total_searches

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.day.isoformat(),
            "total_searches": self.total_searches,
            "avg_response_time": self.average_response_time,
            "cache_hit_rate": self.cache_hit_rate,
            "successful_searches": self.successful_searches,
            "failed_searches": self.failed_searches,
            "unique_users": len(self.callers),
        }


class InMemorySearchAnalytics(AnalyticsSink):
    """
    Analytics sink keeping events and aggregates in memory.

    Tracks every event, running statistics per normalized query term and
    per-day performance metrics, and answers popularity and suggestion
    queries from them.
    """

    def __init__(self, clock=None):
        self.clock = clock or SystemClock()
        self.events: List[SearchEvent] = []
        self._terms: Dict[str, PopularTerm] = {}
        self._daily: "OrderedDict[date, DailyMetrics]" = OrderedDict()

    async def record(self, event: SearchEvent) -> None:
        self.events.append(event)

        term = (event.query_text or "").strip().lower()
        if term:
            self._terms.setdefault(term, PopularTerm(term)).add(event)

        day = event.timestamp.date()
        if day not in self._daily:
            self._daily[day] = DailyMetrics(day)
        self._daily[day].add(event)

        logger.debug(f"Tracked search '{term}' with {event.result_count} results")

    def popular_searches(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Most frequent terms, most recently searched first among ties."""
        terms = sorted(
            self._terms.values(),
            key=lambda t: (t.frequency, t.last_searched or datetime.min),
            reverse=True,
        )
        return [term.to_dict() for term in terms[:limit]]

    def performance_metrics(self, days: int = 30) -> List[Dict[str, Any]]:
        """Daily metrics for the last ``days`` days, newest first."""
        cutoff = (self.clock.now() - timedelta(days=days)).date()
        selected = [m for day, m in self._daily.items() if day >= cutoff]
        selected.sort(key=lambda m: m.day, reverse=True)
        return [metrics.to_dict() for metrics in selected]

    def suggestions(self, partial_query: str, limit: int = 5) -> List[str]:
        """Previously searched terms containing ``partial_query``, searched more than once."""
        needle = (partial_query or "").strip().lower()
        if not needle:
            return []
        candidates = [
            term for term in self._terms.values()
            if needle in term.term and term.frequency > 1
        ]
        candidates.sort(key=lambda t: (t.frequency, t.last_searched or datetime.min), reverse=True)
        return [term.term for term in candidates[:limit]]

    def search_trends(self) -> Dict[str, Any]:
        """Weekly term counts, success rate by search type and filter usage."""
        now = self.clock.now()
        week_ago = now - timedelta(days=7)
        month_ago = now - timedelta(days=30)

        weekly: Dict[str, int] = {}
        by_type: Dict[str, List[float]] = {}
        filter_usage: Dict[str, List[float]] = {"No Filters": [], "With Filters": []}
        for event in self.events:
            if event.timestamp >= week_ago:
                weekly[event.query_text] = weekly.get(event.query_text, 0) + 1
            if event.timestamp >= month_ago:
                by_type.setdefault(event.search_type, []).append(float(event.successful))
                bucket = "With Filters" if event.filters else "No Filters"
                filter_usage[bucket].append(float(event.successful))

        return {
            "weekly_trends": [
                {"query_text": query, "frequency": count}
                for query, count in sorted(weekly.items(), key=lambda kv: kv[1], reverse=True)[:10]
            ],
            "success_by_type": [
                {
                    "search_type": search_type,
                    "avg_success_rate": sum(rates) / len(rates),
                    "total_searches": len(rates),
                }
                for search_type, rates in by_type.items()
            ],
            "filter_usage": [
                {
                    "filter_type": bucket,
                    "usage_count": len(rates),
                    "avg_success_rate": sum(rates) / len(rates),
                }
                for bucket, rates in filter_usage.items()
                if rates
            ],
        }

    def clean_old_data(self, days_to_keep: int = 365) -> Dict[str, int]:
        """
        Prune events and daily metrics older than ``days_to_keep`` days.

        Terms searched only once and idle for 90 days are pruned too.

        Returns:
            Number of removed events, days and terms
        """
        now = self.clock.now()
        cutoff = (now - timedelta(days=days_to_keep)).date()
        idle_cutoff = now - timedelta(days=UNPOPULAR_TERM_DAYS)

        kept_events = [e for e in self.events if e.timestamp.date() >= cutoff]
        removed_events = len(self.events) - len(kept_events)
        self.events = kept_events

        old_days = [day for day in self._daily if day < cutoff]
        for day in old_days:
            del self._daily[day]

        stale_terms = [
            key for key, term in self._terms.items()
            if term.frequency < 2 and term.last_searched is not None and term.last_searched < idle_cutoff
        ]
        for key in stale_terms:
            del self._terms[key]

        logger.info(
            f"Cleaned {removed_events} events, {len(old_days)} daily metrics "
            f"and {len(stale_terms)} unpopular terms"
        )
        return {"events": removed_events, "days": len(old_days), "terms": len(stale_terms)}

    def generate_report(self) -> Dict[str, Any]:
        """Summary of trends, last 30 days of metrics and popular terms."""
        performance = self.performance_metrics(30)
        popular = self.popular_searches(20)
        days = len(performance)

        def day_success(day: Dict[str, Any]) -> float:
            total = day["successful_searches"] + day["failed_searches"]
            return day["successful_searches"] / total if total else 0.0

        return {
            "generated_at": self.clock.now().isoformat(),
            "trends": self.search_trends(),
            "performance_metrics": performance,
            "popular_searches": popular,
            "summary": {
                "total_searches_30_days": sum(day["total_searches"] for day in performance),
                "avg_response_time": (
                    sum(day["avg_response_time"] for day in performance) / days if days else 0.0
                ),
                "avg_success_rate": (
                    sum(day_success(day) for day in performance) / days if days else 0.0
                ),
                "most_popular_term": popular[0]["search_term"] if popular else "N/A",
            },
        }
