"""Advanced filter validation, predicate construction and ordering."""

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..models.query import FilterSet
from ..models.record import RecordField, RecordStatus
from .predicates import (
    AnyOf,
    AtLeast,
    AtMost,
    Contains,
    NEWEST_FIRST,
    OneOf,
    Ordering,
    Predicate,
    SortKey,
    all_of,
)

logger = logging.getLogger(__name__)

STATUSES = tuple(status.value for status in RecordStatus)
DEVICE_TYPES = ("smartphone", "tablet", "laptop", "smartwatch", "earbuds", "other")
BRANDS = (
    "apple", "samsung", "huawei", "xiaomi", "oppo", "vivo",
    "oneplus", "google", "sony", "lg", "other",
)
TIME_RANGES = {
    "today": 0,
    "yesterday": 1,
    "last_week": 7,
    "last_month": 30,
    "last_3_months": 90,
    "last_6_months": 180,
    "last_year": 365,
}

LOCATION_FIRST: Ordering = (
    SortKey(RecordField.COUNTRY),
    SortKey(RecordField.REGION),
    SortKey(RecordField.CITY),
    SortKey(RecordField.CREATED_AT, descending=True),
)


def _naive_local(moment: datetime) -> datetime:
    """Aware moments become naive local time, comparable with the clock."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)


def parse_date(value: Any) -> Tuple[Optional[datetime], bool]:
    """
    Parse a date filter bound.

    Returns:
        ``(moment, date_only)``; ``date_only`` is True when no time of day
        was given. Raises ValueError for unparsable input.
    """
    if value is None or value == "":
        return None, False
    if isinstance(value, datetime):
        return _naive_local(value), False
    if isinstance(value, date):
        return datetime.combine(value, time.min), True
    text = str(value).strip()
    parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    return _naive_local(parsed), len(text) <= 10


def _whitelisted(values: Sequence[str], allowed: Sequence[str]) -> List[str]:
    return [value.lower() for value in values if value and value.lower() in allowed]


def honoured_filters(filters: FilterSet) -> Dict[str, Any]:
    """
    Active filters that actually constrain a scan.

    An unknown window name and list filters with no recognised value are
    ignored by the predicate, so they are left out here too.
    """
    active = filters.active()
    if "time_range" in active and active["time_range"].lower() not in TIME_RANGES:
        del active["time_range"]
    for name, allowed in (("statuses", STATUSES), ("device_types", DEVICE_TYPES), ("brands", BRANDS)):
        if name in active and not _whitelisted(active[name], allowed):
            del active[name]
    return active


class FilterBuilder:
    """
    Translates a ``FilterSet`` into a row predicate and an ordering.

    Status, device type and brand filters only honor whitelisted values;
    when every supplied value is unknown that dimension matches everything.
    """

    def __init__(self, clock):
        self.clock = clock

    def validate(self, filters: FilterSet) -> List[str]:
        """
        Check filter parameters before any query executes.

        Returns:
            Human readable violations, empty when the filters are valid
        """
        errors = []
        date_from = date_to = None

        try:
            date_from, _ = parse_date(filters.date_from)
        except ValueError:
            errors.append(f"Invalid date from: {filters.date_from}")
        try:
            date_to, _ = parse_date(filters.date_to)
        except ValueError:
            errors.append(f"Invalid date to: {filters.date_to}")

        if date_from and date_to and date_from > date_to:
            errors.append("Date from cannot be later than date to")
        if date_from and date_from > self.clock.now():
            errors.append("Date from cannot be in the future")

        invalid_statuses = [
            status for status in filters.statuses
            if status.lower() not in STATUSES
        ]
        if invalid_statuses:
            errors.append(f"Invalid status values: {', '.join(invalid_statuses)}")

        return errors

    def date_window(self, filters: FilterSet) -> Tuple[Optional[datetime], Optional[datetime]]:
        """Resolve the creation-time window; a named window wins over explicit dates."""
        if filters.time_range and filters.time_range in TIME_RANGES:
            days = TIME_RANGES[filters.time_range]
            cutoff = datetime.combine((self.clock.now() - timedelta(days=days)).date(), time.min)
            return cutoff, None

        start, _ = parse_date(filters.date_from)
        end, end_date_only = parse_date(filters.date_to)
        if end is not None and end_date_only:
            end = datetime.combine(end.date(), time.max)
        return start, end

    def build_predicate(self, filters: FilterSet) -> Predicate:
        """AND together every active filter dimension."""
        conditions: List[Predicate] = []

        start, end = self.date_window(filters)
        if start is not None:
            conditions.append(AtLeast(RecordField.CREATED_AT, start))
        if end is not None:
            conditions.append(AtMost(RecordField.CREATED_AT, end))

        statuses = _whitelisted(filters.statuses, STATUSES)
        if statuses:
            conditions.append(OneOf(RecordField.STATUS, tuple(statuses)))

        device_types = _whitelisted(filters.device_types, DEVICE_TYPES)
        if device_types:
            conditions.append(AnyOf(Contains(RecordField.DEVICE_TYPE, t) for t in device_types))

        brands = _whitelisted(filters.brands, BRANDS)
        if brands:
            conditions.append(AnyOf(Contains(RecordField.BRAND, b) for b in brands))

        conditions.append(self.location_predicate(filters))

        if filters.imei:
            conditions.append(Contains(RecordField.IMEI, filters.imei.strip()))
        if filters.phone_number:
            conditions.append(Contains(RecordField.PHONE_NUMBER, filters.phone_number.strip()))

        predicate = all_of(conditions)
        logger.debug(f"Built filter predicate: {predicate!r}")
        return predicate

    def location_predicate(self, filters: FilterSet) -> Predicate:
        """Partial, case-insensitive country/region/city match, ANDed."""
        wanted = (
            (RecordField.COUNTRY, filters.country),
            (RecordField.REGION, filters.region),
            (RecordField.CITY, filters.city),
        )
        return all_of(
            Contains(record_field, value.strip())
            for record_field, value in wanted
            if value and value.strip()
        )

    def order_for(self, filters: FilterSet, default: Ordering = NEWEST_FIRST) -> Ordering:
        """Pick the scan ordering for a filter set."""
        if filters.has_date:
            return NEWEST_FIRST
        if filters.has_location:
            return LOCATION_FIRST
        return default

    def filter_summary(self, filters: FilterSet) -> Dict[str, Any]:
        """Describe active filters for analytics; never affects the query."""
        active = filters.active()
        count = len(active)
        if count > 5:
            complexity = "complex"
        elif count > 2:
            complexity = "moderate"
        else:
            complexity = "simple"
        return {
            "active_filter_count": count,
            "filter_names": list(active),
            "complexity": complexity,
        }

    @staticmethod
    def filter_options() -> Dict[str, List[str]]:
        """Accepted filter values, for building filter pickers."""
        return {
            "status": list(STATUSES),
            "device_type": list(DEVICE_TYPES),
            "brand": list(BRANDS),
            "time_range": list(TIME_RANGES),
        }
