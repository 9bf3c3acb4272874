"""Input validation utilities."""

from datetime import datetime
from typing import List, Set, Tuple

from ..models.record import PhoneRecord, RecordCategory
from ..models.query import SearchRequest, SearchType
from ..core.exceptions import MissingCriteriaError, ValidationError
from ..core.filters import honoured_filters


def validate_record(record: PhoneRecord) -> None:
    """
    Validate a record before it is written to a store.

    Args:
        record: Record to validate

    Raises:
        ValidationError: If record is invalid
    """
    if not isinstance(record, PhoneRecord):
        raise ValidationError("Invalid record type")

    if not isinstance(record.category, RecordCategory):
        raise ValidationError(f"Invalid record category: {record.category}")

    if not isinstance(record.created_at, datetime):
        raise ValidationError("Record created_at must be a datetime object")

    if record.category is RecordCategory.FOUND and not (record.reporter_contact or "").strip():
        raise ValidationError("Finder contact is required for found reports")


def validate_records_batch(records: List[PhoneRecord]) -> None:
    """
    Validate a batch of records.

    Args:
        records: Records to validate

    Raises:
        ValidationError: If any record is invalid or an id repeats within a category
    """
    if not records:
        raise ValidationError("Record list cannot be empty")

    seen: Set[Tuple[RecordCategory, int]] = set()
    for record in records:
        validate_record(record)

        key = (record.category, record.id)
        if key in seen:
            raise ValidationError(f"Duplicate {record.category.value} record id: {record.id}")
        seen.add(key)


def validate_request(request: SearchRequest) -> None:
    """
    Check that a request carries at least one usable search criterion.

    Args:
        request: Search request

    Raises:
        ValidationError: If the request object is malformed
        MissingCriteriaError: If no query, location, coordinates or filter is given
    """
    if not isinstance(request, SearchRequest):
        raise ValidationError("Invalid request type")

    if not isinstance(request.search_type, SearchType):
        raise ValidationError(f"Invalid search type: {request.search_type}")

    has_query = bool(request.query.strip())
    if not (has_query or request.has_coordinates or honoured_filters(request.filters)):
        raise MissingCriteriaError(
            "Search query, location filter, coordinates, or advanced filters are required"
        )
