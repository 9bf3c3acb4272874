"""In-process record store."""

import logging
from typing import Dict, List, Optional, Sequence

from ..core.predicates import NEWEST_FIRST, Predicate, SortKey, sort_records
from ..models.record import PhoneRecord, RecordCategory
from ..utils.validators import validate_records_batch
from .base import RecordStore

logger = logging.getLogger(__name__)


class InMemoryRecordStore(RecordStore):
    """Keeps records in lists per category and evaluates predicates directly."""

    def __init__(self, records: Optional[Sequence[PhoneRecord]] = None):
        self._records: Dict[RecordCategory, List[PhoneRecord]] = {
            category: [] for category in RecordCategory
        }
        if records:
            self._insert(records)

    def _insert(self, records: Sequence[PhoneRecord]) -> None:
        validate_records_batch(list(records))
        for record in records:
            self._records[record.category].append(record)

    async def scan(
        self,
        category: RecordCategory,
        predicate: Predicate,
        order: Sequence[SortKey] = NEWEST_FIRST,
        limit: Optional[int] = None,
    ) -> List[PhoneRecord]:
        category = RecordCategory(category)
        matched = [r for r in self._records[category] if predicate.matches(r)]
        matched = sort_records(matched, order)
        if limit is not None:
            matched = matched[:limit]
        logger.debug(f"Scanned {category.value}: {len(matched)} rows")
        return matched

    async def add_records(self, records: Sequence[PhoneRecord]) -> None:
        self._insert(records)
        logger.info(f"Added {len(records)} records")

    async def count(self, category: RecordCategory) -> int:
        return len(self._records[RecordCategory(category)])
