"""Record store interface consumed by the search engine."""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ..core.predicates import NEWEST_FIRST, Predicate, SortKey
from ..models.record import PhoneRecord, RecordCategory


class RecordStore(ABC):
    """
    Source of lost and found reports.

    Predicates and orderings are expressed in category neutral record
    fields; each store resolves them against the category's own columns.
    """

    @abstractmethod
    async def scan(
        self,
        category: RecordCategory,
        predicate: Predicate,
        order: Sequence[SortKey] = NEWEST_FIRST,
        limit: Optional[int] = None,
    ) -> List[PhoneRecord]:
        """
        Return the category's records matching ``predicate``.

        Args:
            category: Collection to scan
            predicate: Row filter
            order: Sort keys applied before ``limit``
            limit: Maximum rows to return, None for all

        Raises:
            Exception: Store specific failures; the engine wraps them
        """

    @abstractmethod
    async def add_records(self, records: Sequence[PhoneRecord]) -> None:
        """Insert records into their categories."""

    @abstractmethod
    async def count(self, category: RecordCategory) -> int:
        """Number of records in a category."""

    async def close(self) -> None:
        """Release store resources."""
