"""SQLite backed record store with the lost_phones/found_phones schema."""

import asyncio
import logging
import sqlite3
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..core.predicates import NEWEST_FIRST, Predicate, SortKey, compile_ordering, sql_value
from ..models.record import CategoryFields, PhoneRecord, RecordCategory, RecordField
from ..utils.validators import validate_records_batch
from .base import RecordStore

logger = logging.getLogger(__name__)

COLUMN_TYPES = {
    RecordField.ID: "INTEGER PRIMARY KEY",
    RecordField.LATITUDE: "REAL",
    RecordField.LONGITUDE: "REAL",
    RecordField.EVENT_DATE: "DATE",
    RecordField.CREATED_AT: "DATETIME DEFAULT CURRENT_TIMESTAMP",
    RecordField.REPORTER_NAME: "TEXT NOT NULL",
    RecordField.STATUS: "TEXT DEFAULT 'lost'",
}

# Columns backing the default orderings and the bounding box range scan
INDEXED_FIELDS = (
    (RecordField.CREATED_AT,),
    (RecordField.STATUS,),
    (RecordField.COUNTRY, RecordField.REGION, RecordField.CITY),
    (RecordField.LATITUDE, RecordField.LONGITUDE),
)


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _parse_date(value: Any) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


class SQLiteRecordStore(RecordStore):
    """
    Record store over a SQLite database.

    Predicates are compiled to parameterized SQL against each category's
    columns. Blocking SQLite calls run on a single worker thread so the
    connection is never used concurrently.
    """

    def __init__(
        self,
        database_path: Union[str, Path] = ":memory:",
        executor: Optional[ThreadPoolExecutor] = None
    ):
        """
        Initialize the SQLite record store.

        Args:
            database_path: SQLite file path, ``":memory:"`` for a private database
            executor: Single worker executor for database calls
        """
        self.database_path = str(database_path)
        self._executor = executor or ThreadPoolExecutor(max_workers=1)
        self._owns_executor = executor is None
        self._connection = sqlite3.connect(self.database_path, check_same_thread=False)
        self._connection.row_factory = sqlite3.Row
        self._create_schema()

    def _create_schema(self) -> None:
        with self._connection:
            for category in RecordCategory:
                columns = CategoryFields.for_category(category)
                definitions = ", ".join(
                    f"{columns.column(record_field)} {COLUMN_TYPES.get(record_field, 'TEXT')}"
                    for record_field in RecordField
                )
                self._connection.execute(
                    f"CREATE TABLE IF NOT EXISTS {columns.table} ({definitions})"
                )
                for index_fields in INDEXED_FIELDS:
                    names = [columns.column(f) for f in index_fields]
                    index_name = f"idx_{columns.table}_{'_'.join(names)}"
                    self._connection.execute(
                        f"CREATE INDEX IF NOT EXISTS {index_name} "
                        f"ON {columns.table}({', '.join(names)})"
                    )

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, func, *args)

    def build_select(
        self,
        category: RecordCategory,
        predicate: Predicate,
        order: Sequence[SortKey] = NEWEST_FIRST,
        limit: Optional[int] = None,
    ) -> Tuple[str, List[Any]]:
        """Compile a scan into SQL and parameters."""
        columns = CategoryFields.for_category(category)
        where, params = predicate.compile(columns)
        sql = f"SELECT * FROM {columns.table} WHERE {where}"
        if order:
            sql += f" ORDER BY {compile_ordering(order, columns)}"
        if limit is not None:
            sql += " LIMIT ?"
            params = params + [int(limit)]
        return sql, params

    def _select(self, sql: str, params: List[Any]) -> List[sqlite3.Row]:
        return self._connection.execute(sql, params).fetchall()

    async def scan(
        self,
        category: RecordCategory,
        predicate: Predicate,
        order: Sequence[SortKey] = NEWEST_FIRST,
        limit: Optional[int] = None,
    ) -> List[PhoneRecord]:
        category = RecordCategory(category)
        sql, params = self.build_select(category, predicate, order, limit)
        logger.debug(f"Scanning {category.value}: {sql} {params}")
        rows = await self._run(self._select, sql, params)
        return [self._to_record(category, row) for row in rows]

    def _to_record(self, category: RecordCategory, row: sqlite3.Row) -> PhoneRecord:
        columns = CategoryFields.for_category(category)
        values: Dict[str, Any] = {
            record_field.value: row[columns.column(record_field)]
            for record_field in RecordField
        }
        values["created_at"] = _parse_datetime(values["created_at"])
        values["event_date"] = _parse_date(values["event_date"])
        return PhoneRecord(category=category, **values)

    def _insert(self, records: Sequence[PhoneRecord]) -> None:
        with self._connection:
            for record in records:
                columns = record.columns
                names = [columns.column(f) for f in RecordField]
                placeholders = ", ".join("?" for _ in names)
                self._connection.execute(
                    f"INSERT INTO {columns.table} ({', '.join(names)}) VALUES ({placeholders})",
                    [sql_value(record.value_of(f)) for f in RecordField],
                )

    async def add_records(self, records: Sequence[PhoneRecord]) -> None:
        validate_records_batch(list(records))
        await self._run(self._insert, records)
        logger.info(f"Inserted {len(records)} records into {self.database_path}")

    def _count(self, table: str) -> int:
        return self._connection.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]

    async def count(self, category: RecordCategory) -> int:
        return await self._run(self._count, CategoryFields.for_category(category).table)

    async def close(self) -> None:
        await self._run(self._connection.close)
        if self._owns_executor:
            self._executor.shutdown(wait=True)
        logger.info("SQLite record store closed")
