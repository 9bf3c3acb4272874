"""Structured row predicates and orderings shared by both record categories.

Predicates are built once against category neutral ``RecordField`` names and
are either evaluated directly against ``PhoneRecord`` objects or compiled to
parameterized SQL for a category's table via ``CategoryFields``.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, List, Sequence, Tuple
from dataclasses import dataclass

from ..models.record import CategoryFields, PhoneRecord, RecordField

SqlFragment = Tuple[str, List[Any]]


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        value = value.value
    return str(value)


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so they match literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def sql_value(value: Any) -> Any:
    """Convert a Python value to the representation stored in SQLite."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.isoformat()
    return value


class Predicate:
    """Base class for row predicates."""

    def matches(self, record: PhoneRecord) -> bool:
        raise NotImplementedError

    def compile(self, columns: CategoryFields) -> SqlFragment:
        raise NotImplementedError

    def __and__(self, other: "Predicate") -> "Predicate":
        return AllOf([self, other])

    def __or__(self, other: "Predicate") -> "Predicate":
        return AnyOf([self, other])


class MatchAll(Predicate):
    """Predicate that accepts every row."""

    def matches(self, record: PhoneRecord) -> bool:
        return True

    def compile(self, columns: CategoryFields) -> SqlFragment:
        return "1=1", []

    def __eq__(self, other: object) -> bool:
        return isinstance(other, MatchAll)

    def __hash__(self) -> int:
        return hash("MatchAll")

    def __repr__(self) -> str:
        return "MatchAll()"


@dataclass(frozen=True)
class Contains(Predicate):
    """Case-insensitive partial match, the equivalent of ``LIKE '%value%'``."""
    field: RecordField
    value: str

    def matches(self, record: PhoneRecord) -> bool:
        stored = record.value_of(self.field)
        if stored is None:
            return False
        return self.value.lower() in _text(stored).lower()

    def compile(self, columns: CategoryFields) -> SqlFragment:
        pattern = f"%{escape_like(self.value.lower())}%"
        return f"LOWER({columns.column(self.field)}) LIKE ? ESCAPE '\\'", [pattern]


@dataclass(frozen=True)
class IsPresent(Predicate):
    """Row has a non-empty value for the field."""
    field: RecordField

    def matches(self, record: PhoneRecord) -> bool:
        return _text(record.value_of(self.field)).strip() != ""

    def compile(self, columns: CategoryFields) -> SqlFragment:
        column = columns.column(self.field)
        return f"({column} IS NOT NULL AND {column} != '')", []


@dataclass(frozen=True)
class OneOf(Predicate):
    """Case-insensitive set membership, the equivalent of ``IN (...)``."""
    field: RecordField
    values: Tuple[str, ...]

    def matches(self, record: PhoneRecord) -> bool:
        stored = _text(record.value_of(self.field)).lower()
        return stored in {value.lower() for value in self.values}

    def compile(self, columns: CategoryFields) -> SqlFragment:
        placeholders = ",".join("?" for _ in self.values)
        return (
            f"LOWER({columns.column(self.field)}) IN ({placeholders})",
            [value.lower() for value in self.values],
        )


@dataclass(frozen=True)
class Between(Predicate):
    """Inclusive numeric range."""
    field: RecordField
    low: float
    high: float

    def matches(self, record: PhoneRecord) -> bool:
        stored = record.value_of(self.field)
        if stored is None:
            return False
        return self.low <= stored <= self.high

    def compile(self, columns: CategoryFields) -> SqlFragment:
        return f"{columns.column(self.field)} BETWEEN ? AND ?", [self.low, self.high]


@dataclass(frozen=True)
class AtLeast(Predicate):
    """``field >= value``; rows without a value never match."""
    field: RecordField
    value: Any

    def matches(self, record: PhoneRecord) -> bool:
        stored = record.value_of(self.field)
        return stored is not None and stored >= self.value

    def compile(self, columns: CategoryFields) -> SqlFragment:
        return f"{columns.column(self.field)} >= ?", [sql_value(self.value)]


@dataclass(frozen=True)
class AtMost(Predicate):
    """``field <= value``; rows without a value never match."""
    field: RecordField
    value: Any

    def matches(self, record: PhoneRecord) -> bool:
        stored = record.value_of(self.field)
        return stored is not None and stored <= self.value

    def compile(self, columns: CategoryFields) -> SqlFragment:
        return f"{columns.column(self.field)} <= ?", [sql_value(self.value)]


class _Compound(Predicate):
    joiner = ""

    def __init__(self, predicates: Iterable[Predicate]):
        flat: List[Predicate] = []
        for predicate in predicates:
            if isinstance(predicate, type(self)):
                flat.extend(predicate.predicates)
            else:
                flat.append(predicate)
        self.predicates: Tuple[Predicate, ...] = tuple(flat)

    def compile(self, columns: CategoryFields) -> SqlFragment:
        if not self.predicates:
            return MatchAll().compile(columns)
        parts = []
        params: List[Any] = []
        for predicate in self.predicates:
            sql, predicate_params = predicate.compile(columns)
            parts.append(sql)
            params.extend(predicate_params)
        return "(" + f" {self.joiner} ".join(parts) + ")", params

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self) and other.predicates == self.predicates

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.predicates))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self.predicates)!r})"


class AllOf(_Compound):
    """Logical AND; an empty conjunction matches everything."""
    joiner = "AND"

    def matches(self, record: PhoneRecord) -> bool:
        return all(predicate.matches(record) for predicate in self.predicates)


class AnyOf(_Compound):
    """Logical OR; an empty disjunction matches everything."""
    joiner = "OR"

    def matches(self, record: PhoneRecord) -> bool:
        if not self.predicates:
            return True
        return any(predicate.matches(record) for predicate in self.predicates)


def all_of(predicates: Iterable[Predicate]) -> Predicate:
    """AND together predicates, dropping ``MatchAll`` members."""
    kept = [p for p in predicates if not isinstance(p, MatchAll)]
    if not kept:
        return MatchAll()
    if len(kept) == 1:
        return kept[0]
    return AllOf(kept)


@dataclass(frozen=True)
class SortKey:
    """One ordering term."""
    field: RecordField
    descending: bool = False

    def compile(self, columns: CategoryFields) -> str:
        direction = "DESC" if self.descending else "ASC"
        return f"{columns.column(self.field)} {direction}"


Ordering = Tuple[SortKey, ...]

NEWEST_FIRST: Ordering = (
    SortKey(RecordField.CREATED_AT, descending=True),
    SortKey(RecordField.ID, descending=True),
)


def compile_ordering(ordering: Sequence[SortKey], columns: CategoryFields) -> str:
    return ", ".join(key.compile(columns) for key in ordering)


def sort_records(records: List[PhoneRecord], ordering: Sequence[SortKey]) -> List[PhoneRecord]:
    """Sort records in memory the way ``ORDER BY`` would.

    Missing values sort first ascending and last descending, as in SQLite.
    """
    result = list(records)
    for key in reversed(list(ordering)):
        def sort_value(record: PhoneRecord, field=key.field):
            value = record.value_of(field)
            if value is None:
                return (0,)
            if isinstance(value, Enum):
                value = value.value
            return (1, value)

        result.sort(key=sort_value, reverse=key.descending)
    return result
