"""
Operation descriptors exchanged between callers and the proxy.

An :class:`Operation` carries the request (records, id, sorters, filters,
paging, record creator) and receives the outcome (success flag, error,
:class:`ResultSet`). Outcomes are reported on the operation rather than
raised, mirroring ``OperationResult`` envelopes: a read that finds nothing
is a failed operation, not an exception.

Examples:
    >>> op = Operation("read", sorters=[Sorter("query")], limit=10)
    >>> await proxy.read(op)
    >>> op.was_successful(), op.result_set.count, op.result_set.total
    (True, 10, 57)
"""

from __future__ import annotations

import operator as _operator
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Any, Literal

from recordproxy.data.model import Model, Record

RecordCreator = Callable[[dict[str, Any], Model], Record]
Comparator = Callable[[Record, Record], int]


def _type_rank(value: Any) -> int:
    # None first, then numbers, then strings, then anything else.
    if value is None:
        return 0
    if isinstance(value, int | float):
        return 1
    if isinstance(value, str):
        return 2
    return 3


def _compare(a: Any, b: Any) -> int:
    if a == b:
        return 0
    rank_a, rank_b = _type_rank(a), _type_rank(b)
    if rank_a != rank_b:
        return -1 if rank_a < rank_b else 1
    try:
        return -1 if a < b else 1
    except TypeError:
        # Unorderable values of the same kind keep their relative order.
        return 0


@dataclass(frozen=True)
class Sorter:
    """Orders records by one property (or a custom comparator).

    Attributes:
        property: Field to compare.
        direction: ``"ASC"`` or ``"DESC"``.
        sorter_fn: Optional ``(a, b) -> int`` used instead of the property.
    """

    property: str | None = None
    direction: Literal["ASC", "DESC"] = "ASC"
    sorter_fn: Comparator | None = None

    def compare(self, a: Record, b: Record) -> int:
        if self.sorter_fn is not None:
            result = self.sorter_fn(a, b)
        else:
            result = _compare(a.get(self.property), b.get(self.property))
        return -result if self.direction == "DESC" else result


def create_comparator(sorters: Sequence[Sorter]) -> Comparator:
    """Chain sorters: the first non-zero comparison wins."""

    def comparator(a: Record, b: Record) -> int:
        for sorter in sorters:
            result = sorter.compare(a, b)
            if result:
                return result
        return 0

    return comparator


def sort_key(sorters: Sequence[Sorter]) -> Any:
    """Key function for :func:`sorted` built from ``sorters``."""
    return cmp_to_key(create_comparator(sorters))


def _like(value: Any, pattern: Any) -> bool:
    return str(pattern).lower() in str(value).lower()


_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "=": _operator.eq,
    "==": _operator.eq,
    "!=": _operator.ne,
    "<": _operator.lt,
    "<=": _operator.le,
    ">": _operator.gt,
    ">=": _operator.ge,
    "in": lambda value, options: value in options,
    "notin": lambda value, options: value not in options,
    "like": _like,
}


@dataclass(frozen=True)
class Filter:
    """Predicate applied to a record.

    Attributes:
        property: Field to test.
        value: Value compared against.
        operator: One of ``= == != < <= > >= in notin like``.
        filter_fn: Optional ``record -> bool`` used instead of the property test.
    """

    property: str | None = None
    value: Any = None
    operator: str = "="
    filter_fn: Callable[[Record], bool] | None = None

    def __post_init__(self) -> None:
        if self.filter_fn is None and self.operator not in _OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.operator!r}")

    def filter(self, record: Record) -> bool:
        if self.filter_fn is not None:
            return bool(self.filter_fn(record))
        candidate = record.get(self.property)
        try:
            return bool(_OPERATORS[self.operator](candidate, self.value))
        except TypeError:
            # Ordering comparisons against None or mixed types never match.
            return False


@dataclass
class ResultSet:
    """Records returned by a read.

    Attributes:
        records: Returned records.
        count: Number of records returned.
        total: Number of records in the backing collection.
        loaded: Always True once the proxy produced the set.
    """

    records: list[Record]
    count: int
    total: int
    loaded: bool = True


@dataclass(frozen=True)
class OperationError:
    """Failure detail recorded on an operation."""

    code: str
    message: str


@dataclass
class Operation:
    """A create/read/update/destroy request and its outcome."""

    action: Literal["create", "read", "update", "destroy"]
    records: list[Record] = field(default_factory=list)
    id: Any = None
    sorters: list[Sorter] = field(default_factory=list)
    filters: list[Filter] = field(default_factory=list)
    start: int = 0
    limit: int | None = None
    record_creator: RecordCreator | None = None

    result_set: ResultSet | None = None
    error: OperationError | None = None
    _successful: bool = field(default=False, repr=False)
    complete: bool = False

    def set_successful(self, successful: bool = True) -> None:
        self._successful = successful
        self.complete = True

    def set_exception(self, message: str, *, code: str = "ERROR") -> None:
        self.error = OperationError(code=code, message=message)
        self._successful = False
        self.complete = True

    def set_result_set(self, result_set: ResultSet) -> None:
        self.result_set = result_set

    def was_successful(self) -> bool:
        return self._successful

    def has_exception(self) -> bool:
        return self.error is not None


__all__ = [
    "Comparator",
    "Filter",
    "Operation",
    "OperationError",
    "RecordCreator",
    "ResultSet",
    "Sorter",
    "create_comparator",
    "sort_key",
]
