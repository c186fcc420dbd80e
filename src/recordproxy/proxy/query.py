"""
Sort → filter → paginate for flat reads.

Operates on materialized records so sorters and filters can use the
Record API. The whole set is sorted before any filtering or paging, then
scanned from ``start`` until ``limit`` matches are kept.

Examples:
    >>> page = run_query(records, sorters=[Sorter("name")], filters=[Filter("done", False)],
    ...                  start=0, limit=25)
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from recordproxy.data.model import Record
from recordproxy.data.operation import Filter, Sorter, sort_key


def sort_records(records: Iterable[Record], sorters: Sequence[Sorter]) -> list[Record]:
    """Stable multi-key sort of the full set."""
    if not sorters:
        return list(records)
    return sorted(records, key=sort_key(sorters))


def passes_filters(record: Record, filters: Sequence[Filter]) -> bool:
    """True when every filter approves ``record``.

    Every filter is evaluated, in order, even after one has rejected the
    record; filters may have side effects the caller relies on.
    """
    valid = True
    for f in filters:
        valid = f.filter(record) and valid
    return valid


def run_query(
    records: Iterable[Record],
    *,
    sorters: Sequence[Sorter] = (),
    filters: Sequence[Filter] = (),
    start: int = 0,
    limit: int | None = None,
) -> list[Record]:
    """Sort everything, then keep filtered records from ``start`` up to ``limit``.

    A ``limit`` of ``0`` or ``None`` scans to the end of the set.
    """
    ordered = sort_records(records, sorters)
    kept: list[Record] = []

    for record in ordered[start or 0:]:
        if passes_filters(record, filters):
            kept.append(record)
            if limit and len(kept) == limit:
                break

    return kept


__all__ = ["passes_filters", "run_query", "sort_records"]
