# hms_billing/services/filter_engine.py
"""
Search / filter / paginate over an in-memory record collection.

One engine instance per record type, configured with extractor functions:

    engine = FilterEngine(
        search_fields=lambda p: (p.first_name, p.last_name, p.email, p.phone),
        filter_field=lambda p: p.gender,
    )
    page = engine.apply(patients, query="smith", selected="female", page_index=1)

Composition order is fixed: discrete-field filter, then date range, then
free-text search, then pagination. Matches keep the input order.
"""
from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Generic, Iterable, List, Optional, Sequence, TypeVar

T = TypeVar("T")

# joins searchable fields so a query never matches across two of them
_FIELD_SEP = "\n"


@dataclass(frozen=True)
class Page(Generic[T]):
    page_items: List[T]
    total_pages: int
    total_items: int
    page_index: int
    page_size: int


def _norm_value(v: Any) -> str:
    if v is None:
        return ""
    if isinstance(v, enum.Enum):
        v = v.value
    return str(v)


def _as_date(v: Any) -> Optional[date]:
    if v is None:
        return None
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    return date.fromisoformat(str(v)[:10])


def paginate(records: Sequence[T], page_index: int, page_size: int) -> Page[T]:
    """1-based pages; out-of-range pages are empty, never an error."""
    if page_size <= 0:
        raise ValueError("page_size must be positive")

    total_items = len(records)
    total_pages = max(1, math.ceil(total_items / page_size))

    if page_index < 1:
        items: List[T] = []
    else:
        start = (page_index - 1) * page_size
        items = list(records[start:start + page_size])

    return Page(
        page_items=items,
        total_pages=total_pages,
        total_items=total_items,
        page_index=page_index,
        page_size=page_size,
    )


class FilterEngine(Generic[T]):

    def __init__(
        self,
        *,
        search_fields: Callable[[T], Iterable[Any]],
        filter_field: Optional[Callable[[T], Any]] = None,
        date_field: Optional[Callable[[T], Any]] = None,
    ):
        self.search_fields = search_fields
        self.filter_field = filter_field
        self.date_field = date_field

    def haystack(self, record: T) -> str:
        return _FIELD_SEP.join(
            _norm_value(v) for v in self.search_fields(record)).casefold()

    def search(self, records: Iterable[T], query: Optional[str]) -> List[T]:
        q = (query or "").casefold()
        if not q:
            return list(records)
        return [r for r in records if q in self.haystack(r)]

    def filter_by_field(self, records: Iterable[T], selected: Any) -> List[T]:
        want = _norm_value(selected)
        if not want or self.filter_field is None:
            return list(records)
        return [r for r in records if _norm_value(self.filter_field(r)) == want]

    def filter_by_date_range(
        self,
        records: Iterable[T],
        date_from: Any = None,
        date_to: Any = None,
    ) -> List[T]:
        lo = _as_date(date_from)
        hi = _as_date(date_to)
        if self.date_field is None or (lo is None and hi is None):
            return list(records)

        out = []
        for r in records:
            d = _as_date(self.date_field(r))
            if d is None:
                continue
            if lo is not None and d < lo:
                continue
            if hi is not None and d > hi:
                continue
            out.append(r)
        return out

    def apply(
        self,
        records: Iterable[T],
        *,
        query: Optional[str] = None,
        selected: Any = None,
        page_index: int = 1,
        page_size: int = 10,
        date_from: Any = None,
        date_to: Any = None,
    ) -> Page[T]:
        matches = self.filter_by_field(records, selected)
        matches = self.filter_by_date_range(matches, date_from, date_to)
        matches = self.search(matches, query)
        return paginate(matches, page_index, page_size)
