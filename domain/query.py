"""
Domain: query inputs and results.

Filter values are a tagged variant built explicitly by the boundary layer:

    FilterValue = DiscreteSet | Range | Scalar

The core dispatches on the variant type and never guesses a filter's meaning
from the shape of client JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from .fields import SaleField
from .sale import SaleRecord


@dataclass(frozen=True, slots=True)
class DiscreteSet:
    """Multi-select: field value is a member of `values` (array fields: shares an element)."""

    values: Tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(self.values))


@dataclass(frozen=True, slots=True)
class Range:
    """Inclusive bounds; either side may be open."""

    lower: Any = None
    upper: Any = None

    @property
    def is_unbounded(self) -> bool:
        return self.lower is None and self.upper is None


@dataclass(frozen=True, slots=True)
class Scalar:
    """Exact match."""

    value: Any


FilterValue = Union[DiscreteSet, Range, Scalar]


class QueryFilterMap(Mapping[SaleField, Optional[FilterValue]]):
    """
    Immutable mapping of field -> filter value.

    Built wholesale and passed by value; `with_filter` and `without` return new
    maps. A None value means "no filter on this field".
    """

    __slots__ = ("_entries",)

    def __init__(
        self,
        entries: Union[Mapping[SaleField, Optional[FilterValue]], Iterable[Tuple[SaleField, Optional[FilterValue]]], None] = None,
    ) -> None:
        self._entries: dict[SaleField, Optional[FilterValue]] = dict(entries or {})

    def __getitem__(self, key: SaleField) -> Optional[FilterValue]:
        return self._entries[key]

    def __iter__(self) -> Iterator[SaleField]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"QueryFilterMap({self._entries!r})"

    def with_filter(self, key: SaleField, value: Optional[FilterValue]) -> "QueryFilterMap":
        entries = dict(self._entries)
        entries[key] = value
        return QueryFilterMap(entries)

    def without(self, key: SaleField) -> "QueryFilterMap":
        return QueryFilterMap((k, v) for k, v in self._entries.items() if k is not key)


DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10


@dataclass(frozen=True, slots=True)
class QuerySpec:
    search_text: Optional[str] = None
    filters: QueryFilterMap = field(default_factory=QueryFilterMap)
    sort_field: Optional[SaleField] = None
    sort_descending: bool = False
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")


class Operator(str, Enum):
    EQ = "eq"
    IN = "in"
    OVERLAPS = "ov"
    GTE = "gte"
    LTE = "lte"


@dataclass(frozen=True, slots=True)
class Condition:
    field: SaleField
    operator: Operator
    value: Any


@dataclass(frozen=True, slots=True)
class Predicate:
    """
    Store-evaluable condition.

    `search_text` (when set) is a case-insensitive substring match on any of
    SEARCH_FIELDS; it is ANDed with every entry of `conditions`.
    """

    search_text: Optional[str] = None
    conditions: Tuple[Condition, ...] = ()

    @property
    def is_match_all(self) -> bool:
        return self.search_text is None and not self.conditions


@dataclass(frozen=True, slots=True)
class SortOrder:
    field: SaleField
    descending: bool = False


@dataclass(frozen=True, slots=True)
class PaginationMeta:
    total_docs: int
    total_pages: int
    current_page: int
    limit: int
    has_next_page: bool
    has_prev_page: bool


@dataclass(frozen=True, slots=True)
class SalesPage:
    records: List[SaleRecord]
    pagination: PaginationMeta


@dataclass(frozen=True, slots=True)
class SummaryTotals:
    total_units: int
    total_amount: Decimal
    total_discount: Decimal
    total_records: int

    @staticmethod
    def zero() -> "SummaryTotals":
        return SummaryTotals(
            total_units=0,
            total_amount=Decimal("0"),
            total_discount=Decimal("0"),
            total_records=0,
        )


__all__ = [
    "DiscreteSet",
    "Range",
    "Scalar",
    "FilterValue",
    "QueryFilterMap",
    "QuerySpec",
    "DEFAULT_PAGE",
    "DEFAULT_PAGE_SIZE",
    "Operator",
    "Condition",
    "Predicate",
    "SortOrder",
    "PaginationMeta",
    "SalesPage",
    "SummaryTotals",
]
