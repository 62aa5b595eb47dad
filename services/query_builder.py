"""
Query builder: search text + filter map -> Predicate.

Both the paged listing and the summary aggregation build their predicate
here, so the two paths always select the same records before sorting,
pagination or grouping are applied.

Rules:
- Non-blank search text matches customer name OR phone number, case-insensitively.
- DiscreteSet -> IN (OVERLAPS for array fields); empty sets are ignored.
- Range -> GTE and/or LTE; a range with no bounds is ignored.
- Scalar -> EQ.
- None -> ignored. An ignored entry never means "match nothing".
- Conditions are emitted in a canonical order so equal inputs give equal
  predicates regardless of map insertion order.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from domain.fields import SaleField
from domain.query import (
    Condition,
    DiscreteSet,
    FilterValue,
    Operator,
    Predicate,
    Range,
    Scalar,
)

logger = logging.getLogger(__name__)


def _canonical_values(values: tuple[Any, ...]) -> tuple[Any, ...]:
    unique = list(dict.fromkeys(values))
    return tuple(sorted(unique, key=lambda v: (type(v).__name__, str(v))))


def _conditions_for(field: SaleField, value: Optional[FilterValue]) -> List[Condition]:
    if value is None:
        return []

    if isinstance(value, DiscreteSet):
        if not value.values:
            return []
        operator = Operator.OVERLAPS if field.is_array else Operator.IN
        return [Condition(field, operator, _canonical_values(value.values))]

    if isinstance(value, Range):
        conditions = []
        if value.lower is not None:
            conditions.append(Condition(field, Operator.GTE, value.lower))
        if value.upper is not None:
            conditions.append(Condition(field, Operator.LTE, value.upper))
        return conditions

    if isinstance(value, Scalar):
        if value.value is None:
            return []
        return [Condition(field, Operator.EQ, value.value)]

    raise TypeError(f"Unsupported filter value for {field.value}: {type(value)!r}")


def build_predicate(
    search_text: Optional[str],
    filters: Optional[Mapping[SaleField, Optional[FilterValue]]],
) -> Predicate:
    """
    Translate search text and filters into a single Predicate.

    Pure: performs no I/O and does not mutate `filters`.

    Raises:
        InvalidFilterSyntax: a key is not a known field path
    """

    search = search_text.strip() if search_text else ""

    resolved = {SaleField.from_path(key): value for key, value in (filters or {}).items()}

    conditions: List[Condition] = []
    for field in sorted(resolved, key=lambda f: f.value):
        conditions.extend(_conditions_for(field, resolved[field]))

    predicate = Predicate(search_text=search or None, conditions=tuple(conditions))
    logger.debug(
        "Built predicate: search=%r conditions=%d match_all=%s",
        predicate.search_text,
        len(predicate.conditions),
        predicate.is_match_all,
    )
    return predicate


__all__ = ["build_predicate"]
