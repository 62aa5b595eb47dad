"""
Boundary parsing of listing/summary query parameters.

Client input arrives as strings (`filter` is JSON). Everything here turns it
into validated domain values before any service is called:

- `filter` JSON -> QueryFilterMap of explicit DiscreteSet / Range / Scalar
  values, keyed by known SaleField paths and coerced to each field's kind.
- `sortBy` / `sortOrder` -> (SaleField | None, descending flag).
- `page` / `limit` -> positive ints, falling back to defaults.

Malformed input raises InvalidFilterSyntax / InvalidQueryParameter, so no
store call is made for a bad request.
"""

from __future__ import annotations

import json
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Tuple

from domain.errors import InvalidFilterSyntax, InvalidQueryParameter
from domain.fields import FieldKind, SaleField
from domain.query import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    DiscreteSet,
    FilterValue,
    QueryFilterMap,
    Range,
    Scalar,
)
from domain.time import parse_utc_timestamp

# Range keys accepted from clients; the `$`-prefixed form is what the
# dashboard sends.
_LOWER_KEYS = ("$gte", "gte")
_UPPER_KEYS = ("$lte", "lte")


def _coerce(field: SaleField, value: Any) -> Any:
    """Coerce one JSON value to the kind stored in `field`."""

    kind = field.kind
    bad = InvalidFilterSyntax(f"Invalid value for {field.value}: {value!r}")

    if value is None or isinstance(value, (list, dict)):
        raise bad

    if kind in (FieldKind.TEXT, FieldKind.TEXT_ARRAY):
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise bad
        return str(value)

    if kind is FieldKind.INTEGER:
        if isinstance(value, bool):
            raise bad
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                raise bad from None
        raise bad

    if kind is FieldKind.NUMBER:
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise bad
        try:
            number = Decimal(str(value).strip())
        except InvalidOperation:
            raise bad from None
        if not number.is_finite():
            raise bad
        return number

    if kind is FieldKind.TIMESTAMP:
        if not isinstance(value, str):
            raise bad
        try:
            return parse_utc_timestamp(value)
        except ValueError:
            raise bad from None

    raise bad


def _range_bound(field: SaleField, raw: dict[str, Any], keys: Tuple[str, ...]) -> Any:
    present = [k for k in keys if k in raw and raw[k] is not None]
    if len(present) > 1:
        raise InvalidFilterSyntax(f"Duplicate range bound for {field.value}: {', '.join(present)}")
    return _coerce(field, raw[present[0]]) if present else None


def parse_filter_value(field: SaleField, raw: Any) -> Optional[FilterValue]:
    """
    Build the explicit filter variant for one (field, JSON value) entry.

    - list   -> DiscreteSet (may be empty; the query builder ignores it)
    - object -> Range from `$gte`/`gte` and `$lte`/`lte`; no bounds -> None
    - scalar -> Scalar, or a one-element DiscreteSet for array fields
    - null   -> None
    """

    if raw is None:
        return None

    if isinstance(raw, list):
        return DiscreteSet(tuple(_coerce(field, v) for v in raw))

    if isinstance(raw, dict):
        unknown = set(raw) - set(_LOWER_KEYS) - set(_UPPER_KEYS)
        if unknown:
            raise InvalidFilterSyntax(
                f"Unsupported keys in range filter for {field.value}: {', '.join(sorted(unknown))}"
            )
        if not field.is_orderable:
            raise InvalidFilterSyntax(f"Range filters are not supported on {field.value}")
        bounds = Range(
            lower=_range_bound(field, raw, _LOWER_KEYS),
            upper=_range_bound(field, raw, _UPPER_KEYS),
        )
        return None if bounds.is_unbounded else bounds

    value = _coerce(field, raw)
    if field.is_array:
        return DiscreteSet((value,))
    return Scalar(value)


def parse_filter_param(raw: Optional[str]) -> QueryFilterMap:
    """
    Parse the JSON-encoded `filter` query parameter.

    Raises:
        InvalidFilterSyntax: malformed JSON, a non-object document, an unknown
            field path, or a value of the wrong shape/type
    """

    if raw is None or not raw.strip():
        return QueryFilterMap()

    try:
        document = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidFilterSyntax(f"Invalid JSON format for 'filter' parameter: {exc.msg}") from exc

    if not isinstance(document, dict):
        raise InvalidFilterSyntax("The 'filter' parameter must be a JSON object")

    entries = {}
    for path, value in document.items():
        field = SaleField.from_path(path)
        entries[field] = parse_filter_value(field, value)
    return QueryFilterMap(entries)


def parse_sort(sort_by: Optional[str], sort_order: Optional[str]) -> Tuple[Optional[SaleField], bool]:
    """
    Resolve `sortBy` / `sortOrder`.

    Without `sortBy` the service default applies (newest first) and
    `sortOrder` is ignored. With `sortBy`, an absent `sortOrder` means ascending.
    """

    if not sort_by:
        return None, False

    order = (sort_order or "asc").strip().lower()
    if order not in ("asc", "desc"):
        raise InvalidQueryParameter(f"Invalid sortOrder {sort_order!r}; expected 'asc' or 'desc'")

    try:
        field = SaleField(sort_by)
    except ValueError:
        raise InvalidQueryParameter(f"Unknown sort field: {sort_by!r}") from None
    if not field.is_orderable:
        raise InvalidQueryParameter(f"Cannot sort by array field {sort_by!r}")
    return field, order == "desc"


def parse_positive_int(raw: Optional[str], default: int) -> int:
    """Lenient page/limit parsing: absent, non-integer or < 1 gives `default`."""

    if raw is None:
        return default
    try:
        value = int(str(raw).strip())
    except ValueError:
        return default
    return value if value >= 1 else default


def parse_page(raw: Optional[str]) -> int:
    return parse_positive_int(raw, DEFAULT_PAGE)


def parse_limit(raw: Optional[str]) -> int:
    return parse_positive_int(raw, DEFAULT_PAGE_SIZE)


__all__ = [
    "parse_filter_value",
    "parse_filter_param",
    "parse_sort",
    "parse_positive_int",
    "parse_page",
    "parse_limit",
]
