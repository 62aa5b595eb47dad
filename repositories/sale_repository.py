"""
Sale repository (persistence).

This module provides *only* persistence operations for the SaleRecord domain
entity against the Supabase `sales` table. It translates a domain Predicate
into PostgREST filters; it does not decide which filters apply (see
services.query_builder) and does not enforce business rules beyond turning
store constraint violations into ValidationError.

Store failures surface as StoreUnavailable and are never retried here.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, List, Mapping, Optional, Sequence
from uuid import UUID

import httpx
from postgrest.exceptions import APIError

from domain.errors import StoreUnavailable, ValidationError
from domain.fields import SEARCH_FIELDS
from domain.query import Operator, Predicate, SortOrder, SummaryTotals
from domain.sale import Customer, Operation, Product, SaleAmounts, SaleRecord
from domain.time import parse_utc_timestamp, to_iso_utc, utc_now
from repositories.client import get_supabase

logger = logging.getLogger(__name__)

# Supabase table name for sale records.
# Keep this aligned with sql/001_create_sales.sql.
_SALES_TABLE: str = "sales"

# Postgres error codes raised through PostgREST.
_UNIQUE_VIOLATION = "23505"
_CHECK_VIOLATION = "23514"

# Never a real sale_id; used to express "every row" for bulk delete,
# since PostgREST refuses an unfiltered DELETE.
_NIL_UUID = "00000000-0000-0000-0000-000000000000"

# Aliased PostgREST aggregates; requires db_aggregates_enabled on the server.
_SUMMARY_SELECT: str = (
    "total_units:quantity.sum(),"
    "gross_amount:total_amount.sum(),"
    "net_amount:final_amount.sum(),"
    "total_records:count()"
)


# ============================================================================
# Row mapping
# ============================================================================

def _optional_text(row: Mapping[str, Any], key: str) -> Optional[str]:
    value = row.get(key)
    return str(value) if value not in (None, "") else None


def _sale_to_row(record: SaleRecord) -> dict[str, Any]:
    """Convert a domain SaleRecord to a Supabase row payload (flat columns)."""

    customer, product, sales, operation = record.customer, record.product, record.sales, record.operation
    row: dict[str, Any] = {
        "transaction_id": record.transaction_id,

        # Customer
        "customer_id": customer.customer_id,
        "customer_name": customer.customer_name,
        "phone_number": customer.phone_number,
        "gender": customer.gender,
        "age": customer.age,
        "customer_region": customer.customer_region,
        "customer_type": customer.customer_type.value,

        # Product
        "product_id": product.product_id,
        "product_name": product.product_name,
        "brand": product.brand,
        "product_category": product.product_category,
        "tags": list(product.tags),

        # Sales (money as strings to keep Decimal precision on the wire)
        "quantity": sales.quantity,
        "price_per_unit": str(sales.price_per_unit),
        "discount_percentage": str(sales.discount_percentage),
        "total_amount": str(sales.total_amount),
        "final_amount": str(sales.final_amount),

        # Operation
        "sold_at_utc": to_iso_utc(operation.date),
        "payment_method": operation.payment_method.value,
        "order_status": operation.order_status.value,
        "delivery_type": operation.delivery_type.value,
        "store_id": operation.store_id,
        "store_location": operation.store_location,
        "salesperson_id": operation.salesperson_id,
        "employee_name": operation.employee_name,
    }
    if record.sale_id is not None:
        row["sale_id"] = str(record.sale_id)
    if record.created_at is not None:
        row["created_at_utc"] = to_iso_utc(record.created_at)
    if record.updated_at is not None:
        row["updated_at_utc"] = to_iso_utc(record.updated_at)
    return row


def _row_to_sale(row: Mapping[str, Any]) -> SaleRecord:
    """Convert a Supabase row into a SaleRecord."""

    age = row.get("age")
    return SaleRecord(
        sale_id=UUID(str(row["sale_id"])),
        transaction_id=_optional_text(row, "transaction_id"),
        customer=Customer(
            customer_id=str(row["customer_id"]),
            customer_name=str(row["customer_name"]),
            customer_region=str(row["customer_region"]),
            phone_number=_optional_text(row, "phone_number"),
            gender=_optional_text(row, "gender"),
            age=int(age) if age is not None else None,
            customer_type=row.get("customer_type") or "Regular",
        ),
        product=Product(
            product_id=str(row["product_id"]),
            product_name=str(row["product_name"]),
            product_category=str(row["product_category"]),
            brand=_optional_text(row, "brand"),
            tags=tuple(row.get("tags") or ()),
        ),
        sales=SaleAmounts(
            quantity=int(row["quantity"]),
            price_per_unit=Decimal(str(row["price_per_unit"])),
            discount_percentage=Decimal(str(row.get("discount_percentage") or 0)),
            total_amount=Decimal(str(row["total_amount"])),
            final_amount=Decimal(str(row["final_amount"])),
        ),
        operation=Operation(
            date=parse_utc_timestamp(row["sold_at_utc"]),
            payment_method=row.get("payment_method") or "Credit Card",
            order_status=row.get("order_status") or "Pending",
            delivery_type=row.get("delivery_type") or "Standard Shipping",
            store_id=_optional_text(row, "store_id"),
            store_location=_optional_text(row, "store_location"),
            salesperson_id=_optional_text(row, "salesperson_id"),
            employee_name=_optional_text(row, "employee_name"),
        ),
        created_at=parse_utc_timestamp(row["created_at_utc"]) if row.get("created_at_utc") else None,
        updated_at=parse_utc_timestamp(row["updated_at_utc"]) if row.get("updated_at_utc") else None,
    )


# ============================================================================
# Predicate translation
# ============================================================================

def _encode_value(value: Any) -> Any:
    """Encode a filter value for a PostgREST query string."""

    if isinstance(value, datetime):
        return to_iso_utc(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    return value


def _quote(text: str) -> str:
    """Double-quote a value for PostgREST logic trees and array literals."""

    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _ilike_pattern(text: str) -> str:
    """
    Quoted `*text*` pattern for a case-insensitive substring match.

    LIKE metacharacters `%` and `_` are escaped. A literal `*` cannot be
    escaped: PostgREST rewrites it to `%` even inside quotes, so a `*` typed
    into the search box still matches any run of characters.
    """

    literal = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return _quote(f"*{literal}*")


def _array_literal(values: Sequence[Any]) -> str:
    return "{" + ",".join(_quote(str(_encode_value(v))) for v in values) + "}"


def apply_predicate(query: Any, predicate: Predicate) -> Any:
    """
    Apply a Predicate to a PostgREST filter builder and return the builder.

    Search becomes a single `or` over SEARCH_FIELDS; every condition is
    chained, which PostgREST combines with AND.
    """

    if predicate.search_text is not None:
        pattern = _ilike_pattern(predicate.search_text)
        query = query.or_(",".join(f"{f.column}.ilike.{pattern}" for f in SEARCH_FIELDS))

    for condition in predicate.conditions:
        column = condition.field.column
        if condition.operator is Operator.EQ:
            query = query.eq(column, _encode_value(condition.value))
        elif condition.operator is Operator.IN:
            query = query.in_(column, [_encode_value(v) for v in condition.value])
        elif condition.operator is Operator.OVERLAPS:
            query = query.filter(column, "ov", _array_literal(condition.value))
        elif condition.operator is Operator.GTE:
            query = query.gte(column, _encode_value(condition.value))
        elif condition.operator is Operator.LTE:
            query = query.lte(column, _encode_value(condition.value))
        else:
            raise ValueError(f"Unsupported operator: {condition.operator!r}")

    return query


def _execute(query: Any, action: str) -> Any:
    """Execute a built query, converting store failures into domain errors."""

    try:
        response = query.execute()
    except APIError as exc:
        if exc.code == _UNIQUE_VIOLATION:
            raise ValidationError("transactionId", "must be unique") from exc
        if exc.code == _CHECK_VIOLATION:
            raise ValidationError("record", exc.message or "violates a store constraint") from exc
        logger.error("Store rejected request to %s: %s", action, exc.message)
        raise StoreUnavailable(f"Failed to {action}: {exc.message}") from exc
    except httpx.HTTPError as exc:
        logger.error("Store unreachable while trying to %s: %s", action, exc)
        raise StoreUnavailable(f"Failed to {action}: {exc}") from exc

    error = getattr(response, "error", None)
    if error:
        logger.error("Store returned an error for %s: %s", action, error)
        raise StoreUnavailable(f"Failed to {action}: {error}")
    return response


def _table() -> Any:
    return get_supabase().table(_SALES_TABLE)


# ============================================================================
# Query operations
# ============================================================================

def find_sales(predicate: Predicate, sort: SortOrder, offset: int, limit: int) -> List[SaleRecord]:
    """
    Fetch one page of records matching `predicate`, ordered by `sort`.

    Ties on the sort field fall back to the store's natural order.
    """

    query = apply_predicate(_table().select("*"), predicate)
    query = query.order(sort.field.column, desc=sort.descending)
    query = query.range(offset, offset + limit - 1)

    response = _execute(query, "list sales")
    rows = getattr(response, "data", None) or []
    return [_row_to_sale(row) for row in rows]


def count_sales(predicate: Predicate) -> int:
    """Count every record matching `predicate`."""

    query = apply_predicate(_table().select("sale_id", count="exact"), predicate)
    response = _execute(query.limit(1), "count sales")
    return int(getattr(response, "count", 0) or 0)


def summarize_sales(predicate: Predicate) -> SummaryTotals:
    """
    Aggregate units, amount and discount over every record matching `predicate`.

    The sums are computed by the store; only one row comes back.
    """

    query = apply_predicate(_table().select(_SUMMARY_SELECT), predicate)
    response = _execute(query, "summarize sales")

    rows = getattr(response, "data", None) or []
    row = rows[0] if rows else {}
    total_records = int(row.get("total_records") or 0)
    if total_records == 0:
        return SummaryTotals.zero()

    gross = Decimal(str(row.get("gross_amount") or 0))
    net = Decimal(str(row.get("net_amount") or 0))
    return SummaryTotals(
        total_units=int(row.get("total_units") or 0),
        total_amount=net,
        total_discount=gross - net,
        total_records=total_records,
    )


# ============================================================================
# Record operations
# ============================================================================

def insert_sale(record: SaleRecord) -> SaleRecord:
    """
    Insert one sale. `record` must already carry its sale_id and transaction_id.

    Raises:
        ValidationError: transactionId already exists or a store check failed
        StoreUnavailable: any other store failure
    """

    now = utc_now()
    payload = _sale_to_row(record)
    payload.setdefault("created_at_utc", now.isoformat())
    payload.setdefault("updated_at_utc", now.isoformat())

    response = _execute(_table().insert(payload), "create sale")
    rows = getattr(response, "data", None) or []
    return _row_to_sale(rows[0]) if rows else _row_to_sale(payload)


def insert_sales_bulk(records: List[SaleRecord]) -> int:
    """
    Insert many sales in a single request.

    The request is all-or-nothing: if any row violates a constraint the whole
    batch fails. Returns the number of rows inserted.
    """

    if not records:
        return 0

    now = utc_now().isoformat()
    payloads = []
    for record in records:
        payload = _sale_to_row(record)
        payload.setdefault("created_at_utc", now)
        payload.setdefault("updated_at_utc", now)
        payloads.append(payload)

    _execute(_table().insert(payloads), f"bulk insert {len(records)} sales")
    return len(records)


def get_sale_by_id(sale_id: UUID) -> Optional[SaleRecord]:
    """
    Retrieve a single sale record by its ID.

    Returns:
        SaleRecord or None if not found
    """

    query = _table().select("*").eq("sale_id", str(sale_id)).limit(1)
    response = _execute(query, "get sale")

    rows = getattr(response, "data", None) or []
    if not rows:
        return None
    return _row_to_sale(rows[0])


def replace_sale(sale_id: UUID, record: SaleRecord) -> Optional[SaleRecord]:
    """
    Replace every field of an existing sale.

    sale_id and created_at are preserved; transaction_id is left untouched
    when `record` carries none. Returns None if no row has this ID.
    """

    payload = _sale_to_row(record)
    payload.pop("sale_id", None)
    payload.pop("created_at_utc", None)
    if record.transaction_id is None:
        payload.pop("transaction_id")
    payload["updated_at_utc"] = utc_now().isoformat()

    query = _table().update(payload).eq("sale_id", str(sale_id))
    response = _execute(query, "update sale")

    rows = getattr(response, "data", None) or []
    if not rows:
        return None
    return _row_to_sale(rows[0])


def delete_sale(sale_id: UUID) -> bool:
    """Delete one sale. Returns False if no row has this ID."""

    query = _table().delete().eq("sale_id", str(sale_id))
    response = _execute(query, "delete sale")
    rows = getattr(response, "data", None) or []
    return bool(rows)


def delete_all_sales() -> int:
    """Delete every sale record. Returns the number of rows removed."""

    query = _table().delete().neq("sale_id", _NIL_UUID)
    response = _execute(query, "delete all sales")
    return len(getattr(response, "data", None) or [])


__all__ = [
    "apply_predicate",
    "find_sales",
    "count_sales",
    "summarize_sales",
    "insert_sale",
    "insert_sales_bulk",
    "get_sale_by_id",
    "replace_sale",
    "delete_sale",
    "delete_all_sales",
]
