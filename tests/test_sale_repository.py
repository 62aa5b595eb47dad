"""
Tests for `repositories/sale_repository.py`.

The Supabase client is replaced by a recording fake, so these tests check the
PostgREST calls a Predicate turns into, the parsing of aggregate rows, and
the mapping of store errors onto domain errors. No network is used.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

import httpx
import pytest
from postgrest.exceptions import APIError

from domain.errors import StoreUnavailable, ValidationError
from domain.fields import SaleField
from domain.query import DiscreteSet, QueryFilterMap, Range, Scalar, SortOrder, SummaryTotals
from repositories import sale_repository
from repositories.sale_repository import _ilike_pattern, _sale_to_row
from services.query_builder import build_predicate
from tests.helpers.factories import make_sale
from tests.helpers.recording_client import RecordingClient, response

SALE_ID = UUID("00000000-0000-0000-0000-000000000042")


@pytest.fixture
def client(monkeypatch) -> RecordingClient:
    recording = RecordingClient()
    monkeypatch.setattr(sale_repository, "get_supabase", lambda: recording)
    return recording


def _stored_row(**overrides) -> dict:
    row = _sale_to_row(make_sale(sale_id=SALE_ID, transaction_id="TXN-42", **overrides))
    row["created_at_utc"] = "2023-06-01T10:30:00+00:00"
    row["updated_at_utc"] = "2023-06-01T10:30:00+00:00"
    return row


def _api_error(code: str, message: str = "rejected") -> APIError:
    return APIError({"code": code, "message": message, "hint": None, "details": None})


# ============================================================================
# Predicate translation
# ============================================================================

def test_find_translates_predicate_sort_and_page(client) -> None:
    client.responses.append(response([_stored_row()]))
    predicate = build_predicate(
        "neha",
        QueryFilterMap({
            SaleField.CUSTOMER_REGION: DiscreteSet(("South", "North")),
            SaleField.TAGS: DiscreteSet(("sale", "organic")),
            SaleField.AGE: Range(lower=25),
            SaleField.DATE: Range(upper=datetime(2023, 12, 31, tzinfo=timezone.utc)),
            SaleField.ORDER_STATUS: Scalar("Delivered"),
        }),
    )

    records = sale_repository.find_sales(predicate, SortOrder(SaleField.DATE, descending=True), 10, 10)

    query = client.last
    assert query.table == "sales"
    assert query.named("select") == [(("*",), {})]
    assert query.named("or_") == [
        (('customer_name.ilike."*neha*",phone_number.ilike."*neha*"',), {})
    ]
    assert query.named("in_") == [(("customer_region", ["North", "South"]), {})]
    assert query.named("filter") == [(("tags", "ov", '{"organic","sale"}'), {})]
    assert query.named("gte") == [(("age", 25), {})]
    assert query.named("lte") == [(("sold_at_utc", "2023-12-31T00:00:00+00:00"), {})]
    assert query.named("eq") == [(("order_status", "Delivered"), {})]
    assert query.named("order") == [(("sold_at_utc",), {"desc": True})]
    assert query.named("range") == [((10, 19), {})]

    assert [r.sale_id for r in records] == [SALE_ID]


def test_match_all_predicate_adds_no_filters(client) -> None:
    sale_repository.find_sales(build_predicate(None, None), SortOrder(SaleField.QUANTITY), 0, 10)

    assert client.last.call_names() == ["select", "order", "range"]


def test_numeric_bounds_are_sent_as_strings(client) -> None:
    predicate = build_predicate(None, QueryFilterMap({SaleField.TOTAL_AMOUNT: Range(Decimal("10.50"), None)}))

    sale_repository.count_sales(predicate)

    assert client.last.named("gte") == [(("total_amount", "10.50"), {})]


def test_search_escapes_like_wildcards() -> None:
    assert _ilike_pattern("50%") == '"*50\\\\%*"'
    assert _ilike_pattern('say "hi"') == '"*say \\"hi\\"*"'


def test_search_star_is_passed_through_as_a_wildcard() -> None:
    assert _ilike_pattern("a*b") == '"*a*b*"'


def test_count_uses_exact_count(client) -> None:
    client.responses.append(response([{"sale_id": str(SALE_ID)}], count=42))

    total = sale_repository.count_sales(build_predicate("neha", None))

    assert total == 42
    assert client.last.named("select") == [(("sale_id",), {"count": "exact"})]
    assert client.last.named("limit") == [((1,), {})]


# ============================================================================
# Summary aggregation
# ============================================================================

def test_summary_parses_aggregate_row(client) -> None:
    client.responses.append(response([
        {"total_units": 6, "gross_amount": 630.0, "net_amount": "590.00", "total_records": 3}
    ]))

    totals = sale_repository.summarize_sales(build_predicate(None, None))

    assert totals == SummaryTotals(
        total_units=6,
        total_amount=Decimal("590.00"),
        total_discount=Decimal("40.00"),
        total_records=3,
    )
    [(select_args, _)] = client.last.named("select")
    assert "total_units:quantity.sum()" in select_args[0]
    assert "total_records:count()" in select_args[0]


@pytest.mark.parametrize(
    "rows",
    [
        [],
        [{"total_units": None, "gross_amount": None, "net_amount": None, "total_records": 0}],
    ],
)
def test_summary_of_nothing_is_zero(client, rows) -> None:
    client.responses.append(response(rows))

    assert sale_repository.summarize_sales(build_predicate("nobody", None)) == SummaryTotals.zero()


# ============================================================================
# Record operations
# ============================================================================

def test_row_mapping_uses_flat_columns() -> None:
    row = _stored_row(tags=["organic", "new"], price_per_unit="250", quantity=2)

    assert row["sale_id"] == str(SALE_ID)
    assert row["customer_name"] == "Neha Sharma"
    assert row["tags"] == ["organic", "new"]
    assert row["price_per_unit"] == "250"
    assert row["total_amount"] == "500"
    assert row["sold_at_utc"] == "2023-06-01T10:30:00+00:00"
    assert row["payment_method"] == "UPI"


def test_get_by_id_returns_none_when_missing(client) -> None:
    client.responses.append(response([]))

    assert sale_repository.get_sale_by_id(SALE_ID) is None
    assert client.last.named("eq") == [(("sale_id", str(SALE_ID)), {})]


def test_get_by_id_maps_row(client) -> None:
    client.responses.append(response([_stored_row(age=None, tags=[])]))

    sale = sale_repository.get_sale_by_id(SALE_ID)

    assert sale.sale_id == SALE_ID
    assert sale.transaction_id == "TXN-42"
    assert sale.customer.age is None
    assert sale.product.tags == ()
    assert sale.created_at == datetime(2023, 6, 1, 10, 30, tzinfo=timezone.utc)


def test_rows_with_trimmed_fractional_seconds_are_read(client) -> None:
    """Postgres returns ".12345" rather than ".123450" for microsecond timestamps."""
    row = _stored_row()
    row["created_at_utc"] = "2024-03-01T12:34:56.12345+00:00"
    row["sold_at_utc"] = "2024-03-01T12:34:56.1+00:00"
    client.responses.append(response([row]))

    [sale] = sale_repository.find_sales(build_predicate(None, None), SortOrder(SaleField.DATE), 0, 10)

    assert sale.created_at == datetime(2024, 3, 1, 12, 34, 56, 123450, tzinfo=timezone.utc)
    assert sale.operation.date.microsecond == 100000


def test_insert_sets_timestamps(client) -> None:
    client.responses.append(response([_stored_row()]))

    sale_repository.insert_sale(make_sale(sale_id=SALE_ID, transaction_id="TXN-42"))

    [(payload,), _] = client.last.named("insert")[0]
    assert payload["transaction_id"] == "TXN-42"
    assert "created_at_utc" in payload and "updated_at_utc" in payload


def test_bulk_insert_sends_one_request(client) -> None:
    records = [make_sale(sale_id=SALE_ID, transaction_id=f"TXN-{i}") for i in range(3)]

    inserted = sale_repository.insert_sales_bulk(records)

    assert inserted == 3
    assert len(client.executed) == 1
    [((payloads,), _)] = client.last.named("insert")
    assert [p["transaction_id"] for p in payloads] == ["TXN-0", "TXN-1", "TXN-2"]


def test_bulk_insert_of_nothing_makes_no_request(client) -> None:
    assert sale_repository.insert_sales_bulk([]) == 0
    assert client.queries == []


def test_replace_keeps_identity_columns(client) -> None:
    client.responses.append(response([_stored_row()]))

    sale_repository.replace_sale(SALE_ID, make_sale(quantity=3))

    [((payload,), _)] = client.last.named("update")
    assert "sale_id" not in payload
    assert "created_at_utc" not in payload
    assert "transaction_id" not in payload
    assert payload["quantity"] == 3
    assert client.last.named("eq") == [(("sale_id", str(SALE_ID)), {})]


def test_replace_returns_none_when_missing(client) -> None:
    client.responses.append(response([]))

    assert sale_repository.replace_sale(SALE_ID, make_sale()) is None


def test_delete_reports_whether_a_row_was_removed(client) -> None:
    client.responses.extend([response([_stored_row()]), response([])])

    assert sale_repository.delete_sale(SALE_ID) is True
    assert sale_repository.delete_sale(SALE_ID) is False


def test_delete_all_uses_an_always_true_filter(client) -> None:
    client.responses.append(response([{"sale_id": "a"}, {"sale_id": "b"}]))

    assert sale_repository.delete_all_sales() == 2
    assert client.last.named("neq") == [(("sale_id", "00000000-0000-0000-0000-000000000000"), {})]


# ============================================================================
# Error mapping
# ============================================================================

def test_unique_violation_becomes_validation_error(client) -> None:
    client.responses.append(_api_error("23505", "duplicate key value violates unique constraint"))

    with pytest.raises(ValidationError) as exc:
        sale_repository.insert_sale(make_sale(sale_id=SALE_ID, transaction_id="TXN-42"))
    assert exc.value.field == "transactionId"


def test_check_violation_becomes_validation_error(client) -> None:
    client.responses.append(_api_error("23514", "violates check constraint sales_age_check"))

    with pytest.raises(ValidationError) as exc:
        sale_repository.insert_sale(make_sale(sale_id=SALE_ID))
    assert exc.value.field == "record"


@pytest.mark.parametrize(
    "failure",
    [
        _api_error("PGRST301", "JWT expired"),
        httpx.ConnectError("connection refused"),
    ],
    ids=["api-error", "network"],
)
def test_other_failures_become_store_unavailable(client, failure) -> None:
    client.responses.append(failure)

    with pytest.raises(StoreUnavailable):
        sale_repository.find_sales(build_predicate(None, None), SortOrder(SaleField.DATE), 0, 10)


def test_missing_credentials_raise_runtime_error(monkeypatch) -> None:
    from repositories import client as client_module

    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_KEY", raising=False)
    client_module.get_supabase.cache_clear()

    with pytest.raises(RuntimeError, match="SUPABASE_URL"):
        client_module.get_supabase()
