"""
Tests for `services/sale_service.py` (create / get / update / delete).
"""

from __future__ import annotations

from uuid import uuid4

import pytest

from domain.errors import NotFound, ValidationError
from services import sale_service
from tests.helpers.factories import make_sale


def test_create_assigns_id_and_transaction_id(fake_store) -> None:
    created = sale_service.create_sale(make_sale())

    assert created.sale_id is not None
    assert created.transaction_id
    assert created.created_at is not None
    assert str(created.sale_id) in fake_store.rows


def test_create_keeps_supplied_transaction_id(fake_store) -> None:
    created = sale_service.create_sale(make_sale(transaction_id="TXN-1001"))

    assert created.transaction_id == "TXN-1001"


def test_create_rejects_duplicate_transaction_id(fake_store) -> None:
    sale_service.create_sale(make_sale(transaction_id="TXN-1001"))

    with pytest.raises(ValidationError) as exc:
        sale_service.create_sale(make_sale(transaction_id="TXN-1001"))
    assert exc.value.field == "transactionId"
    assert len(fake_store.rows) == 1


def test_get_returns_stored_record(fake_store) -> None:
    [stored] = fake_store.seed(make_sale(customer_name="Asha"))

    fetched = sale_service.get_sale(stored.sale_id)

    assert fetched.customer.customer_name == "Asha"


def test_update_replaces_the_document(fake_store) -> None:
    [stored] = fake_store.seed(make_sale(transaction_id="TXN-1", quantity=1))

    updated = sale_service.update_sale(stored.sale_id, make_sale(quantity=7, order_status="Returned"))

    assert updated.sale_id == stored.sale_id
    assert updated.transaction_id == "TXN-1"
    assert updated.sales.quantity == 7
    assert updated.operation.order_status.value == "Returned"
    assert updated.created_at == stored.created_at


def test_delete_removes_the_record(fake_store) -> None:
    [stored] = fake_store.seed(make_sale())

    sale_service.delete_sale(stored.sale_id)

    assert fake_store.rows == {}
    with pytest.raises(NotFound):
        sale_service.get_sale(stored.sale_id)


@pytest.mark.parametrize(
    "operation",
    [
        lambda sale_id: sale_service.get_sale(sale_id),
        lambda sale_id: sale_service.update_sale(sale_id, make_sale()),
        lambda sale_id: sale_service.delete_sale(sale_id),
    ],
    ids=["get", "update", "delete"],
)
def test_missing_record_raises_not_found(fake_store, operation) -> None:
    missing = uuid4()

    with pytest.raises(NotFound) as exc:
        operation(missing)
    assert exc.value.sale_id == missing
