"""
Tests for `domain/sale.py`.

Covers contract rules:
- operation.date is required and must be a UTC timestamp.
- customer.age, when present, lies in [18, 120].
- sales.quantity >= 1 and money amounts are non-negative.
- Vocabulary fields accept only their fixed values (strings are coerced).
- finalAmount > totalAmount is accepted and yields a negative discount.
- SaleRecord is immutable (frozen).
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from domain.errors import ValidationError
from domain.sale import (
    Customer,
    CustomerType,
    Operation,
    OrderStatus,
    PaymentMethod,
    Product,
    SaleAmounts,
)
from tests.helpers.factories import make_sale


def test_operation_date_must_be_utc() -> None:
    """Verify operation.date enforces a timezone-aware UTC timestamp."""

    with pytest.raises(ValidationError) as naive:
        Operation(date=datetime(2025, 1, 1, 0, 0, 0))
    assert naive.value.field == "operation.date"

    with pytest.raises(ValidationError):
        Operation(date=datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone(timedelta(hours=2))))


def test_operation_defaults_and_string_vocabulary() -> None:
    """Strings are coerced to their enum members; omitted values take defaults."""

    operation = Operation(payment_method="Cash", order_status="Delivered")

    assert operation.payment_method is PaymentMethod.CASH
    assert operation.order_status is OrderStatus.DELIVERED
    assert operation.date.utcoffset() == timedelta(0)


def test_unknown_vocabulary_value_is_rejected() -> None:
    with pytest.raises(ValidationError) as exc:
        Operation(payment_method="Cheque")
    assert exc.value.field == "operation.paymentMethod"

    with pytest.raises(ValidationError) as exc:
        Customer(customer_id="C1", customer_name="A", customer_region="North", customer_type="VIP")
    assert exc.value.field == "customer.customerType"


@pytest.mark.parametrize("age", [18, 40, 120, None])
def test_customer_age_accepted(age) -> None:
    customer = Customer(customer_id="C1", customer_name="Asha", customer_region="North", age=age)
    assert customer.age == age
    assert customer.customer_type is CustomerType.REGULAR


@pytest.mark.parametrize("age", [17, 121, 0, True, "30"])
def test_customer_age_rejected(age) -> None:
    with pytest.raises(ValidationError) as exc:
        Customer(customer_id="C1", customer_name="Asha", customer_region="North", age=age)
    assert exc.value.field == "customer.age"


def test_required_text_fields() -> None:
    with pytest.raises(ValidationError) as exc:
        Customer(customer_id="C1", customer_name="   ", customer_region="North")
    assert exc.value.field == "customer.customerName"

    with pytest.raises(ValidationError) as exc:
        Product(product_id="P1", product_name="Soap", product_category="")
    assert exc.value.field == "product.productCategory"


def test_product_tags_must_be_strings() -> None:
    assert Product(product_id="P1", product_name="Soap", product_category="Beauty", tags=["a", "b"]).tags == ("a", "b")

    with pytest.raises(ValidationError):
        Product(product_id="P1", product_name="Soap", product_category="Beauty", tags="organic")


@pytest.mark.parametrize(
    "kwargs, field",
    [
        ({"quantity": 0}, "sales.quantity"),
        ({"quantity": 1.5}, "sales.quantity"),
        ({"price_per_unit": "-1"}, "sales.pricePerUnit"),
        ({"total_amount": "abc"}, "sales.totalAmount"),
        ({"final_amount": "NaN"}, "sales.finalAmount"),
        ({"discount_percentage": "101"}, "sales.discountPercentage"),
    ],
)
def test_sale_amounts_rejected(kwargs, field) -> None:
    values = {
        "quantity": 1,
        "price_per_unit": "10",
        "total_amount": "10",
        "final_amount": "10",
    }
    values.update(kwargs)
    with pytest.raises(ValidationError) as exc:
        SaleAmounts(**values)
    assert exc.value.field == field


def test_sale_amounts_coerce_to_decimal() -> None:
    amounts = SaleAmounts(quantity=2, price_per_unit=250, total_amount="500", final_amount=450.0)

    assert amounts.price_per_unit == Decimal("250")
    assert amounts.total_amount == Decimal("500")
    assert amounts.discount == Decimal("50")


def test_final_amount_above_total_is_permitted() -> None:
    """Imported data is kept as-is; the discount simply goes negative."""

    sale = make_sale(total_amount="100", final_amount="120")

    assert sale.sales.discount == Decimal("-20")


def test_blank_transaction_id_is_rejected() -> None:
    with pytest.raises(ValidationError) as exc:
        make_sale(transaction_id="  ")
    assert exc.value.field == "transactionId"


def test_sale_record_is_immutable() -> None:
    """Verify SaleRecord cannot be mutated after creation (frozen entity)."""

    sale = make_sale()

    with pytest.raises(FrozenInstanceError):
        sale.transaction_id = "TXN-2"  # type: ignore[misc]
