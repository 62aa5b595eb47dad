"""Sale record factory with sensible defaults for tests."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional, Union
from uuid import UUID

from domain.sale import Customer, Operation, Product, SaleAmounts, SaleRecord

Number = Union[int, str, Decimal]


def make_sale(
    *,
    sale_id: Optional[UUID] = None,
    transaction_id: Optional[str] = None,
    customer_name: str = "Neha Sharma",
    phone_number: Optional[str] = "9876543210",
    age: Optional[int] = 30,
    customer_region: str = "North",
    customer_type: str = "Regular",
    product_category: str = "Beauty",
    brand: Optional[str] = "GreenLeaf",
    tags: Iterable[str] = ("organic",),
    quantity: int = 1,
    price_per_unit: Number = "100",
    total_amount: Optional[Number] = None,
    final_amount: Optional[Number] = None,
    discount_percentage: Number = "0",
    date: Optional[datetime] = None,
    payment_method: str = "UPI",
    order_status: str = "Delivered",
) -> SaleRecord:
    price = Decimal(str(price_per_unit))
    total = Decimal(str(total_amount)) if total_amount is not None else price * quantity
    final = Decimal(str(final_amount)) if final_amount is not None else total
    return SaleRecord(
        sale_id=sale_id,
        transaction_id=transaction_id,
        customer=Customer(
            customer_id="CUST-1",
            customer_name=customer_name,
            customer_region=customer_region,
            phone_number=phone_number,
            gender="Female",
            age=age,
            customer_type=customer_type,
        ),
        product=Product(
            product_id="PROD-1",
            product_name="Herbal Face Wash",
            product_category=product_category,
            brand=brand,
            tags=tuple(tags),
        ),
        sales=SaleAmounts(
            quantity=quantity,
            price_per_unit=price,
            total_amount=total,
            final_amount=final,
            discount_percentage=Decimal(str(discount_percentage)),
        ),
        operation=Operation(
            date=date or datetime(2023, 6, 1, 10, 30, tzinfo=timezone.utc),
            payment_method=payment_method,
            order_status=order_status,
            store_location="Delhi",
        ),
    )
