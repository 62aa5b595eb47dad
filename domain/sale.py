"""
Domain: sale transactions.

A SaleRecord is one retail transaction, grouped into four namespaces that
mirror the wire format: customer, product, sales (amounts) and operation.

Constraints enforced at construction:
- Required strings are present and non-blank.
- customer.age, when present, lies in [18, 120].
- sales.quantity >= 1; money amounts >= 0; discountPercentage in [0, 100].
- operation.date is a UTC timestamp.
- Vocabulary fields (customerType, paymentMethod, orderStatus, deliveryType)
  hold one of their fixed values.

sales.finalAmount <= sales.totalAmount is deliberately NOT enforced; imported
data is kept as-is and a negative discount is reported by the summary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Tuple, Type, TypeVar
from uuid import UUID

from .errors import ValidationError
from .time import require_utc_timestamp, utc_now

E = TypeVar("E", bound=Enum)


class CustomerType(str, Enum):
    REGULAR = "Regular"
    NEW = "New"
    WHOLESALE = "Wholesale"
    ONLINE = "Online"
    LOYAL = "Loyal"
    RETURNING = "Returning"


class PaymentMethod(str, Enum):
    CREDIT_CARD = "Credit Card"
    CASH = "Cash"
    UPI = "UPI"
    NET_BANKING = "Net Banking"
    WALLET = "Wallet"
    DEBIT_CARD = "Debit Card"


class OrderStatus(str, Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"
    RETURNED = "Returned"
    COMPLETED = "Completed"


class DeliveryType(str, Enum):
    STANDARD_SHIPPING = "Standard Shipping"
    EXPRESS_DELIVERY = "Express Delivery"
    IN_STORE_PICKUP = "In-Store Pickup"
    STANDARD = "Standard"
    EXPRESS = "Express"
    STORE_PICKUP = "Store Pickup"


MIN_CUSTOMER_AGE = 18
MAX_CUSTOMER_AGE = 120


def _require_text(name: str, value: Any) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(name, "is required")


def _require_enum(obj: Any, attr: str, name: str, enum_type: Type[E]) -> None:
    # Accept the enum member or its string value; store the member.
    value = getattr(obj, attr)
    if isinstance(value, enum_type):
        return
    try:
        member = enum_type(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_type)
        raise ValidationError(name, f"must be one of: {allowed} (got {value!r})") from None
    object.__setattr__(obj, attr, member)


def _require_decimal(obj: Any, attr: str, name: str, *, minimum: Decimal, maximum: Optional[Decimal] = None) -> None:
    value = getattr(obj, attr)
    if isinstance(value, bool):
        raise ValidationError(name, "must be a number")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(name, "must be a number") from None
    if not amount.is_finite():
        raise ValidationError(name, "must be a finite number")
    if amount < minimum:
        raise ValidationError(name, f"must be >= {minimum}")
    if maximum is not None and amount > maximum:
        raise ValidationError(name, f"must be <= {maximum}")
    object.__setattr__(obj, attr, amount)


@dataclass(frozen=True, slots=True)
class Customer:
    customer_id: str
    customer_name: str
    customer_region: str
    phone_number: Optional[str] = None
    gender: Optional[str] = None
    age: Optional[int] = None
    customer_type: CustomerType = CustomerType.REGULAR

    def __post_init__(self) -> None:
        _require_text("customer.customerId", self.customer_id)
        _require_text("customer.customerName", self.customer_name)
        _require_text("customer.customerRegion", self.customer_region)
        if self.age is not None:
            if isinstance(self.age, bool) or not isinstance(self.age, int):
                raise ValidationError("customer.age", "must be an integer")
            if not MIN_CUSTOMER_AGE <= self.age <= MAX_CUSTOMER_AGE:
                raise ValidationError(
                    "customer.age",
                    f"must be between {MIN_CUSTOMER_AGE} and {MAX_CUSTOMER_AGE}",
                )
        _require_enum(self, "customer_type", "customer.customerType", CustomerType)


@dataclass(frozen=True, slots=True)
class Product:
    product_id: str
    product_name: str
    product_category: str
    brand: Optional[str] = None
    tags: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _require_text("product.productId", self.product_id)
        _require_text("product.productName", self.product_name)
        _require_text("product.productCategory", self.product_category)
        if isinstance(self.tags, str) or any(not isinstance(t, str) for t in self.tags):
            raise ValidationError("product.tags", "must be a list of strings")
        object.__setattr__(self, "tags", tuple(self.tags))


@dataclass(frozen=True, slots=True)
class SaleAmounts:
    """The `sales` namespace: quantities and money."""

    quantity: int
    price_per_unit: Decimal
    total_amount: Decimal
    final_amount: Decimal
    discount_percentage: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValidationError("sales.quantity", "must be an integer")
        if self.quantity < 1:
            raise ValidationError("sales.quantity", "must be >= 1")
        _require_decimal(self, "price_per_unit", "sales.pricePerUnit", minimum=Decimal("0"))
        _require_decimal(
            self,
            "discount_percentage",
            "sales.discountPercentage",
            minimum=Decimal("0"),
            maximum=Decimal("100"),
        )
        _require_decimal(self, "total_amount", "sales.totalAmount", minimum=Decimal("0"))
        _require_decimal(self, "final_amount", "sales.finalAmount", minimum=Decimal("0"))

    @property
    def discount(self) -> Decimal:
        """totalAmount - finalAmount; negative when the final amount exceeds the total."""
        return self.total_amount - self.final_amount


@dataclass(frozen=True, slots=True)
class Operation:
    date: datetime = field(default_factory=utc_now)
    payment_method: PaymentMethod = PaymentMethod.CREDIT_CARD
    order_status: OrderStatus = OrderStatus.PENDING
    delivery_type: DeliveryType = DeliveryType.STANDARD_SHIPPING
    store_id: Optional[str] = None
    store_location: Optional[str] = None
    salesperson_id: Optional[str] = None
    employee_name: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.date, datetime):
            raise ValidationError("operation.date", "is required")
        try:
            require_utc_timestamp("operation.date", self.date)
        except ValueError as exc:
            raise ValidationError("operation.date", str(exc)) from None
        _require_enum(self, "payment_method", "operation.paymentMethod", PaymentMethod)
        _require_enum(self, "order_status", "operation.orderStatus", OrderStatus)
        _require_enum(self, "delivery_type", "operation.deliveryType", DeliveryType)


@dataclass(frozen=True, slots=True)
class SaleRecord:
    """
    Immutable sale transaction.

    `sale_id` is assigned by the system on create and is None for records
    that have not been persisted yet. `transaction_id` is unique across all
    records; when absent it is generated at create/ingestion time.
    """

    customer: Customer
    product: Product
    sales: SaleAmounts
    operation: Operation
    transaction_id: Optional[str] = None
    sale_id: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.transaction_id is not None:
            _require_text("transactionId", self.transaction_id)
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)
        if self.updated_at is not None:
            require_utc_timestamp("updated_at", self.updated_at)


__all__ = [
    "CustomerType",
    "PaymentMethod",
    "OrderStatus",
    "DeliveryType",
    "Customer",
    "Product",
    "SaleAmounts",
    "Operation",
    "SaleRecord",
    "MIN_CUSTOMER_AGE",
    "MAX_CUSTOMER_AGE",
]
