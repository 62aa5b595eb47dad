"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
Wire keys are camelCase (`customerName`, `totalDocs`, ...); Python attributes
stay snake_case.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from domain.query import PaginationMeta, SummaryTotals
from domain.sale import Customer, Operation, Product, SaleAmounts, SaleRecord
from domain.time import parse_utc_timestamp, utc_now


class CamelModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


# ============================================================================
# Sale record payloads (requests)
# ============================================================================

class CustomerPayload(CamelModel):
    customer_id: str
    customer_name: str
    customer_region: str
    phone_number: Optional[str] = None
    gender: Optional[str] = None
    age: Optional[int] = None
    customer_type: Optional[str] = None


class ProductPayload(CamelModel):
    product_id: str
    product_name: str
    product_category: str
    brand: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class SalesPayload(CamelModel):
    quantity: int
    price_per_unit: Decimal
    total_amount: Decimal
    final_amount: Decimal
    discount_percentage: Decimal = Decimal("0")


class OperationPayload(CamelModel):
    date: Optional[datetime] = None
    payment_method: Optional[str] = None
    order_status: Optional[str] = None
    delivery_type: Optional[str] = None
    store_id: Optional[str] = None
    store_location: Optional[str] = None
    salesperson_id: Optional[str] = None
    employee_name: Optional[str] = None


class SaleRecordRequest(CamelModel):
    """Body of POST /sales and PUT /sales/{id} (a full document)."""

    transaction_id: Optional[str] = None
    customer: CustomerPayload
    product: ProductPayload
    sales: SalesPayload
    operation: OperationPayload = Field(default_factory=OperationPayload)

    class Config:
        json_schema_extra = {
            "example": {
                "transactionId": "TXN-1001",
                "customer": {
                    "customerId": "CUST-17",
                    "customerName": "Neha Sharma",
                    "phoneNumber": "9876543210",
                    "gender": "Female",
                    "age": 34,
                    "customerRegion": "North",
                    "customerType": "Loyal"
                },
                "product": {
                    "productId": "PROD-3",
                    "productName": "Herbal Face Wash",
                    "brand": "GreenLeaf",
                    "productCategory": "Beauty",
                    "tags": ["organic", "skincare"]
                },
                "sales": {
                    "quantity": 2,
                    "pricePerUnit": "250.00",
                    "discountPercentage": "10",
                    "totalAmount": "500.00",
                    "finalAmount": "450.00"
                },
                "operation": {
                    "date": "2023-06-01T10:30:00Z",
                    "paymentMethod": "UPI",
                    "orderStatus": "Delivered",
                    "deliveryType": "Standard Shipping",
                    "storeLocation": "Delhi"
                }
            }
        }

    def to_domain(self) -> SaleRecord:
        """
        Build the domain record. Raises domain ValidationError for constraint
        violations (age range, quantity, vocabulary values, ...).
        """

        c, p, s, o = self.customer, self.product, self.sales, self.operation
        operation_kwargs = {
            key: value
            for key, value in (
                ("payment_method", o.payment_method),
                ("order_status", o.order_status),
                ("delivery_type", o.delivery_type),
            )
            if value is not None
        }
        return SaleRecord(
            transaction_id=self.transaction_id,
            customer=Customer(
                customer_id=c.customer_id,
                customer_name=c.customer_name,
                customer_region=c.customer_region,
                phone_number=c.phone_number,
                gender=c.gender,
                age=c.age,
                customer_type=c.customer_type or "Regular",
            ),
            product=Product(
                product_id=p.product_id,
                product_name=p.product_name,
                product_category=p.product_category,
                brand=p.brand,
                tags=tuple(p.tags),
            ),
            sales=SaleAmounts(
                quantity=s.quantity,
                price_per_unit=s.price_per_unit,
                discount_percentage=s.discount_percentage,
                total_amount=s.total_amount,
                final_amount=s.final_amount,
            ),
            operation=Operation(
                date=parse_utc_timestamp(o.date) if o.date is not None else utc_now(),
                store_id=o.store_id,
                store_location=o.store_location,
                salesperson_id=o.salesperson_id,
                employee_name=o.employee_name,
                **operation_kwargs,
            ),
        )


# ============================================================================
# Sale record responses
# ============================================================================

class CustomerResponse(CamelModel):
    customer_id: str
    customer_name: str
    phone_number: Optional[str]
    gender: Optional[str]
    age: Optional[int]
    customer_region: str
    customer_type: str


class ProductResponse(CamelModel):
    product_id: str
    product_name: str
    brand: Optional[str]
    product_category: str
    tags: List[str]


class SalesResponse(CamelModel):
    quantity: int
    price_per_unit: float
    discount_percentage: float
    total_amount: float
    final_amount: float


class OperationResponse(CamelModel):
    date: datetime
    payment_method: str
    order_status: str
    delivery_type: str
    store_id: Optional[str]
    store_location: Optional[str]
    salesperson_id: Optional[str]
    employee_name: Optional[str]


class SaleResponse(CamelModel):
    """Single sale record in API responses."""

    id: UUID
    transaction_id: Optional[str]
    customer: CustomerResponse
    product: ProductResponse
    sales: SalesResponse
    operation: OperationResponse
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, record: SaleRecord) -> "SaleResponse":
        c, p, s, o = record.customer, record.product, record.sales, record.operation
        return cls(
            id=record.sale_id,
            transaction_id=record.transaction_id,
            customer=CustomerResponse(
                customer_id=c.customer_id,
                customer_name=c.customer_name,
                phone_number=c.phone_number,
                gender=c.gender,
                age=c.age,
                customer_region=c.customer_region,
                customer_type=c.customer_type.value,
            ),
            product=ProductResponse(
                product_id=p.product_id,
                product_name=p.product_name,
                brand=p.brand,
                product_category=p.product_category,
                tags=list(p.tags),
            ),
            sales=SalesResponse(
                quantity=s.quantity,
                price_per_unit=float(s.price_per_unit),
                discount_percentage=float(s.discount_percentage),
                total_amount=float(s.total_amount),
                final_amount=float(s.final_amount),
            ),
            operation=OperationResponse(
                date=o.date,
                payment_method=o.payment_method.value,
                order_status=o.order_status.value,
                delivery_type=o.delivery_type.value,
                store_id=o.store_id,
                store_location=o.store_location,
                salesperson_id=o.salesperson_id,
                employee_name=o.employee_name,
            ),
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class PaginationResponse(CamelModel):
    total_docs: int
    total_pages: int
    current_page: int
    limit: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def from_domain(cls, meta: PaginationMeta) -> "PaginationResponse":
        return cls(
            total_docs=meta.total_docs,
            total_pages=meta.total_pages,
            current_page=meta.current_page,
            limit=meta.limit,
            has_next_page=meta.has_next_page,
            has_prev_page=meta.has_prev_page,
        )


class SummaryResponse(CamelModel):
    total_units: int
    total_amount: float
    total_discount: float
    total_records: int

    @classmethod
    def from_domain(cls, totals: SummaryTotals) -> "SummaryResponse":
        return cls(
            total_units=totals.total_units,
            total_amount=float(totals.total_amount),
            total_discount=float(totals.total_discount),
            total_records=totals.total_records,
        )


# ============================================================================
# Envelopes
# ============================================================================

class SaleListEnvelope(CamelModel):
    """Response for GET /sales."""

    success: bool
    message: str
    data: List[SaleResponse]
    pagination: PaginationResponse

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "message": "Sales data retrieved successfully.",
                "data": [],
                "pagination": {
                    "totalDocs": 25,
                    "totalPages": 3,
                    "currentPage": 1,
                    "limit": 10,
                    "hasNextPage": True,
                    "hasPrevPage": False
                }
            }
        }


class SummaryEnvelope(CamelModel):
    """Response for GET /sales/summary."""

    success: bool
    message: str
    data: SummaryResponse


class SaleEnvelope(CamelModel):
    """Response for single-record operations."""

    success: bool
    message: str
    data: Optional[SaleResponse] = None


class ErrorResponse(CamelModel):
    """Standard error response."""

    success: bool = False
    message: str
    field: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "success": False,
                "message": "Invalid JSON format for 'filter' parameter: Unterminated string starting at",
                "field": None
            }
        }
