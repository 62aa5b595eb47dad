"""
Domain: addressable sale fields.

Callers address record fields by dotted wire path (`customer.age`,
`product.tags`, ...). Only the paths listed here are accepted; each one knows
the storage column it lives in and the kind of value it holds, which decides
how filter values are coerced and which operators apply.
"""

from __future__ import annotations

from enum import Enum

from .errors import InvalidFilterSyntax


class FieldKind(str, Enum):
    TEXT = "text"
    INTEGER = "integer"
    NUMBER = "number"
    TIMESTAMP = "timestamp"
    TEXT_ARRAY = "text_array"


class SaleField(str, Enum):
    TRANSACTION_ID = "transactionId"

    CUSTOMER_ID = "customer.customerId"
    CUSTOMER_NAME = "customer.customerName"
    PHONE_NUMBER = "customer.phoneNumber"
    GENDER = "customer.gender"
    AGE = "customer.age"
    CUSTOMER_REGION = "customer.customerRegion"
    CUSTOMER_TYPE = "customer.customerType"

    PRODUCT_ID = "product.productId"
    PRODUCT_NAME = "product.productName"
    BRAND = "product.brand"
    PRODUCT_CATEGORY = "product.productCategory"
    TAGS = "product.tags"

    QUANTITY = "sales.quantity"
    PRICE_PER_UNIT = "sales.pricePerUnit"
    DISCOUNT_PERCENTAGE = "sales.discountPercentage"
    TOTAL_AMOUNT = "sales.totalAmount"
    FINAL_AMOUNT = "sales.finalAmount"

    DATE = "operation.date"
    PAYMENT_METHOD = "operation.paymentMethod"
    ORDER_STATUS = "operation.orderStatus"
    DELIVERY_TYPE = "operation.deliveryType"
    STORE_ID = "operation.storeId"
    STORE_LOCATION = "operation.storeLocation"
    SALESPERSON_ID = "operation.salespersonId"
    EMPLOYEE_NAME = "operation.employeeName"

    @property
    def column(self) -> str:
        """Storage column holding this field."""
        return _COLUMNS[self]

    @property
    def kind(self) -> FieldKind:
        return _KINDS.get(self, FieldKind.TEXT)

    @property
    def is_array(self) -> bool:
        return self.kind is FieldKind.TEXT_ARRAY

    @property
    def is_orderable(self) -> bool:
        """Whether range bounds and sorting apply; false only for array fields."""
        return not self.is_array

    @staticmethod
    def from_path(path: str) -> "SaleField":
        """
        Resolve a dotted path supplied by a caller.

        Raises InvalidFilterSyntax for paths that are not known record fields,
        so arbitrary strings never reach the store.
        """

        try:
            return SaleField(path)
        except ValueError:
            raise InvalidFilterSyntax(f"Unknown field path: {path!r}") from None


_COLUMNS: dict[SaleField, str] = {
    SaleField.TRANSACTION_ID: "transaction_id",
    SaleField.CUSTOMER_ID: "customer_id",
    SaleField.CUSTOMER_NAME: "customer_name",
    SaleField.PHONE_NUMBER: "phone_number",
    SaleField.GENDER: "gender",
    SaleField.AGE: "age",
    SaleField.CUSTOMER_REGION: "customer_region",
    SaleField.CUSTOMER_TYPE: "customer_type",
    SaleField.PRODUCT_ID: "product_id",
    SaleField.PRODUCT_NAME: "product_name",
    SaleField.BRAND: "brand",
    SaleField.PRODUCT_CATEGORY: "product_category",
    SaleField.TAGS: "tags",
    SaleField.QUANTITY: "quantity",
    SaleField.PRICE_PER_UNIT: "price_per_unit",
    SaleField.DISCOUNT_PERCENTAGE: "discount_percentage",
    SaleField.TOTAL_AMOUNT: "total_amount",
    SaleField.FINAL_AMOUNT: "final_amount",
    SaleField.DATE: "sold_at_utc",
    SaleField.PAYMENT_METHOD: "payment_method",
    SaleField.ORDER_STATUS: "order_status",
    SaleField.DELIVERY_TYPE: "delivery_type",
    SaleField.STORE_ID: "store_id",
    SaleField.STORE_LOCATION: "store_location",
    SaleField.SALESPERSON_ID: "salesperson_id",
    SaleField.EMPLOYEE_NAME: "employee_name",
}

# Fields not listed are TEXT.
_KINDS: dict[SaleField, FieldKind] = {
    SaleField.AGE: FieldKind.INTEGER,
    SaleField.TAGS: FieldKind.TEXT_ARRAY,
    SaleField.QUANTITY: FieldKind.INTEGER,
    SaleField.PRICE_PER_UNIT: FieldKind.NUMBER,
    SaleField.DISCOUNT_PERCENTAGE: FieldKind.NUMBER,
    SaleField.TOTAL_AMOUNT: FieldKind.NUMBER,
    SaleField.FINAL_AMOUNT: FieldKind.NUMBER,
    SaleField.DATE: FieldKind.TIMESTAMP,
}

# Free-text search matches either of these, case-insensitively.
SEARCH_FIELDS: tuple[SaleField, ...] = (SaleField.CUSTOMER_NAME, SaleField.PHONE_NUMBER)


__all__ = ["FieldKind", "SaleField", "SEARCH_FIELDS"]
