"""
Domain: error kinds.

Every failure the query layer or the CRUD services can raise derives from
`SalesError`. The HTTP layer maps each kind to a status code; nothing below
the API swallows these.
"""

from __future__ import annotations

from typing import Optional


class SalesError(Exception):
    """Base class for sales-browser errors."""


class InvalidQueryParameter(SalesError):
    """A query parameter (sort field, sort order, ...) could not be accepted."""


class InvalidFilterSyntax(InvalidQueryParameter):
    """The `filter` parameter is malformed JSON or names an unusable field/shape."""


class ValidationError(SalesError, ValueError):
    """
    A sale record violates a field constraint.

    `field` is the dotted wire path of the offending field, e.g. `customer.age`.
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class NotFound(SalesError):
    """The addressed sale record does not exist."""

    def __init__(self, sale_id: Optional[object] = None) -> None:
        detail = f"Sale record not found: {sale_id}" if sale_id is not None else "Sale record not found"
        super().__init__(detail)
        self.sale_id = sale_id


class StoreUnavailable(SalesError, RuntimeError):
    """The document store could not be reached or rejected the request."""


__all__ = [
    "SalesError",
    "InvalidQueryParameter",
    "InvalidFilterSyntax",
    "ValidationError",
    "NotFound",
    "StoreUnavailable",
]
