"""
Sales API Endpoints.

Listing, summary and CRUD endpoints over sale transactions. Query parameters
are parsed into domain values here (see api.query_params); domain errors
propagate to the exception handlers registered in api.main.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, status

from api.models import (
    ErrorResponse,
    PaginationResponse,
    SaleEnvelope,
    SaleListEnvelope,
    SaleRecordRequest,
    SaleResponse,
    SummaryEnvelope,
    SummaryResponse,
)
from api.query_params import parse_filter_param, parse_limit, parse_page, parse_sort
from domain.errors import NotFound
from domain.query import QuerySpec
from services import sale_service, sales_query_service

router = APIRouter()

_ERRORS = {
    400: {"model": ErrorResponse, "description": "Invalid query parameter or record"},
    500: {"model": ErrorResponse, "description": "Store failure"},
}


def _parse_sale_id(sale_id: str) -> UUID:
    # A malformed id cannot name an existing record.
    try:
        return UUID(sale_id)
    except ValueError:
        raise NotFound(sale_id) from None


@router.get(
    "/sales",
    response_model=SaleListEnvelope,
    responses=_ERRORS,
    summary="Query Sales",
    description="Search, filter, sort and paginate sale transactions."
)
def get_sales(
    search: Optional[str] = Query(None, description="Case-insensitive match on customer name or phone number"),
    filter: Optional[str] = Query(None, description='JSON object of field path -> filter, e.g. {"customer.age": {"$gte": 25}}'),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="Field path to sort by (default: operation.date, newest first)"),
    sort_order: Optional[str] = Query(None, alias="sortOrder", description="'asc' (default when sortBy is given) or 'desc'"),
    page: Optional[str] = Query(None, description="1-based page number (default 1)"),
    limit: Optional[str] = Query(None, description="Page size (default 10)"),
):
    """
    Query sale transactions.

    **Filter shapes** (keys are record field paths):
    - multi-select: `{"product.productCategory": ["Beauty", "Books"]}`
    - tags (any of): `{"product.tags": ["organic", "bestseller"]}`
    - range: `{"customer.age": {"$gte": 25, "$lte": 40}}`
    - date range: `{"operation.date": {"$gte": "2023-01-01", "$lte": "2023-12-31"}}`
    - exact: `{"operation.orderStatus": "Delivered"}`

    **Example usage:**
    - `GET /api/sales?search=neha&page=2&limit=20`
    - `GET /api/sales?sortBy=sales.quantity&sortOrder=desc`
    """
    filters = parse_filter_param(filter)
    sort_field, sort_descending = parse_sort(sort_by, sort_order)

    spec = QuerySpec(
        search_text=search,
        filters=filters,
        sort_field=sort_field,
        sort_descending=sort_descending,
        page=parse_page(page),
        page_size=parse_limit(limit),
    )
    result = sales_query_service.list_sales(spec)

    return SaleListEnvelope(
        success=True,
        message="Sales data retrieved successfully.",
        data=[SaleResponse.from_domain(record) for record in result.records],
        pagination=PaginationResponse.from_domain(result.pagination),
    )


@router.get(
    "/sales/summary",
    response_model=SummaryEnvelope,
    responses=_ERRORS,
    summary="Sales Summary",
    description="Total units, amount, discount and record count over every matching sale."
)
def get_sales_summary(
    search: Optional[str] = Query(None, description="Same as GET /sales"),
    filter: Optional[str] = Query(None, description="Same as GET /sales"),
):
    """
    Summary totals for the same search and filters used by the listing.

    Sorting and pagination do not apply; totals cover all matching records.
    """
    filters = parse_filter_param(filter)
    totals = sales_query_service.summarize_sales(search, filters)

    return SummaryEnvelope(
        success=True,
        message="Sales summary retrieved successfully.",
        data=SummaryResponse.from_domain(totals),
    )


@router.post(
    "/sales",
    response_model=SaleEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
    summary="Create Sale",
)
def create_sale(request: SaleRecordRequest):
    """Create a sale record. `transactionId` is generated when omitted."""
    created = sale_service.create_sale(request.to_domain())
    return SaleEnvelope(
        success=True,
        message="Sale record created successfully",
        data=SaleResponse.from_domain(created),
    )


@router.get(
    "/sales/{sale_id}",
    response_model=SaleEnvelope,
    responses={404: {"model": ErrorResponse, "description": "Sale not found"}, **_ERRORS},
    summary="Get Sale",
)
def get_sale(sale_id: str):
    sale = sale_service.get_sale(_parse_sale_id(sale_id))
    return SaleEnvelope(
        success=True,
        message="Sale record retrieved successfully",
        data=SaleResponse.from_domain(sale),
    )


@router.put(
    "/sales/{sale_id}",
    response_model=SaleEnvelope,
    responses={404: {"model": ErrorResponse, "description": "Sale not found"}, **_ERRORS},
    summary="Replace Sale",
)
def update_sale(sale_id: str, request: SaleRecordRequest):
    """Replace the whole sale document (same validation as create)."""
    updated = sale_service.update_sale(_parse_sale_id(sale_id), request.to_domain())
    return SaleEnvelope(
        success=True,
        message="Sale record updated successfully",
        data=SaleResponse.from_domain(updated),
    )


@router.delete(
    "/sales/{sale_id}",
    response_model=SaleEnvelope,
    responses={404: {"model": ErrorResponse, "description": "Sale not found"}, **_ERRORS},
    summary="Delete Sale",
)
def delete_sale(sale_id: str):
    """Delete a sale record immediately; this cannot be undone."""
    sale_service.delete_sale(_parse_sale_id(sale_id))
    return SaleEnvelope(success=True, message="Sale record deleted successfully")
