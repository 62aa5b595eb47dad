"""
Sales query service: paged listing and summary totals.

Both operations build their predicate through services.query_builder with
the same (search, filters) inputs, so a summary always describes exactly the
records the listing pages through.

Consistency:
- The page fetch and the total count run concurrently and are NOT wrapped in
  a snapshot. Under concurrent writes `total_docs` and the returned page may
  reflect slightly different points in time.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Mapping, Optional

from domain.fields import SaleField
from domain.query import (
    FilterValue,
    PaginationMeta,
    QuerySpec,
    SalesPage,
    SortOrder,
    SummaryTotals,
)
from repositories import sale_repository
from services.query_builder import build_predicate

logger = logging.getLogger(__name__)

# Newest first when the caller does not choose a sort field.
DEFAULT_SORT = SortOrder(field=SaleField.DATE, descending=True)


def resolve_sort(spec: QuerySpec) -> SortOrder:
    """Explicit sort field (ascending unless descending is requested), else DEFAULT_SORT."""

    if spec.sort_field is None:
        return DEFAULT_SORT
    return SortOrder(field=spec.sort_field, descending=spec.sort_descending)


def paginate(total_docs: int, page: int, page_size: int) -> PaginationMeta:
    """
    Pagination metadata for `total_docs` matches.

    Pages past the end are not clamped: `current_page` echoes the request.
    """

    total_pages = -(-total_docs // page_size)  # ceil without floats
    return PaginationMeta(
        total_docs=total_docs,
        total_pages=total_pages,
        current_page=page,
        limit=page_size,
        has_next_page=page < total_pages,
        has_prev_page=page > 1,
    )


def list_sales(spec: QuerySpec) -> SalesPage:
    """
    Return one page of matching sale records plus pagination metadata.

    A page beyond the last one is returned empty with true totals.
    """

    predicate = build_predicate(spec.search_text, spec.filters)
    sort = resolve_sort(spec)
    offset = (spec.page - 1) * spec.page_size

    logger.debug(
        "Listing sales: page=%d size=%d sort=%s desc=%s",
        spec.page,
        spec.page_size,
        sort.field.value,
        sort.descending,
    )

    with ThreadPoolExecutor(max_workers=2) as pool:
        page_future = pool.submit(sale_repository.find_sales, predicate, sort, offset, spec.page_size)
        count_future = pool.submit(sale_repository.count_sales, predicate)
        records = page_future.result()
        total_docs = count_future.result()

    return SalesPage(
        records=records,
        pagination=paginate(total_docs, spec.page, spec.page_size),
    )


def summarize_sales(
    search_text: Optional[str],
    filters: Optional[Mapping[SaleField, Optional[FilterValue]]],
) -> SummaryTotals:
    """
    Totals over every record matching the search and filters (not just one page).

    Returns all-zero totals when nothing matches.
    """

    predicate = build_predicate(search_text, filters)
    totals = sale_repository.summarize_sales(predicate)
    logger.debug("Summarized %d sale records", totals.total_records)
    return totals


__all__ = ["DEFAULT_SORT", "resolve_sort", "paginate", "list_sales", "summarize_sales"]
