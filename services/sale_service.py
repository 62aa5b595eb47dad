"""
Sale record service (create, read, update, delete).

Field validation happens when a SaleRecord is constructed (see domain.sale);
this layer assigns identity, turns "no such row" into NotFound and otherwise
lets repository errors propagate.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from uuid import UUID, uuid4

from domain.errors import NotFound
from domain.sale import SaleRecord
from repositories import sale_repository

logger = logging.getLogger(__name__)


def new_transaction_id() -> str:
    return uuid4().hex


def create_sale(record: SaleRecord) -> SaleRecord:
    """
    Persist a new sale.

    Assigns a fresh sale_id and, when the record has none, a generated
    transactionId. Raises ValidationError if the transactionId is taken.
    """

    to_insert = replace(
        record,
        sale_id=uuid4(),
        transaction_id=record.transaction_id or new_transaction_id(),
        created_at=None,
        updated_at=None,
    )
    created = sale_repository.insert_sale(to_insert)
    logger.info("Created sale %s (transaction %s)", created.sale_id, created.transaction_id)
    return created


def get_sale(sale_id: UUID) -> SaleRecord:
    sale = sale_repository.get_sale_by_id(sale_id)
    if sale is None:
        raise NotFound(sale_id)
    return sale


def update_sale(sale_id: UUID, record: SaleRecord) -> SaleRecord:
    """Replace the whole sale document. Raises NotFound if `sale_id` does not exist."""

    updated = sale_repository.replace_sale(sale_id, replace(record, sale_id=None, created_at=None, updated_at=None))
    if updated is None:
        raise NotFound(sale_id)
    logger.info("Updated sale %s", sale_id)
    return updated


def delete_sale(sale_id: UUID) -> None:
    """Delete immediately and permanently. Raises NotFound if `sale_id` does not exist."""

    if not sale_repository.delete_sale(sale_id):
        raise NotFound(sale_id)
    logger.info("Deleted sale %s", sale_id)


__all__ = ["new_transaction_id", "create_sale", "get_sale", "update_sale", "delete_sale"]
