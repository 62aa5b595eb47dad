#!/usr/bin/env python3
"""
CSV Sales Ingestion Script

Bulk-loads retail sale transactions from a CSV export into the Supabase
`sales` table with:
- Fixed column-to-field mapping with the dataset's default values
- Numeric-string cleaning ("₹1,200.50" -> 1200.50)
- Batched inserts (default 5000 rows); a failed batch is logged and dropped
  and the import continues (no rollback across batches)
- Summary statistics and error logging

A failure reading the file itself aborts the whole import.

Usage:
    python scripts/ingest_sales_csv.py data/sales_data.csv
    python scripts/ingest_sales_csv.py data/sales_data.csv --batch-size 1000 --dry-run
    python scripts/ingest_sales_csv.py --destroy
"""

from __future__ import annotations

import argparse
import csv
import json
import logging
import re
import sys
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional
from uuid import uuid4

# Add parent directory to path to import modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.errors import SalesError
from domain.sale import Customer, Operation, Product, SaleAmounts, SaleRecord
from domain.time import parse_utc_timestamp, utc_now
from repositories import sale_repository
from services.sale_service import new_transaction_id

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 5000

_NON_NUMERIC = re.compile(r"[^0-9.\-]+")


@dataclass
class IngestionResult:
    """Results from CSV ingestion operation."""
    total_rows: int = 0          # rows read from the file ("records processed")
    inserted: int = 0
    skipped: int = 0             # rows rejected by field validation
    failed_batches: int = 0
    failed_rows: int = 0         # rows lost with a dropped batch
    errors: list[dict] = field(default_factory=list)


def clean_number(value: Optional[str]) -> Decimal:
    """
    Parse a loosely formatted number, keeping only digits, '.' and '-'.

    Empty or unparseable input yields 0.
    """
    if not value:
        return Decimal("0")
    cleaned = _NON_NUMERIC.sub("", str(value))
    try:
        number = Decimal(cleaned)
    except InvalidOperation:
        return Decimal("0")
    return number if number.is_finite() else Decimal("0")


def clean_int(value: Optional[str]) -> int:
    return int(clean_number(value))


def parse_tags(value: Optional[str]) -> tuple[str, ...]:
    """Split a comma-separated tag list, dropping blanks."""
    return tuple(tag.strip() for tag in (value or "").split(",") if tag.strip())


def parse_sale_date(value: Optional[str]) -> datetime:
    """Parse the Date column; unparseable dates fall back to the ingestion time."""
    if value and value.strip():
        try:
            return parse_utc_timestamp(value)
        except ValueError:
            pass
    return utc_now()


def create_sale_from_row(row: dict[str, str]) -> SaleRecord:
    """
    Create a SaleRecord from a CSV row.

    Raises:
        ValidationError: the mapped values violate a field constraint

    Notes:
        - Missing text columns take the dataset defaults ('Unknown', 'N/A', ...)
        - Blank or zero Age is stored as absent
        - Transaction ID is generated when the column is empty
    """

    def get_field(key: str, default: Optional[str] = None) -> Optional[str]:
        value = (row.get(key) or "").strip()
        return value if value else default

    age = clean_int(row.get("Age"))

    return SaleRecord(
        sale_id=uuid4(),
        transaction_id=get_field("Transaction ID") or new_transaction_id(),
        customer=Customer(
            customer_id=get_field("Customer ID", "N/A"),
            customer_name=get_field("Customer Name", "Unknown"),
            phone_number=get_field("Phone Number"),
            gender=get_field("Gender", "Other"),
            age=age or None,
            customer_region=get_field("Customer Region", "Global"),
            customer_type=get_field("Customer Type", "Regular"),
        ),
        product=Product(
            product_id=get_field("Product ID", "N/A"),
            product_name=get_field("Product Name", "Unknown Product"),
            brand=get_field("Brand", "No Brand"),
            product_category=get_field("Product Category", "Misc"),
            tags=parse_tags(row.get("Tags")),
        ),
        sales=SaleAmounts(
            quantity=clean_int(row.get("Quantity")),
            price_per_unit=clean_number(row.get("Price per Unit")),
            discount_percentage=clean_number(row.get("Discount Percentage")),
            total_amount=clean_number(row.get("Total Amount")),
            final_amount=clean_number(row.get("Final Amount")),
        ),
        operation=Operation(
            date=parse_sale_date(row.get("Date")),
            payment_method=get_field("Payment Method", "Cash"),
            order_status=get_field("Order Status", "Delivered"),
            delivery_type=get_field("Delivery Type", "Standard Shipping"),
            store_id=get_field("Store ID", "000"),
            store_location=get_field("Store Location", "Central"),
            salesperson_id=get_field("Salesperson ID", "EMP000"),
            employee_name=get_field("Employee Name", "Staff"),
        ),
    )


def process_batch(batch: list[SaleRecord], dry_run: bool = False) -> tuple[int, Optional[str]]:
    """
    Insert one batch with a single bulk request.

    A store failure drops the whole batch: it is logged and reported, and
    ingestion carries on with the next batch.

    Returns:
        Tuple of (inserted_count, error_message or None)
    """
    if not batch:
        return 0, None

    if dry_run:
        return len(batch), None

    try:
        return sale_repository.insert_sales_bulk(batch), None
    except SalesError as exc:
        logger.warning("Dropping batch of %d rows: %s", len(batch), exc)
        return 0, str(exc)


def _flush(batch: list[SaleRecord], result: IngestionResult, first_row: int, dry_run: bool) -> None:
    inserted, error = process_batch(batch, dry_run)
    result.inserted += inserted
    if error is not None:
        result.failed_batches += 1
        result.failed_rows += len(batch)
        result.errors.append({
            "rows": f"{first_row}-{first_row + len(batch) - 1}",
            "error": f"Batch insert failed: {error}",
        })


def ingest_csv(
    csv_path: str,
    batch_size: int = DEFAULT_BATCH_SIZE,
    dry_run: bool = False
) -> IngestionResult:
    """
    Ingest sales from a CSV file into the database.

    Args:
        csv_path: Path to the CSV file
        batch_size: Number of rows per bulk insert
        dry_run: If True, parse and validate but don't insert

    Returns:
        IngestionResult with statistics and errors

    Raises:
        FileNotFoundError: If CSV file doesn't exist
        ValueError: If the CSV has no header row
        OSError, csv.Error, UnicodeDecodeError: the file could not be read;
            the import is aborted
    """
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")

    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    result = IngestionResult()

    print(f"Reading CSV: {csv_path}")
    print(f"Batch size: {batch_size}")
    print(f"Dry run: {dry_run}")
    print()

    with open(csv_file, "r", encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)

        if not reader.fieldnames:
            raise ValueError("CSV file is empty or malformed")

        batch: list[SaleRecord] = []
        batch_first_row = 2

        for row_num, row in enumerate(reader, start=2):  # Row 1 is header
            result.total_rows += 1

            try:
                sale = create_sale_from_row(row)
            except ValueError as exc:
                result.skipped += 1
                result.errors.append({
                    "row_num": row_num,
                    "error": f"Invalid row: {exc}",
                    "transaction_id": row.get("Transaction ID"),
                })
                continue

            if not batch:
                batch_first_row = row_num
            batch.append(sale)

            if len(batch) >= batch_size:
                _flush(batch, result, batch_first_row, dry_run)
                print(f"Processed {result.total_rows} rows "
                      f"({result.inserted} inserted, "
                      f"{result.failed_rows} in failed batches, "
                      f"{result.skipped} skipped)")
                batch = []

        # Process remaining batch
        if batch:
            _flush(batch, result, batch_first_row, dry_run)

    return result


def print_summary(result: IngestionResult) -> None:
    """Print ingestion summary statistics."""
    print()
    print("=" * 60)
    print("INGESTION SUMMARY")
    print("=" * 60)
    print(f"Records processed: {result.total_rows}")
    print(f"Inserted:          {result.inserted}")
    print(f"Skipped (invalid): {result.skipped}")
    print(f"Failed batches:    {result.failed_batches} ({result.failed_rows} rows)")
    print()

    if result.errors:
        print(f"Errors:            {len(result.errors)}")
        print()
        print("First 5 errors:")
        for error in result.errors[:5]:
            where = error.get("row_num") or error.get("rows", "N/A")
            print(f"  - Row {where}: {error['error']}")
        if len(result.errors) > 5:
            print(f"  ... and {len(result.errors) - 5} more")
    else:
        print("No errors!")

    print("=" * 60)


def save_error_log(errors: list[dict], output_path: str) -> None:
    """Save error details to JSON file."""
    if not errors:
        return

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(errors, f, indent=2, default=str)

    print(f"\nError log saved to: {output_path}")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Ingest retail sales from CSV into the Supabase database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Basic import
  python ingest_sales_csv.py data/sales_data.csv

  # Dry run (parse only, don't insert)
  python ingest_sales_csv.py data/sales_data.csv --dry-run

  # Smaller batches
  python ingest_sales_csv.py data/sales_data.csv --batch-size 1000

  # Delete every sale record
  python ingest_sales_csv.py --destroy
        """
    )

    parser.add_argument(
        "csv_path",
        nargs="?",
        help="Path to the CSV file to ingest"
    )

    parser.add_argument(
        "--batch-size",
        type=int,
        default=DEFAULT_BATCH_SIZE,
        help=f"Number of rows per bulk insert (default: {DEFAULT_BATCH_SIZE})"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and validate CSV without inserting to database"
    )

    parser.add_argument(
        "--error-log",
        default="ingestion_errors.json",
        help="Path to save error log (default: ingestion_errors.json)"
    )

    parser.add_argument(
        "--destroy",
        action="store_true",
        help="Delete every sale record instead of importing"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.destroy:
        try:
            removed = sale_repository.delete_all_sales()
        except SalesError as e:
            print(f"\nFATAL ERROR: {e}", file=sys.stderr)
            return 1
        print(f"Data destroyed: {removed} sale records deleted")
        return 0

    if not args.csv_path:
        parser.error("csv_path is required unless --destroy is given")

    try:
        print("Starting CSV ingestion...")
        print()

        result = ingest_csv(
            csv_path=args.csv_path,
            batch_size=args.batch_size,
            dry_run=args.dry_run,
        )

        print_summary(result)

        if result.errors:
            save_error_log(result.errors, args.error_log)

        # Exit code based on results
        if result.failed_batches > 0 or result.skipped > 0:
            return 1  # Partial import
        return 0

    except KeyboardInterrupt:
        print("\n\nIngestion interrupted by user")
        return 130

    except Exception as e:
        print(f"\nFATAL ERROR: {e}", file=sys.stderr)
        logger.exception("Ingestion aborted")
        return 1


if __name__ == "__main__":
    sys.exit(main())
