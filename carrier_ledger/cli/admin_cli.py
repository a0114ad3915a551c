"""
Admin CLI for the carrier ledger.

Usage:
    python -m carrier_ledger.cli.admin_cli init-schema
    python -m carrier_ledger.cli.admin_cli list-batches --domain <invoice|inventory> [--include-deleted]
    python -m carrier_ledger.cli.admin_cli batch-details --domain <domain> --batch-id <id>
    python -m carrier_ledger.cli.admin_cli delete-batch --batch-id <id>
    python -m carrier_ledger.cli.admin_cli diagnostics --batch-id <id>
    python -m carrier_ledger.cli.admin_cli import-mappings --carrier <name> --input <file_path>
    python -m carrier_ledger.cli.admin_cli add-mapping --carrier <name> --account <number> --department <name>
"""

import argparse
import sys
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

from carrier_ledger.approval.review import ReviewService
from carrier_ledger.batch.readers import FileReader
from carrier_ledger.cli.batch_cli import add_db_arguments, create_pool, create_spark_session
from carrier_ledger.core.carriers import Carrier, Domain, provider_key
from carrier_ledger.core.exceptions import CarrierLedgerError, UnsupportedProviderError
from carrier_ledger.core.models import DepartmentMapping, mappings_from_rows
from carrier_ledger.observability.logger import get_logger
from carrier_ledger.warehouse.audit import DiagnosticRepository
from carrier_ledger.warehouse.repositories import DepartmentMappingRepository
from carrier_ledger.warehouse.schema_mgmt import SchemaManager

logger = get_logger(__name__)


def format_timestamp(ts: datetime | str | None) -> str:
    """Format timestamp for display."""
    if isinstance(ts, str):
        return ts
    return ts.strftime("%Y-%m-%d %H:%M:%S") if ts else "N/A"


def resolve_carrier(name: str) -> Carrier:
    for carrier in Carrier:
        if carrier.key == provider_key(name):
            return carrier
    raise UnsupportedProviderError(name, kind="carrier")


def init_schema_command(args):
    """Create every ledger table that does not exist yet."""
    pool = create_pool(args)
    try:
        SchemaManager(pool).create_all()
        print(f"Schema ready: {', '.join(reversed(SchemaManager.table_names()))}")
    finally:
        pool.close()


def list_batches_command(args):
    """
    List batch histories of a domain, newest first.

    Args:
        args: Command line arguments
    """
    pool = create_pool(args)
    try:
        batches = ReviewService.for_database(pool, Domain(args.domain)).list_batches(
            include_deleted=args.include_deleted
        )

        if not batches:
            print(f"\nNo {args.domain} batches found")
            return

        print(f"\n{'=' * 110}")
        print(f"{'BATCH ID':<38} {'CARRIER':<18} {'STATUS':<18} {'UPLOADED':<20} FILE")
        print(f"{'=' * 110}")
        for batch in batches:
            deleted = " (deleted)" if batch.is_deleted else ""
            print(
                f"{batch.batch_id:<38} {batch.carrier:<18} {batch.status.value:<18} "
                f"{format_timestamp(batch.date_uploaded):<20} {batch.name or '-'}{deleted}"
            )
        print(f"\nTotal: {len(batches)}")
    finally:
        pool.close()


def batch_details_command(args):
    """
    Show an approved batch and its permanent records.

    Args:
        args: Command line arguments
    """
    pool = create_pool(args)
    try:
        batch, records = ReviewService.for_database(pool, Domain(args.domain)).approved_batch_details(
            args.batch_id
        )

        print(f"\n{'=' * 80}")
        print(f"BATCH {batch.batch_id}")
        print(f"{'=' * 80}")
        print(f"Carrier:      {batch.carrier}")
        print(f"File:         {batch.name or '-'} ({batch.file_type or '?'}, {batch.file_size or 0} bytes)")
        print(f"Uploaded:     {format_timestamp(batch.date_uploaded)} by {batch.uploaded_by or '-'}")
        print(f"Approved:     {format_timestamp(batch.reviewed_at)} by {batch.reviewed_by or '-'}")
        print(f"Records:      {len(records)}")
        for record in records[: args.limit]:
            print(f"  {record.model_dump_json(exclude={'created_at', 'updated_at'})}")

    except CarrierLedgerError as e:
        logger.error(f"Cannot show batch: {e}")
        sys.exit(1)
    finally:
        pool.close()


def delete_batch_command(args):
    """Soft-delete an invoice batch."""
    pool = create_pool(args)
    try:
        deleted = ReviewService.for_database(pool, Domain.INVOICE).delete_batch(args.batch_id)
        print(f"Batch {args.batch_id} deleted" if deleted else f"Batch {args.batch_id} was already deleted")
    except CarrierLedgerError as e:
        logger.error(f"Cannot delete batch: {e}")
        sys.exit(1)
    finally:
        pool.close()


def diagnostics_command(args):
    """
    Print the enrichment diagnostics recorded for a batch.

    Args:
        args: Command line arguments
    """
    pool = create_pool(args)
    try:
        diagnostics = DiagnosticRepository(pool).find_by_batch_id(args.batch_id)

        if not diagnostics:
            print(f"\nNo diagnostics for batch {args.batch_id}")
            return

        print(f"\n{'=' * 80}")
        print(f"DIAGNOSTICS FOR BATCH: {args.batch_id}")
        print(f"{'=' * 80}\n")
        for d in diagnostics:
            dropped = " [row dropped]" if d.row_dropped else ""
            print(f"Row {d.row_number} ({d.record_key or '-'}) {d.field_name}: {d.message}{dropped}")
        print(f"\nTotal: {len(diagnostics)}, dropped rows: {sum(1 for d in diagnostics if d.row_dropped)}")
    finally:
        pool.close()


def import_mappings_command(args):
    """
    Import account -> department mappings from a CSV file.

    Args:
        args: Command line arguments
    """
    input_path = Path(args.input)
    if not input_path.exists():
        logger.error(f"Input file not found: {args.input}")
        sys.exit(1)

    carrier = resolve_carrier(args.carrier)
    spark = create_spark_session("CarrierLedger-MappingImport")
    pool = None

    try:
        raw_file = FileReader(spark).read(str(input_path), "csv")
        mappings = mappings_from_rows(
            carrier, raw_file.rows, created_by=args.created_by, file_name=raw_file.filename
        )

        pool = create_pool(args)
        created, skipped = DepartmentMappingRepository(pool).create_many(mappings)

        print(f"\nImported {carrier.value} department mappings from {raw_file.filename}")
        print(f"  Rows read:  {len(raw_file.rows)}")
        print(f"  Created:    {created}")
        print(f"  Duplicates: {skipped}")
        print(f"  Skipped:    {len(raw_file.rows) - len(mappings)} (blank account or department)")
    finally:
        if pool is not None:
            pool.close()
        spark.stop()


def add_mapping_command(args):
    """Create a single department mapping."""
    pool = None
    try:
        carrier = resolve_carrier(args.carrier)
        mapping = DepartmentMapping(
            foundation_account_number=args.foundation_account,
            department_account_number=args.account,
            department=args.department,
            carrier=carrier.value,
            created_by=args.created_by,
        )
        pool = create_pool(args)
        mapping = DepartmentMappingRepository(pool).create(mapping)
        print(f"Created mapping {mapping.id}: {mapping.department_account_number} -> {mapping.department}")
    except CarrierLedgerError as e:
        logger.error(f"Cannot add mapping: {e}")
        sys.exit(1)
    finally:
        if pool is not None:
            pool.close()


def main():
    """Main CLI entry point."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Carrier ledger administration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    domain_choices = [d.value for d in Domain]

    init_parser = subparsers.add_parser("init-schema", help="Create ledger tables")
    add_db_arguments(init_parser)

    list_parser = subparsers.add_parser("list-batches", help="List batch histories")
    list_parser.add_argument("--domain", required=True, choices=domain_choices, help="Batch domain")
    list_parser.add_argument("--include-deleted", action="store_true", help="Include soft-deleted batches")
    add_db_arguments(list_parser)

    details_parser = subparsers.add_parser("batch-details", help="Show an approved batch")
    details_parser.add_argument("--domain", required=True, choices=domain_choices, help="Batch domain")
    details_parser.add_argument("--batch-id", required=True, help="Batch ID")
    details_parser.add_argument("--limit", type=int, default=50, help="Records to print (default: 50)")
    add_db_arguments(details_parser)

    delete_parser = subparsers.add_parser("delete-batch", help="Soft-delete an invoice batch")
    delete_parser.add_argument("--batch-id", required=True, help="Batch ID")
    add_db_arguments(delete_parser)

    diagnostics_parser = subparsers.add_parser("diagnostics", help="Show enrichment diagnostics of a batch")
    diagnostics_parser.add_argument("--batch-id", required=True, help="Batch ID")
    add_db_arguments(diagnostics_parser)

    import_parser = subparsers.add_parser("import-mappings", help="Import department mappings from CSV")
    import_parser.add_argument("--carrier", required=True, help="Carrier name")
    import_parser.add_argument("--input", required=True, help="Path to mapping CSV")
    import_parser.add_argument("--created-by", help="Importing user")
    add_db_arguments(import_parser)

    add_parser = subparsers.add_parser("add-mapping", help="Add one department mapping")
    add_parser.add_argument("--carrier", required=True, help="Carrier name")
    add_parser.add_argument("--account", required=True, help="Department account number")
    add_parser.add_argument("--department", required=True, help="Department name")
    add_parser.add_argument("--foundation-account", help="Foundation account number")
    add_parser.add_argument("--created-by", help="Creating user")
    add_db_arguments(add_parser)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        "init-schema": init_schema_command,
        "list-batches": list_batches_command,
        "batch-details": batch_details_command,
        "delete-batch": delete_batch_command,
        "diagnostics": diagnostics_command,
        "import-mappings": import_mappings_command,
        "add-mapping": add_mapping_command,
    }
    commands[args.command](args)


if __name__ == "__main__":
    main()
