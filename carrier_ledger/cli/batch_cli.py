"""
Command-line interface for carrier file ingestion and batch review.

Usage:
    python -m carrier_ledger.cli.batch_cli ingest --provider <name> --domain <invoice|inventory> --input <file_path>
    python -m carrier_ledger.cli.batch_cli review --domain <domain> --batch-id <id> --action <approve|reject> --reviewed-by <user>
    python -m carrier_ledger.cli.batch_cli pending --domain <domain> --batch-id <id>
"""

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv
from pyspark.sql import SparkSession

from carrier_ledger.approval.review import ReviewService
from carrier_ledger.batch.pipeline import IngestionPipeline
from carrier_ledger.batch.readers import FileReader
from carrier_ledger.core.carriers import Domain
from carrier_ledger.core.exceptions import CarrierLedgerError
from carrier_ledger.core.rules import ProviderHeaderConfig
from carrier_ledger.core.rules.enrichment import invoice_numbers_from_rows
from carrier_ledger.observability.logger import get_logger
from carrier_ledger.observability.metrics import start_metrics_server
from carrier_ledger.warehouse.connection import DatabaseConnectionPool

logger = get_logger(__name__)


def create_spark_session(app_name: str = "CarrierLedger") -> SparkSession:
    """
    Create a local Spark session for reading uploads.

    Args:
        app_name: Application name

    Returns:
        SparkSession
    """
    spark = SparkSession.builder \
        .appName(app_name) \
        .master("local[*]") \
        .config("spark.sql.adaptive.enabled", "true") \
        .getOrCreate()

    return spark


def add_db_arguments(parser: argparse.ArgumentParser) -> None:
    """Database connection flags; unset flags fall back to DB_* env vars."""
    parser.add_argument("--db-host", help="Database host (default: $DB_HOST or localhost)")
    parser.add_argument("--db-port", type=int, help="Database port (default: $DB_PORT or 5432)")
    parser.add_argument("--db-name", help="Database name (default: $DB_NAME or carrier_ledger)")
    parser.add_argument("--db-user", help="Database user (default: $DB_USER or ledger)")
    parser.add_argument("--db-password", help="Database password (default: $DB_PASSWORD)")


def create_pool(args) -> DatabaseConnectionPool:
    pool = DatabaseConnectionPool(
        host=args.db_host,
        port=args.db_port,
        database=args.db_name,
        user=args.db_user,
        password=args.db_password,
    )
    pool.open()
    return pool


def ingest_command(args):
    """
    Ingest one carrier file as a batch pending review.

    Args:
        args: Command-line arguments
    """
    input_path = Path(args.input)
    if not input_path.exists():
        logger.error(f"Input file not found: {args.input}")
        sys.exit(1)

    domain = Domain(args.domain)
    logger.info(f"Ingesting {args.provider} {domain.value} file: {args.input}")

    spark = create_spark_session(f"CarrierLedger-{domain.value}")
    pool = None

    try:
        pool = create_pool(args)
        header_config = ProviderHeaderConfig(args.headers_config) if args.headers_config else ProviderHeaderConfig()
        pipeline = IngestionPipeline.for_database(pool, domain, spark=spark, header_config=header_config)

        invoice_numbers = None
        if args.invoice_numbers:
            lookup_file = FileReader(spark).read(args.invoice_numbers, "csv")
            invoice_numbers = invoice_numbers_from_rows(lookup_file.rows)
            logger.info(f"Loaded {len(invoice_numbers)} invoice numbers from {lookup_file.filename}")

        batch = pipeline.ingest_file(
            str(input_path),
            args.provider,
            uploaded_by=args.uploaded_by,
            file_format=args.format,
            invoice_numbers=invoice_numbers,
        )
        diagnostics = ReviewService.for_database(pool, domain).diagnostics(batch.batch_id)

        print(f"\n{'=' * 60}")
        print("INGESTION COMPLETE")
        print(f"{'=' * 60}")
        print(f"Batch ID:    {batch.batch_id}")
        print(f"Carrier:     {batch.carrier}")
        print(f"File:        {batch.name}")
        print(f"Status:      {batch.status.value}")
        print(f"Diagnostics: {len(diagnostics)}")
        for diagnostic in diagnostics[: args.show_diagnostics]:
            print(f"  row {diagnostic.row_number} [{diagnostic.field_name}] {diagnostic.message}")
        print(f"{'=' * 60}")

    except CarrierLedgerError as e:
        logger.error(f"Ingestion failed: {e}")
        sys.exit(1)
    finally:
        if pool is not None:
            pool.close()
        spark.stop()


def review_command(args):
    """
    Approve or reject a pending batch.

    Args:
        args: Command-line arguments
    """
    domain = Domain(args.domain)
    pool = create_pool(args)

    try:
        service = ReviewService.for_database(pool, domain)
        batch = service.decide(
            args.batch_id,
            args.action.upper(),
            args.reviewed_by,
            rejection_reason=args.reason,
        )

        print(f"\nBatch {batch.batch_id} is now {batch.status.value}")
        print(f"Reviewed by: {batch.reviewed_by} at {batch.reviewed_at}")
        if batch.rejection_reason:
            print(f"Reason: {batch.rejection_reason}")

    except CarrierLedgerError as e:
        logger.error(f"Review failed: {e}")
        sys.exit(1)
    finally:
        pool.close()


def pending_command(args):
    """
    Show the staged records of a batch.

    Args:
        args: Command-line arguments
    """
    domain = Domain(args.domain)
    pool = create_pool(args)

    try:
        records = ReviewService.for_database(pool, domain).pending_for_review(args.batch_id)

        if not records:
            print(f"\nNo staged records for batch {args.batch_id}")
            return

        print(f"\n{len(records)} staged records for batch {args.batch_id}\n")
        for record in records[: args.limit]:
            print(f"  {record.business_key or '-':<24} {record.business_fields()}")

    except CarrierLedgerError as e:
        logger.error(f"Cannot list pending records: {e}")
        sys.exit(1)
    finally:
        pool.close()


def main():
    """Main CLI entry point."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Carrier invoice and inventory ingestion with staged review",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Ingest an AT&T invoice export
  python -m carrier_ledger.cli.batch_cli ingest --provider "AT&T Mobility" \\
      --domain invoice --input data/att_may.csv --uploaded-by billing.ops

  # Approve the batch
  python -m carrier_ledger.cli.batch_cli review --domain invoice \\
      --batch-id <id> --action approve --reviewed-by controller

  # Reject it instead
  python -m carrier_ledger.cli.batch_cli review --domain invoice \\
      --batch-id <id> --action reject --reviewed-by controller --reason "Wrong month"
        """
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        help="Expose Prometheus metrics on this port while the command runs"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    domain_choices = [d.value for d in Domain]

    # Ingest command
    ingest_parser = subparsers.add_parser("ingest", help="Ingest a carrier file")
    ingest_parser.add_argument("--provider", required=True, help="Carrier name (case-insensitive)")
    ingest_parser.add_argument("--domain", required=True, choices=domain_choices, help="File domain")
    ingest_parser.add_argument("--input", required=True, help="Path to input file")
    ingest_parser.add_argument("--uploaded-by", help="Uploader identity")
    ingest_parser.add_argument(
        "--format",
        default="csv",
        choices=["csv", "json"],
        help="Input file format (default: csv)"
    )
    ingest_parser.add_argument(
        "--headers-config",
        help="Path to provider headers YAML (default: the packaged carrier_ledger/config/provider_headers.yaml)"
    )
    ingest_parser.add_argument(
        "--invoice-numbers",
        help="CSV of account number, invoice number pairs from the invoice bundle (FirstNet invoices)"
    )
    ingest_parser.add_argument(
        "--show-diagnostics",
        type=int,
        default=20,
        help="Number of diagnostics to print (default: 20)"
    )
    add_db_arguments(ingest_parser)

    # Review command
    review_parser = subparsers.add_parser("review", help="Approve or reject a batch")
    review_parser.add_argument("--domain", required=True, choices=domain_choices, help="Batch domain")
    review_parser.add_argument("--batch-id", required=True, help="Batch ID")
    review_parser.add_argument("--action", required=True, choices=["approve", "reject"], help="Decision")
    review_parser.add_argument("--reviewed-by", required=True, help="Reviewer identity")
    review_parser.add_argument("--reason", help="Rejection reason (required to reject)")
    add_db_arguments(review_parser)

    # Pending command
    pending_parser = subparsers.add_parser("pending", help="Show staged records of a batch")
    pending_parser.add_argument("--domain", required=True, choices=domain_choices, help="Batch domain")
    pending_parser.add_argument("--batch-id", required=True, help="Batch ID")
    pending_parser.add_argument("--limit", type=int, default=50, help="Records to print (default: 50)")
    add_db_arguments(pending_parser)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.metrics_port:
        start_metrics_server(args.metrics_port)

    if args.command == "ingest":
        ingest_command(args)
    elif args.command == "review":
        review_command(args)
    elif args.command == "pending":
        pending_command(args)


if __name__ == "__main__":
    main()
