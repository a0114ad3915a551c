"""
Ingestion pipeline: raw carrier rows -> batch history + staged records.
"""

import time
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from carrier_ledger.batch.processors import build_processor_registry
from carrier_ledger.batch.readers import FileReader
from carrier_ledger.core.carriers import Domain
from carrier_ledger.core.exceptions import CarrierLedgerError, EmptyFileError, IngestionError
from carrier_ledger.core.models import BatchHistory
from carrier_ledger.core.registry import ProviderRegistry
from carrier_ledger.core.rules import ProviderHeaderConfig
from carrier_ledger.core.rules.enrichment import is_blank
from carrier_ledger.observability.diagnostics import DiagnosticRecorder
from carrier_ledger.observability.logger import get_logger, log_operation
from carrier_ledger.observability.metrics import (
    batches_ingested_total,
    increment_counter,
    ingestion_duration_seconds,
    record_ingestion,
)

logger = get_logger(__name__)


class IngestionPipeline:
    """
    Creates a PENDING_APPROVAL batch from one upload and stages its rows.

    The batch history, its staged records and its diagnostics are written
    in a single transaction: an ingestion either completes or leaves
    nothing behind.
    """

    def __init__(
        self,
        domain: Domain,
        transactions,
        histories,
        processors: ProviderRegistry,
        diagnostics,
        mappings=None,
        reader: FileReader | None = None,
        header_config: ProviderHeaderConfig | None = None,
    ):
        """
        Args:
            domain: invoice or inventory
            transactions: Transaction provider (the connection pool)
            histories: Batch history repository of the domain
            processors: Processor registry of the domain
            diagnostics: Diagnostic repository
            mappings: Department mapping repository, used when no mapping is passed to ingest()
            reader: File reader for ingest_file()
            header_config: Expected headers checked by ingest_file()
        """
        self.domain = domain
        self.transactions = transactions
        self.histories = histories
        self.processors = processors
        self.diagnostics = diagnostics
        self.mappings = mappings
        self.reader = reader
        self.header_config = header_config

    @classmethod
    def for_database(
        cls,
        pool,
        domain: Domain,
        spark=None,
        header_config: ProviderHeaderConfig | None = None,
    ) -> "IngestionPipeline":
        """Pipeline backed by the PostgreSQL repositories."""
        from carrier_ledger.warehouse.audit import DiagnosticRepository
        from carrier_ledger.warehouse.repositories import (
            BatchHistoryRepository,
            DepartmentMappingRepository,
            RecordRepository,
        )

        return cls(
            domain=domain,
            transactions=pool,
            histories=BatchHistoryRepository(pool, domain),
            processors=build_processor_registry(domain, lambda model: RecordRepository(pool, model)),
            diagnostics=DiagnosticRepository(pool),
            mappings=DepartmentMappingRepository(pool),
            reader=FileReader(spark) if spark is not None else None,
            header_config=header_config,
        )

    def ingest(
        self,
        provider_name: str,
        raw_rows: Iterable[Mapping[str, Any]],
        department_mapping: Mapping[str, str] | None = None,
        filename: str | None = None,
        uploaded_by: str | None = None,
        file_type: str | None = None,
        file_size: int | None = None,
        invoice_numbers: Mapping[str, str] | None = None,
    ) -> BatchHistory:
        """
        Ingest raw rows as a new batch awaiting review.

        Args:
            provider_name: Carrier name (case-insensitive)
            raw_rows: Ordered header -> value rows in file order
            department_mapping: Account number -> department; loaded from the
                mapping repository when None
            filename: Uploaded filename
            uploaded_by: Who triggered the ingestion
            file_type: Uploaded file type
            file_size: Uploaded file size in bytes
            invoice_numbers: Account number -> invoice number from the invoice
                bundle (FirstNet invoices); replaces the derived invoice numbers

        Returns:
            The created batch history (PENDING_APPROVAL)

        Raises:
            UnsupportedProviderError: Before any batch is created
            EmptyFileError: If there are no rows at all
            IngestionError: If the batch could not be stored, or (before any
                batch is created) if an invoice number lookup is empty or not
                taken by the provider
        """
        processor = self.processors.resolve(provider_name)
        provider = processor.provider_name()

        rows = list(raw_rows)
        if not rows:
            raise EmptyFileError(filename)

        if department_mapping is None:
            department_mapping = self.mappings.department_mapping(provider) if self.mappings else {}
        lookup = MappingProxyType(dict(department_mapping))
        invoice_lookup = self._invoice_number_lookup(processor, invoice_numbers)

        history = BatchHistory(
            domain=self.domain,
            carrier=provider,
            name=filename,
            file_type=file_type,
            file_size=file_size,
            uploaded_by=uploaded_by,
        )
        recorder = DiagnosticRecorder(provider, self.domain.value, filename, history.batch_id)

        start = time.time()
        try:
            with log_operation(
                f"Ingest {provider} {self.domain.value} file",
                logger=logger,
                batch_id=history.batch_id,
                source_filename=filename,
            ):
                with self.transactions.transaction() as conn:
                    self.histories.create(history, conn=conn)
                    staged = processor.process(
                        rows, history, lookup, filename,
                        diagnostics=recorder, invoice_numbers=invoice_lookup,
                    )
                    processor.save(staged, conn=conn)
                    diagnostics = recorder.drain()
                    self.diagnostics.save_all(diagnostics, conn=conn)
        except CarrierLedgerError:
            increment_counter(batches_ingested_total, provider=provider, domain=self.domain.value, status="failure")
            raise
        except Exception as e:
            increment_counter(batches_ingested_total, provider=provider, domain=self.domain.value, status="failure")
            raise IngestionError(f"Failed to ingest {filename} for {provider}: {e}") from e

        dropped = sum(1 for d in diagnostics if d.row_dropped)
        record_ingestion(
            provider,
            self.domain.value,
            staged_rows=len(staged),
            empty_rows=len(rows) - len(staged) - dropped,
            dropped_rows=dropped,
        )
        ingestion_duration_seconds.labels(provider=provider, domain=self.domain.value).observe(time.time() - start)

        logger.info(
            f"Batch {history.batch_id} staged {len(staged)} of {len(rows)} rows "
            f"with {len(diagnostics)} diagnostics",
            extra={"batch_id": history.batch_id, "carrier": provider},
        )
        return history

    @staticmethod
    def _invoice_number_lookup(processor, invoice_numbers: Mapping[str, str] | None):
        if invoice_numbers is None:
            return None
        if not processor.accepts_invoice_numbers:
            raise IngestionError(
                f"{processor.provider_name()} {processor.domain} uploads do not take invoice numbers"
            )
        lookup = {
            str(account).strip(): str(number).strip()
            for account, number in invoice_numbers.items()
            if not is_blank(account) and not is_blank(number)
        }
        if not lookup:
            raise IngestionError("No account numbers with invoice numbers were supplied.")
        return MappingProxyType(lookup)

    def ingest_file(
        self,
        file_path: str,
        provider_name: str,
        uploaded_by: str | None = None,
        file_format: str = "csv",
        invoice_numbers: Mapping[str, str] | None = None,
    ) -> BatchHistory:
        """
        Read a file, check its headers and ingest it.

        Raises:
            UnsupportedProviderError: If the provider is not supported
            MissingHeadersError: If expected headers are absent
            RuntimeError: If the pipeline has no file reader
        """
        if self.reader is None:
            raise RuntimeError("IngestionPipeline has no file reader; pass a Spark session")

        self.processors.resolve(provider_name)
        raw_file = self.reader.read(file_path, file_format)
        logger.info(f"Read {len(raw_file.rows)} rows from {raw_file.filename}")

        if self.header_config is not None:
            self.header_config.validate_headers(provider_name, self.domain, raw_file.headers)

        return self.ingest(
            provider_name,
            raw_file.rows,
            filename=raw_file.filename,
            uploaded_by=uploaded_by,
            file_type=raw_file.file_type,
            file_size=raw_file.file_size,
            invoice_numbers=invoice_numbers,
        )
