"""
Per-ingestion collection of row-level enrichment diagnostics.

A DiagnosticRecorder is created for each ingestion call. Every diagnostic is
logged as a structured warning and counted in Prometheus immediately, and
kept in memory until the pipeline persists it with the staged records.
"""

from carrier_ledger.core.models.diagnostic import EnrichmentDiagnostic
from carrier_ledger.observability.logger import get_logger
from carrier_ledger.observability.metrics import enrichment_diagnostics_total, increment_counter

logger = get_logger(__name__)


class DiagnosticRecorder:
    """
    Collects EnrichmentDiagnostic entries for one ingestion call.

    Usage:
        recorder = DiagnosticRecorder("AT&T Mobility", "invoice", "att_may.csv", batch_id)
        recorder.record(row_number=3, field_name="invoice_number",
                        message="Account number 'abc' is not numeric")
        diagnostics = recorder.drain()
    """

    def __init__(
        self,
        provider: str,
        domain: str,
        source_filename: str | None = None,
        batch_id: str | None = None,
    ):
        self.provider = provider
        self.domain = domain
        self.source_filename = source_filename
        self.batch_id = batch_id
        self._pending: list[EnrichmentDiagnostic] = []

    @property
    def diagnostics(self) -> list[EnrichmentDiagnostic]:
        return list(self._pending)

    @property
    def dropped_rows(self) -> int:
        return sum(1 for d in self._pending if d.row_dropped)

    def record(
        self,
        row_number: int,
        field_name: str,
        message: str,
        record_key: str | None = None,
        row_dropped: bool = False,
    ) -> EnrichmentDiagnostic:
        """
        Record one row-level problem.

        Args:
            row_number: 1-based data row number
            field_name: Field concerned ("row" for whole-row failures)
            message: What went wrong
            record_key: Business key of the record, if known
            row_dropped: Whether the row is excluded from the staged set

        Returns:
            The recorded diagnostic
        """
        diagnostic = EnrichmentDiagnostic(
            batch_id=self.batch_id,
            provider=self.provider,
            domain=self.domain,
            source_filename=self.source_filename,
            row_number=row_number,
            record_key=record_key,
            field_name=field_name,
            message=message,
            row_dropped=row_dropped,
        )
        self._pending.append(diagnostic)

        logger.warning(
            f"{self.provider} {self.domain} row {row_number}: {message}",
            extra={
                "provider": self.provider,
                "domain": self.domain,
                "batch_id": self.batch_id,
                "source_filename": self.source_filename,
                "row_number": row_number,
                "record_key": record_key,
                "field_name": field_name,
                "row_dropped": row_dropped,
            },
        )
        increment_counter(
            enrichment_diagnostics_total,
            provider=self.provider,
            domain=self.domain,
            field_name=field_name,
        )
        return diagnostic

    def drain(self) -> list[EnrichmentDiagnostic]:
        """Return and clear the collected diagnostics."""
        drained, self._pending = self._pending, []
        return drained
