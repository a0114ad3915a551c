"""
Processor skeleton shared by every carrier.

Per row: skip blanks -> normalize headers -> apply header aliases ->
carrier row preparation -> type conversion -> derived fields ->
department resolution -> batch/filename/status stamping.
"""

from abc import ABC
from dataclasses import dataclass
from datetime import date
from typing import Any, ClassVar, Iterable, Mapping, get_args

from carrier_ledger.core.exceptions import EnrichmentError
from carrier_ledger.core.models import BatchHistory, StagedRecord
from carrier_ledger.core.rules.enrichment import is_blank_row, lookup_department, parse_date
from carrier_ledger.core.rules.normalizer import RowNormalizer, header_key
from carrier_ledger.observability.diagnostics import DiagnosticRecorder
from carrier_ledger.observability.logger import get_logger

logger = get_logger(__name__)

INVENTORY_DATE_FORMATS = ("%m-%d-%Y", "%m/%d/%Y", "%m/%d/%y", "%Y-%m-%d")


def _cell(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _is_date_field(annotation) -> bool:
    return annotation is date or date in get_args(annotation)


@dataclass
class RowContext:
    """Where a row came from, for diagnostics."""

    recorder: DiagnosticRecorder
    row_number: int
    record_key: str | None = None
    invoice_numbers: Mapping[str, str] | None = None

    def warn(self, field_name: str, message: str, record: StagedRecord | None = None) -> None:
        key = record.business_key if record is not None else self.record_key
        self.recorder.record(self.row_number, field_name, message, record_key=key)


class BaseProcessor(ABC):
    """
    Turns raw rows of one carrier export into staged records.

    Subclasses declare their schema and rule table as class attributes and
    override prepare_row / derive_fields where the carrier needs it.
    """

    staged_model: ClassVar[type[StagedRecord]]
    normalizer: ClassVar[RowNormalizer]
    header_aliases: ClassVar[Mapping[str, str]] = {}
    date_formats: ClassVar[tuple[str, ...]] = ("%m/%d/%Y",)
    department_key: ClassVar[str]
    derived_fields: ClassVar[frozenset[str]] = frozenset()
    # Strict processors drop a row whose values do not convert to the schema types
    strict_conversion: ClassVar[bool] = False
    # Processors that take an account -> invoice number lookup at ingestion
    accepts_invoice_numbers: ClassVar[bool] = False

    def __init__(self, repository):
        """
        Args:
            repository: Staged-record repository for this carrier's table
        """
        self.repository = repository
        fields = self.staged_model.business_schema.model_fields
        self._field_keys = {
            name: header_key(name) for name in fields if name not in self.derived_fields
        }
        self._date_fields = frozenset(
            name for name, field in fields.items() if _is_date_field(field.annotation)
        )
        self._key_header = header_key(self.staged_model.business_key_field)

    def provider_name(self) -> str:
        return self.staged_model.carrier.value

    @property
    def domain(self) -> str:
        return self.staged_model.domain.value

    def process(
        self,
        raw_rows: Iterable[Mapping[str, Any]],
        batch_history: BatchHistory,
        department_mapping: Mapping[str, str],
        filename: str | None,
        diagnostics: DiagnosticRecorder | None = None,
        invoice_numbers: Mapping[str, str] | None = None,
    ) -> list[StagedRecord]:
        """
        Convert raw rows into staged records without persisting them.

        Row order is preserved. Blank rows are skipped; a row that fails
        outright is dropped and recorded as a diagnostic.

        Args:
            raw_rows: Ordered header -> value rows
            batch_history: Batch the records will belong to
            department_mapping: Read-only account number -> department lookup
            filename: Source filename stamped on every record
            diagnostics: Recorder for row-level problems (a log-only one if None)
            invoice_numbers: Account number -> invoice number overriding the
                derived invoice numbers (processors that accept one only)

        Returns:
            Staged records in file order

        Raises:
            ValueError: If invoice numbers are given to a processor that does not take them
        """
        if invoice_numbers is not None and not self.accepts_invoice_numbers:
            raise ValueError(
                f"{self.provider_name()} {self.domain} rows do not take an invoice number lookup"
            )
        recorder = diagnostics or DiagnosticRecorder(
            self.provider_name(), self.domain, filename, batch_history.batch_id
        )
        staged: list[StagedRecord] = []
        empty = 0

        for row_number, raw_row in enumerate(raw_rows, start=1):
            if is_blank_row(raw_row):
                empty += 1
                continue

            ctx = RowContext(recorder, row_number, invoice_numbers=invoice_numbers)
            try:
                record = self.process_row(raw_row, department_mapping, ctx)
            except Exception as e:
                # Row failure boundary
                recorder.record(
                    row_number,
                    "row",
                    f"Row dropped: {e}",
                    record_key=ctx.record_key,
                    row_dropped=True,
                )
                continue

            record.stamp(batch_history, filename)
            staged.append(record)

        logger.info(
            f"Processed {self.provider_name()} {self.domain} rows: "
            f"{len(staged)} staged, {empty} empty, {recorder.dropped_rows} dropped",
            extra={"batch_id": batch_history.batch_id, "source_filename": filename},
        )
        return staged

    def save(self, records: list[StagedRecord], conn=None) -> int:
        """Persist staged records in bulk."""
        saved = self.repository.save_all(records, conn=conn)
        logger.info(f"Saved {saved} temporary {self.provider_name()} {self.domain} records.")
        return saved

    def process_row(
        self,
        raw_row: Mapping[str, Any],
        department_mapping: Mapping[str, str],
        ctx: RowContext,
    ) -> StagedRecord:
        row = self.canonicalize(self.normalizer.normalize(raw_row))
        ctx.record_key = _cell(row.get(self._key_header))
        row = self.prepare_row(row)
        record = self.convert(row, ctx)
        self.derive_fields(record, ctx)
        self.resolve_department(record, department_mapping, ctx)
        return record

    def canonicalize(self, row: dict[str, Any]) -> dict[str, Any]:
        """Rename carrier-specific header keys to schema keys."""
        if not self.header_aliases:
            return row
        return {self.header_aliases.get(k, k): v for k, v in row.items()}

    def prepare_row(self, row: dict[str, Any]) -> dict[str, Any]:
        return row

    def convert(self, row: Mapping[str, Any], ctx: RowContext) -> StagedRecord:
        """
        Build the staged record from schema keys.

        Strings are trimmed and blanks become None. Unparseable dates are
        left unset, or fail the row for strict processors.

        Raises:
            EnrichmentError: Strict processors only, on a bad date
            pydantic.ValidationError: If a value does not fit the schema type
        """
        values: dict[str, Any] = {}
        for name, key in self._field_keys.items():
            value = _cell(row.get(key))
            if value is not None and name in self._date_fields:
                try:
                    value = parse_date(value, self.date_formats, name)
                except EnrichmentError as e:
                    if self.strict_conversion:
                        raise
                    ctx.warn(name, f"{e}; field left unset")
                    value = None
            values[name] = value
        return self.staged_model(**values)

    def derive_fields(self, record: StagedRecord, ctx: RowContext) -> None:
        pass

    def resolve_department(
        self,
        record: StagedRecord,
        department_mapping: Mapping[str, str],
        ctx: RowContext,
    ) -> None:
        """
        Overwrite the department from the mapping; otherwise keep what the
        export supplied and record a diagnostic.
        """
        account = getattr(record, self.department_key)
        if account is None:
            return
        department = lookup_department(account, department_mapping)
        if department is not None:
            record.department = department
        else:
            ctx.warn(
                "department",
                f"No department mapping for account {account}; "
                f"keeping '{record.department}'",
                record,
            )
