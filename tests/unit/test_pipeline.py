"""
Unit tests for the ingestion pipeline.

Runs against the in-memory ledger store from conftest.py.
"""

from types import MappingProxyType

import pytest

from carrier_ledger.batch.readers import RawFile
from carrier_ledger.core.exceptions import (
    EmptyFileError,
    IngestionError,
    MissingHeadersError,
    UnsupportedProviderError,
)
from carrier_ledger.core.models import (
    BatchStatus,
    DepartmentMapping,
    StagedATTInvoice,
    StagedFirstNetInvoice,
    StagedVerizonWirelessInventory,
)
from carrier_ledger.core.rules import ProviderHeaderConfig
from carrier_ledger.observability.metrics import REGISTRY


def rows_count(outcome, provider="AT&T Mobility", domain="invoice"):
    value = REGISTRY.get_sample_value(
        "ledger_rows_total", {"provider": provider, "domain": domain, "outcome": outcome}
    )
    return value or 0.0


@pytest.mark.unit
class TestIngest:
    def test_creates_pending_batch_with_staged_records(self, invoice_ledger, att_may_rows):
        batch = invoice_ledger.pipeline.ingest(
            "at&t mobility",
            att_may_rows,
            filename="att_may.csv",
            uploaded_by="billing.ops",
            file_type="csv",
            file_size=512,
        )

        assert batch.status is BatchStatus.PENDING_APPROVAL
        assert batch.carrier == "AT&T Mobility"
        assert batch.name == "att_may.csv"
        assert batch.uploaded_by == "billing.ops"
        assert batch.id is not None

        stored = invoice_ledger.histories.find_by_batch_id(batch.batch_id)
        assert stored.file_size == 512

        staged = invoice_ledger.rows(StagedATTInvoice)
        assert len(staged) == 2
        assert all(r.batch_id == batch.batch_id and r.source_filename == "att_may.csv" for r in staged)

    def test_row_metrics(self, invoice_ledger, att_may_rows):
        staged_before, empty_before = rows_count("staged"), rows_count("empty")

        invoice_ledger.pipeline.ingest("AT&T Mobility", att_may_rows)

        assert rows_count("staged") == staged_before + 2
        assert rows_count("empty") == empty_before + 1

    def test_diagnostics_persisted_with_batch(self, invoice_ledger, att_may_rows):
        batch = invoice_ledger.pipeline.ingest("AT&T Mobility", att_may_rows, filename="att_may.csv")

        diagnostics = invoice_ledger.diagnostics.find_by_batch_id(batch.batch_id)
        assert len(diagnostics) == 3
        assert all(d.source_filename == "att_may.csv" for d in diagnostics)
        assert all(d.provider == "AT&T Mobility" and d.domain == "invoice" for d in diagnostics)

    def test_supplied_mapping_used(self, invoice_ledger, att_may_rows):
        invoice_ledger.pipeline.ingest(
            "AT&T Mobility", att_may_rows, department_mapping={"123": "Fire", "abc": "Police"}
        )
        departments = [r.department for r in invoice_ledger.rows(StagedATTInvoice)]
        assert departments == ["Fire", "Police"]

    def test_mapping_loaded_for_carrier(self, invoice_ledger, att_may_rows):
        invoice_ledger.mappings.create(
            DepartmentMapping(department_account_number="123", department="Fire", carrier="AT&T Mobility")
        )
        invoice_ledger.mappings.create(
            DepartmentMapping(department_account_number="abc", department="Police", carrier="FirstNet")
        )

        invoice_ledger.pipeline.ingest("AT&T Mobility", att_may_rows)

        departments = [r.department for r in invoice_ledger.rows(StagedATTInvoice)]
        assert departments == ["Fire", None]

    def test_unsupported_provider_creates_nothing(self, invoice_ledger, att_may_rows):
        with pytest.raises(UnsupportedProviderError):
            invoice_ledger.pipeline.ingest("Sprint", att_may_rows)
        assert invoice_ledger.review.list_batches() == []

    def test_empty_file(self, invoice_ledger):
        with pytest.raises(EmptyFileError) as exc_info:
            invoice_ledger.pipeline.ingest("AT&T Mobility", [], filename="empty.csv")
        assert str(exc_info.value) == "The file is empty or contains no data rows."
        assert exc_info.value.filename == "empty.csv"
        assert invoice_ledger.review.list_batches() == []

    def test_only_blank_rows_creates_empty_batch(self, invoice_ledger):
        batch = invoice_ledger.pipeline.ingest("AT&T Mobility", [{"Account Number": ""}])
        assert batch.is_pending
        assert invoice_ledger.review.pending_for_review(batch.batch_id) == []

    def test_storage_failure_leaves_nothing_behind(self, invoice_ledger, att_may_rows, monkeypatch):
        def broken_save(diagnostics, conn=None):
            raise OSError("connection reset")

        monkeypatch.setattr(invoice_ledger.diagnostics, "save_all", broken_save)

        with pytest.raises(IngestionError) as exc_info:
            invoice_ledger.pipeline.ingest("AT&T Mobility", att_may_rows, filename="att_may.csv")

        assert isinstance(exc_info.value.__cause__, OSError)
        assert invoice_ledger.review.list_batches() == []
        assert invoice_ledger.rows(StagedATTInvoice) == []

    def test_rows_are_not_mutated(self, invoice_ledger, att_may_rows):
        snapshot = [dict(r) for r in att_may_rows]
        invoice_ledger.pipeline.ingest("AT&T Mobility", att_may_rows, department_mapping=MappingProxyType({}))
        assert att_may_rows == snapshot

    def test_inventory_domain(self, inventory_ledger):
        rows = [
            {"Account number": "742-1", "Wireless number": "555-0300", "Device model": "iPhone 15"},
            {"Account number": "742-1", "Wireless number": "555-0301", "Bill cycle date": "13/45/2024"},
        ]
        batch = inventory_ledger.pipeline.ingest("verizon wireless", rows, filename="vzw_inventory.csv")

        assert batch.domain.value == "inventory"
        staged = inventory_ledger.rows(StagedVerizonWirelessInventory)
        assert [r.wireless_number for r in staged] == ["555-0300", "555-0301"]
        assert staged[1].bill_cycle_date is None

    def test_ingest_file_requires_reader(self, invoice_ledger):
        with pytest.raises(RuntimeError):
            invoice_ledger.pipeline.ingest_file("att_may.csv", "AT&T Mobility")


@pytest.mark.unit
class TestInvoiceNumberOverride:
    @pytest.fixture
    def firstnet_rows(self):
        return [
            {
                "Account Number": "456",
                "Account and descriptions": "287298936374 (CITY OF SAN JOSE PUBLIC WORKS)",
                "Invoice Date": "02/10/2024",
            },
            {
                "Account Number": "789",
                "Account and descriptions": "no account here",
                "Invoice Date": "02/10/2024",
            },
        ]

    def test_bundle_invoice_numbers_applied(self, invoice_ledger, firstnet_rows):
        batch = invoice_ledger.pipeline.ingest(
            "FirstNet", firstnet_rows, filename="detail.csv",
            invoice_numbers={" 287298936374 ": "INV-2024-0210"},
        )

        staged = invoice_ledger.rows(StagedFirstNetInvoice)
        assert [r.invoice_number for r in staged] == ["INV-2024-0210", "789X02092024"]

        misses = [
            d for d in invoice_ledger.diagnostics.find_by_batch_id(batch.batch_id)
            if d.field_name == "invoice_number"
        ]
        assert [d.row_number for d in misses] == [2]

    def test_empty_lookup_fails_before_batch(self, invoice_ledger, firstnet_rows):
        with pytest.raises(IngestionError, match="No account numbers"):
            invoice_ledger.pipeline.ingest("FirstNet", firstnet_rows, invoice_numbers={"287298936374": " "})

        assert invoice_ledger.review.list_batches() == []
        assert invoice_ledger.rows(StagedFirstNetInvoice) == []

    def test_lookup_refused_for_other_carriers(self, invoice_ledger, att_may_rows):
        with pytest.raises(IngestionError, match="do not take invoice numbers"):
            invoice_ledger.pipeline.ingest("AT&T Mobility", att_may_rows, invoice_numbers={"123": "INV-1"})

        assert invoice_ledger.review.list_batches() == []


class FakeReader:
    """Returns a fixed RawFile instead of reading through Spark."""

    def __init__(self, raw_file):
        self.raw_file = raw_file
        self.calls = []

    def read(self, file_path, file_format="csv"):
        self.calls.append((file_path, file_format))
        return self.raw_file


@pytest.mark.unit
class TestIngestFile:
    @pytest.fixture
    def raw_file(self, att_may_rows):
        return RawFile(
            filename="att_may.csv",
            file_type="csv",
            file_size=2048,
            headers=list(att_may_rows[0].keys()),
            rows=att_may_rows,
        )

    def test_reads_checks_and_ingests(self, invoice_ledger, raw_file):
        reader = FakeReader(raw_file)
        invoice_ledger.pipeline.reader = reader
        invoice_ledger.pipeline.header_config = ProviderHeaderConfig()

        batch = invoice_ledger.pipeline.ingest_file("/uploads/att_may.csv", "AT&T Mobility", uploaded_by="ops")

        assert reader.calls == [("/uploads/att_may.csv", "csv")]
        assert batch.name == "att_may.csv"
        assert batch.file_type == "csv"
        assert batch.file_size == 2048
        assert batch.uploaded_by == "ops"
        assert len(invoice_ledger.rows(StagedATTInvoice)) == 2

    def test_missing_headers_create_no_batch(self, invoice_ledger, raw_file):
        raw_file.headers = ["Account Number", "Invoice Date"]
        invoice_ledger.pipeline.reader = FakeReader(raw_file)
        invoice_ledger.pipeline.header_config = ProviderHeaderConfig()

        with pytest.raises(MissingHeadersError) as exc_info:
            invoice_ledger.pipeline.ingest_file("att_may.csv", "AT&T Mobility")

        assert "Wireless Number" in exc_info.value.missing
        assert invoice_ledger.review.list_batches() == []

    def test_unsupported_provider_checked_before_read(self, invoice_ledger, raw_file):
        reader = FakeReader(raw_file)
        invoice_ledger.pipeline.reader = reader

        with pytest.raises(UnsupportedProviderError):
            invoice_ledger.pipeline.ingest_file("att_may.csv", "Sprint")
        assert reader.calls == []
