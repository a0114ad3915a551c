"""
Integration tests for the PostgreSQL repositories.

Runs against the generated ledger schema in a testcontainer.
"""

from datetime import date
from decimal import Decimal

import pytest

from carrier_ledger.core.carriers import Carrier, Domain
from carrier_ledger.core.exceptions import DuplicateResourceError
from carrier_ledger.core.models import (
    ATTInvoice,
    BatchHistory,
    BatchStatus,
    DepartmentMapping,
    EnrichmentDiagnostic,
    StagedATTInvoice,
    StagedFirstNetInventory,
)
from carrier_ledger.warehouse.audit import DiagnosticRepository
from carrier_ledger.warehouse.repositories import (
    BatchHistoryRepository,
    DepartmentMappingRepository,
    RecordRepository,
)


@pytest.fixture
def invoice_histories(clean_db):
    return BatchHistoryRepository(clean_db, Domain.INVOICE)


@pytest.fixture
def batch(invoice_histories):
    return invoice_histories.create(
        BatchHistory(domain=Domain.INVOICE, carrier="AT&T Mobility", name="att_may.csv", file_size=300)
    )


@pytest.mark.integration
class TestBatchHistoryRepository:
    def test_create_and_find(self, invoice_histories, batch):
        assert batch.id is not None

        stored = invoice_histories.find_by_batch_id(batch.batch_id)
        assert stored.batch_id == batch.batch_id
        assert stored.domain is Domain.INVOICE
        assert stored.status is BatchStatus.PENDING_APPROVAL
        assert stored.name == "att_may.csv"
        assert stored.file_size == 300
        assert invoice_histories.find_by_batch_id("missing") is None

    def test_domains_use_separate_tables(self, clean_db, batch):
        inventory = BatchHistoryRepository(clean_db, Domain.INVENTORY)
        assert inventory.find_by_batch_id(batch.batch_id) is None

    def test_update_review(self, invoice_histories, batch):
        batch.mark_rejected("controller", "Wrong month")
        invoice_histories.update_review(batch)

        stored = invoice_histories.find_by_batch_id(batch.batch_id)
        assert stored.status is BatchStatus.REJECTED
        assert stored.reviewed_by == "controller"
        assert stored.rejection_reason == "Wrong month"

    def test_list_and_soft_delete(self, invoice_histories, batch):
        second = invoice_histories.create(BatchHistory(domain=Domain.INVOICE, carrier="FirstNet"))

        assert [b.batch_id for b in invoice_histories.list_batches()] == [second.batch_id, batch.batch_id]

        assert invoice_histories.soft_delete(batch.batch_id) is True
        assert invoice_histories.soft_delete(batch.batch_id) is False
        assert [b.batch_id for b in invoice_histories.list_batches()] == [second.batch_id]
        assert len(invoice_histories.list_batches(include_deleted=True)) == 2

    def test_inventory_soft_delete_refused(self, clean_db):
        with pytest.raises(ValueError):
            BatchHistoryRepository(clean_db, Domain.INVENTORY).soft_delete("any")


@pytest.mark.integration
class TestRecordRepository:
    def test_save_find_delete(self, clean_db, batch):
        repo = RecordRepository(clean_db, StagedATTInvoice)
        records = [
            StagedATTInvoice(
                batch_id=batch.batch_id,
                source_filename="att_may.csv",
                invoice_number="123X07092024",
                account_number="123",
                invoice_date=date(2024, 7, 15),
                total_reoccurring_charges=Decimal("1000.00"),
            ),
            StagedATTInvoice(batch_id=batch.batch_id, account_number="abc"),
        ]

        assert repo.save_all(records) == 2
        assert repo.save_all([]) == 0

        stored = repo.find_by_batch_id(batch.batch_id)
        assert [r.account_number for r in stored] == ["123", "abc"]
        assert stored[0].invoice_date == date(2024, 7, 15)
        assert stored[0].total_reoccurring_charges == Decimal("1000.00")
        assert stored[0].status is BatchStatus.PENDING_APPROVAL
        assert repo.find_by_id(stored[1].id).account_number == "abc"

        assert repo.delete_all_by_batch_id(batch.batch_id) == 2
        assert repo.find_by_batch_id(batch.batch_id) == []

    def test_permanent_table(self, clean_db, batch):
        repo = RecordRepository(clean_db, ATTInvoice)
        repo.save_all([ATTInvoice(batch_id=batch.batch_id, account_number="123", department="Fire")])

        stored = repo.find_by_batch_id(batch.batch_id)
        assert len(stored) == 1
        assert stored[0].department == "Fire"

    def test_rows_joined_to_callers_transaction(self, clean_db):
        histories = BatchHistoryRepository(clean_db, Domain.INVENTORY)
        repo = RecordRepository(clean_db, StagedFirstNetInventory)
        history = BatchHistory(domain=Domain.INVENTORY, carrier="FirstNet")

        with pytest.raises(RuntimeError):
            with clean_db.transaction() as conn:
                histories.create(history, conn=conn)
                repo.save_all([StagedFirstNetInventory(batch_id=history.batch_id)], conn=conn)
                raise RuntimeError("abort")

        assert histories.find_by_batch_id(history.batch_id) is None
        assert repo.find_by_batch_id(history.batch_id) == []


@pytest.mark.integration
class TestDepartmentMappingRepository:
    def test_create_and_find(self, clean_db):
        repo = DepartmentMappingRepository(clean_db)
        created = repo.create(DepartmentMapping(department_account_number="123", department="Fire", carrier="FirstNet"))

        assert created.id is not None
        assert repo.find_by_account(" 123 ").department == "Fire"
        assert repo.find_by_account("999") is None

    def test_duplicate_account_rejected(self, clean_db):
        repo = DepartmentMappingRepository(clean_db)
        repo.create(DepartmentMapping(department_account_number="123", department="Fire", carrier="FirstNet"))

        with pytest.raises(DuplicateResourceError):
            repo.create(DepartmentMapping(department_account_number="123", department="Police", carrier="FirstNet"))

    def test_soft_deleted_account_can_be_mapped_again(self, clean_db):
        repo = DepartmentMappingRepository(clean_db)
        first = repo.create(DepartmentMapping(department_account_number="123", department="Fire", carrier="FirstNet"))
        assert repo.soft_delete(first.id) is True

        repo.create(DepartmentMapping(department_account_number="123", department="Police", carrier="FirstNet"))
        assert repo.department_mapping(Carrier.FIRSTNET) == {"123": "Police"}

    def test_create_many_skips_existing(self, clean_db):
        repo = DepartmentMappingRepository(clean_db)
        repo.create(DepartmentMapping(department_account_number="100", department="Fire", carrier="AT&T Mobility"))

        created, skipped = repo.create_many([
            DepartmentMapping(department_account_number="100", department="Police", carrier="AT&T Mobility"),
            DepartmentMapping(department_account_number="101", department="Parks", carrier="AT&T Mobility"),
            DepartmentMapping(department_account_number="102", department="Water", carrier="Verizon Wireless"),
        ])

        assert (created, skipped) == (2, 1)
        assert repo.department_mapping("AT&T Mobility") == {"100": "Fire", "101": "Parks"}
        assert repo.department_mapping(Carrier.VERIZON_WIRELESS) == {"102": "Water"}


@pytest.mark.integration
def test_diagnostics_round_trip(clean_db, batch):
    repo = DiagnosticRepository(clean_db)
    diagnostics = [
        EnrichmentDiagnostic(
            batch_id=batch.batch_id, provider="AT&T Mobility", domain="invoice",
            source_filename="att_may.csv", row_number=row, field_name=field, message=message,
        )
        for row, field, message in [
            (3, "invoice_number", "Account number 'abc' is not numeric"),
            (2, "department", "No department mapping for account 123"),
        ]
    ]

    assert repo.save_all(diagnostics) == 2
    assert repo.save_all([]) == 0

    stored = repo.find_by_batch_id(batch.batch_id)
    assert [(d.row_number, d.field_name) for d in stored] == [(2, "department"), (3, "invoice_number")]
    assert all(d.diagnostic_id is not None for d in stored)
