"""
Pytest configuration and fixtures for carrier-ledger tests

Unit tests run against an in-memory ledger store; integration and E2E
tests run against PostgreSQL in a testcontainer.
"""
import copy
import os
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Generator

import pytest
from pyspark.sql import SparkSession
from testcontainers.postgres import PostgresContainer

from carrier_ledger.approval.review import ReviewService
from carrier_ledger.approval.strategy import build_strategy_registry
from carrier_ledger.batch.pipeline import IngestionPipeline
from carrier_ledger.batch.processors import build_processor_registry
from carrier_ledger.core.carriers import Carrier, Domain
from carrier_ledger.core.exceptions import DuplicateResourceError
from carrier_ledger.core.models import BatchHistory, DepartmentMapping, EnrichmentDiagnostic


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that test the full pipeline"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# IN-MEMORY LEDGER STORE
# =======================

class InMemoryDatabase:
    """
    Tables of models keyed by table name.

    transaction() snapshots every table and restores the snapshot when the
    block raises, so the fakes honour the same all-or-nothing contract as
    a PostgreSQL transaction.
    """

    def __init__(self):
        self.tables: dict[str, list] = defaultdict(list)
        self._sequences: dict[str, int] = defaultdict(int)
        self.commits = 0
        self.rollbacks = 0

    def next_id(self, table: str) -> int:
        self._sequences[table] += 1
        return self._sequences[table]

    @contextmanager
    def transaction(self):
        snapshot = copy.deepcopy(dict(self.tables))
        try:
            yield self
        except Exception:
            self.tables = defaultdict(list, snapshot)
            self.rollbacks += 1
            raise
        self.commits += 1


class InMemoryRecordRepository:
    """Staged or permanent record table."""

    def __init__(self, db: InMemoryDatabase, model):
        self.db = db
        self.model = model
        self.table = model.table_name

    @property
    def rows(self) -> list:
        return self.db.tables[self.table]

    def find_by_batch_id(self, batch_id, conn=None, for_update=False):
        return [r.model_copy(deep=True) for r in self.rows if r.batch_id == batch_id]

    def find_by_id(self, record_id, conn=None):
        for r in self.rows:
            if r.id == record_id:
                return r.model_copy(deep=True)
        return None

    def save_all(self, records, conn=None) -> int:
        count = 0
        for record in records:
            if record.id is None:
                record.id = self.db.next_id(self.table)
            self.rows.append(record.model_copy(deep=True))
            count += 1
        return count

    def delete_all_by_batch_id(self, batch_id, conn=None) -> int:
        kept = [r for r in self.rows if r.batch_id != batch_id]
        deleted = len(self.rows) - len(kept)
        self.db.tables[self.table] = kept
        return deleted


class InMemoryBatchHistoryRepository:
    def __init__(self, db: InMemoryDatabase, domain: Domain):
        self.db = db
        self.domain = domain
        self.table = f"{domain.value}_history"

    @property
    def rows(self) -> list[BatchHistory]:
        return self.db.tables[self.table]

    def create(self, history, conn=None):
        history.id = self.db.next_id(self.table)
        self.rows.append(history.model_copy(deep=True))
        return history

    def find_by_batch_id(self, batch_id, conn=None, for_update=False):
        for h in self.rows:
            if h.batch_id == batch_id:
                return h.model_copy(deep=True)
        return None

    def update_review(self, history, conn=None) -> None:
        self.db.tables[self.table] = [
            history.model_copy(deep=True) if h.batch_id == history.batch_id else h
            for h in self.rows
        ]

    def list_batches(self, include_deleted=False, conn=None):
        batches = [h for h in self.rows if include_deleted or not h.is_deleted]
        return [h.model_copy(deep=True) for h in sorted(batches, key=lambda h: h.date_uploaded, reverse=True)]

    def soft_delete(self, batch_id, conn=None) -> bool:
        if self.domain is not Domain.INVOICE:
            raise ValueError("Only invoice batches can be soft-deleted")
        for h in self.rows:
            if h.batch_id == batch_id and not h.is_deleted:
                h.is_deleted = True
                h.updated_at = datetime.utcnow()
                return True
        return False


class InMemoryDepartmentMappingRepository:
    table = "account_department_mapping"

    def __init__(self, db: InMemoryDatabase):
        self.db = db

    @property
    def rows(self) -> list[DepartmentMapping]:
        return self.db.tables[self.table]

    def find_by_account(self, department_account_number, conn=None):
        for m in self.rows:
            if m.department_account_number == department_account_number.strip() and not m.is_deleted:
                return m.model_copy(deep=True)
        return None

    def create(self, mapping, conn=None):
        if self.find_by_account(mapping.department_account_number) is not None:
            raise DuplicateResourceError("Department mapping", mapping.department_account_number)
        mapping.id = self.db.next_id(self.table)
        self.rows.append(mapping.model_copy(deep=True))
        return mapping

    def create_many(self, mappings):
        created = skipped = 0
        with self.db.transaction():
            for mapping in mappings:
                try:
                    self.create(mapping)
                    created += 1
                except DuplicateResourceError:
                    skipped += 1
        return created, skipped

    def department_mapping(self, carrier, conn=None) -> dict[str, str]:
        name = carrier.value if isinstance(carrier, Carrier) else carrier
        lookup: dict[str, str] = {}
        for m in sorted(self.rows, key=lambda m: m.id):
            if m.carrier == name and not m.is_deleted:
                lookup.setdefault(m.department_account_number, m.department)
        return lookup


class InMemoryDiagnosticRepository:
    table = "enrichment_diagnostic"

    def __init__(self, db: InMemoryDatabase):
        self.db = db

    def save_all(self, diagnostics, conn=None) -> int:
        count = 0
        for d in diagnostics:
            d.diagnostic_id = self.db.next_id(self.table)
            self.db.tables[self.table].append(d.model_copy(deep=True))
            count += 1
        return count

    def find_by_batch_id(self, batch_id, conn=None) -> list[EnrichmentDiagnostic]:
        rows = [d for d in self.db.tables[self.table] if d.batch_id == batch_id]
        return [d.model_copy(deep=True) for d in sorted(rows, key=lambda d: (d.row_number, d.diagnostic_id))]


@dataclass
class Ledger:
    """In-memory wiring of one domain: pipeline, review service and repositories."""

    db: InMemoryDatabase
    domain: Domain
    pipeline: IngestionPipeline
    review: ReviewService
    histories: InMemoryBatchHistoryRepository
    mappings: InMemoryDepartmentMappingRepository
    diagnostics: InMemoryDiagnosticRepository

    def repository(self, model) -> InMemoryRecordRepository:
        return InMemoryRecordRepository(self.db, model)

    def rows(self, model) -> list:
        return list(self.db.tables[model.table_name])


def build_ledger(domain: Domain, db: InMemoryDatabase | None = None) -> Ledger:
    db = db or InMemoryDatabase()
    histories = InMemoryBatchHistoryRepository(db, domain)
    mappings = InMemoryDepartmentMappingRepository(db)
    diagnostics = InMemoryDiagnosticRepository(db)

    def repository_for(model):
        return InMemoryRecordRepository(db, model)

    pipeline = IngestionPipeline(
        domain=domain,
        transactions=db,
        histories=histories,
        processors=build_processor_registry(domain, repository_for),
        diagnostics=diagnostics,
        mappings=mappings,
    )
    review = ReviewService(
        domain=domain,
        transactions=db,
        histories=histories,
        strategies=build_strategy_registry(domain, repository_for, db),
        diagnostics=diagnostics,
    )
    return Ledger(db, domain, pipeline, review, histories, mappings, diagnostics)


@pytest.fixture
def memory_db() -> InMemoryDatabase:
    return InMemoryDatabase()


@pytest.fixture
def invoice_ledger(memory_db) -> Ledger:
    """Invoice pipeline and review service over the in-memory store"""
    return build_ledger(Domain.INVOICE, memory_db)


@pytest.fixture
def inventory_ledger(memory_db) -> Ledger:
    """Inventory pipeline and review service over the in-memory store"""
    return build_ledger(Domain.INVENTORY, memory_db)


@pytest.fixture
def record_repository(memory_db):
    """Factory of in-memory record repositories sharing memory_db"""
    def factory(model):
        return InMemoryRecordRepository(memory_db, model)
    return factory


# =======================
# RAW ROW FIXTURES
# =======================

@pytest.fixture
def att_may_rows() -> list[dict]:
    """
    Three raw AT&T invoice rows as read from att_may.csv: one empty, one
    valid and one with an unparseable account number.
    """
    header = [
        "Foundation Account", "Account Number", "Wireless Number", "Invoice Date",
        "Total Current Charges", "Total Activity Since Last Bill", "Account Name",
    ]
    values = [
        ["", "", "", "", "", "", ""],
        ["FAN100", "123", "555-0100", "07/15/2024", "$1,200.50", "$200.50", "Export Account"],
        ["FAN100", "abc", "555-0101", "07/15/2024", "$80.00", "$0.00", ""],
    ]
    return [dict(zip(header, row)) for row in values]


# =======================
# SPARK FIXTURES
# =======================

@pytest.fixture(scope="session")
def spark_session() -> Generator[SparkSession, None, None]:
    """
    Create a Spark session for testing with local mode

    Yields:
        SparkSession configured for local testing
    """
    spark = (
        SparkSession.builder
        .appName("carrier-ledger-test")
        .master("local[2]")
        .config("spark.sql.shuffle.partitions", "2")
        .config("spark.driver.memory", "1g")
        .config("spark.ui.enabled", "false")  # Disable UI for tests
        .config("spark.sql.warehouse.dir", "/tmp/spark-warehouse")
        .getOrCreate()
    )

    spark.sparkContext.setLogLevel("WARN")

    yield spark

    spark.stop()


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """
    Start PostgreSQL container for integration tests

    Yields:
        PostgresContainer instance with the ledger schema created
    """
    from carrier_ledger.warehouse.connection import DatabaseConnectionPool
    from carrier_ledger.warehouse.schema_mgmt import SchemaManager

    with PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_pipeline",
        password="test_password",
        dbname="test_datawarehouse"
    ) as postgres:
        postgres.get_connection_url()

        pool = DatabaseConnectionPool(
            host=postgres.get_container_host_ip(),
            port=int(postgres.get_exposed_port(5432)),
            database="test_datawarehouse",
            user="test_pipeline",
            password="test_password",
        )
        pool.open()
        try:
            SchemaManager(pool).create_all()
        finally:
            pool.close()

        yield postgres


@pytest.fixture(scope="function")
def pool(postgres_container):
    """
    Open connection pool on the test database

    Args:
        postgres_container: PostgreSQL container fixture

    Yields:
        DatabaseConnectionPool
    """
    from carrier_ledger.warehouse.connection import DatabaseConnectionPool

    pool = DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_datawarehouse",
        user="test_pipeline",
        password="test_password",
        max_size=4,
    )
    pool.open()
    yield pool
    pool.close()


@pytest.fixture(scope="function")
def clean_db(pool):
    """
    Provide a clean database by truncating all ledger tables before each test

    Args:
        pool: Connection pool fixture

    Yields:
        DatabaseConnectionPool over empty tables
    """
    from psycopg import sql

    from carrier_ledger.warehouse.schema_mgmt import SchemaManager

    tables = sql.SQL(", ").join(sql.Identifier(t) for t in SchemaManager.table_names())
    pool.execute_command(sql.SQL("TRUNCATE TABLE {} RESTART IDENTITY CASCADE").format(tables))

    yield pool


# =======================
# FILE FIXTURES
# =======================

@pytest.fixture(scope="session")
def test_data_dir() -> str:
    """
    Get path to test data fixtures directory

    Returns:
        Path to tests/fixtures directory
    """
    return os.path.join(os.path.dirname(__file__), "fixtures")


# =======================
# CONFIGURATION FIXTURES
# =======================

@pytest.fixture(scope="session")
def test_env_vars():
    """
    Set test environment variables

    This fixture loads config/test.env and sets environment variables
    """
    from dotenv import load_dotenv

    env_path = os.path.join(
        os.path.dirname(os.path.dirname(__file__)),
        "config",
        "test.env"
    )

    if os.path.exists(env_path):
        load_dotenv(env_path, override=True)
