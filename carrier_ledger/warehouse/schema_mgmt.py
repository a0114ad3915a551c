"""
Schema management for the ledger database.

Batch history, mapping and diagnostic tables are declared as DDL here; the
per-carrier staged and permanent tables are generated from their pydantic
record schemas so columns never drift from the models.
"""

import typing
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from psycopg import sql

from carrier_ledger.core.carriers import Domain
from carrier_ledger.core.models import CARRIER_SCHEMAS
from carrier_ledger.observability.logger import get_logger
from carrier_ledger.warehouse.connection import DatabaseConnectionPool

logger = get_logger(__name__)

HISTORY_TABLES = {
    Domain.INVOICE: "invoice_history",
    Domain.INVENTORY: "inventory_history",
}

HISTORY_DDL = """
    CREATE TABLE IF NOT EXISTS {table} (
        id BIGSERIAL PRIMARY KEY,
        batch_id VARCHAR(36) NOT NULL UNIQUE,
        status VARCHAR(32) NOT NULL DEFAULT 'PENDING_APPROVAL'
            CHECK (status IN ('PENDING_APPROVAL', 'APPROVED', 'REJECTED')),
        carrier VARCHAR(100) NOT NULL,
        name TEXT,
        file_type VARCHAR(32),
        file_size BIGINT,
        uploaded_by TEXT,
        date_uploaded TIMESTAMP NOT NULL DEFAULT NOW(),
        reviewed_by TEXT,
        reviewed_at TIMESTAMP,
        rejection_reason VARCHAR(1024),
        is_deleted BOOLEAN NOT NULL DEFAULT FALSE,
        updated_at TIMESTAMP NOT NULL DEFAULT NOW()
    )
"""

MAPPING_DDL = """
    CREATE TABLE IF NOT EXISTS account_department_mapping (
        id BIGSERIAL PRIMARY KEY,
        foundation_account_number TEXT,
        department_account_number TEXT NOT NULL,
        department TEXT NOT NULL,
        carrier VARCHAR(100) NOT NULL,
        created_by TEXT,
        file_name TEXT,
        created_at TIMESTAMP NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMP NOT NULL DEFAULT NOW(),
        is_deleted BOOLEAN NOT NULL DEFAULT FALSE
    );
    CREATE UNIQUE INDEX IF NOT EXISTS account_department_mapping_account_uq
        ON account_department_mapping (department_account_number)
        WHERE NOT is_deleted
"""

DIAGNOSTIC_DDL = """
    CREATE TABLE IF NOT EXISTS enrichment_diagnostic (
        diagnostic_id BIGSERIAL PRIMARY KEY,
        batch_id VARCHAR(36),
        provider VARCHAR(100) NOT NULL,
        domain VARCHAR(32) NOT NULL,
        source_filename TEXT,
        row_number INTEGER NOT NULL,
        record_key TEXT,
        field_name TEXT NOT NULL,
        message TEXT NOT NULL,
        row_dropped BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMP NOT NULL DEFAULT NOW()
    );
    CREATE INDEX IF NOT EXISTS enrichment_diagnostic_batch_idx
        ON enrichment_diagnostic (batch_id)
"""


def column_type(annotation) -> str:
    """
    SQL column type for a model field annotation.

    Raises:
        TypeError: If the annotation has no SQL mapping
    """
    args = [a for a in typing.get_args(annotation) if a is not type(None)]
    python_type = args[0] if args else annotation

    if isinstance(python_type, type) and issubclass(python_type, Enum):
        return "VARCHAR(32)"
    if python_type is datetime:
        return "TIMESTAMP"
    if python_type is date:
        return "DATE"
    if python_type is Decimal:
        return "NUMERIC(19, 4)"
    if python_type is bool:
        return "BOOLEAN"
    if python_type is int:
        return "BIGINT"
    if python_type is str:
        return "TEXT"
    raise TypeError(f"No SQL type for annotation {annotation!r}")


def record_table_ddl(model, history_table: str) -> sql.Composed:
    """
    CREATE TABLE statement for a staged or permanent record model.

    Both kinds reference the history table's batch_id without cascading;
    staged rows are deleted explicitly by approval and rejection.
    """
    columns = [
        sql.SQL("id BIGSERIAL PRIMARY KEY"),
        sql.SQL("batch_id VARCHAR(36) NOT NULL REFERENCES {} (batch_id)").format(
            sql.Identifier(history_table)
        ),
    ]
    for name, field in model.model_fields.items():
        if name in ("id", "batch_id"):
            continue
        columns.append(
            sql.SQL("{} {}").format(sql.Identifier(name), sql.SQL(column_type(field.annotation)))
        )

    return sql.SQL(
        "CREATE TABLE IF NOT EXISTS {table} ({columns}); "
        "CREATE INDEX IF NOT EXISTS {index} ON {table} (batch_id)"
    ).format(
        table=sql.Identifier(model.table_name),
        columns=sql.SQL(", ").join(columns),
        index=sql.Identifier(f"{model.table_name}_batch_id_idx"),
    )


class SchemaManager:
    """
    Creates the ledger tables.

    Usage:
        SchemaManager(pool).create_all()
    """

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def statements(self) -> list:
        statements: list = [
            sql.SQL(HISTORY_DDL).format(table=sql.Identifier(table))
            for table in HISTORY_TABLES.values()
        ]
        statements.append(sql.SQL(MAPPING_DDL))
        statements.append(sql.SQL(DIAGNOSTIC_DDL))
        for schema in CARRIER_SCHEMAS:
            history_table = HISTORY_TABLES[schema.domain]
            statements.append(record_table_ddl(schema.staged_model, history_table))
            statements.append(record_table_ddl(schema.permanent_model, history_table))
        return statements

    def create_all(self) -> None:
        """Create every table and index that does not exist yet, in one transaction."""
        with self.pool.transaction() as conn:
            with conn.cursor() as cur:
                for statement in self.statements():
                    cur.execute(statement)
        logger.info(f"Ledger schema ready ({len(self.table_names())} tables)")

    @staticmethod
    def table_names() -> list[str]:
        """Every ledger table, children before parents."""
        names = []
        for schema in CARRIER_SCHEMAS:
            names.append(schema.staged_model.table_name)
            names.append(schema.permanent_model.table_name)
        names.extend(["enrichment_diagnostic", "account_department_mapping"])
        names.extend(HISTORY_TABLES.values())
        return names
