"""
Repositories over the ledger tables.

Every method accepts an optional ``conn``. When given, the call runs on that
connection and joins the caller's transaction; otherwise it borrows a pooled
connection and commits on its own.
"""

from datetime import datetime
from typing import Iterable

from psycopg import sql
from psycopg.errors import UniqueViolation

from carrier_ledger.core.carriers import Carrier, Domain
from carrier_ledger.core.exceptions import DuplicateResourceError
from carrier_ledger.core.models import BatchHistory, DepartmentMapping
from carrier_ledger.observability.logger import get_logger
from carrier_ledger.warehouse.connection import DatabaseConnectionPool, connection_scope
from carrier_ledger.warehouse.schema_mgmt import HISTORY_TABLES

logger = get_logger(__name__)


def _columns(model) -> list[str]:
    return [name for name in model.model_fields if name != "id"]


def _select(table: str, columns: list[str]) -> sql.Composed:
    return sql.SQL("SELECT {columns} FROM {table}").format(
        columns=sql.SQL(", ").join(map(sql.Identifier, ["id", *columns])),
        table=sql.Identifier(table),
    )


def _insert(table: str, columns: list[str], returning: str | None = None) -> sql.Composed:
    query = sql.SQL("INSERT INTO {table} ({columns}) VALUES ({values})").format(
        table=sql.Identifier(table),
        columns=sql.SQL(", ").join(map(sql.Identifier, columns)),
        values=sql.SQL(", ").join(map(sql.Placeholder, columns)),
    )
    if returning:
        query = query + sql.SQL(" RETURNING {}").format(sql.Identifier(returning))
    return query


class RecordRepository:
    """
    Storage for one carrier's staged or permanent record table.

    The table and its columns come from the model class
    (``model.table_name`` and ``model.model_fields``).
    """

    def __init__(self, pool: DatabaseConnectionPool, model):
        self.pool = pool
        self.model = model
        self.table = model.table_name
        self.columns = _columns(model)

    def find_by_batch_id(self, batch_id: str, conn=None, for_update: bool = False) -> list:
        """
        Records of one batch, in insertion order.

        Args:
            batch_id: Public batch id
            conn: Connection of an enclosing transaction
            for_update: Lock the returned rows until the transaction ends
        """
        query = _select(self.table, self.columns) + sql.SQL(
            " WHERE batch_id = %s ORDER BY id"
        )
        if for_update:
            query = query + sql.SQL(" FOR UPDATE")

        with connection_scope(self.pool, conn) as c:
            with c.cursor() as cur:
                cur.execute(query, (batch_id,))
                rows = cur.fetchall()
        return [self.model.model_validate(row) for row in rows]

    def find_by_id(self, record_id: int, conn=None):
        query = _select(self.table, self.columns) + sql.SQL(" WHERE id = %s")
        with connection_scope(self.pool, conn) as c:
            with c.cursor() as cur:
                cur.execute(query, (record_id,))
                row = cur.fetchone()
        return self.model.model_validate(row) if row else None

    def save_all(self, records: Iterable, conn=None) -> int:
        """
        Bulk insert records.

        Returns:
            Number of records inserted
        """
        params = [record.model_dump(include=set(self.columns)) for record in records]
        if not params:
            return 0

        with connection_scope(self.pool, conn) as c:
            with c.cursor() as cur:
                cur.executemany(_insert(self.table, self.columns), params)

        logger.debug(f"Inserted {len(params)} rows into {self.table}")
        return len(params)

    def delete_all_by_batch_id(self, batch_id: str, conn=None) -> int:
        """
        Returns:
            Number of records deleted
        """
        query = sql.SQL("DELETE FROM {} WHERE batch_id = %s").format(sql.Identifier(self.table))
        with connection_scope(self.pool, conn) as c:
            with c.cursor() as cur:
                cur.execute(query, (batch_id,))
                deleted = cur.rowcount
        logger.debug(f"Deleted {deleted} rows from {self.table} for batch {batch_id}")
        return deleted


class BatchHistoryRepository:
    """Storage for invoice_history or inventory_history."""

    def __init__(self, pool: DatabaseConnectionPool, domain: Domain):
        self.pool = pool
        self.domain = domain
        self.table = HISTORY_TABLES[domain]
        self.columns = [c for c in _columns(BatchHistory) if c != "domain"]

    def _to_model(self, row: dict) -> BatchHistory:
        return BatchHistory.model_validate({**row, "domain": self.domain})

    def create(self, history: BatchHistory, conn=None) -> BatchHistory:
        """
        Insert a new batch history.

        Returns:
            The history with its generated id
        """
        params = history.model_dump(include=set(self.columns))
        with connection_scope(self.pool, conn) as c:
            with c.cursor() as cur:
                cur.execute(_insert(self.table, self.columns, returning="id"), params)
                history.id = cur.fetchone()["id"]
        logger.info(
            f"Created {self.domain.value} batch {history.batch_id} for {history.carrier}",
            extra={"batch_id": history.batch_id, "carrier": history.carrier},
        )
        return history

    def find_by_batch_id(self, batch_id: str, conn=None, for_update: bool = False) -> BatchHistory | None:
        query = _select(self.table, self.columns) + sql.SQL(" WHERE batch_id = %s")
        if for_update:
            query = query + sql.SQL(" FOR UPDATE")
        with connection_scope(self.pool, conn) as c:
            with c.cursor() as cur:
                cur.execute(query, (batch_id,))
                row = cur.fetchone()
        return self._to_model(row) if row else None

    def update_review(self, history: BatchHistory, conn=None) -> None:
        """Persist status and reviewer fields of a decided batch."""
        query = sql.SQL("""
            UPDATE {}
            SET status = %(status)s,
                reviewed_by = %(reviewed_by)s,
                reviewed_at = %(reviewed_at)s,
                rejection_reason = %(rejection_reason)s,
                updated_at = %(updated_at)s
            WHERE batch_id = %(batch_id)s
        """).format(sql.Identifier(self.table))
        params = {
            "status": history.status.value,
            "reviewed_by": history.reviewed_by,
            "reviewed_at": history.reviewed_at,
            "rejection_reason": history.rejection_reason,
            "updated_at": history.updated_at,
            "batch_id": history.batch_id,
        }
        with connection_scope(self.pool, conn) as c:
            with c.cursor() as cur:
                cur.execute(query, params)

    def list_batches(self, include_deleted: bool = False, conn=None) -> list[BatchHistory]:
        """Batch histories, newest upload first."""
        query = _select(self.table, self.columns)
        if not include_deleted:
            query = query + sql.SQL(" WHERE NOT is_deleted")
        query = query + sql.SQL(" ORDER BY date_uploaded DESC, id DESC")
        with connection_scope(self.pool, conn) as c:
            with c.cursor() as cur:
                cur.execute(query)
                rows = cur.fetchall()
        return [self._to_model(row) for row in rows]

    def soft_delete(self, batch_id: str, conn=None) -> bool:
        """
        Flag a batch as deleted.

        Returns:
            True if a batch was flagged

        Raises:
            ValueError: For inventory batches, which cannot be soft-deleted
        """
        if self.domain is not Domain.INVOICE:
            raise ValueError("Only invoice batches can be soft-deleted")
        query = sql.SQL(
            "UPDATE {} SET is_deleted = TRUE, updated_at = %s WHERE batch_id = %s AND NOT is_deleted"
        ).format(sql.Identifier(self.table))
        with connection_scope(self.pool, conn) as c:
            with c.cursor() as cur:
                cur.execute(query, (datetime.utcnow(), batch_id))
                return cur.rowcount > 0


class DepartmentMappingRepository:
    """Storage for account_department_mapping."""

    table = "account_department_mapping"

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool
        self.columns = _columns(DepartmentMapping)

    def find_by_account(self, department_account_number: str, conn=None) -> DepartmentMapping | None:
        query = _select(self.table, self.columns) + sql.SQL(
            " WHERE department_account_number = %s AND NOT is_deleted"
        )
        with connection_scope(self.pool, conn) as c:
            with c.cursor() as cur:
                cur.execute(query, (department_account_number.strip(),))
                row = cur.fetchone()
        return DepartmentMapping.model_validate(row) if row else None

    def create(self, mapping: DepartmentMapping, conn=None) -> DepartmentMapping:
        """
        Insert a mapping.

        Raises:
            DuplicateResourceError: If a live mapping exists for the account number
        """
        with connection_scope(self.pool, conn) as c:
            if self.find_by_account(mapping.department_account_number, conn=c) is not None:
                raise DuplicateResourceError(
                    "Department mapping", mapping.department_account_number
                )
            try:
                with c.transaction():
                    with c.cursor() as cur:
                        cur.execute(
                            _insert(self.table, self.columns, returning="id"),
                            mapping.model_dump(include=set(self.columns)),
                        )
                        mapping.id = cur.fetchone()["id"]
            except UniqueViolation as e:
                raise DuplicateResourceError(
                    "Department mapping", mapping.department_account_number
                ) from e
        return mapping

    def create_many(self, mappings: Iterable[DepartmentMapping]) -> tuple[int, int]:
        """
        Bulk import, skipping account numbers that already have a mapping.

        Returns:
            (created, skipped) counts
        """
        created = skipped = 0
        with self.pool.transaction() as conn:
            for mapping in mappings:
                try:
                    self.create(mapping, conn=conn)
                    created += 1
                except DuplicateResourceError:
                    skipped += 1
        logger.info(f"Imported department mappings: {created} created, {skipped} skipped")
        return created, skipped

    def department_mapping(self, carrier: Carrier | str, conn=None) -> dict[str, str]:
        """
        Account number -> department lookup for one carrier.

        If an account number appears more than once, the oldest mapping wins.
        """
        carrier_name = carrier.value if isinstance(carrier, Carrier) else carrier
        query = sql.SQL("""
            SELECT department_account_number, department
            FROM {}
            WHERE carrier = %s AND NOT is_deleted
            ORDER BY id
        """).format(sql.Identifier(self.table))
        with connection_scope(self.pool, conn) as c:
            with c.cursor() as cur:
                cur.execute(query, (carrier_name,))
                rows = cur.fetchall()

        mapping: dict[str, str] = {}
        for row in rows:
            mapping.setdefault(row["department_account_number"], row["department"])
        return mapping

    def soft_delete(self, mapping_id: int, conn=None) -> bool:
        query = sql.SQL(
            "UPDATE {} SET is_deleted = TRUE, updated_at = %s WHERE id = %s AND NOT is_deleted"
        ).format(sql.Identifier(self.table))
        with connection_scope(self.pool, conn) as c:
            with c.cursor() as cur:
                cur.execute(query, (datetime.utcnow(), mapping_id))
                return cur.rowcount > 0
