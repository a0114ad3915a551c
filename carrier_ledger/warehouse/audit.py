"""
Persistence of enrichment diagnostics for manual reconciliation.
"""

from typing import Iterable

import psycopg

from carrier_ledger.core.models import EnrichmentDiagnostic
from carrier_ledger.observability.logger import get_logger
from carrier_ledger.warehouse.connection import DatabaseConnectionPool, connection_scope

logger = get_logger(__name__)

INSERT_DIAGNOSTIC_SQL = """
    INSERT INTO enrichment_diagnostic (
        batch_id,
        provider,
        domain,
        source_filename,
        row_number,
        record_key,
        field_name,
        message,
        row_dropped,
        created_at
    ) VALUES (
        %(batch_id)s,
        %(provider)s,
        %(domain)s,
        %(source_filename)s,
        %(row_number)s,
        %(record_key)s,
        %(field_name)s,
        %(message)s,
        %(row_dropped)s,
        %(created_at)s
    )
"""

SELECT_BY_BATCH_SQL = """
    SELECT diagnostic_id, batch_id, provider, domain, source_filename,
           row_number, record_key, field_name, message, row_dropped, created_at
    FROM enrichment_diagnostic
    WHERE batch_id = %s
    ORDER BY row_number, diagnostic_id
"""


class DiagnosticRepository:
    """Storage for enrichment_diagnostic."""

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def save_all(self, diagnostics: Iterable[EnrichmentDiagnostic], conn=None) -> int:
        """
        Bulk insert diagnostics.

        Returns:
            Number of diagnostics inserted

        Raises:
            psycopg.DatabaseError: If the insert fails
        """
        params = [d.model_dump(exclude={"diagnostic_id"}) for d in diagnostics]
        if not params:
            return 0

        try:
            with connection_scope(self.pool, conn) as c:
                with c.cursor() as cur:
                    cur.executemany(INSERT_DIAGNOSTIC_SQL, params)
        except psycopg.DatabaseError as e:
            logger.error(f"Failed to insert {len(params)} enrichment diagnostics: {e}")
            raise

        logger.debug(f"Inserted {len(params)} enrichment diagnostics")
        return len(params)

    def find_by_batch_id(self, batch_id: str, conn=None) -> list[EnrichmentDiagnostic]:
        with connection_scope(self.pool, conn) as c:
            with c.cursor() as cur:
                cur.execute(SELECT_BY_BATCH_SQL, (batch_id,))
                rows = cur.fetchall()
        return [EnrichmentDiagnostic.model_validate(row) for row in rows]
