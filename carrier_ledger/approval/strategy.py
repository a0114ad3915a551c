"""
Approval strategies: promote or discard the staged records of a batch.

One generic ApprovalStrategy serves every carrier; what differs per carrier
is the staged/permanent model pair and their repositories.
"""

from contextlib import contextmanager
from typing import Callable

from carrier_ledger.core.carriers import Domain
from carrier_ledger.core.models import BatchHistory, PermanentRecord, StagedRecord, schemas_for
from carrier_ledger.core.registry import ProviderRegistry
from carrier_ledger.observability.logger import get_logger
from carrier_ledger.observability.metrics import approval_duration_seconds, track_duration

logger = get_logger(__name__)


class ApprovalStrategy:
    """
    Approve or reject one carrier's staged records for a batch.

    Usage:
        strategy = ApprovalStrategy(staged_repo, permanent_repo, pool)
        strategy.approve(batch)
    """

    def __init__(self, staged_repository, permanent_repository, transactions):
        """
        Args:
            staged_repository: Repository over the carrier's staged table
            permanent_repository: Repository over the carrier's permanent table
            transactions: Object whose transaction() yields a connection (the pool)
        """
        self.staged = staged_repository
        self.permanent = permanent_repository
        self.transactions = transactions
        self.permanent_model: type[PermanentRecord] = permanent_repository.model
        self.staged_model: type[StagedRecord] = staged_repository.model

    def provider_name(self) -> str:
        return self.staged_model.carrier.value

    @property
    def domain(self) -> str:
        return self.staged_model.domain.value

    @contextmanager
    def _transaction(self, conn=None):
        if conn is not None:
            yield conn
            return
        with self.transactions.transaction() as tx:
            yield tx

    def pending_for_review(self, batch_id: str) -> list[StagedRecord]:
        """Staged records of a batch, empty if there are none."""
        return self.staged.find_by_batch_id(batch_id)

    def approve(self, batch: BatchHistory, conn=None) -> list[PermanentRecord]:
        """
        Promote every staged record of the batch in one transaction.

        Staged rows are re-read under a row lock, converted, inserted into
        the permanent table and then deleted. A failure at any step rolls
        back the whole sequence. With nothing left staged this is a no-op.

        Args:
            batch: Batch being approved
            conn: Connection of an enclosing transaction, if any

        Returns:
            The permanent records created
        """
        with track_duration(approval_duration_seconds, provider=self.provider_name(), domain=self.domain):
            with self._transaction(conn) as tx:
                staged = self.staged.find_by_batch_id(batch.batch_id, conn=tx, for_update=True)
                if not staged:
                    logger.info(f"No staged records left for batch {batch.batch_id}; nothing to approve")
                    return []

                permanent = [self.permanent_model.from_staged(record, batch) for record in staged]
                self.permanent.save_all(permanent, conn=tx)
                self.staged.delete_all_by_batch_id(batch.batch_id, conn=tx)

        logger.info(
            f"Approved {len(permanent)} {self.provider_name()} {self.domain} records",
            extra={"batch_id": batch.batch_id},
        )
        return permanent

    def reject(self, batch_id: str, conn=None) -> int:
        """
        Discard every staged record of the batch. Permanent storage is untouched.

        Returns:
            Number of staged records deleted
        """
        with self._transaction(conn) as tx:
            deleted = self.staged.delete_all_by_batch_id(batch_id, conn=tx)
        logger.info(
            f"Rejected batch {batch_id}: discarded {deleted} staged {self.provider_name()} records",
            extra={"batch_id": batch_id},
        )
        return deleted

    def final_records(self, batch_id: str) -> list[PermanentRecord]:
        """Permanent records that were approved from the batch."""
        return self.permanent.find_by_batch_id(batch_id)


def build_strategy_registry(domain: Domain, repository_for: Callable, transactions) -> ProviderRegistry:
    """
    Build the approval strategy registry of one domain.

    Args:
        domain: invoice or inventory
        repository_for: Returns the record repository for a model class
        transactions: Transaction provider shared by all strategies

    Returns:
        Registry of one strategy per supported carrier
    """
    return ProviderRegistry(
        f"{domain.value} approval strategy",
        [
            ApprovalStrategy(
                repository_for(schema.staged_model),
                repository_for(schema.permanent_model),
                transactions,
            )
            for schema in schemas_for(domain)
        ],
    )
