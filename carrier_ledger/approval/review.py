"""
Review workflow: approve or reject a pending batch.
"""

from psycopg.errors import UniqueViolation

from carrier_ledger.approval.strategy import ApprovalStrategy, build_strategy_registry
from carrier_ledger.core.carriers import Domain
from carrier_ledger.core.exceptions import (
    ApprovalFailedError,
    BatchNotFoundError,
    InvalidReviewError,
)
from carrier_ledger.core.models import (
    BatchHistory,
    BatchStatus,
    EnrichmentDiagnostic,
    PermanentRecord,
    ReviewAction,
    StagedRecord,
)
from carrier_ledger.core.registry import ProviderRegistry
from carrier_ledger.observability.logger import get_logger, log_operation
from carrier_ledger.observability.metrics import record_review

logger = get_logger(__name__)

DUPLICATE_ENTRIES_REASON = "The batch contains duplicate entries"


def _failure_reason(error: Exception) -> str:
    cause = error
    while cause is not None:
        if isinstance(cause, UniqueViolation):
            return DUPLICATE_ENTRIES_REASON
        cause = cause.__cause__
    return str(error) or type(error).__name__


class ReviewService:
    """
    Takes review decisions on the batches of one domain.

    A decision runs in a single transaction holding a row lock on the
    batch history, so concurrent decisions on one batch serialize and
    only the first one finds it PENDING_APPROVAL.
    """

    def __init__(
        self,
        domain: Domain,
        transactions,
        histories,
        strategies: ProviderRegistry,
        diagnostics=None,
    ):
        self.domain = domain
        self.transactions = transactions
        self.histories = histories
        self.strategies = strategies
        self.diagnostic_repository = diagnostics

    @classmethod
    def for_database(cls, pool, domain: Domain) -> "ReviewService":
        """Review service backed by the PostgreSQL repositories."""
        from carrier_ledger.warehouse.audit import DiagnosticRepository
        from carrier_ledger.warehouse.repositories import BatchHistoryRepository, RecordRepository

        return cls(
            domain=domain,
            transactions=pool,
            histories=BatchHistoryRepository(pool, domain),
            strategies=build_strategy_registry(domain, lambda model: RecordRepository(pool, model), pool),
            diagnostics=DiagnosticRepository(pool),
        )

    def _require_batch(self, batch_id: str, conn=None, for_update: bool = False) -> BatchHistory:
        batch = self.histories.find_by_batch_id(batch_id, conn=conn, for_update=for_update)
        if batch is None:
            raise BatchNotFoundError(batch_id)
        return batch

    def _strategy_for(self, batch: BatchHistory) -> ApprovalStrategy:
        return self.strategies.resolve(batch.carrier)

    def decide(
        self,
        batch_id: str,
        action: ReviewAction | str,
        reviewed_by: str,
        rejection_reason: str | None = None,
    ) -> BatchHistory:
        """
        Approve or reject a pending batch.

        Args:
            batch_id: Batch to decide on
            action: APPROVE or REJECT
            reviewed_by: Reviewer identity
            rejection_reason: Required when rejecting; truncated to 1024 characters

        Returns:
            The updated batch history

        Raises:
            BatchNotFoundError: If the batch does not exist
            InvalidBatchStateError: If the batch is not PENDING_APPROVAL
            InvalidReviewError: If the action is unknown or a rejection has no reason
            ApprovalFailedError: If promotion fails; nothing is committed
        """
        try:
            action = ReviewAction(action.strip().upper() if isinstance(action, str) else action)
        except ValueError as e:
            raise InvalidReviewError(f"Unknown review action: {action!r}") from e
        if action is ReviewAction.REJECT and (rejection_reason is None or not rejection_reason.strip()):
            raise InvalidReviewError("A rejection reason is required to reject a batch")

        with log_operation(
            f"{action.value.title()} {self.domain.value} batch",
            logger=logger,
            batch_id=batch_id,
            reviewed_by=reviewed_by,
        ):
            if action is ReviewAction.APPROVE:
                return self._approve(batch_id, reviewed_by)
            return self._reject(batch_id, reviewed_by, rejection_reason)

    def _approve(self, batch_id: str, reviewed_by: str) -> BatchHistory:
        with self.transactions.transaction() as conn:
            batch = self._require_batch(batch_id, conn=conn, for_update=True)
            strategy = self._strategy_for(batch)
            provider = strategy.provider_name()
            batch.require_status(BatchStatus.PENDING_APPROVAL)

            try:
                promoted = strategy.approve(batch, conn=conn)
                batch.mark_approved(reviewed_by)
                self.histories.update_review(batch, conn=conn)
            except Exception as e:
                record_review(provider, self.domain.value, ReviewAction.APPROVE.value, success=False)
                logger.error(f"Approval of batch {batch_id} rolled back: {e}", extra={"batch_id": batch_id})
                raise ApprovalFailedError(batch_id, _failure_reason(e)) from e

        record_review(provider, self.domain.value, ReviewAction.APPROVE.value, success=True, promoted=len(promoted))
        logger.info(
            f"Batch {batch_id} approved by {reviewed_by}: {len(promoted)} records promoted",
            extra={"batch_id": batch_id, "carrier": provider},
        )
        return batch

    def _reject(self, batch_id: str, reviewed_by: str, reason: str) -> BatchHistory:
        with self.transactions.transaction() as conn:
            batch = self._require_batch(batch_id, conn=conn, for_update=True)
            strategy = self._strategy_for(batch)
            batch.require_status(BatchStatus.PENDING_APPROVAL)

            discarded = strategy.reject(batch_id, conn=conn)
            batch.mark_rejected(reviewed_by, reason.strip())
            self.histories.update_review(batch, conn=conn)

        record_review(strategy.provider_name(), self.domain.value, ReviewAction.REJECT.value, success=True)
        logger.info(
            f"Batch {batch_id} rejected by {reviewed_by}: {discarded} staged records discarded",
            extra={"batch_id": batch_id, "carrier": batch.carrier},
        )
        return batch

    def pending_for_review(self, batch_id: str) -> list[StagedRecord]:
        """
        Staged records of a batch awaiting review.

        Raises:
            BatchNotFoundError: If the batch does not exist
        """
        batch = self._require_batch(batch_id)
        return self._strategy_for(batch).pending_for_review(batch_id)

    def final_records(self, batch_id: str) -> list[PermanentRecord]:
        """
        Permanent records promoted from a batch.

        Raises:
            BatchNotFoundError: If the batch does not exist
        """
        batch = self._require_batch(batch_id)
        return self._strategy_for(batch).final_records(batch_id)

    def approved_batch_details(self, batch_id: str) -> tuple[BatchHistory, list[PermanentRecord]]:
        """
        Raises:
            BatchNotFoundError: If the batch does not exist
            InvalidBatchStateError: If the batch is not APPROVED
        """
        batch = self._require_batch(batch_id)
        batch.require_status(BatchStatus.APPROVED)
        return batch, self._strategy_for(batch).final_records(batch_id)

    def list_batches(self, include_deleted: bool = False) -> list[BatchHistory]:
        return self.histories.list_batches(include_deleted=include_deleted)

    def delete_batch(self, batch_id: str) -> bool:
        """Soft-delete an invoice batch. Returns False if it was already deleted."""
        self._require_batch(batch_id)
        deleted = self.histories.soft_delete(batch_id)
        if deleted:
            logger.info(f"Soft-deleted batch {batch_id}", extra={"batch_id": batch_id})
        return deleted

    def diagnostics(self, batch_id: str) -> list[EnrichmentDiagnostic]:
        """Enrichment diagnostics recorded while ingesting a batch."""
        if self.diagnostic_repository is None:
            return []
        return self.diagnostic_repository.find_by_batch_id(batch_id)
