"""
Error taxonomy for ingestion and review.

Batch-level failures are raised to callers as one of these named errors.
Row-level enrichment failures (EnrichmentError) never leave a processor.
"""


class CarrierLedgerError(Exception):
    """Base class for all carrier-ledger errors."""


class UnsupportedProviderError(CarrierLedgerError):
    """Raised when a provider name has no registered processor or strategy."""

    def __init__(self, provider_name: str | None, kind: str = "processor"):
        self.provider_name = provider_name
        self.kind = kind
        if provider_name is None or not provider_name.strip():
            message = "Provider name cannot be null or empty."
        else:
            message = f"Unsupported provider: '{provider_name}'. No matching {kind} found."
        super().__init__(message)


class BatchNotFoundError(CarrierLedgerError):
    """Raised when a batch id does not resolve to a batch history."""

    def __init__(self, batch_id: str):
        self.batch_id = batch_id
        super().__init__(f"Batch not found: {batch_id}")


class InvalidBatchStateError(CarrierLedgerError):
    """Raised when a batch is not in the state an operation requires."""

    def __init__(self, batch_id: str, status: str, expected: str):
        self.batch_id = batch_id
        self.status = status
        self.expected = expected
        super().__init__(
            f"Batch {batch_id} is {status}; expected {expected}"
        )


class InvalidReviewError(CarrierLedgerError, ValueError):
    """Raised when a review decision is malformed (e.g. rejection without reason)."""


class ApprovalFailedError(CarrierLedgerError):
    """
    Raised when approving a batch fails.

    Nothing from the failed approval is committed and the batch stays
    PENDING_APPROVAL. The underlying error is chained as __cause__.
    """

    def __init__(self, batch_id: str, reason: str):
        self.batch_id = batch_id
        self.reason = reason
        super().__init__(f"Approval failed for batch {batch_id}: {reason}")


class DuplicateResourceError(CarrierLedgerError):
    """Raised when creating an entity that must be unique and already exists."""

    def __init__(self, resource: str, key: str):
        self.resource = resource
        self.key = key
        super().__init__(f"{resource} already exists: {key}")


class IngestionError(CarrierLedgerError):
    """Raised when a file cannot be ingested as a batch."""


class EmptyFileError(IngestionError):
    """Raised when an upload carries no data rows."""

    def __init__(self, filename: str | None = None):
        self.filename = filename
        super().__init__("The file is empty or contains no data rows.")


class MissingHeadersError(IngestionError):
    """Raised when a file lacks headers the provider's layout requires."""

    def __init__(self, provider_name: str, missing: list[str]):
        self.provider_name = provider_name
        self.missing = missing
        super().__init__(
            f"Missing required columns for {provider_name}: {', '.join(missing)}"
        )


class EnrichmentError(CarrierLedgerError):
    """Raised by a single enrichment rule; absorbed per row by processors."""

    def __init__(self, field_name: str, message: str):
        self.field_name = field_name
        super().__init__(message)
