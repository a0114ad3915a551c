"""
BatchHistory model: the aggregate root of one upload run.
"""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

from carrier_ledger.core.carriers import Domain
from carrier_ledger.core.exceptions import InvalidBatchStateError

REJECTION_REASON_MAX_LENGTH = 1024


class BatchStatus(str, Enum):
    """Lifecycle states of a batch. APPROVED and REJECTED are terminal."""

    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ReviewAction(str, Enum):
    """Decision a reviewer can take on a pending batch."""

    APPROVE = "APPROVE"
    REJECT = "REJECT"


class BatchHistory(BaseModel):
    """
    One processing run of an uploaded carrier file.

    Attributes:
        id: Auto-increment primary key
        batch_id: Public identifier, assigned once at creation
        domain: Invoice or inventory batch
        status: Current lifecycle state
        carrier: Canonical provider name
        name: Uploaded filename
        file_type: Uploaded file type (csv, json)
        file_size: Uploaded file size in bytes
        uploaded_by: Who triggered the ingestion
        date_uploaded: When the batch was created
        reviewed_by: Who approved or rejected the batch
        reviewed_at: When the decision was taken
        rejection_reason: Why the batch was rejected
        is_deleted: Soft-delete flag (invoice batches only)
        updated_at: Last modification time
    """

    id: int | None = None
    batch_id: str = Field(default_factory=lambda: str(uuid4()), frozen=True)
    domain: Domain
    status: BatchStatus = BatchStatus.PENDING_APPROVAL
    carrier: str
    name: str | None = None
    file_type: str | None = None
    file_size: int | None = None
    uploaded_by: str | None = None
    date_uploaded: datetime = Field(default_factory=datetime.utcnow)
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    rejection_reason: str | None = None
    is_deleted: bool = False
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        json_schema_extra = {
            "example": {
                "batch_id": "6f1c2a52-3f0e-4f5e-9a57-0c8de3f1d7a4",
                "domain": "invoice",
                "status": "PENDING_APPROVAL",
                "carrier": "AT&T Mobility",
                "name": "att_may.csv",
                "file_type": "csv",
                "file_size": 18233,
                "uploaded_by": "billing.ops@example.com"
            }
        }

    @property
    def is_pending(self) -> bool:
        return self.status is BatchStatus.PENDING_APPROVAL

    def require_status(self, expected: BatchStatus) -> None:
        """
        Raises:
            InvalidBatchStateError: If the batch is not in the expected state
        """
        if self.status is not expected:
            raise InvalidBatchStateError(self.batch_id, self.status.value, expected.value)

    def mark_approved(self, reviewed_by: str) -> None:
        self.require_status(BatchStatus.PENDING_APPROVAL)
        now = datetime.utcnow()
        self.status = BatchStatus.APPROVED
        self.reviewed_by = reviewed_by
        self.reviewed_at = now
        self.rejection_reason = None
        self.updated_at = now

    def mark_rejected(self, reviewed_by: str, reason: str) -> None:
        self.require_status(BatchStatus.PENDING_APPROVAL)
        now = datetime.utcnow()
        self.status = BatchStatus.REJECTED
        self.reviewed_by = reviewed_by
        self.reviewed_at = now
        self.rejection_reason = reason[:REJECTION_REASON_MAX_LENGTH]
        self.updated_at = now
