"""
Base models for staged and permanent carrier records.

A carrier's business fields are declared once as a plain schema model
(e.g. ATTInvoiceFields). The staged and permanent variants both inherit
that schema and add their own bookkeeping columns, so the set of fields
copied on approval is exactly the schema's field set.
"""

from datetime import datetime
from typing import Any, ClassVar

from pydantic import BaseModel, Field

from carrier_ledger.core.carriers import Carrier, Domain
from carrier_ledger.core.models.batch_history import BatchHistory, BatchStatus


class StagedRecord(BaseModel):
    """
    A normalized, enriched row awaiting review.

    Attributes:
        id: Auto-increment primary key
        batch_id: Owning batch (public batch id)
        source_filename: File the row came from
        status: Mirrors the batch status while staged
        created_at: When the row was staged
        updated_at: Last modification time
    """

    carrier: ClassVar[Carrier]
    domain: ClassVar[Domain]
    table_name: ClassVar[str]
    business_schema: ClassVar[type[BaseModel]]
    business_key_field: ClassVar[str]

    id: int | None = None
    batch_id: str | None = None
    source_filename: str | None = None
    status: BatchStatus = BatchStatus.PENDING_APPROVAL
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def business_key(self) -> str | None:
        return getattr(self, self.business_key_field, None)

    def business_fields(self) -> dict[str, Any]:
        """Carrier-specific field values, without identity, timestamps or batch linkage."""
        return self.model_dump(include=set(self.business_schema.model_fields))

    def stamp(self, batch: BatchHistory, filename: str | None) -> None:
        self.batch_id = batch.batch_id
        self.source_filename = filename
        self.status = BatchStatus.PENDING_APPROVAL


class PermanentRecord(BaseModel):
    """
    A ledger record created by approving a staged record.

    Attributes:
        id: Auto-increment primary key
        batch_id: Batch the record was approved from (traceability only)
        created_at: When the record was promoted
        updated_at: Last modification time
    """

    carrier: ClassVar[Carrier]
    domain: ClassVar[Domain]
    table_name: ClassVar[str]
    business_schema: ClassVar[type[BaseModel]]

    id: int | None = None
    batch_id: str
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @classmethod
    def from_staged(cls, staged: StagedRecord, batch: BatchHistory) -> "PermanentRecord":
        """
        Build the permanent image of a staged record.

        Args:
            staged: Staged record of the same carrier schema
            batch: Batch being approved

        Returns:
            New, unsaved permanent record linked to the batch

        Raises:
            TypeError: If the staged record belongs to another carrier schema
        """
        if staged.business_schema is not cls.business_schema:
            raise TypeError(
                f"Cannot promote {type(staged).__name__} to {cls.__name__}"
            )
        return cls(batch_id=batch.batch_id, **staged.business_fields())
