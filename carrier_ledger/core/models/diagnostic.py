"""
EnrichmentDiagnostic model: one row-level problem found during ingestion.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class EnrichmentDiagnostic(BaseModel):
    """
    Row-level enrichment problem kept for manual reconciliation.

    Attributes:
        diagnostic_id: Auto-increment primary key
        batch_id: Batch the row belongs to
        provider: Canonical provider name
        domain: invoice or inventory
        source_filename: File the row came from
        row_number: 1-based data row number in the file
        record_key: Business key of the record (invoice number, wireless number), if known
        field_name: Field the problem concerns ("row" when the row was dropped)
        message: What went wrong
        row_dropped: Whether the row was excluded from the staged set
        created_at: When the problem was recorded
    """

    diagnostic_id: int | None = None
    batch_id: str | None = None
    provider: str
    domain: str
    source_filename: str | None = None
    row_number: int
    record_key: str | None = None
    field_name: str
    message: str
    row_dropped: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        json_schema_extra = {
            "example": {
                "batch_id": "6f1c2a52-3f0e-4f5e-9a57-0c8de3f1d7a4",
                "provider": "AT&T Mobility",
                "domain": "invoice",
                "source_filename": "att_may.csv",
                "row_number": 3,
                "record_key": None,
                "field_name": "invoice_number",
                "message": "Account number 'abc' is not numeric",
                "row_dropped": False
            }
        }
