"""
DepartmentMapping model and bulk-import parsing.
"""

from datetime import datetime
from typing import Any, Iterable, Mapping

from pydantic import BaseModel, Field, field_validator

from carrier_ledger.core.carriers import Carrier


class DepartmentMapping(BaseModel):
    """
    Lookup from a carrier department account number to a department name.

    Attributes:
        id: Auto-increment primary key
        foundation_account_number: Parent (foundation) account, AT&T and FirstNet only
        department_account_number: Account number looked up during enrichment (unique)
        department: Department name written onto staged records
        carrier: Canonical provider name
        created_by: Who created the mapping
        file_name: Import file the mapping came from, if any
        created_at: When the mapping was created
        updated_at: Last modification time
        is_deleted: Soft-delete flag
    """

    id: int | None = None
    foundation_account_number: str | None = None
    department_account_number: str
    department: str
    carrier: str
    created_by: str | None = None
    file_name: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    is_deleted: bool = False

    @field_validator("department_account_number", "department")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "foundation_account_number": "0123456",
                "department_account_number": "287654321098",
                "department": "Public Works",
                "carrier": "AT&T Mobility",
                "created_by": "admin"
            }
        }


def _cell(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def mappings_from_rows(
    carrier: Carrier,
    rows: Iterable[Mapping[str, Any]],
    created_by: str | None = None,
    file_name: str | None = None,
) -> list[DepartmentMapping]:
    """
    Build department mappings from an import file's rows.

    AT&T Mobility and FirstNet imports have three columns (foundation
    account, department account, department); Verizon Wireless imports have
    two (department account, department). Columns are taken by position.
    Rows missing an account number or department are skipped.

    Args:
        carrier: Carrier the import belongs to
        rows: Ordered header->value rows
        created_by: Importing user
        file_name: Import filename

    Returns:
        Parsed mappings, in file order
    """
    mappings = []
    for row in rows:
        values = [_cell(v) for v in row.values()]
        if carrier is Carrier.VERIZON_WIRELESS:
            values = [None] + values[:2]
        else:
            values = values[:3]
        if len(values) < 3:
            continue
        foundation, account, department = values
        if not account or not department:
            continue
        mappings.append(
            DepartmentMapping(
                foundation_account_number=foundation,
                department_account_number=account,
                department=department,
                carrier=carrier.value,
                created_by=created_by,
                file_name=file_name,
            )
        )
    return mappings
