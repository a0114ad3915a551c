"""
Core data models for carrier-ledger.
"""

from carrier_ledger.core.models.batch_history import (
    BatchHistory,
    BatchStatus,
    ReviewAction,
)
from carrier_ledger.core.models.catalog import CARRIER_SCHEMAS, CarrierSchema, schemas_for
from carrier_ledger.core.models.department_mapping import DepartmentMapping, mappings_from_rows
from carrier_ledger.core.models.diagnostic import EnrichmentDiagnostic
from carrier_ledger.core.models.inventory import (
    ATTInventory,
    FirstNetInventory,
    StagedATTInventory,
    StagedFirstNetInventory,
    StagedVerizonWirelessInventory,
    VerizonWirelessInventory,
)
from carrier_ledger.core.models.invoices import (
    ATTInvoice,
    FirstNetInvoice,
    StagedATTInvoice,
    StagedFirstNetInvoice,
    StagedVerizonWirelessInvoice,
    VerizonWirelessInvoice,
)
from carrier_ledger.core.models.record import PermanentRecord, StagedRecord

__all__ = [
    "BatchHistory",
    "BatchStatus",
    "ReviewAction",
    "CARRIER_SCHEMAS",
    "CarrierSchema",
    "schemas_for",
    "DepartmentMapping",
    "mappings_from_rows",
    "EnrichmentDiagnostic",
    "StagedRecord",
    "PermanentRecord",
    "StagedATTInvoice",
    "ATTInvoice",
    "StagedFirstNetInvoice",
    "FirstNetInvoice",
    "StagedVerizonWirelessInvoice",
    "VerizonWirelessInvoice",
    "StagedATTInventory",
    "ATTInventory",
    "StagedFirstNetInventory",
    "FirstNetInventory",
    "StagedVerizonWirelessInventory",
    "VerizonWirelessInventory",
]
