"""
Explicit pairing of staged and permanent schemas per carrier and domain.
"""

from dataclasses import dataclass

from carrier_ledger.core.carriers import Carrier, Domain
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


@dataclass(frozen=True)
class CarrierSchema:
    carrier: Carrier
    domain: Domain
    staged_model: type[StagedRecord]
    permanent_model: type[PermanentRecord]


CARRIER_SCHEMAS: tuple[CarrierSchema, ...] = (
    CarrierSchema(Carrier.ATT, Domain.INVOICE, StagedATTInvoice, ATTInvoice),
    CarrierSchema(Carrier.FIRSTNET, Domain.INVOICE, StagedFirstNetInvoice, FirstNetInvoice),
    CarrierSchema(
        Carrier.VERIZON_WIRELESS, Domain.INVOICE,
        StagedVerizonWirelessInvoice, VerizonWirelessInvoice,
    ),
    CarrierSchema(Carrier.ATT, Domain.INVENTORY, StagedATTInventory, ATTInventory),
    CarrierSchema(Carrier.FIRSTNET, Domain.INVENTORY, StagedFirstNetInventory, FirstNetInventory),
    CarrierSchema(
        Carrier.VERIZON_WIRELESS, Domain.INVENTORY,
        StagedVerizonWirelessInventory, VerizonWirelessInventory,
    ),
)


def schemas_for(domain: Domain) -> list[CarrierSchema]:
    return [s for s in CARRIER_SCHEMAS if s.domain is domain]
