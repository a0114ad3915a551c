"""
Provider processors and their registries.
"""

from typing import Callable

from carrier_ledger.core.carriers import Domain
from carrier_ledger.core.registry import ProviderRegistry
from carrier_ledger.batch.processors.base import BaseProcessor, RowContext
from carrier_ledger.batch.processors.inventory import (
    ATTInventoryProcessor,
    FirstNetInventoryProcessor,
    VerizonWirelessInventoryProcessor,
)
from carrier_ledger.batch.processors.invoice import (
    ATTInvoiceProcessor,
    FirstNetInvoiceProcessor,
    VerizonWirelessInvoiceProcessor,
)

PROCESSOR_CLASSES: dict[Domain, tuple[type[BaseProcessor], ...]] = {
    Domain.INVOICE: (
        ATTInvoiceProcessor,
        FirstNetInvoiceProcessor,
        VerizonWirelessInvoiceProcessor,
    ),
    Domain.INVENTORY: (
        ATTInventoryProcessor,
        FirstNetInventoryProcessor,
        VerizonWirelessInventoryProcessor,
    ),
}


def build_processor_registry(domain: Domain, repository_for: Callable) -> ProviderRegistry:
    """
    Build the processor registry of one domain.

    Args:
        domain: invoice or inventory
        repository_for: Returns the record repository for a model class

    Returns:
        Registry of one processor per supported carrier
    """
    return ProviderRegistry(
        f"{domain.value} processor",
        [cls(repository_for(cls.staged_model)) for cls in PROCESSOR_CLASSES[domain]],
    )


__all__ = [
    "BaseProcessor",
    "RowContext",
    "ATTInvoiceProcessor",
    "FirstNetInvoiceProcessor",
    "VerizonWirelessInvoiceProcessor",
    "ATTInventoryProcessor",
    "FirstNetInventoryProcessor",
    "VerizonWirelessInventoryProcessor",
    "PROCESSOR_CLASSES",
    "build_processor_registry",
]
