"""
Supported carriers and ingestion domains.

Carriers are enumerated explicitly; adding a carrier means adding a member
here and wiring its processor and approval strategy in the registries.
"""

from enum import Enum


class Carrier(str, Enum):
    """Telecom providers whose exports can be ingested."""

    ATT = "AT&T Mobility"
    FIRSTNET = "FirstNet"
    VERIZON_WIRELESS = "Verizon Wireless"

    @property
    def key(self) -> str:
        """Case-insensitive lookup key."""
        return provider_key(self.value)


class Domain(str, Enum):
    """Kind of export a batch carries."""

    INVOICE = "invoice"
    INVENTORY = "inventory"


def provider_key(provider_name: str) -> str:
    """
    Build the registry key for a provider name.

    Args:
        provider_name: Provider name as supplied by a caller

    Returns:
        Trimmed, lowercased provider name
    """
    return provider_name.strip().lower()
