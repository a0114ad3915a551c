"""
Normalization and enrichment rules for carrier rows.
"""

from carrier_ledger.core.rules.header_config import ProviderHeaderConfig
from carrier_ledger.core.rules.normalizer import RowNormalizer, camel_case, header_key

__all__ = ["ProviderHeaderConfig", "RowNormalizer", "camel_case", "header_key"]
