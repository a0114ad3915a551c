"""
Device inventory processors for AT&T Mobility, FirstNet and Verizon Wireless.
"""

from carrier_ledger.core.models import (
    StagedATTInventory,
    StagedFirstNetInventory,
    StagedVerizonWirelessInventory,
)
from carrier_ledger.core.rules.normalizer import COLON_PAREN_HEADERS, SLASH_DASH_PAREN_HEADERS
from carrier_ledger.batch.processors.base import INVENTORY_DATE_FORMATS, BaseProcessor


class ATTInventoryProcessor(BaseProcessor):
    staged_model = StagedATTInventory
    normalizer = COLON_PAREN_HEADERS
    header_aliases = {"status": "deviceStatus"}
    date_formats = INVENTORY_DATE_FORMATS
    department_key = "billing_account_number"


class FirstNetInventoryProcessor(BaseProcessor):
    staged_model = StagedFirstNetInventory
    normalizer = COLON_PAREN_HEADERS
    header_aliases = {"status": "deviceStatus"}
    date_formats = INVENTORY_DATE_FORMATS
    department_key = "billing_account_number"


class VerizonWirelessInventoryProcessor(BaseProcessor):
    staged_model = StagedVerizonWirelessInventory
    normalizer = SLASH_DASH_PAREN_HEADERS
    date_formats = INVENTORY_DATE_FORMATS
    department_key = "account_number"
