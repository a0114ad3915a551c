"""
Invoice record schemas per carrier.

Each carrier declares its business fields once (``*InvoiceFields``); the
staged (``Staged*``) and permanent variants share that schema.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel

from carrier_ledger.core.carriers import Carrier, Domain
from carrier_ledger.core.models.record import PermanentRecord, StagedRecord


class ATTInvoiceFields(BaseModel):
    """
    AT&T Mobility wireless invoice line.

    Charge columns are kept as exported; only the derived recurring charge
    is a decimal.
    """

    invoice_number: str | None = None
    foundation_account: str | None = None
    foundation_account_name: str | None = None
    account_number: str | None = None
    account_and_descriptions: str | None = None
    billing_account_name: str | None = None
    wireless_number_and_descriptions: str | None = None
    wireless_number: str | None = None
    department: str | None = None
    user_name: str | None = None
    vis_code: str | None = None
    asset_tag: str | None = None
    market_cycle_end_date: date | None = None
    invoice_date: date | None = None
    rate_code: str | None = None
    rate_plan_name: str | None = None
    group_id: str | None = None
    total_current_charges: str | None = None
    total_monthly_charges: str | None = None
    total_activity_since_last_bill: str | None = None
    total_taxes: str | None = None
    total_company_fees_and_surcharges: str | None = None
    total_kb_usage: str | None = None
    total_minutes_usage: str | None = None
    total_messages: str | None = None
    total_fan_level_charges: str | None = None
    total_adjustments: str | None = None
    total_reoccurring_charges: Decimal | None = None


class FirstNetInvoiceFields(BaseModel):
    """FirstNet wireless invoice line."""

    invoice_number: str | None = None
    foundation_account: str | None = None
    foundation_account_name: str | None = None
    account_number: str | None = None
    account_and_descriptions: str | None = None
    billing_account_name: str | None = None
    wireless_number_and_descriptions: str | None = None
    wireless_number: str | None = None
    department: str | None = None
    division: str | None = None
    device_class: str | None = None
    user_name: str | None = None
    vis_code: str | None = None
    udl4: str | None = None
    market_cycle_end_date: date | None = None
    invoice_date: date | None = None
    rate_code: str | None = None
    rate_plan_name: str | None = None
    group_id: str | None = None
    total_current_charges: str | None = None
    total_monthly_charges: str | None = None
    total_activity_since_last_bill: str | None = None
    total_taxes: str | None = None
    total_company_fees_and_surcharges: str | None = None
    total_kb_usage: str | None = None
    total_minutes_usage: str | None = None
    total_messages: str | None = None
    total_fan_level_charges: str | None = None
    total_adjustments: str | None = None
    total_reoccurring_charges: Decimal | None = None


class VerizonWirelessInvoiceFields(BaseModel):
    """Verizon Wireless account-level invoice summary."""

    invoice_number: str | None = None
    account_number: str | None = None
    account_status_code: str | None = None
    account_status_description: str | None = None
    bill_account_create_date: date | None = None
    department: str | None = None
    bill_address_level_2: str | None = None
    bill_address_level_3: str | None = None
    bill_business_number: str | None = None
    bill_city: str | None = None
    bill_contact_name: str | None = None
    bill_contact_number: str | None = None
    bill_state: str | None = None
    bill_zip: str | None = None
    recurring_payment_method: str | None = None
    recurring_payment_setup: str | None = None
    account_level_share: str | None = None
    account_charges_and_credits: Decimal | None = None
    adjustments: Decimal | None = None
    balance_forward: Decimal | None = None
    equipment_charges: Decimal | None = None
    late_fee: Decimal | None = None
    monthly_charges: Decimal | None = None
    payments: Decimal | None = None
    previous_balance: Decimal | None = None
    surcharges_and_occs: Decimal | None = None
    taxes_gov_surcharges_and_fees: Decimal | None = None
    third_party_charges_to_account: Decimal | None = None
    third_party_charges_to_lines: Decimal | None = None
    total_amount_due: Decimal | None = None
    total_current_charges: Decimal | None = None
    usage_and_purchase_charges: Decimal | None = None
    usage_charges_data: Decimal | None = None
    usage_charges_purchases: Decimal | None = None
    usage_charges_roaming: Decimal | None = None
    usage_charges_voice: Decimal | None = None
    bill_name: str | None = None
    bill_period: str | None = None
    bill_period_start: date | None = None
    bill_period_end: date | None = None
    date_due: date | None = None
    remittance_address: str | None = None
    total_reoccurring_charges: Decimal | None = None


# =======================
# AT&T MOBILITY
# =======================

class StagedATTInvoice(StagedRecord, ATTInvoiceFields):
    carrier = Carrier.ATT
    domain = Domain.INVOICE
    table_name = "temp_att_invoice"
    business_schema = ATTInvoiceFields
    business_key_field = "invoice_number"


class ATTInvoice(PermanentRecord, ATTInvoiceFields):
    carrier = Carrier.ATT
    domain = Domain.INVOICE
    table_name = "att_invoice"
    business_schema = ATTInvoiceFields


# =======================
# FIRSTNET
# =======================

class StagedFirstNetInvoice(StagedRecord, FirstNetInvoiceFields):
    carrier = Carrier.FIRSTNET
    domain = Domain.INVOICE
    table_name = "temp_firstnet_invoice"
    business_schema = FirstNetInvoiceFields
    business_key_field = "invoice_number"


class FirstNetInvoice(PermanentRecord, FirstNetInvoiceFields):
    carrier = Carrier.FIRSTNET
    domain = Domain.INVOICE
    table_name = "firstnet_invoice"
    business_schema = FirstNetInvoiceFields


# =======================
# VERIZON WIRELESS
# =======================

class StagedVerizonWirelessInvoice(StagedRecord, VerizonWirelessInvoiceFields):
    carrier = Carrier.VERIZON_WIRELESS
    domain = Domain.INVOICE
    table_name = "temp_verizon_wireless_invoice"
    business_schema = VerizonWirelessInvoiceFields
    business_key_field = "invoice_number"


class VerizonWirelessInvoice(PermanentRecord, VerizonWirelessInvoiceFields):
    carrier = Carrier.VERIZON_WIRELESS
    domain = Domain.INVOICE
    table_name = "verizon_wireless_invoice"
    business_schema = VerizonWirelessInvoiceFields
