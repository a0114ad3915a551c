"""
Invoice processors for AT&T Mobility, FirstNet and Verizon Wireless.
"""

from decimal import Decimal
from typing import Any

from carrier_ledger.core.exceptions import EnrichmentError
from carrier_ledger.core.models import (
    StagedATTInvoice,
    StagedFirstNetInvoice,
    StagedVerizonWirelessInvoice,
)
from carrier_ledger.core.rules.enrichment import (
    account_from_description,
    is_blank,
    recurring_charge_delta,
    render_account_number,
    split_bill_period,
    strip_thousands_separators,
    synthesize_invoice_number,
)
from carrier_ledger.core.rules.normalizer import ALPHANUMERIC_HEADERS, WORD_HEADERS, header_key
from carrier_ledger.batch.processors.base import BaseProcessor, RowContext

# Monetary columns of the Verizon Wireless invoice summary; exported with
# thousands separators that the decimal conversion does not accept.
VERIZON_MONETARY_FIELDS = (
    "account_charges_and_credits",
    "adjustments",
    "balance_forward",
    "equipment_charges",
    "late_fee",
    "monthly_charges",
    "payments",
    "previous_balance",
    "surcharges_and_occs",
    "taxes_gov_surcharges_and_fees",
    "third_party_charges_to_account",
    "third_party_charges_to_lines",
    "total_amount_due",
    "total_current_charges",
    "usage_and_purchase_charges",
    "usage_charges_data",
    "usage_charges_purchases",
    "usage_charges_roaming",
    "usage_charges_voice",
)
VERIZON_MONETARY_KEYS = tuple(header_key(name) for name in VERIZON_MONETARY_FIELDS)


class WirelessInvoiceProcessor(BaseProcessor):
    """
    AT&T-style wireless invoice lines (AT&T Mobility, FirstNet).

    Derives the invoice number from account number and invoice date, and
    the recurring charge as current charges minus activity since last bill.
    """

    normalizer = WORD_HEADERS
    date_formats = ("%m/%d/%Y",)
    department_key = "account_number"
    derived_fields = frozenset({"total_reoccurring_charges"})

    def derive_fields(self, record, ctx: RowContext) -> None:
        self.apply_invoice_number(record, ctx)
        try:
            record.total_reoccurring_charges = recurring_charge_delta(
                record.total_current_charges,
                record.total_activity_since_last_bill,
            )
        except EnrichmentError as e:
            record.total_reoccurring_charges = None
            ctx.warn(
                "total_reoccurring_charges",
                f"{e} for wireless number {record.wireless_number}; recurring charge left unset",
                record,
            )

    def apply_invoice_number(self, record, ctx: RowContext) -> None:
        """
        Render the account number plainly and synthesize the invoice number.

        A blank account number leaves both untouched. A non-numeric one is
        kept as exported and no invoice number is synthesized.
        """
        if is_blank(record.account_number):
            return
        try:
            account_number = render_account_number(record.account_number)
        except EnrichmentError as e:
            ctx.warn("invoice_number", f"{e}; invoice number not synthesized", record)
            return

        record.account_number = account_number
        invoice_number = synthesize_invoice_number(account_number, record.invoice_date)
        if invoice_number is not None:
            record.invoice_number = invoice_number


class ATTInvoiceProcessor(WirelessInvoiceProcessor):
    staged_model = StagedATTInvoice
    # Unmapped accounts fall back to the export's account name
    header_aliases = {"accountName": "department"}


class FirstNetInvoiceProcessor(WirelessInvoiceProcessor):
    """
    FirstNet exports carry the division in the department column and the
    department in the billing account name; UDL2 holds the VIS code.

    Invoice bundles supply the real invoice numbers per account; when a
    lookup is given it replaces the derived invoice number, keyed by the
    account number leading the "Account and descriptions" column.
    """

    staged_model = StagedFirstNetInvoice
    accepts_invoice_numbers = True

    def prepare_row(self, row: dict[str, Any]) -> dict[str, Any]:
        row = dict(row)
        row["division"] = row.get("department")
        row["department"] = row.get("billingAccountName")
        if "udl2" in row:
            row["visCode"] = row.pop("udl2")
        return row

    def derive_fields(self, record, ctx: RowContext) -> None:
        super().derive_fields(record, ctx)
        if ctx.invoice_numbers is None:
            return

        account = account_from_description(record.account_and_descriptions)
        invoice_number = ctx.invoice_numbers.get(account) if account else None
        if invoice_number is None:
            ctx.warn(
                "invoice_number",
                f"No invoice number for account in '{record.account_and_descriptions}'; "
                f"keeping '{record.invoice_number}'",
                record,
            )
            return
        record.invoice_number = invoice_number


class VerizonWirelessInvoiceProcessor(BaseProcessor):
    """
    Verizon Wireless account-level invoice summaries.

    Rows that do not convert (e.g. a non-numeric amount) are dropped.
    """

    staged_model = StagedVerizonWirelessInvoice
    normalizer = ALPHANUMERIC_HEADERS
    header_aliases = {
        "billAddressLevel1": "department",
        "taxesGovernmentalSurchargesAndFees": "taxesGovSurchargesAndFees",
        "surchargesAndOcCs": "surchargesAndOccs",
    }
    date_formats = ("%m/%d/%Y",)
    department_key = "account_number"
    derived_fields = frozenset(
        {"total_reoccurring_charges", "bill_period_start", "bill_period_end"}
    )
    strict_conversion = True

    def prepare_row(self, row: dict[str, Any]) -> dict[str, Any]:
        return strip_thousands_separators(row, VERIZON_MONETARY_KEYS)

    def derive_fields(self, record, ctx: RowContext) -> None:
        if record.invoice_number:
            record.invoice_number = record.invoice_number.replace(",", "")

        if record.monthly_charges is not None:
            record.total_reoccurring_charges = record.monthly_charges
        else:
            record.total_reoccurring_charges = Decimal(0)
            ctx.warn(
                "total_reoccurring_charges",
                f"Monthly charges missing for account {record.account_number}; recurring charge set to 0",
                record,
            )

        if record.bill_period:
            try:
                record.bill_period_start, record.bill_period_end = split_bill_period(record.bill_period)
            except EnrichmentError as e:
                ctx.warn("bill_period", f"{e}; bill period dates left unset", record)
