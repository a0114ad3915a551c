"""
Field enrichment rules.

Pure functions deriving business fields from converted row values. Rules
raise EnrichmentError when a value cannot be derived; processors catch it,
record a diagnostic and leave the field unset.
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from carrier_ledger.core.exceptions import EnrichmentError

INVOICE_NUMBER_SEPARATOR = "X"
INVOICE_NUMBER_DAY_TOKEN = "09"
BILL_PERIOD_SEPARATOR = " - "
BILL_PERIOD_DATE_FORMAT = "%b %d %Y"

_NON_CURRENCY_CHARS = re.compile(r"[^\d.\-]")
_LEADING_DIGITS = re.compile(r"^(\d+)")


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def is_blank_row(row: Mapping[Any, Any] | None) -> bool:
    """True when the row is missing or every value is null/blank."""
    if not row:
        return True
    return all(is_blank(v) for v in row.values())


def clean_value(value: Any) -> Any:
    """Trim strings and turn blanks into None; other values are returned as-is."""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def parse_date(value: str, formats: Iterable[str], field_name: str = "date") -> date:
    """
    Parse a date with the first matching format.

    Raises:
        EnrichmentError: If no format matches
    """
    for fmt in formats:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise EnrichmentError(field_name, f"Unparseable date '{value}'")


def render_account_number(account_number: str) -> str:
    """
    Render an account number as a plain decimal string.

    "1.23E+5" -> "123000", "000123" -> "123".

    Raises:
        EnrichmentError: If the value is not a finite number
    """
    try:
        number = Decimal(account_number.strip())
    except InvalidOperation:
        raise EnrichmentError(
            "account_number", f"Account number '{account_number}' is not numeric"
        ) from None
    if not number.is_finite():
        raise EnrichmentError(
            "account_number", f"Account number '{account_number}' is not numeric"
        )
    return format(number, "f")


def synthesize_invoice_number(account_number: str, invoice_date: date | None) -> str | None:
    """
    Build an invoice number from a rendered account number and invoice date.

    Format: <account>X<MM>09<YYYY>, e.g. ("123", 2024-07-15) -> "123X07092024".

    Returns:
        The invoice number, or None when there is no invoice date
    """
    if invoice_date is None:
        return None
    return (
        f"{account_number}{INVOICE_NUMBER_SEPARATOR}"
        f"{invoice_date.month:02d}{INVOICE_NUMBER_DAY_TOKEN}{invoice_date.year:04d}"
    )


def parse_currency(value: str | None, field_name: str = "amount") -> Decimal:
    """
    Parse a currency string, keeping only digits, dots and minus signs.

    Blank values are zero.

    Raises:
        EnrichmentError: If nothing numeric remains
    """
    if is_blank(value):
        return Decimal(0)
    stripped = _NON_CURRENCY_CHARS.sub("", str(value))
    try:
        return Decimal(stripped)
    except InvalidOperation:
        raise EnrichmentError(field_name, f"Unparseable amount '{value}'") from None


def recurring_charge_delta(current_charges: str | None, activity_since_last_bill: str | None) -> Decimal:
    """
    Recurring charge = total current charges - total activity since last bill.

    Raises:
        EnrichmentError: If either amount cannot be parsed
    """
    current = parse_currency(current_charges, "total_current_charges")
    activity = parse_currency(activity_since_last_bill, "total_activity_since_last_bill")
    return current - activity


def strip_thousands_separators(row: Mapping[str, Any], keys: Iterable[str]) -> dict[str, Any]:
    """Copy of row with commas removed from the string values of the given keys."""
    sanitized = dict(row)
    for key in keys:
        value = sanitized.get(key)
        if isinstance(value, str):
            sanitized[key] = value.replace(",", "")
    return sanitized


def split_bill_period(bill_period: str) -> tuple[date, date]:
    """
    Split "Jan 01 2024 - Jan 31 2024" into its start and end dates.

    Raises:
        EnrichmentError: If the separator is missing or a side is not "MMM dd yyyy"
    """
    parts = bill_period.split(BILL_PERIOD_SEPARATOR)
    if len(parts) != 2:
        raise EnrichmentError("bill_period", f"Malformed bill period '{bill_period}'")
    start, end = (
        parse_date(p.strip(), [BILL_PERIOD_DATE_FORMAT], "bill_period") for p in parts
    )
    return start, end


def lookup_department(account_number: str | None, mapping: Mapping[str, str]) -> str | None:
    """Mapped department for an account number, or None when unmapped."""
    if is_blank(account_number):
        return None
    return mapping.get(account_number.strip())


def account_from_description(description: str | None) -> str | None:
    """
    Leading account number of an "Account and descriptions" value.

    "287298936374 (CITY OF SAN JOSE PUBLIC WORKS)" -> "287298936374"
    """
    if is_blank(description):
        return None
    match = _LEADING_DIGITS.match(description.strip())
    return match.group(1) if match else None


def invoice_numbers_from_rows(rows: Iterable[Mapping[str, Any]]) -> dict[str, str]:
    """
    Account number -> invoice number from a two-column lookup file.

    The first column holds the account number and the second the invoice
    number. Rows missing either are skipped; a later row wins.
    """
    lookup: dict[str, str] = {}
    for row in rows:
        values = [clean_value(v) for v in list(row.values())[:2]]
        if len(values) < 2 or is_blank(values[0]) or is_blank(values[1]):
            continue
        lookup[str(values[0]).strip()] = str(values[1]).strip()
    return lookup
