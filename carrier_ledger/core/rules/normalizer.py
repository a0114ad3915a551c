"""
Header normalization for raw carrier rows.

Raw exports use loosely formatted, carrier-specific column headers
("Total Current Charges", "SIM Number (ICCID)", "Usage charges - data").
RowNormalizer turns them into lowerCamelCase keys that match the record
schemas' field names.
"""

import re
from typing import Any, Iterable, Mapping


def camel_case(tokens: Iterable[str]) -> str:
    """
    Join tokens into a lowerCamelCase identifier.

    The first token is lowercased; each later token has its first letter
    uppercased and the remainder lowercased.
    """
    parts = [t for t in tokens if t]
    if not parts:
        return ""
    head, *tail = parts
    return head.lower() + "".join(t[:1].upper() + t[1:].lower() for t in tail)


def header_key(field_name: str) -> str:
    """Header key that feeds a snake_case schema field (total_kb_usage -> totalKbUsage)."""
    return camel_case(field_name.split("_"))


class RowNormalizer:
    """
    Maps raw header strings to canonical lowerCamelCase keys.

    Collision policy: when two headers normalize to the same key, the one
    appearing later in the row wins.
    """

    def __init__(self, split_pattern: str, drop_pattern: str | None = None):
        """
        Args:
            split_pattern: Regex matching the delimiters between header words
            drop_pattern: Regex of characters removed before splitting
        """
        self._split = re.compile(split_pattern)
        self._drop = re.compile(drop_pattern) if drop_pattern else None

    def normalize_header(self, header: str | None) -> str:
        """Canonical key for one header; empty string when nothing is left."""
        if header is None:
            return ""
        text = header.replace("\ufeff", "").strip()
        if self._drop is not None:
            text = self._drop.sub("", text)
        return camel_case(self._split.split(text))

    def normalize(self, row: Mapping[str, Any] | None) -> dict[str, Any]:
        """
        Normalize every key of a row. Values are passed through unchanged.

        Headers that are missing or normalize to nothing keep their original
        key. Never raises.

        Args:
            row: Ordered raw header -> raw value mapping

        Returns:
            New mapping keyed by canonical header keys
        """
        if not row:
            return dict(row or {})

        normalized: dict[Any, Any] = {}
        for header, value in row.items():
            key = self.normalize_header(header) if isinstance(header, str) else ""
            normalized[key or header] = value
        return normalized


# AT&T Mobility / FirstNet invoices: punctuation removed, words split on whitespace
WORD_HEADERS = RowNormalizer(r"\s+", drop_pattern=r"[^a-zA-Z0-9\s]")

# Verizon Wireless invoices: any run of non-alphanumerics separates words
ALPHANUMERIC_HEADERS = RowNormalizer(r"[^a-zA-Z0-9]+")

# AT&T Mobility / FirstNet inventory
COLON_PAREN_HEADERS = RowNormalizer(r"[\s:()]+")

# Verizon Wireless inventory
SLASH_DASH_PAREN_HEADERS = RowNormalizer(r"[\s/\-()]+")
