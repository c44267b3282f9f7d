# Overview: Invoice number formatting and parsing (<prefix><zero-padded counter>).

from __future__ import annotations

import re
from datetime import datetime, timezone

MIN_WIDTH = 4

_PREFIX_RE = re.compile(r"^[A-Za-z0-9]+$")


class InvoiceNumberFormatError(ValueError):
    """Raised when an invoice prefix is unusable."""


def validate_prefix(prefix: str) -> str:
    if not prefix or not _PREFIX_RE.match(prefix):
        raise InvoiceNumberFormatError(
            f"Invoice prefix must be non-empty and alphanumeric, got {prefix!r}"
        )
    return prefix


def format_invoice_number(prefix: str, number: int, pad: int = MIN_WIDTH) -> str:
    """
    glxy + 42 -> glxy0042; widths beyond the pad are kept as-is (glxy10000).
    """
    if number < 1:
        raise InvoiceNumberFormatError("Invoice numbers start at 1")
    return f"{prefix}{number:0{pad}d}"


def parse_invoice_number(prefix: str, value: str | None) -> int | None:
    """Numeric suffix of <prefix><digits>, or None if value does not follow that shape."""
    if not value or not value.startswith(prefix):
        return None
    suffix = value[len(prefix):]
    if not suffix.isdigit():
        return None
    return int(suffix)


def next_invoice_number(prefix: str, highest: str | None) -> tuple[str, int]:
    """
    Next number after the highest one in the store.

    Returns (invoice_number, sequence_no). An empty store, or a highest value
    that does not parse, starts the sequence at 1.
    """
    current = parse_invoice_number(prefix, highest) or 0
    sequence_no = current + 1
    return format_invoice_number(prefix, sequence_no), sequence_no


def fallback_invoice_number(prefix: str, now: datetime, attempt: int = 1) -> str:
    """
    Degraded-mode number used only when the highest number cannot be read.

    The "T" marker keeps it outside the <prefix><digits> pattern, so it is
    never mistaken for the highest sequential number later. Retries after a
    clash in the same millisecond get a "-<attempt>" suffix.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    millis = int(now.timestamp() * 1000)
    if attempt > 1:
        return f"{prefix}T{millis}-{attempt}"
    return f"{prefix}T{millis}"
