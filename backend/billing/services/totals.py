# Overview: Monetary computation for invoices: subtotal, discount, tax, grand total, change.

"""
Invoice totals.

Rounding policy: the subtotal is an exact integer in cents. Discount and
tax are each rounded once, half-up, from exact intermediates. The grand
total is derived from the rounded components, so
grand_total == sub_total - discount + tax holds exactly.
"""

from __future__ import annotations

import logging
from typing import Iterable, Protocol

from ..errors import ValidationError
from ..records import (
    DISCOUNT_AMOUNT,
    DISCOUNT_PERCENTAGE,
    DISCOUNT_TYPES,
    FULL_RATE_BPS,
    MAX_PRICE_CENTS,
    MAX_QUANTITY,
    MAX_TOTAL_CENTS,
    Discount,
    Totals,
)

logger = logging.getLogger(__name__)


class PricedLine(Protocol):
    quantity: int
    unit_amount_cents: int


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def apply_rate(amount_cents: int, rate_bps: int) -> int:
    """amount * rate / 10000, rounded half-up to whole cents (inputs are non-negative)."""
    numerator = amount_cents * rate_bps
    return (2 * numerator + FULL_RATE_BPS) // (2 * FULL_RATE_BPS)


def validate_lines(lines: Iterable[PricedLine]) -> list:
    lines = list(lines)
    if not lines:
        raise ValidationError("Invoice must have at least one line")

    for i, line in enumerate(lines):
        if not _is_int(line.quantity) or not 0 < line.quantity <= MAX_QUANTITY:
            raise ValidationError(
                f"Line quantity must be a whole number from 1 to {MAX_QUANTITY}",
                details={"line": i, "quantity": line.quantity},
            )
        if not _is_int(line.unit_amount_cents) or not 0 <= line.unit_amount_cents <= MAX_PRICE_CENTS:
            raise ValidationError(
                f"Line amount must be from 0 to {MAX_PRICE_CENTS} cents",
                details={"line": i, "unit_amount_cents": line.unit_amount_cents},
            )
    return lines


def validate_discount(discount: Discount) -> None:
    if discount.type not in DISCOUNT_TYPES:
        raise ValidationError(
            f"discount type must be one of {', '.join(DISCOUNT_TYPES)}",
            details={"discount_type": discount.type},
        )
    if not _is_int(discount.value) or not 0 <= discount.value <= MAX_TOTAL_CENTS:
        raise ValidationError(
            f"discount value must be an integer from 0 to {MAX_TOTAL_CENTS}",
            details={"discount_value": discount.value},
        )
    if discount.type == DISCOUNT_PERCENTAGE and discount.value > FULL_RATE_BPS:
        raise ValidationError(
            "percentage discount cannot exceed 100%",
            details={"discount_value": discount.value},
        )


def validate_tax_rate(tax_rate_bps: int) -> None:
    if not _is_int(tax_rate_bps) or not 0 <= tax_rate_bps <= FULL_RATE_BPS:
        raise ValidationError(
            f"tax rate must be from 0 to {FULL_RATE_BPS} basis points",
            details={"tax_rate_bps": tax_rate_bps},
        )


def compute_totals(lines: Iterable[PricedLine], discount: Discount, tax_rate_bps: int) -> Totals:
    """
    Derive subtotal, discount, tax and grand total from priced lines.

    A discount larger than the subtotal is clamped to the subtotal, so the
    grand total is never negative.

    Raises:
        ValidationError: empty lines, bad quantity/amount, bad discount or tax rate,
            or a total too large to store
    """
    lines = validate_lines(lines)
    validate_discount(discount)
    validate_tax_rate(tax_rate_bps)

    sub_total = sum(line.quantity * line.unit_amount_cents for line in lines)

    if discount.type == DISCOUNT_AMOUNT:
        discount_cents = discount.value
    else:
        discount_cents = apply_rate(sub_total, discount.value)

    if discount_cents > sub_total:
        logger.info(
            "Discount of %s cents clamped to subtotal of %s cents", discount_cents, sub_total
        )
        discount_cents = sub_total

    tax_cents = apply_rate(sub_total - discount_cents, tax_rate_bps)
    grand_total = sub_total - discount_cents + tax_cents
    if max(sub_total, grand_total) > MAX_TOTAL_CENTS:
        raise ValidationError(
            f"Invoice total cannot exceed {MAX_TOTAL_CENTS} cents",
            details={"sub_total_cents": sub_total, "grand_total_cents": grand_total},
        )

    return Totals(
        sub_total_cents=sub_total,
        discount_cents=discount_cents,
        tax_cents=tax_cents,
        grand_total_cents=grand_total,
    )


def change_due(grand_total_cents: int, amount_received_cents: int | None) -> int:
    """Cash to hand back; never negative."""
    if amount_received_cents is None:
        return 0
    return max(0, amount_received_cents - grand_total_cents)
