# Overview: Plain-text receipt layout for 58mm (32 column) thermal printers.

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from ..records import Invoice, InvoiceLine
from .reporting_service import format_cents

RECEIPT_WIDTH = 32
NAME_WIDTH = 16
RULE = "-" * RECEIPT_WIDTH


@dataclass(frozen=True)
class BusinessInfo:
    name: str = "Business Name"
    address: str = ""
    phone: str = ""
    email: str = ""
    currency_code: str = "AED"

    @classmethod
    def from_config(cls, config: Mapping) -> "BusinessInfo":
        return cls(
            name=config.get("BUSINESS_NAME") or "Business Name",
            address=config.get("BUSINESS_ADDRESS") or "",
            phone=config.get("BUSINESS_PHONE") or "",
            email=config.get("BUSINESS_EMAIL") or "",
            currency_code=config.get("CURRENCY_CODE") or "AED",
        )


def _format_rate(bps: int) -> str:
    whole, frac = divmod(bps, 100)
    return f"{whole}" if not frac else f"{whole}.{frac:02d}".rstrip("0")


def _item_rows(line: InvoiceLine) -> list[str]:
    """
    Name, qty x price and line total on one row when they fit; otherwise the
    name gets its own row and the amounts wrap below it.
    """
    amounts = f"{line.quantity}x{format_cents(line.unit_amount_cents)} {format_cents(line.line_total_cents)}"
    room = RECEIPT_WIDTH - NAME_WIDTH - 1
    if len(amounts) <= room:
        return [f"{line.name[:NAME_WIDTH].ljust(NAME_WIDTH)} {amounts.rjust(room)}"]

    rows = [line.name[:RECEIPT_WIDTH]]
    if len(amounts) + 2 <= RECEIPT_WIDTH:
        rows.append(amounts.rjust(RECEIPT_WIDTH))
    else:
        rows.append(f"  {line.quantity}x{format_cents(line.unit_amount_cents)}")
        rows.append(format_cents(line.line_total_cents).rjust(RECEIPT_WIDTH))
    return rows


def render_receipt(invoice: Invoice, business: BusinessInfo) -> str:
    """
    Text receipt for an invoice. Printer control codes (alignment, cut)
    are added by the printing side, not here.
    """
    cur = business.currency_code
    out: list[str] = []

    out.append(business.name.center(RECEIPT_WIDTH).rstrip())
    for extra in (business.address, f"Tel: {business.phone}" if business.phone else "", business.email):
        if extra:
            out.append(extra.center(RECEIPT_WIDTH).rstrip())
    out.append("")

    out.append(RULE)
    out.append(f"Invoice: {invoice.invoice_number}")
    out.append(f"Date: {invoice.created_at.strftime('%Y-%m-%d')}")
    out.append(f"Time: {invoice.created_at.strftime('%H:%M')}")
    if invoice.customer_name:
        out.append(f"Customer: {invoice.customer_name}")
    if invoice.customer_ref:
        out.append(f"ID: {invoice.customer_ref}")
    if invoice.cashier_id:
        out.append(f"Cashier: {invoice.cashier_id}")
    out.append(RULE)

    for line in invoice.lines:
        out.extend(_item_rows(line))
        if line.sku:
            out.append(f"  SKU: {line.sku}")
    out.append(RULE)

    out.append(f"Subtotal: {cur} {format_cents(invoice.sub_total_cents)}".rjust(RECEIPT_WIDTH))
    if invoice.discount_cents > 0:
        out.append(f"Discount: -{cur} {format_cents(invoice.discount_cents)}".rjust(RECEIPT_WIDTH))
    if invoice.tax_cents > 0:
        out.append(
            f"Tax ({_format_rate(invoice.tax_rate_bps)}%): {cur} {format_cents(invoice.tax_cents)}".rjust(
                RECEIPT_WIDTH
            )
        )
    out.append(f"TOTAL: {cur} {format_cents(invoice.grand_total_cents)}".rjust(RECEIPT_WIDTH))
    out.append(RULE)

    if invoice.is_paid:
        out.append(f"Amount Paid: {cur} {format_cents(invoice.amount_received_cents)}")
        if invoice.change_cents > 0:
            out.append(f"Change: {cur} {format_cents(invoice.change_cents)}")
    else:
        out.append(f"Amount Paid: {cur} 0.00 (unpaid)")

    out.append("")
    out.append("Thank you for shopping!".center(RECEIPT_WIDTH).rstrip())
    out.append("Visit again".center(RECEIPT_WIDTH).rstrip())
    return "\n".join(out) + "\n"
