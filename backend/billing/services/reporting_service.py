# Overview: Reporting over committed invoices: filtered listing, CSV export, and profit summary.

from __future__ import annotations

import csv
import io
from typing import Iterable

from ..errors import ValidationError
from ..records import INVOICE_STATUSES, STATUS_UNPAID, Invoice
from ..time_utils import month_key, parse_month

CSV_HEADERS = [
    "Invoice Number",
    "Date",
    "Time",
    "Cashier",
    "Customer Name",
    "Customer Ref",
    "Status",
    "Items",
    "Subtotal",
    "Amount Paid",
    "Change",
    "Total Amount",
]


def format_cents(cents: int | None) -> str:
    """1234 -> "12.34"; None -> "0.00"."""
    cents = cents or 0
    sign = "-" if cents < 0 else ""
    whole, frac = divmod(abs(cents), 100)
    return f"{sign}{whole}.{frac:02d}"


def filter_invoices(
    invoices: Iterable[Invoice],
    *,
    status: str | None = None,
    customer_ref: str | None = None,
    month: str | None = None,
    search: str | None = None,
) -> list[Invoice]:
    """
    Filter invoices the way the invoice history screen does; newest first.

    "all" (or an empty value) disables a filter. search matches the invoice
    number, customer name, customer ref and cashier, case-insensitively.
    """
    if status and status != "all" and status not in INVOICE_STATUSES:
        raise ValidationError(
            f"status must be one of all, {', '.join(INVOICE_STATUSES)}",
            details={"status": status},
        )
    try:
        month_filter = parse_month(month)
    except ValueError as exc:
        raise ValidationError(str(exc), details={"month": month}) from exc

    needle = (search or "").strip().lower()

    def _matches(invoice: Invoice) -> bool:
        if status and status != "all" and invoice.status != status:
            return False
        if customer_ref and customer_ref != "all" and invoice.customer_ref != customer_ref:
            return False
        if month_filter and (invoice.created_at.year, invoice.created_at.month) != month_filter:
            return False
        if needle:
            haystack = [
                invoice.invoice_number,
                invoice.customer_name or "",
                invoice.customer_ref or "",
                invoice.cashier_id or "",
            ]
            if not any(needle in value.lower() for value in haystack):
                return False
        return True

    selected = [inv for inv in invoices if _matches(inv)]
    # Stable ascending sort then reverse, so same-second invoices stay newest first
    selected.sort(key=lambda inv: inv.created_at)
    selected.reverse()
    return selected


def invoices_to_csv(invoices: Iterable[Invoice]) -> str:
    out = io.StringIO()
    writer = csv.writer(out, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for invoice in invoices:
        items = "; ".join(
            f"{line.sku or ''} {line.name} ({line.quantity})".strip() for line in invoice.lines
        )
        if invoice.status == STATUS_UNPAID:
            amount_paid = "0 (unpaid)"
        else:
            amount_paid = format_cents(
                invoice.amount_received_cents
                if invoice.amount_received_cents is not None
                else invoice.grand_total_cents
            )
        writer.writerow([
            invoice.invoice_number,
            invoice.created_at.strftime("%Y-%m-%d"),
            invoice.created_at.strftime("%H:%M:%S"),
            invoice.cashier_id or "N/A",
            invoice.customer_name or "N/A",
            invoice.customer_ref or "N/A",
            invoice.status,
            items,
            format_cents(invoice.sub_total_cents),
            amount_paid,
            format_cents(invoice.change_cents),
            format_cents(invoice.grand_total_cents),
        ])
    return out.getvalue()


def _margin_pct(profit_cents: int, revenue_cents: int) -> float:
    if revenue_cents <= 0:
        return 0.0
    return round(profit_cents * 100 / revenue_cents, 2)


def profit_summary(invoices: Iterable[Invoice]) -> dict:
    """
    Revenue, cost and profit per month and all-time.

    Revenue is the sum of line totals (quantity x charged amount); cost is
    the sum of quantity x buying price snapshotted on each line.
    """
    months: dict[str, dict] = {}
    total_revenue = 0
    total_cost = 0
    total_count = 0

    for invoice in invoices:
        revenue = sum(line.line_total_cents for line in invoice.lines)
        cost = invoice.cost_cents
        key = month_key(invoice.created_at)
        bucket = months.setdefault(
            key, {"period": key, "invoice_count": 0, "revenue_cents": 0, "cost_cents": 0}
        )
        bucket["invoice_count"] += 1
        bucket["revenue_cents"] += revenue
        bucket["cost_cents"] += cost
        total_revenue += revenue
        total_cost += cost
        total_count += 1

    rows = []
    for key in sorted(months, reverse=True):
        bucket = months[key]
        profit = bucket["revenue_cents"] - bucket["cost_cents"]
        rows.append({
            **bucket,
            "profit_cents": profit,
            "profit_margin_pct": _margin_pct(profit, bucket["revenue_cents"]),
        })

    all_time_profit = total_revenue - total_cost
    return {
        "all_time": {
            "period": "all-time",
            "invoice_count": total_count,
            "revenue_cents": total_revenue,
            "cost_cents": total_cost,
            "profit_cents": all_time_profit,
            "profit_margin_pct": _margin_pct(all_time_profit, total_revenue),
        },
        "rows": rows,
    }
