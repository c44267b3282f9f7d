# Overview: Pytest coverage for invoice filtering, CSV export, and the profit summary.

import csv
import io
from datetime import datetime

import pytest

from billing.errors import ValidationError
from billing.records import Invoice, InvoiceLine
from billing.services.reporting_service import (
    CSV_HEADERS,
    filter_invoices,
    format_cents,
    invoices_to_csv,
    profit_summary,
)


def invoice(number, created_at, *, status="unpaid", customer_name=None, customer_ref=None,
            quantity=2, amount=1000, cost=600, received=None, change=0):
    line = InvoiceLine(
        product_id="1", name="Cola 330ml", sku="COLA330",
        quantity=quantity, unit_amount_cents=amount, buying_price_cents=cost,
    )
    total = quantity * amount
    return Invoice(
        invoice_number=number,
        prefix="glxy",
        lines=(line,),
        sub_total_cents=total,
        discount_type="amount",
        discount_value=0,
        discount_cents=0,
        tax_rate_bps=0,
        tax_cents=0,
        grand_total_cents=total,
        status=status,
        cashier_id="cashier-1",
        created_at=created_at,
        customer_name=customer_name,
        customer_ref=customer_ref,
        amount_received_cents=received,
        change_cents=change,
    )


@pytest.fixture
def invoices():
    return [
        invoice("glxy0001", datetime(2026, 1, 10, 9, 0), status="paid", customer_name="Layla", customer_ref="C-1",
                received=2500, change=500),
        invoice("glxy0002", datetime(2026, 1, 20, 9, 0), customer_name="Omar", customer_ref="C-2"),
        invoice("glxy0003", datetime(2026, 2, 1, 9, 0), status="paid", quantity=1, amount=500, cost=500),
    ]


class TestFilterInvoices:
    def test_no_filters_returns_all_newest_first(self, invoices):
        result = filter_invoices(invoices)
        assert [i.invoice_number for i in result] == ["glxy0003", "glxy0002", "glxy0001"]

    def test_status_filter(self, invoices):
        assert [i.invoice_number for i in filter_invoices(invoices, status="unpaid")] == ["glxy0002"]
        assert len(filter_invoices(invoices, status="all")) == 3

    def test_month_filter(self, invoices):
        result = filter_invoices(invoices, month="2026-01")
        assert [i.invoice_number for i in result] == ["glxy0002", "glxy0001"]

    def test_customer_ref_filter(self, invoices):
        assert [i.invoice_number for i in filter_invoices(invoices, customer_ref="C-1")] == ["glxy0001"]

    def test_search_is_case_insensitive(self, invoices):
        assert [i.invoice_number for i in filter_invoices(invoices, search="OMAR")] == ["glxy0002"]
        assert [i.invoice_number for i in filter_invoices(invoices, search="0003")] == ["glxy0003"]

    def test_invalid_status(self, invoices):
        with pytest.raises(ValidationError):
            filter_invoices(invoices, status="void")

    @pytest.mark.parametrize("month", ["2026-13", "January", "2026"])
    def test_invalid_month(self, invoices, month):
        with pytest.raises(ValidationError):
            filter_invoices(invoices, month=month)


class TestCsvExport:
    def test_rows(self, invoices):
        rows = list(csv.reader(io.StringIO(invoices_to_csv(invoices))))

        assert rows[0] == CSV_HEADERS
        paid = rows[1]
        assert paid[0] == "glxy0001"
        assert paid[1] == "2026-01-10"
        assert paid[2] == "09:00:00"
        assert paid[4] == "Layla"
        assert paid[7] == "COLA330 Cola 330ml (2)"
        assert paid[9] == "25.00"
        assert paid[10] == "5.00"
        assert paid[11] == "20.00"

    def test_unpaid_amount_paid_column(self, invoices):
        rows = list(csv.reader(io.StringIO(invoices_to_csv(invoices))))
        assert rows[2][9] == "0 (unpaid)"

    def test_missing_customer_shows_na(self, invoices):
        rows = list(csv.reader(io.StringIO(invoices_to_csv(invoices))))
        assert rows[3][4] == "N/A"
        assert rows[3][5] == "N/A"

    def test_paid_without_recorded_amount_uses_total(self, invoices):
        rows = list(csv.reader(io.StringIO(invoices_to_csv(invoices))))
        assert rows[3][9] == "5.00"


class TestProfitSummary:
    def test_monthly_and_all_time(self, invoices):
        summary = profit_summary(invoices)

        assert summary["all_time"]["invoice_count"] == 3
        assert summary["all_time"]["revenue_cents"] == 4500
        assert summary["all_time"]["cost_cents"] == 2900
        assert summary["all_time"]["profit_cents"] == 1600

        assert [row["period"] for row in summary["rows"]] == ["2026-02", "2026-01"]
        january = summary["rows"][1]
        assert january["revenue_cents"] == 4000
        assert january["profit_cents"] == 1600
        assert january["profit_margin_pct"] == 40.0

        february = summary["rows"][0]
        assert february["profit_cents"] == 0
        assert february["profit_margin_pct"] == 0.0

    def test_empty(self):
        summary = profit_summary([])
        assert summary["all_time"]["revenue_cents"] == 0
        assert summary["all_time"]["profit_margin_pct"] == 0.0
        assert summary["rows"] == []


def test_format_cents():
    assert format_cents(0) == "0.00"
    assert format_cents(5) == "0.05"
    assert format_cents(123456) == "1234.56"
    assert format_cents(-250) == "-2.50"
    assert format_cents(None) == "0.00"
