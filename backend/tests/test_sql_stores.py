# Overview: Pytest coverage for the SQL-backed product catalog and invoice store.

from datetime import datetime

import pytest

from billing.errors import InvoiceNumberConflict, NotFound
from billing.records import Invoice, InvoiceLine, STATUS_PAID
from billing.services.catalog import SqlProductCatalog
from billing.services.invoice_engine import InvoiceEngine
from billing.services.invoice_store import SqlInvoiceStore
from conftest import cart_of, context


def make_invoice(number, sequence_no, *, prefix="glxy", sequential=True, created_at=None):
    return Invoice(
        invoice_number=number,
        prefix=prefix,
        sequence_no=sequence_no,
        number_sequential=sequential,
        lines=(InvoiceLine(product_id="1", name="Cola 330ml", sku="COLA330", quantity=2, unit_amount_cents=1000),),
        sub_total_cents=2000,
        discount_type="amount",
        discount_value=0,
        discount_cents=0,
        tax_rate_bps=0,
        tax_cents=0,
        grand_total_cents=2000,
        status="unpaid",
        cashier_id="cashier-1",
        created_at=created_at or datetime(2026, 1, 15, 9, 30),
    )


class StaleReadStore(SqlInvoiceStore):
    """Reports no invoices on the first read, as a terminal with a stale view would."""

    def __init__(self):
        super().__init__()
        self.stale_reads = 1

    def highest_number(self, prefix):
        if self.stale_reads:
            self.stale_reads -= 1
            return None
        return super().highest_number(prefix)


class TestSqlProductCatalog:
    def test_get_returns_record(self, db_session, cola):
        record = SqlProductCatalog().get(str(cola.id))
        assert record.id == str(cola.id)
        assert record.name == "Cola 330ml"
        assert record.buying_price_cents == 600

    @pytest.mark.parametrize("product_id", ["999999", "not-a-number"])
    def test_get_unknown(self, db_session, product_id):
        with pytest.raises(NotFound):
            SqlProductCatalog().get(product_id)

    def test_decrement_stock(self, db_session, cola):
        assert SqlProductCatalog().decrement_stock(str(cola.id), 4) == 6

    def test_decrement_clamps_at_zero(self, db_session, chips):
        assert SqlProductCatalog().decrement_stock(str(chips.id), 5) == 0

    def test_decrement_unknown(self, db_session):
        with pytest.raises(NotFound):
            SqlProductCatalog().decrement_stock("999999", 1)

    def test_find_by_sku(self, db_session, cola):
        assert SqlProductCatalog().find_by_sku("COLA330").id == str(cola.id)
        assert SqlProductCatalog().find_by_sku("NOPE") is None


class TestSqlInvoiceStore:
    def test_append_assigns_id_and_keeps_lines(self, db_session):
        stored = SqlInvoiceStore().append(make_invoice("glxy0001", 1))

        assert stored.id is not None
        assert stored.lines[0].name == "Cola 330ml"
        assert SqlInvoiceStore().get(stored.id).invoice_number == "glxy0001"

    def test_duplicate_number_raises_conflict(self, db_session):
        store = SqlInvoiceStore()
        store.append(make_invoice("glxy0001", 1))

        with pytest.raises(InvoiceNumberConflict) as exc_info:
            store.append(make_invoice("glxy0001", 1))
        assert exc_info.value.invoice_number == "glxy0001"
        assert len(list(store.list_all())) == 1

    def test_highest_number_orders_numerically(self, db_session):
        store = SqlInvoiceStore()
        store.append(make_invoice("glxy9999", 9999))
        store.append(make_invoice("glxy10000", 10000))

        assert store.highest_number("glxy") == "glxy10000"

    def test_highest_number_ignores_fallback_and_other_prefixes(self, db_session):
        store = SqlInvoiceStore()
        store.append(make_invoice("glxy0003", 3))
        store.append(make_invoice("glxyT1768469400000", None, sequential=False))
        store.append(make_invoice("shop0050", 50, prefix="shop"))

        assert store.highest_number("glxy") == "glxy0003"
        assert store.highest_number("none") is None

    def test_update_and_get(self, db_session):
        store = SqlInvoiceStore()
        stored = store.append(make_invoice("glxy0001", 1))

        paid_at = datetime(2026, 1, 15, 10, 0)
        updated = store.update(stored.id, {"status": STATUS_PAID, "paid_at": paid_at, "paid_by": "Sara"})

        assert updated.status == STATUS_PAID
        assert updated.paid_by == "Sara"
        assert store.get(stored.id).paid_at == paid_at

    def test_get_unknown(self, db_session):
        with pytest.raises(NotFound):
            SqlInvoiceStore().get("424242")

    def test_list_all_in_creation_order(self, db_session):
        store = SqlInvoiceStore(page_size=2)
        for n in range(1, 6):
            store.append(make_invoice(f"glxy{n:04d}", n, created_at=datetime(2026, 1, n, 12, 0)))

        assert [inv.invoice_number for inv in store.list_all()] == [f"glxy{n:04d}" for n in range(1, 6)]


class TestSqlEngine:
    def test_commit_against_database(self, db_session, cola, clock):
        engine = InvoiceEngine(SqlProductCatalog(), SqlInvoiceStore(), clock=clock)

        invoice = engine.commit_invoice(cart_of((str(cola.id), 3, 1000)), context(tax_rate_bps=500))

        assert invoice.invoice_number == "glxy0001"
        assert invoice.grand_total_cents == 3150
        assert SqlProductCatalog().get(str(cola.id)).quantity == 7

    def test_unique_index_conflict_is_retried(self, db_session, cola, clock):
        SqlInvoiceStore().append(make_invoice("glxy0001", 1))
        engine = InvoiceEngine(SqlProductCatalog(), StaleReadStore(), clock=clock)

        invoice = engine.commit_invoice(cart_of((str(cola.id), 1, 1000)), context())

        assert invoice.invoice_number == "glxy0002"
        numbers = [inv.invoice_number for inv in SqlInvoiceStore().list_all()]
        assert numbers == ["glxy0001", "glxy0002"]
