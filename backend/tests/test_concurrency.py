# Overview: Threaded commit tests proving invoice numbers stay unique and gap-free under contention.

import os
import tempfile
import threading
import unittest

from billing import create_app
from billing.extensions import db
from billing.models import Product
from billing.records import ProductRecord
from billing.services.catalog import InMemoryProductCatalog, SqlProductCatalog
from billing.services.invoice_engine import InvoiceEngine
from billing.services.invoice_store import InMemoryInvoiceStore, SqlInvoiceStore
from conftest import cart_of, context


def _run_threads(worker, count):
    threads = [threading.Thread(target=worker) for _ in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()


class TestInMemoryConcurrency:
    def test_parallel_commits_get_unique_gap_free_numbers(self):
        catalog = InMemoryProductCatalog([ProductRecord(id="p1", name="Notebook A5", quantity=100)])
        store = InMemoryInvoiceStore()
        # Enough attempts that no thread can run out while 20 others win
        engine = InvoiceEngine(catalog, store, prefix="glxy", max_attempts=25)

        created = []
        errors = []
        lock = threading.Lock()

        def worker():
            try:
                invoice = engine.commit_invoice(cart_of(("p1", 1, 1000)), context())
                with lock:
                    created.append(invoice.invoice_number)
            except Exception as exc:
                with lock:
                    errors.append(exc)

        _run_threads(worker, 20)

        assert not errors
        assert len(created) == len(set(created)) == 20
        assert sorted(created) == [f"glxy{n:04d}" for n in range(1, 21)]
        assert catalog.get("p1").quantity == 80


class SqlConcurrencyTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "concurrency.db")
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
        })

        with self.app.app_context():
            db.drop_all()
            db.create_all()

            product = Product(name="Concurrent Product", sku="CONCUR-1", quantity=10, price_cents=1000)
            db.session.add(product)
            db.session.commit()
            self.product_id = str(product.id)

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()
            db.session.remove()
            db.engine.dispose()
        self.tmpdir.cleanup()

    def test_invoice_number_concurrency(self):
        created = []
        errors = []
        lock = threading.Lock()

        def worker():
            with self.app.app_context():
                try:
                    engine = InvoiceEngine(
                        SqlProductCatalog(),
                        SqlInvoiceStore(),
                        prefix="glxy",
                        max_attempts=10,
                        allow_degraded_numbering=False,
                    )
                    invoice = engine.commit_invoice(cart_of((self.product_id, 1, 1000)), context())
                    with lock:
                        created.append(invoice.invoice_number)
                except Exception as exc:
                    with lock:
                        errors.append(exc)
                finally:
                    db.session.remove()

        _run_threads(worker, 5)

        self.assertFalse(errors)
        self.assertEqual(len(created), len(set(created)))
        self.assertEqual(sorted(created), [f"glxy{n:04d}" for n in range(1, 6)])

        with self.app.app_context():
            on_hand = db.session.get(Product, int(self.product_id)).quantity
        self.assertEqual(on_hand, 5)
