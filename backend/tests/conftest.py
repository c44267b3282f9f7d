"""
Pytest fixtures for billing backend tests.

Provides the Flask app on an in-memory database, a per-test table wipe,
and in-memory collaborators for exercising the invoice engine without SQL.
"""

from datetime import datetime, timedelta

import pytest

from billing import create_app
from billing.extensions import db
from billing.models import Product
from billing.records import CartLine, Discount, InvoiceContext, ProductRecord
from billing.services.catalog import InMemoryProductCatalog
from billing.services.invoice_engine import InvoiceEngine
from billing.services.invoice_store import InMemoryInvoiceStore


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'INVOICE_PREFIX': 'glxy',
        'BUSINESS_NAME': 'Galaxy Mart',
        'CURRENCY_CODE': 'AED',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def cola(db_session):
    """Product with a little stock, priced at 10.00."""
    product = Product(name="Cola 330ml", sku="COLA330", quantity=10, price_cents=1000, buying_price_cents=600)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def chips(db_session):
    product = Product(name="Chips Salted", sku="CHIPS01", quantity=3, price_cents=500, buying_price_cents=200)
    db_session.add(product)
    db_session.commit()
    return product


class FixedClock:
    """Deterministic clock; advances by one second per call."""

    def __init__(self, start=datetime(2026, 1, 15, 9, 30, 0)):
        self.now = start

    def __call__(self):
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def catalog():
    return InMemoryProductCatalog([
        ProductRecord(id="p1", name="Notebook A5", sku="NB-A5", quantity=10, price_cents=1000, buying_price_cents=400),
        ProductRecord(id="p2", name="Gel Pen Blue", sku="PEN-BL", quantity=3, price_cents=250, buying_price_cents=100),
    ])


@pytest.fixture
def store():
    return InMemoryInvoiceStore()


@pytest.fixture
def engine(catalog, store, clock):
    return InvoiceEngine(catalog, store, prefix="glxy", clock=clock)


def cart_of(*lines):
    """cart_of(("p1", 2, 1000), ...) -> [CartLine, ...]"""
    return [CartLine(product_id=pid, quantity=qty, unit_amount_cents=amount) for pid, qty, amount in lines]


def context(cashier_id="cashier-1", discount=None, tax_rate_bps=0, **kwargs):
    return InvoiceContext(
        cashier_id=cashier_id,
        discount=discount or Discount.none(),
        tax_rate_bps=tax_rate_bps,
        **kwargs,
    )
