from .catalog import Product
from .invoices import Invoice, InvoiceLine

__all__ = [
    'Product',
    'Invoice', 'InvoiceLine',
]
