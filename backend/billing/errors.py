# Overview: Error taxonomy shared by the invoice engine, its stores, and the HTTP layer.

from __future__ import annotations


class BillingError(Exception):
    """Base for errors surfaced to the operator performing a sale."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ValidationError(BillingError):
    """Cart, discount, tax or payload data violates an invoice invariant. No side effects occurred."""


class NotFound(BillingError):
    """Referenced product or invoice does not exist."""


class ConflictError(BillingError):
    """409-level business rule conflict (e.g., duplicate SKU)."""


class StoreUnavailable(BillingError):
    """Persistence layer unreachable or a write failed."""


class InvoiceNumberConflict(StoreUnavailable):
    """
    Another commit already holds the invoice number being appended.

    Raised by InvoiceStore.append; the engine re-reads the highest number
    and retries, surfacing plain StoreUnavailable once attempts run out.
    """

    def __init__(self, invoice_number: str):
        super().__init__(
            f"Invoice number {invoice_number} already exists",
            details={"invoice_number": invoice_number},
        )
        self.invoice_number = invoice_number
