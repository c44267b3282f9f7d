# Overview: InvoiceEngine turns a cart into a persisted, uniquely numbered, immutable invoice.

"""
Invoice engine.

Commit flow: validate cart and context -> compute totals -> allocate the
next number -> append to the store -> decrement stock for each line.

The engine owns no storage. It is parameterised over a ProductCatalog
and an InvoiceStore, so the same rules run against the shared database
(SqlProductCatalog / SqlInvoiceStore) or a single offline terminal
(InMemoryProductCatalog / InMemoryInvoiceStore).

Numbering: the next number is read from the store and the append is
guarded by the store's uniqueness check. A conflicting append re-reads the
highest number and tries again, up to max_attempts. Only conflicts are
retried; a generic write failure is surfaced at once, because the caller
can safely retry the whole commit (a number is consumed only by a
successful append).

Stock: decremented only after the invoice is durably stored. A failed
decrement is logged and skipped, never rolled back into the invoice.
"""

from __future__ import annotations

import itertools
import logging
from datetime import datetime
from typing import Callable, Iterable, Iterator, Mapping

from ..errors import (
    InvoiceNumberConflict,
    NotFound,
    StoreUnavailable,
    ValidationError,
)
from ..records import (
    INVOICE_STATUSES,
    MAX_TOTAL_CENTS,
    STATUS_PAID,
    CartLine,
    Discount,
    Invoice,
    InvoiceContext,
    InvoiceLine,
    Totals,
)
from ..time_utils import utcnow
from .catalog import ProductCatalog, SqlProductCatalog
from .concurrency import run_with_retry
from .invoice_store import InvoiceStore, SqlInvoiceStore
from .numbering import fallback_invoice_number, next_invoice_number, validate_prefix
from .totals import change_due, compute_totals

logger = logging.getLogger(__name__)

# The only invoice fields that may change after commit
STATUS_FIELDS = frozenset({"status", "paid_at", "paid_by"})


def _require_text(value, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required", details={"field": field_name})
    return value.strip()


class InvoiceEngine:
    def __init__(
        self,
        catalog: ProductCatalog,
        store: InvoiceStore,
        *,
        prefix: str = "glxy",
        max_attempts: int = 3,
        allow_degraded_numbering: bool = True,
        clock: Callable[[], datetime] = utcnow,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.catalog = catalog
        self.store = store
        self.prefix = validate_prefix(prefix)
        self.max_attempts = max_attempts
        self.allow_degraded_numbering = allow_degraded_numbering
        self.clock = clock

    # ------------------------------------------------------------------
    # Totals and numbering
    # ------------------------------------------------------------------

    def compute_totals(self, lines, discount: Discount, tax_rate_bps: int) -> Totals:
        return compute_totals(lines, discount, tax_rate_bps)

    def allocate_invoice_number(self) -> str:
        """
        Next sequential number for the configured prefix.

        Strict: raises StoreUnavailable when the store cannot be read. The
        timestamp fallback is only ever used inside commit_invoice.
        """
        number, _ = next_invoice_number(self.prefix, self.store.highest_number(self.prefix))
        return number

    def _allocate_for_commit(self, attempt: int) -> tuple[str, int | None, bool]:
        """Returns (invoice_number, sequence_no, number_sequential)."""
        try:
            highest = self.store.highest_number(self.prefix)
        except StoreUnavailable:
            if not self.allow_degraded_numbering:
                raise
            number = fallback_invoice_number(self.prefix, self.clock(), attempt)
            logger.warning(
                "Invoice store unreadable; using non-sequential fallback number %s", number
            )
            return number, None, False

        number, sequence_no = next_invoice_number(self.prefix, highest)
        return number, sequence_no, True

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def _validate_context(self, context: InvoiceContext) -> str:
        cashier_id = _require_text(context.cashier_id, "cashier_id")
        if context.status not in INVOICE_STATUSES:
            raise ValidationError(
                f"status must be one of {', '.join(INVOICE_STATUSES)}",
                details={"status": context.status},
            )
        received = context.amount_received_cents
        if received is not None and (
            not isinstance(received, int)
            or isinstance(received, bool)
            or not 0 <= received <= MAX_TOTAL_CENTS
        ):
            raise ValidationError(
                f"amount received must be from 0 to {MAX_TOTAL_CENTS} cents",
                details={"amount_received_cents": received},
            )
        return cashier_id

    def _snapshot_lines(self, cart: list[CartLine]) -> tuple[InvoiceLine, ...]:
        lines = []
        for i, item in enumerate(cart):
            try:
                product = self.catalog.get(item.product_id)
            except NotFound as exc:
                raise ValidationError(
                    "Cart references an unknown product",
                    details={"line": i, "product_id": item.product_id},
                ) from exc
            lines.append(
                InvoiceLine(
                    product_id=product.id,
                    name=product.name,
                    sku=product.sku,
                    quantity=item.quantity,
                    unit_amount_cents=item.unit_amount_cents,
                    buying_price_cents=product.buying_price_cents,
                )
            )
        return tuple(lines)

    def commit_invoice(self, cart: Iterable[CartLine], context: InvoiceContext) -> Invoice:
        """
        Validate, number, persist and apply stock effects for a cart.

        Raises:
            ValidationError: empty cart, unknown product, bad quantity/amount/discount/tax/context.
                Nothing is written.
            StoreUnavailable: the invoice could not be persisted (including running out of
                numbering attempts). Nothing is written and no stock changes.
        """
        cart = list(cart)
        if not cart:
            raise ValidationError("Cannot commit an invoice with an empty cart")

        cashier_id = self._validate_context(context)
        totals = compute_totals(cart, context.discount, context.tax_rate_bps)
        lines = self._snapshot_lines(cart)

        created_at = self.clock()
        if context.status == STATUS_PAID:
            received = (
                context.amount_received_cents
                if context.amount_received_cents is not None
                else totals.grand_total_cents
            )
            paid_at, paid_by = created_at, cashier_id
        else:
            received = None
            paid_at, paid_by = None, None

        attempt_numbers = itertools.count(1)

        def _attempt() -> Invoice:
            number, sequence_no, sequential = self._allocate_for_commit(next(attempt_numbers))
            invoice = Invoice(
                invoice_number=number,
                prefix=self.prefix,
                sequence_no=sequence_no,
                number_sequential=sequential,
                lines=lines,
                sub_total_cents=totals.sub_total_cents,
                discount_type=context.discount.type,
                discount_value=context.discount.value,
                discount_cents=totals.discount_cents,
                tax_rate_bps=context.tax_rate_bps,
                tax_cents=totals.tax_cents,
                grand_total_cents=totals.grand_total_cents,
                amount_received_cents=received,
                change_cents=change_due(totals.grand_total_cents, received),
                status=context.status,
                cashier_id=cashier_id,
                customer_ref=context.customer_ref or None,
                customer_name=context.customer_name or None,
                created_at=created_at,
                paid_at=paid_at,
                paid_by=paid_by,
            )
            return self.store.append(invoice)

        def _on_conflict(exc: BaseException, attempt: int) -> None:
            logger.warning(
                "Invoice number conflict on attempt %s/%s: %s", attempt, self.max_attempts, exc
            )

        try:
            invoice = run_with_retry(_attempt, attempts=self.max_attempts, on_retry=_on_conflict)
        except InvoiceNumberConflict as exc:
            raise StoreUnavailable(
                f"Could not allocate a unique invoice number after {self.max_attempts} attempts",
                details={"invoice_number": exc.invoice_number, "attempts": self.max_attempts},
            ) from exc

        logger.info(
            "Committed invoice %s (%s lines, grand total %s cents, %s)",
            invoice.invoice_number,
            len(invoice.lines),
            invoice.grand_total_cents,
            invoice.status,
        )
        self._apply_stock_effects(invoice)
        return invoice

    def _apply_stock_effects(self, invoice: Invoice) -> None:
        for line in invoice.lines:
            try:
                self.catalog.decrement_stock(line.product_id, line.quantity)
            except Exception:
                logger.exception(
                    "Stock decrement failed for product %s on invoice %s; invoice kept",
                    line.product_id,
                    invoice.invoice_number,
                )

    # ------------------------------------------------------------------
    # Post-commit
    # ------------------------------------------------------------------

    def toggle_status(self, invoice_id: str, new_status: str, actor: str) -> Invoice:
        """
        Move an invoice between unpaid and paid.

        Setting the status it already has is a no-op: the first paid_at
        and paid_by are kept rather than overwritten by the repeat call.

        Raises:
            NotFound: unknown invoice id
            ValidationError: unknown status or blank actor
        """
        if new_status not in INVOICE_STATUSES:
            raise ValidationError(
                f"status must be one of {', '.join(INVOICE_STATUSES)}",
                details={"status": new_status},
            )
        actor = _require_text(actor, "actor")

        invoice = self.store.get(invoice_id)
        if invoice.status == new_status:
            return invoice

        if new_status == STATUS_PAID:
            fields = {"status": new_status, "paid_at": self.clock(), "paid_by": actor}
        else:
            fields = {"status": new_status, "paid_at": None, "paid_by": None}

        updated = self._update_status_fields(invoice_id, fields)
        logger.info(
            "Invoice %s marked %s by %s", invoice.invoice_number, new_status, actor
        )
        return updated

    def _update_status_fields(self, invoice_id: str, fields: dict) -> Invoice:
        illegal = set(fields) - STATUS_FIELDS
        if illegal:
            raise ValueError(f"Committed invoices cannot change {sorted(illegal)}")
        return self.store.update(invoice_id, fields)

    def get_invoice(self, invoice_id: str) -> Invoice:
        return self.store.get(invoice_id)

    def list_invoices(self) -> Iterator[Invoice]:
        return self.store.list_all()


def engine_from_config(config: Mapping) -> InvoiceEngine:
    """Engine wired to the shared database, configured from a Flask config mapping."""
    return InvoiceEngine(
        SqlProductCatalog(),
        SqlInvoiceStore(),
        prefix=config.get("INVOICE_PREFIX", "glxy"),
        max_attempts=int(config.get("INVOICE_NUMBER_MAX_ATTEMPTS", 3)),
        allow_degraded_numbering=bool(config.get("INVOICE_DEGRADED_NUMBERING", True)),
    )
