# Overview: InvoiceStore collaborator: append-only invoice persistence with store-enforced unique numbers.

from __future__ import annotations

import threading
import uuid
from typing import Iterator, Protocol

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import InvoiceNumberConflict, NotFound, StoreUnavailable
from ..extensions import db
from ..models import Invoice as InvoiceRow
from ..records import Invoice


class InvoiceStore(Protocol):
    def append(self, invoice: Invoice) -> Invoice:
        """
        Durably persist a new invoice and return it with its id assigned.

        Raises InvoiceNumberConflict if invoice_number is already taken.
        """

    def highest_number(self, prefix: str) -> str | None:
        """Highest sequential invoice number for prefix, or None when there is none."""

    def get(self, invoice_id: str) -> Invoice:
        ...

    def update(self, invoice_id: str, fields: dict) -> Invoice:
        """Apply fields as-is; callers decide which fields may change."""

    def list_all(self) -> Iterator[Invoice]:
        """Fresh iterator over every invoice in creation order."""


class InMemoryInvoiceStore:
    """
    Single-process store (offline terminal, tests).

    Every operation runs under one lock; append checks number uniqueness
    inside that lock, which gives it the same compare-and-set behaviour
    as the unique index of the SQL store.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._by_id: dict[str, Invoice] = {}
        self._order: list[str] = []
        self._numbers: set[str] = set()

    def append(self, invoice: Invoice) -> Invoice:
        with self._lock:
            if invoice.invoice_number in self._numbers:
                raise InvoiceNumberConflict(invoice.invoice_number)
            stored = invoice.with_changes(id=str(uuid.uuid4()))
            self._by_id[stored.id] = stored
            self._order.append(stored.id)
            self._numbers.add(stored.invoice_number)
            return stored

    def highest_number(self, prefix: str) -> str | None:
        with self._lock:
            candidates = [
                inv for inv in self._by_id.values()
                if inv.prefix == prefix and inv.number_sequential and inv.sequence_no is not None
            ]
        if not candidates:
            return None
        return max(candidates, key=lambda inv: inv.sequence_no).invoice_number

    def get(self, invoice_id: str) -> Invoice:
        with self._lock:
            invoice = self._by_id.get(str(invoice_id))
        if invoice is None:
            raise NotFound("Invoice not found", details={"invoice_id": invoice_id})
        return invoice

    def update(self, invoice_id: str, fields: dict) -> Invoice:
        with self._lock:
            invoice = self._by_id.get(str(invoice_id))
            if invoice is None:
                raise NotFound("Invoice not found", details={"invoice_id": invoice_id})
            updated = invoice.with_changes(**fields)
            self._by_id[updated.id] = updated
            return updated

    def list_all(self) -> Iterator[Invoice]:
        with self._lock:
            snapshot = [self._by_id[i] for i in self._order]
        return iter(snapshot)

    def __len__(self) -> int:
        with self._lock:
            return len(self._order)


def _invoice_pk(invoice_id) -> int | None:
    try:
        return int(invoice_id)
    except (TypeError, ValueError):
        return None


class SqlInvoiceStore:
    """
    Store backed by the invoices table.

    The unique index on invoice_number is what makes concurrent commits
    from several terminals safe; append translates a violation of it into
    InvoiceNumberConflict so the engine can re-read and retry.
    """

    def __init__(self, page_size: int = 200):
        self.page_size = page_size

    def append(self, invoice: Invoice) -> Invoice:
        row = InvoiceRow.from_record(invoice)
        try:
            db.session.add(row)
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            if self._number_taken(invoice.invoice_number):
                raise InvoiceNumberConflict(invoice.invoice_number) from exc
            raise StoreUnavailable("Invoice could not be saved") from exc
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreUnavailable("Invoice could not be saved") from exc
        return row.to_record()

    def _number_taken(self, invoice_number: str) -> bool:
        try:
            return (
                db.session.query(InvoiceRow.id)
                .filter(InvoiceRow.invoice_number == invoice_number)
                .first()
                is not None
            )
        except SQLAlchemyError:
            db.session.rollback()
            return False

    def highest_number(self, prefix: str) -> str | None:
        try:
            row = (
                db.session.query(InvoiceRow.invoice_number)
                .filter(
                    InvoiceRow.prefix == prefix,
                    InvoiceRow.number_sequential.is_(True),
                    InvoiceRow.sequence_no.isnot(None),
                )
                .order_by(InvoiceRow.sequence_no.desc())
                .first()
            )
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreUnavailable("Invoice store unavailable") from exc
        return row.invoice_number if row else None

    def _get_row(self, invoice_id) -> InvoiceRow:
        pk = _invoice_pk(invoice_id)
        try:
            row = db.session.get(InvoiceRow, pk) if pk is not None else None
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreUnavailable("Invoice store unavailable") from exc
        if row is None:
            raise NotFound("Invoice not found", details={"invoice_id": invoice_id})
        return row

    def get(self, invoice_id: str) -> Invoice:
        return self._get_row(invoice_id).to_record()

    def update(self, invoice_id: str, fields: dict) -> Invoice:
        row = self._get_row(invoice_id)
        for key, value in fields.items():
            setattr(row, key, value)
        try:
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreUnavailable("Invoice could not be updated") from exc
        return row.to_record()

    def list_all(self) -> Iterator[Invoice]:
        query = (
            db.session.query(InvoiceRow)
            .order_by(InvoiceRow.created_at.asc(), InvoiceRow.id.asc())
            .yield_per(self.page_size)
        )
        return (row.to_record() for row in query)
