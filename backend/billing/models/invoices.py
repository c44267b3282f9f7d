from __future__ import annotations

from ..extensions import db
from ..records import Invoice as InvoiceRecord, InvoiceLine as InvoiceLineRecord


class Invoice(db.Model):
    """
    Committed invoice.

    invoice_number carries a unique index: it is the store-level guarantee
    that two terminals committing at once can never share a number.
    Monetary and line columns are written once at append; afterwards only
    status, paid_at and paid_by change.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.UniqueConstraint("invoice_number", name="uq_invoices_invoice_number"),
        # highest_number(prefix) scans max(sequence_no) per prefix
        db.Index("ix_invoices_prefix_sequence", "prefix", "sequence_no"),
        db.Index("ix_invoices_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    invoice_number = db.Column(db.String(64), nullable=False)
    prefix = db.Column(db.String(32), nullable=False)
    sequence_no = db.Column(db.Integer, nullable=True)
    number_sequential = db.Column(db.Boolean, nullable=False, default=True)

    status = db.Column(db.String(16), nullable=False, default="unpaid", index=True)

    customer_ref = db.Column(db.String(128), nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=True)
    cashier_id = db.Column(db.String(128), nullable=False)

    # All amounts in cents, rates in basis points
    sub_total_cents = db.Column(db.Integer, nullable=False)
    discount_type = db.Column(db.String(16), nullable=False, default="amount")
    discount_value = db.Column(db.Integer, nullable=False, default=0)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_rate_bps = db.Column(db.Integer, nullable=False, default=0)
    tax_cents = db.Column(db.Integer, nullable=False, default=0)
    grand_total_cents = db.Column(db.Integer, nullable=False)
    amount_received_cents = db.Column(db.Integer, nullable=True)
    change_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)
    paid_by = db.Column(db.String(128), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    lines = db.relationship(
        "InvoiceLine",
        backref="invoice",
        order_by="InvoiceLine.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    __mapper_args__ = {"version_id_col": version_id}

    @classmethod
    def from_record(cls, record: InvoiceRecord) -> "Invoice":
        row = cls(
            invoice_number=record.invoice_number,
            prefix=record.prefix,
            sequence_no=record.sequence_no,
            number_sequential=record.number_sequential,
            status=record.status,
            customer_ref=record.customer_ref,
            customer_name=record.customer_name,
            cashier_id=record.cashier_id,
            sub_total_cents=record.sub_total_cents,
            discount_type=record.discount_type,
            discount_value=record.discount_value,
            discount_cents=record.discount_cents,
            tax_rate_bps=record.tax_rate_bps,
            tax_cents=record.tax_cents,
            grand_total_cents=record.grand_total_cents,
            amount_received_cents=record.amount_received_cents,
            change_cents=record.change_cents,
            created_at=record.created_at,
            paid_at=record.paid_at,
            paid_by=record.paid_by,
        )
        row.lines = [
            InvoiceLine(
                position=i,
                product_id=line.product_id,
                name=line.name,
                sku=line.sku,
                quantity=line.quantity,
                unit_amount_cents=line.unit_amount_cents,
                buying_price_cents=line.buying_price_cents,
            )
            for i, line in enumerate(record.lines)
        ]
        return row

    def to_record(self) -> InvoiceRecord:
        return InvoiceRecord(
            id=str(self.id),
            invoice_number=self.invoice_number,
            prefix=self.prefix,
            sequence_no=self.sequence_no,
            number_sequential=self.number_sequential,
            lines=tuple(line.to_record() for line in self.lines),
            sub_total_cents=self.sub_total_cents,
            discount_type=self.discount_type,
            discount_value=self.discount_value,
            discount_cents=self.discount_cents,
            tax_rate_bps=self.tax_rate_bps,
            tax_cents=self.tax_cents,
            grand_total_cents=self.grand_total_cents,
            amount_received_cents=self.amount_received_cents,
            change_cents=self.change_cents,
            status=self.status,
            cashier_id=self.cashier_id,
            customer_ref=self.customer_ref,
            customer_name=self.customer_name,
            created_at=self.created_at,
            paid_at=self.paid_at,
            paid_by=self.paid_by,
        )


class InvoiceLine(db.Model):
    """Line item snapshot on a committed invoice."""
    __tablename__ = "invoice_lines"
    __table_args__ = (
        db.UniqueConstraint("invoice_id", "position", name="uq_invoice_lines_position"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)

    # Opaque product reference; no foreign key so catalog deletions never touch history
    product_id = db.Column(db.String(64), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    sku = db.Column(db.String(64), nullable=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_amount_cents = db.Column(db.Integer, nullable=False)
    buying_price_cents = db.Column(db.Integer, nullable=False, default=0)

    def to_record(self) -> InvoiceLineRecord:
        return InvoiceLineRecord(
            product_id=self.product_id,
            name=self.name,
            sku=self.sku,
            quantity=self.quantity,
            unit_amount_cents=self.unit_amount_cents,
            buying_price_cents=self.buying_price_cents,
        )
