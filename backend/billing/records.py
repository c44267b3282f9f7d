# Overview: Typed records that cross the invoice engine boundary.

"""
Invoice engine records.

All money is integer cents and all rates are integer basis points
(500 = 5.00%). ORM rows and HTTP payloads are translated into these
records at the boundary; the engine never sees either.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

from .time_utils import to_utc_z

STATUS_PAID = "paid"
STATUS_UNPAID = "unpaid"
INVOICE_STATUSES = (STATUS_UNPAID, STATUS_PAID)

DISCOUNT_AMOUNT = "amount"
DISCOUNT_PERCENTAGE = "percentage"
DISCOUNT_TYPES = (DISCOUNT_AMOUNT, DISCOUNT_PERCENTAGE)

# 100.00% expressed in basis points
FULL_RATE_BPS = 10_000

# Maximum price: 9,999,999.99 (999,999,999 cents)
MAX_PRICE_CENTS = 999_999_999
MAX_QUANTITY = 100_000
# Money and stock columns are 32-bit integers
INT_COLUMN_MAX = 2**31 - 1
MAX_TOTAL_CENTS = INT_COLUMN_MAX


@dataclass(frozen=True)
class Discount:
    """
    type=amount:     value is a flat discount in cents
    type=percentage: value is a rate in basis points of the subtotal
    """
    type: str = DISCOUNT_AMOUNT
    value: int = 0

    @classmethod
    def amount(cls, cents: int) -> "Discount":
        return cls(DISCOUNT_AMOUNT, cents)

    @classmethod
    def percentage(cls, bps: int) -> "Discount":
        return cls(DISCOUNT_PERCENTAGE, bps)

    @classmethod
    def none(cls) -> "Discount":
        return cls(DISCOUNT_AMOUNT, 0)


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int
    unit_amount_cents: int


@dataclass(frozen=True)
class InvoiceContext:
    cashier_id: str
    discount: Discount = field(default_factory=Discount.none)
    tax_rate_bps: int = 0
    status: str = STATUS_UNPAID
    amount_received_cents: Optional[int] = None
    customer_ref: Optional[str] = None
    customer_name: Optional[str] = None


@dataclass(frozen=True)
class Totals:
    sub_total_cents: int
    discount_cents: int
    tax_cents: int
    grand_total_cents: int

    def to_dict(self) -> dict:
        return {
            "sub_total_cents": self.sub_total_cents,
            "discount_cents": self.discount_cents,
            "tax_cents": self.tax_cents,
            "grand_total_cents": self.grand_total_cents,
        }


@dataclass(frozen=True)
class ProductRecord:
    id: str
    name: str
    quantity: int = 0
    price_cents: int = 0
    buying_price_cents: int = 0
    sku: Optional[str] = None
    barcode: Optional[str] = None
    discount_limit_bps: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "barcode": self.barcode,
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "buying_price_cents": self.buying_price_cents,
            "discount_limit_bps": self.discount_limit_bps,
        }


@dataclass(frozen=True)
class InvoiceLine:
    """One sold product, snapshotted at sale time so later product edits do not alter history."""
    product_id: str
    name: str
    quantity: int
    unit_amount_cents: int
    buying_price_cents: int = 0
    sku: Optional[str] = None

    @property
    def line_total_cents(self) -> int:
        return self.quantity * self.unit_amount_cents

    @property
    def line_cost_cents(self) -> int:
        return self.quantity * self.buying_price_cents

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "sku": self.sku,
            "quantity": self.quantity,
            "unit_amount_cents": self.unit_amount_cents,
            "buying_price_cents": self.buying_price_cents,
            "line_total_cents": self.line_total_cents,
        }


@dataclass(frozen=True)
class Invoice:
    invoice_number: str
    prefix: str
    lines: tuple[InvoiceLine, ...]
    sub_total_cents: int
    discount_type: str
    discount_value: int
    discount_cents: int
    tax_rate_bps: int
    tax_cents: int
    grand_total_cents: int
    status: str
    cashier_id: str
    created_at: datetime
    amount_received_cents: Optional[int] = None
    change_cents: int = 0
    customer_ref: Optional[str] = None
    customer_name: Optional[str] = None
    paid_at: Optional[datetime] = None
    paid_by: Optional[str] = None
    # None for degraded (timestamp-derived) numbers
    sequence_no: Optional[int] = None
    number_sequential: bool = True
    id: Optional[str] = None

    @property
    def is_paid(self) -> bool:
        return self.status == STATUS_PAID

    @property
    def cost_cents(self) -> int:
        return sum(line.line_cost_cents for line in self.lines)

    def with_changes(self, **changes) -> "Invoice":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "prefix": self.prefix,
            "number_sequential": self.number_sequential,
            "status": self.status,
            "customer_ref": self.customer_ref,
            "customer_name": self.customer_name,
            "cashier_id": self.cashier_id,
            "lines": [line.to_dict() for line in self.lines],
            "sub_total_cents": self.sub_total_cents,
            "discount_type": self.discount_type,
            "discount_value": self.discount_value,
            "discount_cents": self.discount_cents,
            "tax_rate_bps": self.tax_rate_bps,
            "tax_cents": self.tax_cents,
            "grand_total_cents": self.grand_total_cents,
            "amount_received_cents": self.amount_received_cents,
            "change_cents": self.change_cents,
            "created_at": to_utc_z(self.created_at),
            "paid_at": to_utc_z(self.paid_at) if self.paid_at else None,
            "paid_by": self.paid_by,
        }
