from __future__ import annotations

from ..extensions import db
from ..records import ProductRecord
from ..time_utils import to_utc_z


class Product(db.Model):
    """
    Product master data.

    quantity is on-hand stock and never goes below zero; the only writer
    during a sale is SqlProductCatalog.decrement_stock.

    SKU is optional but unique when present. Barcodes are scan codes and
    are not required to be unique.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("sku", name="uq_products_sku"),
        db.Index("ix_products_name", "name"),
        db.Index("ix_products_barcode", "barcode"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    sku = db.Column(db.String(64), nullable=True)
    barcode = db.Column(db.String(64), nullable=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)

    # Authoritative storage in cents (frontend may only format for display)
    price_cents = db.Column(db.Integer, nullable=False, default=0)
    buying_price_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_limit_bps = db.Column(db.Integer, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} quantity={self.quantity}>"

    def to_record(self) -> ProductRecord:
        return ProductRecord(
            id=str(self.id),
            name=self.name,
            sku=self.sku,
            barcode=self.barcode,
            quantity=self.quantity,
            price_cents=self.price_cents,
            buying_price_cents=self.buying_price_cents,
            discount_limit_bps=self.discount_limit_bps,
        )

    def to_dict(self) -> dict:
        return {
            **self.to_record().to_dict(),
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
