# Overview: ProductCatalog collaborator: product lookup and the stock-decrement side effect of a sale.

from __future__ import annotations

import threading
import uuid
from dataclasses import replace
from typing import Iterable, Protocol

from sqlalchemy import case, update
from sqlalchemy.exc import SQLAlchemyError

from ..errors import NotFound, StoreUnavailable
from ..extensions import db
from ..models import Product
from ..records import ProductRecord


class ProductCatalog(Protocol):
    def get(self, product_id: str) -> ProductRecord:
        """Raises NotFound for unknown ids."""

    def decrement_stock(self, product_id: str, by_quantity: int) -> int:
        """Reduce on-hand stock, clamped at 0. Returns the new quantity."""

    def find_by_sku(self, sku: str) -> ProductRecord | None:
        ...


class InMemoryProductCatalog:
    """
    Single-process catalog for offline terminals and tests.

    Stock reads and writes happen under one lock so concurrent sales of
    the same product cannot lose a decrement.
    """

    def __init__(self, products: Iterable[ProductRecord] = ()):
        self._lock = threading.Lock()
        self._products: dict[str, ProductRecord] = {}
        for product in products:
            self.add(product)

    def add(self, product: ProductRecord) -> ProductRecord:
        if not product.id:
            product = replace(product, id=str(uuid.uuid4()))
        with self._lock:
            self._products[product.id] = product
        return product

    def get(self, product_id: str) -> ProductRecord:
        with self._lock:
            product = self._products.get(str(product_id))
        if product is None:
            raise NotFound("Product not found", details={"product_id": product_id})
        return product

    def decrement_stock(self, product_id: str, by_quantity: int) -> int:
        with self._lock:
            product = self._products.get(str(product_id))
            if product is None:
                raise NotFound("Product not found", details={"product_id": product_id})
            new_quantity = max(0, product.quantity - by_quantity)
            self._products[product.id] = replace(product, quantity=new_quantity)
            return new_quantity

    def find_by_sku(self, sku: str) -> ProductRecord | None:
        if not sku:
            return None
        with self._lock:
            for product in self._products.values():
                if product.sku == sku:
                    return product
        return None

    def list_all(self) -> list[ProductRecord]:
        with self._lock:
            return sorted(self._products.values(), key=lambda p: p.name)


def _product_pk(product_id) -> int | None:
    try:
        return int(product_id)
    except (TypeError, ValueError):
        return None


class SqlProductCatalog:
    """Catalog backed by the products table of the shared database."""

    def get(self, product_id: str) -> ProductRecord:
        pk = _product_pk(product_id)
        try:
            product = db.session.get(Product, pk) if pk is not None else None
        except SQLAlchemyError as exc:
            raise StoreUnavailable("Product catalog unavailable") from exc
        if product is None:
            raise NotFound("Product not found", details={"product_id": product_id})
        return product.to_record()

    def decrement_stock(self, product_id: str, by_quantity: int) -> int:
        """
        Single UPDATE with the clamp in SQL, so concurrent sales never read
        a stale quantity and stock never drops below zero.
        """
        pk = _product_pk(product_id)
        if pk is None:
            raise NotFound("Product not found", details={"product_id": product_id})

        stmt = (
            update(Product)
            .where(Product.id == pk)
            .values(
                quantity=case(
                    (Product.quantity > by_quantity, Product.quantity - by_quantity),
                    else_=0,
                ),
                version_id=Product.version_id + 1,
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = db.session.execute(stmt)
            if not result.rowcount:
                db.session.rollback()
                raise NotFound("Product not found", details={"product_id": product_id})
            db.session.commit()
            new_quantity = (
                db.session.query(Product.quantity).filter(Product.id == pk).scalar()
            )
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreUnavailable("Stock update failed", details={"product_id": product_id}) from exc

        return int(new_quantity)

    def find_by_sku(self, sku: str) -> ProductRecord | None:
        if not sku:
            return None
        product = db.session.query(Product).filter_by(sku=sku).first()
        return product.to_record() if product else None
