# backend/billing/services/products_service.py
"""
Products Service

Catalog management used by the admin and cashier screens. Stock changes
caused by sales do not go through here; they go through
ProductCatalog.decrement_stock inside the invoice engine.
"""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFound
from ..extensions import db
from ..models import Product
from ..records import FULL_RATE_BPS, INT_COLUMN_MAX, MAX_PRICE_CENTS
from ..validation import coerce_int, optional_int, optional_str, require_str
from .catalog import SqlProductCatalog


def parse_product_payload(payload: dict) -> dict:
    """Validated column values for a new product."""
    return {
        "name": require_str(payload, "name"),
        "sku": optional_str(payload, "sku", max_length=64),
        "barcode": optional_str(payload, "barcode", max_length=64),
        "quantity": coerce_int(payload.get("quantity", 0), "quantity", minimum=0, maximum=INT_COLUMN_MAX),
        "price_cents": coerce_int(
            payload.get("price_cents", 0), "price_cents", minimum=0, maximum=MAX_PRICE_CENTS
        ),
        "buying_price_cents": coerce_int(
            payload.get("buying_price_cents", 0),
            "buying_price_cents",
            minimum=0,
            maximum=MAX_PRICE_CENTS,
        ),
        "discount_limit_bps": optional_int(
            payload, "discount_limit_bps", minimum=0, maximum=FULL_RATE_BPS
        ),
    }


def create_product(*, patch: dict) -> Product:
    """
    Create a product from a validated patch dict.

    Raises:
        ConflictError: SKU already used by another product
    """
    sku = patch.get("sku")
    if sku and SqlProductCatalog().find_by_sku(sku) is not None:
        raise ConflictError("SKU already exists", details={"sku": sku})

    product = Product(**patch)
    db.session.add(product)
    try:
        db.session.commit()
    except IntegrityError as exc:
        # Lost a race with another terminal creating the same SKU
        db.session.rollback()
        raise ConflictError("SKU already exists", details={"sku": sku}) from exc
    return product


def get_product(product_id) -> Product:
    try:
        pk = int(product_id)
    except (TypeError, ValueError):
        pk = None
    product = db.session.get(Product, pk) if pk is not None else None
    if product is None:
        raise NotFound("Product not found", details={"product_id": product_id})
    return product


def list_products(
    *,
    search: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Product listing with optional name/SKU/barcode search and pagination.

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
    """
    base_query = db.session.query(Product).order_by(Product.name.asc(), Product.id.asc())

    if search:
        like = f"%{search.strip()}%"
        base_query = base_query.filter(
            db.or_(Product.name.ilike(like), Product.sku.ilike(like), Product.barcode.ilike(like))
        )

    # If no pagination requested, return all items
    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = min(per_page or 20, 100)  # Default 20, max 100
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }
