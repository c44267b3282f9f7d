from __future__ import annotations

from typing import Any

from .errors import ValidationError
from .records import (
    DISCOUNT_AMOUNT,
    FULL_RATE_BPS,
    MAX_PRICE_CENTS,
    MAX_QUANTITY,
    MAX_TOTAL_CENTS,
    STATUS_UNPAID,
    CartLine,
    Discount,
    InvoiceContext,
)


def coerce_int(value: Any, key: str, *, minimum: int | None = None, maximum: int | None = None) -> int:
    """
    Strict integer parsing for JSON payloads.

    Accepts ints and plain digit strings; rejects bools, floats, decimals
    and scientific notation, since amounts are always whole cents.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer", details={"field": key})

    if isinstance(value, int):
        result = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer", details={"field": key})
        # Reject scientific notation (e.g., "1e15", "1E10")
        if "e" in stripped.lower():
            raise ValidationError(
                f"{key} must be a plain integer (scientific notation not allowed)",
                details={"field": key},
            )
        # Reject decimal points (e.g., "12.5")
        if "." in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)", details={"field": key})
        try:
            result = int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer", details={"field": key})
    elif isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal", details={"field": key})
    else:
        raise ValidationError(f"{key} must be an integer", details={"field": key})

    if minimum is not None and result < minimum:
        raise ValidationError(f"{key} must be at least {minimum}", details={"field": key})
    if maximum is not None and result > maximum:
        raise ValidationError(f"{key} must be at most {maximum}", details={"field": key})
    return result


def optional_int(payload: dict, key: str, **bounds) -> int | None:
    value = payload.get(key)
    if value is None or value == "":
        return None
    return coerce_int(value, key, **bounds)


def optional_str(payload: dict, key: str, max_length: int = 255) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    if len(s) > max_length:
        raise ValidationError(f"{key} must be at most {max_length} characters", details={"field": key})
    return s


def require_str(payload: dict, key: str, max_length: int = 255) -> str:
    s = optional_str(payload, key, max_length=max_length)
    if s is None:
        raise ValidationError(f"{key} is required", details={"field": key})
    return s


def parse_cart(payload: dict) -> list[CartLine]:
    """
    Cart lines from a commit payload:
        {"lines": [{"product_id": 1, "quantity": 2, "unit_amount_cents": 1000}, ...]}

    Quantity/amount ranges are left to the engine so that every caller,
    HTTP or not, gets the same ValidationError.
    """
    raw_lines = payload.get("lines")
    if not isinstance(raw_lines, list):
        raise ValidationError("lines must be a list", details={"field": "lines"})

    cart = []
    for i, raw in enumerate(raw_lines):
        if not isinstance(raw, dict):
            raise ValidationError("each line must be an object", details={"line": i})
        product_id = raw.get("product_id")
        if product_id is None or str(product_id).strip() == "":
            raise ValidationError("product_id is required", details={"line": i})
        cart.append(
            CartLine(
                product_id=str(product_id).strip(),
                quantity=coerce_int(
                    raw.get("quantity"), f"lines[{i}].quantity", maximum=MAX_QUANTITY
                ),
                unit_amount_cents=coerce_int(
                    raw.get("unit_amount_cents"),
                    f"lines[{i}].unit_amount_cents",
                    maximum=MAX_PRICE_CENTS,
                ),
            )
        )
    return cart


def parse_discount(raw: Any) -> Discount:
    if raw is None:
        return Discount.none()
    if not isinstance(raw, dict):
        raise ValidationError("discount must be an object", details={"field": "discount"})
    value = raw.get("value")
    return Discount(
        type=str(raw.get("type") or DISCOUNT_AMOUNT).strip().lower(),
        value=0 if value is None or value == "" else coerce_int(value, "discount.value", maximum=MAX_TOTAL_CENTS),
    )


def parse_context(payload: dict) -> InvoiceContext:
    return InvoiceContext(
        cashier_id=require_str(payload, "cashier_id", max_length=128),
        discount=parse_discount(payload.get("discount")),
        tax_rate_bps=optional_int(payload, "tax_rate_bps", maximum=FULL_RATE_BPS) or 0,
        status=(optional_str(payload, "status", max_length=16) or STATUS_UNPAID).lower(),
        amount_received_cents=optional_int(
            payload, "amount_received_cents", maximum=MAX_TOTAL_CENTS
        ),
        customer_ref=optional_str(payload, "customer_ref", max_length=128),
        customer_name=optional_str(payload, "customer_name"),
    )
