# Overview: Pytest coverage for request payload parsing.

import pytest

from billing.errors import ValidationError
from billing.records import DISCOUNT_PERCENTAGE, MAX_QUANTITY, STATUS_PAID, STATUS_UNPAID
from billing.validation import coerce_int, parse_cart, parse_context, parse_discount


class TestCoerceInt:
    def test_accepts_ints_and_digit_strings(self):
        assert coerce_int(5, "q") == 5
        assert coerce_int(" 12 ", "q") == 12

    @pytest.mark.parametrize("value", [True, 1.0, "1.5", "1e3", "", None, "abc"])
    def test_rejects_non_integers(self, value):
        with pytest.raises(ValidationError) as exc_info:
            coerce_int(value, "q")
        assert exc_info.value.details == {"field": "q"}

    def test_bounds(self):
        with pytest.raises(ValidationError):
            coerce_int(-1, "q", minimum=0)
        with pytest.raises(ValidationError):
            coerce_int(11, "q", maximum=10)


class TestParseCart:
    def test_lines(self):
        cart = parse_cart({"lines": [{"product_id": 7, "quantity": "2", "unit_amount_cents": 1000}]})

        assert len(cart) == 1
        assert cart[0].product_id == "7"
        assert cart[0].quantity == 2
        assert cart[0].unit_amount_cents == 1000

    def test_lines_must_be_a_list(self):
        with pytest.raises(ValidationError):
            parse_cart({"lines": "p1"})

    def test_product_id_required(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_cart({"lines": [{"quantity": 1, "unit_amount_cents": 100}]})
        assert exc_info.value.details == {"line": 0}

    def test_quantity_limit(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_cart({"lines": [{"product_id": "p1", "quantity": MAX_QUANTITY + 1, "unit_amount_cents": 100}]})
        assert exc_info.value.details == {"field": "lines[0].quantity"}


class TestParseContext:
    def test_defaults(self):
        ctx = parse_context({"cashier_id": "Sara"})

        assert ctx.cashier_id == "Sara"
        assert ctx.status == STATUS_UNPAID
        assert ctx.tax_rate_bps == 0
        assert ctx.discount.value == 0
        assert ctx.amount_received_cents is None

    def test_full_payload(self):
        ctx = parse_context({
            "cashier_id": "Sara",
            "status": "Paid",
            "tax_rate_bps": 500,
            "amount_received_cents": 5000,
            "discount": {"type": "Percentage", "value": 1000},
            "customer_ref": " C-17 ",
        })

        assert ctx.status == STATUS_PAID
        assert ctx.discount.type == DISCOUNT_PERCENTAGE
        assert ctx.discount.value == 1000
        assert ctx.customer_ref == "C-17"

    def test_tax_rate_above_100_percent_rejected(self):
        with pytest.raises(ValidationError):
            parse_context({"cashier_id": "Sara", "tax_rate_bps": 10_001})

    def test_discount_must_be_object(self):
        with pytest.raises(ValidationError):
            parse_discount(500)
