"""Tests for cart line parsing, subtotals and money rounding."""

import json

import pytest
from ordering.shared.cart import CartLine, cart_subtotal, dump_lines, parse_lines
from ordering.shared.money import to_money
from protean.exceptions import ValidationError


class TestCartLine:
    def test_line_total(self):
        line = CartLine(product_id="p1", title="Topi", unit_price=1000.0, quantity=2)
        assert line.line_total == 2000.0

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            CartLine(product_id="p1", title="Topi", unit_price=10.0, quantity=0)

    def test_price_cannot_be_negative(self):
        with pytest.raises(ValidationError):
            CartLine(product_id="p1", title="Topi", unit_price=-1.0, quantity=1)

    def test_from_dict_accepts_legacy_price_key(self):
        line = CartLine.from_dict({"product_id": "p1", "title": "Topi", "price": 250, "quantity": 3})
        assert line.unit_price == 250.0

    def test_from_dict_rejects_non_numeric_quantity(self):
        with pytest.raises(ValidationError) as exc:
            CartLine.from_dict({"product_id": "p1", "title": "Topi", "unit_price": 10, "quantity": "two"})
        assert exc.value.messages == {"quantity": ["Quantity for p1 must be a number"]}

    def test_from_dict_rejects_non_numeric_price(self):
        with pytest.raises(ValidationError) as exc:
            CartLine.from_dict({"product_id": "p1", "title": "Topi", "unit_price": "cheap", "quantity": 1})
        assert "unit_price" in exc.value.messages


class TestParseLines:
    def test_keeps_cart_order(self):
        raw = json.dumps(
            [
                {"product_id": "b", "title": "B", "unit_price": 1, "quantity": 1},
                {"product_id": "a", "title": "A", "unit_price": 2, "quantity": 1},
            ]
        )
        assert [line.product_id for line in parse_lines(raw)] == ["b", "a"]

    def test_empty(self):
        assert parse_lines("[]") == []
        assert parse_lines(None) == []

    def test_dump_and_parse(self):
        lines = [CartLine(product_id="p1", title="Topi", unit_price=99.99, quantity=3, image_ref="img/p1.png")]
        assert parse_lines(dump_lines(lines)) == lines

    def test_subtotal(self):
        lines = parse_lines(
            [
                {"product_id": "p1", "title": "A", "unit_price": 1000, "quantity": 2},
                {"product_id": "p2", "title": "B", "unit_price": 49.5, "quantity": 1},
            ]
        )
        assert cart_subtotal(lines) == 2049.5


class TestMoney:
    @pytest.mark.parametrize(
        ("amount", "expected"),
        [(2.675, 2.68), (1.005, 1.01), (10, 10.0), (0.004, 0.0), (199.995, 200.0)],
    )
    def test_rounds_half_up_to_cents(self, amount, expected):
        assert to_money(amount) == expected
