"""Cart lines as handed over by the storefront at checkout."""

import json
from dataclasses import asdict, dataclass

from protean.exceptions import ValidationError


def _number(value, cast, field, product_id):
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ValidationError({field: [f"{field.replace('_', ' ').capitalize()} for {product_id} must be a number"]})


@dataclass(frozen=True)
class CartLine:
    product_id: str
    title: str
    unit_price: float
    quantity: int
    image_ref: str | None = None

    def __post_init__(self):
        if not self.product_id:
            raise ValidationError({"product_id": ["Cart line is missing a product"]})
        if self.quantity is None or int(self.quantity) < 1:
            raise ValidationError({"quantity": [f"Quantity for {self.product_id} must be at least 1"]})
        if self.unit_price is None or float(self.unit_price) < 0:
            raise ValidationError({"unit_price": [f"Price for {self.product_id} cannot be negative"]})

    @property
    def line_total(self) -> float:
        return float(self.unit_price) * int(self.quantity)

    @classmethod
    def from_dict(cls, data):
        if isinstance(data, cls):
            return data
        product_id = str(data.get("product_id") or "")
        return cls(
            product_id=product_id,
            title=data.get("title") or "",
            unit_price=_number(data.get("unit_price", data.get("price", 0.0)), float, "unit_price", product_id),
            quantity=_number(data.get("quantity", 0), int, "quantity", product_id),
            image_ref=data.get("image_ref"),
        )

    def to_dict(self) -> dict:
        return asdict(self)


def parse_lines(raw) -> list[CartLine]:
    """Accept a JSON string or a list of dicts/CartLines, keeping cart order."""
    if isinstance(raw, str):
        raw = json.loads(raw) if raw else []
    return [CartLine.from_dict(item) for item in raw or []]


def dump_lines(lines) -> str:
    return json.dumps([CartLine.from_dict(line).to_dict() for line in lines])


def cart_subtotal(lines) -> float:
    """Unrounded sum of price x quantity."""
    return sum(line.line_total for line in lines)
