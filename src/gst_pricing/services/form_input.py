"""
Form Input - normalises raw field values before they reach the engine.

The engine never sees malformed numbers: anything that does not parse
becomes 0, and negatives are floored at 0 unless the field allows them.
"""
import math

from ..engine.models import Discount, DiscountType


def parse_amount(raw, allow_negative: bool = False) -> float:
    """Parse a currency/number field ("1,250.50", "₹ 99") into a float."""
    if raw is None:
        return 0.0
    if isinstance(raw, bool):
        return 0.0

    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        text = str(raw).strip().replace(',', '').replace('₹', '').replace(' ', '')
        try:
            value = float(text)
        except ValueError:
            return 0.0

    if math.isnan(value) or math.isinf(value):
        return 0.0
    if value < 0 and not allow_negative:
        return 0.0
    return value


def parse_quantity(raw) -> float:
    return parse_amount(raw)


def parse_discount_type(raw) -> DiscountType:
    """Unknown or empty discount types fall back to percentage."""
    if isinstance(raw, DiscountType):
        return raw
    text = str(raw or '').strip().lower()
    if text in ('flat', 'amount', 'fixed'):
        return DiscountType.FLAT
    return DiscountType.PERCENTAGE


def parse_discount(value, discount_type=DiscountType.PERCENTAGE) -> Discount:
    return Discount(parse_discount_type(discount_type), parse_amount(value))
