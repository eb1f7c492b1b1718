"""Value formatting shared by render contexts and product cards."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any


def _group_indian(digits: str) -> str:
    """1234567 → 12,34,567"""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups) + "," + tail


def format_number(value: Any) -> str:
    """Format like `Number.toLocaleString('en-IN')` with at most two decimals."""
    if isinstance(value, bool):
        return ""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return ""
    if not amount.is_finite():
        return ""

    try:
        amount = amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # More digits than the decimal context can hold
        return ""
    sign = "-" if amount < 0 else ""
    whole, _, fraction = f"{abs(amount):.2f}".partition(".")
    fraction = fraction.rstrip("0")
    text = _group_indian(whole)
    if fraction:
        text = f"{text}.{fraction}"
    return sign + text


def format_price(value: Any, currency: str = "₹") -> str:
    """₹1,23,456 style price. Empty string when the value is not numeric."""
    number = format_number(value)
    if not number:
        return ""
    if number.startswith("-"):
        return f"-{currency}{number[1:]}"
    return f"{currency}{number}"


def discount_percent(price: Any, mrp: Any) -> int | None:
    """Rounded percentage off MRP, or None when there is no discount."""
    if not _is_number(price) or not _is_number(mrp):
        return None
    if mrp <= 0 or mrp <= price:
        return None
    ratio = (Decimal(str(mrp)) - Decimal(str(price))) / Decimal(str(mrp)) * 100
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return isinstance(value, int) or math.isfinite(value)
