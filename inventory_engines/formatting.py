"""
inventory_engines.formatting -- Display-string formatting for export rows.

Exports are presentation artifacts: values are rendered once, at
generation time, as the strings a person reads in a spreadsheet.
Money rounds half-up to cents; a rounded zero never shows a minus sign.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal


def _quantize(value: Decimal, places: int) -> Decimal:
    exponent = Decimal(1).scaleb(-places)
    result = value.quantize(exponent, rounding=ROUND_HALF_UP)
    if result == 0:
        result = abs(result)
    return result


def format_money(value: Decimal) -> str:
    """``$`` followed by the amount to two decimals (``$-200.00`` for losses)."""
    return f"${_quantize(value, 2)}"


def format_percent(value: Decimal, places: int = 1) -> str:
    return f"{_quantize(value, places)}%"


def format_decimal(value: Decimal, places: int = 1) -> str:
    return str(_quantize(value, places))


def format_quantity(value: Decimal | None) -> str:
    """Quantity without trailing zeros or exponent; unset counts as 0."""
    if value is None:
        return "0"
    if value == 0:
        return "0"
    return f"{value.normalize():f}"


def format_timestamp(value: datetime | None, default: str = "N/A") -> str:
    if value is None:
        return default
    return value.strftime("%Y-%m-%d %H:%M")


def format_iso_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def format_us_date(value: date) -> str:
    return value.strftime("%m/%d/%Y")
