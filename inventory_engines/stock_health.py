"""
inventory_engines.stock_health -- Stock status from counted quantity and min/max thresholds.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Priority order: zero quantity is ``out`` regardless of thresholds;
      then below minimum is ``low``; then above maximum is ``over``;
      otherwise ``normal``.
    - An unset threshold never triggers its branch, so unconfigured
      items never produce low/over statuses.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

_ZERO = Decimal("0")


class StockStatus(str, Enum):
    """Stock health of a counted line."""

    OUT = "out"
    LOW = "low"
    OVER = "over"
    NORMAL = "normal"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def is_out_of_range(self) -> bool:
        return self is not StockStatus.NORMAL


_LABELS = {
    StockStatus.OUT: "Out of Stock",
    StockStatus.LOW: "Low Stock",
    StockStatus.OVER: "Over Stock",
    StockStatus.NORMAL: "Normal",
}


def evaluate_stock_status(
    actual_quantity: Decimal,
    minimum_threshold: Decimal | None = None,
    maximum_threshold: Decimal | None = None,
) -> StockStatus:
    """Return the stock status for ``actual_quantity``."""
    if actual_quantity == _ZERO:
        return StockStatus.OUT
    if minimum_threshold is not None and actual_quantity < minimum_threshold:
        return StockStatus.LOW
    if maximum_threshold is not None and actual_quantity > maximum_threshold:
        return StockStatus.OVER
    return StockStatus.NORMAL
