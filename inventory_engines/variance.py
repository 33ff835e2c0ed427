"""
inventory_engines.variance -- Count variance quantity, percentage, cost and severity band.

Responsibility:
    Compare a counted quantity against the pre-count stock snapshot and
    classify the discrepancy into a severity band.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumed by the item enricher; the band cut points are bridged in
    from ``inventory_config``.

Invariants enforced:
    - variance_quantity = actual - pre_count (unset actual counts as 0).
    - variance_percentage = |variance_quantity| / pre_count * 100, and 0
      when pre_count is 0 regardless of actual.  An item newly appearing
      in stock is surfaced through its stock status, not its band.
    - variance_cost = variance_quantity * unit_cost (signed).
    - Bands are closed at their upper edge: exactly 5% is acceptable,
      exactly 15% minor, exactly 25% significant, anything above critical.

Failure modes:
    - None for well-typed input.  ``VarianceBands`` raises
      InvalidBandsError on construction if cut points are not ascending.

Usage:
    from decimal import Decimal
    from inventory_engines.variance import classify_variance

    result = classify_variance(
        pre_count_stock=Decimal("100"),
        actual_quantity=Decimal("80"),
        unit_cost=Decimal("10"),
    )
    result.category          # VarianceCategory.SIGNIFICANT
    result.variance_cost     # Decimal("-200")
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from inventory_kernel.exceptions import InvalidBandsError

ACCEPTABLE_MAX_PERCENT = Decimal("5")
MINOR_MAX_PERCENT = Decimal("15")
SIGNIFICANT_MAX_PERCENT = Decimal("25")

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


class VarianceCategory(str, Enum):
    """Severity band of a count variance."""

    ACCEPTABLE = "acceptable"
    MINOR = "minor"
    SIGNIFICANT = "significant"
    CRITICAL = "critical"

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class VarianceBands:
    """
    Upper cut points (inclusive, in percent) of the first three bands.

    Guarantees:
        - acceptable_max < minor_max < significant_max.
        - ``categorize`` is total over non-negative percentages.
    """

    acceptable_max: Decimal = ACCEPTABLE_MAX_PERCENT
    minor_max: Decimal = MINOR_MAX_PERCENT
    significant_max: Decimal = SIGNIFICANT_MAX_PERCENT

    def __post_init__(self) -> None:
        if not (
            _ZERO <= self.acceptable_max < self.minor_max < self.significant_max
        ):
            raise InvalidBandsError(
                self.acceptable_max, self.minor_max, self.significant_max
            )

    def categorize(self, variance_percentage: Decimal) -> VarianceCategory:
        if variance_percentage <= self.acceptable_max:
            return VarianceCategory.ACCEPTABLE
        if variance_percentage <= self.minor_max:
            return VarianceCategory.MINOR
        if variance_percentage <= self.significant_max:
            return VarianceCategory.SIGNIFICANT
        return VarianceCategory.CRITICAL


DEFAULT_BANDS = VarianceBands()


@dataclass(frozen=True)
class VarianceBreakdown:
    """Result of classifying one counted line."""

    variance_quantity: Decimal
    variance_percentage: Decimal
    variance_cost: Decimal
    category: VarianceCategory

    @property
    def absolute_cost(self) -> Decimal:
        return abs(self.variance_cost)


def variance_percentage(pre_count_stock: Decimal, variance_quantity: Decimal) -> Decimal:
    """|variance| as a percentage of pre-count stock; 0 when stock was 0."""
    if pre_count_stock == _ZERO:
        return _ZERO
    return abs(variance_quantity) / pre_count_stock * _HUNDRED


def classify_variance(
    pre_count_stock: Decimal,
    actual_quantity: Decimal | None,
    unit_cost: Decimal,
    bands: VarianceBands = DEFAULT_BANDS,
) -> VarianceBreakdown:
    """
    Classify the variance between a count and its pre-count snapshot.

    Args:
        pre_count_stock: Stock level recorded before the count (>= 0).
        actual_quantity: Counted quantity; ``None`` (not yet counted) is 0.
        unit_cost: Resolved unit cost (>= 0).
        bands: Severity cut points.

    Returns:
        VarianceBreakdown with signed quantity and cost.
    """
    actual = actual_quantity if actual_quantity is not None else _ZERO
    variance_quantity = actual - pre_count_stock
    percentage = variance_percentage(pre_count_stock, variance_quantity)
    return VarianceBreakdown(
        variance_quantity=variance_quantity,
        variance_percentage=percentage,
        variance_cost=variance_quantity * unit_cost,
        category=bands.categorize(percentage),
    )
