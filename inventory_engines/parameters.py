"""
inventory_engines.parameters -- Threshold parameters shared by all engines.

Architecture position:
    Engines -- pure value objects.  Built from YAML by
    ``inventory_config.bridges``; engines fall back to
    ``DEFAULT_PARAMETERS`` when called without configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from inventory_engines.variance import DEFAULT_BANDS, VarianceBands

FALLBACK_UNIT_COST = Decimal("15.0")
ATTENTION_COST_THRESHOLD = Decimal("100")
VARIANCE_EPSILON = Decimal("0.01")
TEAM_WINDOW_DAYS = 30
TREND_THRESHOLD_POINTS = Decimal("2")

# (exclusive upper accuracy bound, rating); anything above is "Excellent"
PERFORMANCE_RATINGS: tuple[tuple[Decimal, str], ...] = (
    (Decimal("70"), "Needs Improvement"),
    (Decimal("85"), "Good"),
    (Decimal("95"), "Very Good"),
)
TOP_PERFORMANCE_RATING = "Excellent"

# (exclusive lower |cost| bound, level), highest first; anything below is "Low"
IMPACT_LEVELS: tuple[tuple[Decimal, str], ...] = (
    (Decimal("500"), "Critical"),
    (Decimal("100"), "High"),
    (Decimal("25"), "Medium"),
)
LOWEST_IMPACT_LEVEL = "Low"


@dataclass(frozen=True)
class EngineParameters:
    """
    Immutable bundle of every tunable threshold.

    Guarantees:
        - Defaults reproduce the documented behavior exactly.
        - Instances are hashable and safe to share across calls.
    """

    bands: VarianceBands = DEFAULT_BANDS
    fallback_unit_cost: Decimal = FALLBACK_UNIT_COST
    attention_cost_threshold: Decimal = ATTENTION_COST_THRESHOLD
    variance_epsilon: Decimal = VARIANCE_EPSILON
    team_window_days: int = TEAM_WINDOW_DAYS
    trend_threshold_points: Decimal = TREND_THRESHOLD_POINTS
    include_voided_in_team_window: bool = False
    month_trend_threshold_percent: Decimal = Decimal("5")
    performance_ratings: tuple[tuple[Decimal, str], ...] = PERFORMANCE_RATINGS
    impact_levels: tuple[tuple[Decimal, str], ...] = IMPACT_LEVELS
    variance_breakdown_top_n: int = 5
    representative_deltas: int = 3
    team_comparison_limit: int = 6
    recent_comparisons_limit: int = 5
    financial_trend_days: int = 14
    monthly_periods: int = 6
    default_variance_threshold: Decimal = Decimal("5")
    unassigned_team_label: str = field(default="Unassigned")

    def rating_for(self, accuracy: Decimal) -> str:
        for upper, rating in self.performance_ratings:
            if accuracy < upper:
                return rating
        return TOP_PERFORMANCE_RATING

    def impact_level_for(self, absolute_cost: Decimal) -> str:
        for lower, level in self.impact_levels:
            if absolute_cost > lower:
                return level
        return LOWEST_IMPACT_LEVEL


DEFAULT_PARAMETERS = EngineParameters()
