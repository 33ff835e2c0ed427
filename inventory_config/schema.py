"""
AnalyticsConfigurationSet schema.

Defines the human-authored, reviewable source artifact for analytics
thresholds.  YAML is parsed into these types by the loader, checked by
the validator, and translated into ``EngineParameters`` by the bridges.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

# ---------------------------------------------------------------------------
# Variance and attention
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VarianceConfigDef:
    """Inclusive upper bounds of the variance bands, in percent."""

    acceptable_max: Decimal = Decimal("5")
    minor_max: Decimal = Decimal("15")
    significant_max: Decimal = Decimal("25")
    epsilon: Decimal = Decimal("0.01")


@dataclass(frozen=True)
class AttentionConfigDef:
    cost_threshold: Decimal = Decimal("100")


@dataclass(frozen=True)
class StockConfigDef:
    fallback_unit_cost: Decimal = Decimal("15.0")


# ---------------------------------------------------------------------------
# Team window
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TeamWindowConfigDef:
    """Rolling window and trend thresholds for team performance."""

    window_days: int = 30
    trend_threshold_points: Decimal = Decimal("2")
    include_voided: bool = False
    month_trend_threshold_percent: Decimal = Decimal("5")
    unassigned_label: str = "Unassigned"


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RatingBandDef:
    """Accuracy strictly below ``below`` earns ``rating``."""

    below: Decimal
    rating: str


@dataclass(frozen=True)
class ImpactLevelDef:
    """|variance cost| strictly above ``above`` is ``level``."""

    above: Decimal
    level: str


@dataclass(frozen=True)
class ReportingConfigDef:
    default_variance_threshold: Decimal = Decimal("5")
    performance_ratings: tuple[RatingBandDef, ...] = ()
    impact_levels: tuple[ImpactLevelDef, ...] = ()


@dataclass(frozen=True)
class ChartConfigDef:
    variance_breakdown_top_n: int = 5
    representative_deltas: int = 3
    team_comparison_limit: int = 6
    recent_comparisons_limit: int = 5
    financial_trend_days: int = 14
    monthly_periods: int = 6


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnalyticsConfigurationSet:
    """
    Root configuration artifact.

    ``checksum`` is the SHA-256 of the source mapping it was parsed from.
    """

    config_id: str
    version: int
    variance: VarianceConfigDef = field(default_factory=VarianceConfigDef)
    attention: AttentionConfigDef = field(default_factory=AttentionConfigDef)
    stock: StockConfigDef = field(default_factory=StockConfigDef)
    team_window: TeamWindowConfigDef = field(default_factory=TeamWindowConfigDef)
    reporting: ReportingConfigDef = field(default_factory=ReportingConfigDef)
    charts: ChartConfigDef = field(default_factory=ChartConfigDef)
    checksum: str = ""
