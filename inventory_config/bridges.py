"""
Config -> Engine Bridges.

Functions that convert an ``AnalyticsConfigurationSet`` into engine
inputs.  These live in inventory_config (the producer) because engines
must NEVER import inventory_config.

Usage:
    from inventory_config import get_active_config
    from inventory_config.bridges import build_engine_parameters

    parameters = build_engine_parameters(get_active_config())
"""

from __future__ import annotations

from inventory_config.schema import AnalyticsConfigurationSet
from inventory_engines.parameters import (
    IMPACT_LEVELS,
    PERFORMANCE_RATINGS,
    EngineParameters,
)
from inventory_engines.variance import VarianceBands


def build_variance_bands(config: AnalyticsConfigurationSet) -> VarianceBands:
    """Raises InvalidBandsError when the cut points are not ascending."""
    return VarianceBands(
        acceptable_max=config.variance.acceptable_max,
        minor_max=config.variance.minor_max,
        significant_max=config.variance.significant_max,
    )


def build_engine_parameters(config: AnalyticsConfigurationSet) -> EngineParameters:
    """Translate a configuration set into the engine threshold bundle.

    Empty rating / impact tables fall back to the built-in tables.
    """
    reporting = config.reporting
    ratings = tuple((r.below, r.rating) for r in reporting.performance_ratings)
    impacts = tuple((i.above, i.level) for i in reporting.impact_levels)
    tw = config.team_window
    charts = config.charts
    return EngineParameters(
        bands=build_variance_bands(config),
        fallback_unit_cost=config.stock.fallback_unit_cost,
        attention_cost_threshold=config.attention.cost_threshold,
        variance_epsilon=config.variance.epsilon,
        team_window_days=tw.window_days,
        trend_threshold_points=tw.trend_threshold_points,
        include_voided_in_team_window=tw.include_voided,
        month_trend_threshold_percent=tw.month_trend_threshold_percent,
        performance_ratings=ratings or PERFORMANCE_RATINGS,
        impact_levels=impacts or IMPACT_LEVELS,
        variance_breakdown_top_n=charts.variance_breakdown_top_n,
        representative_deltas=charts.representative_deltas,
        team_comparison_limit=charts.team_comparison_limit,
        recent_comparisons_limit=charts.recent_comparisons_limit,
        financial_trend_days=charts.financial_trend_days,
        monthly_periods=charts.monthly_periods,
        default_variance_threshold=reporting.default_variance_threshold,
        unassigned_team_label=tw.unassigned_label,
    )
