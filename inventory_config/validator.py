"""
Configuration Validator (``inventory_config.validator``).

Responsibility
--------------
Validates an ``AnalyticsConfigurationSet`` before it is bridged into
engine parameters.

Invariants enforced
-------------------
* Variance bands are non-negative and strictly ascending.
* Thresholds, costs and window sizes are non-negative; counts are >= 1.
* Rating bands ascend; impact levels descend.

Failure modes
-------------
* ``validate_configuration`` collects every problem into a
  ``ConfigValidationResult``; ``raise_if_invalid`` turns the first error
  into a ``ConfigurationError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from inventory_config.schema import AnalyticsConfigurationSet
from inventory_kernel.exceptions import ConfigurationError, InvalidBandsError

_ZERO = Decimal("0")


@dataclass
class ConfigValidationResult:
    """
    Result of configuration validation.

    ``is_valid`` returns ``True`` only when ``errors`` is empty.
    """

    errors: list[tuple[str, str]] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, setting: str, reason: str) -> None:
        self.errors.append((setting, reason))


def validate_configuration(config: AnalyticsConfigurationSet) -> ConfigValidationResult:
    """Validate a configuration set and return every problem found."""
    result = ConfigValidationResult()

    v = config.variance
    if not (_ZERO <= v.acceptable_max < v.minor_max < v.significant_max):
        result.add_error(
            "variance.bands",
            f"cut points must be strictly ascending, got "
            f"{v.acceptable_max} / {v.minor_max} / {v.significant_max}",
        )
    if v.epsilon < _ZERO:
        result.add_error("variance.epsilon", "must not be negative")

    if config.attention.cost_threshold < _ZERO:
        result.add_error("attention.cost_threshold", "must not be negative")
    if config.stock.fallback_unit_cost < _ZERO:
        result.add_error("stock.fallback_unit_cost", "must not be negative")

    tw = config.team_window
    if tw.window_days < 0:
        result.add_error("team_window.window_days", "must not be negative")
    if tw.trend_threshold_points < _ZERO:
        result.add_error("team_window.trend_threshold_points", "must not be negative")
    if tw.month_trend_threshold_percent < _ZERO:
        result.add_error("team_window.month_trend_threshold_percent", "must not be negative")

    reporting = config.reporting
    if reporting.default_variance_threshold < _ZERO:
        result.add_error("reporting.default_variance_threshold", "must not be negative")
    bounds = [r.below for r in reporting.performance_ratings]
    if bounds != sorted(set(bounds)):
        result.add_error("reporting.performance_ratings", "bounds must be strictly ascending")
    levels = [i.above for i in reporting.impact_levels]
    if levels != sorted(set(levels), reverse=True):
        result.add_error("reporting.impact_levels", "bounds must be strictly descending")

    for name, value in vars(config.charts).items():
        if value < 1:
            result.add_error(f"charts.{name}", "must be at least 1")

    return result


def raise_if_invalid(config: AnalyticsConfigurationSet) -> None:
    """
    Raise for the first validation error.

    Raises:
        InvalidBandsError: If the variance bands are not ascending.
        ConfigurationError: For any other invalid setting.
    """
    result = validate_configuration(config)
    if result.is_valid:
        return
    setting, reason = result.errors[0]
    if setting == "variance.bands":
        v = config.variance
        raise InvalidBandsError(v.acceptable_max, v.minor_max, v.significant_max)
    raise ConfigurationError(setting, reason)
