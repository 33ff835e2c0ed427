"""
Configuration Loader (``inventory_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the typed
``inventory_config.schema`` dataclasses.  Runtime callers go through
``inventory_config.get_active_config()`` instead of calling this directly.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Numeric settings are parsed into ``Decimal`` via ``str`` so YAML floats
  never leak binary rounding into thresholds.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Non-numeric threshold  -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from inventory_config.schema import (
    AnalyticsConfigurationSet,
    AttentionConfigDef,
    ChartConfigDef,
    ImpactLevelDef,
    RatingBandDef,
    ReportingConfigDef,
    StockConfigDef,
    TeamWindowConfigDef,
    VarianceConfigDef,
)
from inventory_kernel.exceptions import ConfigurationError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_decimal_setting(value: Any, setting: str) -> Decimal:
    if isinstance(value, bool):
        raise ConfigurationError(setting, f"expected a number, got {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ConfigurationError(setting, f"expected a number, got {value!r}") from None


def _decimal(data: dict[str, Any], key: str, default: Decimal, section: str) -> Decimal:
    if key not in data:
        return default
    return parse_decimal_setting(data[key], f"{section}.{key}")


def parse_variance(data: dict[str, Any]) -> VarianceConfigDef:
    d = VarianceConfigDef()
    return VarianceConfigDef(
        acceptable_max=_decimal(data, "acceptable_max", d.acceptable_max, "variance"),
        minor_max=_decimal(data, "minor_max", d.minor_max, "variance"),
        significant_max=_decimal(data, "significant_max", d.significant_max, "variance"),
        epsilon=_decimal(data, "epsilon", d.epsilon, "variance"),
    )


def parse_team_window(data: dict[str, Any]) -> TeamWindowConfigDef:
    d = TeamWindowConfigDef()
    return TeamWindowConfigDef(
        window_days=int(data.get("window_days", d.window_days)),
        trend_threshold_points=_decimal(
            data, "trend_threshold_points", d.trend_threshold_points, "team_window"
        ),
        include_voided=bool(data.get("include_voided", d.include_voided)),
        month_trend_threshold_percent=_decimal(
            data, "month_trend_threshold_percent",
            d.month_trend_threshold_percent, "team_window",
        ),
        unassigned_label=str(data.get("unassigned_label", d.unassigned_label)),
    )


def parse_reporting(data: dict[str, Any]) -> ReportingConfigDef:
    """Parse the reporting section; ratings and impact levels keep YAML order."""
    return ReportingConfigDef(
        default_variance_threshold=_decimal(
            data, "default_variance_threshold",
            ReportingConfigDef().default_variance_threshold, "reporting",
        ),
        performance_ratings=tuple(
            RatingBandDef(
                below=parse_decimal_setting(r["below"], "reporting.performance_ratings"),
                rating=r["rating"],
            )
            for r in data.get("performance_ratings", ())
        ),
        impact_levels=tuple(
            ImpactLevelDef(
                above=parse_decimal_setting(i["above"], "reporting.impact_levels"),
                level=i["level"],
            )
            for i in data.get("impact_levels", ())
        ),
    )


def parse_charts(data: dict[str, Any]) -> ChartConfigDef:
    d = ChartConfigDef()
    return ChartConfigDef(
        variance_breakdown_top_n=int(
            data.get("variance_breakdown_top_n", d.variance_breakdown_top_n)
        ),
        representative_deltas=int(
            data.get("representative_deltas", d.representative_deltas)
        ),
        team_comparison_limit=int(
            data.get("team_comparison_limit", d.team_comparison_limit)
        ),
        recent_comparisons_limit=int(
            data.get("recent_comparisons_limit", d.recent_comparisons_limit)
        ),
        financial_trend_days=int(
            data.get("financial_trend_days", d.financial_trend_days)
        ),
        monthly_periods=int(data.get("monthly_periods", d.monthly_periods)),
    )


def parse_configuration(data: dict[str, Any]) -> AnalyticsConfigurationSet:
    """
    Parse a full ``AnalyticsConfigurationSet`` from a dict.

    ``config_id`` and ``version`` are required; every section is optional
    and falls back to the shipped defaults.
    """
    attention = data.get("attention", {})
    stock = data.get("stock", {})
    return AnalyticsConfigurationSet(
        config_id=data["config_id"],
        version=int(data["version"]),
        variance=parse_variance(data.get("variance", {})),
        attention=AttentionConfigDef(
            cost_threshold=_decimal(
                attention, "cost_threshold",
                AttentionConfigDef().cost_threshold, "attention",
            ),
        ),
        stock=StockConfigDef(
            fallback_unit_cost=_decimal(
                stock, "fallback_unit_cost",
                StockConfigDef().fallback_unit_cost, "stock",
            ),
        ),
        team_window=parse_team_window(data.get("team_window", {})),
        reporting=parse_reporting(data.get("reporting", {})),
        charts=parse_charts(data.get("charts", {})),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
