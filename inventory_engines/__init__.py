"""
Module: inventory_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    inventory analysis engines.  This is the canonical import surface for
    higher layers (inventory_services).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import inventory_kernel (and sibling engine modules).
    MUST NOT import inventory_services or inventory_config.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      Reference dates are passed in; services supply the current time.
    - Decimal-only arithmetic for quantities, costs and percentages.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Every public engine entrypoint is traced via ``@traced_engine`` (see
    ``inventory_engines.tracer``), emitting INVENTORY_ENGINE_TRACE log
    records with engine name, version, input fingerprint and duration.

Usage:
    from inventory_engines import compute_daily_metrics, generate_export
    from inventory_engines import ExportOptions, ExportType
"""

from inventory_kernel.logging_config import get_logger

logger = get_logger("engines")

from inventory_engines.analytics import (
    DailyAnalytics,
    EnhancedAnalytics,
    EnhancedMetrics,
    ExportData,
    ExportMetadata,
    compute_daily_metrics,
    compute_enhanced_analytics,
    generate_export,
)
from inventory_engines.charts import (
    DailyChartData,
    EnhancedChartData,
    project_daily_charts,
    project_enhanced_charts,
)
from inventory_engines.comparisons import (
    CountComparison,
    ItemComparison,
    compare_recent_counts,
)
from inventory_engines.enrichment import (
    EnhancedInventoryItem,
    enrich_count_item,
    enrich_count_items,
)
from inventory_engines.metrics import (
    CountMetrics,
    FinancialMetrics,
    StockIssueCounts,
    aggregate_financials,
    aggregate_metrics,
)
from inventory_engines.parameters import DEFAULT_PARAMETERS, EngineParameters
from inventory_engines.reports import (
    ExportOptions,
    ExportType,
    ReportTable,
    build_export_filename,
    generate_report,
)
from inventory_engines.session_filter import (
    COMBINE_SELECTION,
    SessionCriteria,
    filter_sessions,
    session_matches,
)
from inventory_engines.stock_health import StockStatus, evaluate_stock_status
from inventory_engines.team_performance import (
    ImprovementTrend,
    TeamPerformanceMetrics,
    aggregate_team_performance,
)
from inventory_engines.tracer import traced_engine
from inventory_engines.variance import (
    DEFAULT_BANDS,
    VarianceBands,
    VarianceBreakdown,
    VarianceCategory,
    classify_variance,
)

__all__ = [
    # analytics
    "DailyAnalytics",
    "EnhancedAnalytics",
    "EnhancedMetrics",
    "ExportData",
    "ExportMetadata",
    "compute_daily_metrics",
    "compute_enhanced_analytics",
    "generate_export",
    # charts
    "DailyChartData",
    "EnhancedChartData",
    "project_daily_charts",
    "project_enhanced_charts",
    # comparisons
    "CountComparison",
    "ItemComparison",
    "compare_recent_counts",
    # enrichment
    "EnhancedInventoryItem",
    "enrich_count_item",
    "enrich_count_items",
    # metrics
    "CountMetrics",
    "FinancialMetrics",
    "StockIssueCounts",
    "aggregate_financials",
    "aggregate_metrics",
    # parameters
    "DEFAULT_PARAMETERS",
    "EngineParameters",
    # reports
    "ExportOptions",
    "ExportType",
    "ReportTable",
    "build_export_filename",
    "generate_report",
    # session_filter
    "COMBINE_SELECTION",
    "SessionCriteria",
    "filter_sessions",
    "session_matches",
    # stock_health
    "StockStatus",
    "evaluate_stock_status",
    # team_performance
    "ImprovementTrend",
    "TeamPerformanceMetrics",
    "aggregate_team_performance",
    # tracer
    "traced_engine",
    # variance
    "DEFAULT_BANDS",
    "VarianceBands",
    "VarianceBreakdown",
    "VarianceCategory",
    "classify_variance",
]
