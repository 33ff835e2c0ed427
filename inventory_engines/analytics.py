"""
inventory_engines.analytics -- The three analysis operations exposed to callers.

Responsibility:
    Compose session selection, enrichment, aggregation, chart projection
    and report generation into the daily view, the enhanced (trailing
    period) view and the export pipeline.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Callers (see
    ``inventory_services.analytics_service``) fetch the raw snapshot once
    and pass it in together with the reference time.

Invariants enforced:
    - Session selection goes through ``session_filter`` for every view,
      so metrics, item listings, charts and exports agree.
    - The item master is indexed once per call and shared by every
      downstream aggregation of that call.
    - ``counted_only`` narrows the daily item listing, never the metrics.
    - Empty inputs produce zero-valued results with accuracy 100.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from inventory_engines.charts import (
    DailyChartData,
    EnhancedChartData,
    month_start,
    project_daily_charts,
    project_enhanced_charts,
)
from inventory_engines.comparisons import CountComparison, compare_recent_counts
from inventory_engines.enrichment import (
    EnhancedInventoryItem,
    enrich_count_items,
    index_items,
)
from inventory_engines.formatting import format_iso_date
from inventory_engines.metrics import (
    CountMetrics,
    FinancialMetrics,
    aggregate_financials,
    aggregate_metrics,
    average_completion_time,
    items_for_sessions,
    summarize_lines,
)
from inventory_engines.parameters import DEFAULT_PARAMETERS, EngineParameters
from inventory_engines.reports import (
    ExportOptions,
    ExportType,
    build_export_filename,
    generate_report,
)
from inventory_engines.session_filter import SessionCriteria, filter_sessions
from inventory_engines.team_performance import (
    ImprovementTrend,
    TeamPerformanceMetrics,
    aggregate_team_performance,
    improvement_trend,
    sessions_in_window,
)
from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.records import (
    InventoryCount,
    InventoryCountItem,
    InventoryItem,
    InventoryTransaction,
    Team,
)
from inventory_kernel.logging_config import get_logger

logger = get_logger("engines.analytics")

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")

MULTIPLE_DATES = "Multiple Dates"
ALL_TEAMS = "All Teams"


@dataclass(frozen=True)
class DailyAnalytics:
    metrics: CountMetrics
    chart_data: DailyChartData
    items_data: tuple[EnhancedInventoryItem, ...]
    sessions: tuple[InventoryCount, ...] = ()


@dataclass(frozen=True)
class EnhancedMetrics:
    """Trailing-window metrics of the enhanced view."""

    accuracy_rate: Decimal
    average_completion_time: Decimal
    total_variances: int
    trend_direction: ImprovementTrend
    monthly_comparison: Decimal
    financial: FinancialMetrics
    team_performance: tuple[TeamPerformanceMetrics, ...]
    recent_comparisons: tuple[CountComparison, ...]


@dataclass(frozen=True)
class EnhancedAnalytics:
    metrics: EnhancedMetrics
    chart_data: EnhancedChartData


@dataclass(frozen=True)
class ExportMetadata:
    export_type: ExportType
    count_date: str
    team_name: str
    total_items: int
    total_variance_cost: Decimal
    critical_items: int
    generated_at: str


@dataclass(frozen=True)
class ExportData:
    """A rendered export: filename, header row, aligned rows, metadata."""

    filename: str
    headers: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]
    metadata: ExportMetadata


def _lines_of(
    sessions: Iterable[InventoryCount],
    count_items: Iterable[InventoryCountItem],
) -> list[InventoryCountItem]:
    session_ids = {s.id for s in sessions}
    return [line for line in count_items if line.count_id in session_ids]


def compute_daily_metrics(
    counts: Sequence[InventoryCount],
    count_items: Sequence[InventoryCountItem],
    items: Iterable[InventoryItem] | Mapping[str, InventoryItem],
    *,
    target_date: date,
    team_id: str | None = None,
    session_selection: Iterable[str] | None = None,
    include_voided: bool = False,
    counted_only: bool = False,
    teams: Iterable[Team] | Mapping[str, str] = (),
    parameters: EngineParameters = DEFAULT_PARAMETERS,
) -> DailyAnalytics:
    """
    Metrics, chart data and the item listing for one calendar day.

    Args:
        counts: Candidate sessions (typically one date range from the store).
        count_items: Lines of those sessions.
        items: Item master snapshot.
        target_date: Day to analyse.
        team_id: Restrict to one team.
        session_selection: Explicit session ids; empty or ``COMBINE`` means all.
        include_voided: Keep voided sessions.
        counted_only: Drop uncounted lines from ``items_data`` only.
    """
    criteria = SessionCriteria(
        target_date=target_date,
        team_id=team_id,
        include_voided=include_voided,
        selection=frozenset(session_selection or ()),
    )
    sessions = filter_sessions(counts, criteria)
    enriched = enrich_count_items(
        count_items=_lines_of(sessions, count_items),
        items=index_items(items),
        counts=sessions,
        parameters=parameters,
    )
    metrics = aggregate_metrics(sessions=sessions, enriched_items=enriched)
    chart_data = project_daily_charts(
        sessions=sessions,
        enriched_items=enriched,
        teams=teams,
        parameters=parameters,
    )
    items_data = tuple(e for e in enriched if e.is_counted or not counted_only)

    logger.info("daily_metrics_computed", extra={
        "target_date": criteria.target_date.isoformat(),
        "team_id": team_id,
        "session_count": len(sessions),
        "listed_items": len(items_data),
    })
    return DailyAnalytics(
        metrics=metrics,
        chart_data=chart_data,
        items_data=items_data,
        sessions=tuple(sessions),
    )


def monthly_session_change(
    sessions: Iterable[InventoryCount],
    as_of: date,
) -> Decimal:
    """
    Percent change of this month's session count against last month's.

    Only sessions up to ``as_of`` are counted in the current month; 0 when
    last month had no sessions.
    """
    this_month = month_start(as_of)
    last_month = month_start(as_of, 1)
    current = previous = 0
    for session in sessions:
        started = month_start(session.count_date)
        if started == this_month and session.count_date <= as_of:
            current += 1
        elif started == last_month:
            previous += 1
    if previous == 0:
        return _ZERO
    return Decimal(current - previous) / Decimal(previous) * _HUNDRED


def compute_enhanced_analytics(
    counts: Sequence[InventoryCount],
    count_items: Sequence[InventoryCountItem],
    items: Iterable[InventoryItem] | Mapping[str, InventoryItem],
    transactions: Iterable[InventoryTransaction] = (),
    teams: Iterable[Team] | Mapping[str, str] = (),
    *,
    as_of: date | datetime,
    parameters: EngineParameters = DEFAULT_PARAMETERS,
) -> EnhancedAnalytics:
    """
    Trailing-window analytics with financial, team and comparison views.

    The rolling window (``team_window_days``) bounds accuracy, completion
    time, variances and the financial rollup.  Monthly series and recent
    comparisons use every completed, non-voided session supplied.
    """
    if isinstance(as_of, datetime):
        as_of = as_of.date()
    items_by_id = index_items(items)
    active = [c for c in counts if not c.is_voided]
    completed = [c for c in active if c.is_completed]
    enriched = enrich_count_items(
        count_items=_lines_of(counts, count_items),
        items=items_by_id,
        counts=counts,
        parameters=parameters,
    )

    window = sessions_in_window(counts, as_of, parameters)
    _, total_variances, accuracy = summarize_lines(items_for_sessions(window, enriched))
    monthly_comparison = monthly_session_change(active, as_of)
    team_performance = aggregate_team_performance(
        counts=counts,
        enriched_items=enriched,
        teams=teams,
        as_of=as_of,
        parameters=parameters,
    )

    metrics = EnhancedMetrics(
        accuracy_rate=accuracy,
        average_completion_time=average_completion_time(window),
        total_variances=total_variances,
        trend_direction=improvement_trend(
            monthly_comparison, _ZERO, parameters.month_trend_threshold_percent
        ),
        monthly_comparison=monthly_comparison,
        financial=aggregate_financials(sessions=window, enriched_items=enriched),
        team_performance=tuple(team_performance),
        recent_comparisons=tuple(compare_recent_counts(
            counts=completed,
            enriched_items=enriched,
            limit=parameters.recent_comparisons_limit,
        )),
    )
    chart_data = project_enhanced_charts(
        sessions=completed,
        enriched_items=enriched,
        transactions=transactions,
        items_by_id=items_by_id,
        team_performance=team_performance,
        as_of=as_of,
        parameters=parameters,
    )

    logger.info("enhanced_analytics_computed", extra={
        "as_of": as_of.isoformat(),
        "window_sessions": len(window),
        "team_count": len(team_performance),
        "trend_direction": metrics.trend_direction.value,
    })
    return EnhancedAnalytics(metrics=metrics, chart_data=chart_data)


def export_count_date(sessions: Sequence[InventoryCount]) -> str:
    dates = {s.count_date for s in sessions}
    if not dates:
        return "N/A"
    if len(dates) > 1:
        return MULTIPLE_DATES
    return format_iso_date(dates.pop())


def export_team_name(team_id: str | None) -> str:
    return f"Team {team_id}" if team_id else ALL_TEAMS


@traced_engine("export", "1.0", fingerprint_fields=("counts", "options", "generated_at"))
def generate_export(
    *,
    counts: Sequence[InventoryCount],
    count_items: Sequence[InventoryCountItem],
    items: Iterable[InventoryItem] | Mapping[str, InventoryItem],
    options: ExportOptions,
    generated_at: datetime,
    parameters: EngineParameters = DEFAULT_PARAMETERS,
) -> ExportData:
    """
    Render one export over the sessions selected by ``options``.

    Returns:
        ExportData whose rows all have ``len(headers)`` cells.

    Raises:
        UnknownExportTypeError: If ``options`` was built from an unknown
            type string.
    """
    sessions = filter_sessions(counts, options.session_criteria())
    enriched = enrich_count_items(
        count_items=_lines_of(sessions, count_items),
        items=index_items(items),
        counts=sessions,
        parameters=parameters,
    )
    table = generate_report(
        options=options,
        enriched_items=enriched,
        sessions=sessions,
        parameters=parameters,
    )
    metadata = ExportMetadata(
        export_type=options.type,
        count_date=export_count_date(sessions),
        team_name=export_team_name(options.team_id),
        total_items=len(enriched),
        total_variance_cost=sum((e.absolute_variance_cost for e in enriched), _ZERO),
        critical_items=sum(1 for e in enriched if e.requires_attention),
        generated_at=generated_at.strftime("%Y-%m-%d %H:%M:%S"),
    )
    filename = build_export_filename(options.type, options.team_id, generated_at.date())

    logger.info("export_generated", extra={
        "export_type": options.type.value,
        "export_filename": filename,
        "session_count": len(sessions),
        "row_count": len(table.rows),
    })
    return ExportData(
        filename=filename,
        headers=table.headers,
        rows=table.rows,
        metadata=metadata,
    )
