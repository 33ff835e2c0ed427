"""
inventory_engines.charts -- Chart-shaped projections of one day or a trailing period.

Responsibility:
    Project enriched count lines into the categorical and time-series
    structures the dashboards plot: the daily category / variance / team
    breakdowns and the enhanced financial, team, category and monthly
    series.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  ``as_of`` is passed in.

Invariants enforced:
    - Every value is aggregated from supplied records; nothing is
      synthesized.  A session with no lines is marked ``insufficient_data``
      and a period without sessions or movements has ``has_data=False``
      with zero values.
    - Category breakdown sums counted quantity x unit cost per category.
    - Variance breakdown lists the top-N sessions by ``variance_count``
      (input order on ties) with each session's largest real line deltas.
    - Team series bucket teamless sessions under the unassigned label.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from inventory_engines.enrichment import EnhancedInventoryItem, resolve_unit_cost
from inventory_engines.metrics import summarize_financials, summarize_lines
from inventory_engines.parameters import DEFAULT_PARAMETERS, EngineParameters
from inventory_engines.team_performance import (
    TeamPerformanceMetrics,
    lines_by_session,
    team_directory,
    team_display_name,
    team_key,
)
from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.records import (
    InventoryCount,
    InventoryItem,
    InventoryTransaction,
    Team,
)

_ZERO = Decimal("0")


# ---------------------------------------------------------------------------
# Daily charts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CategoryBreakdownPoint:
    category: str
    value: Decimal
    item_count: int


@dataclass(frozen=True)
class VarianceDelta:
    """One real line delta of a session."""

    item_id: str
    item_name: str
    variance_quantity: Decimal
    variance_cost: Decimal


@dataclass(frozen=True)
class SessionVariancePoint:
    count_id: str
    team_id: str | None
    variance_count: int
    deltas: tuple[VarianceDelta, ...]
    insufficient_data: bool


@dataclass(frozen=True)
class TeamDailyPoint:
    team_id: str
    team_name: str
    session_count: int
    total_items: int
    counted_items: int
    accuracy: Decimal


@dataclass(frozen=True)
class DailyChartData:
    category_breakdown: tuple[CategoryBreakdownPoint, ...] = ()
    variance_breakdown: tuple[SessionVariancePoint, ...] = ()
    team_performance: tuple[TeamDailyPoint, ...] = ()


def category_breakdown(
    lines: Iterable[EnhancedInventoryItem],
) -> tuple[CategoryBreakdownPoint, ...]:
    """Counted value per category, largest first (ties by name)."""
    values: dict[str, Decimal] = {}
    counts: dict[str, int] = {}
    for line in lines:
        if not line.is_counted:
            continue
        category = line.category_name
        values[category] = values.get(category, _ZERO) + line.total_actual_value
        counts[category] = counts.get(category, 0) + 1
    ordered = sorted(values, key=lambda c: (-values[c], c))
    return tuple(
        CategoryBreakdownPoint(category=c, value=values[c], item_count=counts[c])
        for c in ordered
    )


def largest_deltas(
    lines: Iterable[EnhancedInventoryItem],
    limit: int,
) -> tuple[VarianceDelta, ...]:
    ranked = sorted(
        (line for line in lines if line.has_variance),
        key=lambda e: abs(e.variance_quantity),
        reverse=True,
    )
    return tuple(
        VarianceDelta(
            item_id=line.item_id,
            item_name=line.item.name,
            variance_quantity=line.variance_quantity,
            variance_cost=line.variance_cost,
        )
        for line in ranked[:limit]
    )


def variance_breakdown(
    sessions: Sequence[InventoryCount],
    enriched_items: Iterable[EnhancedInventoryItem],
    parameters: EngineParameters = DEFAULT_PARAMETERS,
) -> tuple[SessionVariancePoint, ...]:
    grouped = lines_by_session(enriched_items)
    top = sorted(sessions, key=lambda s: s.variance_count, reverse=True)
    points = []
    for session in top[:parameters.variance_breakdown_top_n]:
        lines = grouped.get(session.id, [])
        points.append(SessionVariancePoint(
            count_id=session.id,
            team_id=session.team_id,
            variance_count=session.variance_count,
            deltas=largest_deltas(lines, parameters.representative_deltas),
            insufficient_data=not lines,
        ))
    return tuple(points)


def team_daily_performance(
    sessions: Sequence[InventoryCount],
    enriched_items: Iterable[EnhancedInventoryItem],
    teams: Iterable[Team] | Mapping[str, str] = (),
    parameters: EngineParameters = DEFAULT_PARAMETERS,
) -> tuple[TeamDailyPoint, ...]:
    directory = team_directory(teams)
    grouped = lines_by_session(enriched_items)
    sessions_by_team: dict[str, list[InventoryCount]] = {}
    for session in sessions:
        sessions_by_team.setdefault(team_key(session), []).append(session)

    points = []
    for team_id, team_sessions in sessions_by_team.items():
        lines = [line for s in team_sessions for line in grouped.get(s.id, ())]
        counted, _, accuracy = summarize_lines(lines)
        points.append(TeamDailyPoint(
            team_id=team_id,
            team_name=team_display_name(
                team_id, directory, parameters.unassigned_team_label
            ),
            session_count=len(team_sessions),
            total_items=len(lines),
            counted_items=counted,
            accuracy=accuracy,
        ))
    return tuple(points)


@traced_engine("daily_charts", "1.0", fingerprint_fields=("sessions",))
def project_daily_charts(
    *,
    sessions: Sequence[InventoryCount],
    enriched_items: Sequence[EnhancedInventoryItem],
    teams: Iterable[Team] | Mapping[str, str] = (),
    parameters: EngineParameters = DEFAULT_PARAMETERS,
) -> DailyChartData:
    """Category, variance and team breakdowns for one day's sessions."""
    session_ids = {s.id for s in sessions}
    lines = [e for e in enriched_items if e.count_id in session_ids]
    return DailyChartData(
        category_breakdown=category_breakdown(lines),
        variance_breakdown=variance_breakdown(sessions, lines, parameters),
        team_performance=team_daily_performance(sessions, lines, teams, parameters),
    )


# ---------------------------------------------------------------------------
# Enhanced charts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FinancialTrendPoint:
    day: date
    label: str
    inventory_value: Decimal
    variance_cost: Decimal
    cost_savings: Decimal
    movement_value: Decimal
    has_data: bool


@dataclass(frozen=True)
class TeamComparisonPoint:
    team: str
    accuracy: Decimal
    variance_cost: Decimal
    inventory_value: Decimal
    completion_time: Decimal
    counts: int


@dataclass(frozen=True)
class CostAnalysisPoint:
    category: str
    total_value: Decimal
    variance_cost: Decimal
    accuracy: Decimal


@dataclass(frozen=True)
class MonthlyPerformancePoint:
    period_start: date
    month: str
    total_value: Decimal
    accuracy: Decimal
    team_count: int
    variance_cost: Decimal
    has_data: bool


@dataclass(frozen=True)
class EnhancedChartData:
    financial_trends: tuple[FinancialTrendPoint, ...] = ()
    team_comparison: tuple[TeamComparisonPoint, ...] = ()
    cost_analysis: tuple[CostAnalysisPoint, ...] = ()
    monthly_performance: tuple[MonthlyPerformancePoint, ...] = ()


def month_start(value: date, months_back: int = 0) -> date:
    """First day of the month ``months_back`` calendar months before ``value``."""
    index = value.year * 12 + (value.month - 1) - months_back
    return date(index // 12, index % 12 + 1, 1)


def movement_value(
    transaction: InventoryTransaction,
    items_by_id: Mapping[str, InventoryItem],
    parameters: EngineParameters = DEFAULT_PARAMETERS,
) -> Decimal:
    """|quantity| x cost, the transaction's own cost winning over the item's."""
    cost = transaction.unit_cost
    if cost is None:
        item = items_by_id.get(transaction.item_id)
        cost = (
            resolve_unit_cost(item, parameters.fallback_unit_cost)
            if item is not None
            else parameters.fallback_unit_cost
        )
    return abs(transaction.quantity) * cost


def financial_trends(
    sessions: Sequence[InventoryCount],
    grouped_lines: Mapping[str, Sequence[EnhancedInventoryItem]],
    transactions: Iterable[InventoryTransaction],
    items_by_id: Mapping[str, InventoryItem],
    as_of: date,
    parameters: EngineParameters = DEFAULT_PARAMETERS,
) -> tuple[FinancialTrendPoint, ...]:
    days = [
        as_of - timedelta(days=offset)
        for offset in range(parameters.financial_trend_days - 1, -1, -1)
    ]
    movements: dict[date, Decimal] = {}
    moved_days: set[date] = set()
    for transaction in transactions:
        day = transaction.created_at.date()
        movements[day] = movements.get(day, _ZERO) + movement_value(
            transaction, items_by_id, parameters
        )
        moved_days.add(day)

    points = []
    for day in days:
        day_sessions = [s for s in sessions if s.count_date == day]
        lines = [line for s in day_sessions for line in grouped_lines.get(s.id, ())]
        financials = summarize_financials(lines)
        points.append(FinancialTrendPoint(
            day=day,
            label=day.strftime("%b %d"),
            inventory_value=financials.total_inventory_value,
            variance_cost=financials.total_variance_cost,
            cost_savings=financials.cost_savings,
            movement_value=movements.get(day, _ZERO),
            has_data=bool(day_sessions) or day in moved_days,
        ))
    return tuple(points)


def team_comparison(
    team_performance: Sequence[TeamPerformanceMetrics],
    limit: int,
) -> tuple[TeamComparisonPoint, ...]:
    return tuple(
        TeamComparisonPoint(
            team=team.team_name,
            accuracy=team.accuracy,
            variance_cost=team.variance_cost,
            inventory_value=team.inventory_value,
            completion_time=team.completion_time,
            counts=team.count_completions,
        )
        for team in team_performance[:limit]
    )


def cost_analysis(lines: Iterable[EnhancedInventoryItem]) -> tuple[CostAnalysisPoint, ...]:
    """Value, absolute variance cost and accuracy per item category."""
    by_category: dict[str, list[EnhancedInventoryItem]] = {}
    for line in lines:
        by_category.setdefault(line.category_name, []).append(line)

    points = []
    for category, category_lines in by_category.items():
        counted = [e for e in category_lines if e.is_counted]
        _, _, accuracy = summarize_lines(category_lines)
        points.append(CostAnalysisPoint(
            category=category,
            total_value=sum((e.total_actual_value for e in counted), _ZERO),
            variance_cost=sum((e.absolute_variance_cost for e in counted), _ZERO),
            accuracy=accuracy,
        ))
    points.sort(key=lambda p: (-p.total_value, p.category))
    return tuple(points)


def monthly_performance(
    sessions: Sequence[InventoryCount],
    grouped_lines: Mapping[str, Sequence[EnhancedInventoryItem]],
    as_of: date,
    parameters: EngineParameters = DEFAULT_PARAMETERS,
) -> tuple[MonthlyPerformancePoint, ...]:
    """One point per calendar month, oldest first, ending with ``as_of``'s month."""
    points = []
    for months_back in range(parameters.monthly_periods - 1, -1, -1):
        start = month_start(as_of, months_back)
        month_sessions = [s for s in sessions if month_start(s.count_date) == start]
        lines = [line for s in month_sessions for line in grouped_lines.get(s.id, ())]
        counted = [e for e in lines if e.is_counted]
        _, _, accuracy = summarize_lines(lines)
        has_data = bool(month_sessions)
        points.append(MonthlyPerformancePoint(
            period_start=start,
            month=start.strftime("%b %Y"),
            total_value=sum((e.total_actual_value for e in counted), _ZERO),
            accuracy=accuracy if has_data else _ZERO,
            team_count=len({team_key(s) for s in month_sessions}),
            variance_cost=sum((e.absolute_variance_cost for e in counted), _ZERO),
            has_data=has_data,
        ))
    return tuple(points)


@traced_engine("enhanced_charts", "1.0", fingerprint_fields=("sessions", "as_of"))
def project_enhanced_charts(
    *,
    sessions: Sequence[InventoryCount],
    enriched_items: Sequence[EnhancedInventoryItem],
    transactions: Iterable[InventoryTransaction] = (),
    items_by_id: Mapping[str, InventoryItem] | None = None,
    team_performance: Sequence[TeamPerformanceMetrics] = (),
    as_of: date,
    parameters: EngineParameters = DEFAULT_PARAMETERS,
) -> EnhancedChartData:
    """Financial, team, category and monthly series for the enhanced view."""
    grouped = lines_by_session(enriched_items)
    session_ids = {s.id for s in sessions}
    lines = [e for e in enriched_items if e.count_id in session_ids]
    return EnhancedChartData(
        financial_trends=financial_trends(
            sessions, grouped, transactions, items_by_id or {}, as_of, parameters
        ),
        team_comparison=team_comparison(
            team_performance, parameters.team_comparison_limit
        ),
        cost_analysis=cost_analysis(lines),
        monthly_performance=monthly_performance(sessions, grouped, as_of, parameters),
    )
