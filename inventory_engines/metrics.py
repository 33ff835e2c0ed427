"""
inventory_engines.metrics -- Scalar and bucketed metrics over enriched count lines.

Responsibility:
    Reduce a set of sessions and their enriched lines into accuracy,
    value, variance cost, completion time and stock-issue counts, plus the
    financial rollup used by the enhanced analytics view.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Only lines whose count_id belongs to one of the given sessions are
      aggregated, so session selection alone decides the scope.
    - accuracy_rate = (counted - variances) / counted * 100, and 100 when
      nothing was counted.  Zero qualifying sessions is a vacuously
      perfect day, not an error.
    - A variance is a counted line with |variance_quantity| > epsilon.
    - Stock issues and variances are tallied over counted lines only.
    - average_completion_time is the mean (updated_at - created_at) in
      hours over completed sessions; 0 when there are none.
    - total_variance_cost sums absolute costs so gains and losses never
      cancel out.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from inventory_engines.enrichment import EnhancedInventoryItem
from inventory_engines.stock_health import StockStatus
from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.records import InventoryCount
from inventory_kernel.logging_config import get_logger

logger = get_logger("engines.metrics")

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")
_SECONDS_PER_HOUR = Decimal("3600")


@dataclass(frozen=True)
class StockIssueCounts:
    """Counted lines outside their configured stock range."""

    low: int = 0
    over: int = 0
    out: int = 0

    @property
    def total(self) -> int:
        return self.low + self.over + self.out


@dataclass(frozen=True)
class CountMetrics:
    """Metrics over one selection of sessions."""

    session_count: int
    total_items: int
    counted_items: int
    total_variances: int
    total_value: Decimal
    total_variance_cost: Decimal
    accuracy_rate: Decimal
    average_completion_time: Decimal
    completion_percentage: Decimal
    stock_issues: StockIssueCounts


@dataclass(frozen=True)
class FinancialMetrics:
    """
    Financial rollup over counted lines.

    ``cost_savings`` sums the absolute cost of shortfalls (counted below
    pre-count stock); ``total_cost_impact`` is variance cost net of them.
    """

    total_inventory_value: Decimal
    total_variance_cost: Decimal
    cost_savings: Decimal
    average_item_value: Decimal
    most_expensive_variance: Decimal
    total_cost_impact: Decimal


def accuracy_rate(counted_items: int, variances: int) -> Decimal:
    """Share of counted lines without variance, in percent (100 when empty)."""
    if counted_items == 0:
        return _HUNDRED
    return Decimal(counted_items - variances) / Decimal(counted_items) * _HUNDRED


def completion_hours(count: InventoryCount) -> Decimal:
    """Hours between a session's creation and its last update."""
    finished = count.updated_at or count.created_at
    seconds = abs((finished - count.created_at).total_seconds())
    return Decimal(str(seconds)) / _SECONDS_PER_HOUR


def mean(values: Sequence[Decimal]) -> Decimal:
    """Arithmetic mean; 0 for an empty sequence."""
    if not values:
        return _ZERO
    return sum(values, _ZERO) / Decimal(len(values))


def average_completion_time(sessions: Iterable[InventoryCount]) -> Decimal:
    return mean([completion_hours(s) for s in sessions if s.is_completed])


def items_for_sessions(
    sessions: Iterable[InventoryCount],
    enriched_items: Iterable[EnhancedInventoryItem],
) -> list[EnhancedInventoryItem]:
    """Restrict enriched lines to the given sessions, preserving order."""
    session_ids = {s.id for s in sessions}
    return [e for e in enriched_items if e.count_id in session_ids]


def summarize_lines(lines: Sequence[EnhancedInventoryItem]) -> tuple[int, int, Decimal]:
    """(counted lines, variance lines, accuracy) for a group of lines."""
    counted = sum(1 for e in lines if e.is_counted)
    variances = sum(1 for e in lines if e.has_variance)
    return counted, variances, accuracy_rate(counted, variances)


def count_stock_issues(lines: Iterable[EnhancedInventoryItem]) -> StockIssueCounts:
    low = over = out = 0
    for line in lines:
        if not line.is_counted:
            continue
        if line.stock_status is StockStatus.LOW:
            low += 1
        elif line.stock_status is StockStatus.OVER:
            over += 1
        elif line.stock_status is StockStatus.OUT:
            out += 1
    return StockIssueCounts(low=low, over=over, out=out)


@traced_engine("metrics", "1.0", fingerprint_fields=("sessions",))
def aggregate_metrics(
    *,
    sessions: Sequence[InventoryCount],
    enriched_items: Sequence[EnhancedInventoryItem],
) -> CountMetrics:
    """
    Aggregate metrics for the given sessions.

    Returns:
        CountMetrics; all zeros with accuracy 100 when no session qualifies.
    """
    lines = items_for_sessions(sessions, enriched_items)
    counted, variances, accuracy = summarize_lines(lines)
    total_items = len(lines)
    completion = (
        Decimal(counted) / Decimal(total_items) * _HUNDRED if total_items else _ZERO
    )

    metrics = CountMetrics(
        session_count=len(sessions),
        total_items=total_items,
        counted_items=counted,
        total_variances=variances,
        total_value=sum((e.total_actual_value for e in lines), _ZERO),
        total_variance_cost=sum((e.absolute_variance_cost for e in lines), _ZERO),
        accuracy_rate=accuracy,
        average_completion_time=average_completion_time(sessions),
        completion_percentage=completion,
        stock_issues=count_stock_issues(lines),
    )
    logger.info("count_metrics_aggregated", extra={
        "session_count": metrics.session_count,
        "total_items": metrics.total_items,
        "counted_items": metrics.counted_items,
        "total_variances": metrics.total_variances,
        "accuracy_rate": str(metrics.accuracy_rate),
    })
    return metrics


def summarize_financials(lines: Iterable[EnhancedInventoryItem]) -> FinancialMetrics:
    """Financial rollup over the counted lines among ``lines``."""
    lines = [e for e in lines if e.is_counted]

    total_value = sum((e.total_actual_value for e in lines), _ZERO)
    total_variance_cost = sum((e.absolute_variance_cost for e in lines), _ZERO)
    cost_savings = sum(
        (e.absolute_variance_cost for e in lines if e.variance_quantity < _ZERO),
        _ZERO,
    )
    most_expensive = max((e.absolute_variance_cost for e in lines), default=_ZERO)
    average_item_value = total_value / Decimal(len(lines)) if lines else _ZERO

    return FinancialMetrics(
        total_inventory_value=total_value,
        total_variance_cost=total_variance_cost,
        cost_savings=cost_savings,
        average_item_value=average_item_value,
        most_expensive_variance=most_expensive,
        total_cost_impact=total_variance_cost - cost_savings,
    )


@traced_engine("financials", "1.0", fingerprint_fields=("sessions",))
def aggregate_financials(
    *,
    sessions: Sequence[InventoryCount],
    enriched_items: Sequence[EnhancedInventoryItem],
) -> FinancialMetrics:
    """Financial rollup over the counted lines of the given sessions."""
    return summarize_financials(items_for_sessions(sessions, enriched_items))
