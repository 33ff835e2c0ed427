"""
inventory_engines.team_performance -- Per-team accuracy, cost and improvement trend over a rolling window.

Responsibility:
    Group completed count sessions inside the rolling window by team and
    compute per-session averages, totals and a 3-valued improvement trend.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  ``as_of`` is passed in;
    the engine never reads the clock.

Invariants enforced:
    - Window: completed sessions with as_of - window_days <= count_date
      <= as_of; voided sessions excluded unless configured.
    - Session accuracy comes from the session's counted lines; sessions
      without counted lines fall back to their header counters; with
      neither, accuracy is 100.
    - accuracy and completion_time are per-session means; variance_cost
      (absolute) and inventory_value are totals across sessions.
    - Trend compares the two most recent sessions picked by an explicit
      comparator: later count_date wins, equal dates go to the later
      created_at.  Delta > +threshold is up, < -threshold is down,
      otherwise stable.  Fewer than two sessions is stable.
    - Teams without completed sessions in the window are omitted.
      Sessions without a team are grouped under ``unassigned``.
"""

from __future__ import annotations

import heapq
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum

from inventory_engines.enrichment import EnhancedInventoryItem
from inventory_engines.metrics import (
    accuracy_rate,
    completion_hours,
    mean,
    summarize_lines,
)
from inventory_engines.parameters import DEFAULT_PARAMETERS, EngineParameters
from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.records import InventoryCount, Team
from inventory_kernel.logging_config import get_logger

logger = get_logger("engines.team_performance")

UNASSIGNED_TEAM_ID = "unassigned"

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


class ImprovementTrend(str, Enum):
    """Direction of a team's accuracy between its two latest sessions."""

    UP = "up"
    DOWN = "down"
    STABLE = "stable"


@dataclass(frozen=True)
class TeamPerformanceMetrics:
    """Rolling-window performance of one team."""

    team_id: str
    team_name: str
    accuracy: Decimal
    completion_time: Decimal
    count_completions: int
    variance_cost: Decimal
    inventory_value: Decimal
    improvement_trend: ImprovementTrend


def team_key(count: InventoryCount) -> str:
    return count.team_id or UNASSIGNED_TEAM_ID


def team_directory(teams: Iterable[Team] | Mapping[str, str]) -> dict[str, str]:
    """Normalize a team list or id -> name mapping into a dict."""
    if isinstance(teams, Mapping):
        return dict(teams)
    return {team.id: team.name for team in teams}


def team_display_name(
    team_id: str,
    directory: Mapping[str, str],
    unassigned_label: str = "Unassigned",
) -> str:
    if team_id == UNASSIGNED_TEAM_ID:
        return unassigned_label
    return directory.get(team_id) or f"Team {team_id}"


def session_recency_key(count: InventoryCount) -> tuple[date, datetime]:
    return (count.count_date, count.created_at)


def latest_two_sessions(sessions: Iterable[InventoryCount]) -> list[InventoryCount]:
    """The two most recent sessions, newest first."""
    return heapq.nlargest(2, sessions, key=session_recency_key)


def session_accuracy(
    count: InventoryCount,
    lines: Sequence[EnhancedInventoryItem],
) -> Decimal:
    """Accuracy of one session from its lines, else its header counters."""
    counted, _, accuracy = summarize_lines(lines)
    if counted:
        return accuracy
    if count.total_items_count > 0:
        return accuracy_rate(count.total_items_count, count.variance_count)
    return _HUNDRED


def improvement_trend(
    latest_accuracy: Decimal,
    previous_accuracy: Decimal,
    threshold_points: Decimal,
) -> ImprovementTrend:
    delta = latest_accuracy - previous_accuracy
    if delta > threshold_points:
        return ImprovementTrend.UP
    if delta < -threshold_points:
        return ImprovementTrend.DOWN
    return ImprovementTrend.STABLE


def sessions_in_window(
    counts: Iterable[InventoryCount],
    as_of: date,
    parameters: EngineParameters = DEFAULT_PARAMETERS,
) -> list[InventoryCount]:
    """Completed sessions inside the rolling window ending at ``as_of``."""
    window_start = as_of - timedelta(days=parameters.team_window_days)
    return [
        c for c in counts
        if c.is_completed
        and (parameters.include_voided_in_team_window or not c.is_voided)
        and window_start <= c.count_date <= as_of
    ]


def lines_by_session(
    enriched_items: Iterable[EnhancedInventoryItem],
) -> dict[str, list[EnhancedInventoryItem]]:
    grouped: dict[str, list[EnhancedInventoryItem]] = {}
    for line in enriched_items:
        grouped.setdefault(line.count_id, []).append(line)
    return grouped


@traced_engine("team_performance", "1.0", fingerprint_fields=("counts", "as_of"))
def aggregate_team_performance(
    *,
    counts: Sequence[InventoryCount],
    enriched_items: Sequence[EnhancedInventoryItem],
    teams: Iterable[Team] | Mapping[str, str] = (),
    as_of: date,
    parameters: EngineParameters = DEFAULT_PARAMETERS,
) -> list[TeamPerformanceMetrics]:
    """
    Per-team performance over the rolling window ending at ``as_of``.

    Returns:
        One entry per team with at least one completed session, ordered by
        accuracy descending then team id.
    """
    if isinstance(as_of, datetime):
        as_of = as_of.date()
    directory = team_directory(teams)
    window = sessions_in_window(counts, as_of, parameters)
    grouped_lines = lines_by_session(enriched_items)

    sessions_by_team: dict[str, list[InventoryCount]] = {}
    for count in window:
        sessions_by_team.setdefault(team_key(count), []).append(count)

    results: list[TeamPerformanceMetrics] = []
    for team_id, sessions in sessions_by_team.items():
        accuracy_by_session = {
            s.id: session_accuracy(s, grouped_lines.get(s.id, ())) for s in sessions
        }
        team_lines = [
            line for s in sessions for line in grouped_lines.get(s.id, ())
        ]

        latest = latest_two_sessions(sessions)
        trend = ImprovementTrend.STABLE
        if len(latest) == 2:
            trend = improvement_trend(
                accuracy_by_session[latest[0].id],
                accuracy_by_session[latest[1].id],
                parameters.trend_threshold_points,
            )

        results.append(TeamPerformanceMetrics(
            team_id=team_id,
            team_name=team_display_name(
                team_id, directory, parameters.unassigned_team_label
            ),
            accuracy=mean(list(accuracy_by_session.values())),
            completion_time=mean([completion_hours(s) for s in sessions]),
            count_completions=len(sessions),
            variance_cost=sum((e.absolute_variance_cost for e in team_lines), _ZERO),
            inventory_value=sum((e.total_actual_value for e in team_lines), _ZERO),
            improvement_trend=trend,
        ))

    results.sort(key=lambda t: (-t.accuracy, t.team_id))
    logger.info("team_performance_aggregated", extra={
        "as_of": as_of.isoformat(),
        "window_sessions": len(window),
        "team_count": len(results),
    })
    return results
