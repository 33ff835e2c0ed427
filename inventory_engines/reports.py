"""
inventory_engines.reports -- Header/row schemas for the five inventory export report types.

Responsibility:
    Render enriched count lines into a fixed header row and display-string
    rows for each report type, and build the export filename.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Writers in
    ``inventory_services.writers`` turn a ``ReportTable`` into CSV/XLSX.

Invariants enforced:
    - ``ExportType`` is a closed enum; ``REPORT_OPTION_EFFECTS`` lists the
      only options each type reads.  count_id, team_id and include_voided
      select sessions for every type.
    - detailed: headers are computed from the options before any row is
      built, so every row has exactly len(headers) cells.
    - exceptions: only requires-attention lines; the first matching rule
      of a fixed decision order names the issue.
    - financial-impact: rows sorted by |variance cost| descending (stable);
      the cumulative column of row n is the sum of rows 1..n, and the last
      row's cumulative equals the grand total.
    - Filename: inventory-{type}-export{-Team-<id>}-{yyyy-MM-dd}.csv.

Usage:
    from inventory_engines.reports import ExportOptions, ExportType, generate_report

    table = generate_report(
        options=ExportOptions(type=ExportType.FINANCIAL_IMPACT),
        enriched_items=enriched,
        sessions=sessions,
    )
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from inventory_engines.enrichment import EnhancedInventoryItem
from inventory_engines.formatting import (
    format_decimal,
    format_iso_date,
    format_money,
    format_percent,
    format_quantity,
    format_timestamp,
    format_us_date,
)
from inventory_engines.metrics import completion_hours, mean
from inventory_engines.parameters import DEFAULT_PARAMETERS, EngineParameters
from inventory_engines.session_filter import SessionCriteria
from inventory_engines.stock_health import StockStatus
from inventory_engines.tracer import traced_engine
from inventory_engines.variance import VarianceCategory
from inventory_kernel.domain.records import InventoryCount
from inventory_kernel.exceptions import UnknownExportTypeError
from inventory_kernel.logging_config import get_logger

logger = get_logger("engines.reports")

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


class ExportType(str, Enum):
    """Supported export report types."""

    DETAILED = "detailed"
    SUMMARY = "summary"
    EXCEPTIONS = "exceptions"
    TEAM_PERFORMANCE = "team-performance"
    FINANCIAL_IMPACT = "financial-impact"

    @classmethod
    def parse(cls, value: ExportType | str) -> ExportType:
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnknownExportTypeError(
                str(value), tuple(t.value for t in cls)
            ) from None


REPORT_OPTION_EFFECTS: dict[ExportType, frozenset[str]] = {
    ExportType.DETAILED: frozenset({"include_financials", "include_stock_analysis"}),
    ExportType.SUMMARY: frozenset({"variance_threshold"}),
    ExportType.EXCEPTIONS: frozenset(),
    ExportType.TEAM_PERFORMANCE: frozenset(),
    ExportType.FINANCIAL_IMPACT: frozenset(),
}


@dataclass(frozen=True)
class ExportOptions:
    """
    Closed configuration of one export.

    ``type`` accepts the enum or its string value; unknown strings raise
    UnknownExportTypeError.
    """

    type: ExportType
    count_id: str | None = None
    team_id: str | None = None
    variance_threshold: Decimal = DEFAULT_PARAMETERS.default_variance_threshold
    include_financials: bool = False
    include_stock_analysis: bool = False
    include_voided: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", ExportType.parse(self.type))
        if not isinstance(self.variance_threshold, Decimal):
            object.__setattr__(
                self, "variance_threshold", Decimal(str(self.variance_threshold))
            )

    def session_criteria(self) -> SessionCriteria:
        """Session selection shared with the other analytics views."""
        return SessionCriteria(
            target_date=None,
            team_id=self.team_id,
            include_voided=self.include_voided,
            selection=frozenset({self.count_id}) if self.count_id else frozenset(),
        )

    def affects(self, option_name: str) -> bool:
        return option_name in REPORT_OPTION_EFFECTS[self.type]


@dataclass(frozen=True)
class ReportTable:
    """Header row plus aligned display-string rows."""

    headers: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]


# ---------------------------------------------------------------------------
# detailed
# ---------------------------------------------------------------------------

DETAILED_BASE_HEADERS = (
    "Item Name",
    "SKU",
    "Category",
    "Location",
    "Unit of Measure",
    "Pre-Count Stock",
    "Actual Count",
    "Variance Qty",
    "Variance %",
    "Count Date",
    "Counted By",
    "Notes",
)
DETAILED_FINANCIAL_HEADERS = (
    "Unit Cost",
    "Pre-Count Value",
    "Actual Value",
    "Variance Cost",
    "Purchase Price",
)
DETAILED_STOCK_HEADERS = (
    "Min Threshold",
    "Max Threshold",
    "Stock Status",
    "Variance Category",
    "Requires Attention",
)


def detailed_headers(include_financials: bool, include_stock_analysis: bool) -> tuple[str, ...]:
    headers = DETAILED_BASE_HEADERS
    if include_financials:
        headers += DETAILED_FINANCIAL_HEADERS
    if include_stock_analysis:
        headers += DETAILED_STOCK_HEADERS
    return headers


def _detailed_row(
    line: EnhancedInventoryItem,
    include_financials: bool,
    include_stock_analysis: bool,
) -> tuple[str, ...]:
    item = line.item
    row = (
        item.name,
        item.sku or "N/A",
        line.category_name,
        item.location or "N/A",
        item.unit_of_measure or "units",
        format_quantity(line.pre_count_stock),
        format_quantity(line.actual_quantity),
        format_quantity(line.variance_quantity),
        format_percent(line.variance_percentage),
        format_timestamp(line.counted_at),
        line.count_item.counted_by or "Unknown",
        line.count_item.notes or "",
    )
    if include_financials:
        row += (
            format_money(line.unit_cost),
            format_money(line.total_pre_count_value),
            format_money(line.total_actual_value),
            format_money(line.variance_cost),
            format_money(item.purchase_price or _ZERO),
        )
    if include_stock_analysis:
        row += (
            format_quantity(line.minimum_threshold),
            format_quantity(line.maximum_threshold),
            line.stock_status.label,
            line.variance_category.label,
            "Yes" if line.requires_attention else "No",
        )
    return row


def generate_detailed(
    options: ExportOptions,
    lines: Sequence[EnhancedInventoryItem],
    sessions: Sequence[InventoryCount],
    parameters: EngineParameters,
) -> ReportTable:
    headers = detailed_headers(options.include_financials, options.include_stock_analysis)
    rows = tuple(
        _detailed_row(line, options.include_financials, options.include_stock_analysis)
        for line in lines
    )
    return ReportTable(headers=headers, rows=rows)


# ---------------------------------------------------------------------------
# summary
# ---------------------------------------------------------------------------

_BLANK_ROW = ("", "")


def generate_summary(
    options: ExportOptions,
    lines: Sequence[EnhancedInventoryItem],
    sessions: Sequence[InventoryCount],
    parameters: EngineParameters,
) -> ReportTable:
    bands = parameters.bands

    def band_count(category: VarianceCategory) -> str:
        return str(sum(1 for e in lines if e.variance_category is category))

    def status_count(status: StockStatus) -> str:
        return str(sum(1 for e in lines if e.stock_status is status))

    positive_cost = sum((e.variance_cost for e in lines if e.variance_cost > _ZERO), _ZERO)
    negative_cost = sum((-e.variance_cost for e in lines if e.variance_cost < _ZERO), _ZERO)
    threshold = options.variance_threshold
    above_threshold = sum(1 for e in lines if e.variance_percentage > threshold)
    count_dates = sorted({s.count_date for s in sessions})

    rows = (
        ("Total Items Counted", str(len(lines))),
        ("Total Pre-Count Value", format_money(sum((e.total_pre_count_value for e in lines), _ZERO))),
        ("Total Actual Value", format_money(sum((e.total_actual_value for e in lines), _ZERO))),
        ("Total Variance Cost", format_money(sum((e.absolute_variance_cost for e in lines), _ZERO))),
        ("Positive Variance Cost", format_money(positive_cost)),
        ("Negative Variance Cost", format_money(negative_cost)),
        _BLANK_ROW,
        ("Variance Analysis", ""),
        (f"Acceptable Variance (≤{format_quantity(bands.acceptable_max)}%)",
         band_count(VarianceCategory.ACCEPTABLE)),
        (f"Minor Variance ({format_quantity(bands.acceptable_max)}-{format_quantity(bands.minor_max)}%)",
         band_count(VarianceCategory.MINOR)),
        (f"Significant Variance ({format_quantity(bands.minor_max)}-{format_quantity(bands.significant_max)}%)",
         band_count(VarianceCategory.SIGNIFICANT)),
        (f"Critical Variance (>{format_quantity(bands.significant_max)}%)",
         band_count(VarianceCategory.CRITICAL)),
        (f"Items Above Variance Threshold ({format_quantity(threshold)}%)", str(above_threshold)),
        _BLANK_ROW,
        ("Stock Level Analysis", ""),
        ("Out of Stock Items", status_count(StockStatus.OUT)),
        ("Under Stock Items", status_count(StockStatus.LOW)),
        ("Over Stock Items", status_count(StockStatus.OVER)),
        ("Normal Stock Items", status_count(StockStatus.NORMAL)),
        _BLANK_ROW,
        ("Count Information", ""),
        ("Number of Counts", str(len(sessions))),
        ("Count Dates", ", ".join(format_us_date(d) for d in count_dates)),
    )
    return ReportTable(headers=("Metric", "Value"), rows=rows)


# ---------------------------------------------------------------------------
# exceptions
# ---------------------------------------------------------------------------

EXCEPTION_HEADERS = (
    "Item Name",
    "SKU",
    "Issue Type",
    "Pre-Count Stock",
    "Actual Count",
    "Variance",
    "Variance Cost",
    "Stock Status",
    "Action Required",
)


def classify_exception(
    line: EnhancedInventoryItem,
    parameters: EngineParameters = DEFAULT_PARAMETERS,
) -> tuple[str, str] | None:
    """(issue type, action) for the first matching rule, or None."""
    if line.variance_category is VarianceCategory.CRITICAL:
        return "Critical Variance", "Investigate count accuracy"
    if line.stock_status in (StockStatus.OUT, StockStatus.LOW):
        return "Critical Shortage", "Reorder immediately"
    if line.stock_status is StockStatus.OVER:
        return "Overstock", "Review ordering patterns"
    if line.absolute_variance_cost > parameters.attention_cost_threshold:
        return "High Financial Impact", "Verify count and investigate"
    return None


def generate_exceptions(
    options: ExportOptions,
    lines: Sequence[EnhancedInventoryItem],
    sessions: Sequence[InventoryCount],
    parameters: EngineParameters,
) -> ReportTable:
    rows = []
    for line in lines:
        if not line.requires_attention:
            continue
        issue = classify_exception(line, parameters)
        if issue is None:
            continue
        issue_type, action = issue
        rows.append((
            line.item.name,
            line.item.sku or "N/A",
            issue_type,
            format_quantity(line.pre_count_stock),
            format_quantity(line.actual_quantity),
            format_quantity(line.variance_quantity),
            format_money(line.variance_cost),
            line.stock_status.label,
            action,
        ))
    return ReportTable(headers=EXCEPTION_HEADERS, rows=tuple(rows))


# ---------------------------------------------------------------------------
# team-performance
# ---------------------------------------------------------------------------

TEAM_PERFORMANCE_HEADERS = (
    "Team ID",
    "Items Counted",
    "Accuracy Rate",
    "Avg Variance %",
    "Total Variance Cost",
    "Critical Items",
    "Count Completion Time",
    "Performance Rating",
)


def generate_team_performance(
    options: ExportOptions,
    lines: Sequence[EnhancedInventoryItem],
    sessions: Sequence[InventoryCount],
    parameters: EngineParameters,
) -> ReportTable:
    """
    One row per team that has lines.

    Accuracy here is the share of lines inside the acceptable band; the
    rating is derived from it.  Sessions without a team are not listed.
    """
    team_ids: list[str] = []
    for session in sessions:
        if session.team_id and session.team_id not in team_ids:
            team_ids.append(session.team_id)

    rows = []
    for team_id in team_ids:
        team_sessions = [s for s in sessions if s.team_id == team_id]
        session_ids = {s.id for s in team_sessions}
        team_lines = [e for e in lines if e.count_id in session_ids]
        if not team_lines:
            continue

        total = Decimal(len(team_lines))
        acceptable = sum(
            1 for e in team_lines if e.variance_category is VarianceCategory.ACCEPTABLE
        )
        accuracy = Decimal(acceptable) / total * _HUNDRED
        avg_variance = sum((e.variance_percentage for e in team_lines), _ZERO) / total
        completed = [s for s in team_sessions if s.is_completed]
        completion = (
            f"{format_decimal(mean([completion_hours(s) for s in completed]))}h"
            if completed else "N/A"
        )

        rows.append((
            team_id,
            str(len(team_lines)),
            format_percent(accuracy),
            format_percent(avg_variance),
            format_money(sum((e.absolute_variance_cost for e in team_lines), _ZERO)),
            str(sum(1 for e in team_lines if e.variance_category is VarianceCategory.CRITICAL)),
            completion,
            parameters.rating_for(accuracy),
        ))
    return ReportTable(headers=TEAM_PERFORMANCE_HEADERS, rows=tuple(rows))


# ---------------------------------------------------------------------------
# financial-impact
# ---------------------------------------------------------------------------

FINANCIAL_IMPACT_HEADERS = (
    "Item Name",
    "Category",
    "Pre-Count Value",
    "Actual Value",
    "Variance Cost",
    "Impact Level",
    "Cumulative Impact",
    "Percentage of Total",
)


@dataclass(frozen=True)
class ImpactEntry:
    """One line of the cumulative financial-impact ranking."""

    line: EnhancedInventoryItem
    absolute_cost: Decimal
    cumulative_cost: Decimal
    percentage_of_total: Decimal


def rank_financial_impact(lines: Sequence[EnhancedInventoryItem]) -> list[ImpactEntry]:
    """
    Sort by |variance cost| descending and accumulate in one pass.

    Ties keep their input order.  Percentages are 0 when the grand total
    is 0.
    """
    ordered = sorted(lines, key=lambda e: e.absolute_variance_cost, reverse=True)
    grand_total = sum((e.absolute_variance_cost for e in ordered), _ZERO)
    cumulative = _ZERO
    entries = []
    for line in ordered:
        cost = line.absolute_variance_cost
        cumulative += cost
        share = cost / grand_total * _HUNDRED if grand_total > _ZERO else _ZERO
        entries.append(ImpactEntry(
            line=line,
            absolute_cost=cost,
            cumulative_cost=cumulative,
            percentage_of_total=share,
        ))
    return entries


def generate_financial_impact(
    options: ExportOptions,
    lines: Sequence[EnhancedInventoryItem],
    sessions: Sequence[InventoryCount],
    parameters: EngineParameters,
) -> ReportTable:
    rows = tuple(
        (
            entry.line.item.name,
            entry.line.category_name,
            format_money(entry.line.total_pre_count_value),
            format_money(entry.line.total_actual_value),
            format_money(entry.line.variance_cost),
            parameters.impact_level_for(entry.absolute_cost),
            format_money(entry.cumulative_cost),
            format_percent(entry.percentage_of_total),
        )
        for entry in rank_financial_impact(lines)
    )
    return ReportTable(headers=FINANCIAL_IMPACT_HEADERS, rows=rows)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

ReportGenerator = Callable[
    [ExportOptions, Sequence[EnhancedInventoryItem], Sequence[InventoryCount], EngineParameters],
    ReportTable,
]

REPORT_GENERATORS: dict[ExportType, ReportGenerator] = {
    ExportType.DETAILED: generate_detailed,
    ExportType.SUMMARY: generate_summary,
    ExportType.EXCEPTIONS: generate_exceptions,
    ExportType.TEAM_PERFORMANCE: generate_team_performance,
    ExportType.FINANCIAL_IMPACT: generate_financial_impact,
}


@traced_engine("reports", "1.0", fingerprint_fields=("options", "sessions"))
def generate_report(
    *,
    options: ExportOptions,
    enriched_items: Sequence[EnhancedInventoryItem],
    sessions: Sequence[InventoryCount],
    parameters: EngineParameters = DEFAULT_PARAMETERS,
) -> ReportTable:
    """Render the report selected by ``options.type``."""
    table = REPORT_GENERATORS[options.type](options, enriched_items, sessions, parameters)
    logger.info("report_generated", extra={
        "export_type": options.type.value,
        "column_count": len(table.headers),
        "row_count": len(table.rows),
    })
    return table


def build_export_filename(
    export_type: ExportType,
    team_id: str | None,
    on: date,
) -> str:
    """``inventory-{type}-export{-Team-<id>}-{yyyy-MM-dd}.csv``."""
    team_suffix = re.sub(r"\s+", "-", f"-Team-{team_id}") if team_id else ""
    return f"inventory-{export_type.value}-export{team_suffix}-{format_iso_date(on)}.csv"
