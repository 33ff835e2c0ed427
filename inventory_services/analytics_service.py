"""
inventory_services.analytics_service -- Fetch-once orchestration of the inventory analytics engines.

Responsibility:
    Fetch one snapshot of sessions, lines, items, teams and transactions
    from an ``InventoryStore`` per request, supply the reference time from
    an injected clock, and hand the snapshot to the pure engines.  Renders
    exports to CSV or XLSX.

Architecture position:
    Services -- stateful orchestration over engines + store.
    Composes ``inventory_engines.analytics`` (pure) with the store
    protocol (I/O) and the writers.

Invariants enforced:
    - Every fetch for a request completes before any aggregation starts;
      the item master is fetched once per request.
    - Engines never read the clock; ``as_of`` / ``generated_at`` come from
      the injected ``Clock``.
    - Each call binds a fresh ``request_id`` plus the organization, team
      and count it covers on ``LogContext`` for its duration.

Failure modes:
    - Store errors are logged at ERROR with ``exc_info`` and re-raised
      unchanged.
    - ``UnknownExportTypeError`` for an unknown export type or format.

Usage:
    from inventory_services.analytics_service import InventoryAnalyticsService
    from inventory_services.store import InMemoryInventoryStore

    service = InventoryAnalyticsService.from_config(store, "org-1")
    daily = service.daily_metrics(date(2024, 3, 4), team_id="t1")
    filename, content = service.render_export(options, fmt="xlsx")
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import TypeVar
from uuid import uuid4

from inventory_config import get_active_config
from inventory_config.bridges import build_engine_parameters
from inventory_engines.analytics import (
    DailyAnalytics,
    EnhancedAnalytics,
    ExportData,
    compute_daily_metrics,
    compute_enhanced_analytics,
    generate_export,
)
from inventory_engines.charts import month_start
from inventory_engines.parameters import DEFAULT_PARAMETERS, EngineParameters
from inventory_engines.reports import ExportOptions
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.records import (
    InventoryCount,
    InventoryCountItem,
    InventoryItem,
    InventoryTransaction,
    Team,
)
from inventory_kernel.exceptions import UnknownExportTypeError
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_services.store import DateRange, InventoryStore
from inventory_services.writers import render_csv, render_xlsx

logger = get_logger("services.analytics")

T = TypeVar("T")

EXPORT_FORMATS: dict[str, Callable[[ExportData], str | bytes]] = {
    "csv": render_csv,
    "xlsx": render_xlsx,
}


@dataclass(frozen=True)
class InventorySnapshot:
    """Everything one analysis request reads from the store."""

    counts: tuple[InventoryCount, ...]
    count_items: tuple[InventoryCountItem, ...]
    items: tuple[InventoryItem, ...]
    teams: tuple[Team, ...]
    transactions: tuple[InventoryTransaction, ...] = ()


class InventoryAnalyticsService:
    """
    Analytics for one organization over an external inventory store.

    Contract:
        Each public method fetches a fresh snapshot, runs the engines on
        it and returns the engine result; nothing is cached between calls.

    Non-goals:
        - Does NOT write to the store.
        - Does NOT retry or time out store calls; that belongs to the
          store implementation.
    """

    def __init__(
        self,
        store: InventoryStore,
        organization_id: str,
        parameters: EngineParameters | None = None,
        clock: Clock | None = None,
    ):
        self.store = store
        self.organization_id = organization_id
        self.parameters = parameters or DEFAULT_PARAMETERS
        self.clock = clock or SystemClock()

    @classmethod
    def from_config(
        cls,
        store: InventoryStore,
        organization_id: str,
        config_path: Path | None = None,
        clock: Clock | None = None,
    ) -> InventoryAnalyticsService:
        """Build a service whose thresholds come from ``get_active_config()``."""
        config = get_active_config(config_path)
        return cls(
            store,
            organization_id,
            parameters=build_engine_parameters(config),
            clock=clock,
        )

    def _request_scope(self, team_id: str | None = None, count_id: str | None = None):
        return LogContext.bind(
            request_id=uuid4().hex,
            organization_id=self.organization_id,
            team_id=team_id,
            count_id=count_id,
        )

    # =========================================================================
    # Fetching
    # =========================================================================

    def _fetch(self, operation: str, call: Callable[[], Iterable[T]]) -> tuple[T, ...]:
        try:
            return tuple(call())
        except Exception:
            logger.error("store_fetch_failed", extra={
                "operation": operation,
            }, exc_info=True)
            raise

    def fetch_snapshot(
        self,
        date_range: DateRange,
        team_id: str | None = None,
        transaction_range: DateRange | None = None,
    ) -> InventorySnapshot:
        """Fetch sessions in ``date_range`` with their lines, items and teams."""
        counts = self._fetch(
            "list_counts", lambda: self.store.list_counts(date_range, team_id)
        )
        count_items: list[InventoryCountItem] = []
        for count in counts:
            count_items.extend(self._fetch(
                "list_count_items",
                lambda count_id=count.id: self.store.list_count_items(count_id),
            ))
        items = self._fetch(
            "list_items", lambda: self.store.list_items(self.organization_id)
        )
        teams = self._fetch(
            "list_teams", lambda: self.store.list_teams(self.organization_id)
        )
        transactions: tuple[InventoryTransaction, ...] = ()
        if transaction_range is not None:
            transactions = self._fetch(
                "list_transactions",
                lambda: self.store.list_transactions(
                    self.organization_id, transaction_range
                ),
            )

        logger.info("inventory_snapshot_fetched", extra={
            "range_start": date_range.start.isoformat(),
            "range_end": date_range.end.isoformat(),
            "count_rows": len(counts),
            "count_item_rows": len(count_items),
            "item_rows": len(items),
            "transaction_rows": len(transactions),
        })
        return InventorySnapshot(
            counts=counts,
            count_items=tuple(count_items),
            items=items,
            teams=teams,
            transactions=transactions,
        )

    def _today(self) -> date:
        return self.clock.now().date()

    # =========================================================================
    # Operations
    # =========================================================================

    def daily_metrics(
        self,
        target_date: date | None = None,
        team_id: str | None = None,
        session_selection: Sequence[str] | None = None,
        include_voided: bool = False,
        counted_only: bool = False,
    ) -> DailyAnalytics:
        """Daily metrics, charts and item listing (defaults to today)."""
        target_date = target_date or self._today()
        with self._request_scope(team_id=team_id):
            snapshot = self.fetch_snapshot(DateRange.single_day(target_date), team_id)
            return compute_daily_metrics(
                snapshot.counts,
                snapshot.count_items,
                snapshot.items,
                target_date=target_date,
                team_id=team_id,
                session_selection=session_selection,
                include_voided=include_voided,
                counted_only=counted_only,
                teams=snapshot.teams,
                parameters=self.parameters,
            )

    def enhanced_analytics(self, as_of: date | None = None) -> EnhancedAnalytics:
        """
        Trailing-period analytics ending at ``as_of`` (defaults to today).

        Sessions are fetched back to the start of the oldest monthly period
        or the team window, whichever reaches further.
        """
        as_of = as_of or self._today()
        p = self.parameters
        window = DateRange.trailing(as_of, p.team_window_days + 1)
        start = min(window.start, month_start(as_of, p.monthly_periods - 1))
        with self._request_scope():
            snapshot = self.fetch_snapshot(
                DateRange(start, as_of),
                transaction_range=DateRange.trailing(as_of, p.financial_trend_days),
            )
            return compute_enhanced_analytics(
                snapshot.counts,
                snapshot.count_items,
                snapshot.items,
                snapshot.transactions,
                snapshot.teams,
                as_of=as_of,
                parameters=p,
            )

    def export(
        self,
        options: ExportOptions,
        date_range: DateRange | None = None,
    ) -> ExportData:
        """
        Render an export over sessions in ``date_range``.

        Defaults to the team window ending today.
        """
        generated_at = self.clock.now()
        date_range = date_range or DateRange.trailing(
            generated_at.date(), self.parameters.team_window_days + 1
        )
        with self._request_scope(team_id=options.team_id, count_id=options.count_id):
            snapshot = self.fetch_snapshot(date_range, options.team_id)
            return generate_export(
                counts=snapshot.counts,
                count_items=snapshot.count_items,
                items=snapshot.items,
                options=options,
                generated_at=generated_at,
                parameters=self.parameters,
            )

    def render_export(
        self,
        options: ExportOptions,
        fmt: str = "csv",
        date_range: DateRange | None = None,
    ) -> tuple[str, str | bytes]:
        """
        Export and serialize in one call.

        Returns:
            (filename, content); content is text for csv, bytes for xlsx.
        """
        writer = EXPORT_FORMATS.get(fmt)
        if writer is None:
            raise UnknownExportTypeError(fmt, tuple(EXPORT_FORMATS))
        export = self.export(options, date_range)
        filename = export.filename
        if fmt != "csv":
            filename = filename.removesuffix(".csv") + f".{fmt}"
        content = writer(export)
        logger.info("export_rendered", extra={
            "export_format": fmt,
            "export_filename": filename,
            "row_count": len(export.rows),
        })
        return filename, content
