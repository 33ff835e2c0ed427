"""
Tests for InventoryAnalyticsService -- fetch-once orchestration over a store.

Covers:
- daily_metrics(): clock-supplied default date, team scoping, per-call
  request context bound on log records
- enhanced_analytics(): fetch range and transactions
- export() / render_export(): default range, csv and xlsx, unknown format
- Store failures logged and re-raised unchanged
- from_config(): thresholds loaded through get_active_config()
- InMemoryInventoryStore organization isolation and row parsing
"""

from datetime import date, datetime
from decimal import Decimal

import pytest
import yaml

from inventory_engines.parameters import DEFAULT_PARAMETERS
from inventory_engines.reports import ExportOptions, ExportType
from inventory_kernel.domain.records import InventoryTransaction
from inventory_kernel.exceptions import (
    InvalidDateRangeError,
    InvalidRecordError,
    UnknownExportTypeError,
)
from inventory_kernel.logging_config import LogContext
from inventory_services import (
    DateRange,
    InMemoryInventoryStore,
    InventoryAnalyticsService,
)

ORG = "org-1"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FailingStore(InMemoryInventoryStore):
    """Store whose item master query always fails."""

    def list_items(self, organization_id):
        raise ConnectionError("store unavailable")


class RecordingStore(InMemoryInventoryStore):
    """Store that records the ranges it was queried with."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.count_ranges = []
        self.transaction_ranges = []

    def list_counts(self, date_range, team_id=None):
        self.count_ranges.append(date_range)
        return super().list_counts(date_range, team_id)

    def list_transactions(self, organization_id, date_range):
        self.transaction_ranges.append(date_range)
        return super().list_transactions(organization_id, date_range)


@pytest.fixture
def store(counts, count_items, items, teams):
    return RecordingStore(
        ORG,
        counts=counts,
        count_items=count_items,
        items=items,
        teams=teams,
        transactions=[
            InventoryTransaction(
                id="txn-1",
                item_id="item-widget",
                transaction_type="outgoing",
                quantity=Decimal("-3"),
                created_at=datetime(2024, 3, 2, 12, 0),
            ),
        ],
    )


@pytest.fixture
def service(store, clock):
    return InventoryAnalyticsService(store, ORG, clock=clock)


# ---------------------------------------------------------------------------
# daily_metrics
# ---------------------------------------------------------------------------


class TestDailyMetrics:
    def test_defaults_to_clock_date(self, service, store):
        result = service.daily_metrics()

        assert store.count_ranges == [DateRange.single_day(date(2024, 3, 4))]
        assert result.metrics.session_count == 2
        assert result.metrics.accuracy_rate == Decimal("50")

    def test_team_scope(self, service):
        result = service.daily_metrics(date(2024, 3, 4), team_id="team-a")

        assert [s.id for s in result.sessions] == ["count-a"]
        assert result.metrics.accuracy_rate == Decimal("0")

    def test_request_context_on_logs(self, service, captured_logs):
        service.daily_metrics(date(2024, 3, 4), team_id="team-b")

        fetched = next(r for r in captured_logs() if r["message"] == "inventory_snapshot_fetched")
        assert fetched["organization_id"] == ORG
        assert fetched["team_id"] == "team-b"
        assert fetched["count_rows"] == 1
        assert len(fetched["request_id"]) == 32

    def test_each_call_gets_its_own_request_id(self, service, captured_logs):
        service.daily_metrics(date(2024, 3, 4))
        service.daily_metrics(date(2024, 3, 4))

        request_ids = [
            r["request_id"] for r in captured_logs() if r["message"] == "inventory_snapshot_fetched"
        ]
        assert len(set(request_ids)) == 2
        assert LogContext.get_all() == {}

    def test_other_organization_sees_no_items(self, store, clock):
        service = InventoryAnalyticsService(store, "org-other", clock=clock)

        result = service.daily_metrics(date(2024, 3, 4))

        assert all(e.is_placeholder for e in result.items_data)


# ---------------------------------------------------------------------------
# enhanced_analytics
# ---------------------------------------------------------------------------


class TestEnhancedAnalytics:
    def test_fetch_ranges(self, service, store):
        service.enhanced_analytics()

        assert store.count_ranges == [DateRange(date(2023, 10, 1), date(2024, 3, 4))]
        assert store.transaction_ranges == [DateRange(date(2024, 2, 20), date(2024, 3, 4))]

    def test_transactions_reach_financial_trends(self, service):
        result = service.enhanced_analytics(date(2024, 3, 4))

        day = next(p for p in result.chart_data.financial_trends if p.day == date(2024, 3, 2))
        assert day.has_data is True
        assert day.movement_value == Decimal("30")

    def test_team_series(self, service):
        result = service.enhanced_analytics()

        assert [t.team_name for t in result.metrics.team_performance] == ["Bravo", "Alpha"]


# ---------------------------------------------------------------------------
# export / render_export
# ---------------------------------------------------------------------------


class TestExport:
    def test_default_range_is_team_window(self, service, store):
        export = service.export(ExportOptions(type=ExportType.DETAILED))

        assert store.count_ranges == [DateRange(date(2024, 2, 3), date(2024, 3, 4))]
        assert export.metadata.generated_at == "2024-03-04 18:00:00"
        assert len(export.rows) == 3

    def test_render_csv(self, service):
        filename, content = service.render_export(ExportOptions(type=ExportType.SUMMARY))

        assert filename == "inventory-summary-export-2024-03-04.csv"
        assert content.startswith("Metric,Value")

    def test_render_xlsx(self, service):
        filename, content = service.render_export(
            ExportOptions(type=ExportType.EXCEPTIONS, team_id="team-a"), fmt="xlsx"
        )

        assert filename == "inventory-exceptions-export-Team-team-a-2024-03-04.xlsx"
        assert content[:2] == b"PK"

    def test_unknown_format(self, service, store):
        with pytest.raises(UnknownExportTypeError) as exc_info:
            service.render_export(ExportOptions(type=ExportType.DETAILED), fmt="pdf")

        assert exc_info.value.export_type == "pdf"
        assert store.count_ranges == []


# ---------------------------------------------------------------------------
# Store failures
# ---------------------------------------------------------------------------


class TestStoreFailures:
    def test_error_logged_and_reraised(self, counts, items, clock, captured_logs):
        service = InventoryAnalyticsService(
            FailingStore(ORG, counts=counts, items=items), ORG, clock=clock
        )

        with pytest.raises(ConnectionError, match="store unavailable"):
            service.daily_metrics(date(2024, 3, 4))

        failure = next(r for r in captured_logs() if r["message"] == "store_fetch_failed")
        assert failure["level"] == "ERROR"
        assert failure["operation"] == "list_items"
        assert failure["exc_type"] == "ConnectionError"


# ---------------------------------------------------------------------------
# from_config
# ---------------------------------------------------------------------------


class TestFromConfig:
    def test_shipped_defaults(self, store, clock, captured_logs):
        service = InventoryAnalyticsService.from_config(store, ORG, clock=clock)

        assert service.parameters == DEFAULT_PARAMETERS
        assert any(r["message"] == "INVENTORY_CONFIG_TRACE" for r in captured_logs())

    def test_override_file_reaches_engines(self, store, clock, tmp_path):
        path = tmp_path / "analytics.yaml"
        path.write_text(yaml.safe_dump({
            "config_id": "strict",
            "version": 3,
            "attention": {"cost_threshold": 5},
        }))
        service = InventoryAnalyticsService.from_config(store, ORG, config_path=path, clock=clock)

        result = service.daily_metrics(date(2024, 3, 4))

        assert service.parameters.attention_cost_threshold == Decimal("5")
        assert result.metrics.session_count == 2


# ---------------------------------------------------------------------------
# InMemoryInventoryStore
# ---------------------------------------------------------------------------


class TestInMemoryStore:
    def test_from_rows(self):
        store = InMemoryInventoryStore.from_rows(
            ORG,
            counts=[{
                "id": "c1",
                "count_date": "2024-03-04",
                "created_at": "2024-03-04T08:00:00",
                "status": "completed",
                "team_id": "t1",
            }],
            count_items=[{"count_id": "c1", "item_id": "i1", "actual_quantity": "5"}],
            items=[{"id": "i1", "name": "Nut", "unit_cost": "0.25"}],
            teams=[{"id": "t1", "name": "North"}],
        )

        assert [c.id for c in store.list_counts(DateRange.single_day(date(2024, 3, 4)))] == ["c1"]
        assert store.list_count_items("c1")[0].actual_quantity == Decimal("5")
        assert store.list_items(ORG)[0].unit_cost == Decimal("0.25")
        assert store.list_teams("elsewhere") == []

    def test_malformed_row(self):
        with pytest.raises(InvalidRecordError):
            InMemoryInventoryStore.from_rows(ORG, items=[{"name": "no id"}])

    def test_date_range_rejects_inverted_bounds(self):
        with pytest.raises(InvalidDateRangeError) as exc_info:
            DateRange(date(2024, 3, 5), date(2024, 3, 4))

        assert exc_info.value.code == "INVALID_DATE_RANGE"
        assert exc_info.value.start == date(2024, 3, 5)

    def test_trailing_range(self):
        assert DateRange.trailing(date(2024, 3, 4), 3) == DateRange(date(2024, 3, 2), date(2024, 3, 4))
