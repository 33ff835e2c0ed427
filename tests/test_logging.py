"""
Tests for structured logging (inventory_kernel/logging_config.py).

Covers:
- JSON envelope on the engine and service events
- Typed analytics errors expanded into exc_code / exc_<field>
- LogContext layering, restoration and field whitelist
- Decimal / enum / date payload encoding
- configure_logging() idempotence
"""

import logging
from datetime import date
from decimal import Decimal

import pytest

from inventory_engines.enrichment import enrich_count_items
from inventory_engines.variance import VarianceCategory
from inventory_kernel.domain.records import InventoryCountItem
from inventory_kernel.exceptions import InvalidBandsError, InvalidRecordError
from inventory_kernel.logging_config import (
    LogContext,
    configure_logging,
    get_logger,
    reset_logging,
)
from inventory_services import InMemoryInventoryStore, InventoryAnalyticsService


class CorruptItemStore(InMemoryInventoryStore):
    """Store whose item master holds a row that cannot be parsed."""

    def list_items(self, organization_id):
        raise InvalidRecordError("InventoryItem", "unit_cost", "is not a number")


def _by_message(records, message):
    return [r for r in records if r["message"] == message]


# ---------------------------------------------------------------------------
# Engine and service events
# ---------------------------------------------------------------------------


class TestEventRecords:
    def test_missing_item_reference_warning(self, captured_logs):
        line = InventoryCountItem(count_id="count-9", item_id="ghost-item", actual_quantity=Decimal("2"))

        enrich_count_items(count_items=[line], items=[])

        [warning] = _by_message(captured_logs(), "item_reference_missing")
        assert warning["level"] == "WARNING"
        assert warning["logger"] == "inventory_analytics.engines.enrichment"
        assert warning["count_id"] == "count-9"
        assert warning["item_id"] == "ghost-item"
        assert "ts" in warning

        [summary] = _by_message(captured_logs(), "count_items_enriched")
        assert summary["level"] == "INFO"
        assert summary["placeholder_count"] == 1

    def test_store_failure_carries_error_code(self, counts, clock, captured_logs):
        service = InventoryAnalyticsService(CorruptItemStore("org-1", counts=counts), "org-1", clock=clock)

        with pytest.raises(InvalidRecordError):
            service.daily_metrics(date(2024, 3, 4), team_id="team-a")

        [failure] = _by_message(captured_logs(), "store_fetch_failed")
        assert failure["level"] == "ERROR"
        assert failure["operation"] == "list_items"
        assert failure["exc_code"] == "INVALID_RECORD"
        assert failure["exc_record_type"] == "InventoryItem"
        assert failure["exc_field_name"] == "unit_cost"
        assert failure["organization_id"] == "org-1"
        assert failure["team_id"] == "team-a"
        assert "request_id" in failure
        assert "traceback" in failure

    def test_foreign_errors_have_no_code(self, captured_logs):
        try:
            raise ConnectionError("store unavailable")
        except ConnectionError:
            get_logger("services.analytics").error("store_fetch_failed", exc_info=True)

        [failure] = _by_message(captured_logs(), "store_fetch_failed")
        assert failure["exc_type"] == "ConnectionError"
        assert failure["exc_message"] == "store unavailable"
        assert "exc_code" not in failure

    def test_band_error_fields_are_strings(self, captured_logs):
        try:
            raise InvalidBandsError(Decimal("5"), Decimal("5"), Decimal("25"))
        except InvalidBandsError:
            get_logger("config").error("config_rejected", exc_info=True)

        [record] = _by_message(captured_logs(), "config_rejected")
        assert record["exc_code"] == "INVALID_BANDS"
        assert record["exc_setting"] == "variance.bands"
        assert record["exc_minor_max"] == "5"


class TestPayloadEncoding:
    def test_decimal_enum_and_date(self, captured_logs):
        get_logger("engines.variance").info("line_classified", extra={
            "variance_cost": Decimal("-12.50"),
            "variance_category": VarianceCategory.MINOR,
            "count_date": date(2024, 3, 4),
            "selection": frozenset({"count-b", "count-a"}),
        })

        [record] = _by_message(captured_logs(), "line_classified")
        assert record["variance_cost"] == "-12.50"
        assert record["variance_category"] == VarianceCategory.MINOR.value
        assert record["count_date"] == "2024-03-04"
        assert record["selection"] == ["count-a", "count-b"]


# ---------------------------------------------------------------------------
# LogContext
# ---------------------------------------------------------------------------


class TestLogContext:
    def test_bound_fields_reach_records(self, captured_logs):
        with LogContext.bind(organization_id="org-1", count_id="count-a"):
            get_logger("test").info("inside")
        get_logger("test").info("outside")

        inside, outside = _by_message(captured_logs(), "inside") + _by_message(captured_logs(), "outside")
        assert inside["organization_id"] == "org-1"
        assert inside["count_id"] == "count-a"
        assert "organization_id" not in outside

    def test_nested_bind_layers_and_restores(self):
        with LogContext.bind(request_id="r1", organization_id="org-1"):
            with LogContext.bind(team_id="team-a", organization_id=None):
                assert LogContext.get_all() == {
                    "request_id": "r1",
                    "organization_id": "org-1",
                    "team_id": "team-a",
                }
            assert LogContext.get_all() == {"request_id": "r1", "organization_id": "org-1"}
        assert LogContext.get_all() == {}

    def test_restored_after_exception(self):
        with pytest.raises(RuntimeError):
            with LogContext.bind(team_id="team-a"):
                raise RuntimeError("boom")

        assert LogContext.get_all() == {}

    def test_unknown_field_rejected(self):
        with pytest.raises(TypeError, match="actor_id"):
            with LogContext.bind(actor_id="someone"):
                pass

    def test_context_wins_over_extra(self, captured_logs):
        with LogContext.bind(count_id="count-a"):
            get_logger("test").info("collision", extra={"count_id": "count-b"})

        [record] = _by_message(captured_logs(), "collision")
        assert record["count_id"] == "count-a"

    def test_clear(self):
        with LogContext.bind(team_id="team-a"):
            LogContext.clear()
            assert LogContext.get_all() == {}


# ---------------------------------------------------------------------------
# configure_logging
# ---------------------------------------------------------------------------


@pytest.fixture
def fresh_logging():
    reset_logging()
    yield
    reset_logging()
    configure_logging(level=logging.DEBUG)


class TestConfigureLogging:
    def test_idempotent(self, fresh_logging):
        configure_logging(handler=logging.NullHandler())
        configure_logging(handler=logging.NullHandler())

        root = logging.getLogger("inventory_analytics")
        assert len(root.handlers) == 1
        assert root.propagate is False

    def test_level_applies_to_children(self, fresh_logging):
        configure_logging(handler=logging.NullHandler(), level=logging.WARNING)

        assert not get_logger("services.analytics").isEnabledFor(logging.INFO)
        assert get_logger("services.analytics").isEnabledFor(logging.WARNING)

    def test_get_logger_namespace(self):
        assert get_logger("engines.reports").name == "inventory_analytics.engines.reports"
