"""
Pytest fixtures for the inventory analytics test suite.

Provides:
- Structured logging configured for the session, with LogContext
  cleared between tests
- ``captured_logs`` for asserting on emitted JSON log records
- A small reference dataset (items, sessions, lines, teams) shared by the
  engine and service tests
"""

import json
import logging
from datetime import date, datetime
from decimal import Decimal
from io import StringIO

import pytest

from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.domain.records import (
    CountStatus,
    InventoryCount,
    InventoryCountItem,
    InventoryItem,
    Team,
)
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

COUNT_DAY = date(2024, 3, 4)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture inventory_analytics logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            enrich_count_items(count_items=lines, items=items)
            logs = captured_logs()
            assert any(r["message"] == "count_items_enriched" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("inventory_analytics")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Reference dataset
# =============================================================================


@pytest.fixture
def clock():
    return DeterministicClock(datetime(2024, 3, 4, 18, 0, 0))


@pytest.fixture
def items():
    """Item master: a widget, a gadget with thresholds, and a costless bolt."""
    return [
        InventoryItem(
            id="item-widget",
            name="Widget",
            sku="W-1",
            category_name="Hardware",
            unit_cost=Decimal("10"),
            current_stock=Decimal("100"),
        ),
        InventoryItem(
            id="item-gadget",
            name="Gadget",
            sku="G-1",
            category_name="Electronics",
            unit_cost=Decimal("2"),
            minimum_threshold=Decimal("10"),
            maximum_threshold=Decimal("50"),
        ),
        InventoryItem(
            id="item-bolt",
            name="Bolt",
            category_name="Hardware",
        ),
    ]


@pytest.fixture
def teams():
    return [Team(id="team-a", name="Alpha"), Team(id="team-b", name="Bravo")]


@pytest.fixture
def counts():
    """Three sessions on COUNT_DAY: two completed (teams a, b) and one voided."""
    return [
        InventoryCount(
            id="count-a",
            count_date=COUNT_DAY,
            created_at=datetime(2024, 3, 4, 8, 0),
            updated_at=datetime(2024, 3, 4, 10, 0),
            team_id="team-a",
            status=CountStatus.COMPLETED,
            total_items_count=2,
            variance_count=1,
        ),
        InventoryCount(
            id="count-b",
            count_date=COUNT_DAY,
            created_at=datetime(2024, 3, 4, 9, 0),
            updated_at=datetime(2024, 3, 4, 13, 0),
            team_id="team-b",
            status=CountStatus.COMPLETED,
            total_items_count=1,
            variance_count=0,
        ),
        InventoryCount(
            id="count-void",
            count_date=COUNT_DAY,
            created_at=datetime(2024, 3, 4, 7, 0),
            team_id="team-a",
            status=CountStatus.COMPLETED,
            is_voided=True,
            total_items_count=1,
            variance_count=1,
        ),
    ]


@pytest.fixture
def count_items():
    """
    Lines for the reference sessions.

    count-a: widget 100 -> 80 (significant shortfall, -$200),
             gadget uncounted.
    count-b: gadget 20 -> 20 (exact).
    count-void: widget 100 -> 10.
    """
    return [
        InventoryCountItem(
            count_id="count-a",
            item_id="item-widget",
            actual_quantity=Decimal("80"),
            in_stock_quantity=Decimal("100"),
            counted_at=datetime(2024, 3, 4, 9, 30),
            counted_by="pat",
        ),
        InventoryCountItem(
            count_id="count-a",
            item_id="item-gadget",
            in_stock_quantity=Decimal("20"),
        ),
        InventoryCountItem(
            count_id="count-b",
            item_id="item-gadget",
            actual_quantity=Decimal("20"),
            in_stock_quantity=Decimal("20"),
        ),
        InventoryCountItem(
            count_id="count-void",
            item_id="item-widget",
            actual_quantity=Decimal("10"),
            in_stock_quantity=Decimal("100"),
        ),
    ]
