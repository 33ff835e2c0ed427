"""
Tests for domain record parsing from raw store rows.

Covers:
- Numeric, date and timestamp coercion
- Nested category / unit-of-measure names
- Defaults for optional fields
- InvalidRecordError for malformed rows
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from inventory_kernel.domain.records import (
    CountStatus,
    InventoryCount,
    InventoryCountItem,
    InventoryItem,
    InventoryTransaction,
    Team,
    parse_date,
    parse_decimal,
)
from inventory_kernel.exceptions import InvalidRecordError


class TestInventoryItem:
    def test_flat_row(self):
        item = InventoryItem.from_mapping({
            "id": "i1",
            "name": "Hex bolt",
            "sku": "HB-10",
            "category_name": "Fasteners",
            "unit_cost": "0.35",
            "current_stock": 120,
            "minimum_threshold": 20.5,
        })

        assert item.unit_cost == Decimal("0.35")
        assert item.current_stock == Decimal("120")
        assert item.minimum_threshold == Decimal("20.5")
        assert item.category_name == "Fasteners"
        assert item.maximum_threshold is None

    def test_nested_names(self):
        item = InventoryItem.from_mapping({
            "id": "i1",
            "name": "Cable",
            "category": {"name": "Electrical"},
            "base_unit": {"name": "meters"},
        })

        assert item.category_name == "Electrical"
        assert item.unit_of_measure == "meters"

    def test_missing_name_uses_id_prefix(self):
        item = InventoryItem.from_mapping({"id": "abcdef123456"})

        assert item.name == "Item abcdef12"

    def test_missing_id(self):
        with pytest.raises(InvalidRecordError) as exc_info:
            InventoryItem.from_mapping({"name": "orphan"})

        assert exc_info.value.code == "INVALID_RECORD"
        assert exc_info.value.field_name == "id"

    def test_non_numeric_cost(self):
        with pytest.raises(InvalidRecordError) as exc_info:
            InventoryItem.from_mapping({"id": "i1", "unit_cost": "cheap"})

        assert exc_info.value.field_name == "unit_cost"


class TestInventoryCount:
    def test_defaults(self):
        count = InventoryCount.from_mapping({
            "id": "c1",
            "count_date": "2024-03-04",
            "created_at": "2024-03-04T08:15:00",
        })

        assert count.status is CountStatus.IN_PROGRESS
        assert count.is_voided is False
        assert count.total_items_count == 0
        assert count.team_id is None
        assert count.created_at == datetime(2024, 3, 4, 8, 15)

    def test_count_date_from_timestamp(self):
        count = InventoryCount.from_mapping({
            "id": "c1",
            "count_date": "2024-03-04T23:59:00",
            "created_at": datetime(2024, 3, 4, 8),
            "status": "completed",
            "variance_count": "3",
        })

        assert count.count_date == date(2024, 3, 4)
        assert count.is_completed
        assert count.variance_count == 3

    def test_unknown_status(self):
        with pytest.raises(InvalidRecordError) as exc_info:
            InventoryCount.from_mapping({
                "id": "c1",
                "count_date": "2024-03-04",
                "created_at": "2024-03-04T08:00:00",
                "status": "archived",
            })

        assert exc_info.value.field_name == "status"

    def test_created_at_required(self):
        with pytest.raises(InvalidRecordError):
            InventoryCount.from_mapping({"id": "c1", "count_date": "2024-03-04"})


class TestInventoryCountItem:
    def test_uncounted_line(self):
        line = InventoryCountItem.from_mapping({
            "count_id": "c1",
            "item_id": "i1",
            "actual_quantity": None,
            "in_stock_quantity": "12",
        })

        assert not line.is_counted
        assert line.in_stock_quantity == Decimal("12")

    def test_counted_line(self):
        line = InventoryCountItem.from_mapping({
            "count_id": "c1",
            "item_id": "i1",
            "actual_quantity": 0,
            "counted_at": "2024-03-04T09:00:00",
            "template_maximum_quantity": "40",
        })

        assert line.is_counted
        assert line.actual_quantity == Decimal("0")
        assert line.template_maximum_quantity == Decimal("40")

    def test_missing_item_reference(self):
        with pytest.raises(InvalidRecordError) as exc_info:
            InventoryCountItem.from_mapping({"count_id": "c1"})

        assert exc_info.value.field_name == "item_id"


class TestTransactionAndTeam:
    def test_transaction(self):
        txn = InventoryTransaction.from_mapping({
            "id": "t1",
            "item_id": "i1",
            "quantity": "-4",
            "created_at": "2024-03-03T12:00:00",
        })

        assert txn.transaction_type == "adjustment"
        assert txn.quantity == Decimal("-4")
        assert txn.unit_cost is None

    def test_transaction_quantity_required(self):
        with pytest.raises(InvalidRecordError):
            InventoryTransaction.from_mapping({
                "id": "t1",
                "item_id": "i1",
                "created_at": "2024-03-03T12:00:00",
            })

    def test_team_default_name(self):
        assert Team.from_mapping({"id": "t9"}).name == "Team t9"


class TestParseHelpers:
    @pytest.mark.parametrize("raw", ["NaN", "Infinity", True])
    def test_rejects_non_finite_and_bool(self, raw):
        with pytest.raises(InvalidRecordError):
            parse_decimal(raw, "InventoryItem", "unit_cost")

    def test_blank_is_none(self):
        assert parse_decimal("", "InventoryItem", "unit_cost") is None

    def test_bad_date(self):
        with pytest.raises(InvalidRecordError):
            parse_date("04/03/2024", "InventoryCount", "count_date")
