"""
Records -- Immutable domain records read from the external inventory store.

Responsibility:
    Typed, frozen views of the raw rows the analytics engines consume:
    count sessions, count lines, item master data, stock transactions and
    teams.  Each record parses its own raw store row via ``from_mapping``.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  Records are owned by the external
    store; the engines treat them as a read-only snapshot.

Invariants enforced:
    - Quantities and money are ``Decimal`` (floats are converted through
      ``str`` so 0.1 stays 0.1).
    - ``count_date`` is always a calendar ``date``.
    - Unset numeric fields stay ``None``; defaults (fallback unit cost,
      pre-count stock) are applied by the engines, not here.

Failure modes:
    - InvalidRecordError when a row lacks its ``id`` or carries a value
      that cannot be parsed as a number, date or known status.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from inventory_kernel.exceptions import InvalidRecordError


class CountStatus(str, Enum):
    """Lifecycle status of a count session."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# ---------------------------------------------------------------------------
# Parse helpers
# ---------------------------------------------------------------------------


def _require_id(row: Mapping[str, Any], record_type: str, key: str = "id") -> str:
    value = row.get(key)
    if value is None or str(value).strip() == "":
        raise InvalidRecordError(record_type, key, "is required")
    return str(value)


def _optional_str(row: Mapping[str, Any], key: str) -> str | None:
    value = row.get(key)
    if value is None:
        return None
    return str(value)


def parse_decimal(value: Any, record_type: str, field_name: str) -> Decimal | None:
    """Parse a raw numeric value into Decimal (None stays None)."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise InvalidRecordError(record_type, field_name, "must be numeric, got bool")
    if isinstance(value, Decimal):
        return value
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidRecordError(
            record_type, field_name, f"must be numeric, got {value!r}"
        ) from None
    if not result.is_finite():
        raise InvalidRecordError(record_type, field_name, f"must be finite, got {value!r}")
    return result


def parse_datetime(value: Any, record_type: str, field_name: str) -> datetime | None:
    """Parse an ISO-8601 timestamp (None stays None)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise InvalidRecordError(
            record_type, field_name, f"must be an ISO timestamp, got {value!r}"
        ) from None


def parse_date(value: Any, record_type: str, field_name: str) -> date:
    """Parse a calendar date from a date, datetime or ISO string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or value == "":
        raise InvalidRecordError(record_type, field_name, "is required")
    text = str(value)
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise InvalidRecordError(
            record_type, field_name, f"must be an ISO date, got {value!r}"
        ) from None


def _nested_name(row: Mapping[str, Any], flat_key: str, nested_key: str) -> str | None:
    """Read ``flat_key`` or fall back to ``row[nested_key]['name']``."""
    flat = row.get(flat_key)
    if flat:
        return str(flat)
    nested = row.get(nested_key)
    if isinstance(nested, Mapping) and nested.get("name"):
        return str(nested["name"])
    return None


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InventoryItem:
    """Item master record."""

    id: str
    name: str
    sku: str | None = None
    category_name: str | None = None
    unit_cost: Decimal | None = None
    purchase_price: Decimal | None = None
    current_stock: Decimal | None = None
    minimum_threshold: Decimal | None = None
    maximum_threshold: Decimal | None = None
    location: str | None = None
    unit_of_measure: str | None = None
    barcode: str | None = None

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> InventoryItem:
        rt = "InventoryItem"
        item_id = _require_id(row, rt)
        return cls(
            id=item_id,
            name=_optional_str(row, "name") or f"Item {item_id[:8]}",
            sku=_optional_str(row, "sku"),
            category_name=_nested_name(row, "category_name", "category"),
            unit_cost=parse_decimal(row.get("unit_cost"), rt, "unit_cost"),
            purchase_price=parse_decimal(row.get("purchase_price"), rt, "purchase_price"),
            current_stock=parse_decimal(row.get("current_stock"), rt, "current_stock"),
            minimum_threshold=parse_decimal(
                row.get("minimum_threshold"), rt, "minimum_threshold"
            ),
            maximum_threshold=parse_decimal(
                row.get("maximum_threshold"), rt, "maximum_threshold"
            ),
            location=_optional_str(row, "location"),
            unit_of_measure=_nested_name(row, "unit_of_measure", "base_unit"),
            barcode=_optional_str(row, "barcode"),
        )


@dataclass(frozen=True)
class InventoryCount:
    """
    A count session.

    ``is_voided`` is a soft-delete overlay orthogonal to ``status``.
    """

    id: str
    count_date: date
    created_at: datetime
    team_id: str | None = None
    status: CountStatus = CountStatus.IN_PROGRESS
    is_voided: bool = False
    total_items_count: int = 0
    variance_count: int = 0
    updated_at: datetime | None = None
    notes: str | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == CountStatus.COMPLETED

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> InventoryCount:
        rt = "InventoryCount"
        count_id = _require_id(row, rt)
        raw_status = row.get("status") or CountStatus.IN_PROGRESS.value
        try:
            status = CountStatus(raw_status)
        except ValueError:
            raise InvalidRecordError(
                rt, "status", f"must be one of in_progress/completed, got {raw_status!r}"
            ) from None
        created_at = parse_datetime(row.get("created_at"), rt, "created_at")
        if created_at is None:
            raise InvalidRecordError(rt, "created_at", "is required")
        total = parse_decimal(row.get("total_items_count"), rt, "total_items_count")
        variances = parse_decimal(row.get("variance_count"), rt, "variance_count")
        return cls(
            id=count_id,
            count_date=parse_date(row.get("count_date"), rt, "count_date"),
            created_at=created_at,
            team_id=_optional_str(row, "team_id"),
            status=status,
            is_voided=bool(row.get("is_voided") or False),
            total_items_count=int(total or 0),
            variance_count=int(variances or 0),
            updated_at=parse_datetime(row.get("updated_at"), rt, "updated_at"),
            notes=_optional_str(row, "notes"),
        )


@dataclass(frozen=True)
class InventoryCountItem:
    """
    One counted line within a session.

    Owned exclusively by its InventoryCount.  Template quantities, when
    present, override the item master min/max thresholds.
    """

    count_id: str
    item_id: str
    id: str | None = None
    actual_quantity: Decimal | None = None
    in_stock_quantity: Decimal | None = None
    counted_at: datetime | None = None
    counted_by: str | None = None
    notes: str | None = None
    template_minimum_quantity: Decimal | None = None
    template_maximum_quantity: Decimal | None = None

    @property
    def is_counted(self) -> bool:
        return self.actual_quantity is not None

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> InventoryCountItem:
        rt = "InventoryCountItem"
        return cls(
            count_id=_require_id(row, rt, "count_id"),
            item_id=_require_id(row, rt, "item_id"),
            id=_optional_str(row, "id"),
            actual_quantity=parse_decimal(row.get("actual_quantity"), rt, "actual_quantity"),
            in_stock_quantity=parse_decimal(
                row.get("in_stock_quantity"), rt, "in_stock_quantity"
            ),
            counted_at=parse_datetime(row.get("counted_at"), rt, "counted_at"),
            counted_by=_optional_str(row, "counted_by"),
            notes=_optional_str(row, "notes"),
            template_minimum_quantity=parse_decimal(
                row.get("template_minimum_quantity"), rt, "template_minimum_quantity"
            ),
            template_maximum_quantity=parse_decimal(
                row.get("template_maximum_quantity"), rt, "template_maximum_quantity"
            ),
        )


@dataclass(frozen=True)
class InventoryTransaction:
    """A stock movement (receipt, outgoing, adjustment)."""

    id: str
    item_id: str
    transaction_type: str
    quantity: Decimal
    created_at: datetime
    unit_cost: Decimal | None = None

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> InventoryTransaction:
        rt = "InventoryTransaction"
        quantity = parse_decimal(row.get("quantity"), rt, "quantity")
        if quantity is None:
            raise InvalidRecordError(rt, "quantity", "is required")
        created_at = parse_datetime(row.get("created_at"), rt, "created_at")
        if created_at is None:
            raise InvalidRecordError(rt, "created_at", "is required")
        return cls(
            id=_require_id(row, rt),
            item_id=_require_id(row, rt, "item_id"),
            transaction_type=_optional_str(row, "transaction_type") or "adjustment",
            quantity=quantity,
            created_at=created_at,
            unit_cost=parse_decimal(row.get("unit_cost"), rt, "unit_cost"),
        )


@dataclass(frozen=True)
class Team:
    """Team directory entry."""

    id: str
    name: str

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> Team:
        team_id = _require_id(row, "Team")
        return cls(id=team_id, name=_optional_str(row, "name") or f"Team {team_id}")
