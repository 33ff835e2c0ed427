"""
inventory_services.store -- Read-side contract of the external inventory store.

Responsibility:
    Define the ``InventoryStore`` protocol the analytics service fetches
    through, the inclusive ``DateRange`` it is queried with, and an
    in-memory implementation for tests and offline use.

Architecture position:
    Services -- I/O boundary.  Engines never see the store; the service
    fetches one snapshot per request and hands it to the engines.

Failure modes:
    - Store implementations raise their own errors; the service logs and
      re-raises them unchanged.
    - ``InMemoryInventoryStore.from_rows`` raises ``InvalidRecordError``
      for malformed rows.
    - ``DateRange`` raises ``InvalidDateRangeError`` when start is after end.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Protocol

from inventory_kernel.domain.records import (
    InventoryCount,
    InventoryCountItem,
    InventoryItem,
    InventoryTransaction,
    Team,
)
from inventory_kernel.exceptions import InvalidDateRangeError
from inventory_kernel.logging_config import get_logger

logger = get_logger("services.store")


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar-day range."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise InvalidDateRangeError(self.start, self.end)

    @classmethod
    def single_day(cls, day: date) -> DateRange:
        return cls(day, day)

    @classmethod
    def trailing(cls, end: date, days: int) -> DateRange:
        """The ``days`` days ending at ``end``, ``end`` included."""
        return cls(end - timedelta(days=max(days, 1) - 1), end)

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


class InventoryStore(Protocol):
    """What the analytics service needs from the persistence layer."""

    def list_counts(
        self, date_range: DateRange, team_id: str | None = None
    ) -> Sequence[InventoryCount]: ...

    def list_count_items(self, count_id: str) -> Sequence[InventoryCountItem]: ...

    def list_items(self, organization_id: str) -> Sequence[InventoryItem]: ...

    def list_teams(self, organization_id: str) -> Sequence[Team]: ...

    def list_transactions(
        self, organization_id: str, date_range: DateRange
    ) -> Sequence[InventoryTransaction]: ...


class InMemoryInventoryStore:
    """
    ``InventoryStore`` over in-memory records of a single organization.

    Queries for any other organization return nothing.
    """

    def __init__(
        self,
        organization_id: str,
        *,
        counts: Iterable[InventoryCount] = (),
        count_items: Iterable[InventoryCountItem] = (),
        items: Iterable[InventoryItem] = (),
        teams: Iterable[Team] = (),
        transactions: Iterable[InventoryTransaction] = (),
    ):
        self.organization_id = organization_id
        self._counts = list(counts)
        self._count_items = list(count_items)
        self._items = list(items)
        self._teams = list(teams)
        self._transactions = list(transactions)

    @classmethod
    def from_rows(
        cls,
        organization_id: str,
        *,
        counts: Iterable[Mapping[str, Any]] = (),
        count_items: Iterable[Mapping[str, Any]] = (),
        items: Iterable[Mapping[str, Any]] = (),
        teams: Iterable[Mapping[str, Any]] = (),
        transactions: Iterable[Mapping[str, Any]] = (),
    ) -> InMemoryInventoryStore:
        """Build a store from raw rows as an external store returns them."""
        store = cls(
            organization_id,
            counts=[InventoryCount.from_mapping(r) for r in counts],
            count_items=[InventoryCountItem.from_mapping(r) for r in count_items],
            items=[InventoryItem.from_mapping(r) for r in items],
            teams=[Team.from_mapping(r) for r in teams],
            transactions=[InventoryTransaction.from_mapping(r) for r in transactions],
        )
        logger.debug("in_memory_store_loaded", extra={
            "organization_id": organization_id,
            "count_rows": len(store._counts),
            "count_item_rows": len(store._count_items),
            "item_rows": len(store._items),
        })
        return store

    def list_counts(
        self, date_range: DateRange, team_id: str | None = None
    ) -> list[InventoryCount]:
        return [
            c for c in self._counts
            if date_range.contains(c.count_date)
            and (team_id is None or c.team_id == team_id)
        ]

    def list_count_items(self, count_id: str) -> list[InventoryCountItem]:
        return [line for line in self._count_items if line.count_id == count_id]

    def list_items(self, organization_id: str) -> list[InventoryItem]:
        if organization_id != self.organization_id:
            return []
        return list(self._items)

    def list_teams(self, organization_id: str) -> list[Team]:
        if organization_id != self.organization_id:
            return []
        return list(self._teams)

    def list_transactions(
        self, organization_id: str, date_range: DateRange
    ) -> list[InventoryTransaction]:
        if organization_id != self.organization_id:
            return []
        return [
            t for t in self._transactions
            if date_range.contains(t.created_at.date())
        ]
