"""
inventory_engines.session_filter -- The single predicate deciding which count sessions join an analysis.

Responsibility:
    Select count sessions by calendar day, team, voided flag and an
    optional explicit session-id selection.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Every consumer (daily metrics, item listing, chart projection and
    exports) selects sessions through ``session_matches`` so totals agree
    across views.

Invariants enforced:
    - A session qualifies iff ALL of:
        * it falls on ``target_date`` (any day when target_date is None),
        * team_id is unset or equals the session's team_id,
        * include_voided is set or the session is not voided,
        * selection is empty, contains ``COMBINE``, or contains the id.
    - The four predicates are independent, so filtering is idempotent and
      the order in which they are applied does not matter.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime

from inventory_kernel.domain.records import InventoryCount

COMBINE_SELECTION = "COMBINE"


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


@dataclass(frozen=True)
class SessionCriteria:
    """Selection criteria for count sessions."""

    target_date: date | None = None
    team_id: str | None = None
    include_voided: bool = False
    selection: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if self.target_date is not None:
            object.__setattr__(self, "target_date", _as_date(self.target_date))
        if not isinstance(self.selection, frozenset):
            object.__setattr__(self, "selection", frozenset(self.selection or ()))

    @property
    def combines_all(self) -> bool:
        return not self.selection or COMBINE_SELECTION in self.selection


def matches_date(count: InventoryCount, criteria: SessionCriteria) -> bool:
    return criteria.target_date is None or _as_date(count.count_date) == criteria.target_date


def matches_team(count: InventoryCount, criteria: SessionCriteria) -> bool:
    return criteria.team_id is None or count.team_id == criteria.team_id


def matches_voided(count: InventoryCount, criteria: SessionCriteria) -> bool:
    return criteria.include_voided or not count.is_voided


def matches_selection(count: InventoryCount, criteria: SessionCriteria) -> bool:
    return criteria.combines_all or count.id in criteria.selection


def session_matches(count: InventoryCount, criteria: SessionCriteria) -> bool:
    """True iff ``count`` satisfies every predicate of ``criteria``."""
    return (
        matches_date(count, criteria)
        and matches_team(count, criteria)
        and matches_voided(count, criteria)
        and matches_selection(count, criteria)
    )


def filter_sessions(
    counts: Iterable[InventoryCount],
    criteria: SessionCriteria,
) -> list[InventoryCount]:
    """Return the qualifying sessions, preserving input order."""
    return [count for count in counts if session_matches(count, criteria)]
