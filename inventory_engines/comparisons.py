"""
inventory_engines.comparisons -- Line-by-line comparison of recent sessions against their predecessors.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Sessions are ordered with the same recency comparator as the team
      trend (count_date, then created_at, newest first).
    - A session's predecessor is the next older session of the same team
      (sessions without a team are compared among themselves).
    - Item comparisons use real counted quantities: the previous quantity
      is the predecessor's counted quantity for the same item, 0 when
      the predecessor did not count it or there is no predecessor.
    - accuracy_improvement is 0 when there is no predecessor.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from inventory_engines.enrichment import EnhancedInventoryItem
from inventory_engines.team_performance import (
    lines_by_session,
    session_accuracy,
    session_recency_key,
    team_key,
)
from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.records import InventoryCount

_ZERO = Decimal("0")


@dataclass(frozen=True)
class ItemComparison:
    """Change of one item between two sessions."""

    item_id: str
    item_name: str
    current_quantity: Decimal
    previous_quantity: Decimal
    quantity_change: Decimal
    current_value: Decimal
    previous_value: Decimal
    value_change: Decimal
    unit_cost: Decimal


@dataclass(frozen=True)
class CountComparison:
    """A session compared against its predecessor."""

    current_count: InventoryCount
    previous_count: InventoryCount | None
    item_comparisons: tuple[ItemComparison, ...]
    total_value_change: Decimal
    accuracy_improvement: Decimal


def _counted_quantities(lines: Sequence[EnhancedInventoryItem]) -> dict[str, Decimal]:
    return {
        line.item_id: line.actual_quantity
        for line in lines
        if line.actual_quantity is not None
    }


def compare_items(
    current_lines: Sequence[EnhancedInventoryItem],
    previous_lines: Sequence[EnhancedInventoryItem],
) -> tuple[ItemComparison, ...]:
    previous_quantities = _counted_quantities(previous_lines)
    comparisons = []
    for line in current_lines:
        if line.actual_quantity is None:
            continue
        current = line.actual_quantity
        previous = previous_quantities.get(line.item_id, _ZERO)
        comparisons.append(ItemComparison(
            item_id=line.item_id,
            item_name=line.item.name,
            current_quantity=current,
            previous_quantity=previous,
            quantity_change=current - previous,
            current_value=current * line.unit_cost,
            previous_value=previous * line.unit_cost,
            value_change=(current - previous) * line.unit_cost,
            unit_cost=line.unit_cost,
        ))
    return tuple(comparisons)


@traced_engine("comparisons", "1.0", fingerprint_fields=("counts", "limit"))
def compare_recent_counts(
    *,
    counts: Sequence[InventoryCount],
    enriched_items: Sequence[EnhancedInventoryItem],
    limit: int = 5,
) -> list[CountComparison]:
    """Compare the ``limit`` most recent sessions with their predecessors."""
    ordered = sorted(counts, key=session_recency_key, reverse=True)
    grouped = lines_by_session(enriched_items)

    results = []
    for index, current in enumerate(ordered[:limit]):
        previous = next(
            (c for c in ordered[index + 1:] if team_key(c) == team_key(current)),
            None,
        )
        current_lines = grouped.get(current.id, [])
        previous_lines = grouped.get(previous.id, []) if previous else []
        items = compare_items(current_lines, previous_lines)
        improvement = _ZERO
        if previous is not None:
            improvement = (
                session_accuracy(current, current_lines)
                - session_accuracy(previous, previous_lines)
            )
        results.append(CountComparison(
            current_count=current,
            previous_count=previous,
            item_comparisons=items,
            total_value_change=sum((i.value_change for i in items), _ZERO),
            accuracy_improvement=improvement,
        ))
    return results
