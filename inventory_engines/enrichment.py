"""
inventory_engines.enrichment -- Join count lines with item master data and classify them.

Responsibility:
    Produce one ``EnhancedInventoryItem`` per count line: the joined item
    record, resolved unit cost, variance breakdown, stock status and the
    requires-attention flag.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Composes ``variance.classify_variance`` and
    ``stock_health.evaluate_stock_status``.

Invariants enforced:
    - Derived entirely from the count line, its item and its session;
      recomputed on every call, never cached.
    - Never fails on a dangling item reference: a placeholder item named
      ``Item <first 8 chars of id>`` with the fallback unit cost is used
      and ``item_reference_missing`` is logged.
    - requires_attention fires for a critical band, any out-of-range
      stock status (out, low, over), or |variance_cost| above the absolute
      cost threshold, independent of the percentage band.
    - Unit cost resolves unit_cost, then purchase_price, then the
      configured fallback.
    - Pre-count stock resolves the line's in_stock_quantity, then the
      item's current_stock, then 0.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from inventory_engines.parameters import DEFAULT_PARAMETERS, EngineParameters
from inventory_engines.stock_health import StockStatus, evaluate_stock_status
from inventory_engines.tracer import traced_engine
from inventory_engines.variance import VarianceCategory, classify_variance
from inventory_kernel.domain.records import (
    InventoryCount,
    InventoryCountItem,
    InventoryItem,
)
from inventory_kernel.logging_config import get_logger

logger = get_logger("engines.enrichment")

_ZERO = Decimal("0")


@dataclass(frozen=True)
class EnhancedInventoryItem:
    """
    A count line enriched with item data and variance analysis.

    Contract:
        Frozen; every derived field is consistent with ``count_item``,
        ``item`` and the parameters used at enrichment time.
    """

    count_item: InventoryCountItem
    item: InventoryItem
    count: InventoryCount | None
    pre_count_stock: Decimal
    unit_cost: Decimal
    variance_quantity: Decimal
    variance_percentage: Decimal
    variance_cost: Decimal
    total_pre_count_value: Decimal
    total_actual_value: Decimal
    variance_category: VarianceCategory
    stock_status: StockStatus
    requires_attention: bool
    has_variance: bool
    is_placeholder: bool = False

    @property
    def count_id(self) -> str:
        return self.count_item.count_id

    @property
    def item_id(self) -> str:
        return self.count_item.item_id

    @property
    def actual_quantity(self) -> Decimal | None:
        return self.count_item.actual_quantity

    @property
    def is_counted(self) -> bool:
        return self.count_item.is_counted

    @property
    def counted_at(self) -> datetime | None:
        return self.count_item.counted_at

    @property
    def absolute_variance_cost(self) -> Decimal:
        return abs(self.variance_cost)

    @property
    def category_name(self) -> str:
        return self.item.category_name or "Uncategorized"

    @property
    def minimum_threshold(self) -> Decimal | None:
        return effective_thresholds(self.count_item, self.item)[0]

    @property
    def maximum_threshold(self) -> Decimal | None:
        return effective_thresholds(self.count_item, self.item)[1]


def effective_thresholds(
    count_item: InventoryCountItem,
    item: InventoryItem,
) -> tuple[Decimal | None, Decimal | None]:
    """(min, max) stock thresholds; template values override the item's."""
    minimum = count_item.template_minimum_quantity
    if minimum is None:
        minimum = item.minimum_threshold
    maximum = count_item.template_maximum_quantity
    if maximum is None:
        maximum = item.maximum_threshold
    return minimum, maximum


def resolve_unit_cost(item: InventoryItem, fallback: Decimal) -> Decimal:
    """unit_cost, then purchase_price, then ``fallback``."""
    if item.unit_cost is not None:
        return item.unit_cost
    if item.purchase_price is not None:
        return item.purchase_price
    return fallback


def placeholder_item(item_id: str, fallback_unit_cost: Decimal) -> InventoryItem:
    """Synthesize an item for a count line whose item master row is missing."""
    return InventoryItem(
        id=item_id,
        name=f"Item {item_id[:8]}",
        unit_cost=fallback_unit_cost,
    )


def enrich_count_item(
    count_item: InventoryCountItem,
    items_by_id: Mapping[str, InventoryItem],
    count: InventoryCount | None = None,
    parameters: EngineParameters = DEFAULT_PARAMETERS,
) -> EnhancedInventoryItem:
    """
    Enrich a single count line.

    Args:
        count_item: The raw count line.
        items_by_id: Read-only item master snapshot.
        count: Owning session, if known.
        parameters: Thresholds.

    Returns:
        EnhancedInventoryItem (never raises for a missing item).
    """
    item = items_by_id.get(count_item.item_id)
    is_placeholder = item is None
    if item is None:
        logger.warning("item_reference_missing", extra={
            "count_id": count_item.count_id,
            "item_id": count_item.item_id,
        })
        item = placeholder_item(count_item.item_id, parameters.fallback_unit_cost)

    unit_cost = resolve_unit_cost(item, parameters.fallback_unit_cost)
    if count_item.in_stock_quantity is not None:
        pre_count_stock = count_item.in_stock_quantity
    elif item.current_stock is not None:
        pre_count_stock = item.current_stock
    else:
        pre_count_stock = _ZERO
    actual = count_item.actual_quantity if count_item.actual_quantity is not None else _ZERO

    breakdown = classify_variance(
        pre_count_stock, count_item.actual_quantity, unit_cost, parameters.bands
    )

    minimum, maximum = effective_thresholds(count_item, item)
    stock_status = evaluate_stock_status(actual, minimum, maximum)

    requires_attention = (
        breakdown.category is VarianceCategory.CRITICAL
        or stock_status.is_out_of_range
        or breakdown.absolute_cost > parameters.attention_cost_threshold
    )
    has_variance = (
        count_item.is_counted
        and abs(breakdown.variance_quantity) > parameters.variance_epsilon
    )

    return EnhancedInventoryItem(
        count_item=count_item,
        item=item,
        count=count,
        pre_count_stock=pre_count_stock,
        unit_cost=unit_cost,
        variance_quantity=breakdown.variance_quantity,
        variance_percentage=breakdown.variance_percentage,
        variance_cost=breakdown.variance_cost,
        total_pre_count_value=pre_count_stock * unit_cost,
        total_actual_value=actual * unit_cost,
        variance_category=breakdown.category,
        stock_status=stock_status,
        requires_attention=requires_attention,
        has_variance=has_variance,
        is_placeholder=is_placeholder,
    )


def index_items(items: Iterable[InventoryItem] | Mapping[str, InventoryItem]) -> dict[str, InventoryItem]:
    """Build the id -> item snapshot used for one analysis pass."""
    if isinstance(items, Mapping):
        return dict(items)
    return {item.id: item for item in items}


@traced_engine("enrichment", "1.0", fingerprint_fields=("count_items", "counts"))
def enrich_count_items(
    *,
    count_items: Sequence[InventoryCountItem],
    items: Iterable[InventoryItem] | Mapping[str, InventoryItem],
    counts: Iterable[InventoryCount] = (),
    parameters: EngineParameters = DEFAULT_PARAMETERS,
) -> list[EnhancedInventoryItem]:
    """
    Enrich every count line against one item master snapshot.

    Lines keep their input order.  The item map is built once so every
    line in the pass sees the same snapshot.
    """
    items_by_id = index_items(items)
    counts_by_id = {count.id: count for count in counts}
    enriched = [
        enrich_count_item(
            line, items_by_id, counts_by_id.get(line.count_id), parameters
        )
        for line in count_items
    ]
    placeholders = sum(1 for e in enriched if e.is_placeholder)
    logger.info("count_items_enriched", extra={
        "line_count": len(enriched),
        "placeholder_count": placeholders,
        "attention_count": sum(1 for e in enriched if e.requires_attention),
    })
    return enriched
