"""
Pure domain layer.

Immutable records describing count sessions, count lines, item master data,
stock transactions and teams, plus the injectable clock. No dependencies on
the external store, on configuration, or on the wall clock.
"""

from inventory_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from inventory_kernel.domain.records import (
    CountStatus,
    InventoryCount,
    InventoryCountItem,
    InventoryItem,
    InventoryTransaction,
    Team,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "CountStatus",
    "InventoryCount",
    "InventoryCountItem",
    "InventoryItem",
    "InventoryTransaction",
    "Team",
]
