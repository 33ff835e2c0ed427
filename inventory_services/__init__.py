"""
inventory_services -- Package init and public API.

Responsibility:
    Orchestration that composes the pure engines (inventory_engines/)
    with the external store and the wall clock.  This is the **only**
    layer that may call the store or read the current time.

Architecture position:
    Services -- orchestration over engines + kernel.

    Dependency direction:
        inventory_services/ -> inventory_engines/  (allowed)
        inventory_services/ -> inventory_kernel/   (allowed)
        inventory_engines/  -> inventory_services/ (FORBIDDEN)
        inventory_kernel/   -> inventory_services/ (FORBIDDEN)
"""

from inventory_kernel.logging_config import get_logger

logger = get_logger("services")

from inventory_services.analytics_service import (
    InventoryAnalyticsService,
    InventorySnapshot,
)
from inventory_services.store import DateRange, InMemoryInventoryStore, InventoryStore

__all__ = [
    "DateRange",
    "InMemoryInventoryStore",
    "InventoryAnalyticsService",
    "InventorySnapshot",
    "InventoryStore",
]
