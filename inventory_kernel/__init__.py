"""
Inventory Kernel

Shared foundation for the inventory reconciliation analytics stack:
- Immutable domain records parsed from the external store
- Injectable clock
- Typed exception hierarchy
- Structured JSON logging
"""

__version__ = "0.1.0"
