"""
Typed Exception Hierarchy for the inventory analytics stack.

===============================================================================
WHAT IS (AND IS NOT) AN ERROR HERE
===============================================================================

The calculation engines are total functions over their documented inputs.
Most "bad data" situations are therefore NOT exceptions:

  - A count line referencing an item missing from the item master is
    enriched with a placeholder item and logged (item_reference_missing).
  - Zero denominators resolve to sentinels (0% variance, 100% accuracy,
    0 averages).
  - Empty session or item sets produce zero-valued metrics.
  - Failures in the external store propagate unchanged from the service
    layer; they are never wrapped or retried here.

What remains are structural problems: records that cannot be parsed,
export types outside the closed set, and invalid configuration.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryAnalyticsError (base)
    |
    +-- RecordError
    |   +-- InvalidRecordError
    |
    +-- ExportError
    |   +-- UnknownExportTypeError
    |
    +-- QueryError
    |   +-- InvalidDateRangeError
    |
    +-- ConfigurationError
        +-- InvalidBandsError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Record          | INVALID_RECORD              | Store row missing id / bad number / bad date
----------------|-----------------------------|-----------------------------------------
Export          | UNKNOWN_EXPORT_TYPE         | Report type outside the closed enum
----------------|-----------------------------|-----------------------------------------
Query           | INVALID_DATE_RANGE          | Store query range ends before it starts
----------------|-----------------------------|-----------------------------------------
Configuration   | CONFIGURATION_ERROR         | Negative threshold, bad window, bad value
                | INVALID_BANDS               | Variance bands not strictly ascending
"""


class InventoryAnalyticsError(Exception):
    """
    Base exception for all inventory analytics errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "INVENTORY_ANALYTICS_ERROR"


# Record-related exceptions


class RecordError(InventoryAnalyticsError):
    """Base exception for record parsing errors."""

    code: str = "RECORD_ERROR"


class InvalidRecordError(RecordError):
    """A raw store row could not be parsed into a domain record."""

    code: str = "INVALID_RECORD"

    def __init__(self, record_type: str, field_name: str, reason: str):
        self.record_type = record_type
        self.field_name = field_name
        self.reason = reason
        super().__init__(
            f"Invalid {record_type} record: field '{field_name}' {reason}"
        )


# Export-related exceptions


class ExportError(InventoryAnalyticsError):
    """Base exception for export generation errors."""

    code: str = "EXPORT_ERROR"


class UnknownExportTypeError(ExportError):
    """Requested report type is not one of the supported export types."""

    code: str = "UNKNOWN_EXPORT_TYPE"

    def __init__(self, export_type: str, supported: tuple[str, ...]):
        self.export_type = export_type
        self.supported = supported
        super().__init__(
            f"Unknown export type '{export_type}'; "
            f"expected one of: {', '.join(supported)}"
        )


# Query-related exceptions


class QueryError(InventoryAnalyticsError):
    """Base exception for store query construction errors."""

    code: str = "QUERY_ERROR"


class InvalidDateRangeError(QueryError):
    """A date range whose start falls after its end."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, start, end):
        self.start = start
        self.end = end
        super().__init__(f"Date range start {start} is after end {end}")


# Configuration-related exceptions


class ConfigurationError(InventoryAnalyticsError):
    """Configuration content is structurally valid YAML but semantically wrong."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, setting: str, reason: str):
        self.setting = setting
        self.reason = reason
        super().__init__(f"Invalid configuration for '{setting}': {reason}")


class InvalidBandsError(ConfigurationError):
    """Variance band cut points are not strictly ascending."""

    code: str = "INVALID_BANDS"

    def __init__(self, acceptable_max, minor_max, significant_max):
        self.acceptable_max = acceptable_max
        self.minor_max = minor_max
        self.significant_max = significant_max
        super().__init__(
            "variance.bands",
            f"cut points must be strictly ascending, got "
            f"{acceptable_max} / {minor_max} / {significant_max}",
        )
