"""
Structured JSON logging for the inventory analytics stack.

Every record under the ``inventory_analytics`` logger is written as one JSON
line: a fixed envelope (ts, level, logger, message), the request fields
bound through ``LogContext``, the record's ``extra`` payload, and for
failures the exception type, message and, for ``InventoryAnalyticsError``,
its ``code`` plus structured attributes as ``exc_<name>``.

Request fields:
    request_id       one analytics call on the service
    organization_id  tenant whose store is being read
    team_id          team scope of a daily metrics call or export
    count_id         single session selected for an export
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any

from inventory_kernel.exceptions import InventoryAnalyticsError

_LOGGER_PREFIX = "inventory_analytics"

_EMPTY: Mapping[str, str] = MappingProxyType({})

_request_fields: ContextVar[Mapping[str, str]] = ContextVar(
    "inventory_log_context", default=_EMPTY
)


# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------


class LogContext:
    """Request-scoped fields merged into every log record of the current context."""

    FIELDS: tuple[str, ...] = ("request_id", "organization_id", "team_id", "count_id")

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_request_fields.get())

    @classmethod
    def clear(cls) -> None:
        _request_fields.set(_EMPTY)

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[type["LogContext"]]:
        """Layer ``fields`` over the current context until the block exits.

        None values leave an outer binding in place.

        Raises:
            TypeError: If a field is not one of ``FIELDS``.
        """
        unknown = sorted(set(fields) - set(cls.FIELDS))
        if unknown:
            raise TypeError(f"Unknown log context fields: {', '.join(unknown)}")
        merged = dict(_request_fields.get())
        merged.update((k, v) for k, v in fields.items() if v is not None)
        token = _request_fields.set(MappingProxyType(merged))
        try:
            yield cls
        finally:
            _request_fields.reset(token)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    """Decimals keep their exact text; enums log their value."""
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, (set, frozenset)):
        return sorted(str(v) for v in obj)
    return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    if isinstance(exc, InventoryAnalyticsError):
        fields["exc_code"] = exc.code
        for name, value in vars(exc).items():
            if not name.startswith("_"):
                fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_request_fields.get())

        # extra= payload; request fields win on collision
        for key, val in vars(record).items():
            if key not in _STDLIB_KEYS and key not in payload:
                payload[key] = val

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


# ---------------------------------------------------------------------------
# Logger factory and initialization
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the inventory_analytics namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach one JSON handler to the inventory_analytics logger (idempotent)."""
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    root_logger = logging.getLogger(_LOGGER_PREFIX)
    root_logger.setLevel(level)
    root_logger.propagate = False

    h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    h.setFormatter(StructuredFormatter())
    root_logger.addHandler(h)


def reset_logging() -> None:
    """Detach handlers so the next configure_logging() applies. Tests only."""
    global _configured
    with _lock:
        _configured = False
    logger = logging.getLogger(_LOGGER_PREFIX)
    logger.handlers.clear()
    logger.setLevel(logging.WARNING)
