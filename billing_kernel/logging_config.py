"""
Structured JSON logging for the billing kernel.

Every record is one JSON object per line. Invoice computations run inside
``LogContext.bind(...)`` so that each engine event carries the invoice and
customer it belongs to without threading those ids through engine
signatures.

Envelope fields:
    ts, level, logger, message
Context fields (only when set):
    correlation_id, invoice_id, customer_id, actor_id, trace_id
Payload:
    everything passed through ``extra=``; Money renders as
    ``{"amount": "2360.00", "currency": "INR"}``
Exceptions:
    exc_type, exc_message, traceback and, for BillingKernelError,
    exc_code plus the error's structured attributes (exc_index, ...)
"""

__all__ = [
    "CONTEXT_FIELDS",
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
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from billing_kernel.domain.values import Money

CONTEXT_FIELDS: tuple[str, ...] = (
    "correlation_id",
    "invoice_id",
    "customer_id",
    "actor_id",
    "trace_id",
)

_CONTEXT: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"billing_log_{name}", default=None) for name in CONTEXT_FIELDS
}


def _context_var(name: str) -> ContextVar[str | None]:
    try:
        return _CONTEXT[name]
    except KeyError:
        raise ValueError(
            f"Unknown log context field {name!r}; expected one of {CONTEXT_FIELDS}"
        ) from None


class LogContext:
    """Request-scoped log fields, safe across threads and asyncio tasks."""

    @staticmethod
    def set(**fields: str | None) -> None:
        """Set context fields. None values leave the current value alone."""
        for name, value in fields.items():
            var = _context_var(name)
            if value is not None:
                var.set(value)

    @staticmethod
    def get_all() -> dict[str, str]:
        """Return the context fields that are currently set."""
        return {
            name: value
            for name, var in _CONTEXT.items()
            if (value := var.get()) is not None
        }

    @staticmethod
    def clear() -> None:
        for var in _CONTEXT.values():
            var.set(None)

    @staticmethod
    @contextmanager
    def bind(**fields: str | None) -> Iterator[type["LogContext"]]:
        """
        Set fields for the duration of a ``with`` block.

        Previous values are restored on exit, including on error. None
        values are skipped.
        """
        tokens = []
        for name, value in fields.items():
            var = _context_var(name)
            if value is not None:
                tokens.append((var, var.set(value)))
        try:
            yield LogContext
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# ---------------------------------------------------------------------------
# JSON formatting
# ---------------------------------------------------------------------------

_RESERVED = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Money):
        return {"amount": str(obj.amount), "currency": obj.currency.code}
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, (Decimal, UUID)):
        return str(obj)
    if isinstance(obj, (set, frozenset)):
        return sorted(str(v) for v in obj)
    return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
        # Typed billing errors carry their offending index/field/amounts.
        for key, value in vars(exc).items():
            if not key.startswith("_"):
                fields[f"exc_{key}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

ROOT_LOGGER_NAME = "billing_kernel"

_handler: logging.Handler | None = None
_lock = threading.Lock()


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``billing_kernel`` namespace, e.g. ``engines.gst``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> logging.Handler:
    """
    Attach the JSON handler to the ``billing_kernel`` logger.

    Idempotent: later calls return the handler installed by the first one
    and change nothing.
    """
    global _handler
    with _lock:
        if _handler is not None:
            return _handler
        _handler = handler if handler is not None else logging.StreamHandler(
            stream or sys.stderr
        )
        _handler.setFormatter(StructuredFormatter())

        root = logging.getLogger(ROOT_LOGGER_NAME)
        root.setLevel(level)
        root.propagate = False
        root.addHandler(_handler)
        return _handler


def reset_logging() -> None:
    """Remove the handler installed by ``configure_logging``. Tests only."""
    global _handler
    with _lock:
        root = logging.getLogger(ROOT_LOGGER_NAME)
        if _handler is not None:
            root.removeHandler(_handler)
            _handler = None
        root.setLevel(logging.WARNING)
