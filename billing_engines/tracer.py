"""
billing_engines.tracer -- Engine invocation tracer emitting BILLING_ENGINE_TRACE.

Responsibility:
    Provide a lightweight decorator (``@traced_engine``) that wraps pure
    engine invocations with structured trace logging. The trace captures
    engine_name, engine_version, input_fingerprint (deterministic SHA-256
    hash of selected inputs), duration_ms and outcome.

Invariants enforced:
    - Fingerprint computation is deterministic: _canonicalize produces
      stable string representations of values; dict keys are sorted; the
      hash is SHA-256 truncated to 16 hex chars.
    - Engine purity: the decorator only reads the bound arguments and
      emits a log record; it does not mutate inputs or swallow exceptions.

Failure modes:
    - Positional and keyword calls are bound to the engine signature, so
      both give the same fingerprint. A field that is not a parameter is
      recorded as "null".
    - Exceptions raised by the engine are re-raised unchanged after a
      trace record with ``outcome="rejected"`` is emitted.

Usage:
    from billing_engines.tracer import traced_engine

    @traced_engine("gst", "1.0", fingerprint_fields=("seller_state", "buyer_state"))
    def compute(self, resolved_lines, seller_state, buyer_state):
        ...
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import logging
import time
from collections.abc import Callable
from decimal import Decimal
from enum import Enum
from typing import Any

# In production this logger is configured by the application root.
_logger = logging.getLogger("billing_kernel.engines.tracer")


def _canonicalize(value: Any) -> str:
    """Produce a stable string representation of a value for fingerprinting.

    Unknown types fall back to ``str(value)``; frozen dataclasses render
    their fields in declaration order, which is stable.
    """
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        return "{" + ",".join(f"{k}:{_canonicalize(v)}" for k, v in items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: dict[str, Any],
) -> str:
    """Compute a deterministic SHA-256 fingerprint of selected input fields.

    Returns a 16-character hex string computed from the canonicalized
    values of the specified fields. Missing fields are recorded as "null".
    """
    parts: list[str] = []
    for field in fingerprint_fields:
        val = kwargs.get(field)
        parts.append(f"{field}={_canonicalize(val)}")
    canonical = "|".join(parts)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def _bound_arguments(
    signature: inspect.Signature,
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
) -> dict[str, Any]:
    """Map a call onto parameter names. An invalid call keeps its kwargs;
    the engine itself raises the TypeError."""
    try:
        bound = signature.bind(*args, **kwargs)
    except TypeError:
        return kwargs
    bound.apply_defaults()
    return dict(bound.arguments)


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorator that emits BILLING_ENGINE_TRACE for pure engine invocations.

    Args:
        engine_name: Engine identifier (e.g., "gst").
        engine_version: Engine version (e.g., "1.0").
        fingerprint_fields: Parameter names to include in the input
            fingerprint hash.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fp = ""
            if fingerprint_fields:
                fp = compute_input_fingerprint(
                    fingerprint_fields, _bound_arguments(signature, args, kwargs)
                )

            t0 = time.monotonic()
            outcome = "completed"
            try:
                return func(*args, **kwargs)
            except Exception:
                outcome = "rejected"
                raise
            finally:
                duration_ms = round((time.monotonic() - t0) * 1000, 2)
                _logger.info(
                    "BILLING_ENGINE_TRACE",
                    extra={
                        "trace_type": "BILLING_ENGINE_TRACE",
                        "engine_name": engine_name,
                        "engine_version": engine_version,
                        "input_fingerprint": fp,
                        "duration_ms": duration_ms,
                        "function": func.__qualname__,
                        "outcome": outcome,
                    },
                )

        return wrapper

    return decorator
