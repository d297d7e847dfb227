"""
Module: billing_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    invoice computation engines. This is the canonical import surface for
    billing_services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import billing_kernel (and sibling engine modules).
    MUST NOT import billing_services or billing_config.

Invariants enforced:
    - Purity: engines never read the wall clock; timestamps are stamped by
      services from an injected Clock.
    - Decimal-only arithmetic: every amount is Money; floats are rejected.
    - Determinism: identical inputs always produce identical outputs.

Failure modes:
    - InvoiceValidationError subclasses propagated from the line resolver
      and the reconciler on invalid caller input.

Audit relevance:
    Engine entrypoints are wrapped by ``@traced_engine`` (see
    ``billing_engines.tracer``), emitting BILLING_ENGINE_TRACE records with
    engine name, version, input fingerprint, duration and outcome.

Usage:
    from billing_engines.line_resolver import LineResolver
    from billing_engines.gst import GstCalculator
    from billing_engines.reconciler import InvoiceReconciler
    from billing_engines.amount_words import amount_in_words
    from billing_engines.ledger import summarize
"""

from billing_kernel.logging_config import get_logger

logger = get_logger("engines")

from billing_engines.amount_words import amount_in_words, rupees_in_words
from billing_engines.gst import (
    GstCalculator,
    GstComputation,
    GstTotals,
    HsnSummaryEntry,
    TaxedLine,
    TaxRegime,
    determine_regime,
    normalize_state,
)
from billing_engines.ledger import LedgerSummary, customers, summarize
from billing_engines.line_resolver import (
    LineResolver,
    ResolvedLine,
    normalize_quantity,
)
from billing_engines.reconciler import (
    InvoiceReconciler,
    PaymentReconciliation,
    PaymentStatus,
    payment_status,
)
from billing_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    # Amount in words
    "amount_in_words",
    "rupees_in_words",
    # GST
    "GstCalculator",
    "GstComputation",
    "GstTotals",
    "HsnSummaryEntry",
    "TaxRegime",
    "TaxedLine",
    "determine_regime",
    "normalize_state",
    # Ledger
    "LedgerSummary",
    "customers",
    "summarize",
    # Line resolver
    "LineResolver",
    "ResolvedLine",
    "normalize_quantity",
    # Reconciler
    "InvoiceReconciler",
    "PaymentReconciliation",
    "PaymentStatus",
    "payment_status",
    # Tracer
    "compute_input_fingerprint",
    "traced_engine",
]
