"""
GST Engine - Split invoice tax into CGST+SGST or IGST and summarize by HSN.

Pure functions with no I/O - resolved lines and both jurisdictions are
provided as parameters.

The regime is decided once per invoice by comparing seller and buyer
state: same state means intra-state supply (CGST and SGST, each half the
rate); different states mean inter-state supply (IGST at the full rate).

Arithmetic is exact Decimal; nothing is rounded here. Presentation figures
come from ``Money.round()``.

Usage:
    from billing_engines.gst import GstCalculator

    calculator = GstCalculator()
    result = calculator.compute(
        resolved_lines=lines,
        seller_state="Gujarat",
        buyer_state="Maharashtra",
    )
    print(result.regime)        # TaxRegime.INTER_STATE
    print(result.totals.igst)   # Money: 360 INR
    print(result.totals.grand)  # Money: 2360 INR
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from billing_engines.line_resolver import ResolvedLine
from billing_engines.tracer import traced_engine
from billing_kernel.domain.values import Money, sum_money
from billing_kernel.logging_config import get_logger

logger = get_logger("engines.gst")

_HUNDRED = Decimal("100")
_TWO_HUNDRED = Decimal("200")


class TaxRegime(str, Enum):
    """Invoice-wide GST regime."""

    INTRA_STATE = "intra_state"  # CGST + SGST
    INTER_STATE = "inter_state"  # IGST


def normalize_state(state: str | None) -> str:
    """Trim, collapse internal whitespace and case-fold a state name."""
    return " ".join((state or "").split()).casefold()


def determine_regime(seller_state: str | None, buyer_state: str | None) -> TaxRegime:
    """Same state (after normalization) is intra-state, anything else inter-state."""
    if normalize_state(seller_state) == normalize_state(buyer_state):
        return TaxRegime.INTRA_STATE
    return TaxRegime.INTER_STATE


@dataclass(frozen=True)
class TaxedLine:
    """
    A resolved line with its GST split.

    Exactly one of the two shapes is populated: ``cgst``/``sgst`` for
    intra-state, ``igst`` for inter-state. The other components are None.
    """

    line: ResolvedLine
    regime: TaxRegime
    cgst: Money | None = None
    sgst: Money | None = None
    igst: Money | None = None

    def __post_init__(self) -> None:
        if self.regime == TaxRegime.INTRA_STATE:
            if self.cgst is None or self.sgst is None or self.igst is not None:
                raise ValueError("Intra-state line must carry CGST and SGST only")
        elif self.igst is None or self.cgst is not None or self.sgst is not None:
            raise ValueError("Inter-state line must carry IGST only")

    @property
    def hsn_code(self) -> str:
        return self.line.hsn_code

    @property
    def taxable_amount(self) -> Money:
        return self.line.taxable_amount

    @property
    def tax_amount(self) -> Money:
        if self.regime == TaxRegime.INTRA_STATE:
            return self.cgst + self.sgst
        return self.igst

    @property
    def line_total(self) -> Money:
        return self.taxable_amount + self.tax_amount


@dataclass(frozen=True)
class HsnSummaryEntry:
    """Taxable value and tax for all lines sharing one HSN code."""

    hsn_code: str
    regime: TaxRegime
    taxable_amount: Money
    cgst: Money | None
    sgst: Money | None
    igst: Money | None
    line_total: Money
    line_count: int
    tax_rates: tuple[Decimal, ...]  # distinct rates, first-seen order

    @property
    def tax_amount(self) -> Money:
        if self.regime == TaxRegime.INTRA_STATE:
            return self.cgst + self.sgst
        return self.igst


@dataclass(frozen=True)
class GstTotals:
    """Invoice totals. Regime-inapplicable components are None."""

    taxable: Money
    cgst: Money | None
    sgst: Money | None
    igst: Money | None
    tax: Money
    grand: Money


@dataclass(frozen=True)
class GstComputation:
    """
    Complete GST computation for one invoice.

    Immutable value object with per-line splits, the HSN summary and totals.
    """

    regime: TaxRegime
    lines: tuple[TaxedLine, ...]
    hsn_summary: tuple[HsnSummaryEntry, ...]
    totals: GstTotals

    @property
    def is_intra_state(self) -> bool:
        return self.regime == TaxRegime.INTRA_STATE


class GstCalculator:
    """
    Calculate GST for resolved invoice lines.

    Pure functions - no I/O, no rounding. Total over any set of resolved
    lines: an empty set yields zero totals.
    """

    def __init__(self, currency: str = "INR"):
        self._currency = currency

    @traced_engine(
        "gst", "1.0",
        fingerprint_fields=("resolved_lines", "seller_state", "buyer_state"),
    )
    def compute(
        self,
        resolved_lines: Sequence[ResolvedLine],
        seller_state: str | None,
        buyer_state: str | None,
    ) -> GstComputation:
        """
        Compute per-line GST, the HSN summary and invoice totals.

        Args:
            resolved_lines: Output of LineResolver.resolve
            seller_state: Company profile state
            buyer_state: Customer state

        Returns:
            GstComputation with exact (unrounded) amounts
        """
        t0 = time.monotonic()
        regime = determine_regime(seller_state, buyer_state)
        logger.info("gst_calculation_started", extra={
            "line_count": len(resolved_lines),
            "regime": regime.value,
            "seller_state": normalize_state(seller_state),
            "buyer_state": normalize_state(buyer_state),
        })

        taxed = tuple(self.tax_line(line, regime) for line in resolved_lines)
        summary = self.summarize_by_hsn(taxed, regime)
        totals = self._totals(taxed, regime)

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info("gst_calculation_completed", extra={
            "regime": regime.value,
            "taxable": str(totals.taxable.amount),
            "tax": str(totals.tax.amount),
            "grand": str(totals.grand.amount),
            "hsn_group_count": len(summary),
            "duration_ms": duration_ms,
        })

        return GstComputation(
            regime=regime,
            lines=taxed,
            hsn_summary=summary,
            totals=totals,
        )

    def tax_line(self, line: ResolvedLine, regime: TaxRegime) -> TaxedLine:
        """Split tax for one line under an already-chosen regime."""
        taxable = line.taxable_amount
        if regime == TaxRegime.INTRA_STATE:
            half = taxable * line.tax_rate / _TWO_HUNDRED
            return TaxedLine(line=line, regime=regime, cgst=half, sgst=half)
        return TaxedLine(
            line=line,
            regime=regime,
            igst=taxable * line.tax_rate / _HUNDRED,
        )

    def summarize_by_hsn(
        self,
        taxed_lines: Sequence[TaxedLine],
        regime: TaxRegime,
    ) -> tuple[HsnSummaryEntry, ...]:
        """Group taxed lines by HSN code, in first-appearance order."""
        groups: dict[str, list[TaxedLine]] = {}
        for taxed in taxed_lines:
            groups.setdefault(taxed.hsn_code, []).append(taxed)

        entries: list[HsnSummaryEntry] = []
        for hsn_code, members in groups.items():
            rates: list[Decimal] = []
            for member in members:
                if member.line.tax_rate not in rates:
                    rates.append(member.line.tax_rate)
            cgst, sgst, igst = self._components(members, regime)
            entries.append(HsnSummaryEntry(
                hsn_code=hsn_code,
                regime=regime,
                taxable_amount=sum_money([m.taxable_amount for m in members], self._currency),
                cgst=cgst,
                sgst=sgst,
                igst=igst,
                line_total=sum_money([m.line_total for m in members], self._currency),
                line_count=len(members),
                tax_rates=tuple(rates),
            ))

        logger.debug("gst_hsn_summary_built", extra={
            "hsn_codes": [e.hsn_code for e in entries],
        })
        return tuple(entries)

    def _components(
        self,
        taxed_lines: Sequence[TaxedLine],
        regime: TaxRegime,
    ) -> tuple[Money | None, Money | None, Money | None]:
        if regime == TaxRegime.INTRA_STATE:
            return (
                sum_money([t.cgst for t in taxed_lines], self._currency),
                sum_money([t.sgst for t in taxed_lines], self._currency),
                None,
            )
        return None, None, sum_money([t.igst for t in taxed_lines], self._currency)

    def _totals(self, taxed_lines: Sequence[TaxedLine], regime: TaxRegime) -> GstTotals:
        taxable = sum_money([t.taxable_amount for t in taxed_lines], self._currency)
        cgst, sgst, igst = self._components(taxed_lines, regime)
        tax = cgst + sgst if regime == TaxRegime.INTRA_STATE else igst
        return GstTotals(
            taxable=taxable,
            cgst=cgst,
            sgst=sgst,
            igst=igst,
            tax=tax,
            grand=taxable + tax,
        )
