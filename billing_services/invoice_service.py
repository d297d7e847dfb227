"""
InvoiceService -- the one invoice computation pipeline.

Responsibility:
    Compose the pure engines into the single path every invoice screen
    uses (quotation, sales order, sales invoice, purchase invoice):

      compute_invoice(draft, catalog, customer, company)
        1. Resolve draft lines against the catalog (LineResolver)
        2. Split tax and summarize by HSN (GstCalculator)
        3. Round the grand total to currency precision
        4. Reconcile the proposed amount received (InvoiceReconciler)
        5. Spell the grand total in words
        6. Stamp id and created_at

    and the payment update path for an already-computed invoice.

Architecture position:
    Services -- orchestration over engines + kernel. The only layer that
    reads configuration and the clock.

Failure modes:
    - Caller input errors (InvoiceValidationError) are caught and returned
      as an InvoiceComputationResult carrying a ValidationFailure.
    - ValueError for a programming error: a customer record that does not
      match the draft.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping
from decimal import Decimal
from uuid import uuid4

from billing_config import BillingConfig
from billing_engines.amount_words import amount_in_words
from billing_engines.gst import GstCalculator
from billing_engines.line_resolver import LineResolver
from billing_engines.reconciler import InvoiceReconciler
from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.domain.dtos import ValidationFailure
from billing_kernel.domain.records import CompanyProfile, Customer, DraftInvoice, Product
from billing_kernel.domain.values import Money
from billing_kernel.exceptions import InvoiceValidationError
from billing_kernel.logging_config import LogContext, get_logger
from billing_services.models import ComputedInvoice, InvoiceComputationResult

logger = get_logger("services.invoice")


class InvoiceService:
    """
    Computes invoices from drafts.

    Contract:
        Returns either a complete ``ComputedInvoice`` or a structured
        ``ValidationFailure``; a partially computed invoice is never
        returned. Nothing is persisted and stock is never decremented.

    Usage:
        service = InvoiceService(config=get_active_config(), clock=SystemClock())
        result = service.compute_invoice(draft, catalog, customer, company)
        if result.is_success:
            save(result.invoice.to_dict())
        else:
            form.show(result.failure)
    """

    def __init__(
        self,
        config: BillingConfig | None = None,
        clock: Clock | None = None,
    ):
        self._config = config or BillingConfig()
        self._clock = clock or SystemClock()
        self._resolver = LineResolver(
            currency=self._config.currency,
            fallback_hsn_code=self._config.fallback_hsn_code,
            stock_bearing_types=self._config.stock_bearing_types,
        )
        self._calculator = GstCalculator(currency=self._config.currency)
        self._reconciler = InvoiceReconciler()

    @property
    def config(self) -> BillingConfig:
        return self._config

    def compute_invoice(
        self,
        draft: DraftInvoice,
        catalog: Mapping[str, Product] | Iterable[Product],
        customer: Customer,
        company: CompanyProfile,
        actor_id: str | None = None,
    ) -> InvoiceComputationResult:
        """
        Run the invoice pipeline for a draft.

        Args:
            draft: Draft invoice request
            catalog: Product catalog snapshot
            customer: The draft's customer (buyer state)
            company: Seller profile (seller state)
            actor_id: Optional user id for log context

        Returns:
            InvoiceComputationResult with status COMPUTED, or a rejection
            status and a ValidationFailure.

        Raises:
            ValueError: If ``customer`` is not the draft's customer.
        """
        if draft.customer_id != customer.id:
            raise ValueError(
                f"Customer {customer.id} does not match draft customer {draft.customer_id}"
            )

        invoice_id = str(uuid4())
        with LogContext.bind(
            correlation_id=str(uuid4()),
            invoice_id=invoice_id,
            customer_id=customer.id,
            actor_id=actor_id,
        ):
            logger.info("invoice_computation_started", extra={
                "invoice_type": draft.invoice_type.value,
                "line_count": len(draft.lines),
                "has_proposed_received": draft.proposed_received is not None,
            })
            missing = company.missing_required_fields()
            if missing:
                logger.warning("company_profile_incomplete", extra={
                    "missing_fields": list(missing),
                })
            t0 = time.monotonic()

            try:
                invoice = self._compute(invoice_id, draft, catalog, customer, company)
            except InvoiceValidationError as e:
                failure = ValidationFailure.from_error(e)
                logger.warning("invoice_computation_rejected", extra={
                    "error_code": failure.code,
                    "line_index": failure.index,
                    "field": failure.field,
                })
                return InvoiceComputationResult.rejected(failure)

            duration_ms = round((time.monotonic() - t0) * 1000, 2)
            logger.info("invoice_computation_completed", extra={
                "regime": invoice.regime.value,
                "grand_total": str(invoice.grand_total.amount),
                "payment_status": invoice.payment_status.value,
                "duration_ms": duration_ms,
            })
            return InvoiceComputationResult.computed(invoice)

    def update_received(
        self,
        invoice: ComputedInvoice,
        proposed_received: Money | Decimal | str | int,
        actor_id: str | None = None,
    ) -> InvoiceComputationResult:
        """
        Record a new amount received on an existing invoice.

        Validated against the invoice's stored grand total, exactly as at
        creation, for every invoice type; pending is re-derived. A
        non-numeric, negative or excessive amount comes back as a rejected
        result.
        """
        with LogContext.bind(
            correlation_id=str(uuid4()),
            invoice_id=invoice.id,
            customer_id=invoice.customer_id,
            actor_id=actor_id,
        ):
            try:
                payment = self._reconciler.update(
                    grand_total=invoice.grand_total,
                    proposed_received=proposed_received,
                )
            except InvoiceValidationError as e:
                failure = ValidationFailure.from_error(e)
                logger.warning("payment_update_rejected", extra={
                    "error_code": failure.code,
                })
                return InvoiceComputationResult.rejected(failure)

            updated = invoice.with_payment(payment)
            logger.info("payment_updated", extra={
                "previous_received": (
                    None if invoice.total_received is None
                    else str(invoice.total_received.amount)
                ),
                "total_received": str(payment.total_received.amount),
                "payment_status": updated.payment_status.value,
            })
            return InvoiceComputationResult.computed(updated)

    def _compute(
        self,
        invoice_id: str,
        draft: DraftInvoice,
        catalog: Mapping[str, Product] | Iterable[Product],
        customer: Customer,
        company: CompanyProfile,
    ) -> ComputedInvoice:
        resolved = self._resolver.resolve(
            draft_lines=draft.lines,
            catalog=catalog,
            invoice_type=draft.invoice_type,
        )
        gst = self._calculator.compute(
            resolved_lines=resolved,
            seller_state=company.state,
            buyer_state=customer.state,
        )
        grand_total = gst.totals.grand.round()
        payment = self._reconciler.reconcile(
            grand_total=grand_total,
            proposed_received=draft.proposed_received,
            invoice_type=draft.invoice_type,
        )

        return ComputedInvoice(
            id=invoice_id,
            invoice_type=draft.invoice_type,
            customer_id=customer.id,
            customer_name=customer.name,
            seller_state=company.state,
            buyer_state=customer.state,
            regime=gst.regime,
            lines=gst.lines,
            hsn_summary=gst.hsn_summary,
            totals=gst.totals,
            grand_total=grand_total,
            amount_in_words=amount_in_words(grand_total),
            payment=payment,
            created_at=self._clock.now(),
        )
