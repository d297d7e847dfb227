"""
billing_services -- Package init and public API.

Responsibility:
    Orchestration services that compose the pure engines
    (billing_engines/) with configuration and the clock. This is the only
    layer that reads BillingConfig or wall-clock time.

Architecture position:
    Services -- orchestration over engines + kernel.

    Dependency direction (enforced by tests/architecture/test_import_boundaries.py):
        billing_services/ -> billing_engines/  (allowed)
        billing_services/ -> billing_config/   (allowed)
        billing_services/ -> billing_kernel/   (allowed)
        billing_engines/  -> billing_services/ (FORBIDDEN)
        billing_kernel/   -> billing_services/ (FORBIDDEN)
"""

from billing_kernel.logging_config import get_logger

logger = get_logger("services")

from billing_services.account_service import AccountService
from billing_services.invoice_service import InvoiceService
from billing_services.models import (
    ComputedInvoice,
    InvoiceComputationResult,
    InvoiceComputationStatus,
)

__all__ = [
    "AccountService",
    "ComputedInvoice",
    "InvoiceComputationResult",
    "InvoiceComputationStatus",
    "InvoiceService",
]
