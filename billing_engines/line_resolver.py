"""
Line Resolver - Turn draft (product, quantity) pairs into priced lines.

Pure functions with no I/O - the product catalog is a snapshot passed in by
the caller. Stock is read, never decremented; decrementing belongs to the
persistence collaborator after a successful computation.

Usage:
    from billing_engines.line_resolver import LineResolver
    from billing_kernel.domain.records import InvoiceType, LineItem

    resolver = LineResolver()
    lines = resolver.resolve(
        draft_lines=[LineItem("p-1", 2)],
        catalog=products,
        invoice_type=InvoiceType.SALES_INVOICE,
    )
    print(lines[0].taxable_amount)  # Money: 2000 INR
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from billing_engines.tracer import traced_engine
from billing_kernel.domain.dtos import ValidationFailure
from billing_kernel.domain.records import InvoiceType, LineItem, Product
from billing_kernel.domain.values import Money
from billing_kernel.exceptions import (
    EmptyInvoiceError,
    InsufficientStockError,
    InvalidProductError,
    InvalidQuantityError,
    InvoiceValidationError,
)
from billing_kernel.logging_config import get_logger

logger = get_logger("engines.line_resolver")

DEFAULT_FALLBACK_HSN_CODE = "0000"
DEFAULT_STOCK_BEARING_TYPES = frozenset({InvoiceType.SALES_INVOICE})


@dataclass(frozen=True)
class ResolvedLine:
    """
    A draft line enriched with catalog pricing.

    Immutable value object. Only lines with a known product and a positive
    integer quantity are ever constructed.
    """

    index: int  # position in the draft, 0-based
    product_id: str
    product_name: str
    unit_price: Money
    tax_rate: Decimal  # percentage, e.g. 18 for 18%
    hsn_code: str
    quantity: int

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValueError("ResolvedLine quantity must be positive")
        if self.unit_price.is_negative:
            raise ValueError("ResolvedLine unit_price cannot be negative")

    @property
    def taxable_amount(self) -> Money:
        """Unit price x quantity, exact."""
        return self.unit_price * self.quantity


def normalize_quantity(value: Any) -> int | None:
    """
    Coerce a loosely typed form quantity to int.

    Returns None for anything that is not a whole number: booleans,
    fractions, non-numeric strings, NaN/inf. Sign is not checked here.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            value = Decimal(value.strip())
        except InvalidOperation:
            return None
    elif isinstance(value, float):
        value = Decimal(str(value))
    if isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            return None
        return int(value)
    return None


def index_catalog(catalog: Mapping[str, Product] | Iterable[Product]) -> Mapping[str, Product]:
    """Key a catalog by product id (mappings are used as-is)."""
    if isinstance(catalog, Mapping):
        return catalog
    return {product.id: product for product in catalog}


class LineResolver:
    """
    Resolve draft lines against a product catalog snapshot.

    Pure functions - no I/O, no stock mutation.

    Checks, per line in index order:
        - product id exists in the catalog
        - quantity is a positive whole number
        - for stock-bearing invoice types, cumulative quantity per product
          does not exceed stock
    """

    def __init__(
        self,
        currency: str = "INR",
        fallback_hsn_code: str = DEFAULT_FALLBACK_HSN_CODE,
        stock_bearing_types: frozenset[InvoiceType] = DEFAULT_STOCK_BEARING_TYPES,
    ):
        self._currency = currency
        self._fallback_hsn_code = fallback_hsn_code
        self._stock_bearing_types = frozenset(stock_bearing_types)

    @traced_engine("line_resolver", "1.0", fingerprint_fields=("draft_lines", "invoice_type"))
    def resolve(
        self,
        draft_lines: Sequence[LineItem],
        catalog: Mapping[str, Product] | Iterable[Product],
        invoice_type: InvoiceType,
    ) -> tuple[ResolvedLine, ...]:
        """
        Resolve every draft line or fail on the first invalid one.

        Args:
            draft_lines: Draft (product_id, quantity) pairs
            catalog: Products as a sequence or an id -> Product mapping
            invoice_type: Decides whether stock is checked

        Returns:
            Resolved lines in draft order

        Raises:
            EmptyInvoiceError: No draft lines
            InvalidProductError: Unknown or missing product id
            InvalidQuantityError: Quantity not a positive whole number
            InsufficientStockError: Stock-bearing invoice exceeds stock
        """
        invoice_type = InvoiceType(invoice_type)
        logger.info("line_resolution_started", extra={
            "line_count": len(draft_lines),
            "invoice_type": invoice_type.value,
            "checks_stock": invoice_type in self._stock_bearing_types,
        })

        resolved, errors = self._scan(draft_lines, index_catalog(catalog), invoice_type)
        if errors:
            error = errors[0]
            logger.warning("line_resolution_rejected", extra={
                "error_code": error.code,
                "line_index": error.index,
                "error_count": len(errors),
            })
            raise error

        logger.info("line_resolution_completed", extra={
            "line_count": len(resolved),
            "product_count": len({line.product_id for line in resolved}),
        })
        return tuple(resolved)

    def validate(
        self,
        draft_lines: Sequence[LineItem],
        catalog: Mapping[str, Product] | Iterable[Product],
        invoice_type: InvoiceType,
    ) -> tuple[ValidationFailure, ...]:
        """
        Report every problem with a draft, for form-level display.

        Same checks as ``resolve`` but collects all failures instead of
        stopping at the first. An empty tuple means ``resolve`` will succeed.
        """
        _, errors = self._scan(
            draft_lines, index_catalog(catalog), InvoiceType(invoice_type)
        )
        return tuple(ValidationFailure.from_error(e) for e in errors)

    def _scan(
        self,
        draft_lines: Sequence[LineItem],
        products: Mapping[str, Product],
        invoice_type: InvoiceType,
    ) -> tuple[list[ResolvedLine], list[InvoiceValidationError]]:
        if not draft_lines:
            return [], [EmptyInvoiceError()]

        check_stock = invoice_type in self._stock_bearing_types
        requested: dict[str, int] = {}
        resolved: list[ResolvedLine] = []
        errors: list[InvoiceValidationError] = []

        for index, line in enumerate(draft_lines):
            product = products.get(line.product_id) if line.product_id else None
            quantity = normalize_quantity(line.quantity)

            if product is None:
                errors.append(InvalidProductError(index, line.product_id))
            if quantity is None or quantity <= 0:
                errors.append(InvalidQuantityError(index, line.quantity))
                continue
            if product is None:
                continue

            if check_stock:
                total = requested.get(product.id, 0) + quantity
                requested[product.id] = total
                if total > product.stock:
                    errors.append(InsufficientStockError(
                        index=index,
                        product_id=product.id,
                        product_name=product.name,
                        available=product.stock,
                        requested=total,
                    ))
                    continue

            resolved.append(self._resolve_line(index, product, quantity))

        return resolved, errors

    def _resolve_line(self, index: int, product: Product, quantity: int) -> ResolvedLine:
        hsn_code = (product.hsn_code or "").strip()
        if not hsn_code:
            logger.debug("hsn_fallback_applied", extra={
                "product_id": product.id,
                "fallback_hsn_code": self._fallback_hsn_code,
            })
            hsn_code = self._fallback_hsn_code

        return ResolvedLine(
            index=index,
            product_id=product.id,
            product_name=product.name,
            unit_price=Money.of(product.unit_price, self._currency),
            tax_rate=product.tax_rate,
            hsn_code=hsn_code,
            quantity=quantity,
        )
